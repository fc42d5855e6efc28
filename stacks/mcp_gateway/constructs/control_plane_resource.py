"""
stacks/mcp_gateway/constructs/control_plane_resource.py

Generic create/update/delete lifecycle resource over AWS SDK calls.

Each concrete resource (gateway, gateway target, credential provider, schema
document) supplies its own three calls; CloudFormation then drives them as
the resource's lifecycle hooks:

    create(params)        -> physical id captured from the response
    update(id, params)    -> same physical id, new parameters
    delete(id)

Use ``physical_id_ref()`` inside update/delete parameters to pass the id
captured on create back to the control plane.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from aws_cdk import (
    aws_iam as iam,
    custom_resources as cr,
)
from constructs import Construct

CONTROL_PLANE_SERVICE = "bedrock-agentcore-control"


def physical_id_ref() -> cr.PhysicalResourceIdReference:
    return cr.PhysicalResourceIdReference()


def compact(value: Any) -> Any:
    """Drop ``None`` entries recursively; the SDK rejects explicit nulls."""
    if isinstance(value, dict):
        return {k: compact(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [compact(v) for v in value if v is not None]
    return value


@dataclass
class LifecycleCall:
    """One SDK call issued for a lifecycle event."""

    action: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    service: str = CONTROL_PLANE_SERVICE
    # Response field holding the physical id, or a fixed id.
    id_from_response: Optional[str] = None
    fixed_id: Optional[str] = None

    def to_sdk_call(self, output_paths: Optional[List[str]] = None) -> cr.AwsSdkCall:
        physical_id = None
        if self.id_from_response:
            physical_id = cr.PhysicalResourceId.from_response(self.id_from_response)
        elif self.fixed_id:
            physical_id = cr.PhysicalResourceId.of(self.fixed_id)

        return cr.AwsSdkCall(
            service=self.service,
            action=self.action,
            parameters=compact(self.parameters),
            physical_resource_id=physical_id,
            output_paths=output_paths,
        )


class ControlPlaneResource(Construct):
    """
    Declarative lifecycle resource backed by an AwsCustomResource.

    Failures of any call fail the CloudFormation operation; retries and
    rollback belong to CloudFormation and the custom resource provider.
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        *,
        on_create: LifecycleCall,
        on_delete: LifecycleCall,
        on_update: Optional[LifecycleCall] = None,
        policy_statements: List[iam.PolicyStatement],
        output_paths: Optional[List[str]] = None,
        install_latest_aws_sdk: bool = True,
    ):
        super().__init__(scope, id)

        self.resource = cr.AwsCustomResource(
            self,
            "Resource",
            on_create=on_create.to_sdk_call(output_paths),
            on_update=on_update.to_sdk_call(output_paths) if on_update else None,
            on_delete=on_delete.to_sdk_call(),
            policy=cr.AwsCustomResourcePolicy.from_statements(policy_statements),
            install_latest_aws_sdk=install_latest_aws_sdk,
        )

    @property
    def grant_principal(self) -> iam.IPrincipal:
        return self.resource.grant_principal

    def response_field(self, path: str) -> str:
        """Token for a field of the create/update response."""
        return self.resource.get_response_field(path)
