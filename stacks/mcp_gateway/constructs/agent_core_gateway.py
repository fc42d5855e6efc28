"""
stacks/mcp_gateway/constructs/agent_core_gateway.py

CDK Construct for an AWS Bedrock AgentCore Gateway (MCP protocol), driven
through CreateGateway / UpdateGateway / DeleteGateway control-plane calls.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from aws_cdk import aws_iam as iam
from constructs import Construct

from stacks.mcp_gateway.auth import AuthBinding
from stacks.mcp_gateway.constructs.control_plane_resource import (
    ControlPlaneResource,
    LifecycleCall,
    physical_id_ref,
)

MCP_PROTOCOL_VERSION = "2025-03-26"


@dataclass(frozen=True)
class ResourceHandle:
    """Identifiers of a provisioned control-plane resource."""

    physical_id: str
    arn: Optional[str] = None
    url: Optional[str] = None


def build_protocol_configuration(
    enable_semantic_search: bool = False,
    instructions: Optional[str] = None,
) -> Dict[str, Any]:
    mcp: Dict[str, Any] = {"supportedVersions": [MCP_PROTOCOL_VERSION]}
    if enable_semantic_search:
        mcp["searchType"] = "SEMANTIC"
    if instructions:
        mcp["instructions"] = instructions
    return {"mcp": mcp}


class AgentCoreGateway(Construct):
    """
    Reusable CDK construct that creates a Bedrock AgentCore Gateway (MCP protocol).

    Inbound identity comes from the auth binding:
      - JwtAuthBinding : CUSTOM_JWT authorizer (Cognito discovery URL + clients)
      - IamAuthBinding : AWS_IAM, no authorizer configuration

    The gateway id returned by CreateGateway becomes the physical id and is
    passed back as ``gatewayIdentifier`` on every update and delete.
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        *,
        name: str,
        execution_role: iam.IRole,
        auth_binding: AuthBinding,
        description: Optional[str] = None,
        enable_semantic_search: bool = False,
        exception_level: Optional[str] = None,
        instructions: Optional[str] = None,
        kms_key_arn: Optional[str] = None,
    ):
        super().__init__(scope, id)

        self.name = name
        self.auth_binding = auth_binding
        self.authorizer_type: str = auth_binding.authorizer_type
        self.authorizer_configuration: Optional[Dict[str, Any]] = auth_binding.authorizer_configuration()
        self.protocol_configuration = build_protocol_configuration(enable_semantic_search, instructions)

        parameters = {
            "name": name,
            "description": description,
            "protocolType": "MCP",
            "protocolConfiguration": self.protocol_configuration,
            "roleArn": execution_role.role_arn,
            "authorizerType": self.authorizer_type,
            "authorizerConfiguration": self.authorizer_configuration,
            "exceptionLevel": exception_level,
            "kmsKeyArn": kms_key_arn,
        }

        self.resource = ControlPlaneResource(
            self,
            "Gateway",
            on_create=LifecycleCall(
                action="CreateGateway",
                parameters=parameters,
                id_from_response="gatewayId",
            ),
            on_update=LifecycleCall(
                action="UpdateGateway",
                parameters={"gatewayIdentifier": physical_id_ref(), **parameters},
                id_from_response="gatewayId",
            ),
            on_delete=LifecycleCall(
                action="DeleteGateway",
                parameters={"gatewayIdentifier": physical_id_ref()},
            ),
            policy_statements=[
                iam.PolicyStatement(
                    actions=[
                        "bedrock-agentcore:CreateGateway",
                        "bedrock-agentcore:UpdateGateway",
                        "bedrock-agentcore:DeleteGateway",
                        "bedrock-agentcore:GetGateway",
                    ],
                    resources=["*"],
                ),
                iam.PolicyStatement(
                    actions=["iam:PassRole"],
                    resources=[execution_role.role_arn],
                ),
            ],
            output_paths=["gatewayId", "gatewayArn", "gatewayUrl"],
        )

        # Role first on create, gateway first on delete.
        self.resource.node.add_dependency(execution_role)

        # Friendly accessors
        self.gateway_id: str = self.resource.response_field("gatewayId")
        self.gateway_arn: str = self.resource.response_field("gatewayArn")
        self.gateway_url: str = self.resource.response_field("gatewayUrl")

    @property
    def handle(self) -> ResourceHandle:
        return ResourceHandle(physical_id=self.gateway_id, arn=self.gateway_arn, url=self.gateway_url)
