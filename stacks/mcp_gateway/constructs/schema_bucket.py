"""
stacks/mcp_gateway/constructs/schema_bucket.py

Private S3 bucket holding the materialized OpenAPI schemas of custom targets.
"""

from typing import Optional

import aws_cdk as cdk
from aws_cdk import (
    Stack,
    aws_iam as iam,
    aws_s3 as s3,
)
from constructs import Construct

from stacks.mcp_gateway.constructs.control_plane_resource import ControlPlaneResource, LifecycleCall

AGENTCORE_SERVICE_PRINCIPAL = "bedrock-agentcore.amazonaws.com"


class SchemaBucket(Construct):
    """
    Bucket readable only by the AgentCore service principal of this account.

    Objects are derived artifacts: they are purged automatically before the
    bucket is deleted on stack teardown.
    """

    def __init__(self, scope: Construct, id: str, *, bucket_name: Optional[str] = None):
        super().__init__(scope, id)

        stack = Stack.of(self)
        self.bucket = s3.Bucket(
            self,
            "Bucket",
            bucket_name=bucket_name or f"mcp-gateway-schemas-{stack.account}-{stack.region}-v3",
            removal_policy=cdk.RemovalPolicy.DESTROY,
            auto_delete_objects=True,
            versioned=False,
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
        )

        self.bucket.add_to_resource_policy(
            iam.PolicyStatement(
                sid="AllowAgentCoreSchemaRead",
                effect=iam.Effect.ALLOW,
                principals=[iam.ServicePrincipal(AGENTCORE_SERVICE_PRINCIPAL)],
                actions=["s3:GetObject"],
                resources=[self.bucket.arn_for_objects("*")],
                conditions={"StringEquals": {"aws:SourceAccount": stack.account}},
            )
        )

    @property
    def bucket_name(self) -> str:
        return self.bucket.bucket_name

    @property
    def bucket_arn(self) -> str:
        return self.bucket.bucket_arn

    def object_uri(self, key: str) -> str:
        return f"s3://{self.bucket.bucket_name}/{key}"

    def upload_document(self, id: str, *, key: str, body: str, physical_id: str) -> ControlPlaneResource:
        """PutObject on create/update, DeleteObject on delete."""
        put = LifecycleCall(
            service="S3",
            action="PutObject",
            parameters={
                "Bucket": self.bucket.bucket_name,
                "Key": key,
                "Body": body,
                "ContentType": "application/json",
            },
            fixed_id=physical_id,
        )
        document = ControlPlaneResource(
            self,
            id,
            on_create=put,
            on_update=put,
            on_delete=LifecycleCall(
                service="S3",
                action="DeleteObject",
                parameters={"Bucket": self.bucket.bucket_name, "Key": key},
            ),
            policy_statements=[
                iam.PolicyStatement(
                    actions=["s3:PutObject", "s3:DeleteObject"],
                    resources=[self.bucket.arn_for_objects("*")],
                )
            ],
            install_latest_aws_sdk=False,
        )
        # Teardown removes the object before the bucket.
        document.node.add_dependency(self.bucket)
        return document
