"""
stacks/mcp_gateway/mcp_gateway_stack.py

Main CDK Stack for the MCP AgentCore Gateway.
All configuration values are supplied by infra/config/loader.py (JSON-backed).
"""

from pathlib import Path
from typing import Dict, List, Optional, Union

from aws_cdk import (
    Stack,
    CfnOutput,
)
from constructs import Construct

from stacks.mcp_gateway.auth import AuthBinding, IamAuthBinding
from stacks.mcp_gateway.constructs.agent_core_gateway import AgentCoreGateway
from stacks.mcp_gateway.constructs.cognito_identity import AgentCoreCognitoUserPool, TokenValidity
from stacks.mcp_gateway.constructs.execution_role import AgentCoreGatewayExecutionRole
from stacks.mcp_gateway.constructs.integration_target import (
    IntegrationTarget,
    TargetPlan,
    plan_integration_target,
)
from stacks.mcp_gateway.constructs.schema_bucket import SchemaBucket
from stacks.mcp_gateway.models import AuthenticationType, StackConfig
from stacks.mcp_gateway.naming import construct_id_for, deterministic_id
from stacks.mcp_gateway.schemas import SchemaTemplateProcessor


class McpGatewayStack(Stack):
    """
    Top-level CDK stack.

    Creates, in dependency order:
      - Cognito user pool (JWT authentication only)
      - Schema bucket and gateway execution role
      - AgentCoreGateway construct
      - One IntegrationTarget per enabled integration target
      - CloudFormation Outputs for the gateway, auth mode, bucket and targets

    Every integration target is validated before any construct is added, so
    a bad target configuration fails synth without a partial stack.
    """

    def __init__(
        self,
        scope: Construct,
        stack_id: str,
        *,
        config: StackConfig,
        schemas_dir: Optional[Union[str, Path]] = None,
        use_returned_provider_arn: bool = True,
        **kwargs,
    ):
        super().__init__(scope, stack_id, **kwargs)

        gateway_config = config.gateway
        self.authentication_type = gateway_config.authentication_type

        # ── Validate and plan targets ─────────────────────────────────────────
        templates = SchemaTemplateProcessor(schemas_dir)
        plans: List[TargetPlan] = [
            plan_integration_target(target, gateway=gateway_config, templates=templates)
            for target in config.enabled_targets
        ]

        short_addr = self.node.addr[:8]

        # ── Inbound identity ──────────────────────────────────────────────────
        self.cognito_user_pool: Optional[AgentCoreCognitoUserPool] = None
        auth_binding: AuthBinding = IamAuthBinding()
        if self.authentication_type is AuthenticationType.JWT:
            self.cognito_user_pool = AgentCoreCognitoUserPool(
                self,
                "McpGatewayCognito",
                user_pool_name=f"McpGatewayUserPool-{short_addr}",
                client_name=f"McpGatewayClient-{short_addr}",
                enable_self_sign_up=False,
                token_validity=TokenValidity(),
            )
            auth_binding = self.cognito_user_pool.create_authorizer_config()

        # ── Schema bucket ─────────────────────────────────────────────────────
        self.schema_bucket = SchemaBucket(self, "SchemaBucket")

        s3_bucket_arns = [self.schema_bucket.bucket_arn]
        if gateway_config.agent_core_schemas_bucket:
            s3_bucket_arns.append(f"arn:aws:s3:::{gateway_config.agent_core_schemas_bucket}")

        # ── Gateway execution role ────────────────────────────────────────────
        role_unique_id = deterministic_id(f"{self.stack_name}-execution-role")
        self.gateway_execution_role = AgentCoreGatewayExecutionRole(
            self,
            "McpGatewayExecutionRole",
            role_name=f"McpGatewayExecRole-{role_unique_id}",
            enable_semantic_search=gateway_config.enable_semantic_search,
            s3_bucket_arns=s3_bucket_arns,
        )

        # ── Gateway ───────────────────────────────────────────────────────────
        self.mcp_gateway = AgentCoreGateway(
            self,
            "McpGateway",
            name=gateway_config.name or f"McpGateway-{short_addr}",
            description=gateway_config.description,
            execution_role=self.gateway_execution_role,
            auth_binding=auth_binding,
            enable_semantic_search=gateway_config.enable_semantic_search,
            exception_level=gateway_config.exception_level,
            instructions=gateway_config.instructions,
        )

        # ── Integration targets ───────────────────────────────────────────────
        self.integration_targets: Dict[str, IntegrationTarget] = {}
        for plan in plans:
            self._add_integration_target(plan, use_returned_provider_arn)

        # ── Outputs ───────────────────────────────────────────────────────────
        CfnOutput(self, "McpGatewayId", value=self.mcp_gateway.gateway_id, description="ID of the MCP Gateway")
        CfnOutput(self, "McpGatewayArn", value=self.mcp_gateway.gateway_arn, description="ARN of the MCP Gateway")
        CfnOutput(self, "McpGatewayUrl", value=self.mcp_gateway.gateway_url, description="URL of the MCP Gateway")
        CfnOutput(
            self,
            "McpGatewayRoleArn",
            value=self.gateway_execution_role.role_arn,
            description="Execution role ARN for the MCP Gateway",
        )

        if self.cognito_user_pool is not None:
            CfnOutput(
                self,
                "CognitoDiscoveryUrl",
                value=self.cognito_user_pool.discovery_url,
                description="OpenID Connect Discovery URL",
            )

        CfnOutput(
            self,
            "AuthenticationType",
            value=self.authentication_type.value,
            description="Gateway authentication type (JWT or IAM)",
        )
        CfnOutput(
            self,
            "SchemaBucketName",
            value=self.schema_bucket.bucket_name,
            description="Name of the S3 bucket containing OpenAPI schemas",
        )

        for target_type, target in self.integration_targets.items():
            CfnOutput(
                self,
                f"{construct_id_for(target_type)}TargetId",
                value=target.target_id,
                description=f"ID of the {target_type} integration target",
            )

    def _add_integration_target(self, plan: TargetPlan, use_returned_provider_arn: bool) -> None:
        construct_id = construct_id_for(plan.target_type)

        schema_document = None
        schema_uri = plan.schema_uri
        if not plan.is_prebuilt:
            schema_document = self.schema_bucket.upload_document(
                f"{construct_id}SchemaDocument",
                key=plan.schema_key,
                body=plan.schema_document,
                physical_id=deterministic_id(f"{self.stack_name}-{plan.target_type}-schema", upper=False),
            )
            schema_uri = self.schema_bucket.object_uri(plan.schema_key)

        self.integration_targets[plan.target_type] = IntegrationTarget(
            self,
            f"{construct_id}Target",
            gateway=self.mcp_gateway,
            target_type=plan.target_type,
            target_name=plan.target_name,
            description=plan.description,
            open_api_schema_s3_uri=schema_uri,
            api_key=plan.api_key,
            parameter_name=plan.parameter_name,
            prefix=plan.prefix,
            execution_role=self.gateway_execution_role,
            schema_document=schema_document,
            use_returned_provider_arn=use_returned_provider_arn,
        )
