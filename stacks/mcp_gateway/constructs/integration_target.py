"""
stacks/mcp_gateway/constructs/integration_target.py

One external REST API exposed as an MCP target of the gateway.

Planning (``plan_integration_target``) validates the configuration and
materializes the OpenAPI schema without touching the stack. The
``IntegrationTarget`` construct then wires, in order:

    Secret  ->  API key credential provider  ->  gateway target

with explicit dependencies on every earlier step and on the gateway.
"""

import re
from dataclasses import dataclass
from typing import Optional

import aws_cdk as cdk
from aws_cdk import (
    Stack,
    aws_iam as iam,
    aws_s3 as s3,
    aws_secretsmanager as secretsmanager,
)
from constructs import Construct

from stacks.mcp_gateway.constructs.agent_core_gateway import AgentCoreGateway, ResourceHandle
from stacks.mcp_gateway.constructs.control_plane_resource import (
    ControlPlaneResource,
    LifecycleCall,
    physical_id_ref,
)
from stacks.mcp_gateway.constructs.execution_role import AgentCoreGatewayExecutionRole
from stacks.mcp_gateway.errors import ConfigValidationError
from stacks.mcp_gateway.models import (
    DEFAULT_AUTH_PARAMETER_NAME,
    DEFAULT_AUTH_PREFIX,
    CredentialLocation,
    CredentialProviderConfig,
    CredentialProviderType,
    GatewayConfig,
    IntegrationTargetConfig,
)
from stacks.mcp_gateway.naming import (
    api_key_provider_arn,
    api_key_provider_name,
    api_key_secret_name,
    parse_s3_uri,
    target_unique_id,
)
from stacks.mcp_gateway.schemas import SchemaTemplateProcessor, schema_object_key

# Stored when a target is configured without a key, so the provider can still be created.
PLACEHOLDER_API_KEY = "dummy-api-key"

_BUCKET_NAME = re.compile(r"^[a-z0-9][a-z0-9.\-]{1,61}[a-z0-9]$")


@dataclass(frozen=True)
class TargetPlan:
    target_type: str
    target_name: str
    description: str
    api_key: Optional[str]
    parameter_name: str
    prefix: str
    schema_key: str
    # Pre-built targets reference a hosted schema; custom targets upload one.
    schema_uri: Optional[str] = None
    schema_document: Optional[str] = None

    @property
    def is_prebuilt(self) -> bool:
        return self.schema_document is None


def plan_integration_target(
    target: IntegrationTargetConfig,
    *,
    gateway: GatewayConfig,
    templates: SchemaTemplateProcessor,
) -> TargetPlan:
    """Validate one target and resolve its schema; raises before any resource exists."""
    if target.is_prebuilt:
        bucket = gateway.agent_core_schemas_bucket
        if not bucket:
            raise ConfigValidationError(
                f"gateway.agentCoreSchemasBucket is required for the pre-built '{target.type}' integration target"
            )
        if not _BUCKET_NAME.match(bucket):
            raise ConfigValidationError(f"gateway.agentCoreSchemasBucket is not a bucket name: '{bucket}'")

        key = schema_object_key(target.integration_name)
        uri = f"s3://{bucket}/{key}"
        parse_s3_uri(uri)
        return TargetPlan(
            target_type=target.type,
            target_name=target.integration_name,
            description=f"{target.integration_name} AgentCore built-in integration",
            api_key=target.config.api_key,
            parameter_name=DEFAULT_AUTH_PARAMETER_NAME,
            prefix=DEFAULT_AUTH_PREFIX,
            schema_key=key,
            schema_uri=uri,
        )

    if not target.config.base_url:
        raise ConfigValidationError(f"Base URL is required for {target.type} integration target")

    auth = target.config.auth
    return TargetPlan(
        target_type=target.type,
        target_name=target.type,
        description=f"{target.type} REST API integration",
        api_key=target.config.api_key,
        parameter_name=auth.parameter_name or DEFAULT_AUTH_PARAMETER_NAME,
        prefix=auth.prefix or DEFAULT_AUTH_PREFIX,
        schema_key=schema_object_key(target.type),
        schema_document=templates.materialize(target.type, target.config.base_url),
    )


class IntegrationTarget(Construct):
    def __init__(
        self,
        scope: Construct,
        id: str,
        *,
        gateway: AgentCoreGateway,
        target_type: str,
        open_api_schema_s3_uri: str,
        target_name: Optional[str] = None,
        description: Optional[str] = None,
        api_key: Optional[str] = None,
        parameter_name: str = DEFAULT_AUTH_PARAMETER_NAME,
        prefix: str = DEFAULT_AUTH_PREFIX,
        execution_role: Optional[AgentCoreGatewayExecutionRole] = None,
        schema_document: Optional[Construct] = None,
        use_returned_provider_arn: bool = True,
    ):
        super().__init__(scope, id)

        schema_location = parse_s3_uri(open_api_schema_s3_uri)
        stack = Stack.of(self)

        target_name = target_name or target_type
        self.unique_id = target_unique_id(target_type)
        self.provider_name = api_key_provider_name(target_type, self.unique_id)
        api_key_value = api_key or PLACEHOLDER_API_KEY

        # ── 1. API key secret ─────────────────────────────────────────────────
        self.secret = secretsmanager.Secret(
            self,
            "ApiKeySecret",
            secret_name=api_key_secret_name(target_type, self.unique_id),
            description=f"API key for {target_name} integration",
            secret_string_value=cdk.SecretValue.unsafe_plain_text(api_key_value),
            removal_policy=cdk.RemovalPolicy.DESTROY,
        )

        # ── 2. API key credential provider ────────────────────────────────────
        provider_parameters = {"name": self.provider_name, "apiKey": api_key_value}
        self.credential_provider = ControlPlaneResource(
            self,
            "ApiKeyCredentialProvider",
            on_create=LifecycleCall(
                action="CreateApiKeyCredentialProvider",
                parameters=provider_parameters,
                fixed_id=self.provider_name,
            ),
            on_update=LifecycleCall(
                action="UpdateApiKeyCredentialProvider",
                parameters=provider_parameters,
                fixed_id=self.provider_name,
            ),
            on_delete=LifecycleCall(
                action="DeleteApiKeyCredentialProvider",
                parameters={"name": physical_id_ref()},
            ),
            policy_statements=[
                iam.PolicyStatement(
                    actions=[
                        "bedrock-agentcore:CreateApiKeyCredentialProvider",
                        "bedrock-agentcore:UpdateApiKeyCredentialProvider",
                        "bedrock-agentcore:DeleteApiKeyCredentialProvider",
                        "bedrock-agentcore:GetApiKeyCredentialProvider",
                        "bedrock-agentcore:CreateTokenVault",
                        "bedrock-agentcore:GetTokenVault",
                    ],
                    resources=["*"],
                ),
                # The provider keeps the key in a service-managed secret.
                iam.PolicyStatement(
                    actions=[
                        "secretsmanager:CreateSecret",
                        "secretsmanager:UpdateSecret",
                        "secretsmanager:PutSecretValue",
                        "secretsmanager:DeleteSecret",
                        "secretsmanager:DescribeSecret",
                    ],
                    resources=[
                        f"arn:aws:secretsmanager:{stack.region}:{stack.account}:secret:bedrock-agentcore-identity!*"
                    ],
                ),
            ],
            output_paths=["credentialProviderArn", "apiKeySecretArn.secretArn"],
        )
        self.credential_provider.node.add_dependency(self.secret)

        self.provider_arn_by_convention = api_key_provider_arn(stack.region, stack.account, self.provider_name)
        if use_returned_provider_arn:
            self.provider_arn: str = self.credential_provider.response_field("credentialProviderArn")
        else:
            self.provider_arn = self.provider_arn_by_convention

        if execution_role is not None:
            execution_role.grant_api_key_provider(
                self.provider_name,
                secret_arn=self.credential_provider.response_field("apiKeySecretArn.secretArn"),
            )

        # ── 3. Gateway target ─────────────────────────────────────────────────
        self.credential_config = CredentialProviderConfig(
            provider_type=CredentialProviderType.API_KEY,
            provider_arn=self.provider_arn,
            location=CredentialLocation.HEADER,
            parameter_name=parameter_name,
            prefix=prefix,
        )
        self.target_configuration = {
            "mcp": {"openApiSchema": {"s3": {"uri": open_api_schema_s3_uri}}},
        }
        self.target_name = f"{target_name}-{self.unique_id}"

        target_parameters = {
            "gatewayIdentifier": gateway.gateway_id,
            "name": self.target_name,
            "description": description or f"{target_name} MCP Server",
            "targetConfiguration": self.target_configuration,
            "credentialProviderConfigurations": [self.credential_config.to_api()],
        }

        self.target = ControlPlaneResource(
            self,
            "Target",
            on_create=LifecycleCall(
                action="CreateGatewayTarget",
                parameters=target_parameters,
                id_from_response="targetId",
            ),
            on_update=LifecycleCall(
                action="UpdateGatewayTarget",
                parameters={"targetId": physical_id_ref(), **target_parameters},
                id_from_response="targetId",
            ),
            on_delete=LifecycleCall(
                action="DeleteGatewayTarget",
                parameters={"gatewayIdentifier": gateway.gateway_id, "targetId": physical_id_ref()},
            ),
            policy_statements=[
                iam.PolicyStatement(
                    actions=[
                        "bedrock-agentcore:CreateGatewayTarget",
                        "bedrock-agentcore:UpdateGatewayTarget",
                        "bedrock-agentcore:DeleteGatewayTarget",
                        "bedrock-agentcore:GetGatewayTarget",
                    ],
                    resources=["*"],
                ),
            ],
            output_paths=["targetId", "gatewayArn"],
        )

        # The control plane reads the schema with the caller's credentials.
        schema_bucket = s3.Bucket.from_bucket_name(self, "SchemaSourceBucket", schema_location.bucket)
        schema_bucket.grant_read(self.target.resource, schema_location.key)

        self.target.node.add_dependency(gateway)
        self.target.node.add_dependency(self.secret)
        self.target.node.add_dependency(self.credential_provider)
        if schema_document is not None:
            self.target.node.add_dependency(schema_document)

        self.target_id: str = self.target.response_field("targetId")

    @property
    def handle(self) -> ResourceHandle:
        return ResourceHandle(physical_id=self.target_id)
