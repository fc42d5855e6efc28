"""
stacks/mcp_gateway/models.py

Configuration value objects for the MCP gateway stack.

The JSON configuration document uses camelCase keys; every model accepts
both the document's alias and the Python field name.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from stacks.mcp_gateway.errors import ConfigValidationError
from stacks.mcp_gateway.naming import construct_id_for

PREBUILT_TARGET_PREFIX = "agentcore-"
DEFAULT_AUTH_PARAMETER_NAME = "Authorization"
DEFAULT_AUTH_PREFIX = "Basic"

DEFAULT_TAGS = {
    "Project": "McpGateway",
    "ManagedBy": "CDK",
}


class AuthenticationType(str, Enum):
    JWT = "JWT"
    IAM = "IAM"


class CredentialProviderType(str, Enum):
    GATEWAY_IAM_ROLE = "GATEWAY_IAM_ROLE"
    API_KEY = "API_KEY"
    OAUTH2 = "OAUTH2"


class CredentialLocation(str, Enum):
    HEADER = "HEADER"
    QUERY = "QUERY"


class _ConfigModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class GatewayConfig(_ConfigModel):
    name: str = "McpGateway"
    description: str = "MCP Gateway"
    enable_semantic_search: bool = Field(False, alias="enableSemanticSearch")
    exception_level: Optional[str] = Field(None, alias="exceptionLevel")
    authentication_type: AuthenticationType = Field(AuthenticationType.JWT, alias="authenticationType")
    agent_core_schemas_bucket: Optional[str] = Field(None, alias="agentCoreSchemasBucket")
    instructions: str = "This is an MCP Gateway with support for multiple integration targets."

    @field_validator("authentication_type", mode="before")
    @classmethod
    def _normalise_auth_type(cls, value: Any) -> Any:
        if value is None:
            return AuthenticationType.JWT
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("exception_level")
    @classmethod
    def _only_debug(cls, value: Optional[str]) -> Optional[str]:
        if value is None or value == "":
            return None
        if value.upper() != "DEBUG":
            raise ValueError("exceptionLevel may only be 'DEBUG' (omit it for sanitized messages)")
        return "DEBUG"


class AuthSettings(_ConfigModel):
    parameter_name: Optional[str] = Field(None, alias="parameterName")
    prefix: Optional[str] = None


class TargetSettings(_ConfigModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="allow")

    api_key: Optional[str] = Field(None, alias="apiKey")
    base_url: Optional[str] = Field(None, alias="baseUrl")
    auth: AuthSettings = Field(default_factory=AuthSettings)


class IntegrationTargetConfig(_ConfigModel):
    type: str
    enabled: bool = True
    config: TargetSettings = Field(default_factory=TargetSettings)

    @field_validator("type")
    @classmethod
    def _non_empty_type(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("integration target type must not be empty")
        if value.startswith(PREBUILT_TARGET_PREFIX) and not value[len(PREBUILT_TARGET_PREFIX):]:
            raise ValueError(f"pre-built integration target type '{value}' has no integration name")
        return value

    @property
    def is_prebuilt(self) -> bool:
        return self.type.startswith(PREBUILT_TARGET_PREFIX)

    @property
    def integration_name(self) -> str:
        """Name of the integration without the pre-built marker."""
        if self.is_prebuilt:
            return self.type[len(PREBUILT_TARGET_PREFIX):]
        return self.type


class AwsConfig(_ConfigModel):
    account: Optional[str] = None
    region: Optional[str] = None


class StackConfig(_ConfigModel):
    stack_name: str = Field("McpGatewayStackV4", alias="stackName")
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    integration_targets: List[IntegrationTargetConfig] = Field(
        default_factory=list, alias="integrationTargets"
    )
    aws: AwsConfig = Field(default_factory=AwsConfig)
    tags: Dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _unique_target_types(self) -> "StackConfig":
        seen: Dict[str, str] = {}
        for target in self.integration_targets:
            if target.type in seen.values():
                raise ValueError(f"duplicate integration target type '{target.type}'")
            # Construct and output ids are derived from the type.
            key = construct_id_for(target.type)
            if not key:
                raise ValueError(f"integration target type '{target.type}' has no letters or digits")
            if key in seen:
                raise ValueError(
                    f"integration target types '{seen[key]}' and '{target.type}' both map to id '{key}'"
                )
            seen[key] = target.type
        return self

    @property
    def enabled_targets(self) -> List[IntegrationTargetConfig]:
        return [t for t in self.integration_targets if t.enabled]

    @property
    def all_tags(self) -> Dict[str, str]:
        return {**DEFAULT_TAGS, **self.tags}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StackConfig":
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid configuration:\n{e}") from e


class CredentialProviderConfig(_ConfigModel):
    """Outbound credential configuration attached to one gateway target."""

    provider_type: CredentialProviderType = CredentialProviderType.API_KEY
    provider_arn: Optional[str] = None
    location: CredentialLocation = CredentialLocation.HEADER
    parameter_name: str = DEFAULT_AUTH_PARAMETER_NAME
    prefix: Optional[str] = DEFAULT_AUTH_PREFIX
    scopes: List[str] = Field(default_factory=list)

    def to_api(self) -> Dict[str, Any]:
        """Render the ``credentialProviderConfigurations`` entry."""
        if self.provider_type is CredentialProviderType.GATEWAY_IAM_ROLE:
            return {"credentialProviderType": self.provider_type.value}

        if self.provider_type is CredentialProviderType.OAUTH2:
            provider = {
                "oauthCredentialProvider": {
                    "providerArn": self.provider_arn,
                    "scopes": list(self.scopes),
                }
            }
        else:
            api_key = {
                "providerArn": self.provider_arn,
                "credentialLocation": self.location.value,
                "credentialParameterName": self.parameter_name,
            }
            if self.prefix:
                api_key["credentialPrefix"] = self.prefix
            provider = {"apiKeyCredentialProvider": api_key}

        return {
            "credentialProviderType": self.provider_type.value,
            "credentialProvider": provider,
        }
