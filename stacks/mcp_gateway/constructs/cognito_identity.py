"""
stacks/mcp_gateway/constructs/cognito_identity.py

Cognito user pool for machine-to-machine JWT authentication of MCP callers.
Only created when the gateway uses JWT authentication.
"""

from dataclasses import dataclass, field
from typing import Optional

import aws_cdk as cdk
from aws_cdk import (
    Stack,
    CfnOutput,
    aws_cognito as cognito,
)
from constructs import Construct

from stacks.mcp_gateway.auth import JwtAuthBinding
from stacks.mcp_gateway.naming import deterministic_id

RESOURCE_SERVER_IDENTIFIER = "gateway-resource-server"

# Cognito domain prefixes: lowercase alphanumerics and hyphens, max 63 chars.
_MAX_DOMAIN_PREFIX = 63


@dataclass(frozen=True)
class TokenValidity:
    access_token: cdk.Duration = field(default_factory=lambda: cdk.Duration.hours(1))
    refresh_token: cdk.Duration = field(default_factory=lambda: cdk.Duration.days(30))
    id_token: cdk.Duration = field(default_factory=lambda: cdk.Duration.hours(1))


def domain_prefix_for(stack_name: str, account: str, region: str) -> str:
    suffix = f"-agent-gateway-{deterministic_id(f'{stack_name}-{account}-{region}', length=8, upper=False)}"
    base = "".join(c if c.isalnum() else "-" for c in stack_name.lower()).strip("-")
    return base[: _MAX_DOMAIN_PREFIX - len(suffix)] + suffix


class AgentCoreCognitoUserPool(Construct):
    """
    User pool, resource server (read/write scopes) and a single app client
    restricted to the client_credentials grant.
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        *,
        user_pool_name: Optional[str] = None,
        client_name: Optional[str] = None,
        token_validity: Optional[TokenValidity] = None,
        enable_self_sign_up: bool = False,
    ):
        super().__init__(scope, id)

        stack = Stack.of(self)
        region = stack.region
        token_validity = token_validity or TokenValidity()

        self.user_pool = cognito.UserPool(
            self,
            "UserPool",
            user_pool_name=user_pool_name,
            self_sign_up_enabled=enable_self_sign_up,
            sign_in_aliases=cognito.SignInAliases(email=True, username=True),
            auto_verify=cognito.AutoVerifiedAttrs(email=True),
            standard_attributes=cognito.StandardAttributes(
                email=cognito.StandardAttribute(required=True, mutable=True),
            ),
            password_policy=cognito.PasswordPolicy(
                min_length=8,
                require_lowercase=True,
                require_uppercase=True,
                require_digits=True,
                require_symbols=True,
            ),
            account_recovery=cognito.AccountRecovery.EMAIL_ONLY,
            feature_plan=cognito.FeaturePlan.PLUS,
            standard_threat_protection_mode=cognito.StandardThreatProtectionMode.FULL_FUNCTION,
            mfa=cognito.Mfa.OPTIONAL,
            mfa_second_factor=cognito.MfaSecondFactor(sms=True, otp=True),
            removal_policy=cdk.RemovalPolicy.DESTROY,
        )

        self.user_pool_domain = self.user_pool.add_domain(
            "UserPoolDomain",
            cognito_domain=cognito.CognitoDomainOptions(
                domain_prefix=domain_prefix_for(stack.stack_name, stack.account, region),
            ),
        )

        read_scope = cognito.ResourceServerScope(scope_name="read", scope_description="Read access")
        write_scope = cognito.ResourceServerScope(scope_name="write", scope_description="Write access")

        self.resource_server = self.user_pool.add_resource_server(
            "GatewayResourceServer",
            identifier=RESOURCE_SERVER_IDENTIFIER,
            scopes=[read_scope, write_scope],
        )

        # Machine-to-machine only: every interactive flow is disabled.
        self.user_pool_client = self.user_pool.add_client(
            "GatewayClient",
            user_pool_client_name=client_name,
            generate_secret=True,
            auth_flows=cognito.AuthFlow(
                user_password=False,
                user_srp=False,
                custom=False,
                admin_user_password=False,
            ),
            o_auth=cognito.OAuthSettings(
                flows=cognito.OAuthFlows(
                    authorization_code_grant=False,
                    implicit_code_grant=False,
                    client_credentials=True,
                ),
                scopes=[
                    cognito.OAuthScope.resource_server(self.resource_server, read_scope),
                    cognito.OAuthScope.resource_server(self.resource_server, write_scope),
                ],
            ),
            access_token_validity=token_validity.access_token,
            refresh_token_validity=token_validity.refresh_token,
            id_token_validity=token_validity.id_token,
            prevent_user_existence_errors=True,
            supported_identity_providers=[cognito.UserPoolClientIdentityProvider.COGNITO],
        )

        self.discovery_url: str = (
            f"https://cognito-idp.{region}.amazonaws.com/"
            f"{self.user_pool.user_pool_id}/.well-known/openid-configuration"
        )
        self.client_id: str = self.user_pool_client.user_pool_client_id
        self.domain_url: str = (
            f"https://{self.user_pool_domain.domain_name}.auth.{region}.amazoncognito.com"
        )

        CfnOutput(self, "UserPoolId", value=self.user_pool.user_pool_id, description="Cognito User Pool ID")
        CfnOutput(
            self,
            "UserPoolClientId",
            value=self.client_id,
            description="Cognito User Pool Client ID",
        )
        CfnOutput(self, "UserPoolDomainUrl", value=self.domain_url, description="Cognito User Pool Domain URL")
        CfnOutput(
            self,
            "DiscoveryUrl",
            value=self.discovery_url,
            description="OpenID Connect Discovery URL for AgentCore Gateway",
        )

    def create_authorizer_config(self) -> JwtAuthBinding:
        """JWT authorizer for the gateway: this pool's discovery URL, this client only."""
        return JwtAuthBinding(discovery_url=self.discovery_url, allowed_clients=[self.client_id])
