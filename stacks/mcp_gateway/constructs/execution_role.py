"""
stacks/mcp_gateway/constructs/execution_role.py

Execution role assumed by the AgentCore gateway.

Every grant is derived from what the stack configures: bucket reads only for
the given buckets, Lambda invokes only for the given functions, semantic
search sync only when enabled, credential providers only by name.
"""

from typing import List, Optional, Sequence

from aws_cdk import (
    Stack,
    aws_iam as iam,
)
from constructs import Construct

from stacks.mcp_gateway.constructs.schema_bucket import AGENTCORE_SERVICE_PRINCIPAL

POLICY_NAME = "AgentCoreGatewayPolicy"
METRICS_NAMESPACE = "bedrock-agentcore"


def _base_statements(region: str, account: str) -> List[iam.PolicyStatement]:
    log_group = f"arn:aws:logs:{region}:{account}:log-group:/aws/bedrock-agentcore/gateways/*"
    return [
        iam.PolicyStatement(
            sid="GatewayLogs",
            effect=iam.Effect.ALLOW,
            actions=[
                "logs:DescribeLogStreams",
                "logs:CreateLogGroup",
                "logs:CreateLogStream",
                "logs:PutLogEvents",
            ],
            resources=[log_group, f"{log_group}:log-stream:*"],
        ),
        iam.PolicyStatement(
            sid="DescribeLogGroups",
            effect=iam.Effect.ALLOW,
            actions=["logs:DescribeLogGroups"],
            resources=[f"arn:aws:logs:{region}:{account}:log-group:*"],
        ),
        # X-Ray does not support resource-level permissions.
        iam.PolicyStatement(
            sid="Tracing",
            effect=iam.Effect.ALLOW,
            actions=[
                "xray:PutTraceSegments",
                "xray:PutTelemetryRecords",
                "xray:GetSamplingRules",
                "xray:GetSamplingTargets",
            ],
            resources=["*"],
        ),
        iam.PolicyStatement(
            sid="Metrics",
            effect=iam.Effect.ALLOW,
            actions=["cloudwatch:PutMetricData"],
            resources=["*"],
            conditions={"StringEquals": {"cloudwatch:namespace": METRICS_NAMESPACE}},
        ),
    ]


class AgentCoreGatewayExecutionRole(iam.Role):
    def __init__(
        self,
        scope: Construct,
        id: str,
        *,
        role_name: Optional[str] = None,
        s3_bucket_arns: Optional[Sequence[str]] = None,
        lambda_function_arns: Optional[Sequence[str]] = None,
        enable_semantic_search: bool = False,
    ):
        stack = Stack.of(scope)
        statements = _base_statements(stack.region, stack.account)

        if lambda_function_arns:
            statements.append(
                iam.PolicyStatement(
                    sid="InvokeTargetFunctions",
                    effect=iam.Effect.ALLOW,
                    actions=["lambda:InvokeFunction"],
                    resources=list(lambda_function_arns),
                )
            )

        if s3_bucket_arns:
            statements.append(
                iam.PolicyStatement(
                    sid="ReadToolSchemas",
                    effect=iam.Effect.ALLOW,
                    actions=["s3:GetObject"],
                    resources=[f"{arn}/*" for arn in s3_bucket_arns],
                )
            )

        if enable_semantic_search:
            statements.append(
                iam.PolicyStatement(
                    sid="SemanticSearchSync",
                    effect=iam.Effect.ALLOW,
                    actions=["bedrock-agentcore:SynchronizeGatewayTargets"],
                    resources=["*"],
                )
            )

        super().__init__(
            scope,
            id,
            role_name=role_name,
            assumed_by=iam.ServicePrincipal(AGENTCORE_SERVICE_PRINCIPAL),
            description="Execution role for the AgentCore MCP gateway",
            inline_policies={POLICY_NAME: iam.PolicyDocument(statements=statements)},
        )

    def grant_api_key_provider(self, provider_name: str, secret_arn: Optional[str] = None) -> None:
        """Let the gateway resolve one API key credential provider at runtime."""
        stack = Stack.of(self)
        prefix = f"arn:aws:bedrock-agentcore:{stack.region}:{stack.account}"
        self.add_to_policy(
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                actions=[
                    "bedrock-agentcore:GetWorkloadAccessToken",
                    "bedrock-agentcore:GetResourceApiKey",
                ],
                resources=[
                    f"{prefix}:workload-identity-directory/default",
                    f"{prefix}:workload-identity-directory/default/workload-identity/*",
                    f"{prefix}:token-vault/default",
                    f"{prefix}:token-vault/default/apikeycredentialprovider/{provider_name}",
                ],
            )
        )
        # The key itself lives in the provider's service-managed secret.
        secret = secret_arn or (
            f"arn:aws:secretsmanager:{stack.region}:{stack.account}:"
            f"secret:bedrock-agentcore-identity!default/apikey/{provider_name}-*"
        )
        self.add_to_policy(
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                actions=["secretsmanager:GetSecretValue"],
                resources=[secret],
            )
        )
