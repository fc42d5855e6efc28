"""Tests for the gateway execution role grants."""

import aws_cdk as cdk
import pytest
from aws_cdk.assertions import Match, Template

from stacks.mcp_gateway.constructs.execution_role import POLICY_NAME, AgentCoreGatewayExecutionRole


@pytest.fixture
def role_template(env):
    def _build(grants=(), **kwargs):
        stack = cdk.Stack(cdk.App(), "RoleStack", env=env)
        role = AgentCoreGatewayExecutionRole(stack, "ExecutionRole", role_name="test-exec-role", **kwargs)
        for provider_name, secret_arn in grants:
            role.grant_api_key_provider(provider_name, secret_arn=secret_arn)
        return role, Template.from_stack(stack)

    return _build


def _inline_statements(template):
    (role,) = template.find_resources("AWS::IAM::Role").values()
    (policy,) = role["Properties"]["Policies"]
    assert policy["PolicyName"] == POLICY_NAME
    return {s.get("Sid"): s for s in policy["PolicyDocument"]["Statement"]}


class TestExecutionRole:
    def test_trusts_agentcore_service(self, role_template):
        _, template = role_template()
        template.has_resource_properties(
            "AWS::IAM::Role",
            {
                "RoleName": "test-exec-role",
                "AssumeRolePolicyDocument": {
                    "Statement": [
                        Match.object_like(
                            {
                                "Action": "sts:AssumeRole",
                                "Principal": {"Service": "bedrock-agentcore.amazonaws.com"},
                            }
                        )
                    ]
                },
            },
        )

    def test_base_statements_only(self, role_template):
        _, template = role_template()
        assert set(_inline_statements(template)) == {"GatewayLogs", "DescribeLogGroups", "Tracing", "Metrics"}

    def test_log_grants_scoped_to_gateway_log_groups(self, role_template):
        _, template = role_template()
        logs = _inline_statements(template)["GatewayLogs"]
        assert logs["Resource"] == [
            "arn:aws:logs:us-east-1:123456789012:log-group:/aws/bedrock-agentcore/gateways/*",
            "arn:aws:logs:us-east-1:123456789012:log-group:/aws/bedrock-agentcore/gateways/*:log-stream:*",
        ]

    def test_schema_bucket_reads(self, role_template):
        _, template = role_template(s3_bucket_arns=["arn:aws:s3:::schemas-a", "arn:aws:s3:::schemas-b"])
        reads = _inline_statements(template)["ReadToolSchemas"]
        assert reads["Action"] == "s3:GetObject"
        assert reads["Resource"] == ["arn:aws:s3:::schemas-a/*", "arn:aws:s3:::schemas-b/*"]

    def test_lambda_invokes(self, role_template):
        fn = "arn:aws:lambda:us-east-1:123456789012:function:tool"
        _, template = role_template(lambda_function_arns=[fn])
        assert _inline_statements(template)["InvokeTargetFunctions"]["Resource"] == fn

    def test_semantic_search_sync_only_when_enabled(self, role_template):
        _, disabled = role_template(enable_semantic_search=False)
        _, enabled = role_template(enable_semantic_search=True)
        assert "SemanticSearchSync" not in _inline_statements(disabled)
        assert _inline_statements(enabled)["SemanticSearchSync"]["Action"] == (
            "bedrock-agentcore:SynchronizeGatewayTargets"
        )

    def test_no_wildcard_agentcore_grant(self, role_template):
        _, template = role_template(enable_semantic_search=True)
        for statement in _inline_statements(template).values():
            actions = statement["Action"] if isinstance(statement["Action"], list) else [statement["Action"]]
            assert "bedrock-agentcore:*" not in actions


class TestGrantApiKeyProvider:
    def test_grants_named_provider_and_secret(self, role_template):
        _, template = role_template(
            grants=[("jira_api_key_ABC", "arn:aws:secretsmanager:us-east-1:123456789012:secret:x")]
        )

        template.has_resource_properties(
            "AWS::IAM::Policy",
            {
                "PolicyDocument": {
                    "Statement": Match.array_with(
                        [
                            Match.object_like(
                                {
                                    "Action": [
                                        "bedrock-agentcore:GetWorkloadAccessToken",
                                        "bedrock-agentcore:GetResourceApiKey",
                                    ],
                                    "Resource": Match.array_with(
                                        [
                                            "arn:aws:bedrock-agentcore:us-east-1:123456789012:"
                                            "token-vault/default/apikeycredentialprovider/jira_api_key_ABC"
                                        ]
                                    ),
                                }
                            ),
                            Match.object_like(
                                {
                                    "Action": "secretsmanager:GetSecretValue",
                                    "Resource": "arn:aws:secretsmanager:us-east-1:123456789012:secret:x",
                                }
                            ),
                        ]
                    )
                }
            },
        )

    def test_secret_pattern_without_arn(self, role_template):
        _, template = role_template(grants=[("jira_api_key_ABC", None)])

        template.has_resource_properties(
            "AWS::IAM::Policy",
            {
                "PolicyDocument": {
                    "Statement": Match.array_with(
                        [
                            Match.object_like(
                                {
                                    "Action": "secretsmanager:GetSecretValue",
                                    "Resource": "arn:aws:secretsmanager:us-east-1:123456789012:"
                                    "secret:bedrock-agentcore-identity!default/apikey/jira_api_key_ABC-*",
                                }
                            )
                        ]
                    )
                }
            },
        )
