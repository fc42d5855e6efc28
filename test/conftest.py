"""Shared fixtures for the CDK stack tests."""

import aws_cdk as cdk
import pytest
from aws_cdk.assertions import Template

from stacks.mcp_gateway.mcp_gateway_stack import McpGatewayStack
from stacks.mcp_gateway.models import StackConfig

ACCOUNT = "123456789012"
REGION = "us-east-1"

JIRA_TEMPLATE = """{
  "openapi": "3.0.1",
  "info": {"title": "Jira", "version": "1.0.0"},
  "servers": [{"url": "{{BASE_URL}}/rest/api/3"}],
  "paths": {}
}
"""


@pytest.fixture
def env():
    return cdk.Environment(account=ACCOUNT, region=REGION)


@pytest.fixture
def schemas_dir(tmp_path):
    (tmp_path / "jira-open-api.json").write_text(JIRA_TEMPLATE, encoding="utf-8")
    return tmp_path


@pytest.fixture
def jira_target():
    return {
        "type": "jira",
        "config": {
            "baseUrl": "https://example.atlassian.net",
            "apiKey": "jira-secret-key",
        },
    }


@pytest.fixture
def build_stack(env, schemas_dir):
    """Synthesize an McpGatewayStack from a camelCase config dict."""

    def _build(data=None, **kwargs):
        app = cdk.App()
        config = StackConfig.from_dict(data or {})
        stack = McpGatewayStack(
            app,
            config.stack_name,
            config=config,
            schemas_dir=schemas_dir,
            env=env,
            **kwargs,
        )
        return stack, Template.from_stack(stack)

    return _build


def logical_id(construct):
    """Logical id of ``construct`` itself, or of the single custom resource beneath it."""
    stack = cdk.Stack.of(construct)
    if cdk.CfnElement.is_cfn_element(construct):
        return stack.get_logical_id(construct)
    (resource,) = [
        child
        for child in construct.node.find_all()
        if cdk.CfnResource.is_cfn_resource(child) and child.cfn_resource_type == "Custom::AWS"
    ]
    return stack.get_logical_id(resource)


def depends_on(template, resource_id):
    return template.to_json()["Resources"][resource_id].get("DependsOn", [])
