#!/usr/bin/env python3
"""
infra/app.py

CDK application entrypoint.
Reads the deployment config via infra/config/loader.py (CDK_CONFIG or ./config.json).

Usage:
    cdk --app "python3 infra/app.py" synth
    cdk --app "python3 infra/app.py" deploy
    CDK_CONFIG=config.prod.json cdk --app "python3 infra/app.py" deploy
"""

import sys
import os

# Add project root to path so stacks/ is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import aws_cdk as cdk
from infra.config.loader import load_config, resolve_environment
from stacks.mcp_gateway.mcp_gateway_stack import McpGatewayStack

config = load_config()
account, region = resolve_environment(config)
print(f"🌍 Using region: {region}")

app = cdk.App()

stack = McpGatewayStack(
    app,
    config.stack_name,
    config=config,
    env=cdk.Environment(account=account, region=region),
    description="Amazon Bedrock AgentCore MCP Gateway with multiple integration targets",
)

# ─── Apply tags to all resources in the stack ─────────────────────────────────
for key, value in config.all_tags.items():
    cdk.Tags.of(stack).add(key, value)

app.synth()
