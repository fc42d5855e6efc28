#!/usr/bin/env python3
"""
stacks/mcp_gateway/scripts/check_gateway.py

Post-deploy check: reads the gateway ID from the stack outputs and reports
the lifecycle state of the gateway and each of its targets.

Usage:
    python3 stacks/mcp_gateway/scripts/check_gateway.py [STACK_NAME]

Environment variables:
    MCP_GATEWAY_STACK  - stack name (default: from config.json, else McpGatewayStackV4)
    AWS_REGION         - AWS region (default: us-east-1)

Exit code 1 when the gateway or any target is not active.
"""

import os
import sys

# Add project root to path so stacks/ and infra/ are importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))))

import boto3

from infra.config.loader import load_config, resolve_environment
from stacks.mcp_gateway.errors import ControlPlaneError
from stacks.mcp_gateway.lifecycle import describe_gateway, read_stack_outputs

_STATE_MARK = {
    "active": "✅",
    "creating": "⏳",
    "updating": "⏳",
    "deleting": "🗑️ ",
    "absent": "❌",
    "failed": "❌",
}


def main(argv) -> int:
    config = load_config(resolve_secrets=False)
    _, region = resolve_environment(config)
    region = os.environ.get("AWS_REGION", region)
    stack_name = (argv[1] if len(argv) > 1 else None) or os.environ.get("MCP_GATEWAY_STACK") or config.stack_name

    print(f"🌍 Using region: {region}")
    print(f"📦 Stack: {stack_name}")

    try:
        outputs = read_stack_outputs(stack_name, boto3.client("cloudformation", region_name=region))
        gateway_id = outputs.get("McpGatewayId")
        if not gateway_id:
            print("❌ Stack has no McpGatewayId output. Deploy the stack first.")
            return 1

        status = describe_gateway(gateway_id, boto3.client("bedrock-agentcore-control", region_name=region))
    except ControlPlaneError as e:
        print(f"❌ Error: {e.code}: {e.message}")
        return 1

    print(f"\n{_STATE_MARK[status.state.value]} Gateway {status.gateway_id}: {status.state.value}")
    if status.url:
        print(f"   URL: {status.url}")
    for reason in status.reasons:
        print(f"   ⚠️  {reason}")

    if not status.targets:
        print("\n⚠️  No targets attached to the gateway.")
    for target in status.targets:
        print(f"  {_STATE_MARK[target.state.value]} {target.name} ({target.target_id}): {target.state.value}")

    if status.healthy:
        print("\n✅ Done.")
        return 0
    return 1


if __name__ == "__main__":
    sys.exit(main(sys.argv))
