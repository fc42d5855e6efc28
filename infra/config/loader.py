"""
infra/config/loader.py

Deployment configuration.

Read from a JSON document: the path in the CDK_CONFIG environment variable,
else ./config.json. Without a document the stack deploys with defaults.

API keys are never required in the document itself: an ``apiKey`` of the
form ``ssm:/path/to/param`` is read from SSM Parameter Store (SecureString,
decrypted) at synth time.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import boto3
from botocore.exceptions import ClientError

from stacks.mcp_gateway.errors import ConfigValidationError
from stacks.mcp_gateway.models import StackConfig

SSM_REFERENCE_PREFIX = "ssm:"
DEFAULT_REGION = "us-east-1"


def config_path() -> Path:
    env_path = os.environ.get("CDK_CONFIG")
    if env_path:
        return Path(env_path).resolve()
    return Path.cwd() / "config.json"


def _get_ssm_secure(name: str, region: str) -> str:
    """Fetch a SecureString SSM parameter (decrypted)."""
    try:
        ssm = boto3.client("ssm", region_name=region)
        resp = ssm.get_parameter(Name=name, WithDecryption=True)
        return resp["Parameter"]["Value"]
    except ClientError as e:
        code = e.response["Error"]["Code"]
        if code == "ParameterNotFound":
            raise ConfigValidationError(
                f"Required SSM SecureString parameter '{name}' not found in region '{region}'."
            ) from e
        raise


_FALSE_VALUES = {"false", "0", "no", "off", "f", "n"}


def _disabled(target: Dict[str, Any]) -> bool:
    # Same spellings pydantic accepts for a false ``enabled``.
    return str(target.get("enabled", True)).strip().lower() in _FALSE_VALUES


def resolve_secret_references(data: Dict[str, Any], region: str) -> Dict[str, Any]:
    """Replace ``ssm:`` apiKey references of enabled targets with their parameter values."""
    for target in data.get("integrationTargets") or []:
        # Malformed entries are reported by StackConfig validation.
        if not isinstance(target, dict) or _disabled(target):
            continue
        settings = target.get("config")
        if not isinstance(settings, dict):
            continue
        api_key = settings.get("apiKey")
        if isinstance(api_key, str) and api_key.startswith(SSM_REFERENCE_PREFIX):
            name = api_key[len(SSM_REFERENCE_PREFIX):]
            print(f"🔑 Reading API key for '{target.get('type')}' from SSM: {name}")
            settings["apiKey"] = _get_ssm_secure(name, region)
    return data


def _region_hint(data: Dict[str, Any]) -> str:
    return (
        (data.get("aws") if isinstance(data.get("aws"), dict) else {}).get("region")
        or os.environ.get("CDK_DEFAULT_REGION")
        or os.environ.get("AWS_REGION")
        or DEFAULT_REGION
    )


def load_config(path: Optional[Union[str, Path]] = None, resolve_secrets: bool = True) -> StackConfig:
    path = Path(path) if path else config_path()

    if path.is_file():
        print(f"Loading configuration from {path}")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Configuration file {path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError(f"Expected a JSON object at top level in {path}")
    else:
        print(f"⚠️  No config file found at {path}, using default configuration")
        data = {}

    if resolve_secrets:
        data = resolve_secret_references(data, _region_hint(data))
    return StackConfig.from_dict(data)


def resolve_environment(config: StackConfig) -> Tuple[Optional[str], str]:
    """Account and region: config first, then the CDK CLI's defaults."""
    account = config.aws.account or os.environ.get("CDK_DEFAULT_ACCOUNT")
    region = config.aws.region or os.environ.get("CDK_DEFAULT_REGION") or DEFAULT_REGION
    return account, region
