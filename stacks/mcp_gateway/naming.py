"""
stacks/mcp_gateway/naming.py

Deterministic naming helpers.

Every physical name in the stack is derived from a semantic key, so repeated
deployments update the same underlying resources instead of creating new ones.
"""

import hashlib
import re
from dataclasses import dataclass

from stacks.mcp_gateway.errors import MalformedLocationError

DEFAULT_ID_LENGTH = 10

_S3_URI = re.compile(r"^s3://([^/]+)/(.+)$")


def deterministic_id(key: str, length: int = DEFAULT_ID_LENGTH, upper: bool = True) -> str:
    """Truncated SHA-256 hex digest of ``key``; stable across runs."""
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:length]
    return digest.upper() if upper else digest.lower()


def target_unique_id(target_type: str) -> str:
    # Derived from the type alone so a target keeps its identity across stacks.
    return deterministic_id(f"{target_type}-target-id")


@dataclass(frozen=True)
class S3Location:
    bucket: str
    key: str

    @property
    def uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"


def parse_s3_uri(uri: str) -> S3Location:
    match = _S3_URI.match(uri or "")
    if not match:
        raise MalformedLocationError(uri)
    return S3Location(bucket=match.group(1), key=match.group(2))


def api_key_secret_name(target_type: str, unique_id: str) -> str:
    return f"{target_type.lower()}-api-key-{unique_id}"


def api_key_provider_name(target_type: str, unique_id: str) -> str:
    return f"{target_type.lower()}_api_key_{unique_id}"


def api_key_provider_arn(region: str, account: str, provider_name: str) -> str:
    """ARN the control plane assigns to an API key credential provider by convention."""
    return (
        f"arn:aws:bedrock-agentcore:{region}:{account}:"
        f"token-vault/default/apikeycredentialprovider/{provider_name}"
    )


def construct_id_for(target_type: str) -> str:
    """``agentcore-jira`` -> ``AgentcoreJira``; usable as a construct/output id."""
    parts = re.split(r"[^0-9A-Za-z]+", target_type)
    return "".join(p[:1].upper() + p[1:] for p in parts if p)
