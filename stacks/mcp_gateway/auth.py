"""
stacks/mcp_gateway/auth.py

Inbound authentication binding for the gateway.

Computed once by the stack and threaded into the gateway construct:
  - JwtAuthBinding : Cognito-issued JWTs (discovery URL + allowed clients)
  - IamAuthBinding : AWS SigV4-authenticated callers, no identity pool
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Union


@dataclass(frozen=True)
class JwtAuthBinding:
    discovery_url: str
    allowed_clients: List[str] = field(default_factory=list)

    authorizer_type: ClassVar[str] = "CUSTOM_JWT"

    def authorizer_configuration(self) -> Optional[Dict[str, Any]]:
        return {
            "customJWTAuthorizer": {
                "discoveryUrl": self.discovery_url,
                "allowedClients": list(self.allowed_clients),
            }
        }


@dataclass(frozen=True)
class IamAuthBinding:
    authorizer_type: ClassVar[str] = "AWS_IAM"

    def authorizer_configuration(self) -> Optional[Dict[str, Any]]:
        return None


AuthBinding = Union[JwtAuthBinding, IamAuthBinding]
