"""
stacks/mcp_gateway/lifecycle.py

Read-only view of a deployed gateway's lifecycle, straight from the control
plane. Used by scripts/check_gateway.py after a deploy.

    absent -> creating -> active            (deploy)
    active -> updating -> active            (redeploy with changed parameters)
    active -> deleting -> absent            (stack teardown)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from botocore.exceptions import ClientError

from stacks.mcp_gateway.errors import ControlPlaneError


class LifecycleState(str, Enum):
    ABSENT = "absent"
    CREATING = "creating"
    ACTIVE = "active"
    UPDATING = "updating"
    DELETING = "deleting"
    FAILED = "failed"


_STATUS_TO_STATE = {
    "CREATING": LifecycleState.CREATING,
    "READY": LifecycleState.ACTIVE,
    "UPDATING": LifecycleState.UPDATING,
    "SYNCHRONIZING": LifecycleState.UPDATING,
    "DELETING": LifecycleState.DELETING,
    "FAILED": LifecycleState.FAILED,
    "UPDATE_UNSUCCESSFUL": LifecycleState.FAILED,
    "SYNCHRONIZE_UNSUCCESSFUL": LifecycleState.FAILED,
}


def state_from_status(status: Optional[str]) -> LifecycleState:
    if not status:
        return LifecycleState.ABSENT
    try:
        return _STATUS_TO_STATE[status.upper()]
    except KeyError:
        raise ValueError(f"Unknown control-plane status: {status}") from None


@dataclass
class TargetStatus:
    target_id: str
    name: str
    state: LifecycleState


@dataclass
class GatewayStatus:
    gateway_id: str
    state: LifecycleState
    url: Optional[str] = None
    reasons: List[str] = field(default_factory=list)
    targets: List[TargetStatus] = field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return self.state is LifecycleState.ACTIVE and all(
            t.state is LifecycleState.ACTIVE for t in self.targets
        )


def read_stack_outputs(stack_name: str, cfn_client) -> Dict[str, str]:
    try:
        resp = cfn_client.describe_stacks(StackName=stack_name)
    except ClientError as e:
        raise ControlPlaneError("DescribeStacks", e) from e
    stacks = resp.get("Stacks") or []
    if not stacks:
        return {}
    return {o["OutputKey"]: o["OutputValue"] for o in stacks[0].get("Outputs", [])}


def _list_targets(gateway_id: str, client) -> List[Dict[str, Any]]:
    items: List[Dict[str, Any]] = []
    kwargs: Dict[str, Any] = {"gatewayIdentifier": gateway_id}
    while True:
        try:
            resp = client.list_gateway_targets(**kwargs)
        except ClientError as e:
            raise ControlPlaneError("ListGatewayTargets", e) from e
        items.extend(resp.get("items", []))
        token = resp.get("nextToken")
        if not token:
            return items
        kwargs["nextToken"] = token


def describe_gateway(gateway_id: str, client) -> GatewayStatus:
    """Gateway and target states; a gateway the control plane does not know is ABSENT."""
    try:
        resp = client.get_gateway(gatewayIdentifier=gateway_id)
    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceNotFoundException":
            return GatewayStatus(gateway_id=gateway_id, state=LifecycleState.ABSENT)
        raise ControlPlaneError("GetGateway", e) from e

    status = GatewayStatus(
        gateway_id=resp.get("gatewayId", gateway_id),
        state=state_from_status(resp.get("status")),
        url=resp.get("gatewayUrl"),
        reasons=list(resp.get("statusReasons") or []),
    )
    for item in _list_targets(gateway_id, client):
        status.targets.append(
            TargetStatus(
                target_id=item["targetId"],
                name=item.get("name", ""),
                state=state_from_status(item.get("status")),
            )
        )
    return status
