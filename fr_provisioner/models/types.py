"""Shared provisioning types and value objects."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional


class RunnerState(str, Enum):
    """Lifecycle of a single provisioning attempt."""

    REQUESTING = "requesting"
    AWAITING_HANDSHAKE = "awaiting_handshake"
    CONNECTED = "connected"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class Volume:
    """One entry of the provider volume inventory."""

    id: str
    name: str
    region: Optional[str] = None
    attached_machine_id: Optional[str] = None
    state: Optional[str] = None
    host_status: Optional[str] = None

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Volume":
        """Build a volume from a machines API record, ignoring extra fields."""
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            region=data.get("region"),
            attached_machine_id=data.get("attached_machine_id"),
            state=data.get("state"),
            host_status=data.get("host_status"),
        )

    def is_available_in(self, region: Optional[str]) -> bool:
        """Return True when the volume can be attached to a new machine.

        A ``None`` region accepts volumes from any region.
        """
        return (
            self.attached_machine_id is None
            and self.state == "created"
            and self.host_status == "ok"
            and (region is None or self.region == region)
        )


@dataclass
class RunnerHandle:
    """Mutable record of one runner, filled in as provisioning progresses."""

    node_base: str
    token: str
    state: RunnerState = RunnerState.REQUESTING
    runner_id: Optional[str] = None
    instance_id: Optional[str] = None
    private_ip: Optional[str] = None
    endpoint: Optional[str] = None
    create_ms: Optional[int] = None

    @property
    def connected(self) -> bool:
        return self.state is RunnerState.CONNECTED
