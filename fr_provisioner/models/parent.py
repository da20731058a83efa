"""Parent descriptor handed to a runner through its environment."""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import asdict, dataclass
from typing import Optional

from fr_common.config.env import EnvironmentProvider, OsEnvironment
from fr_common.errors import ConfigurationError

PARENT_ENV = "FLAME_PARENT"
RUNNER_PRIVATE_IP_ENV = "FLY_PRIVATE_IP"


@dataclass(frozen=True)
class ParentDescriptor:
    """What a booting runner needs to find and confirm back to its requester."""

    token: str
    parent_ip: str
    backend: str
    node_base: str
    host_env: str = RUNNER_PRIVATE_IP_ENV

    def encode(self) -> str:
        raw = json.dumps(asdict(self), sort_keys=True, separators=(",", ":"))
        return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")

    @classmethod
    def decode(cls, encoded: str) -> "ParentDescriptor":
        try:
            data = json.loads(base64.urlsafe_b64decode(encoded.encode("ascii")))
            return cls(**data)
        except (binascii.Error, UnicodeError, ValueError, TypeError) as exc:
            raise ConfigurationError(
                "invalid parent descriptor", context={"value": encoded}, cause=exc
            ) from exc

    @classmethod
    def from_env(cls, env: EnvironmentProvider | None = None) -> Optional["ParentDescriptor"]:
        """Decode the descriptor on the runner side; None when not a runner."""
        value = (env or OsEnvironment()).get(PARENT_ENV)
        if not value:
            return None
        return cls.decode(value)
