"""Mount requests and the parser that normalizes raw mount options."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from fr_common.errors import ConfigurationError


class MountRequest(BaseModel):
    """A volume attachment requested for a runner.

    Field names follow the Fly machines ``config.mounts`` object.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(description="Volume name used to pick a volume from the inventory")
    path: str = Field(description="Mount point inside the runner")
    volume: Optional[str] = Field(default=None, description="Explicit volume id; skips allocation")
    extend_threshold_percent: Optional[int] = Field(default=None, ge=0, le=100)
    add_size_gb: Optional[int] = Field(default=None, gt=0)
    size_gb_limit: Optional[int] = Field(default=None, gt=0)

    @model_validator(mode="after")
    def validate_name_and_path(self) -> "MountRequest":
        if not self.name.strip():
            raise ValueError("MountRequest: 'name' must be non-empty")
        if not self.path.startswith("/"):
            raise ValueError(f"MountRequest: 'path' must be absolute, got {self.path!r}")
        return self

    def to_payload(self) -> dict[str, Any]:
        """Serialize for the machines API, dropping unset fields."""
        return self.model_dump(exclude_none=True)


def parse_mount(raw: Any) -> MountRequest:
    """Parse a single mount entry into a :class:`MountRequest`."""
    if isinstance(raw, MountRequest):
        return raw
    if not isinstance(raw, Mapping):
        raise ConfigurationError(
            f"expected a mount mapping, got {type(raw).__name__}",
            context={"mount": raw},
        )
    try:
        return MountRequest.model_validate(dict(raw))
    except ValidationError as exc:
        raise ConfigurationError(
            f"invalid mount options: {exc.errors(include_url=False)}",
            context={"mount": dict(raw)},
            cause=exc,
        ) from exc


def parse_mounts(raw: Any) -> List[MountRequest]:
    """Normalize a single mount or a list of mounts into a flat list.

    A lone entry becomes a one-element list; it is never double-wrapped.
    """
    if raw is None:
        return []
    if isinstance(raw, (Mapping, MountRequest)):
        return [parse_mount(raw)]
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Iterable):
        raise ConfigurationError(
            f"expected a mount or a list of mounts, got {type(raw).__name__}",
            context={"mounts": raw},
        )
    return [parse_mount(entry) for entry in raw]
