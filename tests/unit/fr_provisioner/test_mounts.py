"""Tests for mount option normalization."""

from __future__ import annotations

import pytest

from fr_common.errors import ConfigurationError
from fr_provisioner.models.mounts import MountRequest, parse_mounts


pytestmark = [pytest.mark.unit_provisioner]


def test_single_mount_becomes_one_element_list() -> None:
    mounts = parse_mounts({"name": "data", "path": "/data"})
    assert mounts == [MountRequest(name="data", path="/data")]


def test_list_of_one_is_not_nested() -> None:
    mounts = parse_mounts([{"name": "data", "path": "/data"}])
    assert len(mounts) == 1
    assert isinstance(mounts[0], MountRequest)


def test_none_means_no_mounts() -> None:
    assert parse_mounts(None) == []


def test_existing_request_passes_through() -> None:
    request = MountRequest(name="data", path="/data", volume="vol_1")
    assert parse_mounts(request) == [request]


@pytest.mark.parametrize(
    "raw",
    [
        {"name": "data"},
        {"name": "data", "path": "relative"},
        {"name": "data", "path": "/data", "bogus": 1},
        "data:/data",
        42,
    ],
)
def test_unparsable_mount_is_a_configuration_error(raw) -> None:
    with pytest.raises(ConfigurationError):
        parse_mounts(raw)


def test_payload_omits_unset_fields() -> None:
    request = MountRequest(name="data", path="/data", extend_threshold_percent=80)
    assert request.to_payload() == {
        "name": "data",
        "path": "/data",
        "extend_threshold_percent": 80,
    }
