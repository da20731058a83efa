"""Shared fakes for provisioner unit tests."""

from __future__ import annotations

import pytest

from fr_common.config.env import StaticEnvironment
from tests.helpers.fakes import FakeHttp


@pytest.fixture
def fly_env() -> StaticEnvironment:
    return StaticEnvironment(
        {
            "FLY_APP_NAME": "demo",
            "FLY_IMAGE_REF": "registry.fly.io/demo:deployment-1",
            "FLY_API_TOKEN": "secret-token",
            "FLY_PRIVATE_IP": "fdaa:0:1::2",
        }
    )


@pytest.fixture
def fake_http() -> FakeHttp:
    return FakeHttp(
        machine={"id": "m-1", "instance_id": "i-1", "private_ip": "fdaa:0:1::9"}
    )
