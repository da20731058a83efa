"""Tests for fr_common.config.env parsing utilities and providers."""

import pytest

from fr_common.config.env import (
    OsEnvironment,
    StaticEnvironment,
    non_empty_env,
    parse_bool_env,
    parse_int_env,
)


pytestmark = pytest.mark.unit_common


class TestParseBoolEnv:
    """Tests for parse_bool_env function."""

    def test_returns_none_for_none(self) -> None:
        assert parse_bool_env(None) is None

    @pytest.mark.parametrize("value", ["1", "true", "TRUE", "yes", "on", "  on  "])
    def test_returns_true_for_truthy_values(self, value: str) -> None:
        assert parse_bool_env(value) is True

    @pytest.mark.parametrize("value", ["0", "false", "no", "off", "random", ""])
    def test_returns_false_for_falsy_values(self, value: str) -> None:
        assert parse_bool_env(value) is False


class TestParseIntEnv:
    """Tests for parse_int_env function."""

    def test_returns_none_for_none(self) -> None:
        assert parse_int_env(None) is None

    def test_parses_integers(self) -> None:
        assert parse_int_env("42") == 42

    def test_returns_none_for_garbage(self) -> None:
        assert parse_int_env("debug") is None


class TestProviders:
    def test_static_environment_reads_mapping(self) -> None:
        env = StaticEnvironment({"FLY_REGION": "ord"})
        assert env.get("FLY_REGION") == "ord"
        assert env.get("FLY_APP_NAME") is None

    def test_os_environment_reads_process_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FR_TEST_VALUE", "hello")
        assert OsEnvironment().get("FR_TEST_VALUE") == "hello"

    def test_non_empty_env_treats_blank_as_unset(self) -> None:
        env = StaticEnvironment({"A": "  ", "B": "x"})
        assert non_empty_env(env, "A") is None
        assert non_empty_env(env, "B") == "x"
        assert non_empty_env(env, "C") is None
