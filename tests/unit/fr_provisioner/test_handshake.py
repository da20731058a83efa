"""Tests for the token-keyed handshake registry."""

from __future__ import annotations

import threading
import time

import pytest

from fr_provisioner.engine.handshake import HandshakeRegistry, HandshakeTimeout


pytestmark = [pytest.mark.unit_provisioner]


def test_delivery_before_wait_is_kept() -> None:
    registry = HandshakeRegistry()
    registry.expect("tok")

    assert registry.deliver("tok", "runner@10.0.0.2") is True
    assert registry.wait("tok", 1.0) == "runner@10.0.0.2"


def test_delivery_from_another_thread_unblocks_wait() -> None:
    registry = HandshakeRegistry()
    registry.expect("tok")
    timer = threading.Timer(0.05, registry.deliver, args=("tok", "runner@10.0.0.3"))
    timer.start()
    try:
        assert registry.wait("tok", 5.0) == "runner@10.0.0.3"
    finally:
        timer.cancel()


def test_other_tokens_do_not_unblock_wait() -> None:
    registry = HandshakeRegistry()
    registry.expect("mine")
    registry.expect("theirs")

    assert registry.deliver("theirs", "runner@10.0.0.4") is True
    with pytest.raises(HandshakeTimeout):
        registry.wait("mine", 0.05)


def test_unknown_token_is_dropped() -> None:
    registry = HandshakeRegistry()
    assert registry.deliver("ghost", "runner@10.0.0.5") is False


def test_second_delivery_is_rejected() -> None:
    registry = HandshakeRegistry()
    registry.expect("tok")
    assert registry.deliver("tok", "first") is True
    assert registry.deliver("tok", "second") is False
    assert registry.wait("tok", 0.1) == "first"


def test_non_positive_window_times_out_immediately() -> None:
    registry = HandshakeRegistry()
    registry.expect("tok")

    started = time.monotonic()
    with pytest.raises(HandshakeTimeout):
        registry.wait("tok", -3.0)
    assert time.monotonic() - started < 0.5


def test_discard_removes_pending_wait() -> None:
    registry = HandshakeRegistry()
    registry.expect("tok")
    registry.discard("tok")

    assert registry.pending() == 0
    assert registry.deliver("tok", "late") is False


def test_duplicate_expect_is_rejected() -> None:
    registry = HandshakeRegistry()
    registry.expect("tok")
    with pytest.raises(ValueError):
        registry.expect("tok")
