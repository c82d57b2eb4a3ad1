"""Tests for session readiness tracking and event-driven message caching."""

import asyncio

import pytest

from whatsapp_mcp.bridge import CONNECTION_LOST_EVENT
from whatsapp_mcp.cache import EntityCache
from whatsapp_mcp.session import SessionState, print_qr

from conftest import message_data


def test_initial_snapshot_is_loading():
    session = SessionState(EntityCache())
    assert session.snapshot() == {"ready": False, "status": "loading", "qr": None}


def test_qr_then_ready(ctx, bridge):
    bridge.emit("qr", {"qr": "2@pairing-code"})
    assert ctx.session.snapshot() == {"ready": False, "status": "qr", "qr": "2@pairing-code"}

    bridge.emit("authenticated")
    bridge.emit("ready")
    assert ctx.session.snapshot() == {"ready": True, "status": "ready", "qr": None}


def test_qr_payload_may_be_a_bare_string(ctx, bridge):
    bridge.emit("qr", "2@plain")
    assert ctx.session.snapshot()["qr"] == "2@plain"


def test_connection_lost_resets_status(ctx, bridge):
    bridge.emit("ready")
    bridge.emit(CONNECTION_LOST_EVENT)
    assert ctx.session.snapshot()["status"] == "loading"


@pytest.mark.asyncio
async def test_disconnected_reinitializes(ctx, bridge):
    bridge.emit("ready")
    bridge.emit("disconnected", "LOGOUT")

    assert not ctx.session.ready
    await asyncio.wait_for(ctx.session._reconnect_task, 1)
    assert bridge.count("initialize") == 1
    assert bridge.calls[-1] == ("initialize", {"clientId": "test"})


def test_created_and_edited_messages_are_cached(ctx, bridge):
    bridge.emit("message_create", message_data("m1", 1, "first draft"))
    assert ctx.cache.messages.get("m1").body == "first draft"

    bridge.emit("message_edit", message_data("m1", 1, "edited"))
    assert ctx.cache.messages.get("m1").body == "edited"
    assert len(ctx.cache.messages) == 1


def test_malformed_message_events_are_ignored(ctx, bridge):
    bridge.emit("message_create", None)
    bridge.emit("message_create", {"body": "no id"})
    assert len(ctx.cache.messages) == 0


def test_console_prints_qr(client, capsys):
    session = SessionState(EntityCache(), console=True)
    session.attach(client)

    session.on_qr({"qr": "2@pairing-code"})

    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.strip()


def test_print_qr_writes_to_stderr(capsys):
    print_qr("hello")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert len(captured.err.splitlines()) > 5
