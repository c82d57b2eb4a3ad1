"""Tests for the contacts://, chats://, messages:// and media:// resources."""

import json

import pytest

from whatsapp_mcp.bridge import BridgeConnectionError, BridgeError, MessageMedia
from whatsapp_mcp.resources import RESOURCE_TEMPLATES, parse_resource_uri, read_resource

from conftest import chat_data, contact_data, message_data


class TestParseResourceUri:

    def test_single_id(self):
        assert parse_resource_uri("chats://1@c.us") == ("chats", ["1@c.us"])

    def test_batch_of_ids(self):
        assert parse_resource_uri("contacts://1@c.us,2@c.us,3@c.us") == (
            "contacts",
            ["1@c.us", "2@c.us", "3@c.us"],
        )

    def test_percent_encoded_ids(self):
        scheme, ids = parse_resource_uri("media://a%2Cb,photo%20one.jpg")
        assert scheme == "media"
        assert ids == ["a,b", "photo one.jpg"]

    def test_empty_segments_are_skipped(self):
        assert parse_resource_uri("chats://1@c.us,,2@c.us") == ("chats", ["1@c.us", "2@c.us"])

    def test_missing_scheme_separator(self):
        with pytest.raises(ValueError):
            parse_resource_uri("chats:1@c.us")


def test_templates_cover_every_scheme():
    schemes = {t.uriTemplate.split("://")[0] for t in RESOURCE_TEMPLATES}
    assert schemes == {"contacts", "chats", "messages", "media"}


class TestReadResource:

    @pytest.mark.asyncio
    async def test_batch_drops_unresolvable_ids(self, ctx, bridge):
        bridge.chats["a@c.us"] = chat_data("a@c.us", "A")
        bridge.chats["c@c.us"] = chat_data("c@c.us", "C")

        contents = await read_resource("chats://a@c.us,b@c.us,c@c.us", ctx)

        assert [str(c.uri) for c in contents] == ["chats://a@c.us", "chats://c@c.us"]
        assert json.loads(contents[0].text)["name"] == "A"
        assert contents[0].mimeType == "application/json"

    @pytest.mark.asyncio
    async def test_contacts_resolve_through_the_client(self, ctx, bridge):
        bridge.contacts["1@c.us"] = contact_data("1@c.us", "Dana")

        contents = await read_resource("contacts://1@c.us", ctx)

        assert len(contents) == 1
        assert ctx.cache.contacts.get("1@c.us") is not None

    @pytest.mark.asyncio
    async def test_cached_chat_needs_no_round_trip(self, ctx, bridge, client):
        ctx.cache.chats.set("1@c.us", client.wrap_chat(chat_data("1@c.us")))

        contents = await read_resource("chats://1@c.us", ctx)

        assert len(contents) == 1
        assert bridge.calls == []

    @pytest.mark.asyncio
    async def test_messages_come_from_cache_only(self, ctx, bridge, client):
        ctx.cache.remember_message(client.wrap_message(message_data("m1", 10, "hello")))

        contents = await read_resource("messages://m1,m2", ctx)

        assert [str(c.uri) for c in contents] == ["messages://m1"]
        assert json.loads(contents[0].text)["body"] == "hello"
        assert bridge.calls == []

    @pytest.mark.asyncio
    async def test_media_is_returned_as_blob(self, ctx):
        ctx.cache.media.set("pic", MessageMedia(mimetype="image/png", data="iVBORw0K", filename="pic.png"))

        contents = await read_resource("media://pic", ctx)

        assert len(contents) == 1
        assert contents[0].blob == "iVBORw0K"
        assert contents[0].mimeType == "image/png"
        assert str(contents[0].uri) == "media://pic"

    @pytest.mark.asyncio
    async def test_all_missing_yields_empty_list(self, ctx):
        assert await read_resource("media://nope,also-nope", ctx) == []

    @pytest.mark.asyncio
    async def test_unknown_scheme_raises(self, ctx):
        with pytest.raises(ValueError, match="Unknown resource scheme"):
            await read_resource("groups://1@g.us", ctx)

    @pytest.mark.asyncio
    async def test_bridge_rejection_drops_only_that_id(self, ctx, bridge, client):
        ctx.cache.chats.set("good@c.us", client.wrap_chat(chat_data("good@c.us")))
        bridge.failures["getChatById"] = BridgeError("INVALID_WID", "invalid wid")

        contents = await read_resource("chats://good@c.us,bad", ctx)

        assert [str(c.uri) for c in contents] == ["chats://good@c.us"]

    @pytest.mark.asyncio
    async def test_lost_connection_fails_the_read(self, ctx, bridge):
        bridge.failures["getContactById"] = BridgeConnectionError("NOT_CONNECTED", "not connected")

        with pytest.raises(BridgeConnectionError):
            await read_resource("contacts://1@c.us", ctx)
