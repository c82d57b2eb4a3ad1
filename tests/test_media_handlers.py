"""Tests for create_message_media and download_message_media."""

import base64
from unittest.mock import AsyncMock

import pytest

from whatsapp_mcp.bridge import MessageMedia
from whatsapp_mcp.handlers.media import handle_create_message_media, handle_download_message_media
from whatsapp_mcp.handlers.profile import handle_set_profile_picture
from whatsapp_mcp.utils.responses import ErrorResult, ResourceListResult

from conftest import message_data

PNG_B64 = base64.b64encode(b"\x89PNG\r\n\x1a\nfake").decode("ascii")


class TestCreateMessageMedia:

    @pytest.mark.asyncio
    async def test_inline_resource(self, ctx):
        result = await handle_create_message_media(
            {"id": "logo", "resource": {"mimetype": "image/png", "data": PNG_B64, "filename": "logo.png"}},
            ctx,
        )

        assert isinstance(result, ResourceListResult)
        blob = result.resources[0].resource
        assert str(blob.uri) == "media://logo"
        assert blob.blob == PNG_B64
        assert ctx.cache.media.get("logo").filename == "logo.png"

    @pytest.mark.asyncio
    async def test_no_source_is_rejected(self, ctx):
        result = await handle_create_message_media({"id": "x"}, ctx)

        assert isinstance(result, ErrorResult)
        assert "no media provided" in result.message
        assert len(ctx.cache.media) == 0

    @pytest.mark.asyncio
    async def test_more_than_one_source_is_rejected(self, ctx, tmp_path):
        path = tmp_path / "a.txt"
        path.write_text("hello")

        result = await handle_create_message_media(
            {
                "id": "x",
                "fromFilePath": str(path),
                "fromUrl": "https://example.com/a.txt",
            },
            ctx,
        )

        assert isinstance(result, ErrorResult)
        assert "only one media source" in result.message
        assert "fromFilePath" in result.message and "fromUrl" in result.message
        assert len(ctx.cache.media) == 0

    @pytest.mark.asyncio
    async def test_from_file_path(self, ctx, tmp_path):
        path = tmp_path / "report.pdf"
        path.write_bytes(b"%PDF-1.4 test")

        result = await handle_create_message_media({"id": "doc", "fromFilePath": str(path)}, ctx)

        assert isinstance(result, ResourceListResult)
        media = ctx.cache.media.get("doc")
        assert media.mimetype == "application/pdf"
        assert media.filename == "report.pdf"
        assert base64.b64decode(media.data) == b"%PDF-1.4 test"

    @pytest.mark.asyncio
    async def test_missing_file(self, ctx, tmp_path):
        result = await handle_create_message_media(
            {"id": "doc", "fromFilePath": str(tmp_path / "missing.pdf")}, ctx
        )

        assert isinstance(result, ErrorResult)
        assert "cannot read" in result.message
        assert ctx.cache.media.get("doc") is None

    @pytest.mark.asyncio
    async def test_from_url(self, ctx, monkeypatch):
        downloaded = MessageMedia(mimetype="image/jpeg", data="/9j/", filename="cat.jpg")
        from_url = AsyncMock(return_value=downloaded)
        monkeypatch.setattr(MessageMedia, "from_url", from_url)

        result = await handle_create_message_media({"id": "cat", "fromUrl": "https://example.com/cat.jpg"}, ctx)

        assert isinstance(result, ResourceListResult)
        from_url.assert_awaited_once_with("https://example.com/cat.jpg")
        assert ctx.cache.media.get("cat") is downloaded

    @pytest.mark.asyncio
    async def test_non_http_url_is_rejected(self, ctx):
        result = await handle_create_message_media({"id": "x", "fromUrl": "file:///etc/passwd"}, ctx)
        assert isinstance(result, ErrorResult)
        assert len(ctx.cache.media) == 0

    @pytest.mark.asyncio
    async def test_invalid_base64(self, ctx):
        result = await handle_create_message_media(
            {"id": "x", "resource": {"mimetype": "text/plain", "data": "not base64!"}}, ctx
        )
        assert isinstance(result, ErrorResult)
        assert "base64" in result.message

    @pytest.mark.asyncio
    async def test_id_required(self, ctx):
        result = await handle_create_message_media({"resource": {"mimetype": "text/plain", "data": "aGk="}}, ctx)
        assert isinstance(result, ErrorResult)
        assert len(ctx.cache.media) == 0


class TestDownloadMessageMedia:

    @pytest.mark.asyncio
    async def test_uncached_message_is_not_found(self, ctx, bridge):
        result = await handle_download_message_media({"messageId": "false_1@c.us_X"}, ctx)

        assert isinstance(result, ErrorResult)
        assert "Message not found: false_1@c.us_X" in result.message
        assert bridge.calls == []

    @pytest.mark.asyncio
    async def test_downloaded_media_is_registered(self, ctx, bridge, client):
        ctx.cache.remember_message(client.wrap_message(message_data("m1", 1, hasMedia=True)))
        bridge.media["m1"] = {"mimetype": "image/jpeg", "data": "/9j/", "filename": "photo.jpg"}

        result = await handle_download_message_media({"messageId": "m1"}, ctx)

        assert isinstance(result, ResourceListResult)
        assert str(result.resources[0].resource.uri) == "media://m1/photo.jpg"
        assert ctx.cache.media.get("m1/photo.jpg").mimetype == "image/jpeg"

    @pytest.mark.asyncio
    async def test_message_without_media(self, ctx, client):
        ctx.cache.remember_message(client.wrap_message(message_data("m1", 1)))

        result = await handle_download_message_media({"messageId": "m1"}, ctx)

        assert isinstance(result, ErrorResult)
        assert "no downloadable media" in result.message
        assert len(ctx.cache.media) == 0


class TestSetProfilePicture:

    @pytest.mark.asyncio
    async def test_uses_cached_media(self, ctx, bridge):
        media = MessageMedia(mimetype="image/png", data=PNG_B64)
        ctx.cache.media.set("avatar", media)

        await handle_set_profile_picture({"mediaId": "avatar"}, ctx)

        assert bridge.calls[-1] == ("setProfilePicture", {"media": media.to_dict()})

    @pytest.mark.asyncio
    async def test_unknown_media(self, ctx, bridge):
        result = await handle_set_profile_picture({"mediaId": "avatar"}, ctx)

        assert isinstance(result, ErrorResult)
        assert "create_message_media" in result.message
        assert bridge.count("setProfilePicture") == 0
