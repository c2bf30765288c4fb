import json

import httpx
import pytest

from yuki.core.errors import NotConfigured, UpstreamFailure, ValidationError
from yuki.services.uploads import UploadThingBlobStore, validate_upload


def uploadthing_client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestValidateUpload:
    def test_banner_allows_more_than_avatar(self):
        size = 6 * 1024 * 1024

        validate_upload("banner", "image/jpeg", size)
        with pytest.raises(ValidationError) as exc_info:
            validate_upload("avatar", "image/jpeg", size)

        assert exc_info.value.message == "File too large. Max size: 4MB"

    def test_missing_content_type(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_upload("avatar", None, 10)

        assert exc_info.value.code == "INVALID_FILE_TYPE"


class TestUploadThingBlobStore:
    def test_prepare_then_put(self):
        seen = []

        def handler(request):
            seen.append((request.method, str(request.url)))
            if request.url.path == "/v7/prepareUpload":
                assert request.headers["x-uploadthing-api-key"] == "sk_test"
                body = json.loads(request.content)
                assert body["fileName"] == "avatar-1-me.png"
                assert body["fileSize"] == 4
                return httpx.Response(200, json={"url": "https://upload.test/presigned", "key": "abc123"})
            return httpx.Response(200)

        store = UploadThingBlobStore(token="sk_test", app_id="app1", client=uploadthing_client(handler))

        stored = store.put("avatar-1-me.png", b"\x89PNG", "image/png")

        assert stored.url == "https://app1.ufs.sh/f/abc123"
        assert stored.key == "abc123"
        assert seen == [
            ("POST", "https://api.uploadthing.com/v7/prepareUpload"),
            ("PUT", "https://upload.test/presigned"),
        ]

    def test_provider_error_is_upstream_failure(self):
        store = UploadThingBlobStore(
            token="sk_test",
            app_id="app1",
            client=uploadthing_client(lambda request: httpx.Response(503)),
        )

        with pytest.raises(UpstreamFailure) as exc_info:
            store.put("avatar-1-me.png", b"\x89PNG", "image/png")

        assert exc_info.value.code == "UPLOAD_FAILED"
        assert exc_info.value.http_status == 500

    def test_missing_credentials(self):
        store = UploadThingBlobStore(token="", app_id="", client=uploadthing_client(lambda request: httpx.Response(200)))

        with pytest.raises(NotConfigured):
            store.put("avatar-1-me.png", b"\x89PNG", "image/png")
