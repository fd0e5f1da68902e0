from __future__ import annotations

import base64
import hashlib

import httpx
import pytest

from content_studio.storage.integrity import IntegritySigner
from content_studio.storage.persistor import ArtifactValidationError, MediaClass, ResultPersistor, is_expected_content_type

VIDEO_URL = "https://cdn.test/videos/v.mp4"
VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42"


def _persistor(router, store, **kwargs) -> tuple[ResultPersistor, httpx.AsyncClient]:
  http = router.client()
  return ResultPersistor(http, store, IntegritySigner(), **kwargs), http


@pytest.mark.parametrize(
  ("content_type", "media_class", "expected"),
  [
    ("video/mp4", MediaClass.VIDEO, True),
    ("Video/MP4; charset=binary", MediaClass.VIDEO, True),
    ("text/html", MediaClass.VIDEO, False),
    ("audio/wav", MediaClass.AUDIO, True),
    ("application/vnd.openxmlformats-officedocument.presentationml.presentation", MediaClass.PRESENTATION, True),
    ("application/octet-stream", MediaClass.PRESENTATION, True),
    ("application/json", MediaClass.PRESENTATION, False),
  ],
)
def test_is_expected_content_type(content_type: str, media_class: MediaClass, expected: bool) -> None:
  assert is_expected_content_type(content_type, media_class) is expected


@pytest.mark.anyio
async def test_persist_downloads_hashes_and_uploads(router_factory, store_factory) -> None:
  router = router_factory().add("GET", "/videos/v.mp4", httpx.Response(200, content=VIDEO_BYTES, headers={"content-type": "video/mp4"}))
  store = store_factory()
  persistor, http = _persistor(router, store, object_prefix="generated/")

  async with http:
    persisted = await persistor.persist(VIDEO_URL, object_name="avatar_videos/avatar_vid-1.mp4", media_class=MediaClass.VIDEO)

  assert persisted.stored_url == "https://storage.test/test-bucket/generated/avatar_videos/avatar_vid-1.mp4"
  assert persisted.fallback is False
  assert persisted.integrity_hash == hashlib.sha256(VIDEO_BYTES).hexdigest()
  assert persisted.signature is None
  assert persisted.size == len(VIDEO_BYTES)
  assert store.objects["generated/avatar_videos/avatar_vid-1.mp4"] == (VIDEO_BYTES, "video/mp4")


@pytest.mark.anyio
async def test_persist_follows_redirects(router_factory, store_factory) -> None:
  router = router_factory()
  router.add("GET", "/videos/v.mp4", httpx.Response(302, headers={"location": "https://cdn.test/final.mp4"}))
  router.add("GET", "/final.mp4", httpx.Response(200, content=VIDEO_BYTES, headers={"content-type": "video/mp4"}))
  persistor, http = _persistor(router, store_factory())

  async with http:
    persisted = await persistor.persist(VIDEO_URL, object_name="v.mp4", media_class=MediaClass.VIDEO)

  assert persisted.fallback is False
  assert persisted.stored_url.endswith("/v.mp4")


@pytest.mark.anyio
async def test_persist_rejects_unexpected_content_type(router_factory, store_factory) -> None:
  router = router_factory().add("GET", "/videos/v.mp4", httpx.Response(200, content=b"<html>share page</html>", headers={"content-type": "text/html"}))
  store = store_factory()
  persistor, http = _persistor(router, store)

  async with http:
    persisted = await persistor.persist(VIDEO_URL, object_name="v.mp4", media_class=MediaClass.VIDEO)

  assert persisted.stored_url == VIDEO_URL
  assert persisted.fallback is True
  assert "text/html" in (persisted.error or "")
  assert store.objects == {}


@pytest.mark.anyio
async def test_persist_falls_back_when_download_fails(router_factory, store_factory) -> None:
  router = router_factory().add("GET", "/videos/v.mp4", httpx.Response(403))
  persistor, http = _persistor(router, store_factory())

  async with http:
    persisted = await persistor.persist(VIDEO_URL, object_name="v.mp4", media_class=MediaClass.VIDEO)

  assert persisted.stored_url == VIDEO_URL
  assert persisted.fallback is True
  assert persisted.integrity_hash is None


@pytest.mark.anyio
async def test_persist_falls_back_when_upload_fails(router_factory, store_factory) -> None:
  router = router_factory().add("GET", "/deck.pptx", httpx.Response(200, content=b"PK\x03\x04", headers={"content-type": "application/octet-stream"}))
  persistor, http = _persistor(router, store_factory(fail_with=RuntimeError("quota exceeded")))

  async with http:
    persisted = await persistor.persist("https://cdn.test/deck.pptx", object_name="deck.pptx", media_class=MediaClass.PRESENTATION)

  assert persisted.stored_url == "https://cdn.test/deck.pptx"
  assert persisted.fallback is True
  assert persisted.error == "quota exceeded"
  assert persisted.content_type == "application/vnd.openxmlformats-officedocument.presentationml.presentation"
  assert persisted.integrity_hash == hashlib.sha256(b"PK\x03\x04").hexdigest()


@pytest.mark.anyio
async def test_persist_bytes_without_store_returns_inline_reference(router_factory) -> None:
  persistor, http = _persistor(router_factory(), None)

  async with http:
    persisted = await persistor.persist_bytes(b"RIFFdata", object_name="audio/a.wav", content_type="audio/wav")

  assert persisted.fallback is True
  assert persisted.stored_url == "data:audio/wav;base64," + base64.b64encode(b"RIFFdata").decode("ascii")
  assert persisted.error == "storage not configured"


@pytest.mark.anyio
async def test_persist_bytes_rejects_empty_data(router_factory, store_factory) -> None:
  persistor, http = _persistor(router_factory(), store_factory())

  async with http:
    with pytest.raises(ArtifactValidationError):
      await persistor.persist_bytes(b"", object_name="audio/a.wav", content_type="audio/wav")


def test_object_path_applies_prefix(router_factory) -> None:
  assert ResultPersistor(router_factory().client(), None, IntegritySigner(), object_prefix="/generated/").object_path("a/b.mp4") == "generated/a/b.mp4"
  assert ResultPersistor(router_factory().client(), None, IntegritySigner()).object_path("a/b.mp4") == "a/b.mp4"
