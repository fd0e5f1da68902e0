"""Download, fingerprint, and durably store generated media artifacts."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from enum import Enum

import httpx

from content_studio.storage.integrity import IntegritySigner
from content_studio.storage.storage_client import ArtifactStore

logger = logging.getLogger(__name__)

PPTX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.presentationml.presentation"


class MediaClass(str, Enum):
  """Expected media family of a downloaded artifact."""

  VIDEO = "video"
  AUDIO = "audio"
  PRESENTATION = "presentation"


_ACCEPTED_CONTENT_TYPES: dict[MediaClass, tuple[str, ...]] = {
  MediaClass.VIDEO: ("video/",),
  MediaClass.AUDIO: ("audio/",),
  MediaClass.PRESENTATION: (PPTX_CONTENT_TYPE, "application/vnd.openxmlformats", "application/vnd.ms-powerpoint", "application/octet-stream", "application/zip"),
}
_DEFAULT_CONTENT_TYPES: dict[MediaClass, str] = {MediaClass.VIDEO: "video/mp4", MediaClass.AUDIO: "audio/mpeg", MediaClass.PRESENTATION: PPTX_CONTENT_TYPE}


class ArtifactValidationError(Exception):
  """Downloaded bytes are empty or not of the expected media class."""


@dataclass(frozen=True)
class PersistedArtifact:
  """Where an artifact ended up and how to verify it."""

  stored_url: str
  integrity_hash: str | None = None
  signature: str | None = None
  fallback: bool = False
  content_type: str | None = None
  size: int | None = None
  error: str | None = None


def is_expected_content_type(content_type: str, media_class: MediaClass) -> bool:
  """Return True when a response content type belongs to the media class."""
  normalized = content_type.split(";", 1)[0].strip().lower()
  return any(normalized.startswith(prefix) for prefix in _ACCEPTED_CONTENT_TYPES[media_class])


class ResultPersistor:
  """Moves provider artifacts into durable storage without ever failing the generation.

  Download and validation problems, quota or auth failures on upload, and a
  missing store all degrade to a fallback result that points at the original
  reference (the provider URL, or an inline ``data:`` URI for generated bytes).
  """

  def __init__(self, http: httpx.AsyncClient, store: ArtifactStore | None, signer: IntegritySigner, *, object_prefix: str = "") -> None:
    self._http = http
    self._store = store
    self._signer = signer
    self._object_prefix = object_prefix.strip("/")

  def object_path(self, object_name: str) -> str:
    if not self._object_prefix:
      return object_name
    return f"{self._object_prefix}/{object_name}"

  async def persist(self, remote_url: str, *, object_name: str, media_class: MediaClass) -> PersistedArtifact:
    """Download ``remote_url`` and store it; fall back to the remote URL on any failure."""
    try:
      data, content_type = await self._download(remote_url, media_class)
    except (httpx.HTTPError, ArtifactValidationError) as exc:
      logger.warning("Artifact download failed; keeping remote URL object=%s url=%s: %s", object_name, remote_url, exc)
      return PersistedArtifact(stored_url=remote_url, fallback=True, error=str(exc))

    return await self._store_bytes(data, object_name=object_name, content_type=content_type, fallback_url=remote_url)

  async def persist_bytes(self, data: bytes, *, object_name: str, content_type: str) -> PersistedArtifact:
    """Store bytes produced in-process; fall back to an inline ``data:`` URI when storage fails."""
    if not data:
      raise ArtifactValidationError(f"Refusing to persist an empty artifact for {object_name}")
    fallback_url = f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"
    return await self._store_bytes(data, object_name=object_name, content_type=content_type, fallback_url=fallback_url)

  async def _download(self, url: str, media_class: MediaClass) -> tuple[bytes, str]:
    response = await self._http.get(url, follow_redirects=True)
    response.raise_for_status()

    content_type = response.headers.get("content-type", "")
    if not is_expected_content_type(content_type, media_class):
      raise ArtifactValidationError(f"Expected {media_class.value} content but received {content_type or 'no content type'}")

    data = response.content
    if not data:
      raise ArtifactValidationError(f"Downloaded {media_class.value} artifact is empty")

    normalized = content_type.split(";", 1)[0].strip().lower()
    if normalized in {"application/octet-stream", "application/zip"}:
      normalized = _DEFAULT_CONTENT_TYPES[media_class]
    return data, normalized

  async def _store_bytes(self, data: bytes, *, object_name: str, content_type: str, fallback_url: str) -> PersistedArtifact:
    record = self._signer.record(data)
    if self._store is None:
      logger.info("No artifact store configured; keeping fallback reference object=%s", object_name)
      return PersistedArtifact(stored_url=fallback_url, integrity_hash=record.sha256, signature=record.signature, fallback=True, content_type=content_type, size=len(data), error="storage not configured")

    path = self.object_path(object_name)
    try:
      stored_url = await self._store.upload_bytes(data, path, content_type)
    except Exception as exc:  # noqa: BLE001
      # Storage SDKs raise transport, auth, and quota errors with unrelated types.
      logger.warning("Artifact upload failed; keeping fallback reference object=%s: %s", path, exc, exc_info=True)
      return PersistedArtifact(stored_url=fallback_url, integrity_hash=record.sha256, signature=record.signature, fallback=True, content_type=content_type, size=len(data), error=str(exc))

    logger.info("Persisted artifact object=%s bytes=%s sha256=%s", path, len(data), record.sha256)
    return PersistedArtifact(stored_url=stored_url, integrity_hash=record.sha256, signature=record.signature, fallback=False, content_type=content_type, size=len(data))
