"""Object storage helper for generated media artifacts."""

from __future__ import annotations

import os
from typing import Protocol
from urllib.parse import quote, urlparse, urlunparse

from google.auth.credentials import AnonymousCredentials
from google.cloud import storage
from starlette.concurrency import run_in_threadpool

from content_studio.config import Settings

PUBLIC_GCS_HOST = "https://storage.googleapis.com"


class ArtifactStore(Protocol):
  """Durable binary storage that returns a public URL per object."""

  async def upload_bytes(self, data: bytes, object_name: str, content_type: str, cache_control: str = "public, max-age=3600") -> str:
    """Upload bytes and return the public URL of the stored object."""
    ...


class StorageClient:
  """Thin wrapper over GCS and emulator access for artifact upload."""

  def __init__(self, settings: Settings) -> None:
    self._bucket_name = settings.artifact_bucket
    self._storage_host = settings.gcs_storage_host
    # Ensure emulator endpoint is visible to the SDK in local development.
    if self._storage_host:
      emulator_endpoint = _normalize_emulator_endpoint(self._storage_host)
      os.environ["STORAGE_EMULATOR_HOST"] = emulator_endpoint
      self._public_host = emulator_endpoint
      self._client = storage.Client(project=settings.gcp_project_id or "local-dev", credentials=AnonymousCredentials(), client_options={"api_endpoint": emulator_endpoint})
    else:
      self._public_host = PUBLIC_GCS_HOST
      self._client = storage.Client(project=settings.gcp_project_id)

  @property
  def bucket_name(self) -> str:
    """Return the bucket that receives generated artifacts."""
    return self._bucket_name

  def public_url(self, object_name: str) -> str:
    """Return the public URL for an object in the artifact bucket."""
    return f"{self._public_host}/{self._bucket_name}/{quote(object_name)}"

  async def ensure_bucket(self) -> None:
    """Create the bucket when missing in local/dev flows."""
    # Keep production startup side-effect free; only auto-create in emulator mode.
    if not self._storage_host:
      return
    bucket = self._client.bucket(self._bucket_name)

    def _create_if_missing() -> None:
      if not bucket.exists(client=self._client):
        self._client.create_bucket(bucket)

    await run_in_threadpool(_create_if_missing)

  async def upload_bytes(self, data: bytes, object_name: str, content_type: str, cache_control: str = "public, max-age=3600") -> str:
    """Upload bytes with cache directives and return the object's public URL."""
    bucket = self._client.bucket(self._bucket_name)
    blob = bucket.blob(object_name)
    blob.cache_control = cache_control
    blob.content_type = content_type
    await run_in_threadpool(blob.upload_from_string, data, content_type)
    return self.public_url(object_name)


def build_storage_client(settings: Settings) -> StorageClient:
  """Create a storage client instance with environment-aware credentials."""
  return StorageClient(settings)


def _normalize_emulator_endpoint(raw_endpoint: str) -> str:
  """Normalize emulator endpoint so the SDK receives scheme+host+port only."""
  parsed = urlparse(raw_endpoint)
  if not parsed.scheme or not parsed.netloc:
    return raw_endpoint.rstrip("/")
  return urlunparse((parsed.scheme, parsed.netloc, "", "", "", "")).rstrip("/")
