"""Test configuration and shared fakes for the content studio package."""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

from collections.abc import Callable  # noqa: E402
from typing import Any  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402

from content_studio.config import Settings  # noqa: E402
from content_studio.providers.base import AIModel, SimpleModelResponse, StructuredModelResponse  # noqa: E402

Responder = httpx.Response | list[httpx.Response] | Callable[[httpx.Request], httpx.Response]

DEFAULT_MIND_MAP: dict[str, Any] = {
  "nodes": [{"id": "root", "label": "Closures"}, {"id": "scope", "label": "Lexical scope"}],
  "edges": [{"source": "root", "target": "scope", "label": "relies on"}],
}
DEFAULT_CODE: dict[str, Any] = {"language": "javascript", "code": "const add = (a) => (b) => a + b;", "explanation": "A curried adder."}
FAKE_WAV = b"RIFF\x24\x00\x00\x00WAVEfmt "


class RecordingRouter:
  """``httpx.MockTransport`` handler that records every request and answers from a route table."""

  def __init__(self) -> None:
    self.requests: list[httpx.Request] = []
    self._routes: list[tuple[str, str, Responder]] = []
    self._cursors: dict[int, int] = {}

  def add(self, method: str, path: str, responder: Responder) -> RecordingRouter:
    """Register a route; a list of responses is served in order and the last one repeats."""
    self._routes.append((method.upper(), path, responder))
    return self

  def __call__(self, request: httpx.Request) -> httpx.Response:
    self.requests.append(request)
    for index, (method, path, responder) in enumerate(self._routes):
      if request.method != method or not _path_matches(path, request.url.path):
        continue
      if callable(responder):
        return responder(request)
      if isinstance(responder, list):
        cursor = self._cursors.get(index, 0)
        self._cursors[index] = cursor + 1
        return _fresh(responder[min(cursor, len(responder) - 1)])
      return _fresh(responder)
    return httpx.Response(599, json={"error": f"no route for {request.method} {request.url.path}"})

  def calls(self, method: str | None = None, path: str | None = None) -> list[httpx.Request]:
    return [request for request in self.requests if (method is None or request.method == method.upper()) and (path is None or _path_matches(path, request.url.path))]

  def client(self, base_url: str = "https://provider.test") -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(self), base_url=base_url)


def _fresh(response: httpx.Response) -> httpx.Response:
  # Routes may answer many requests; each one gets its own response object.
  return httpx.Response(response.status_code, headers=response.headers, content=response.content)


def _path_matches(pattern: str, path: str) -> bool:
  if pattern.endswith("*"):
    return path.startswith(pattern[:-1])
  return path == pattern


class InMemoryArtifactStore:
  """Artifact store that keeps uploads in a dict, optionally failing every upload."""

  def __init__(self, *, fail_with: Exception | None = None) -> None:
    self.objects: dict[str, tuple[bytes, str]] = {}
    self._fail_with = fail_with

  async def upload_bytes(self, data: bytes, object_name: str, content_type: str, cache_control: str = "public, max-age=3600") -> str:
    if self._fail_with is not None:
      raise self._fail_with
    self.objects[object_name] = (data, content_type)
    return f"https://storage.test/test-bucket/{object_name}"


class FakeModel(AIModel):
  """Deterministic model that records every call."""

  def __init__(
    self,
    name: str = "fake-model",
    *,
    text: str = "Generated lesson text.",
    audio: bytes = FAKE_WAV,
    mind_map: dict[str, Any] | None = None,
    code: dict[str, Any] | None = None,
    error: Exception | None = None,
  ) -> None:
    self.name = name
    self.text = text
    self.audio = audio
    self.mind_map = mind_map if mind_map is not None else DEFAULT_MIND_MAP
    self.code = code if code is not None else DEFAULT_CODE
    self.error = error
    self.calls: list[tuple[str, Any]] = []

  async def generate(self, prompt: str) -> SimpleModelResponse:
    self.calls.append(("generate", prompt))
    if self.error is not None:
      raise self.error
    return SimpleModelResponse(content=self.text)

  async def generate_structured(self, prompt: str, schema: dict[str, Any]) -> StructuredModelResponse:
    self.calls.append(("generate_structured", prompt))
    if self.error is not None:
      raise self.error
    if "nodes" in schema.get("properties", {}):
      return StructuredModelResponse(content=self.mind_map)
    return StructuredModelResponse(content=self.code)

  async def generate_speech(self, text: str, voice: str | None = None) -> bytes:
    self.calls.append(("generate_speech", (text, voice)))
    if self.error is not None:
      raise self.error
    return self.audio


def make_settings(**overrides: Any) -> Settings:
  values: dict[str, Any] = {
    "environment": "test",
    "debug": False,
    "log_dir": str(ROOT / "logs"),
    "log_max_bytes": 1048576,
    "log_backup_count": 1,
    "http_timeout_seconds": 5.0,
    "gemini_api_key": "test-gemini-key",
    "text_model": "gemini-test",
    "speech_model": "gemini-tts-test",
    "heygen_api_key": "test-heygen-key",
    "heygen_base_url": "https://heygen.test",
    "avatar_id": "Kristin_public_3_20240108",
    "heygen_template_id": None,
    "heygen_template_variables": {"title": "title", "script": "script", "avatar_id": "avatar_id"},
    "heygen_default_voice_id": "voice-default",
    "heygen_voices": {"he": "voice-he"},
    "video_poll_max_attempts": 3,
    "video_poll_interval_seconds": 0.01,
    "submit_max_retries": 3,
    "submit_retry_delay_seconds": 0.0,
    "gamma_api_key": "test-gamma-key",
    "gamma_base_url": "https://gamma.test",
    "gamma_theme_id": None,
    "presentation_poll_max_attempts": 3,
    "presentation_poll_interval_seconds": 0.01,
    "artifact_bucket": "test-bucket",
    "artifact_object_prefix": "generated",
    "gcs_storage_host": None,
    "gcp_project_id": None,
    "signing_private_key": None,
  }
  values.update(overrides)
  return Settings(**values)


# Force anyio to use asyncio
@pytest.fixture
def anyio_backend():
  return "asyncio"


@pytest.fixture
def router_factory() -> type[RecordingRouter]:
  return RecordingRouter


@pytest.fixture
def store_factory() -> type[InMemoryArtifactStore]:
  return InMemoryArtifactStore


@pytest.fixture
def model_factory() -> type[FakeModel]:
  return FakeModel


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
  return make_settings
