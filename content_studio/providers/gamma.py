"""Gamma presentation client built on the generic job protocol."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Final

import httpx

from content_studio.config import Settings
from content_studio.providers.errors import PROVIDER_ERROR
from content_studio.providers.jobs import AsyncJobClient, JobHandle, JobOutcome, JobStatus

logger = logging.getLogger(__name__)

GENERATIONS_PATH: Final[str] = "/v1.0/generations"


class GammaDialect:
  """Paths and response shapes of the Gamma generations API."""

  name = "gamma"

  def extract_job_id(self, body: Any) -> str | None:
    if not isinstance(body, Mapping):
      return None
    job_id = body.get("generationId") or body.get("id")
    return str(job_id) if job_id else None

  def status_request(self, job_id: str) -> tuple[str, dict[str, str]]:
    return f"{GENERATIONS_PATH}/{job_id}", {}

  def parse_status(self, body: Any) -> JobStatus:
    data = body if isinstance(body, Mapping) else {}
    raw_status = str(data.get("status") or data.get("state") or "").strip().lower()

    export_url = data.get("exportUrl")
    export = data.get("export")
    if not export_url and isinstance(export, Mapping):
      export_url = export.get("pptx")
    share_url = data.get("gammaUrl")

    if raw_status in {"completed", "success"}:
      return JobStatus(state="completed", download_url=export_url or None, share_url=share_url or None, raw=dict(data))
    if raw_status in {"failed", "error"}:
      error = data.get("error")
      if isinstance(error, Mapping):
        code, message = error.get("code") or PROVIDER_ERROR, error.get("message") or "Presentation generation failed"
      else:
        code, message = PROVIDER_ERROR, error or data.get("message") or "Presentation generation failed"
      return JobStatus(state="failed", error_code=str(code), error_message=str(message), error_detail=error, raw=dict(data))
    return JobStatus(state="processing", share_url=share_url or None, raw=dict(data))

  def share_url_for(self, job_id: str) -> str | None:
    return None

  def is_resource_missing(self, status_code: int, message: str) -> bool:
    return False


class GammaClient:
  """Slide deck generation with PPTX export."""

  def __init__(self, http: httpx.AsyncClient, *, poll_max_attempts: int = 60, poll_interval: float = 5.0, theme_id: str | None = None) -> None:
    self._jobs = AsyncJobClient(http, GammaDialect())
    self._poll_max_attempts = poll_max_attempts
    self._poll_interval = poll_interval
    self._theme_id = theme_id

  async def create_presentation(self, input_text: str, *, language: str) -> JobHandle:
    """Submit a presentation generation job for ``input_text``."""
    payload: dict[str, Any] = {
      "inputText": input_text,
      "textMode": "generate",
      "format": "presentation",
      "exportAs": "pptx",
      "textOptions": {"language": language, "amount": "detailed", "tone": "professional"},
    }
    if self._theme_id:
      payload["themeId"] = self._theme_id
    logger.info("Submitting presentation language=%s input_chars=%s", language, len(input_text))
    return await self._jobs.submit(GENERATIONS_PATH, payload)

  async def wait_for_presentation(self, handle: JobHandle) -> JobOutcome:
    """Poll a presentation job until the export is ready."""
    return await self._jobs.poll(handle, max_attempts=self._poll_max_attempts, interval=self._poll_interval)


def build_gamma_http_client(settings: Settings) -> httpx.AsyncClient:
  """Create the shared HTTP client for Gamma requests."""
  if not settings.gamma_api_key:
    raise ValueError("GAMMA_API_KEY is required to build the Gamma client")
  headers = {"X-API-KEY": settings.gamma_api_key, "Accept": "application/json"}
  return httpx.AsyncClient(base_url=settings.gamma_base_url, headers=headers, timeout=settings.http_timeout_seconds)


def build_gamma_client(settings: Settings, http: httpx.AsyncClient) -> GammaClient:
  """Create a Gamma client using the configured poll budget."""
  return GammaClient(http, poll_max_attempts=settings.presentation_poll_max_attempts, poll_interval=settings.presentation_poll_interval_seconds, theme_id=settings.gamma_theme_id)
