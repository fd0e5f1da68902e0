"""HeyGen avatar video client built on the generic job protocol."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from typing import Any, Final

import httpx

from content_studio.config import Settings
from content_studio.providers.errors import PROVIDER_ERROR, PermanentProviderError, TransientProviderError, classify_http_error
from content_studio.providers.jobs import AsyncJobClient, JobHandle, JobOutcome, JobStatus

logger = logging.getLogger(__name__)

SHARE_URL_TEMPLATE: Final[str] = "https://app.heygen.com/share/{video_id}"
AVATAR_LISTING_PATHS: Final[tuple[str, ...]] = ("/v1/avatar.list", "/v1/avatars", "/v2/avatars", "/v2/avatar.list")
VIDEO_SUBMIT_PATH: Final[str] = "/v2/video/generate"
VIDEO_STATUS_PATH: Final[str] = "/v1/video_status.get"
VIDEO_DIMENSION: Final[dict[str, int]] = {"width": 1280, "height": 720}
_DOWNLOAD_URL_FIELDS: Final[tuple[str, ...]] = ("video_url", "download_url", "video_download_url")
_IMAGE_VARIABLE = re.compile(r"^image_(\d+)$")


def _first_mapping(body: Any, key: str) -> Mapping[str, Any] | None:
  if isinstance(body, Mapping) and isinstance(body.get(key), Mapping):
    return body[key]
  return None


class HeyGenVideoDialect:
  """Paths and response shapes of the HeyGen video job API."""

  name = "heygen"

  def extract_job_id(self, body: Any) -> str | None:
    # The id lives at data.video_id on v2 and at the root on older responses.
    for container in (_first_mapping(body, "data"), body):
      if isinstance(container, Mapping) and container.get("video_id"):
        return str(container["video_id"])
    return None

  def status_request(self, job_id: str) -> tuple[str, dict[str, str]]:
    return VIDEO_STATUS_PATH, {"video_id": job_id}

  def parse_status(self, body: Any) -> JobStatus:
    data = _first_mapping(body, "data") or (body if isinstance(body, Mapping) else {})
    raw_status = str(data.get("status") or "").strip().lower()

    candidates = [data.get(key) for key in _DOWNLOAD_URL_FIELDS]
    video = data.get("video")
    if isinstance(video, Mapping):
      candidates.append(video.get("url"))
    urls = [str(url) for url in candidates if isinstance(url, str) and url]
    download_url = next((url for url in urls if "/share/" not in url), None)
    share_url = data.get("share_url") or next((url for url in urls if "/share/" in url), None)

    if raw_status == "completed":
      return JobStatus(state="completed", download_url=download_url, share_url=share_url, raw=dict(data))
    if raw_status in {"failed", "error"}:
      code, message, detail = _job_error(data)
      return JobStatus(state="failed", error_code=code, error_message=message, error_detail=detail, raw=dict(data))
    return JobStatus(state="processing", download_url=download_url, share_url=share_url, raw=dict(data))

  def share_url_for(self, job_id: str) -> str | None:
    return SHARE_URL_TEMPLATE.format(video_id=job_id)

  def is_resource_missing(self, status_code: int, message: str) -> bool:
    lowered = message.lower()
    return status_code in {403, 404} or ("avatar" in lowered and "not found" in lowered)


def _job_error(data: Mapping[str, Any]) -> tuple[str, str, Any]:
  """Return the remote (code, message, detail) triple of a failed job."""
  error = data.get("error")
  if isinstance(error, Mapping):
    return str(error.get("code") or PROVIDER_ERROR), str(error.get("message") or "Video generation failed"), error.get("detail")
  code = data.get("error_code") or PROVIDER_ERROR
  message = data.get("error_message") or (error if isinstance(error, str) else None) or "Video generation failed"
  return str(code), str(message), data.get("error_detail")


def normalize_template_variables(variables: Mapping[str, Any]) -> dict[str, Any]:
  """Wrap bare ``image_N: {"url": ...}`` variables in the ``{"image": {...}}`` shape templates expect."""
  normalized: dict[str, Any] = {}
  for key, value in variables.items():
    match = _IMAGE_VARIABLE.match(key)
    if match and isinstance(value, Mapping) and "url" in value and "image" not in value:
      normalized[key] = {"image": {"name": f"slide{match.group(1)}", "url": value["url"]}}
    else:
      normalized[key] = value
  return normalized


class HeyGenClient:
  """Avatar video generation, template submission, and avatar listing."""

  listing_paths: tuple[str, ...] = AVATAR_LISTING_PATHS

  def __init__(self, http: httpx.AsyncClient, *, poll_max_attempts: int = 120, poll_interval: float = 5.0, submit_max_retries: int = 3, submit_retry_delay: float = 2.0) -> None:
    self._http = http
    self._jobs = AsyncJobClient(http, HeyGenVideoDialect())
    self._poll_max_attempts = poll_max_attempts
    self._poll_interval = poll_interval
    self._submit_max_retries = submit_max_retries
    self._submit_retry_delay = submit_retry_delay

  async def fetch_listing(self, path: str) -> Any:
    """Fetch one avatar listing endpoint."""
    try:
      response = await self._http.get(path)
    except httpx.RequestError as exc:
      raise TransientProviderError(f"heygen listing failed: {exc}") from exc
    if response.is_error:
      raise classify_http_error(response, provider="heygen")
    try:
      return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
      raise PermanentProviderError(f"heygen listing returned invalid JSON: {exc}") from exc

  async def submit_video(self, *, title: str, avatar_id: str, script: str, voice_id: str) -> JobHandle:
    """Submit a talking-avatar video that narrates ``script``."""
    payload = {
      "title": title,
      "video_inputs": [{"character": {"type": "avatar", "avatar_id": avatar_id, "avatar_style": "normal"}, "voice": {"type": "text", "input_text": script, "voice_id": voice_id}}],
      "dimension": dict(VIDEO_DIMENSION),
    }
    logger.info("Submitting avatar video avatar_id=%s voice_id=%s script_chars=%s", avatar_id, voice_id, len(script))
    return await self._jobs.submit(VIDEO_SUBMIT_PATH, payload)

  async def submit_template_video(self, template_id: str, *, title: str, variables: Mapping[str, Any], voice_id: str | None = None, captions: bool = False) -> JobHandle:
    """Submit a template render, retrying the submission itself on server-side failures."""
    payload: dict[str, Any] = {"title": title, "variables": normalize_template_variables(variables)}
    if voice_id:
      payload["voice_id"] = voice_id
    if captions:
      payload["caption_settings"] = {"enabled": True}
    logger.info("Submitting template video template_id=%s variables=%s", template_id, len(payload["variables"]))
    return await self._jobs.submit_with_retry(f"/v2/template/{template_id}/generate", payload, max_retries=self._submit_max_retries, retry_delay=self._submit_retry_delay)

  async def wait_for_video(self, handle: JobHandle) -> JobOutcome:
    """Poll a submitted video until it reaches a terminal state."""
    return await self._jobs.poll(handle, max_attempts=self._poll_max_attempts, interval=self._poll_interval)


def build_heygen_http_client(settings: Settings) -> httpx.AsyncClient:
  """Create the shared HTTP client for HeyGen requests."""
  if not settings.heygen_api_key:
    raise ValueError("HEYGEN_API_KEY is required to build the HeyGen client")
  headers = {"X-Api-Key": settings.heygen_api_key, "Accept": "application/json"}
  return httpx.AsyncClient(base_url=settings.heygen_base_url, headers=headers, timeout=settings.http_timeout_seconds)


def build_heygen_client(settings: Settings, http: httpx.AsyncClient) -> HeyGenClient:
  """Create a HeyGen client using the configured poll and retry budgets."""
  return HeyGenClient(
    http,
    poll_max_attempts=settings.video_poll_max_attempts,
    poll_interval=settings.video_poll_interval_seconds,
    submit_max_retries=settings.submit_max_retries,
    submit_retry_delay=settings.submit_retry_delay_seconds,
  )
