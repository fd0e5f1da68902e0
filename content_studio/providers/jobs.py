"""Submit-then-poll client for providers that render artifacts asynchronously.

A job moves through ``SUBMITTED -> POLLING -> {COMPLETED, FAILED, TIMED_OUT}``.
Provider-specific paths and response shapes live in a :class:`JobDialect`; the
client owns the lifecycle: error classification on submission, bounded
submission retries for server-side failures, and a fixed-interval poll loop
whose worst-case wait is ``max_attempts x interval``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal, Protocol

import httpx

from content_studio.providers.errors import INVALID_REQUEST, PROVIDER_ERROR, MissingJobIdError, TransientProviderError, classify_http_error, is_transient_status, response_detail

logger = logging.getLogger(__name__)

RemoteStatus = Literal["processing", "completed", "failed"]


class JobState(str, Enum):
  """Lifecycle states of a provider job."""

  SUBMITTED = "submitted"
  POLLING = "polling"
  COMPLETED = "completed"
  FAILED = "failed"
  TIMED_OUT = "timed_out"


@dataclass
class JobHandle:
  """Tracks one submitted job; only the job client mutates it."""

  provider_job_id: str
  submitted_at: datetime
  attempts: int = 0
  state: JobState = JobState.SUBMITTED
  last_url: str | None = None


@dataclass(frozen=True)
class JobStatus:
  """One decoded status response."""

  state: RemoteStatus
  download_url: str | None = None
  share_url: str | None = None
  error_code: str | None = None
  error_message: str | None = None
  error_detail: Any = None
  raw: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class JobOutcome:
  """Terminal result of a polled job."""

  state: JobState
  job_id: str
  url: str | None = None
  fallback: bool = False
  attempts: int = 0
  error_code: str | None = None
  error_message: str | None = None
  error_detail: Any = None
  raw: dict[str, Any] = field(default_factory=dict, compare=False)


class JobDialect(Protocol):
  """Provider-specific paths and response shapes for the job protocol."""

  name: str

  def extract_job_id(self, body: Any) -> str | None:
    """Return the job identifier from a submission response."""
    ...

  def status_request(self, job_id: str) -> tuple[str, dict[str, str]]:
    """Return the status path and query parameters for a job."""
    ...

  def parse_status(self, body: Any) -> JobStatus:
    """Decode a status response."""
    ...

  def share_url_for(self, job_id: str) -> str | None:
    """Return a synthesized share-style URL for a job, when the provider has one."""
    ...

  def is_resource_missing(self, status_code: int, message: str) -> bool:
    """Return True when a submission error means a referenced resource is gone."""
    ...


def _decode_json(response: httpx.Response) -> Any:
  try:
    return response.json()
  except (json.JSONDecodeError, UnicodeDecodeError):
    return None


class AsyncJobClient:
  """Generic job lifecycle driver bound to one provider dialect."""

  def __init__(self, http: httpx.AsyncClient, dialect: JobDialect) -> None:
    self._http = http
    self._dialect = dialect

  @property
  def provider(self) -> str:
    return self._dialect.name

  async def submit(self, path: str, payload: dict[str, Any]) -> JobHandle:
    """Submit a job with a single request; any non-2xx response raises a classified error."""
    try:
      response = await self._http.post(path, json=payload)
    except httpx.RequestError as exc:
      raise TransientProviderError(f"{self.provider} submission failed: {exc}", code=PROVIDER_ERROR) from exc

    if response.is_error:
      raise classify_http_error(response, provider=self.provider, resource_missing=self._dialect.is_resource_missing)

    body = _decode_json(response)
    job_id = self._dialect.extract_job_id(body)
    if not job_id:
      raise MissingJobIdError(f"{self.provider} accepted the submission but returned no job id", detail=body)

    logger.info("Submitted %s job job_id=%s path=%s", self.provider, job_id, path)
    return JobHandle(provider_job_id=job_id, submitted_at=datetime.now(UTC))

  async def submit_with_retry(self, path: str, payload: dict[str, Any], *, max_retries: int, retry_delay: float) -> JobHandle:
    """Submit a job, retrying server-side failures with a linear backoff of ``retry_delay x attempt``."""
    attempt = 0
    while True:
      attempt += 1
      try:
        return await self.submit(path, payload)
      except TransientProviderError as exc:
        if attempt > max_retries:
          logger.error("%s submission failed after %s attempts: %s", self.provider, attempt, exc.message)
          raise
        delay = retry_delay * attempt
        logger.warning("%s submission attempt %s/%s failed (%s); retrying in %.2fs", self.provider, attempt, max_retries + 1, exc.message, delay)
        await asyncio.sleep(delay)

  async def poll(self, handle: JobHandle, *, max_attempts: int, interval: float) -> JobOutcome:
    """Poll a job until it completes, fails, or the attempt budget runs out."""
    if max_attempts < 1:
      raise ValueError("max_attempts must be at least 1")

    handle.state = JobState.POLLING
    for attempt in range(1, max_attempts + 1):
      handle.attempts = attempt
      status = await self._fetch_status(handle)

      if status is not None:
        if status.state == "completed":
          return self._completed(handle, status)
        if status.state == "failed":
          return self._failed(handle, status)
        handle.last_url = status.download_url or status.share_url or handle.last_url

      # No sleep after the final attempt keeps the worst case within max_attempts x interval.
      if attempt < max_attempts:
        await asyncio.sleep(interval)

    handle.state = JobState.TIMED_OUT
    url = handle.last_url or self._dialect.share_url_for(handle.provider_job_id)
    logger.warning("%s job timed out job_id=%s attempts=%s url=%s", self.provider, handle.provider_job_id, handle.attempts, url)
    return JobOutcome(state=JobState.TIMED_OUT, job_id=handle.provider_job_id, url=url, fallback=True, attempts=handle.attempts)

  async def _fetch_status(self, handle: JobHandle) -> JobStatus | None:
    """Fetch one status response; ``None`` means the job is not ready yet."""
    path, params = self._dialect.status_request(handle.provider_job_id)
    try:
      response = await self._http.get(path, params=params)
    except httpx.RequestError as exc:
      logger.warning("%s status request failed job_id=%s attempt=%s: %s", self.provider, handle.provider_job_id, handle.attempts, exc)
      return None

    if is_transient_status(response.status_code) or response.status_code == 404:
      logger.info("%s job not ready job_id=%s attempt=%s status_code=%s", self.provider, handle.provider_job_id, handle.attempts, response.status_code)
      return None

    if response.is_error:
      message, detail = response_detail(response)
      code = INVALID_REQUEST if response.status_code == 400 else PROVIDER_ERROR
      return JobStatus(state="failed", error_code=code, error_message=message, error_detail=detail)

    body = _decode_json(response)
    if body is None:
      logger.warning("%s returned a non-JSON status body job_id=%s", self.provider, handle.provider_job_id)
      return None
    return self._dialect.parse_status(body)

  def _completed(self, handle: JobHandle, status: JobStatus) -> JobOutcome:
    handle.state = JobState.COMPLETED
    # Prefer a directly downloadable URL; a share-style link is a flagged fallback.
    if status.download_url:
      url, fallback = status.download_url, False
    else:
      url, fallback = status.share_url or handle.last_url or self._dialect.share_url_for(handle.provider_job_id), True
    handle.last_url = url
    logger.info("%s job completed job_id=%s attempts=%s fallback=%s", self.provider, handle.provider_job_id, handle.attempts, fallback)
    return JobOutcome(state=JobState.COMPLETED, job_id=handle.provider_job_id, url=url, fallback=fallback, attempts=handle.attempts, raw=status.raw)

  def _failed(self, handle: JobHandle, status: JobStatus) -> JobOutcome:
    handle.state = JobState.FAILED
    logger.error("%s job failed job_id=%s code=%s message=%s", self.provider, handle.provider_job_id, status.error_code, status.error_message)
    return JobOutcome(
      state=JobState.FAILED,
      job_id=handle.provider_job_id,
      url=None,
      attempts=handle.attempts,
      error_code=status.error_code or PROVIDER_ERROR,
      error_message=status.error_message or f"{self.provider} reported the job as failed",
      error_detail=status.error_detail,
      raw=status.raw,
    )
