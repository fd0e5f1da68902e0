"""Provider error taxonomy shared by every external generation client."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx

PROVIDER_ERROR = "PROVIDER_ERROR"
INVALID_REQUEST = "INVALID_REQUEST"
MISSING_JOB_ID = "MISSING_JOB_ID"
RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
PROVIDER_NOT_CONFIGURED = "PROVIDER_NOT_CONFIGURED"

ResourceMissingCheck = Callable[[int, str], bool]


class ProviderError(Exception):
  """Base error raised by provider clients with a machine-readable code."""

  def __init__(self, message: str, *, code: str = PROVIDER_ERROR, status_code: int | None = None, detail: Any = None) -> None:
    super().__init__(message)
    self.message = message
    self.code = code
    self.status_code = status_code
    self.detail = detail


class TransientProviderError(ProviderError):
  """Server-side or transport failure that is worth retrying."""


class PermanentProviderError(ProviderError):
  """Client-side rejection that must never be retried."""


class ResourceNotFoundError(PermanentProviderError):
  """The provider reports that a referenced resource does not exist."""

  def __init__(self, message: str, *, status_code: int | None = None, detail: Any = None) -> None:
    super().__init__(message, code=RESOURCE_NOT_FOUND, status_code=status_code, detail=detail)


class MissingJobIdError(PermanentProviderError):
  """A submission succeeded but the response carried no job identifier."""

  def __init__(self, message: str, *, detail: Any = None) -> None:
    super().__init__(message, code=MISSING_JOB_ID, detail=detail)


class ProviderNotConfiguredError(ProviderError):
  """The provider has no credentials in this deployment."""

  def __init__(self, provider: str) -> None:
    super().__init__(f"{provider} is not configured", code=PROVIDER_NOT_CONFIGURED)
    self.provider = provider


def is_transient_status(status_code: int) -> bool:
  """Return True for server-side status codes."""
  return status_code >= 500


def response_detail(response: httpx.Response) -> tuple[str, Any]:
  """Return a human-readable message and the decoded body of an error response."""
  try:
    body: Any = response.json()
  except (json.JSONDecodeError, UnicodeDecodeError):
    text = response.text[:500]
    return (text or response.reason_phrase or f"HTTP {response.status_code}"), text

  message: Any = None
  if isinstance(body, dict):
    error = body.get("error")
    if isinstance(error, dict):
      message = error.get("message") or error.get("detail") or error.get("code")
    elif isinstance(error, str):
      message = error
    message = message or body.get("message") or body.get("detail")
  return (str(message) if message else f"HTTP {response.status_code}"), body


def classify_http_error(response: httpx.Response, *, provider: str, resource_missing: ResourceMissingCheck | None = None) -> ProviderError:
  """Map a non-2xx provider response onto the error taxonomy."""
  status_code = response.status_code
  message, detail = response_detail(response)
  summary = f"{provider} responded {status_code}: {message}"

  if is_transient_status(status_code):
    return TransientProviderError(summary, code=PROVIDER_ERROR, status_code=status_code, detail=detail)
  if resource_missing is not None and resource_missing(status_code, message):
    return ResourceNotFoundError(summary, status_code=status_code, detail=detail)
  if status_code == 400:
    return PermanentProviderError(summary, code=INVALID_REQUEST, status_code=status_code, detail=detail)
  return PermanentProviderError(summary, code=PROVIDER_ERROR, status_code=status_code, detail=detail)
