"""Shared data contracts for the content generation pipeline."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from content_studio.storage.topics import TopicMetadata

LANGUAGE_INVALID = "LANGUAGE_INVALID"
EMPTY_PROMPT = "EMPTY_PROMPT"
INTERNAL_ERROR = "INTERNAL_ERROR"
JOB_TIMED_OUT = "JOB_TIMED_OUT"

NO_AVAILABLE_RESOURCE = "no_available_resource"
RESOURCE_NOT_FOUND = "resource_not_found"
PROVIDER_NOT_CONFIGURED = "provider_not_configured"


class FormatKey(str, Enum):
  """Output formats produced for every request."""

  TEXT = "text"
  AUDIO = "audio"
  PRESENTATION = "presentation"
  MIND_MAP = "mind_map"
  CODE = "code"
  AVATAR_VIDEO = "avatar_video"


@dataclass(frozen=True)
class FormatDescriptor:
  """Static binding of a format to its display label and provider."""

  format_key: FormatKey
  label: str
  provider: str


FORMAT_DESCRIPTORS: dict[FormatKey, FormatDescriptor] = {
  FormatKey.TEXT: FormatDescriptor(FormatKey.TEXT, "Text", "gemini"),
  FormatKey.AUDIO: FormatDescriptor(FormatKey.AUDIO, "Audio", "gemini"),
  FormatKey.PRESENTATION: FormatDescriptor(FormatKey.PRESENTATION, "Presentation Slides", "gamma"),
  FormatKey.MIND_MAP: FormatDescriptor(FormatKey.MIND_MAP, "Mind Map", "gemini"),
  FormatKey.CODE: FormatDescriptor(FormatKey.CODE, "Code Examples", "gemini"),
  FormatKey.AVATAR_VIDEO: FormatDescriptor(FormatKey.AVATAR_VIDEO, "Avatar Video", "heygen"),
}


class ArtifactStatus(str, Enum):
  """Terminal status of one format task."""

  SUCCESS = "success"
  FAILED = "failed"
  SKIPPED = "skipped"
  TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class ArtifactPayload:
  """Generated content: a stored media reference, inline content, or both."""

  url: str | None = None
  integrity_hash: str | None = None
  signature: str | None = None
  fallback: bool = False
  content: Any = None
  metadata: dict[str, Any] = field(default_factory=dict)

  def as_dict(self) -> dict[str, Any]:
    return {"url": self.url, "integrity_hash": self.integrity_hash, "signature": self.signature, "fallback": self.fallback, "content": self.content, "metadata": self.metadata}


@dataclass(frozen=True)
class ArtifactError:
  """Machine-readable code plus a human-readable reason."""

  code: str
  reason: str
  detail: Any = None

  def as_dict(self) -> dict[str, Any]:
    return {"code": self.code, "reason": self.reason, "detail": self.detail}


@dataclass(frozen=True)
class ArtifactResult:
  """Tagged outcome of one format task."""

  format_key: FormatKey
  status: ArtifactStatus
  payload: ArtifactPayload | None = None
  error: ArtifactError | None = None

  @classmethod
  def success(cls, format_key: FormatKey, payload: ArtifactPayload) -> ArtifactResult:
    return cls(format_key=format_key, status=ArtifactStatus.SUCCESS, payload=payload)

  @classmethod
  def failed(cls, format_key: FormatKey, code: str, reason: str, detail: Any = None) -> ArtifactResult:
    return cls(format_key=format_key, status=ArtifactStatus.FAILED, error=ArtifactError(code=code, reason=reason, detail=detail))

  @classmethod
  def skipped(cls, format_key: FormatKey, code: str, reason: str) -> ArtifactResult:
    return cls(format_key=format_key, status=ArtifactStatus.SKIPPED, error=ArtifactError(code=code, reason=reason))

  @classmethod
  def timed_out(cls, format_key: FormatKey, payload: ArtifactPayload) -> ArtifactResult:
    return cls(format_key=format_key, status=ArtifactStatus.TIMED_OUT, payload=payload)

  def as_dict(self) -> dict[str, Any]:
    return {"format": self.format_key.value, "status": self.status.value, "payload": self.payload.as_dict() if self.payload else None, "error": self.error.as_dict() if self.error else None}


class GenerationRequest(BaseModel):
  """Inputs for one multi-format generation request."""

  model_config = ConfigDict(frozen=True)

  transcript_or_prompt: str
  topic_id: str
  language: str | None = None
  skills: tuple[str, ...] = Field(default_factory=tuple)
  slide_image_urls: tuple[str, ...] = Field(default_factory=tuple)

  @field_validator("topic_id", mode="before")
  @classmethod
  def require_topic_id(cls, value: Any) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
      raise ValueError("topic_id is required")
    return text

  @field_validator("skills", mode="before")
  @classmethod
  def clean_skills(cls, value: Any) -> tuple[str, ...]:
    if value is None:
      return ()
    if isinstance(value, str):
      value = [value]
    return tuple(str(skill).strip() for skill in value if skill and str(skill).strip())

  @field_validator("slide_image_urls", mode="before")
  @classmethod
  def clean_slide_image_urls(cls, value: Any) -> tuple[str, ...]:
    if value is None:
      return ()
    if isinstance(value, str):
      value = [value]
    return tuple(str(url).strip() for url in value if url and str(url).strip())


@dataclass(frozen=True)
class TaskContext:
  """Read-only view of a request handed to every format task."""

  request: GenerationRequest
  title: str
  topic: TopicMetadata | None = None

  @property
  def prompt_text(self) -> str:
    return self.request.transcript_or_prompt

  @property
  def raw_language(self) -> str | None:
    return self.request.language

  @property
  def skills(self) -> tuple[str, ...]:
    return self.request.skills

  @property
  def slide_image_urls(self) -> tuple[str, ...]:
    return self.request.slide_image_urls

  @property
  def topic_id(self) -> str:
    return self.request.topic_id


@dataclass(frozen=True)
class GenerationResponse:
  """One result per configured format, regardless of individual outcomes."""

  topic_id: str
  language: str | None
  results: Mapping[FormatKey, ArtifactResult]

  def as_dict(self) -> dict[str, Any]:
    return {"topic_id": self.topic_id, "language": self.language, "results": {key.value: result.as_dict() for key, result in self.results.items()}}
