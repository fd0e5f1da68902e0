"""Shared control flow for the per-format generation tasks."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from content_studio.generation.contracts import (
  EMPTY_PROMPT,
  FORMAT_DESCRIPTORS,
  INTERNAL_ERROR,
  JOB_TIMED_OUT,
  LANGUAGE_INVALID,
  PROVIDER_NOT_CONFIGURED,
  RESOURCE_NOT_FOUND,
  ArtifactPayload,
  ArtifactResult,
  FormatDescriptor,
  FormatKey,
  TaskContext,
)
from content_studio.generation.language import LanguageGate, LanguageProfile
from content_studio.providers.errors import PROVIDER_ERROR, ProviderError, ProviderNotConfiguredError, ResourceNotFoundError
from content_studio.providers.jobs import JobOutcome, JobState
from content_studio.storage.persistor import MediaClass, ResultPersistor

logger = logging.getLogger(__name__)


class FormatTask(ABC):
  """One output format: language gate, provider call, optional persistence, tagged result.

  ``run`` never raises. Language problems fail the task before any provider
  call, missing credentials skip it, and provider or unexpected errors become
  failed results carrying a machine-readable code.
  """

  format_key: ClassVar[FormatKey]
  requires_prompt: ClassVar[bool] = True

  def __init__(self, *, language_gate: LanguageGate | None = None) -> None:
    self._language_gate = language_gate or LanguageGate()

  @property
  def descriptor(self) -> FormatDescriptor:
    return FORMAT_DESCRIPTORS[self.format_key]

  @property
  @abstractmethod
  def configured(self) -> bool:
    """Return True when the task's provider is available in this deployment."""

  @abstractmethod
  async def _generate(self, ctx: TaskContext, language: LanguageProfile) -> ArtifactResult:
    """Produce the artifact for a request whose language already resolved."""

  async def run(self, ctx: TaskContext) -> ArtifactResult:
    """Run the task and return a tagged result."""
    language = self._language_gate.resolve(ctx.raw_language)
    if not language.valid:
      logger.warning("Language gate rejected format=%s topic_id=%s raw=%r: %s", self.format_key.value, ctx.topic_id, ctx.raw_language, language.reason)
      return ArtifactResult.failed(self.format_key, LANGUAGE_INVALID, language.reason or "language could not be resolved")

    if self.requires_prompt and not ctx.prompt_text.strip():
      return ArtifactResult.failed(self.format_key, EMPTY_PROMPT, "transcript or prompt is empty after normalization")

    if not self.configured:
      return ArtifactResult.skipped(self.format_key, PROVIDER_NOT_CONFIGURED, f"{self.descriptor.provider} is not configured")

    try:
      return await self._generate(ctx, language)
    except ResourceNotFoundError as exc:
      logger.warning("Provider resource missing format=%s topic_id=%s: %s", self.format_key.value, ctx.topic_id, exc.message)
      return ArtifactResult.skipped(self.format_key, RESOURCE_NOT_FOUND, exc.message)
    except ProviderNotConfiguredError as exc:
      return ArtifactResult.skipped(self.format_key, PROVIDER_NOT_CONFIGURED, exc.message)
    except ProviderError as exc:
      logger.error("Provider error format=%s topic_id=%s code=%s: %s", self.format_key.value, ctx.topic_id, exc.code, exc.message)
      return ArtifactResult.failed(self.format_key, exc.code, exc.message, exc.detail)
    except Exception as exc:  # noqa: BLE001
      logger.error("Unexpected failure format=%s topic_id=%s", self.format_key.value, ctx.topic_id, exc_info=True)
      return ArtifactResult.failed(self.format_key, INTERNAL_ERROR, f"{type(exc).__name__}: {exc}")


class JobBackedFormatTask(FormatTask):
  """Format whose provider renders asynchronously and returns a media URL."""

  media_class: ClassVar[MediaClass]

  def __init__(self, *, persistor: ResultPersistor, language_gate: LanguageGate | None = None) -> None:
    super().__init__(language_gate=language_gate)
    self._persistor = persistor

  async def _result_from_outcome(self, outcome: JobOutcome, *, object_name: str, metadata: dict[str, Any]) -> ArtifactResult:
    """Translate a terminal job outcome into an artifact result, persisting completed media."""
    metadata = {**metadata, "job_id": outcome.job_id, "poll_attempts": outcome.attempts}

    if outcome.state == JobState.FAILED:
      return ArtifactResult.failed(self.format_key, outcome.error_code or PROVIDER_ERROR, outcome.error_message or "generation failed", outcome.error_detail)

    if outcome.state == JobState.TIMED_OUT:
      if not outcome.url:
        return ArtifactResult.failed(self.format_key, JOB_TIMED_OUT, f"job {outcome.job_id} did not finish within the polling budget")
      return ArtifactResult.timed_out(self.format_key, ArtifactPayload(url=outcome.url, fallback=True, metadata={**metadata, "provider_url": outcome.url}))

    if not outcome.url:
      return ArtifactResult.failed(self.format_key, PROVIDER_ERROR, f"job {outcome.job_id} completed without a result URL")

    # Share pages are HTML viewers, not media; keep the reference instead of downloading.
    if outcome.fallback:
      return ArtifactResult.success(self.format_key, ArtifactPayload(url=outcome.url, fallback=True, metadata={**metadata, "provider_url": outcome.url}))

    persisted = await self._persistor.persist(outcome.url, object_name=object_name, media_class=self.media_class)
    metadata = {**metadata, "provider_url": outcome.url, "content_type": persisted.content_type, "size": persisted.size}
    if persisted.error:
      metadata["persistence_error"] = persisted.error
    payload = ArtifactPayload(url=persisted.stored_url, integrity_hash=persisted.integrity_hash, signature=persisted.signature, fallback=persisted.fallback, metadata=metadata)
    return ArtifactResult.success(self.format_key, payload)
