"""Fan-out orchestration across the per-format generation tasks."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from content_studio.generation.contracts import INTERNAL_ERROR, ArtifactResult, ArtifactStatus, FormatKey, GenerationRequest, GenerationResponse, TaskContext
from content_studio.generation.language import LanguageGate
from content_studio.generation.progress import ProgressCallback, ProgressEvent, ProgressSink, ProgressStatus, build_progress_sink
from content_studio.generation.tasks.base import FormatTask
from content_studio.generation.transcript import derive_title, normalize_transcript
from content_studio.storage.topics import NullTopicMetadataSource, TopicMetadata, TopicMetadataSource

logger = logging.getLogger(__name__)

_PROGRESS_STATUS: dict[ArtifactStatus, ProgressStatus] = {
  ArtifactStatus.SUCCESS: "completed",
  ArtifactStatus.TIMED_OUT: "completed",
  ArtifactStatus.FAILED: "failed",
  ArtifactStatus.SKIPPED: "skipped",
}


class OrchestrationError(ValueError):
  """Raised only for malformed top-level input."""


class ContentOrchestrator:
  """Runs every format task concurrently and always returns one result per format."""

  def __init__(self, tasks: Sequence[FormatTask], *, topics: TopicMetadataSource | None = None, language_gate: LanguageGate | None = None) -> None:
    keys = [task.format_key for task in tasks]
    if len(set(keys)) != len(keys):
      raise ValueError(f"Duplicate format tasks configured: {[key.value for key in keys]}")
    self._tasks = tuple(tasks)
    self._topics = topics or NullTopicMetadataSource()
    self._language_gate = language_gate or LanguageGate()

  @property
  def format_keys(self) -> tuple[FormatKey, ...]:
    return tuple(task.format_key for task in self._tasks)

  async def generate_all(
    self,
    prompt_text: str,
    *,
    topic_id: Any,
    language: str | None = None,
    skills: Sequence[str] | None = None,
    slide_image_urls: Sequence[str] | None = None,
    on_progress: ProgressCallback | None = None,
    sink: ProgressSink | None = None,
  ) -> GenerationResponse:
    """Generate every format for one request.

    ``language`` falls back to the stored topic's language and is never
    defaulted; when neither resolves, each task fails with ``LANGUAGE_INVALID``
    without contacting its provider.
    """
    if topic_id is None or not str(topic_id).strip():
      raise OrchestrationError("topic_id is required")
    if not isinstance(prompt_text, str):
      raise OrchestrationError("prompt_text must be a string")

    topic_key = str(topic_id).strip()
    transcript = normalize_transcript(prompt_text)
    topic = await self._load_topic(topic_key)

    raw_language = language if language and language.strip() else (topic.language if topic else None)
    request_skills = list(skills) if skills else list(topic.skills if topic else ())
    try:
      request = GenerationRequest(transcript_or_prompt=transcript, topic_id=topic_key, language=raw_language, skills=request_skills, slide_image_urls=tuple(slide_image_urls or ()))
    except ValidationError as exc:
      raise OrchestrationError(str(exc)) from exc

    title = (topic.name if topic and topic.name else None) or derive_title(transcript) or f"Lesson {topic_key}"
    ctx = TaskContext(request=request, title=title, topic=topic)
    progress = build_progress_sink(on_progress, sink)

    logger.info("Generating %s formats topic_id=%s language=%r chars=%s", len(self._tasks), topic_key, raw_language, len(transcript))
    outcomes = await asyncio.gather(*(self._run_task(task, ctx, progress) for task in self._tasks), return_exceptions=True)

    results: dict[FormatKey, ArtifactResult] = {}
    for task, outcome in zip(self._tasks, outcomes, strict=True):
      if isinstance(outcome, ArtifactResult):
        results[task.format_key] = outcome
      elif isinstance(outcome, Exception):
        logger.error("Format task escaped isolation format=%s", task.format_key.value, exc_info=outcome)
        results[task.format_key] = ArtifactResult.failed(task.format_key, INTERNAL_ERROR, f"{type(outcome).__name__}: {outcome}")
      else:
        raise outcome

    profile = self._language_gate.resolve(raw_language)
    summary = {key.value: result.status.value for key, result in results.items()}
    logger.info("Generation finished topic_id=%s results=%s", topic_key, summary)
    return GenerationResponse(topic_id=topic_key, language=profile.normalized_code or raw_language, results=results)

  async def _run_task(self, task: FormatTask, ctx: TaskContext, progress: ProgressSink) -> ArtifactResult:
    label = task.descriptor.label
    progress.emit(ProgressEvent(format_key=task.format_key.value, status="starting", message=f"Starting: {label}"))
    try:
      result = await task.run(ctx)
    except Exception as exc:  # noqa: BLE001
      logger.error("Format task raised format=%s topic_id=%s", task.format_key.value, ctx.topic_id, exc_info=True)
      result = ArtifactResult.failed(task.format_key, INTERNAL_ERROR, f"{type(exc).__name__}: {exc}")

    status = _PROGRESS_STATUS[result.status]
    progress.emit(ProgressEvent(format_key=task.format_key.value, status=status, message=_terminal_message(label, result)))
    return result

  async def _load_topic(self, topic_id: str) -> TopicMetadata | None:
    try:
      return await self._topics.get_topic(topic_id)
    except Exception:  # noqa: BLE001
      logger.warning("Topic metadata lookup failed topic_id=%s; continuing without it", topic_id, exc_info=True)
      return None


def _terminal_message(label: str, result: ArtifactResult) -> str:
  if result.status == ArtifactStatus.SUCCESS:
    return f"Completed: {label}"
  if result.status == ArtifactStatus.TIMED_OUT:
    return f"Completed: {label} (still rendering; returning the provider link)"
  reason = result.error.reason if result.error else "unknown error"
  if result.status == ArtifactStatus.SKIPPED:
    return f"Skipped: {label} - {reason}"
  return f"Failed: {label} - {reason}"
