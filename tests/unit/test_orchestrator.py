from __future__ import annotations

import asyncio

import pytest

from content_studio.generation.contracts import INTERNAL_ERROR, LANGUAGE_INVALID, ArtifactPayload, ArtifactResult, ArtifactStatus, FormatKey, TaskContext
from content_studio.generation.language import LanguageProfile
from content_studio.generation.orchestrator import ContentOrchestrator, OrchestrationError
from content_studio.generation.progress import QueueProgressSink
from content_studio.generation.tasks.base import FormatTask
from content_studio.storage.topics import InMemoryTopicMetadataSource, TopicMetadata


class RecordingTask(FormatTask):
  """Task that records the context it ran with and returns a canned result."""

  def __init__(self, format_key: FormatKey, *, status: ArtifactStatus = ArtifactStatus.SUCCESS, started: asyncio.Event | None = None, release: asyncio.Event | None = None) -> None:
    super().__init__()
    self.format_key = format_key
    self._status = status
    self._started = started
    self._release = release
    self.contexts: list[TaskContext] = []
    self.languages: list[LanguageProfile] = []

  @property
  def configured(self) -> bool:
    return True

  async def _generate(self, ctx: TaskContext, language: LanguageProfile) -> ArtifactResult:
    self.contexts.append(ctx)
    self.languages.append(language)
    if self._started is not None:
      self._started.set()
    if self._release is not None:
      await self._release.wait()
    if self._status == ArtifactStatus.TIMED_OUT:
      return ArtifactResult.timed_out(self.format_key, ArtifactPayload(url="https://app.heygen.com/share/vid-1", fallback=True))
    if self._status == ArtifactStatus.SKIPPED:
      return ArtifactResult.skipped(self.format_key, "no_available_resource", "no avatar")
    if self._status == ArtifactStatus.FAILED:
      return ArtifactResult.failed(self.format_key, "PROVIDER_ERROR", "boom")
    return ArtifactResult.success(self.format_key, ArtifactPayload(content=f"{self.format_key.value} content"))


class EscapingTask(RecordingTask):
  async def run(self, ctx: TaskContext) -> ArtifactResult:
    raise RuntimeError("escaped")


class ExplodingSink:
  def emit(self, event) -> None:
    raise RuntimeError("sink down")


def _all_tasks(**overrides: ArtifactStatus) -> list[RecordingTask]:
  return [RecordingTask(key, status=overrides.get(key.value, ArtifactStatus.SUCCESS)) for key in FormatKey]


@pytest.mark.anyio
async def test_every_format_gets_exactly_one_result() -> None:
  orchestrator = ContentOrchestrator(_all_tasks(avatar_video=ArtifactStatus.TIMED_OUT, code=ArtifactStatus.FAILED))

  response = await orchestrator.generate_all("Closures capture scope.", topic_id=42, language="he-IL")

  assert set(response.results) == set(FormatKey)
  assert response.topic_id == "42"
  assert response.language == "he"
  assert response.results[FormatKey.AVATAR_VIDEO].status == ArtifactStatus.TIMED_OUT
  assert response.results[FormatKey.CODE].status == ArtifactStatus.FAILED
  assert response.as_dict()["results"]["text"]["status"] == "success"


@pytest.mark.anyio
async def test_tasks_run_concurrently() -> None:
  release = asyncio.Event()
  started_text, started_audio = asyncio.Event(), asyncio.Event()
  tasks = [RecordingTask(FormatKey.TEXT, started=started_text, release=release), RecordingTask(FormatKey.AUDIO, started=started_audio, release=release)]
  orchestrator = ContentOrchestrator(tasks)

  run = asyncio.create_task(orchestrator.generate_all("Lesson.", topic_id="1", language="en"))
  await asyncio.wait_for(asyncio.gather(started_text.wait(), started_audio.wait()), timeout=1.0)
  release.set()
  response = await asyncio.wait_for(run, timeout=1.0)

  assert {result.status for result in response.results.values()} == {ArtifactStatus.SUCCESS}


@pytest.mark.anyio
async def test_progress_events_bracket_each_task() -> None:
  sink = QueueProgressSink()
  received: list[tuple[str, str, str]] = []
  orchestrator = ContentOrchestrator(_all_tasks(avatar_video=ArtifactStatus.TIMED_OUT, presentation=ArtifactStatus.SKIPPED, code=ArtifactStatus.FAILED))

  await orchestrator.generate_all("Lesson.", topic_id="1", language="en", on_progress=lambda *args: received.append(args), sink=sink)

  events = sink.drain()
  assert len(events) == 2 * len(FormatKey)
  assert [(event.format_key, event.status, event.message) for event in events] == received
  for key in FormatKey:
    statuses = [event.status for event in events if event.format_key == key.value]
    assert statuses[0] == "starting"
    assert len(statuses) == 2
  terminal = {event.format_key: event for event in events if event.status != "starting"}
  assert terminal["avatar_video"].status == "completed"
  assert "still rendering" in terminal["avatar_video"].message
  assert terminal["presentation"].status == "skipped"
  assert terminal["presentation"].message == "Skipped: Presentation Slides - no avatar"
  assert terminal["code"].message == "Failed: Code Examples - boom"
  assert terminal["text"].message == "Completed: Text"


@pytest.mark.anyio
async def test_failing_sink_does_not_break_generation() -> None:
  orchestrator = ContentOrchestrator(_all_tasks())

  response = await orchestrator.generate_all("Lesson.", topic_id="1", language="en", sink=ExplodingSink())

  assert all(result.status == ArtifactStatus.SUCCESS for result in response.results.values())


@pytest.mark.anyio
async def test_missing_language_fails_every_task_without_generation() -> None:
  tasks = _all_tasks()
  orchestrator = ContentOrchestrator(tasks)

  response = await orchestrator.generate_all("Lesson.", topic_id="1")

  assert {result.error.code for result in response.results.values()} == {LANGUAGE_INVALID}
  assert all(task.contexts == [] for task in tasks)
  assert response.language is None


@pytest.mark.anyio
async def test_topic_metadata_fills_language_skills_and_title() -> None:
  topics = InMemoryTopicMetadataSource({"42": TopicMetadata(topic_id="42", name="JavaScript Closures", language="Hebrew", skills=("javascript",))})
  tasks = _all_tasks()
  orchestrator = ContentOrchestrator(tasks, topics=topics)

  response = await orchestrator.generate_all("closures text", topic_id="42")

  assert response.language == "he"
  ctx = tasks[0].contexts[0]
  assert ctx.title == "JavaScript Closures"
  assert ctx.skills == ("javascript",)
  assert ctx.raw_language == "Hebrew"


@pytest.mark.anyio
async def test_request_language_wins_over_topic_language() -> None:
  topics = InMemoryTopicMetadataSource({"42": TopicMetadata(topic_id="42", language="fr")})
  tasks = _all_tasks()

  response = await ContentOrchestrator(tasks, topics=topics).generate_all("Lesson text.", topic_id="42", language="es", skills=["python"])

  assert response.language == "es"
  assert tasks[0].contexts[0].skills == ("python",)
  assert tasks[0].contexts[0].title == "Lesson text."


@pytest.mark.anyio
async def test_topic_lookup_failure_is_tolerated() -> None:
  class BrokenTopics:
    async def get_topic(self, topic_id: str):
      raise ConnectionError("db down")

  response = await ContentOrchestrator(_all_tasks(), topics=BrokenTopics()).generate_all("Lesson.", topic_id="9", language="en")

  assert response.results[FormatKey.TEXT].status == ArtifactStatus.SUCCESS


@pytest.mark.anyio
async def test_escaped_exception_becomes_internal_error() -> None:
  tasks = [RecordingTask(FormatKey.TEXT), EscapingTask(FormatKey.CODE)]

  response = await ContentOrchestrator(tasks).generate_all("Lesson.", topic_id="1", language="en")

  assert response.results[FormatKey.TEXT].status == ArtifactStatus.SUCCESS
  assert response.results[FormatKey.CODE].error.code == INTERNAL_ERROR
  assert "escaped" in response.results[FormatKey.CODE].error.reason


@pytest.mark.anyio
@pytest.mark.parametrize("topic_id", [None, "", "   "])
async def test_topic_id_is_required(topic_id) -> None:
  with pytest.raises(OrchestrationError):
    await ContentOrchestrator(_all_tasks()).generate_all("Lesson.", topic_id=topic_id, language="en")


def test_duplicate_format_tasks_are_rejected() -> None:
  with pytest.raises(ValueError):
    ContentOrchestrator([RecordingTask(FormatKey.TEXT), RecordingTask(FormatKey.TEXT)])
