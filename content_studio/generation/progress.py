"""Progress events and the sinks that deliver them."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal, Protocol

ProgressStatus = Literal["starting", "completed", "failed", "skipped"]
ProgressCallback = Callable[[str, str, str], None]


@dataclass(frozen=True)
class ProgressEvent:
  """Structured progress event emitted for one format task."""

  format_key: str
  status: ProgressStatus
  message: str
  timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

  def as_dict(self) -> dict[str, Any]:
    """Serialize the event for logging or transport."""
    return {"format": self.format_key, "status": self.status, "message": self.message, "timestamp": self.timestamp.isoformat()}


class ProgressSink(Protocol):
  """Receives progress events synchronously on the orchestrator's event loop."""

  def emit(self, event: ProgressEvent) -> None:
    """Deliver one event."""
    ...


class CallbackProgressSink:
  """Adapts a ``(format_key, status, message)`` callback."""

  def __init__(self, callback: ProgressCallback) -> None:
    self._callback = callback

  def emit(self, event: ProgressEvent) -> None:
    self._callback(event.format_key, event.status, event.message)


class QueueProgressSink:
  """Pushes events onto an ``asyncio.Queue`` for a concurrent consumer."""

  def __init__(self, queue: asyncio.Queue[ProgressEvent] | None = None) -> None:
    self.queue: asyncio.Queue[ProgressEvent] = queue if queue is not None else asyncio.Queue()

  def emit(self, event: ProgressEvent) -> None:
    self.queue.put_nowait(event)

  def drain(self) -> list[ProgressEvent]:
    """Return every event queued so far without waiting."""
    events: list[ProgressEvent] = []
    while not self.queue.empty():
      events.append(self.queue.get_nowait())
    return events


class LoggingProgressSink:
  """Writes events to a logger."""

  def __init__(self, logger: logging.Logger | None = None) -> None:
    self._logger = logger or logging.getLogger(__name__)

  def emit(self, event: ProgressEvent) -> None:
    level = logging.WARNING if event.status == "failed" else logging.INFO
    self._logger.log(level, "[%s] %s: %s", event.format_key, event.status, event.message)


class NullProgressSink:
  """Discards events."""

  def emit(self, event: ProgressEvent) -> None:
    return None


class CompositeProgressSink:
  """Fans one event out to several sinks, isolating each from the others' failures."""

  def __init__(self, sinks: Sequence[ProgressSink]) -> None:
    self._sinks = tuple(sinks)

  def emit(self, event: ProgressEvent) -> None:
    for sink in self._sinks:
      try:
        sink.emit(event)
      except Exception:  # noqa: BLE001
        logging.getLogger(__name__).warning("Progress sink %s failed for format=%s status=%s", type(sink).__name__, event.format_key, event.status, exc_info=True)


def build_progress_sink(on_progress: ProgressCallback | None = None, sink: ProgressSink | None = None) -> ProgressSink:
  """Combine an optional callback and an optional sink into one sink."""
  sinks: list[ProgressSink] = []
  if on_progress is not None:
    sinks.append(CallbackProgressSink(on_progress))
  if sink is not None:
    sinks.append(sink)
  if not sinks:
    return NullProgressSink()
  return CompositeProgressSink(sinks)
