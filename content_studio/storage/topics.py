"""Topic metadata lookups used to enrich generation requests."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TopicMetadata:
  """Stored attributes of a lesson topic."""

  topic_id: str
  name: str | None = None
  description: str | None = None
  language: str | None = None
  skills: tuple[str, ...] = ()


class TopicMetadataSource(Protocol):
  """Read access to stored topic metadata."""

  async def get_topic(self, topic_id: str) -> TopicMetadata | None:
    """Return the topic, or ``None`` when it does not exist."""
    ...


class NullTopicMetadataSource:
  """Source used when no topic store is wired in."""

  async def get_topic(self, topic_id: str) -> TopicMetadata | None:
    logger.debug("No topic store configured; topic_id=%s has no metadata", topic_id)
    return None


class InMemoryTopicMetadataSource:
  """Dictionary-backed topic source for scripts and tests."""

  def __init__(self, topics: Mapping[str, TopicMetadata] | None = None) -> None:
    self._topics: dict[str, TopicMetadata] = dict(topics or {})

  def add(self, topic: TopicMetadata) -> None:
    self._topics[topic.topic_id] = topic

  async def get_topic(self, topic_id: str) -> TopicMetadata | None:
    return self._topics.get(topic_id)
