"""Wiring from settings and provider clients to a ready orchestrator."""

from __future__ import annotations

from content_studio.config import Settings
from content_studio.generation.language import LanguageGate
from content_studio.generation.orchestrator import ContentOrchestrator
from content_studio.generation.tasks import AudioTask, AvatarVideoTask, CodeTask, MindMapTask, PresentationTask, TextTask
from content_studio.providers.base import AIModel
from content_studio.providers.gamma import GammaClient
from content_studio.providers.heygen import HeyGenClient
from content_studio.providers.resources import ResourceCatalogCache
from content_studio.providers.voices import VoiceResolver
from content_studio.storage.persistor import ResultPersistor
from content_studio.storage.topics import TopicMetadataSource


def build_orchestrator(
  settings: Settings,
  *,
  model: AIModel | None,
  gamma: GammaClient | None,
  heygen: HeyGenClient | None,
  catalog: ResourceCatalogCache,
  persistor: ResultPersistor,
  topics: TopicMetadataSource | None = None,
) -> ContentOrchestrator:
  """Build the six format tasks; a missing provider yields a task that skips itself."""
  gate = LanguageGate()
  voices = VoiceResolver(default_voice_id=settings.heygen_default_voice_id, overrides=settings.heygen_voices)
  tasks = [
    TextTask(model, language_gate=gate),
    AudioTask(model, persistor=persistor, voices=voices, language_gate=gate),
    PresentationTask(gamma, persistor=persistor, language_gate=gate),
    MindMapTask(model, language_gate=gate),
    CodeTask(model, language_gate=gate),
    AvatarVideoTask(heygen, catalog=catalog, persistor=persistor, voices=voices, avatar_id=settings.avatar_id, template_id=settings.heygen_template_id, template_variables=settings.heygen_template_variables, language_gate=gate),
  ]
  return ContentOrchestrator(tasks, topics=topics, language_gate=gate)
