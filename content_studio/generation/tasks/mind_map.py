"""Concept map as a node/edge graph."""

from __future__ import annotations

from typing import Any

from content_studio.generation.contracts import ArtifactPayload, ArtifactResult, FormatKey, TaskContext
from content_studio.generation.language import LanguageGate, LanguageProfile
from content_studio.generation.prompts import mind_map_prompt
from content_studio.generation.tasks.base import FormatTask
from content_studio.providers.base import AIModel
from content_studio.providers.errors import PROVIDER_ERROR, ProviderError

MIND_MAP_SCHEMA: dict[str, Any] = {
  "type": "object",
  "properties": {
    "nodes": {
      "type": "array",
      "items": {"type": "object", "properties": {"id": {"type": "string"}, "label": {"type": "string"}, "group": {"type": "string"}}, "required": ["id", "label"]},
    },
    "edges": {
      "type": "array",
      "items": {"type": "object", "properties": {"source": {"type": "string"}, "target": {"type": "string"}, "label": {"type": "string"}}, "required": ["source", "target"]},
    },
  },
  "required": ["nodes", "edges"],
}


def clean_graph(raw: dict[str, Any]) -> dict[str, list[dict[str, Any]]]:
  """Drop malformed nodes and any edge that points at a missing node."""
  nodes = [node for node in raw.get("nodes") or [] if isinstance(node, dict) and node.get("id") and node.get("label")]
  node_ids = {str(node["id"]) for node in nodes}
  edges = [edge for edge in raw.get("edges") or [] if isinstance(edge, dict) and str(edge.get("source")) in node_ids and str(edge.get("target")) in node_ids]
  return {"nodes": nodes, "edges": edges}


class MindMapTask(FormatTask):
  format_key = FormatKey.MIND_MAP

  def __init__(self, model: AIModel | None, *, language_gate: LanguageGate | None = None) -> None:
    super().__init__(language_gate=language_gate)
    self._model = model

  @property
  def configured(self) -> bool:
    return self._model is not None

  async def _generate(self, ctx: TaskContext, language: LanguageProfile) -> ArtifactResult:
    assert self._model is not None
    response = await self._model.generate_structured(mind_map_prompt(ctx, language.normalized_code or ""), MIND_MAP_SCHEMA)
    graph = clean_graph(response.content)
    if not graph["nodes"]:
      raise ProviderError("mind map response contained no nodes", code=PROVIDER_ERROR, detail=response.content)
    metadata = {"model": self._model.name, "language": language.normalized_code, "node_count": len(graph["nodes"]), "edge_count": len(graph["edges"])}
    return ArtifactResult.success(self.format_key, ArtifactPayload(content=graph, metadata=metadata))
