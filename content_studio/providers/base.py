"""Base interfaces for generative model clients."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass
class SimpleModelResponse:
  """Plain-text model response."""

  content: str
  usage: dict[str, int] | None = None


@dataclass
class StructuredModelResponse:
  """JSON model response."""

  content: dict[str, Any]
  usage: dict[str, int] | None = None


class AIModel(ABC):
  """Abstract base class for generative models used by the format tasks."""

  name: str

  @abstractmethod
  async def generate(self, prompt: str) -> SimpleModelResponse:
    """Generate a text response for the given prompt."""

  @abstractmethod
  async def generate_structured(self, prompt: str, schema: dict[str, Any]) -> StructuredModelResponse:
    """Generate output that conforms to the provided JSON schema."""

  async def generate_speech(self, text: str, voice: str | None = None) -> bytes:
    """Synthesize narration audio for ``text``."""
    raise RuntimeError(f"Speech synthesis is not supported by {self.name}.")

  @staticmethod
  def strip_json_fences(text: str) -> str:
    """Remove a surrounding Markdown code fence from a JSON reply."""
    stripped = text.strip()
    if stripped.startswith("```"):
      stripped = stripped.split("\n", 1)[1] if "\n" in stripped else ""
      if stripped.rstrip().endswith("```"):
        stripped = stripped.rstrip()[:-3]
    return stripped.strip()
