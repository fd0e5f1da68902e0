"""Multi-format generation pipeline."""

from content_studio.generation.contracts import ArtifactResult, ArtifactStatus, FormatKey, GenerationResponse
from content_studio.generation.orchestrator import ContentOrchestrator, OrchestrationError

__all__ = ["ArtifactResult", "ArtifactStatus", "ContentOrchestrator", "FormatKey", "GenerationResponse", "OrchestrationError"]
