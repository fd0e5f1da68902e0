"""External provider clients."""

from content_studio.providers.errors import PermanentProviderError, ProviderError, ProviderNotConfiguredError, ResourceNotFoundError, TransientProviderError
from content_studio.providers.jobs import AsyncJobClient, JobHandle, JobOutcome, JobState
from content_studio.providers.resources import ResourceCandidate, ResourceCatalogCache

__all__ = [
  "AsyncJobClient",
  "JobHandle",
  "JobOutcome",
  "JobState",
  "PermanentProviderError",
  "ProviderError",
  "ProviderNotConfiguredError",
  "ResourceCandidate",
  "ResourceCatalogCache",
  "ResourceNotFoundError",
  "TransientProviderError",
]
