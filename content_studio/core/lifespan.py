import logging
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager

import httpx

from content_studio.config import Settings, get_settings
from content_studio.factory import build_orchestrator
from content_studio.generation.orchestrator import ContentOrchestrator
from content_studio.providers.gamma import build_gamma_client, build_gamma_http_client
from content_studio.providers.gemini import build_gemini_model
from content_studio.providers.heygen import build_heygen_client, build_heygen_http_client
from content_studio.providers.resources import ResourceCatalogCache
from content_studio.storage.integrity import IntegritySigner
from content_studio.storage.persistor import ResultPersistor
from content_studio.storage.storage_client import ArtifactStore, build_storage_client
from content_studio.storage.topics import TopicMetadataSource


async def _build_store(settings: Settings, logger: logging.Logger) -> ArtifactStore | None:
  if not settings.artifact_bucket:
    logger.warning("CONTENT_STUDIO_ARTIFACT_BUCKET is empty; artifacts will keep provider URLs")
    return None
  try:
    storage_client = build_storage_client(settings)
    await storage_client.ensure_bucket()
    logger.info("Artifact bucket ready: %s", storage_client.bucket_name)
    return storage_client
  except Exception as exc:  # noqa: BLE001
    logger.warning("Artifact storage unavailable; artifacts will keep provider URLs: %s", exc)
    return None


@asynccontextmanager
async def studio_lifespan(settings: Settings | None = None, *, topics: TopicMetadataSource | None = None, store: ArtifactStore | None = None) -> AsyncIterator[ContentOrchestrator]:
  """Own the provider HTTP clients and the resource catalog for one process."""
  settings = settings or get_settings()
  logger = logging.getLogger("content_studio.core.lifespan")

  async with AsyncExitStack() as stack:
    download_http = await stack.enter_async_context(httpx.AsyncClient(timeout=settings.http_timeout_seconds))

    heygen = None
    if settings.heygen_api_key:
      heygen_http = await stack.enter_async_context(build_heygen_http_client(settings))
      heygen = build_heygen_client(settings, heygen_http)
    else:
      logger.warning("HEYGEN_API_KEY is not set; avatar video will be skipped")

    gamma = None
    if settings.gamma_api_key:
      gamma_http = await stack.enter_async_context(build_gamma_http_client(settings))
      gamma = build_gamma_client(settings, gamma_http)
    else:
      logger.warning("GAMMA_API_KEY is not set; presentations will be skipped")

    model = build_gemini_model(settings)
    if model is None:
      logger.warning("GEMINI_API_KEY is not set; text, audio, mind map, and code will be skipped")

    # One catalog per process, shared by every request.
    catalog = ResourceCatalogCache(heygen)
    artifact_store = store if store is not None else await _build_store(settings, logger)
    signer = IntegritySigner(settings.signing_private_key)
    if not signer.signing_enabled:
      logger.info("CONTENT_STUDIO_PRIVATE_KEY is not set; artifacts will carry hashes without signatures")
    persistor = ResultPersistor(download_http, artifact_store, signer, object_prefix=settings.artifact_object_prefix)

    orchestrator = build_orchestrator(settings, model=model, gamma=gamma, heygen=heygen, catalog=catalog, persistor=persistor, topics=topics)
    logger.info("Content studio ready environment=%s formats=%s", settings.environment, [key.value for key in orchestrator.format_keys])
    yield orchestrator
