"""Process-wide catalog of presenter resources offered by the video provider."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any, Protocol

from content_studio.providers.errors import ProviderError

logger = logging.getLogger(__name__)

PREFERRED_STYLES: tuple[str, ...] = ("professional", "neutral", "natural")
PREFERRED_GENDERS: frozenset[str] = frozenset({"female", "neutral"})
DENYLIST: tuple[str, ...] = ("child", "cartoon", "fantasy", "robot", "dramatic", "character")
STYLE_BONUS = 20
GENDER_BONUS = 10
DENYLIST_PENALTY = -100


@dataclass(frozen=True)
class ResourceCandidate:
  """One selectable presenter resource from the provider catalog."""

  id: str
  name: str | None = None
  avatar_name: str | None = None
  gender: str | None = None
  style: str | None = None
  visible: bool = True
  categories: tuple[str, ...] = ()
  score: int | None = None

  @classmethod
  def from_payload(cls, raw: Any) -> ResourceCandidate | None:
    """Build a candidate from one catalog entry, or ``None`` when it has no id."""
    if isinstance(raw, str):
      return cls(id=raw) if raw.strip() else None
    if not isinstance(raw, Mapping):
      return None

    resource_id = raw.get("avatar_id") or raw.get("id")
    if not resource_id:
      return None

    visible = True
    for key in ("is_public", "public", "visible"):
      if key in raw and raw[key] is False:
        visible = False

    categories = raw.get("categories") or raw.get("tags") or ()
    if isinstance(categories, str):
      categories = (categories,)
    return cls(
      id=str(resource_id),
      name=_lower_or_none(raw.get("name") or raw.get("avatar_name")),
      avatar_name=_lower_or_none(raw.get("avatar_name")),
      gender=_lower_or_none(raw.get("gender")),
      style=_lower_or_none(raw.get("style") or raw.get("avatar_style")),
      visible=visible,
      categories=tuple(str(category).lower() for category in categories if category),
    )


def _lower_or_none(value: Any) -> str | None:
  if value is None:
    return None
  text = str(value).strip().lower()
  return text or None


# Listing responses nest the collection differently across API versions.
ShapeMatcher = Callable[[Any], Sequence[Any] | None]


def match_nested_data_avatars(body: Any) -> Sequence[Any] | None:
  """``{"data": {"avatars": [...]}}``"""
  if isinstance(body, Mapping) and isinstance(body.get("data"), Mapping):
    avatars = body["data"].get("avatars")
    if isinstance(avatars, list):
      return avatars
  return None


def match_data_array(body: Any) -> Sequence[Any] | None:
  """``{"data": [...]}``"""
  if isinstance(body, Mapping) and isinstance(body.get("data"), list):
    return body["data"]
  return None


def match_root_avatars(body: Any) -> Sequence[Any] | None:
  """``{"avatars": [...]}``"""
  if isinstance(body, Mapping) and isinstance(body.get("avatars"), list):
    return body["avatars"]
  return None


def match_root_array(body: Any) -> Sequence[Any] | None:
  """``[...]``"""
  if isinstance(body, list):
    return body
  return None


DEFAULT_SHAPE_MATCHERS: tuple[ShapeMatcher, ...] = (match_nested_data_avatars, match_data_array, match_root_avatars, match_root_array)


def extract_candidates(body: Any, matchers: Sequence[ShapeMatcher] = DEFAULT_SHAPE_MATCHERS) -> list[ResourceCandidate]:
  """Return candidates from the first matcher that yields a non-empty collection."""
  for matcher in matchers:
    collection = matcher(body)
    if not collection:
      continue
    candidates = [candidate for candidate in (ResourceCandidate.from_payload(item) for item in collection) if candidate is not None]
    if candidates:
      return candidates
  return []


def score_candidate(candidate: ResourceCandidate) -> int:
  """Score a candidate for fallback selection."""
  score = 0
  if candidate.style and any(style in candidate.style for style in PREFERRED_STYLES):
    score += STYLE_BONUS
  if candidate.gender in PREFERRED_GENDERS:
    score += GENDER_BONUS

  tokens = [*candidate.categories, *(name for name in (candidate.name, candidate.avatar_name) if name)]
  if any(word in token for token in tokens for word in DENYLIST):
    score += DENYLIST_PENALTY
  return score


class CatalogSource(Protocol):
  """Remote listing used to populate the catalog."""

  listing_paths: Sequence[str]

  async def fetch_listing(self, path: str) -> Any:
    """Return the decoded listing body for one path, raising ``ProviderError`` on failure."""
    ...


class ResourceCatalogCache:
  """Lazily loaded, process-wide view of the provider's presenter catalog.

  The first caller loads the catalog under a lock; later reads are lock-free.
  When no listing can be obtained the cache is *unavailable*: every id is
  treated as valid and no fallback is offered, so generation proceeds and the
  provider itself reports a missing resource.
  """

  def __init__(self, source: CatalogSource | None, *, matchers: Sequence[ShapeMatcher] = DEFAULT_SHAPE_MATCHERS) -> None:
    self._source = source
    self._matchers = tuple(matchers)
    self._lock = asyncio.Lock()
    self._loaded = False
    self._candidates: tuple[ResourceCandidate, ...] = ()

  @property
  def loaded(self) -> bool:
    return self._loaded

  @property
  def available(self) -> bool:
    """Return True when a non-empty catalog was fetched."""
    return bool(self._candidates)

  @property
  def candidates(self) -> tuple[ResourceCandidate, ...]:
    return self._candidates

  def clear(self) -> None:
    """Drop the cached catalog so the next read refetches it."""
    self._loaded = False
    self._candidates = ()

  async def ensure_loaded(self) -> None:
    """Fetch the catalog once per process (or once after ``clear``)."""
    if self._loaded:
      return
    async with self._lock:
      if self._loaded:
        return
      self._candidates = await self._fetch()
      self._loaded = True

  async def is_valid(self, resource_id: str) -> bool:
    """Return True when the id is listed, or when the catalog could not be fetched."""
    await self.ensure_loaded()
    if not self._candidates:
      logger.info("Resource catalog unavailable; proceeding unvalidated resource_id=%s", resource_id)
      return True
    return any(candidate.id == resource_id for candidate in self._candidates)

  async def fallback(self, exclude_id: str | None = None) -> ResourceCandidate | None:
    """Return the best-scoring visible candidate other than ``exclude_id``, or ``None``."""
    await self.ensure_loaded()
    best: ResourceCandidate | None = None
    for candidate in self._candidates:
      if not candidate.visible or candidate.id == exclude_id:
        continue
      score = score_candidate(candidate)
      if score <= 0:
        continue
      # Strict comparison keeps the earliest catalog entry on ties.
      if best is None or score > (best.score or 0):
        best = replace(candidate, score=score)

    if best is None:
      logger.warning("No eligible fallback resource exclude_id=%s catalog_size=%s", exclude_id, len(self._candidates))
    else:
      logger.info("Selected fallback resource id=%s score=%s", best.id, best.score)
    return best

  async def _fetch(self) -> tuple[ResourceCandidate, ...]:
    if self._source is None:
      return ()

    for path in self._source.listing_paths:
      try:
        body = await self._source.fetch_listing(path)
      except ProviderError as exc:
        logger.warning("Resource listing failed path=%s status_code=%s: %s", path, exc.status_code, exc.message)
        continue
      except Exception as exc:  # noqa: BLE001
        logger.warning("Resource listing raised unexpectedly path=%s: %s", path, exc, exc_info=True)
        continue

      candidates = extract_candidates(body, self._matchers)
      if candidates:
        logger.info("Loaded %s resources from %s", len(candidates), path)
        return tuple(candidates)
      logger.info("Resource listing at %s returned no usable entries", path)

    logger.warning("No resource listing endpoint produced a catalog; resource validation is disabled")
    return ()
