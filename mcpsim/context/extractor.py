"""Context extractor: provider -> extraction routine -> time-bounded cache.

Results are cached under (provider_id, key) with a fixed TTL. Freshness is
checked when an entry is read; nothing sweeps expired entries.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta

from mcpsim.config import DEFAULT_CACHE_TTL
from mcpsim.context.sources import DEFAULT_ROUTINES, ExtractionRoutine
from mcpsim.models import CacheItem, ContextExtractionResult
from mcpsim.storage.repository import Repository

logger = logging.getLogger(__name__)


class ContextExtractor:
    """Pulls context from providers and serves it back from the cache."""

    def __init__(self, repo: Repository, ttl: int = DEFAULT_CACHE_TTL) -> None:
        self._repo = repo
        self._ttl = ttl
        self._routines: dict[str, ExtractionRoutine] = dict(DEFAULT_ROUTINES)

    def register_extractor(self, provider_type: str, routine: ExtractionRoutine) -> None:
        self._routines[provider_type] = routine

    def provider_types(self) -> list[str]:
        return sorted(self._routines)

    async def extract_context(self, provider_id: int) -> list[ContextExtractionResult]:
        """Run the provider's routine and cache every result.

        Raises LookupError for an unknown provider or provider type and
        ValueError for a disabled provider.
        """
        provider = self._repo.get_provider(provider_id)
        if provider is None:
            raise LookupError(f"Provider with ID {provider_id} not found")
        if not provider.enabled:
            raise ValueError(f"Provider {provider.name} is disabled")

        routine = self._routines.get(provider.type)
        if routine is None:
            raise LookupError(f"No extractor available for provider type: {provider.type}")

        results = await routine(provider)

        expires_at = datetime.now() + timedelta(seconds=self._ttl)
        for result in results:
            self._repo.upsert_cache_item(
                provider_id=result.provider_id,
                key=result.key,
                value=result.value,
                metadata=result.metadata,
                expires_at=expires_at,
            )

        logger.info(f"Extracted {len(results)} context item(s) from provider {provider.name}")
        return results

    async def extract_all_contexts(self) -> list[ContextExtractionResult]:
        """Extract every enabled provider in turn; one failure does not stop the rest."""
        all_results: list[ContextExtractionResult] = []
        for provider in self._repo.get_providers():
            if not provider.enabled:
                continue
            try:
                all_results.extend(await self.extract_context(provider.id))
            except Exception as e:
                logger.error(f"Failed to extract context from provider {provider.name}: {e}")
        return all_results

    async def get_cached_context(self, key: str) -> CacheItem | None:
        """Return the cached entry for key only while it is still fresh."""
        item = self._repo.get_cache_item(key)
        if item is not None and item.is_fresh():
            return item
        return None

    async def search_context(self, query: str) -> list[ContextExtractionResult]:
        """Case-insensitive substring search over cached values, in cache order."""
        if not isinstance(query, str) or not query:
            raise ValueError("Search query must be a non-empty string")

        needle = query.lower()
        results: list[ContextExtractionResult] = []
        for item in self._repo.get_cache_items():
            haystack = json.dumps(item.value, default=str).lower()
            if needle in haystack:
                results.append(ContextExtractionResult.from_cache_item(item))
        return results
