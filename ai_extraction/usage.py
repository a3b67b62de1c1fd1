"""Monthly usage counters per (organization, provider) with optional caps."""

import logging

from ai_extraction.store import ConfigStore

logger = logging.getLogger(__name__)


class UsageThrottle:
    def __init__(self, store: ConfigStore):
        self._store = store

    def increment(self, organization_id: str, provider_id: str) -> None:
        """Record one successful call. Best-effort: failures are logged, never raised."""
        try:
            count = self._store.increment_usage(organization_id, provider_id)
            logger.debug("Usage for org=%s provider=%s is now %d", organization_id, provider_id, count)
        except Exception:
            logger.exception("Failed to increment AI usage: org=%s provider=%s", organization_id, provider_id)

    def over_limit(self, organization_id: str, provider_id: str) -> bool:
        """True only when a cap is configured and the counter has reached it.

        A failed lookup counts as not over the limit.
        """
        try:
            counter = self._store.get_usage(organization_id, provider_id)
        except Exception:
            logger.exception("Failed to read AI usage: org=%s provider=%s", organization_id, provider_id)
            return False
        if counter is None or not counter.usage_limit:
            return False
        return counter.usage_this_month >= counter.usage_limit

    def reset_all(self) -> int:
        """Zero every counter. Returns the number of counters reset."""
        count = self._store.reset_usage()
        logger.info("Reset monthly AI usage for %d provider configs", count)
        return count
