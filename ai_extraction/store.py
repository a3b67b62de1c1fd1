"""Provider configuration and usage store.

ConfigStore is the interface the extraction engine consumes; persistence of
organization configs lives behind it. InMemoryConfigStore is the process-local
implementation used by the service shell and the tests.
"""

import logging
import threading
from typing import Protocol

from ai_extraction.models import (
    OrganizationProviderConfig,
    ProviderConfig,
    ProviderInfo,
    ProviderSettingsUpdate,
    UsageCounter,
)
from ai_extraction.providers import PROVIDER_CATALOG

logger = logging.getLogger(__name__)


class ProviderNotFound(KeyError):
    """No catalog entry (or organization config) for the given provider id."""


class ConfigStore(Protocol):
    def list_available_providers(self) -> list[ProviderInfo]: ...

    def get_provider_by_id(self, provider_id: str) -> ProviderInfo | None: ...

    def list_enabled_providers(self, organization_id: str) -> list[ProviderConfig]: ...

    def get_provider_config(self, organization_id: str, provider_id: str) -> ProviderConfig | None: ...

    def list_configs(self, organization_id: str) -> list[OrganizationProviderConfig]: ...

    def upsert_config(
        self, organization_id: str, provider_id: str, update: ProviderSettingsUpdate
    ) -> OrganizationProviderConfig: ...

    def delete_config(self, organization_id: str, provider_id: str) -> None: ...

    def increment_usage(self, organization_id: str, provider_id: str) -> int: ...

    def get_usage(self, organization_id: str, provider_id: str) -> UsageCounter | None: ...

    def reset_usage(self) -> int: ...


class InMemoryConfigStore:
    """Thread-safe in-memory ConfigStore.

    Organization configs keep insertion order, which is the order used after
    the primary provider when listing enabled providers.
    """

    def __init__(self, catalog: list[ProviderInfo] | None = None):
        self._catalog: dict[str, ProviderInfo] = {p.id: p for p in (catalog or PROVIDER_CATALOG)}
        self._configs: dict[tuple[str, str], OrganizationProviderConfig] = {}
        self._lock = threading.Lock()

    def list_available_providers(self) -> list[ProviderInfo]:
        return sorted((p for p in self._catalog.values() if p.is_active), key=lambda p: p.name)

    def get_provider_by_id(self, provider_id: str) -> ProviderInfo | None:
        return self._catalog.get(provider_id)

    def list_enabled_providers(self, organization_id: str) -> list[ProviderConfig]:
        with self._lock:
            records = [
                r for (org, _), r in self._configs.items()
                if org == organization_id and r.is_enabled
            ]
        # Stable sort: primary first, the rest in stored order.
        records.sort(key=lambda r: not r.is_primary)
        return [self._snapshot(r) for r in records]

    def get_provider_config(self, organization_id: str, provider_id: str) -> ProviderConfig | None:
        with self._lock:
            record = self._configs.get((organization_id, provider_id))
        if record is None or not record.is_enabled:
            return None
        return self._snapshot(record)

    def list_configs(self, organization_id: str) -> list[OrganizationProviderConfig]:
        with self._lock:
            records = [r.model_copy() for (org, _), r in self._configs.items() if org == organization_id]
        records.sort(key=lambda r: not r.is_primary)
        return records

    def upsert_config(
        self, organization_id: str, provider_id: str, update: ProviderSettingsUpdate
    ) -> OrganizationProviderConfig:
        if provider_id not in self._catalog:
            raise ProviderNotFound(provider_id)

        changes = update.model_dump(exclude_none=True)
        with self._lock:
            if update.is_primary:
                for (org, pid), record in self._configs.items():
                    if org == organization_id and pid != provider_id:
                        record.is_primary = False

            key = (organization_id, provider_id)
            existing = self._configs.get(key)
            if existing is None:
                record = OrganizationProviderConfig(
                    organization_id=organization_id,
                    provider_id=provider_id,
                    **changes,
                )
                logger.info("Created AI config: org=%s provider=%s", organization_id, provider_id)
            else:
                record = existing.model_copy(update=changes)
                logger.info("Updated AI config: org=%s provider=%s", organization_id, provider_id)
            self._configs[key] = record
            return record.model_copy()

    def delete_config(self, organization_id: str, provider_id: str) -> None:
        with self._lock:
            if self._configs.pop((organization_id, provider_id), None) is None:
                raise ProviderNotFound(provider_id)

    def increment_usage(self, organization_id: str, provider_id: str) -> int:
        """Atomically add one call to the monthly counter and return the new value."""
        with self._lock:
            record = self._configs.get((organization_id, provider_id))
            if record is None:
                raise ProviderNotFound(provider_id)
            record.usage_this_month += 1
            return record.usage_this_month

    def get_usage(self, organization_id: str, provider_id: str) -> UsageCounter | None:
        with self._lock:
            record = self._configs.get((organization_id, provider_id))
            if record is None:
                return None
            return UsageCounter(
                organization_id=organization_id,
                provider_id=provider_id,
                usage_this_month=record.usage_this_month,
                usage_limit=record.usage_limit,
            )

    def reset_usage(self) -> int:
        with self._lock:
            for record in self._configs.values():
                record.usage_this_month = 0
            return len(self._configs)

    def _snapshot(self, record: OrganizationProviderConfig) -> ProviderConfig:
        info = self._catalog[record.provider_id]
        return ProviderConfig(
            id=info.id,
            name=info.name,
            display_name=info.display_name,
            base_url=info.base_url,
            api_key=record.api_key,
            model_name=record.model_name,
            is_local=info.is_local,
            max_tokens=record.max_tokens,
            temperature=record.temperature,
        )
