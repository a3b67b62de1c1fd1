"""Extraction orchestrator: build the prompt, try providers in order, parse JSON.

Providers are tried strictly one after another, primary first, and the first
parsable answer wins. Every per-provider failure is logged and turned into
"try the next one"; extract() itself always returns an ExtractionResult.
"""

import logging
import threading
import time
from typing import Any

from ai_extraction.config import settings
from ai_extraction.models import (
    ExtractionInput,
    ExtractionResult,
    OrganizationProviderConfig,
    ProviderConfig,
    ProviderInfo,
    ProviderSettingsUpdate,
)
from ai_extraction.parsing import normalize_fields, try_parse_json
from ai_extraction.prompts import build_prompt
from ai_extraction.provider_client import ProviderClient, TransportError
from ai_extraction.providers import ConfigurationError, confidence_for, get_adapter
from ai_extraction.schemas import ExtractionSchema, fields_for
from ai_extraction.store import ConfigStore, ProviderNotFound
from ai_extraction.usage import UsageThrottle

logger = logging.getLogger(__name__)

NO_PROVIDER = "none"
ERR_NO_PROVIDERS = "no providers configured"
ERR_ALL_FAILED = "all providers failed"
ERR_CANCELLED = "extraction cancelled"
ERR_CONFIG_UNAVAILABLE = "provider configuration unavailable"

CONNECTION_TEST_PROMPT = 'Say "OK" if you receive this.'


def mask_api_key(api_key: str | None) -> str | None:
    if not api_key:
        return None
    return "********" + api_key[-4:]


class ExtractionService:
    """Runs document extraction against an organization's configured providers."""

    def __init__(
        self,
        store: ConfigStore,
        client: ProviderClient | None = None,
        throttle: UsageThrottle | None = None,
    ):
        self._store = store
        self._client = client or ProviderClient()
        self._throttle = throttle or UsageThrottle(store)

    def close(self):
        self._client.close()

    def extract(
        self,
        organization_id: str,
        extraction_input: ExtractionInput,
        provider_id: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> ExtractionResult:
        """Extract structured fields from a document using the first provider that succeeds."""
        start = time.monotonic()

        try:
            providers = self._resolve_providers(organization_id, provider_id)
        except Exception:
            logger.exception("Could not load AI providers for org=%s", organization_id)
            return _failure(start, ERR_CONFIG_UNAVAILABLE)
        if not providers:
            logger.warning("No AI providers configured for org=%s", organization_id)
            return _failure(start, ERR_NO_PROVIDERS)

        schema = fields_for(extraction_input.document_type)
        prompt = build_prompt(extraction_input.document_type, schema)

        # GDPR: log sizes only, never document content
        logger.info(
            "Extracting: org=%s type=%s image=%d chars pdf=%s providers=%s",
            organization_id,
            extraction_input.document_type,
            len(extraction_input.image_base64 or ""),
            bool(extraction_input.pdf_url),
            [p.name for p in providers],
        )

        for config in providers:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Extraction cancelled before trying %s", config.name)
                return _failure(start, ERR_CANCELLED)

            if settings.ENFORCE_USAGE_LIMITS and self._throttle.over_limit(organization_id, config.id):
                logger.warning("Skipping %s: monthly usage limit reached for org=%s", config.name, organization_id)
                continue

            try:
                data = self._attempt(config, extraction_input, prompt, schema)
            except ConfigurationError as e:
                logger.error("AI provider %s misconfigured: %s", config.name, e)
                continue
            except TransportError as e:
                logger.error("AI extraction failed with %s: %s", config.name, e)
                continue
            except Exception:
                logger.exception("Unexpected error during extraction with %s", config.name)
                continue

            if data is None:
                logger.warning("AI provider %s returned no parsable JSON", config.name)
                continue

            result = ExtractionResult(
                success=True,
                data=normalize_fields(data, extraction_input.document_type),
                confidence=confidence_for(config.name),
                provider=config.name,
                model=get_adapter(config.name).model_for(config),
                processing_time_ms=_elapsed_ms(start),
            )
            self._throttle.increment(organization_id, config.id)
            logger.info(
                "Extraction succeeded with %s in %dms (%d fields)",
                config.name, result.processing_time_ms, len(result.data or {}),
            )
            return result

        return _failure(start, ERR_ALL_FAILED)

    def _resolve_providers(self, organization_id: str, provider_id: str | None) -> list[ProviderConfig]:
        providers = self._store.list_enabled_providers(organization_id)
        if not provider_id:
            return providers

        override = next((p for p in providers if p.id == provider_id), None)
        if override is None:
            logger.info("Requested provider %s not enabled for org=%s, using default order", provider_id, organization_id)
            return providers
        return [override] + [p for p in providers if p.id != provider_id]

    def _attempt(
        self,
        config: ProviderConfig,
        extraction_input: ExtractionInput,
        prompt: str,
        schema: ExtractionSchema,
    ) -> dict | None:
        adapter = get_adapter(config.name)
        request = adapter.build_request(config, extraction_input, prompt, schema)
        body = self._client.send(request)
        raw_text = adapter.extract_text(body)
        logger.info("AI provider %s response (%d chars)", config.name, len(raw_text))
        return try_parse_json(raw_text)

    # Maintenance operations

    def check_usage_limit(self, organization_id: str, provider_id: str) -> bool:
        return self._throttle.over_limit(organization_id, provider_id)

    def reset_monthly_usage(self) -> int:
        return self._throttle.reset_all()

    def usage_stats(self, organization_id: str) -> list[dict[str, Any]]:
        stats = []
        for record in self._store.list_configs(organization_id):
            info = self._store.get_provider_by_id(record.provider_id)
            stats.append({
                "provider": info.display_name if info else record.provider_id,
                "model": record.model_name,
                "usage_this_month": record.usage_this_month,
                "usage_limit": record.usage_limit,
                "is_enabled": record.is_enabled,
                "is_primary": record.is_primary,
            })
        return stats

    # Provider administration

    def available_providers(self) -> list[ProviderInfo]:
        return self._store.list_available_providers()

    def list_configs(self, organization_id: str) -> list[OrganizationProviderConfig]:
        return self._store.list_configs(organization_id)

    def configure_provider(
        self,
        organization_id: str,
        provider_id: str,
        update: ProviderSettingsUpdate,
    ) -> OrganizationProviderConfig:
        """Create or update an organization's provider config.

        Raises ProviderNotFound for an unknown provider and ConfigurationError
        when a cloud provider would be configured without an API key.
        """
        info = self._store.get_provider_by_id(provider_id)
        if info is None:
            raise ProviderNotFound(provider_id)

        existing = next(
            (c for c in self._store.list_configs(organization_id) if c.provider_id == provider_id),
            None,
        )
        has_key = update.api_key or (existing is not None and existing.api_key)
        if not info.is_local and not has_key:
            raise ConfigurationError(f"API key is required for {info.display_name}")

        return self._store.upsert_config(organization_id, provider_id, update)

    def test_connection(self, organization_id: str, provider_id: str) -> dict[str, Any]:
        """Send a short probe through the provider's adapter and report latency."""
        start = time.monotonic()
        config = self._store.get_provider_config(organization_id, provider_id)
        if config is None:
            raise ProviderNotFound(provider_id)

        probe = ExtractionInput(document_type="OTHER")
        try:
            adapter = get_adapter(config.name)
            body = self._client.send(adapter.build_request(config, probe, CONNECTION_TEST_PROMPT))
        except (ConfigurationError, TransportError) as e:
            logger.warning("Connection test failed for %s: %s", config.name, e)
            return {"success": False, "message": str(e), "latency_ms": _elapsed_ms(start)}

        if not adapter.extract_text(body):
            message = f"{config.display_name} responded without text output"
            return {"success": False, "message": message, "latency_ms": _elapsed_ms(start)}

        return {
            "success": True,
            "message": f"{config.display_name} connection successful",
            "latency_ms": _elapsed_ms(start),
        }


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _failure(start: float, error: str) -> ExtractionResult:
    return ExtractionResult(
        success=False,
        data=None,
        confidence=0.0,
        provider=NO_PROVIDER,
        model=NO_PROVIDER,
        processing_time_ms=_elapsed_ms(start),
        error=error,
    )
