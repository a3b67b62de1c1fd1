"""Pydantic models shared by the extraction engine and its stores."""

from typing import Any

from pydantic import BaseModel, Field, model_validator


class ProviderConfig(BaseModel):
    """Snapshot of one enabled provider for an organization."""

    model_config = {"frozen": True}

    id: str
    name: str
    display_name: str
    base_url: str | None = None
    api_key: str | None = None
    model_name: str | None = None
    is_local: bool = False
    max_tokens: int | None = None
    temperature: float | None = None


class ProviderInfo(BaseModel):
    """Catalog entry for a provider, independent of any organization."""

    id: str
    name: str
    display_name: str
    base_url: str | None = None
    is_local: bool = False
    is_active: bool = True
    capabilities: list[str] = []
    supported_document_types: list[str] = []


class ExtractionInput(BaseModel):
    model_config = {"frozen": True}

    document_type: str
    image_base64: str | None = None
    pdf_url: str | None = None
    mime_type: str = "image/jpeg"


class ExtractionResult(BaseModel):
    """Outcome of one extraction call. Callers branch on ``success``."""

    success: bool
    data: dict[str, Any] | None = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    provider: str
    model: str
    processing_time_ms: int
    error: str | None = None

    @model_validator(mode="after")
    def _check_outcome(self) -> "ExtractionResult":
        if self.success and self.data is None:
            raise ValueError("successful result must carry data")
        if not self.success:
            if self.confidence != 0:
                raise ValueError("failed result must have zero confidence")
            if not self.error:
                raise ValueError("failed result must carry an error")
        return self


class UsageCounter(BaseModel):
    organization_id: str
    provider_id: str
    usage_this_month: int = 0
    usage_limit: int | None = None


class ProviderSettingsUpdate(BaseModel):
    """Partial update applied by ``upsert_config``; unset fields are left alone."""

    api_key: str | None = None
    model_name: str | None = None
    is_enabled: bool | None = None
    is_primary: bool | None = None
    max_tokens: int | None = Field(default=None, gt=0)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    usage_limit: int | None = Field(default=None, ge=0)
    settings: dict[str, Any] | None = None


class OrganizationProviderConfig(BaseModel):
    """Stored per-organization configuration of one provider."""

    organization_id: str
    provider_id: str
    api_key: str | None = None
    model_name: str | None = None
    is_enabled: bool = True
    is_primary: bool = False
    max_tokens: int | None = None
    temperature: float | None = None
    usage_this_month: int = 0
    usage_limit: int | None = None
    settings: dict[str, Any] = {}
