"""FastAPI AI extraction service.

Thin HTTP shell over ExtractionService: provider administration, usage
maintenance and document extraction.
GDPR: No image logging, no disk writes. Documents are processed in-memory only.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ai_extraction.config import settings
from ai_extraction.extraction import ExtractionService, mask_api_key
from ai_extraction.models import ExtractionInput, ExtractionResult, ProviderSettingsUpdate
from ai_extraction.providers import ConfigurationError
from ai_extraction.store import InMemoryConfigStore, ProviderNotFound

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_service: ExtractionService | None = None


def get_service() -> ExtractionService:
    global _service
    if _service is None:
        _service = ExtractionService(InMemoryConfigStore())
    return _service


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_service()
    logger.info("AI extraction service started")

    yield

    global _service
    if _service is not None:
        _service.close()
        _service = None


app = FastAPI(title="AI Extraction Service", version="1.0.0", lifespan=lifespan)


class ExtractRequest(BaseModel):
    organization_id: str
    document_type: str
    image_base64: str | None = None
    pdf_url: str | None = None
    mime_type: str = "image/jpeg"
    provider_id: str | None = None


class ConfigureRequest(ProviderSettingsUpdate):
    provider_id: str


def _masked(config) -> dict:
    data = config.model_dump()
    data["api_key"] = mask_api_key(config.api_key)
    return data


@app.post("/api/v1/ai/extract", response_model=ExtractionResult)
def extract(req: ExtractRequest):
    """Extract structured fields from a document image or PDF."""
    if not req.document_type or not (req.image_base64 or req.pdf_url):
        return JSONResponse(
            status_code=400,
            content={"detail": "Document type and content (image_base64 or pdf_url) are required"},
        )

    extraction_input = ExtractionInput(
        document_type=req.document_type,
        image_base64=req.image_base64,
        pdf_url=req.pdf_url,
        mime_type=req.mime_type,
    )
    return get_service().extract(req.organization_id, extraction_input, provider_id=req.provider_id)


@app.get("/api/v1/ai/providers")
def available_providers():
    return {"providers": [p.model_dump() for p in get_service().available_providers()]}


@app.get("/api/v1/ai/configs/{organization_id}")
def organization_configs(organization_id: str):
    configs = get_service().list_configs(organization_id)
    return {"configs": [_masked(c) for c in configs]}


@app.post("/api/v1/ai/configs/{organization_id}", status_code=201)
def configure_provider(organization_id: str, req: ConfigureRequest):
    update = ProviderSettingsUpdate(**req.model_dump(exclude={"provider_id"}))
    try:
        config = get_service().configure_provider(organization_id, req.provider_id, update)
    except ProviderNotFound:
        return JSONResponse(status_code=404, content={"detail": "AI provider not found"})
    except ConfigurationError as e:
        return JSONResponse(status_code=400, content={"detail": str(e)})
    return {"config": _masked(config)}


@app.post("/api/v1/ai/configs/{organization_id}/{provider_id}/test")
def check_connection(organization_id: str, provider_id: str):
    try:
        return get_service().test_connection(organization_id, provider_id)
    except ProviderNotFound:
        return JSONResponse(status_code=404, content={"detail": "AI configuration not found"})


@app.get("/api/v1/ai/usage/{organization_id}")
def usage_stats(organization_id: str):
    return {"usage": get_service().usage_stats(organization_id)}


@app.post("/api/v1/ai/usage/reset")
def reset_usage():
    return {"reset": get_service().reset_monthly_usage()}


@app.get("/health")
async def health():
    """Return service status."""
    return {"status": "healthy", "providers": len(get_service().available_providers())}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
