"""Shared test fixtures for the AI extraction tests."""

import base64
import json

import pytest

from ai_extraction.models import ExtractionInput, ProviderConfig, ProviderSettingsUpdate
from ai_extraction.store import InMemoryConfigStore

GEMINI_ID = "550e8400-e29b-41d4-a716-446655440001"
CLAUDE_ID = "550e8400-e29b-41d4-a716-446655440002"
OPENAI_ID = "550e8400-e29b-41d4-a716-446655440003"
DEEPSEEK_ID = "550e8400-e29b-41d4-a716-446655440004"
OLLAMA_ID = "550e8400-e29b-41d4-a716-446655440005"

ORG = "org-1"


@pytest.fixture
def image_b64() -> str:
    """A few JPEG-looking bytes, base64 encoded. Content is never decoded."""
    return base64.b64encode(b"\xff\xd8\xff\xe0fake-jpeg-bytes").decode()


@pytest.fixture
def passport_input(image_b64: str) -> ExtractionInput:
    return ExtractionInput(document_type="PASSPORT", image_base64=image_b64, mime_type="image/jpeg")


@pytest.fixture
def store() -> InMemoryConfigStore:
    return InMemoryConfigStore()


@pytest.fixture
def configure(store: InMemoryConfigStore):
    """Enable a provider for ORG: configure(OLLAMA_ID, is_primary=True)."""

    def _configure(provider_id: str, organization_id: str = ORG, **fields):
        fields.setdefault("is_enabled", True)
        return store.upsert_config(organization_id, provider_id, ProviderSettingsUpdate(**fields))

    return _configure


@pytest.fixture
def gemini_config() -> ProviderConfig:
    return ProviderConfig(
        id=GEMINI_ID,
        name="gemini",
        display_name="Google Gemini",
        base_url="https://generativelanguage.googleapis.com",
        api_key="gm-secret-key",
    )


@pytest.fixture
def passport_fields() -> dict:
    return {
        "first_name": "Tendai",
        "last_name": "Moyo",
        "date_of_birth": "1990-05-15",
        "gender": "Male",
        "nationality": "Zimbabwean",
        "id_number": "FN123456",
        "id_issue_date": "2019-02-01",
        "id_expiry_date": "2029-01-31",
    }


@pytest.fixture
def mock_preamble_response(passport_fields: dict) -> str:
    """Model response with prose around the JSON object."""
    return "Here is the extracted data:\n\n" + json.dumps(passport_fields) + "\n\nLet me know if you need more."


@pytest.fixture
def mock_markdown_response() -> str:
    """Model response wrapped in a markdown code fence."""
    return '```json\n{"first_name": "Tendai", "last_name": "Moyo", "detected_document_type": "PASSPORT"}\n```'


def gemini_body(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


def claude_body(text: str) -> dict:
    return {"content": [{"type": "text", "text": text}], "role": "assistant"}


def openai_body(text: str | None) -> dict:
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": text}}]}


def ollama_body(text: str) -> dict:
    return {"model": "llava", "response": text, "done": True}
