"""Provider adapters: one per backend dialect, behind a single interface.

Each adapter turns (config, input, prompt) into a ProviderRequest and pulls
the model's text back out of that backend's response body. The registry maps
the closed set of provider kinds to their adapters; confidence scores live
beside it.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from ai_extraction.config import settings
from ai_extraction.models import ExtractionInput, ProviderConfig, ProviderInfo
from ai_extraction.provider_client import ProviderRequest
from ai_extraction.schemas import ExtractionSchema, FieldKind, document_types


class ConfigurationError(Exception):
    """Provider cannot be called as configured (missing API key, unknown provider)."""


class ProviderKind(str, Enum):
    GEMINI = "gemini"
    CLAUDE = "claude"
    OPENAI = "openai"
    DEEPSEEK = "deepseek"
    OLLAMA = "ollama"


class ProviderAdapter(ABC):
    kind: ProviderKind
    default_base_url: str
    default_model: str
    requires_api_key: bool = True
    supports_images: bool = True

    def model_for(self, config: ProviderConfig) -> str:
        return config.model_name or self.default_model

    def base_url_for(self, config: ProviderConfig) -> str:
        return (config.base_url or self.default_base_url).rstrip("/")

    def max_tokens_for(self, config: ProviderConfig) -> int:
        return config.max_tokens if config.max_tokens is not None else settings.DEFAULT_MAX_TOKENS

    def temperature_for(self, config: ProviderConfig) -> float:
        return config.temperature if config.temperature is not None else settings.DEFAULT_TEMPERATURE

    def require_key(self, config: ProviderConfig) -> str | None:
        if self.requires_api_key and not config.api_key:
            raise ConfigurationError(f"{config.display_name} API key not configured")
        return config.api_key

    @abstractmethod
    def build_request(
        self,
        config: ProviderConfig,
        extraction_input: ExtractionInput,
        prompt: str,
        schema: ExtractionSchema | None = None,
    ) -> ProviderRequest:
        """Build the HTTP request for this backend."""

    @abstractmethod
    def extract_text(self, body: dict) -> str:
        """Return the model's text output, or "" if the body has an unexpected shape."""


class GeminiAdapter(ProviderAdapter):
    """Google Gemini generateContent with structured JSON output."""

    kind = ProviderKind.GEMINI
    default_base_url = "https://generativelanguage.googleapis.com"
    default_model = "gemini-2.0-flash"

    _SCHEMA_TYPES = {
        FieldKind.STRING: "STRING",
        FieldKind.DATE: "STRING",
        FieldKind.NUMBER: "NUMBER",
    }

    def build_request(self, config, extraction_input, prompt, schema=None):
        api_key = self.require_key(config)
        model = self.model_for(config)

        parts: list[dict[str, Any]] = [{"text": prompt}]
        if extraction_input.image_base64:
            parts.append({
                "inline_data": {
                    "mime_type": extraction_input.mime_type,
                    "data": extraction_input.image_base64,
                },
            })

        generation_config: dict[str, Any] = {
            "responseMimeType": "application/json",
            "temperature": self.temperature_for(config),
            "maxOutputTokens": self.max_tokens_for(config),
        }
        if schema:
            generation_config["responseSchema"] = self.response_schema(schema)

        return ProviderRequest(
            method="POST",
            url=f"{self.base_url_for(config)}/v1beta/models/{model}:generateContent?key={api_key}",
            headers={"Content-Type": "application/json"},
            body={
                "contents": [{"role": "user", "parts": parts}],
                "generationConfig": generation_config,
            },
        )

    def response_schema(self, schema: ExtractionSchema) -> dict:
        properties = {}
        for name, kind in schema.items():
            if kind is FieldKind.ARRAY:
                prop = {"type": "ARRAY", "items": {"type": "STRING"}, "nullable": True}
            else:
                prop = {"type": self._SCHEMA_TYPES[kind], "nullable": True}
                if kind is FieldKind.DATE:
                    prop["description"] = "Date in YYYY-MM-DD format"
            properties[name] = prop
        return {"type": "OBJECT", "properties": properties}

    def extract_text(self, body):
        try:
            parts = body["candidates"][0]["content"]["parts"]
            return "".join(p.get("text", "") for p in parts if isinstance(p, dict))
        except (KeyError, IndexError, TypeError, AttributeError):
            return ""


class ClaudeAdapter(ProviderAdapter):
    """Anthropic Messages API."""

    kind = ProviderKind.CLAUDE
    default_base_url = "https://api.anthropic.com"
    default_model = "claude-3-sonnet-20240229"
    api_version = "2023-06-01"

    def build_request(self, config, extraction_input, prompt, schema=None):
        api_key = self.require_key(config)

        content: list[dict[str, Any]] = []
        if extraction_input.image_base64:
            content.append({
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": extraction_input.mime_type,
                    "data": extraction_input.image_base64,
                },
            })
        elif extraction_input.pdf_url:
            content.append({
                "type": "document",
                "source": {"type": "url", "url": extraction_input.pdf_url},
            })
        content.append({"type": "text", "text": prompt})

        return ProviderRequest(
            method="POST",
            url=f"{self.base_url_for(config)}/v1/messages",
            headers={
                "Content-Type": "application/json",
                "x-api-key": api_key,
                "anthropic-version": self.api_version,
            },
            body={
                "model": self.model_for(config),
                "max_tokens": self.max_tokens_for(config),
                "temperature": self.temperature_for(config),
                "messages": [{"role": "user", "content": content}],
            },
        )

    def extract_text(self, body):
        try:
            for block in body["content"]:
                if block.get("type") == "text":
                    text = block.get("text")
                    return text if isinstance(text, str) else ""
        except (KeyError, TypeError, AttributeError):
            pass
        return ""


class OpenAIAdapter(ProviderAdapter):
    """OpenAI Chat Completions with an image_url data URI."""

    kind = ProviderKind.OPENAI
    default_base_url = "https://api.openai.com"
    default_model = "gpt-4o"

    def build_request(self, config, extraction_input, prompt, schema=None):
        api_key = self.require_key(config)
        return ProviderRequest(
            method="POST",
            url=f"{self.base_url_for(config)}/v1/chat/completions",
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
            },
            body=self.chat_body(config, extraction_input, prompt),
        )

    def chat_body(self, config: ProviderConfig, extraction_input: ExtractionInput, prompt: str) -> dict:
        content: list[dict[str, Any]] = [{"type": "text", "text": prompt}]
        if extraction_input.image_base64:
            content.append({
                "type": "image_url",
                "image_url": {
                    "url": f"data:{extraction_input.mime_type};base64,{extraction_input.image_base64}",
                },
            })
        return {
            "model": self.model_for(config),
            "max_tokens": self.max_tokens_for(config),
            "temperature": self.temperature_for(config),
            "messages": [{"role": "user", "content": content}],
            "response_format": {"type": "json_object"},
        }

    def extract_text(self, body):
        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return ""
        return content if isinstance(content, str) else ""


class DeepSeekAdapter(OpenAIAdapter):
    """DeepSeek's OpenAI-compatible chat API. Text only: images are dropped."""

    kind = ProviderKind.DEEPSEEK
    default_base_url = "https://api.deepseek.com"
    default_model = "deepseek-chat"
    supports_images = False

    def chat_body(self, config, extraction_input, prompt):
        return {
            "model": self.model_for(config),
            "max_tokens": self.max_tokens_for(config),
            "temperature": self.temperature_for(config),
            "messages": [{"role": "user", "content": prompt}],
        }


class OllamaAdapter(ProviderAdapter):
    """Locally hosted Ollama /api/generate endpoint."""

    kind = ProviderKind.OLLAMA
    default_base_url = "http://localhost:11434"
    default_model = "llava"
    requires_api_key = False

    def build_request(self, config, extraction_input, prompt, schema=None):
        body: dict[str, Any] = {
            "model": self.model_for(config),
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": self.temperature_for(config),
                "num_predict": self.max_tokens_for(config),
            },
        }
        if extraction_input.image_base64:
            body["images"] = [extraction_input.image_base64]

        return ProviderRequest(
            method="POST",
            url=f"{self.base_url_for(config)}/api/generate",
            headers={"Content-Type": "application/json"},
            body=body,
        )

    def extract_text(self, body):
        text = body.get("response") if isinstance(body, dict) else None
        return text if isinstance(text, str) else ""


ADAPTERS: dict[ProviderKind, ProviderAdapter] = {
    adapter.kind: adapter
    for adapter in (
        GeminiAdapter(),
        ClaudeAdapter(),
        OpenAIAdapter(),
        DeepSeekAdapter(),
        OllamaAdapter(),
    )
}

# Static prior per provider; none of the backends report a calibrated confidence.
CONFIDENCE: dict[ProviderKind, float] = {
    ProviderKind.GEMINI: 0.95,
    ProviderKind.CLAUDE: 0.92,
    ProviderKind.OPENAI: 0.91,
    ProviderKind.DEEPSEEK: 0.85,
    ProviderKind.OLLAMA: 0.80,
}


def get_adapter(name: str) -> ProviderAdapter:
    """Look up the adapter for a provider tag. Raises ConfigurationError if unknown."""
    try:
        kind = ProviderKind(name.lower())
    except ValueError:
        raise ConfigurationError(f"Unknown AI provider: {name}") from None
    return ADAPTERS[kind]


def confidence_for(name: str) -> float:
    return CONFIDENCE[ProviderKind(name.lower())]


_IMAGE_CAPABILITIES = ["document_extraction", "image_analysis", "text_generation", "structured_output"]

PROVIDER_CATALOG: list[ProviderInfo] = [
    ProviderInfo(
        id="550e8400-e29b-41d4-a716-446655440001",
        name=ProviderKind.GEMINI.value,
        display_name="Google Gemini",
        base_url=GeminiAdapter.default_base_url,
        capabilities=_IMAGE_CAPABILITIES,
        supported_document_types=document_types(),
    ),
    ProviderInfo(
        id="550e8400-e29b-41d4-a716-446655440002",
        name=ProviderKind.CLAUDE.value,
        display_name="Anthropic Claude",
        base_url=ClaudeAdapter.default_base_url,
        capabilities=_IMAGE_CAPABILITIES,
        supported_document_types=document_types(),
    ),
    ProviderInfo(
        id="550e8400-e29b-41d4-a716-446655440003",
        name=ProviderKind.OPENAI.value,
        display_name="OpenAI GPT",
        base_url=OpenAIAdapter.default_base_url,
        capabilities=_IMAGE_CAPABILITIES,
        supported_document_types=document_types(),
    ),
    ProviderInfo(
        id="550e8400-e29b-41d4-a716-446655440004",
        name=ProviderKind.DEEPSEEK.value,
        display_name="DeepSeek",
        base_url=DeepSeekAdapter.default_base_url,
        capabilities=["document_extraction", "text_generation", "structured_output"],
        supported_document_types=document_types(),
    ),
    ProviderInfo(
        id="550e8400-e29b-41d4-a716-446655440005",
        name=ProviderKind.OLLAMA.value,
        display_name="Ollama (Local)",
        base_url=OllamaAdapter.default_base_url,
        is_local=True,
        capabilities=["document_extraction", "image_analysis", "text_generation"],
        supported_document_types=document_types(),
    ),
]
