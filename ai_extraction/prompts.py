"""Schema-driven extraction prompt, shared by every provider.

The prompt is a pure function of the document type and its schema so that
the same document always produces byte-identical text.
"""

from ai_extraction.schemas import FOCUS_HINTS, ExtractionSchema, normalize_document_type

_JSON_SUFFIX = """

CRITICAL OUTPUT RULES:
- Return ONLY a single valid JSON object. No other text before or after.
- Extract ONLY information visible in the document. Do not invent values.
- If a field is not present or not readable, set it to null.
- Dates MUST be in YYYY-MM-DD format (e.g. "1990-05-15").
- Numbers must be numeric values WITHOUT currency symbols.
- Arrays must be JSON arrays of strings.
- Gender must be exactly "male" or "female" (lowercase).
- Do NOT wrap in code fences. Just raw JSON."""


def build_prompt(document_type: str, schema: ExtractionSchema) -> str:
    """Render the extraction instruction for a document type and its schema."""
    doc_type = normalize_document_type(document_type)

    lines = [f"You are extracting information from a document of type {doc_type}."]
    hint = FOCUS_HINTS.get(doc_type)
    if hint:
        lines.append(hint)

    lines.append("")
    if schema:
        lines.append("Return a JSON object with EXACTLY these fields:")
        lines.extend(f"- {name} ({kind.value})" for name, kind in schema.items())
    else:
        lines.append("Return a JSON object with any relevant fields you can identify.")

    return "\n".join(lines) + _JSON_SUFFIX
