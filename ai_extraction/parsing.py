"""Recover the JSON object from model output and tidy the extracted fields."""

import json
import logging
import re
from typing import Any

from ai_extraction.schemas import normalize_document_type

logger = logging.getLogger(__name__)

# Widest span from the first "{" to the last "}". Model output may carry
# prose or code fences around the object.
_JSON_SPAN = re.compile(r"\{[\s\S]*\}")

NATIONALITY_TO_COUNTRY = {
    "zimbabwean": "Zimbabwe",
    "south african": "South Africa",
    "zambian": "Zambia",
    "botswanan": "Botswana",
    "mozambican": "Mozambique",
    "malawian": "Malawi",
    "namibian": "Namibia",
    "kenyan": "Kenya",
    "ugandan": "Uganda",
    "tanzanian": "Tanzania",
    "nigerian": "Nigeria",
    "ghanaian": "Ghana",
    "british": "United Kingdom",
    "american": "United States",
    "canadian": "Canada",
    "australian": "Australia",
    "indian": "India",
    "chinese": "China",
}


def try_parse_json(raw: str) -> dict | None:
    """Try to extract a JSON object from the model output. Never raises."""
    if not raw or not isinstance(raw, str):
        return None

    match = _JSON_SPAN.search(raw)
    if match is None:
        logger.warning("No JSON object in model response: %s", raw[:200])
        return None

    # ValueError covers JSONDecodeError and the int digit limit; very deep
    # nesting raises RecursionError.
    try:
        result = json.loads(match.group(0))
    except (ValueError, RecursionError):
        logger.warning("Could not parse JSON from model response: %s", raw[:200])
        return None

    return result if isinstance(result, dict) else None


def normalize_fields(data: dict[str, Any], document_type: str) -> dict[str, Any]:
    """Make extracted fields consistent with the client form conventions."""
    out = dict(data)
    doc_type = normalize_document_type(document_type)

    gender = out.get("gender")
    if isinstance(gender, str):
        gender = gender.strip().lower()
        out["gender"] = gender if gender in ("male", "female") else None

    if not out.get("id_type"):
        if doc_type == "ID":
            out["id_type"] = "national_id"
        elif doc_type == "PASSPORT":
            out["id_type"] = "passport"

    id_number = out.get("id_number")
    if id_number:
        if out.get("id_type") == "national_id" and not out.get("national_id"):
            out["national_id"] = id_number
        elif out.get("id_type") == "passport" and not out.get("passport_number"):
            out["passport_number"] = id_number

    nationality = out.get("nationality")
    if doc_type == "PASSPORT" and not out.get("passport_country") and isinstance(nationality, str):
        country = NATIONALITY_TO_COUNTRY.get(nationality.strip().lower())
        if country:
            out["passport_country"] = country

    if not out.get("full_name") and (out.get("first_name") or out.get("last_name")):
        parts = [out.get("first_name"), out.get("middle_name"), out.get("last_name")]
        out["full_name"] = " ".join(str(p) for p in parts if p)

    return out
