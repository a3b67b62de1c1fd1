"""Per-document-type field schemas.

Field names match the client form so extracted data can be mapped onto it
directly. Unknown document types get an empty schema.
"""

from enum import Enum
from types import MappingProxyType
from typing import Mapping


class FieldKind(str, Enum):
    STRING = "string"
    DATE = "date"
    NUMBER = "number"
    ARRAY = "array"


ExtractionSchema = Mapping[str, FieldKind]

S, D, N, A = FieldKind.STRING, FieldKind.DATE, FieldKind.NUMBER, FieldKind.ARRAY

_PERSON = {
    "first_name": S,
    "last_name": S,
    "middle_name": S,
    "full_name": S,
}

_ADDRESS = {
    "street_number": S,
    "suburb": S,
    "city": S,
    "state": S,
    "country": S,
    "postal_code": S,
}

_SCHEMAS: dict[str, dict[str, FieldKind]] = {
    "ID": {
        **_PERSON,
        "date_of_birth": D,
        "gender": S,
        "nationality": S,
        "id_type": S,
        "id_number": S,
        "national_id": S,
        "id_issue_date": D,
        "id_expiry_date": D,
        **_ADDRESS,
        "detected_document_type": S,
    },
    "PASSPORT": {
        **_PERSON,
        "date_of_birth": D,
        "gender": S,
        "nationality": S,
        "id_type": S,
        "id_number": S,
        "passport_number": S,
        "passport_country": S,
        "id_issue_date": D,
        "id_expiry_date": D,
        "city": S,
        "detected_document_type": S,
    },
    "POA": {
        **_PERSON,
        **_ADDRESS,
        "account_number": S,
        "detected_document_type": S,
    },
    "BANK_STATEMENT": {
        **_PERSON,
        "bank_name": S,
        "account_number": S,
        "branch_code": S,
        "branch_name": S,
        **_ADDRESS,
        "detected_document_type": S,
    },
    "PAYSLIP": {
        **_PERSON,
        "employer_name": S,
        "employer_address": S,
        "occupation": S,
        "salary": N,
        "gross_salary": N,
        "net_salary": N,
        "bank_name": S,
        "account_number": S,
        "detected_document_type": S,
    },
    "EMPLOYMENT_LETTER": {
        **_PERSON,
        "employer_name": S,
        "employer_address": S,
        "employer_phone": S,
        "employer_email": S,
        "occupation": S,
        "employment_date": D,
        "salary": N,
        "gross_salary": N,
        "net_salary": N,
        "detected_document_type": S,
    },
    "BIZ_REG": {
        "business_name": S,
        "registration_number": S,
        "business_type": S,
        "industry": S,
        "business_address": S,
        "directors": A,
        "detected_document_type": S,
    },
    "PHOTO": {
        "full_name": S,
        "face_visible": S,
        "detected_document_type": S,
    },
    "OTHER": {
        **_PERSON,
        "date_of_birth": D,
        "gender": S,
        "nationality": S,
        "id_number": S,
        "phone": S,
        "email": S,
        **_ADDRESS,
        "employer_name": S,
        "occupation": S,
        "bank_name": S,
        "account_number": S,
        "detected_document_type": S,
    },
}

# What to look for, per document type. Rendered into the prompt header.
FOCUS_HINTS: dict[str, str] = {
    "ID": (
        "This is a NATIONAL ID CARD. Split the full name into first, middle and "
        'last name. Set id_type to "national_id" and detected_document_type to "ID".'
    ),
    "PASSPORT": (
        "This is a PASSPORT. passport_country is the issuing country (name or "
        'country code). Set id_type to "passport" and detected_document_type to "PASSPORT".'
    ),
    "POA": (
        "This is a PROOF OF ADDRESS (utility bill, bank letter). It is primarily "
        'for address verification. Set detected_document_type to "POA".'
    ),
    "BANK_STATEMENT": (
        "This is a BANK STATEMENT. Extract the account holder and bank details. "
        'Set detected_document_type to "BANK_STATEMENT".'
    ),
    "PAYSLIP": (
        "This is a PAYSLIP. Salaries are numbers without currency symbols. "
        'Set detected_document_type to "PAYSLIP".'
    ),
    "EMPLOYMENT_LETTER": (
        "This is an EMPLOYMENT LETTER. employment_date is the start date. "
        'Set detected_document_type to "EMPLOYMENT_LETTER".'
    ),
    "BIZ_REG": (
        "This is a BUSINESS REGISTRATION CERTIFICATE. directors lists the names "
        'of directors or owners. Set detected_document_type to "BIZ_REG".'
    ),
    "PHOTO": (
        'This is a PHOTOGRAPH, likely an ID photo. Set face_visible to "yes" or '
        '"no". Set detected_document_type to "PHOTO".'
    ),
    "OTHER": (
        "First determine what kind of document this is and set "
        "detected_document_type to one of: ID, PASSPORT, POA, BANK_STATEMENT, "
        "PAYSLIP, EMPLOYMENT_LETTER, BIZ_REG, PHOTO, OTHER."
    ),
}

SCHEMAS: dict[str, ExtractionSchema] = {
    doc_type: MappingProxyType(fields) for doc_type, fields in _SCHEMAS.items()
}

_EMPTY: ExtractionSchema = MappingProxyType({})


def normalize_document_type(document_type: str) -> str:
    return document_type.strip().upper()


def fields_for(document_type: str) -> ExtractionSchema:
    """Return the field schema for a document type, or an empty one if unknown."""
    return SCHEMAS.get(normalize_document_type(document_type), _EMPTY)


def document_types() -> list[str]:
    return list(SCHEMAS)
