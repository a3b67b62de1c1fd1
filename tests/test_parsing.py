"""Tests for JSON recovery from model output and field normalisation."""

import json

from ai_extraction.parsing import normalize_fields, try_parse_json


class TestTryParseJSON:
    def test_direct_json(self):
        raw = '{"first_name": "Tendai", "last_name": "Moyo"}'
        assert try_parse_json(raw) == {"first_name": "Tendai", "last_name": "Moyo"}

    def test_preamble_text(self, mock_preamble_response: str, passport_fields: dict):
        assert try_parse_json(mock_preamble_response) == passport_fields

    def test_markdown_fence(self, mock_markdown_response: str):
        result = try_parse_json(mock_markdown_response)
        assert result is not None
        assert result["first_name"] == "Tendai"

    def test_nested_object_recovered_whole(self):
        obj = {"business_name": "Acme", "meta": {"pages": 2}, "directors": ["A. Dube", "B. Ncube"]}
        raw = "Result:\n" + json.dumps(obj) + "\nDone."
        assert try_parse_json(raw) == obj

    def test_matches_direct_decode_of_span(self):
        span = '{"salary": 1200.5, "bank_name": null}'
        raw = f"The payslip shows {span} as requested"
        assert try_parse_json(raw) == json.loads(span)

    def test_whitespace_padded(self):
        assert try_parse_json('  \n  {"key": "value"}  \n  ') == {"key": "value"}

    def test_not_json(self):
        assert try_parse_json("This is just plain text with no JSON at all.") is None

    def test_malformed_json_in_braces(self):
        assert try_parse_json('Here: {"first_name": "Tendai", "last_name": }') is None

    def test_unbalanced_braces(self):
        assert try_parse_json("} nothing here {") is None

    def test_two_objects_span_is_not_valid(self):
        """The widest span covers both objects, which is not valid JSON."""
        assert try_parse_json('{"a": 1} and {"b": 2}') is None

    def test_array_not_dict(self):
        assert try_parse_json("[1, 2, 3]") is None

    def test_empty_string(self):
        assert try_parse_json("") is None

    def test_integer_over_digit_limit(self):
        raw = 'Sure: {"salary": ' + "9" * 5000 + "}"
        assert try_parse_json(raw) is None

    def test_deeply_nested_arrays(self):
        raw = '{"a": ' + "[" * 100000 + "]" * 100000 + "}"
        assert try_parse_json(raw) is None

    def test_non_string_input(self):
        assert try_parse_json(None) is None
        assert try_parse_json([{"type": "text", "text": "{}"}]) is None
        assert try_parse_json({"first_name": "Tendai"}) is None


class TestNormalizeFields:
    def test_gender_lowercased(self):
        assert normalize_fields({"gender": "Female"}, "ID")["gender"] == "female"

    def test_invalid_gender_nulled(self):
        assert normalize_fields({"gender": "X"}, "ID")["gender"] is None

    def test_id_type_defaults_from_document_type(self):
        assert normalize_fields({}, "ID")["id_type"] == "national_id"
        assert normalize_fields({}, "passport")["id_type"] == "passport"
        assert "id_type" not in normalize_fields({}, "PAYSLIP")

    def test_id_number_copied_to_national_id(self):
        out = normalize_fields({"id_number": "63-123456A78"}, "ID")
        assert out["national_id"] == "63-123456A78"

    def test_id_number_copied_to_passport_number(self):
        out = normalize_fields({"id_number": "FN123456"}, "PASSPORT")
        assert out["passport_number"] == "FN123456"

    def test_existing_passport_number_kept(self):
        out = normalize_fields({"id_number": "FN1", "passport_number": "FN2"}, "PASSPORT")
        assert out["passport_number"] == "FN2"

    def test_passport_country_from_nationality(self):
        out = normalize_fields({"nationality": "South African"}, "PASSPORT")
        assert out["passport_country"] == "South Africa"

    def test_passport_country_not_inferred_for_id(self):
        out = normalize_fields({"nationality": "Zimbabwean"}, "ID")
        assert "passport_country" not in out

    def test_full_name_built(self):
        out = normalize_fields({"first_name": "Tendai", "middle_name": "T", "last_name": "Moyo"}, "ID")
        assert out["full_name"] == "Tendai T Moyo"

    def test_input_not_mutated(self):
        data = {"gender": "MALE"}
        normalize_fields(data, "ID")
        assert data == {"gender": "MALE"}
