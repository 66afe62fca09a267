import json
import math

import pytest

from intake_bot.services.payload_schema import (
    INSURANCE_SCHEMA,
    INVALID_SHAPE_ERROR,
    SUPPORT_TICKET_SCHEMA,
    get_payload_schema,
    validate_payload,
)


class TestInsuranceSchema:
    def test_negative_age_fails(self):
        candidate = {"age": -1, "gender": "male", "smoking": True, "country": "US", "coverage_btc": 1}
        result = validate_payload(candidate, INSURANCE_SCHEMA)
        assert result.ok is False
        assert result.error == "age must be a valid number"
        assert result.error_code == "validation_error"

    def test_valid_payload_is_trimmed(self, valid_insurance_payload):
        result = validate_payload(valid_insurance_payload, INSURANCE_SCHEMA)
        assert result.ok is True
        assert result.value["country"] == "US"
        assert result.value == {"age": 30, "gender": "male", "smoking": False, "country": "US", "coverage_btc": 0}

    def test_age_above_maximum_fails(self, valid_insurance_payload):
        result = validate_payload({**valid_insurance_payload, "age": 121}, INSURANCE_SCHEMA)
        assert result.error == "age must be a valid number"

    @pytest.mark.parametrize("age", ["30", True, None, math.nan, math.inf])
    def test_age_must_be_finite_number(self, valid_insurance_payload, age):
        result = validate_payload({**valid_insurance_payload, "age": age}, INSURANCE_SCHEMA)
        assert result.ok is False
        assert result.error == "age must be a valid number"

    def test_gender_outside_enum_fails(self, valid_insurance_payload):
        result = validate_payload({**valid_insurance_payload, "gender": "Male"}, INSURANCE_SCHEMA)
        assert result.ok is False
        assert result.error == "gender is required"

    def test_smoking_must_be_boolean(self, valid_insurance_payload):
        result = validate_payload({**valid_insurance_payload, "smoking": "no"}, INSURANCE_SCHEMA)
        assert result.error == "smoking must be a boolean"

    def test_whitespace_country_fails(self, valid_insurance_payload):
        result = validate_payload({**valid_insurance_payload, "country": "   "}, INSURANCE_SCHEMA)
        assert result.error == "country is required"

    def test_single_letter_country_fails(self, valid_insurance_payload):
        result = validate_payload({**valid_insurance_payload, "country": " U "}, INSURANCE_SCHEMA)
        assert result.error == "country is required"

    def test_negative_coverage_fails(self, valid_insurance_payload):
        result = validate_payload({**valid_insurance_payload, "coverage_btc": -0.5}, INSURANCE_SCHEMA)
        assert result.error == "coverage_btc must be a valid number"

    def test_unknown_fields_are_dropped(self, valid_insurance_payload):
        result = validate_payload({**valid_insurance_payload, "notes": "extra"}, INSURANCE_SCHEMA)
        assert "notes" not in result.value

    def test_nested_payload_is_unwrapped(self, valid_insurance_payload):
        result = validate_payload({"payload": valid_insurance_payload}, INSURANCE_SCHEMA)
        assert result.ok is True
        assert result.value["country"] == "US"

    def test_integer_too_large_for_float_fails(self, valid_insurance_payload):
        candidate = {**valid_insurance_payload, "coverage_btc": json.loads("1" + "0" * 400)}
        result = validate_payload(candidate, INSURANCE_SCHEMA)
        assert result.ok is False
        assert result.error == "coverage_btc must be a valid number"


class TestShapeAndOrder:
    @pytest.mark.parametrize("candidate", [None, "age=30", 42, ["age", 30]])
    def test_non_object_is_invalid_shape(self, candidate):
        result = validate_payload(candidate, INSURANCE_SCHEMA)
        assert result.ok is False
        assert result.error == INVALID_SHAPE_ERROR
        assert result.error_code == "invalid_shape"

    def test_first_missing_field_in_declaration_order_is_reported(self):
        candidate = {"gender": "male", "smoking": True, "coverage_btc": 1}
        errors = {validate_payload(candidate, INSURANCE_SCHEMA).error for _ in range(5)}
        assert errors == {"age must be a valid number"}

    def test_missing_two_later_fields_reports_earlier_one(self):
        candidate = {"age": 40, "gender": "female", "smoking": True}
        result = validate_payload(candidate, INSURANCE_SCHEMA)
        assert result.error == "country is required"

    def test_repeated_validation_is_identical(self, valid_insurance_payload):
        first = validate_payload(valid_insurance_payload, INSURANCE_SCHEMA)
        second = validate_payload(valid_insurance_payload, INSURANCE_SCHEMA)
        assert first == second

    def test_candidate_is_not_mutated(self, valid_insurance_payload):
        before = dict(valid_insurance_payload)
        validate_payload(valid_insurance_payload, INSURANCE_SCHEMA)
        assert valid_insurance_payload == before


class TestSupportTicketSchema:
    def _ticket(self, **overrides):
        ticket = {"name": "Ada", "email": "ada@example.com", "topic": "billing", "details": "Double charge"}
        ticket.update(overrides)
        return ticket

    def test_valid_ticket(self):
        result = validate_payload(self._ticket(name="  Ada Lovelace "), SUPPORT_TICKET_SCHEMA)
        assert result.ok is True
        assert result.value["name"] == "Ada Lovelace"

    @pytest.mark.parametrize("email", ["ada", "ada@example", "ada @example.com", "@example.com"])
    def test_invalid_email(self, email):
        result = validate_payload(self._ticket(email=email), SUPPORT_TICKET_SCHEMA)
        assert result.error == "email must be a valid email address"

    def test_topic_is_case_sensitive(self):
        result = validate_payload(self._ticket(topic="Tech"), SUPPORT_TICKET_SCHEMA)
        assert result.error == "topic must be one of billing, tech, sales"

    def test_short_details_fail(self):
        result = validate_payload(self._ticket(details="hi"), SUPPORT_TICKET_SCHEMA)
        assert result.error == "details is required"


class TestToolParameters:
    def test_insurance_parameters(self):
        params = INSURANCE_SCHEMA.tool_parameters()
        assert params["required"] == ["age", "gender", "smoking", "country", "coverage_btc"]
        assert params["additionalProperties"] is False
        assert params["properties"]["age"] == {"type": "integer", "minimum": 0, "maximum": 120}
        assert params["properties"]["gender"]["enum"] == ["male", "female"]
        assert params["properties"]["country"]["minLength"] == 2

    def test_support_ticket_parameters(self):
        params = SUPPORT_TICKET_SCHEMA.tool_parameters()
        assert params["properties"]["email"]["pattern"] == r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
        assert params["properties"]["topic"]["enum"] == ["billing", "tech", "sales"]


class TestSchemaRegistry:
    def test_lookup_by_name(self):
        assert get_payload_schema("support_ticket") is SUPPORT_TICKET_SCHEMA

    def test_unknown_schema_raises(self):
        with pytest.raises(ValueError):
            get_payload_schema("mortgage")
