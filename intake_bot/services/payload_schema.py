"""Submission payload schemas and the validator that enforces them.

A schema is an ordered list of field specs. Validation walks the fields in
declaration order and stops at the first failure, so the reported error is
always the same for the same candidate.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Optional

from intake_bot.services.result import Result

INVALID_SHAPE_ERROR = "payload must be an object"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: str  # number, string, enum, boolean
    message: str
    description: str = ""
    json_type: Optional[str] = None  # overrides the tool parameter type, e.g. "integer"
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    min_length: int = 1
    pattern: Optional[str] = None
    choices: tuple[str, ...] = ()

    def check(self, raw: Any) -> Result[Any]:
        if self.kind == "number":
            return self._check_number(raw)
        if self.kind == "string":
            return self._check_string(raw)
        if self.kind == "enum":
            return self._check_enum(raw)
        if self.kind == "boolean":
            if isinstance(raw, bool):
                return Result.success(raw)
            return self._fail()
        raise ValueError(f"Unknown field kind: {self.kind}")

    def _fail(self) -> Result[Any]:
        return Result.failure(self.message, "validation_error")

    def _check_number(self, raw: Any) -> Result[Any]:
        # bool is an int subclass; a model answering `true` for a number is wrong
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            return self._fail()
        try:
            if not math.isfinite(raw):
                return self._fail()
        except OverflowError:
            # int too large to convert to float
            return self._fail()
        if self.minimum is not None and raw < self.minimum:
            return self._fail()
        if self.maximum is not None and raw > self.maximum:
            return self._fail()
        return Result.success(raw)

    def _check_string(self, raw: Any) -> Result[Any]:
        if not isinstance(raw, str):
            return self._fail()
        value = raw.strip()
        if len(value) < max(self.min_length, 1):
            return self._fail()
        if self.pattern and not re.match(self.pattern, value):
            return self._fail()
        return Result.success(value)

    def _check_enum(self, raw: Any) -> Result[Any]:
        if not isinstance(raw, str):
            return self._fail()
        value = raw.strip()
        if value not in self.choices:
            return self._fail()
        return Result.success(value)

    def tool_property(self) -> dict:
        """JSON-Schema fragment describing this field to the model."""
        prop: dict[str, Any] = {}
        if self.kind == "number":
            prop["type"] = self.json_type or "number"
            if self.minimum is not None:
                prop["minimum"] = self.minimum
            if self.maximum is not None:
                prop["maximum"] = self.maximum
        elif self.kind == "string":
            prop["type"] = "string"
            prop["minLength"] = max(self.min_length, 1)
            if self.pattern:
                prop["pattern"] = self.pattern
        elif self.kind == "enum":
            prop["type"] = "string"
            prop["enum"] = list(self.choices)
        elif self.kind == "boolean":
            prop["type"] = "boolean"
        if self.description:
            prop["description"] = self.description
        return prop


@dataclass(frozen=True)
class PayloadSchema:
    name: str
    fields: tuple[FieldSpec, ...]

    @property
    def field_names(self) -> list[str]:
        return [field.name for field in self.fields]

    def tool_parameters(self) -> dict:
        return {
            "type": "object",
            "properties": {field.name: field.tool_property() for field in self.fields},
            "required": self.field_names,
            "additionalProperties": False,
        }


INSURANCE_SCHEMA = PayloadSchema(
    name="insurance",
    fields=(
        FieldSpec("age", "number", "age must be a valid number", json_type="integer", minimum=0, maximum=120),
        FieldSpec("gender", "enum", "gender is required", choices=("male", "female")),
        FieldSpec("smoking", "boolean", "smoking must be a boolean"),
        FieldSpec("country", "string", "country is required", min_length=2),
        FieldSpec(
            "coverage_btc",
            "number",
            "coverage_btc must be a valid number",
            description="Requested coverage amount in BTC",
            minimum=0,
        ),
    ),
)

SUPPORT_TICKET_SCHEMA = PayloadSchema(
    name="support_ticket",
    fields=(
        FieldSpec("name", "string", "name is required", min_length=2),
        FieldSpec(
            "email",
            "string",
            "email must be a valid email address",
            pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
        ),
        FieldSpec("topic", "enum", "topic must be one of billing, tech, sales", choices=("billing", "tech", "sales")),
        FieldSpec("details", "string", "details is required", min_length=3),
    ),
)

SCHEMAS = {schema.name: schema for schema in (INSURANCE_SCHEMA, SUPPORT_TICKET_SCHEMA)}


def get_payload_schema(name: str) -> PayloadSchema:
    try:
        return SCHEMAS[name]
    except KeyError:
        raise ValueError(f"Unknown payload schema: {name}") from None


def _unwrap_candidate(candidate: dict) -> dict:
    # Some tool calls nest the fields as {"payload": {...}}
    nested = candidate.get("payload")
    if len(candidate) == 1 and isinstance(nested, dict):
        return nested
    return candidate


def validate_payload(candidate: Any, schema: PayloadSchema) -> Result[dict]:
    """Validate a model-proposed payload. Returns the normalized payload or the first field error."""
    if not isinstance(candidate, dict):
        return Result.failure(INVALID_SHAPE_ERROR, "invalid_shape")

    candidate = _unwrap_candidate(candidate)
    normalized: dict[str, Any] = {}
    for field in schema.fields:
        checked = field.check(candidate.get(field.name))
        if not checked.ok:
            return Result.failure(checked.error, checked.error_code)
        normalized[field.name] = checked.value

    return Result.success(normalized)
