"""
Shared schema bases and field types for booking responses.
"""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic_core import core_schema

CENT = Decimal("0.01")


class StandardizedModel(BaseModel):
    """Response base: enum values serialized as plain strings."""

    model_config = ConfigDict(use_enum_values=True, populate_by_name=True)


class Money(Decimal):
    """
    Two-decimal amount that validates from Decimal/int/float/str and
    serializes as a JSON number.
    """

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        def to_cents(value: Any) -> Decimal:
            if isinstance(value, bool):
                raise ValueError("Money cannot be a boolean")
            try:
                amount = value if isinstance(value, Decimal) else Decimal(str(value))
            except InvalidOperation:
                raise ValueError(f"Invalid money amount: {value!r}")
            return amount.quantize(CENT, rounding=ROUND_HALF_UP)

        return core_schema.no_info_after_validator_function(
            to_cents,
            core_schema.union_schema(
                [
                    core_schema.is_instance_schema(Decimal),
                    core_schema.int_schema(),
                    core_schema.float_schema(),
                    core_schema.str_schema(),
                ]
            ),
            serialization=core_schema.plain_serializer_function_ser_schema(
                float, return_schema=core_schema.float_schema()
            ),
        )
