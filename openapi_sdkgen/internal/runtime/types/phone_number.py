"""
Телефонный номер в международном формате
"""

from typing import Any

import phonenumbers
from phonenumbers import NumberParseException, PhoneNumberFormat
from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

DEFAULT_COUNTRY_CODE = "+1"

_SEPARATORS = str.maketrans("", "", " -().")


class PhoneNumber(str):
    """
    Строка с нормализованным номером: +1 201-555-0123

    Пустая строка остается пустой, номер без `+` считается номером с кодом +1.
    """

    def __new__(cls, value: Any = "") -> "PhoneNumber":
        return super().__new__(cls, cls.normalize(value))

    @staticmethod
    def normalize(value: Any) -> str:
        raw = str(value or "").strip()
        if not raw:
            return ""

        if not raw.startswith("+"):
            raw = DEFAULT_COUNTRY_CODE + raw

        try:
            number = phonenumbers.parse(raw.translate(_SEPARATORS), None)
        except NumberParseException as exc:
            raise ValueError(f"Invalid phone number {value!r}: {exc}") from exc

        if not phonenumbers.is_valid_number(number):
            raise ValueError(f"Invalid phone number: {value!r}")

        return phonenumbers.format_number(number, PhoneNumberFormat.INTERNATIONAL)

    @property
    def e164(self) -> str:
        """Номер без разделителей: +12015550123"""
        if not self:
            return ""
        return phonenumbers.format_number(
            phonenumbers.parse(str(self), None), PhoneNumberFormat.E164
        )

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls,
            core_schema.str_schema(),
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )

    def __repr__(self) -> str:
        return f"PhoneNumber({str.__repr__(self)})"


__all__ = ["PhoneNumber"]
