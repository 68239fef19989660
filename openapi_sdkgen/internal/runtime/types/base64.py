"""
Байты, которые передаются в JSON как base64
"""

import base64
import binascii
from typing import Any

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema


class Base64Data(bytes):
    """Сериализуется в URL-safe base64 без паддинга, читает любой вариант"""

    @classmethod
    def decode(cls, value: str) -> "Base64Data":
        text = value.strip()
        padded = text + "=" * (-len(text) % 4)

        for decoder in (base64.urlsafe_b64decode, base64.standard_b64decode):
            try:
                return cls(decoder(padded.encode("ascii")))
            except (binascii.Error, ValueError):
                continue

        raise ValueError(f"Invalid base64 data: {value!r}")

    def encode_str(self) -> str:
        return base64.urlsafe_b64encode(bytes(self)).rstrip(b"=").decode("ascii")

    @classmethod
    def _validate(cls, value: Any) -> "Base64Data":
        if isinstance(value, cls):
            return value
        if isinstance(value, (bytes, bytearray)):
            return cls(value)
        if isinstance(value, str):
            return cls.decode(value)
        raise ValueError(f"Expected base64 string, got {type(value).__name__}")

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda value: value.encode_str(), when_used="json"
            ),
        )

    def __str__(self) -> str:
        return self.encode_str()


__all__ = ["Base64Data"]
