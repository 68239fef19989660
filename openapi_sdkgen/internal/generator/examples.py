"""
Примеры значений для документации и тестов сгенерированного клиента
"""

import json
from typing import Any, Dict, Optional

from ...exceptions import UnsupportedCompositeError
from ..parser.index import SpecIndex
from ..runtime.types.random import DEFAULT_SEED, RandomValues
from .type_lowerer import schema_type

# глубже этого уровня необязательные поля и элементы массивов не заполняются
MAX_DEPTH = 4
# обязательные поля циклических схем обрываются здесь
HARD_DEPTH = 16

# (бит, со знаком) для целых форматов
INTEGER_WIDTHS = {
    "int8": (8, True),
    "int16": (16, True),
    "uint8": (8, False),
    "uint16": (16, False),
    "uint": (32, False),
    "uint32": (32, False),
    "uint64": (64, False),
    "int64": (64, True),
    "duration": (64, True),
}


def python_literal(value: Any) -> str:
    """JSON значение в виде Python литерала"""
    if value is None:
        return "None"
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, list):
        return "[" + ", ".join(python_literal(item) for item in value) + "]"
    if isinstance(value, dict):
        return (
            "{"
            + ", ".join(
                f"{json.dumps(str(key))}: {python_literal(item)}"
                for key, item in value.items()
            )
            + "}"
        )
    return json.dumps(str(value))


class ExampleGenerator:
    """
    Генератор примеров по схемам

    Один и тот же seed и документ всегда дают один и тот же результат.
    """

    def __init__(self, index: SpecIndex, seed: int = DEFAULT_SEED):
        self.index = index
        self.seed = seed
        self.random = RandomValues(seed)

    def reset(self) -> "ExampleGenerator":
        self.random = RandomValues(self.seed)
        return self

    def example(self, schema: Any, depth: int = 0) -> Any:
        if depth > HARD_DEPTH:
            return None

        if self.index.is_reference(schema):
            return self.example(self.index.expand("schema", schema), depth + 1)

        if schema is True or schema == {}:
            return self.random.word()

        if not isinstance(schema, dict):
            raise UnsupportedCompositeError("example", "схема должна быть объектом")

        if "anyOf" in schema:
            raise UnsupportedCompositeError("example", "anyOf не поддерживается")
        if "not" in schema:
            raise UnsupportedCompositeError("example", "not не поддерживается")

        if "allOf" in schema:
            return self._all_of(schema, depth)

        if "oneOf" in schema:
            branches = [
                b
                for b in schema["oneOf"]
                if not (isinstance(b, dict) and b.get("type") == "null")
            ]
            return self.example(self.random.choice(branches), depth + 1)

        value_type, _ = schema_type(schema, "example")
        enum = [v for v in schema.get("enum") or [] if v is not None]

        if enum:
            return self.random.choice(enum)

        if value_type is None:
            if "properties" in schema or "additionalProperties" in schema:
                value_type = "object"
            elif "items" in schema:
                value_type = "array"
            else:
                raise UnsupportedCompositeError("example", "схема без типа")

        if value_type == "object":
            return self._object(schema, depth)

        if value_type == "array":
            if depth > MAX_DEPTH:
                return []
            count = self.random.small_integer(1, 3)
            return [self.example(schema.get("items", {}), depth + 1) for _ in range(count)]

        return self.primitive(value_type, schema.get("format") or None)

    def _object(self, schema: Dict[str, Any], depth: int) -> Dict[str, Any]:
        required = set(schema.get("required") or [])
        result: Dict[str, Any] = {}

        for name, prop in (schema.get("properties") or {}).items():
            if depth > MAX_DEPTH and name not in required:
                continue
            result[name] = self.example(prop, depth + 1)

        additional = schema.get("additionalProperties")
        if not result and additional not in (None, False):
            result["some-key"] = self.example(additional, depth + 1)

        return result

    def _all_of(self, schema: Dict[str, Any], depth: int) -> Any:
        branches = schema["allOf"]
        examples = [self.example(branch, depth + 1) for branch in branches]

        # ветки-объекты сливаются, иначе берется одна ветка
        if examples and all(isinstance(e, dict) for e in examples):
            merged: Dict[str, Any] = {}
            for item in examples:
                merged.update(item)
            if schema.get("properties"):
                merged.update(self._object(schema, depth))
            return merged

        return self.random.choice(examples)

    def primitive(self, value_type: str, schema_format: Optional[str] = None) -> Any:
        """Значение примитива по типу и формату"""
        rnd = self.random

        if value_type == "boolean":
            return rnd.boolean()

        if value_type == "integer":
            bits, signed = INTEGER_WIDTHS.get(schema_format, (32, True))
            return rnd.integer(bits, signed)

        if value_type == "number":
            return rnd.number()

        producers = {
            "date-time": rnd.datetime,
            "partial-date-time": rnd.datetime,
            "date": rnd.date,
            "time": rnd.time,
            "byte": rnd.base64,
            "binary": rnd.base64,
            "uuid": rnd.uuid,
            "uri": rnd.url,
            "url": rnd.url,
            "email": rnd.email,
            "hostname": rnd.hostname,
            "phone": rnd.phone,
            "ipv4": rnd.ipv4,
            "ipv6": rnd.ipv6,
            "ip": rnd.ip,
            "int64": lambda: str(rnd.integer(64, True)),
            "uint64": lambda: str(rnd.integer(64, False)),
            "float": lambda: str(rnd.number()),
        }

        producer = producers.get(schema_format)
        return producer() if producer is not None else rnd.string()
