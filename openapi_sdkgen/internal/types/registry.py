"""
Модель типов генератора: ссылки на типы, именованные типы и их реестр
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple, Union

from pydantic import BaseModel, ConfigDict

from ...exceptions import CollisionError

# Откуда импортируется каждое имя, встречающееся в аннотациях.
# Модули с точкой указаны относительно пакета types сгенерированного клиента.
TYPE_IMPORTS = {
    "Any": "typing",
    "Dict": "typing",
    "List": "typing",
    "Literal": "typing",
    "Optional": "typing",
    "datetime": "datetime",
    "date": "datetime",
    "time": "datetime",
    "UUID": "uuid",
    "IPv4Address": "ipaddress",
    "IPv6Address": "ipaddress",
    "AnyUrl": "pydantic",
    "IPvAnyAddress": "pydantic",
    "Base64Data": ".base64",
    "PhoneNumber": ".phone_number",
}


class TypeRef(BaseModel):
    """
    Ссылка на тип: примитив, контейнер или именованный тип из реестра

    Сравнение и хеш идут по отрендеренной аннотации.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    args: Tuple["TypeRef", ...] = ()
    kind: str = "named"
    literal: Optional[str] = None

    @classmethod
    def primitive(cls, name: str, kind: str) -> "TypeRef":
        return cls(name=name, kind=kind)

    @classmethod
    def named(cls, name: str) -> "TypeRef":
        return cls(name=name, kind="named")

    @classmethod
    def list_of(cls, item: "TypeRef") -> "TypeRef":
        return cls(name="List", args=(item,), kind="list")

    @classmethod
    def dict_of(cls, value: "TypeRef") -> "TypeRef":
        return cls(name="Dict", args=(STR, value), kind="dict")

    @classmethod
    def optional(cls, inner: "TypeRef") -> "TypeRef":
        if inner.kind in ("optional", "any"):
            return inner
        return cls(name="Optional", args=(inner,), kind="optional")

    @classmethod
    def literal_of(cls, value: str) -> "TypeRef":
        return cls(name="Literal", kind="literal", literal=value)

    @property
    def is_optional(self) -> bool:
        return self.kind == "optional"

    def unwrap_optional(self) -> "TypeRef":
        return self.args[0] if self.kind == "optional" else self

    def walk(self) -> Iterator["TypeRef"]:
        yield self
        for arg in self.args:
            yield from arg.walk()

    def named_references(self) -> Iterator[str]:
        for ref in self.walk():
            if ref.kind == "named":
                yield ref.name

    def __str__(self) -> str:
        if self.kind == "literal":
            return f"Literal[{json.dumps(self.literal)}]"
        if self.args:
            return f"{self.name}[{', '.join(str(arg) for arg in self.args)}]"
        return self.name

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, TypeRef):
            return str(self) == str(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(str(self))


STR = TypeRef.primitive("str", "str")
ANY = TypeRef.primitive("Any", "any")


@dataclass
class Field:
    """Поле структуры"""

    name: str
    json_name: str
    type: TypeRef
    required: bool = False
    doc: Optional[str] = None
    # Python выражение значения по умолчанию
    default: Optional[str] = None

    @property
    def renamed(self) -> bool:
        return self.name != self.json_name


@dataclass
class PageShape:
    """Поля страницы для постраничной выдачи"""

    items_field: str
    next_field: str
    item_type: TypeRef


@dataclass
class Struct:
    name: str
    fields: List[Field] = field(default_factory=list)
    doc: Optional[str] = None
    # тип значений additionalProperties
    extra: Optional[TypeRef] = None
    # (json имя, значение) дискриминатора для вариантов oneOf
    tag: Optional[Tuple[str, str]] = None
    pagination: Optional[PageShape] = None

    def references(self) -> Iterator[TypeRef]:
        for f in self.fields:
            yield f.type
        if self.extra is not None:
            yield self.extra
        if self.pagination is not None:
            yield self.pagination.item_type


@dataclass
class EnumVariant:
    name: str
    json_value: str
    doc: Optional[str] = None

    @property
    def renamed(self) -> bool:
        return self.name != self.json_value


@dataclass
class StringEnum:
    name: str
    variants: List[EnumVariant] = field(default_factory=list)
    doc: Optional[str] = None
    # имя члена по умолчанию
    default: Optional[str] = None

    def references(self) -> Iterator[TypeRef]:
        return iter(())


@dataclass
class UnionVariant:
    name: str
    payload: TypeRef


@dataclass
class OneOf:
    """oneOf: с дискриминатором или без"""

    name: str
    variants: List[UnionVariant] = field(default_factory=list)
    # json имя поля-дискриминатора, None для нетегированного объединения
    discriminator: Optional[str] = None
    doc: Optional[str] = None

    def references(self) -> Iterator[TypeRef]:
        for variant in self.variants:
            yield variant.payload


@dataclass
class Newtype:
    name: str
    inner: TypeRef
    doc: Optional[str] = None

    def references(self) -> Iterator[TypeRef]:
        yield self.inner


@dataclass
class Alias:
    name: str
    target: TypeRef
    doc: Optional[str] = None

    def references(self) -> Iterator[TypeRef]:
        yield self.target


NamedType = Union[Struct, StringEnum, OneOf, Newtype, Alias]


class TypeRegistry:
    """Упорядоченный реестр именованных типов, запись под имя один раз"""

    def __init__(self):
        self._types: Dict[str, NamedType] = {}

    def register(self, named: NamedType) -> TypeRef:
        existing = self._types.get(named.name)

        if existing is None:
            self._types[named.name] = named
        elif existing != named:
            raise CollisionError(named.name)

        return TypeRef.named(named.name)

    def get(self, name: str) -> Optional[NamedType]:
        return self._types.get(name)

    def remove(self, name: str) -> None:
        self._types.pop(name, None)

    def names(self) -> List[str]:
        return list(self._types)

    def __contains__(self, name: str) -> bool:
        return name in self._types

    def __iter__(self) -> Iterator[NamedType]:
        return iter(list(self._types.values()))

    def __len__(self) -> int:
        return len(self._types)

    def missing_references(self) -> Dict[str, Set[str]]:
        """Имя без определения -> типы, которые на него ссылаются"""
        missing: Dict[str, Set[str]] = {}

        for named in self._types.values():
            for ref in named.references():
                for name in ref.named_references():
                    if name not in self._types:
                        missing.setdefault(name, set()).add(named.name)

        return missing

    def resolve(self, ref: TypeRef) -> TypeRef:
        """Разворачивает Optional и алиасы до конечного типа"""
        seen = set()
        ref = ref.unwrap_optional()

        while ref.kind == "named" and ref.name not in seen:
            seen.add(ref.name)
            named = self._types.get(ref.name)
            if not isinstance(named, Alias):
                break
            ref = named.target.unwrap_optional()

        return ref

    def kind_of(self, ref: TypeRef) -> str:
        """Вид типа с учетом алиасов: примитив, list, enum, struct, oneof, newtype"""
        ref = self.resolve(ref)
        if ref.kind != "named":
            return ref.kind

        named = self._types.get(ref.name)
        if isinstance(named, StringEnum):
            return "enum"
        if isinstance(named, Struct):
            return "struct"
        if isinstance(named, OneOf):
            return "oneof"
        if isinstance(named, Newtype):
            return "newtype"
        return "named"
