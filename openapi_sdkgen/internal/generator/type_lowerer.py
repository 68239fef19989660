"""
Понижение схем OpenAPI в модель типов

Каждая схема превращается в TypeRef. Анонимные объекты, enum и oneOf
регистрируются в реестре как вспомогательные именованные типы.
"""

import dataclasses
import json
from typing import Any, Dict, List, Optional, Set, Tuple

import structlog

from ...exceptions import CollisionError, UnsupportedCompositeError, UnsupportedFormatError
from ..parser.index import SpecIndex
from ..types.registry import (
    ANY,
    Alias,
    EnumVariant,
    Field,
    NamedType,
    Newtype,
    OneOf,
    PageShape,
    StringEnum,
    Struct,
    TypeRef,
    TypeRegistry,
    UnionVariant,
)
from ..utils.naming import enum_variant_name, field_name, type_name

logger = structlog.get_logger(__name__)

# format -> (аннотация, вид)
STRING_FORMATS = {
    None: ("str", "str"),
    "date-time": ("datetime", "datetime"),
    "partial-date-time": ("datetime", "datetime"),
    "date": ("date", "date"),
    "time": ("time", "time"),
    "byte": ("Base64Data", "bytes"),
    "binary": ("Base64Data", "bytes"),
    "uuid": ("UUID", "uuid"),
    "uri": ("AnyUrl", "url"),
    "url": ("AnyUrl", "url"),
    "email": ("str", "str"),
    "hostname": ("str", "str"),
    "password": ("str", "str"),
    "uri-template": ("str", "str"),
    "id": ("str", "str"),
    "phone": ("PhoneNumber", "phone"),
    "ipv4": ("IPv4Address", "ip"),
    "ipv6": ("IPv6Address", "ip"),
    "ip": ("IPvAnyAddress", "ip"),
    "int64": ("int", "int"),
    "uint64": ("int", "int"),
    "float": ("float", "float"),
}

INTEGER_FORMATS = {
    fmt: ("int", "int")
    for fmt in (
        None,
        "int8",
        "int16",
        "int32",
        "int64",
        "duration",
        "uint",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
    )
}

NUMBER_FORMATS = {
    fmt: ("float", "float")
    for fmt in (None, "float", "double", "money-usd", "f32", "f64")
}

BOOLEAN_FORMATS = {None: ("bool", "bool")}

PRIMITIVES = {
    "string": STRING_FORMATS,
    "integer": INTEGER_FORMATS,
    "number": NUMBER_FORMATS,
    "boolean": BOOLEAN_FORMATS,
}

# Верхнеуровневые примитивы этих видов становятся отдельными типами
NEWTYPE_KINDS = ("phone", "bytes", "uuid")

PAGE_ITEMS_FIELDS = ("items", "data", "results")
PAGE_NEXT_FIELDS = ("next_page", "next", "next_link")

# Сегменты пути схемы, которые не несут смысла для имени
_STRUCTURAL_SEGMENTS = {
    "#",
    "components",
    "schemas",
    "properties",
    "items",
    "allOf",
    "oneOf",
    "additionalProperties",
    "paths",
    "content",
    "schema",
}

_DOC_KEYS = ("description", "title", "example", "examples", "externalDocs")


def schema_type(schema: Dict[str, Any], path: str) -> Tuple[Optional[str], bool]:
    """
    Тип схемы и признак nullable

    Поддерживает и ``nullable: true`` из 3.0, и ``type: [X, "null"]`` из 3.1.
    """
    nullable = schema.get("nullable") is True
    value = schema.get("type")

    if isinstance(value, list):
        types = [t for t in value if t != "null"]
        nullable = nullable or len(types) != len(value)
        if len(types) > 1:
            raise UnsupportedCompositeError(path, f"несколько типов: {value}")
        value = types[0] if types else None

    if value is None and isinstance(schema.get("enum"), list) and None in schema["enum"]:
        nullable = True

    return value, nullable


class TypeLowerer:
    """Понижение схем с регистрацией именованных типов"""

    def __init__(self, index: SpecIndex, registry: Optional[TypeRegistry] = None):
        self.index = index
        self.registry = registry if registry is not None else TypeRegistry()
        # имена компонентов недоступны для вспомогательных типов
        self.reserved: Set[str] = set()
        for name in index.schemas():
            try:
                self.reserved.add(type_name(name))
            except ValueError:
                continue

    def lower_component(self, name: str, schema: Any) -> TypeRef:
        """Регистрация схемы из components/schemas"""
        own_name = type_name(name)
        path = f"#/components/schemas/{name}"

        if not isinstance(schema, dict):
            raise UnsupportedCompositeError(path, "схема должна быть объектом")

        doc = schema.get("description")

        if self.index.is_reference(schema):
            target = self.lower(schema, own_name, path)
            return self.registry.register(Alias(own_name, target, doc))

        branch = self.index.transparent_allof(schema)
        if branch is not None and self.index.is_reference(branch):
            target = self.lower(branch, own_name, f"{path}/allOf/0")
            _, nullable = schema_type(schema, path)
            if nullable:
                target = TypeRef.optional(target)
            return self.registry.register(Alias(own_name, target, doc))

        result = self.lower(schema, own_name, path, top_level=True)

        if result.unwrap_optional().kind == "named" and result.unwrap_optional().name == own_name:
            return result

        if result.kind in NEWTYPE_KINDS:
            return self.registry.register(Newtype(own_name, result, doc))

        return self.registry.register(Alias(own_name, result, doc))

    def lower(
        self, schema: Any, proposed: str, path: str, top_level: bool = False
    ) -> TypeRef:
        """Тип для любой схемы, proposed используется для анонимных типов"""
        if not isinstance(schema, dict):
            raise UnsupportedCompositeError(path, "схема должна быть объектом")

        if self.index.is_reference(schema):
            reference = schema["$ref"]
            # несуществующий компонент сразу фатален
            self.index.resolve("schema", reference)
            result = TypeRef.named(type_name(self.index.reference_name(reference)))
            if schema.get("nullable") is True:
                result = TypeRef.optional(result)
            return result

        value_type, nullable = schema_type(schema, path)
        result = self._lower(schema, value_type, proposed, path, top_level)

        return TypeRef.optional(result) if nullable else result

    def _lower(
        self,
        schema: Dict[str, Any],
        value_type: Optional[str],
        proposed: str,
        path: str,
        top_level: bool,
    ) -> TypeRef:
        if "allOf" in schema:
            branch = self.index.transparent_allof(schema)
            if branch is not None:
                return self.lower(branch, proposed, f"{path}/allOf/0", top_level)
            return self._lower_all_of(schema, proposed, path, top_level)

        if "oneOf" in schema:
            return self._lower_one_of(schema, proposed, path, top_level)

        if "anyOf" in schema:
            raise UnsupportedCompositeError(path, "anyOf не поддерживается")

        if "not" in schema:
            raise UnsupportedCompositeError(path, "not не поддерживается")

        if value_type is None:
            if "properties" in schema or "additionalProperties" in schema:
                value_type = "object"
            elif "items" in schema:
                value_type = "array"
            elif [v for v in schema.get("enum") or [] if v is not None]:
                value_type = "string"
            else:
                raise UnsupportedCompositeError(path, "схема без типа")

        if value_type == "string" and [v for v in schema.get("enum") or [] if v is not None]:
            return self._lower_enum(schema, proposed, path, top_level)

        if value_type in PRIMITIVES:
            return self._primitive(value_type, schema, path)

        if value_type == "object":
            return self._lower_object(schema, proposed, path, top_level)

        if value_type == "array":
            if "items" not in schema:
                raise UnsupportedCompositeError(path, "массив без items")
            item = self.lower(schema["items"], f"{proposed}_item", f"{path}/items")
            return TypeRef.list_of(item)

        raise UnsupportedCompositeError(path, f"неизвестный тип '{value_type}'")

    @staticmethod
    def _primitive(value_type: str, schema: Dict[str, Any], path: str) -> TypeRef:
        formats = PRIMITIVES[value_type]
        schema_format = schema.get("format") or None

        if schema_format not in formats:
            raise UnsupportedFormatError(path, value_type, schema_format)

        name, kind = formats[schema_format]
        return TypeRef.primitive(name, kind)

    def _lower_enum(
        self, schema: Dict[str, Any], proposed: str, path: str, top_level: bool
    ) -> TypeRef:
        values = [str(v) for v in schema["enum"] if v is not None]
        descriptions = schema.get("x-enum-descriptions") or {}

        variants: List[EnumVariant] = []
        seen: Dict[str, int] = {}
        for value in dict.fromkeys(values):
            name, _ = enum_variant_name(value)
            if name in seen:
                seen[name] += 1
                name = f"{name}{seen[name]}"
            else:
                seen[name] = 1
            doc = descriptions.get(value) if isinstance(descriptions, dict) else None
            variants.append(EnumVariant(name, value, doc))

        default = None
        if schema.get("default") is not None:
            for variant in variants:
                if variant.json_value == str(schema["default"]):
                    default = variant.name
        elif len(variants) == 1:
            default = variants[0].name

        named = StringEnum(
            type_name(proposed), variants, schema.get("description"), default
        )
        return self._register(named, path, top_level)

    def _additional(self, value: Any, proposed: str, path: str) -> TypeRef:
        if value is True or value == {}:
            return ANY
        return self.lower(value, f"{proposed}_value", f"{path}/additionalProperties")

    def _field_default(self, prop: Any, ref: TypeRef) -> Optional[str]:
        """Python выражение для default обязательного поля"""
        if not isinstance(prop, dict) or prop.get("default") is None:
            return None

        value = prop["default"]
        target = self.registry.resolve(ref)

        if target.kind == "named":
            named = self.registry.get(target.name)
            if isinstance(named, StringEnum):
                for variant in named.variants:
                    if variant.json_value == str(value):
                        return f"{named.name}.{variant.name}"
            return None

        if target.kind == "bool" and isinstance(value, bool):
            return repr(value)
        if target.kind == "int" and isinstance(value, int) and not isinstance(value, bool):
            return repr(value)
        if target.kind == "float" and isinstance(value, (int, float)) and not isinstance(value, bool):
            return repr(float(value))
        if target.kind == "str" and isinstance(value, str):
            return json.dumps(value)

        return None

    def _lower_object(
        self, schema: Dict[str, Any], proposed: str, path: str, top_level: bool
    ) -> TypeRef:
        properties = schema.get("properties") or {}
        additional = schema.get("additionalProperties")

        if not properties:
            if additional is None or additional is False:
                return TypeRef.dict_of(ANY)
            return TypeRef.dict_of(self._additional(additional, proposed, path))

        required = set(schema.get("required") or [])
        fields = self._lower_fields(properties, required, proposed, path)

        extra = None
        if additional is not None and additional is not False:
            extra = self._additional(additional, proposed, path)

        named = Struct(
            name=type_name(proposed),
            fields=fields,
            doc=schema.get("description"),
            extra=extra,
            pagination=self._page_shape(fields),
        )
        return self._register(named, path, top_level)

    def _lower_fields(
        self,
        properties: Dict[str, Any],
        required: Set[str],
        proposed: str,
        path: str,
        skip: Optional[str] = None,
    ) -> List[Field]:
        fields: List[Field] = []
        used: Set[str] = set()

        for json_name, prop in properties.items():
            if json_name == skip:
                continue

            name, _ = field_name(json_name)
            while name in used:
                name += "_"
            used.add(name)

            ref = self.lower(
                prop, f"{proposed}_{json_name}", f"{path}/properties/{json_name}"
            )
            is_required = json_name in required

            fields.append(
                Field(
                    name=name,
                    json_name=json_name,
                    type=ref if is_required else TypeRef.optional(ref),
                    required=is_required,
                    doc=prop.get("description") if isinstance(prop, dict) else None,
                    default=self._field_default(prop, ref) if is_required else None,
                )
            )

        return fields

    @staticmethod
    def _page_shape(fields: List[Field]) -> Optional[PageShape]:
        items = next(
            (
                f
                for f in fields
                if f.json_name in PAGE_ITEMS_FIELDS
                and f.type.unwrap_optional().kind == "list"
            ),
            None,
        )
        next_page = next((f for f in fields if f.json_name in PAGE_NEXT_FIELDS), None)

        if items is None or next_page is None:
            return None

        return PageShape(
            items_field=items.name,
            next_field=next_page.name,
            item_type=items.type.unwrap_optional().args[0],
        )

    def _object_view(
        self, schema: Any, path: str, seen: Optional[Set[str]] = None
    ) -> Dict[str, Any]:
        """
        Схема объекта с развернутыми $ref и вложенными allOf

        Returns:
            Словарь со свойствами, required, описанием и additionalProperties
        """
        seen = set() if seen is None else seen

        if self.index.is_reference(schema):
            reference = schema["$ref"]
            if reference in seen:
                raise UnsupportedCompositeError(path, f"циклический allOf через {reference}")
            seen = seen | {reference}
            schema = self.index.expand("schema", schema)

        if not isinstance(schema, dict):
            raise UnsupportedCompositeError(path, "схема должна быть объектом")

        if "allOf" in schema:
            view = {"properties": {}, "required": set(), "description": None}
            for i, branch in enumerate(schema["allOf"]):
                part = self._object_view(branch, f"{path}/allOf/{i}", seen)
                self._merge_view(view, part, path)
            own = {
                "properties": dict(schema.get("properties") or {}),
                "required": set(schema.get("required") or []),
                "description": schema.get("description"),
                "additionalProperties": schema.get("additionalProperties"),
            }
            for key in ("description", "additionalProperties"):
                if own[key] is not None:
                    view[key] = own[key]
            self._merge_view(view, own, path)
            return view

        value_type, _ = schema_type(schema, path)
        if value_type not in (None, "object") or any(
            key in schema for key in ("oneOf", "anyOf", "not")
        ):
            raise UnsupportedCompositeError(path, "ветка allOf должна быть объектом")

        return {
            "properties": dict(schema.get("properties") or {}),
            "required": set(schema.get("required") or []),
            "description": schema.get("description"),
            "additionalProperties": schema.get("additionalProperties"),
        }

    def _merge_view(self, view: Dict[str, Any], part: Dict[str, Any], path: str):
        for name, prop in part["properties"].items():
            existing = view["properties"].get(name)
            if existing is not None:
                if self._shape(existing) != self._shape(prop):
                    raise CollisionError(
                        name, f"Поле '{name}' имеет разные типы в ветках allOf ({path})"
                    )
                continue
            view["properties"][name] = prop

        view["required"] |= part["required"]
        if view.get("description") is None:
            view["description"] = part.get("description")
        if view.get("additionalProperties") is None:
            view["additionalProperties"] = part.get("additionalProperties")

    @staticmethod
    def _shape(schema: Any) -> Any:
        """Схема без описательных ключей, для сравнения типов полей"""
        if isinstance(schema, dict):
            return {
                key: TypeLowerer._shape(value)
                for key, value in schema.items()
                if key not in _DOC_KEYS
            }
        if isinstance(schema, list):
            return [TypeLowerer._shape(value) for value in schema]
        return schema

    def _lower_all_of(
        self, schema: Dict[str, Any], proposed: str, path: str, top_level: bool
    ) -> TypeRef:
        view = self._object_view(schema, path)
        merged = {
            "type": "object",
            "properties": view["properties"],
            "required": sorted(view["required"]),
        }
        if view.get("description") is not None:
            merged["description"] = view["description"]
        if view.get("additionalProperties") is not None:
            merged["additionalProperties"] = view["additionalProperties"]

        return self._lower_object(merged, proposed, path, top_level)

    def _single_constant(self, prop: Any) -> Optional[str]:
        """Значение свойства, если это string enum из одного значения"""
        prop = self.index.expand("schema", prop)
        if not isinstance(prop, dict):
            return None

        values = [v for v in prop.get("enum") or [] if v is not None]
        if len(values) == 1 and prop.get("type", "string") == "string":
            return str(values[0])
        if "const" in prop and isinstance(prop["const"], str):
            return prop["const"]
        return None

    def _discriminator(
        self, schema: Dict[str, Any], views: List[Dict[str, Any]]
    ) -> Optional[str]:
        """Общее свойство-константа всех веток"""
        if not views:
            return None

        candidates = list(views[0]["properties"])
        declared = (schema.get("discriminator") or {}).get("propertyName")
        if declared in candidates:
            candidates.remove(declared)
            candidates.insert(0, declared)

        for candidate in candidates:
            values = []
            for view in views:
                prop = view["properties"].get(candidate)
                value = self._single_constant(prop) if prop is not None else None
                if value is None:
                    break
                values.append(value)
            else:
                if len(set(values)) == len(values):
                    return candidate

        return None

    def _lower_one_of(
        self, schema: Dict[str, Any], proposed: str, path: str, top_level: bool
    ) -> TypeRef:
        branches = []
        nullable = False
        for i, branch in enumerate(schema["oneOf"]):
            expanded = self.index.expand("schema", branch)
            if isinstance(expanded, dict) and (
                expanded.get("type") == "null" or expanded.get("enum") == [None]
            ):
                nullable = True
                continue
            branches.append((i, branch, expanded))

        if not branches:
            raise UnsupportedCompositeError(path, "oneOf без веток")

        result = self._enum_of_constants(schema, branches, proposed, path, top_level)
        if result is None:
            result = self._tagged_or_untagged(schema, branches, proposed, path, top_level)

        return TypeRef.optional(result) if nullable else result

    def _enum_of_constants(self, schema, branches, proposed, path, top_level):
        """oneOf из enum с одним значением сворачивается в один enum"""
        variants: List[EnumVariant] = []
        for _, _, expanded in branches:
            if not isinstance(expanded, dict) or expanded.get("type", "string") != "string":
                return None
            if "properties" in expanded:
                return None
            value = self._single_constant(expanded)
            if value is None:
                return None
            name, _ = enum_variant_name(value)
            variants.append(EnumVariant(name, value, expanded.get("description")))

        named = StringEnum(
            type_name(proposed),
            variants,
            schema.get("description"),
            variants[0].name if len(variants) == 1 else None,
        )
        return self._register(named, path, top_level)

    def _tagged_or_untagged(self, schema, branches, proposed, path, top_level):
        union_name = type_name(proposed)

        views = []
        for i, branch, expanded in branches:
            try:
                views.append(self._object_view(branch, f"{path}/oneOf/{i}"))
            except UnsupportedCompositeError:
                views = []
                break

        tag = self._discriminator(schema, views) if len(views) == len(branches) else None

        variants: List[UnionVariant] = []
        used: Set[str] = set()

        for (i, branch, expanded), view in zip(branches, views if tag else [None] * len(branches)):
            branch_path = f"{path}/oneOf/{i}"

            if tag is not None:
                value = self._single_constant(view["properties"][tag])
                variant_name, _ = enum_variant_name(value)
                fields = self._lower_fields(
                    view["properties"],
                    view["required"],
                    f"{union_name}_{variant_name}",
                    branch_path,
                    skip=tag,
                )
                payload = self._register(
                    Struct(
                        name=type_name(f"{union_name}_{variant_name}"),
                        fields=fields,
                        doc=view.get("description"),
                        tag=(tag, value),
                    ),
                    branch_path,
                    False,
                )
            else:
                if self.index.is_reference(branch):
                    variant_name = type_name(self.index.reference_name(branch["$ref"]))
                elif isinstance(expanded, dict) and expanded.get("title"):
                    variant_name = type_name(expanded["title"])
                else:
                    variant_name = f"Variant{i}"
                payload = self.lower(branch, f"{union_name}_{variant_name}", branch_path)

            while variant_name in used:
                variant_name += "_"
            used.add(variant_name)
            variants.append(UnionVariant(variant_name, payload))

        named = OneOf(union_name, variants, tag, schema.get("description"))
        return self._register(named, path, top_level)

    def _register(self, named: NamedType, path: str, top_level: bool) -> TypeRef:
        """Регистрация с разрешением конфликтов имен вспомогательных типов"""
        if top_level:
            return self.registry.register(named)

        if self._available(named.name, named):
            return self.registry.register(named)

        segments = [
            s
            for s in path.split("/")
            if s and s not in _STRUCTURAL_SEGMENTS and not s.isdigit()
        ]
        suffix = type_name("_".join(segments[-2:])) if segments else ""
        candidate = named.name + suffix

        if suffix and self._available(candidate, named):
            logger.debug("type.renamed", name=named.name, renamed=candidate, path=path)
            return self.registry.register(dataclasses.replace(named, name=candidate))

        raise CollisionError(named.name)

    def _available(self, name: str, named: NamedType) -> bool:
        if name in self.reserved:
            return False
        existing = self.registry.get(name)
        return existing is None or existing == named
