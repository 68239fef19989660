"""
Рендер реестра типов в модуль types сгенерированного клиента
"""

import json
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..types.models import Class, CodeFile, Parameter
from ..types.registry import (
    TYPE_IMPORTS,
    Alias,
    Field,
    NamedType,
    Newtype,
    OneOf,
    StringEnum,
    Struct,
    TypeRef,
    TypeRegistry,
)
from ..utils.naming import field_name

TYPES_HEADER_IMPORTS = [
    "from __future__ import annotations",
    "",
    "from enum import Enum",
    "from typing import Annotated, Any, ClassVar, Dict, List, Literal, Optional, Union",
    "",
    "from pydantic import ConfigDict, Field, RootModel, Strict",
    "",
    "from .base import Model",
    "from .paginate import Pagination",
]

# Виды, которые в объединении без дискриминатора проверяются строго
STRICT_KINDS = ("int", "float", "bool", "str")


def import_lines(
    refs: Iterable[TypeRef],
    relative_prefix: str = "",
    extra: Iterable[Tuple[str, str]] = (),
) -> List[str]:
    """
    Импорты примитивов, которые встречаются в аннотациях

    relative_prefix добавляется к модулям пакета types (".types" для модулей тегов),
    extra: дополнительные пары (модуль, имя).
    """
    modules: Dict[str, Set[str]] = {}
    for module, name in extra:
        modules.setdefault(module, set()).add(name)

    for ref in refs:
        for item in ref.walk():
            module = TYPE_IMPORTS.get(item.name)
            if module is None or item.kind == "named":
                continue
            if module.startswith("."):
                module = relative_prefix + module
            modules.setdefault(module, set()).add(item.name)

    return [
        f"from {module} import {', '.join(sorted(names))}"
        for module, names in sorted(modules.items())
    ]


def render_ref(ref: TypeRef, defined: Optional[Set[str]] = None) -> str:
    """
    Аннотация для выражения, которое вычисляется сразу

    Имена, которые еще не определены в модуле, берутся в кавычки.
    """
    if defined is None:
        return str(ref)

    if ref.kind == "named":
        return ref.name if ref.name in defined else json.dumps(ref.name)
    if ref.kind == "literal" or not ref.args:
        return str(ref)

    return f"{ref.name}[{', '.join(render_ref(arg, defined) for arg in ref.args)}]"


def qualified_ref(ref: TypeRef, namespace: str = "types") -> str:
    """Аннотация вне модуля types: именованные типы через ``types.X``"""
    if ref.kind == "named":
        return f"{namespace}.{ref.name}"
    if ref.kind == "literal" or not ref.args:
        return str(ref)

    return f"{ref.name}[{', '.join(qualified_ref(arg, namespace) for arg in ref.args)}]"


def _eager_dependencies(named: NamedType) -> Set[str]:
    """Имена, нужные в момент создания класса или алиаса"""
    if isinstance(named, (OneOf, Newtype, Alias)):
        return {name for ref in named.references() for name in ref.named_references()}
    if isinstance(named, Struct):
        # значения по умолчанию вида Color.Red вычисляются в теле класса
        return {
            f.default.split(".", maxsplit=1)[0]
            for f in named.fields
            if f.default and "." in f.default and f.default[:1].isupper()
        }
    return set()


def emission_order(registry: TypeRegistry) -> List[NamedType]:
    """Порядок реестра, где базовые классы и алиасы идут после зависимостей"""
    ordered: List[NamedType] = []
    visited: Set[str] = set()
    in_progress: Set[str] = set()

    def visit(named: NamedType):
        if named.name in visited or named.name in in_progress:
            return
        in_progress.add(named.name)
        for dependency in sorted(_eager_dependencies(named)):
            target = registry.get(dependency)
            if target is not None:
                visit(target)
        in_progress.discard(named.name)
        visited.add(named.name)
        ordered.append(named)

    for named in registry:
        visit(named)

    return ordered


def _field_parameter(field: Field) -> Parameter:
    annotation = str(field.type)

    if field.required:
        default = field.default
    else:
        default = "None"

    if field.renamed:
        args = [] if default is None else [default]
        args.append(f"alias={json.dumps(field.json_name)}")
        default = f"Field({', '.join(args)})"

    return Parameter(
        name=field.name, annotation=annotation, default=default, doc=field.doc
    )


def render_struct(struct: Struct) -> Class:
    inherits = ["Model"] + (["Pagination"] if struct.pagination else [])
    cls = Class(name=struct.name, inherits=inherits, doc=struct.doc)

    if struct.extra is not None:
        cls.add_parameter("model_config", default='ConfigDict(extra="allow")')
        cls.add_parameter(
            "__pydantic_extra__",
            annotation=str(TypeRef.dict_of(struct.extra)),
            default="Field(init=False)",
        )

    if struct.pagination is not None:
        cls.add_parameter(
            "pagination_items_field",
            annotation="ClassVar[str]",
            default=json.dumps(struct.pagination.items_field),
        )
        cls.add_parameter(
            "pagination_next_field",
            annotation="ClassVar[str]",
            default=json.dumps(struct.pagination.next_field),
        )

    if struct.tag is not None:
        json_name, value = struct.tag
        name, renamed = field_name(json_name)
        literal = json.dumps(value)
        cls.add_parameter(
            name,
            annotation=str(TypeRef.literal_of(value)),
            default=(
                f"Field({literal}, alias={json.dumps(json_name)})" if renamed else literal
            ),
        )

    for field in struct.fields:
        cls.add_parameter(_field_parameter(field))

    return cls


def render_enum(enum: StringEnum) -> Class:
    cls = Class(name=enum.name, inherits=["str", "Enum"], doc=enum.doc)

    for variant in enum.variants:
        cls.add_parameter(
            variant.name, default=json.dumps(variant.json_value), doc=variant.doc
        )

    if enum.default is not None:
        cls.add_function(
            "default",
            parameters=[Parameter(name="cls")],
            response=json.dumps(enum.name),
            decorators=["@classmethod"],
        ).set_code_block(f"return cls.{enum.default}")

    cls.add_function(
        "__str__",
        parameters=[Parameter(name="self")],
        response="str",
    ).set_code_block("return str(self.value)")

    return cls


def _is_scalar(ref: TypeRef, registry: Optional[TypeRegistry]) -> bool:
    """Примитив, который pydantic в lax режиме получает из чужого JSON типа"""
    seen: Set[str] = set()
    while ref.kind == "named" and registry is not None and ref.name not in seen:
        seen.add(ref.name)
        named = registry.get(ref.name)
        if not isinstance(named, Alias):
            break
        ref = named.target
    return ref.kind in STRICT_KINDS


def render_one_of(
    union: OneOf, defined: Set[str], registry: Optional[TypeRegistry] = None
) -> Class:
    """
    Объединение как RootModel

    Без дискриминатора варианты пробуются по порядку, а примитивы
    проверяются строго: "007" не станет числом 7.
    """
    unique = {render_ref(v.payload, defined): v.payload for v in union.variants}
    refs = list(unique.items())
    payloads = list(unique)

    if len(payloads) > 1 and union.discriminator is None:
        payloads = [
            f"Annotated[{rendered}, Strict()]" if _is_scalar(ref, registry) else rendered
            for rendered, ref in refs
        ]

    if len(payloads) == 1:
        root = payloads[0]
    elif union.discriminator is not None:
        tag, _ = field_name(union.discriminator)
        root = (
            f"Annotated[Union[{', '.join(payloads)}], "
            f"Field(discriminator={json.dumps(tag)})]"
        )
    else:
        root = (
            f"Annotated[Union[{', '.join(payloads)}], "
            'Field(union_mode="left_to_right")]'
        )

    doc = union.doc
    if union.discriminator is None and len(payloads) > 1:
        note = "Variants are tried in declaration order, the first that parses wins."
        doc = f"{doc}\n\n{note}" if doc else note

    return Class(name=union.name, inherits=[f"RootModel[{root}]"], doc=doc)


def render_newtype(newtype: Newtype, defined: Set[str]) -> Class:
    return Class(
        name=newtype.name,
        inherits=[f"RootModel[{render_ref(newtype.inner, defined)}]"],
        doc=newtype.doc,
    )


def render_alias(alias: Alias, defined: Set[str]) -> str:
    comment = ""
    if alias.doc:
        comment = "\n".join(f"# {line}".rstrip() for line in alias.doc.strip().splitlines())
        comment += "\n"
    return f"{comment}{alias.name} = {render_ref(alias.target, defined)}"


def all_references(registry: TypeRegistry) -> List[TypeRef]:
    refs: List[TypeRef] = []
    for named in registry:
        refs.extend(named.references())
    return refs


def render_types_module(registry: TypeRegistry, file_name: str) -> CodeFile:
    """Модуль со всеми именованными типами"""
    code_file = CodeFile(
        file_name=file_name,
        doc="Types used by the API client.",
        imports=TYPES_HEADER_IMPORTS + [""] + import_lines(all_references(registry)),
    )

    defined: Set[str] = set()
    models: List[str] = []

    for named in emission_order(registry):
        if isinstance(named, Struct):
            code_file.add_class(render_struct(named))
            models.append(named.name)
        elif isinstance(named, StringEnum):
            code_file.add_class(render_enum(named))
        elif isinstance(named, OneOf):
            code_file.add_class(render_one_of(named, defined, registry))
            models.append(named.name)
        elif isinstance(named, Newtype):
            code_file.add_class(render_newtype(named, defined))
            models.append(named.name)
        else:
            code_file.add_code_block(render_alias(named, defined))
        defined.add(named.name)

    if models:
        code_file.add_code_block(
            "# Rebuild models to resolve forward references\n"
            + "\n".join(f"{name}.model_rebuild()" for name in models)
        )

    names = [named.name for named in registry]
    code_file.add_code_block(
        "__all__ = [\n" + "".join(f"    {json.dumps(n)},\n" for n in sorted(names)) + "]"
    )

    return code_file
