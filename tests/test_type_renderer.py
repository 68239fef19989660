"""
Тесты рендера модуля types
"""

from openapi_sdkgen.internal.generator.type_renderer import (
    emission_order,
    import_lines,
    qualified_ref,
    render_enum,
    render_one_of,
    render_ref,
    render_struct,
    render_types_module,
)
from openapi_sdkgen.internal.types.registry import (
    STR,
    Alias,
    EnumVariant,
    Field,
    OneOf,
    PageShape,
    StringEnum,
    Struct,
    TypeRef,
    TypeRegistry,
    UnionVariant,
)

DATETIME = TypeRef.primitive("datetime", "datetime")


class TestReferences:
    """Тесты аннотаций"""

    def test_render_ref_quotes_undefined(self):
        """Еще не определенные имена в кавычках"""
        ref = TypeRef.list_of(TypeRef.named("Later"))

        assert render_ref(ref) == "List[Later]"
        assert render_ref(ref, set()) == 'List["Later"]'
        assert render_ref(ref, {"Later"}) == "List[Later]"

    def test_qualified_ref(self):
        """Именованные типы через пространство имен types"""
        ref = TypeRef.optional(TypeRef.list_of(TypeRef.named("User")))

        assert qualified_ref(ref) == "Optional[List[types.User]]"
        assert qualified_ref(STR) == "str"

    def test_import_lines(self):
        """Импорты примитивов, именованные типы не импортируются"""
        refs = [
            TypeRef.optional(DATETIME),
            TypeRef.named("User"),
            TypeRef.primitive("Base64Data", "bytes"),
        ]

        assert import_lines(refs, ".types", [("typing", "Any")]) == [
            "from .types.base64 import Base64Data",
            "from datetime import datetime",
            "from typing import Any, Optional",
        ]


class TestClasses:
    """Тесты отдельных классов"""

    def test_struct(self):
        """Поля, alias и необязательные значения"""
        struct = Struct(
            "User",
            fields=[
                Field("id", "id", TypeRef.primitive("int", "int"), required=True),
                Field(
                    "first_name",
                    "firstName",
                    TypeRef.optional(STR),
                    doc="Name.",
                ),
            ],
            doc="A user.",
        )

        text = str(render_struct(struct))

        assert text.startswith("class User(Model):")
        assert "    id: int\n" in text
        assert 'first_name: Optional[str] = Field(None, alias="firstName")' in text
        assert '"""\n    Name.\n    """' in text

    def test_page_struct(self):
        """Страница наследует Pagination и знает свои поля"""
        item = TypeRef.named("Item")
        struct = Struct(
            "ItemPage",
            fields=[
                Field("items", "items", TypeRef.list_of(item), required=True),
                Field("next_page", "next_page", TypeRef.optional(STR)),
            ],
            pagination=PageShape("items", "next_page", item),
        )

        text = str(render_struct(struct))

        assert text.startswith("class ItemPage(Model, Pagination):")
        assert 'pagination_items_field: ClassVar[str] = "items"' in text
        assert 'pagination_next_field: ClassVar[str] = "next_page"' in text

    def test_tagged_variant(self):
        """Поле-дискриминатор как Literal"""
        struct = Struct("PetDog", tag=("class", "dog"))

        assert 'class_: Literal["dog"] = Field("dog", alias="class")' in str(
            render_struct(struct)
        )

    def test_extra(self):
        """additionalProperties сохраняются в модели"""
        text = str(render_struct(Struct("Labels", extra=STR)))

        assert 'model_config = ConfigDict(extra="allow")' in text
        assert "__pydantic_extra__: Dict[str, str] = Field(init=False)" in text

    def test_enum(self):
        """Члены перечисления и default"""
        enum = StringEnum(
            "Mode",
            [EnumVariant("Fast", "fast"), EnumVariant("Slow", "slow")],
            default="Slow",
        )

        text = str(render_enum(enum))

        assert text.startswith("class Mode(str, Enum):")
        assert 'Fast = "fast"' in text
        assert "return cls.Slow" in text
        assert "return str(self.value)" in text

    def test_one_of(self):
        """Объединения с дискриминатором и без"""
        tagged = OneOf(
            "Pet",
            [
                UnionVariant("Dog", TypeRef.named("PetDog")),
                UnionVariant("Cat", TypeRef.named("PetCat")),
            ],
            discriminator="class",
        )
        untagged = OneOf(
            "Value",
            [
                UnionVariant("Variant0", STR),
                UnionVariant("Variant1", TypeRef.primitive("int", "int")),
            ],
        )

        tagged_text = str(render_one_of(tagged, {"PetDog", "PetCat"}))
        untagged_text = str(render_one_of(untagged, set()))

        assert (
            'RootModel[Annotated[Union[PetDog, PetCat], Field(discriminator="class_")]]'
            in tagged_text
        )
        assert (
            "RootModel[Annotated[Union[Annotated[str, Strict()], Annotated[int, Strict()]], "
            'Field(union_mode="left_to_right")]]'
        ) in untagged_text
        assert "first that parses wins" in untagged_text

    def test_untagged_strict_only_for_scalars(self):
        """Строгая проверка у примитивов и алиасов на них, модели без изменений"""
        registry = TypeRegistry()
        registry.register(Alias("Count", TypeRef.primitive("int", "int")))
        union = OneOf(
            "Target",
            [
                UnionVariant("Count", TypeRef.named("Count")),
                UnionVariant("User", TypeRef.named("User")),
                UnionVariant("When", DATETIME),
            ],
        )

        text = str(render_one_of(union, {"Count", "User"}, registry))

        assert "Union[Annotated[Count, Strict()], User, datetime]" in text

    def test_single_variant_not_strict(self):
        union = OneOf("Name", [UnionVariant("A", STR), UnionVariant("B", STR)])

        assert "RootModel[str]" in str(render_one_of(union, set()))


class TestModule:
    """Тесты модуля целиком"""

    def test_emission_order(self):
        """Алиасы и объединения после своих зависимостей"""
        registry = TypeRegistry()
        registry.register(Alias("Ids", TypeRef.list_of(TypeRef.named("Id"))))
        registry.register(Alias("Id", STR))
        registry.register(Struct("User", [Field("id", "id", TypeRef.named("Id"))]))

        names = [named.name for named in emission_order(registry)]

        assert names == ["Id", "Ids", "User"]

    def test_enum_default_before_struct(self):
        """Перечисление для значения по умолчанию определено раньше структуры"""
        registry = TypeRegistry()
        registry.register(
            Struct(
                "Settings",
                [
                    Field(
                        "mode",
                        "mode",
                        TypeRef.named("Mode"),
                        required=True,
                        default="Mode.Fast",
                    )
                ],
            )
        )
        registry.register(StringEnum("Mode", [EnumVariant("Fast", "fast")]))

        names = [named.name for named in emission_order(registry)]

        assert names == ["Mode", "Settings"]

    def test_types_module(self):
        """Классы, model_rebuild и __all__"""
        registry = TypeRegistry()
        registry.register(StringEnum("Mode", [EnumVariant("Fast", "fast")]))
        registry.register(
            Struct("Event", [Field("at", "at", TypeRef.optional(DATETIME))])
        )
        registry.register(Alias("Events", TypeRef.list_of(TypeRef.named("Event"))))

        text = str(render_types_module(registry, "zoo/types/__init__.py"))

        assert "from __future__ import annotations" in text
        assert "from datetime import datetime" in text
        assert "class Mode(str, Enum):" in text
        assert "class Event(Model):" in text
        assert "Events = List[Event]" in text
        assert "Event.model_rebuild()" in text
        assert "Mode.model_rebuild()" not in text
        assert '__all__ = [\n    "Event",\n    "Events",\n    "Mode",\n]' in text
