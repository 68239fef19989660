"""Утилиты для генератора"""

from .naming import (
    enum_variant_name,
    env_var_name,
    field_name,
    operation_name,
    pascal_case,
    snake_case,
    tag_module_name,
    type_name,
)

__all__ = [
    "enum_variant_name",
    "env_var_name",
    "field_name",
    "operation_name",
    "pascal_case",
    "snake_case",
    "tag_module_name",
    "type_name",
]
