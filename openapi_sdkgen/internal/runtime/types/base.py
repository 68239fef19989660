"""
Базовая модель для всех сгенерированных структур
"""

from typing import List

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    def to_json(self, **kwargs) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, **kwargs)

    @classmethod
    def table_headers(cls) -> List[str]:
        """Заголовки для табличного вывода"""
        return [field.alias or name for name, field in cls.model_fields.items()]

    def table_fields(self) -> List[str]:
        """Значения полей в порядке table_headers"""
        values = []
        for name in type(self).model_fields:
            value = getattr(self, name)
            values.append("" if value is None else str(value))
        return values

    def __str__(self) -> str:
        return self.to_json(indent=2)


__all__ = ["Model"]
