"""
Файлы для запросов multipart/form-data
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Attachment:
    """Часть формы с содержимым файла"""

    # имя поля формы
    name: str
    data: bytes
    filename: Optional[str] = None
    content_type: Optional[str] = None


__all__ = ["Attachment"]
