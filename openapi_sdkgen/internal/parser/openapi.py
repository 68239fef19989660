from typing import Any, Dict

from ..generator.client_generator import ClientGenerator
from ..types.models import Project
from .loader import ensure_supported_version


class OpenApiParser:
    """Парсер OpenAPI спецификации"""

    def __init__(self, openapi_dict: Dict[str, Any], config: Any):
        self.openapi_dict = openapi_dict
        self.config = config

    def parse(self) -> Project:
        """Парсинг OpenAPI в Project структуру"""
        ensure_supported_version(self.openapi_dict)
        generator = ClientGenerator(self.openapi_dict, self.config)
        return generator.generate()
