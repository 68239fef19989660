"""
Главный модуль генератора - чистый интерфейс
"""

from typing import Any, Dict, Union

from .config import GeneratorConfig
from .internal.generator.emitter import write_project
from .internal.parser.loader import load_spec
from .internal.parser.openapi import OpenApiParser
from .internal.types.models import Project


class ApiClientGenerator:
    """Чистый интерфейс для генерации API клиентов"""

    def __init__(self, openapi_spec: Dict[str, Any], config: GeneratorConfig):
        self.config = config
        self.parser = OpenApiParser(openapi_spec, config)

    def generate(self) -> Project:
        """Генерация проекта клиента в памяти"""
        return self.parser.parse()

    @staticmethod
    def write(project: Project, output: str) -> None:
        """Форматирование и запись файлов проекта"""
        write_project(project, output)


def generate_client(
    openapi_spec: Union[Dict[str, Any], str], config: GeneratorConfig
) -> Project:
    """
    Генерация и запись клиента за один вызов

    openapi_spec: разобранный документ, путь к файлу или URL.
    """
    if not isinstance(openapi_spec, dict):
        openapi_spec = load_spec(openapi_spec)

    generator = ApiClientGenerator(openapi_spec, config)
    project = generator.generate()
    generator.write(project, config.output)
    return project
