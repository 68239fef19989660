"""
Загрузка OpenAPI документа из файла или по URL (JSON или YAML)
"""

import json
import os
from typing import Any, Dict

import httpx
import structlog
import yaml

from ...exceptions import SpecLoadError

logger = structlog.get_logger(__name__)

YAML_EXTENSIONS = (".yaml", ".yml")


def _parse(text: str, source: str) -> Any:
    if source.lower().endswith(YAML_EXTENSIONS):
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise SpecLoadError(f"Ошибка разбора YAML {source}: {exc}") from exc

    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise SpecLoadError(f"Ошибка разбора JSON {source}: {exc}") from exc


def _read(source: str) -> str:
    if source.startswith(("http://", "https://")):
        try:
            response = httpx.get(source, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise SpecLoadError(f"Не удалось загрузить {source}: {exc}") from exc
        return response.text

    if not os.path.exists(source):
        raise SpecLoadError(f"Файл спецификации не найден: {source}")

    try:
        with open(source, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as exc:
        raise SpecLoadError(f"Не удалось прочитать {source}: {exc}") from exc


def ensure_supported_version(document: Dict[str, Any]) -> str:
    """Проверка что документ описывает OpenAPI v3+"""
    version = document.get("openapi")
    if not isinstance(version, str) or not version.strip():
        raise SpecLoadError("Поле 'openapi' отсутствует или некорректно")

    major = version.strip().split(".", maxsplit=1)[0]
    if not major.isdigit() or int(major) < 3:
        raise SpecLoadError(f"Версия OpenAPI {version} не поддерживается, нужна 3.x")

    return version


def load_spec(source: str) -> Dict[str, Any]:
    """Загрузка спецификации: путь к файлу или http(s) URL"""
    source = str(source)
    logger.debug("spec.loading", source=source)

    document = _parse(_read(source), source)

    if not isinstance(document, dict):
        raise SpecLoadError(
            f"OpenAPI документ должен быть объектом, получено {type(document).__name__}"
        )

    version = ensure_supported_version(document)
    logger.info("spec.loaded", source=source, openapi=version)

    return document
