"""
Форматирование и запись сгенерированного проекта на диск
"""

import os
from typing import Any, Dict, Optional

import black
import isort
import structlog
from isort.exceptions import ISortError

from ...exceptions import FormatterFailedError, OutputWriteError
from ..types.models import CodeFile, Project
from .client_generator import ClientGenerator

logger = structlog.get_logger(__name__)

BLACK_MODE = black.Mode()


def render_project(document: Dict[str, Any], config: Any) -> Project:
    """Сборка проекта в памяти, без записи на диск"""
    return ClientGenerator(document, config).generate()


def format_source(text: str, file_name: str) -> str:
    """isort, затем black; не Python файлы возвращаются как есть"""
    if not file_name.endswith(".py"):
        return text

    try:
        sorted_text = isort.code(text, profile="black")
        return black.format_str(sorted_text, mode=BLACK_MODE)
    except (black.InvalidInput, ISortError) as exc:
        raise FormatterFailedError(file_name, text, str(exc)) from exc


def remove_stale_modules(project: Project, output: str) -> None:
    """
    Удаление модулей прошлой генерации

    Затрагиваются только .py файлы прямо в <package>/ и <package>/types/.
    """
    wanted = {os.path.normpath(f.file_name) for f in project.files}

    for directory in (project.package, os.path.join(project.package, "types")):
        full_directory = os.path.join(output, directory)
        if not os.path.isdir(full_directory):
            continue

        for entry in sorted(os.listdir(full_directory)):
            relative = os.path.normpath(os.path.join(directory, entry))
            full_path = os.path.join(output, relative)
            if not entry.endswith(".py") or not os.path.isfile(full_path):
                continue
            if relative in wanted:
                continue

            try:
                os.remove(full_path)
            except OSError as exc:
                raise OutputWriteError(f"Не удалось удалить {full_path}: {exc}") from exc
            logger.info("file.removed", path=relative)


def _write_text(path: str, text: str) -> None:
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
    except OSError as exc:
        raise OutputWriteError(f"Не удалось записать {path}: {exc}") from exc


def file_text(code_file: CodeFile) -> str:
    """Итоговый текст файла, форматтер применяется к собранным Python файлам"""
    text = str(code_file)
    if code_file.verbatim:
        return text
    return format_source(text, code_file.file_name)


def write_project(project: Project, output: str) -> None:
    """
    Запись всех файлов проекта в output

    Если форматтер отверг файл, записывается неформатированный текст,
    а первая ошибка поднимается после записи остальных файлов.
    """
    remove_stale_modules(project, output)

    failure: Optional[FormatterFailedError] = None

    for code_file in project.files:
        path = os.path.join(output, code_file.file_name)

        try:
            text = file_text(code_file)
        except FormatterFailedError as exc:
            logger.error("file.format_failed", path=code_file.file_name, reason=exc.reason)
            text = exc.source
            failure = failure or exc

        _write_text(path, text)
        logger.debug("file.written", path=code_file.file_name, size=len(text))

    logger.info("project.written", output=os.path.abspath(output), files=len(project.files))

    if failure is not None:
        raise failure
