"""
Иерархия ошибок генератора

Каждый вид ошибки несет собственный код выхода, CLI завершает процесс
с ``exc.exit_code``::

    SdkGenError                 (1)
    +-- ConfigError             (2)
    +-- SpecLoadError           (3)
    +-- UnknownReferenceError   (4)
    +-- UnsupportedFormatError  (5)
    +-- UnsupportedCompositeError (6)
    +-- PathTemplateError       (7)
    +-- OperationShapeError     (8)
    +-- CollisionError          (9)
    +-- FormatterFailedError    (10)
    +-- OutputWriteError        (11)
"""

from typing import Optional

EXIT_SUCCESS = 0
EXIT_GENERIC_FAILURE = 1
EXIT_INVALID_USAGE = 2
EXIT_SPEC_LOAD = 3
EXIT_UNKNOWN_REFERENCE = 4
EXIT_UNSUPPORTED_FORMAT = 5
EXIT_UNSUPPORTED_COMPOSITE = 6
EXIT_PATH_TEMPLATE = 7
EXIT_OPERATION_SHAPE = 8
EXIT_COLLISION = 9
EXIT_FORMATTER_FAILED = 10
EXIT_IO = 11


class SdkGenError(Exception):
    """Базовая ошибка генератора"""

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(SdkGenError):
    """Некорректная конфигурация или аргументы командной строки"""

    exit_code = EXIT_INVALID_USAGE


class SpecLoadError(SdkGenError):
    """Не удалось прочитать или разобрать OpenAPI документ"""

    exit_code = EXIT_SPEC_LOAD


class UnknownReferenceError(SdkGenError):
    """``$ref`` указывает на несуществующий компонент"""

    exit_code = EXIT_UNKNOWN_REFERENCE

    def __init__(self, name: str, message: Optional[str] = None):
        self.name = name
        super().__init__(message or f"Неизвестная ссылка: {name}")


class UnsupportedFormatError(SdkGenError):
    """Неизвестный ``format`` у примитивного типа"""

    exit_code = EXIT_UNSUPPORTED_FORMAT

    def __init__(self, path: str, schema_type: str, schema_format: str):
        self.path = path
        self.schema_type = schema_type
        self.schema_format = schema_format
        super().__init__(
            f"Неподдерживаемый формат '{schema_format}' для типа '{schema_type}' ({path})"
        )


class UnsupportedCompositeError(SdkGenError):
    """``anyOf``, ``not`` или схема без типа там, где нужен конкретный тип"""

    exit_code = EXIT_UNSUPPORTED_COMPOSITE

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Неподдерживаемая схема ({path}): {reason}")


class PathTemplateError(SdkGenError):
    """Некорректный шаблон пути"""

    exit_code = EXIT_PATH_TEMPLATE

    def __init__(self, path: str, position: int, reason: str):
        self.path = path
        self.position = position
        self.reason = reason
        super().__init__(f"Некорректный путь '{path}' (позиция {position}): {reason}")


class OperationShapeError(SdkGenError):
    """Операция не может быть превращена в метод клиента"""

    exit_code = EXIT_OPERATION_SHAPE


class CollisionError(SdkGenError):
    """Два разных типа претендуют на одно имя"""

    exit_code = EXIT_COLLISION

    def __init__(self, name: str, message: Optional[str] = None):
        self.name = name
        super().__init__(message or f"Конфликт имен типов: {name}")


class FormatterFailedError(SdkGenError):
    """Форматтер отверг сгенерированный код"""

    exit_code = EXIT_FORMATTER_FAILED

    def __init__(self, file_name: str, source: str, reason: str):
        self.file_name = file_name
        self.source = source
        self.reason = reason
        super().__init__(f"Ошибка форматирования {file_name}: {reason}")


class OutputWriteError(SdkGenError):
    """Ошибка записи сгенерированных файлов"""

    exit_code = EXIT_IO
