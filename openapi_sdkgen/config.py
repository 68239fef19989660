"""
Конфигурация для генерации API клиента
"""

import keyword
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

import toml

from .exceptions import ConfigError
from .internal.utils.naming import RESERVED_MODULE_NAMES

DEFAULT_CONFIG_FILE = "openapi.toml"
DEFAULT_REQUEST_TIMEOUT = 120

REQUIRED_OPTIONS = ("input", "name", "version", "description", "base_url")

# Параметры логирования не сохраняются в файл
RUNTIME_OPTIONS = ("debug", "json")


@dataclass
class GeneratorConfig:
    """Конфигурация генератора OpenAPI клиента"""

    input: Optional[str] = None
    output: str = "."
    name: Optional[str] = None
    version: Optional[str] = None
    description: Optional[str] = None
    base_url: Optional[str] = None
    spec_url: Optional[str] = None
    repo_name: Optional[str] = None
    add_env_prefix: Optional[str] = None
    request_timeout_seconds: int = DEFAULT_REQUEST_TIMEOUT
    debug: bool = False
    json: bool = False

    @property
    def package_name(self) -> str:
        """Имя импортируемого пакета: my-api -> my_api"""
        return (self.name or "").replace("-", "_")

    @classmethod
    def from_file(
        cls, config_path: str = DEFAULT_CONFIG_FILE, search_dir: Optional[str] = None
    ) -> Optional["GeneratorConfig"]:
        """Загрузка конфигурации из файла, None если файла нет"""
        # Если указана директория для поиска, ищем конфиг там
        if search_dir and os.path.isdir(search_dir):
            config_in_dir = os.path.join(search_dir, DEFAULT_CONFIG_FILE)
            if os.path.exists(config_in_dir):
                config_path = config_in_dir

        if not os.path.exists(config_path):
            return None

        try:
            config_data = toml.load(config_path)
        except (toml.TomlDecodeError, OSError) as exc:
            raise ConfigError(f"Не удалось прочитать конфиг {config_path}: {exc}") from exc

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(config_data) - known)
        if unknown:
            raise ConfigError(
                f"Неизвестные параметры в {config_path}: {', '.join(unknown)}"
            )

        return cls(**config_data)

    def to_dict(self) -> Dict[str, Any]:
        """Параметры генерации без пустых значений и настроек логирования"""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in RUNTIME_OPTIONS and getattr(self, f.name) is not None
        }

    def save_to_file(self, config_path: str = DEFAULT_CONFIG_FILE) -> None:
        """Сохранение конфигурации в файл"""
        directory = os.path.dirname(config_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            toml.dump(self.to_dict(), f)

    def merge_with_args(self, args) -> "GeneratorConfig":
        """Объединение с аргументами командной строки, аргументы важнее"""
        values = {}
        for f in fields(self):
            arg_value = getattr(args, f.name, None)
            # флаги store_true без значения не перекрывают файл
            if arg_value is None or arg_value is False:
                values[f.name] = getattr(self, f.name)
            else:
                values[f.name] = arg_value
        return GeneratorConfig(**values)

    def validate(self) -> "GeneratorConfig":
        """Проверка обязательных параметров и имени пакета"""
        missing = [name for name in REQUIRED_OPTIONS if not getattr(self, name)]
        if missing:
            raise ConfigError(
                "Не указаны обязательные параметры: "
                + ", ".join(f"--{name.replace('_', '-')}" for name in missing)
            )

        if not self.package_name.isidentifier() or keyword.iskeyword(self.package_name):
            raise ConfigError(
                f"Имя '{self.name}' не подходит для Python пакета ({self.package_name})"
            )

        if self.package_name in RESERVED_MODULE_NAMES:
            raise ConfigError(f"Имя пакета '{self.package_name}' зарезервировано")

        try:
            self.request_timeout_seconds = int(self.request_timeout_seconds)
        except (TypeError, ValueError) as exc:
            raise ConfigError(
                f"Некорректный --request-timeout-seconds: {self.request_timeout_seconds}"
            ) from exc
        if self.request_timeout_seconds <= 0:
            raise ConfigError("--request-timeout-seconds должен быть положительным")

        return self
