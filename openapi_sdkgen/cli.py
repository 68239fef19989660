import argparse
import os
import sys
from typing import List, Optional

import structlog

from openapi_sdkgen.config import DEFAULT_CONFIG_FILE, GeneratorConfig
from openapi_sdkgen.exceptions import (
    EXIT_GENERIC_FAILURE,
    EXIT_SUCCESS,
    ConfigError,
    SdkGenError,
)
from openapi_sdkgen.generator import ApiClientGenerator
from openapi_sdkgen.internal.parser.loader import load_spec
from openapi_sdkgen.log import configure_logging

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="openapi-sdkgen",
        description="Генерация Python клиента из OpenAPI v3 спецификации",
    )
    parser.add_argument("--input", type=str, help="Путь или URL к OpenAPI документу")
    parser.add_argument("--output", type=str, help="Директория проекта (по умолчанию .)")
    parser.add_argument("--name", type=str, help="Имя пакета клиента")
    parser.add_argument("--version", type=str, help="Версия пакета клиента")
    parser.add_argument("--description", type=str, help="Описание пакета клиента")
    parser.add_argument("--base-url", dest="base_url", type=str, help="Базовый URL API")
    parser.add_argument(
        "--spec-url", dest="spec_url", type=str, help="Ссылка на спецификацию для README"
    )
    parser.add_argument(
        "--repo-name", dest="repo_name", type=str, help="Репозиторий owner/name"
    )
    parser.add_argument(
        "--add-env-prefix",
        dest="add_env_prefix",
        type=str,
        help="Дополнительный префикс переменной окружения с токеном",
    )
    parser.add_argument(
        "--request-timeout-seconds",
        dest="request_timeout_seconds",
        type=int,
        help="Таймаут запросов клиента в секундах (по умолчанию 120)",
    )
    parser.add_argument("--debug", action="store_true", help="Подробные логи")
    parser.add_argument("--json", action="store_true", help="Логи в формате JSON")
    parser.add_argument(
        "--config",
        type=str,
        help=f"Файл конфигурации (по умолчанию {DEFAULT_CONFIG_FILE}, если есть)",
    )
    parser.add_argument(
        "--save-config",
        dest="save_config",
        action="store_true",
        help="Сохранить итоговые параметры в файл конфигурации",
    )
    return parser


def resolve_config(args: argparse.Namespace) -> GeneratorConfig:
    """Конфиг из файла, перекрытый аргументами командной строки"""
    if args.config:
        if not os.path.exists(args.config):
            raise ConfigError(f"Файл конфигурации не найден: {args.config}")
        file_config = GeneratorConfig.from_file(args.config)
    else:
        file_config = GeneratorConfig.from_file(search_dir=args.output)

    if file_config:
        print(f"📋 Используется конфиг {args.config or DEFAULT_CONFIG_FILE}")
        return file_config.merge_with_args(args)

    return GeneratorConfig().merge_with_args(args)


def main(argv: Optional[List[str]] = None) -> int:
    """Запуск генерации, возвращает код выхода"""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(debug=args.debug, json_logs=args.json)

    try:
        config = resolve_config(args).validate()
        configure_logging(debug=config.debug, json_logs=config.json)

        print(f"🚀 Генерация клиента {config.name} из {config.input}")

        print("📥 Загрузка OpenAPI спецификации...")
        document = load_spec(config.input)

        print("⚙️ Генерация кода...")
        generator = ApiClientGenerator(document, config)
        project = generator.generate()

        print(f"💾 Сохранение {len(project.files)} файлов...")
        generator.write(project, config.output)

        if args.save_config:
            config_path = args.config or os.path.join(config.output, DEFAULT_CONFIG_FILE)
            config.save_to_file(config_path)
            print(f"💾 Конфиг сохранен в {config_path}")

    except SdkGenError as exc:
        print(f"❌ Ошибка генерации: {exc.message}", file=sys.stderr)
        logger.debug("generation.failed", error=type(exc).__name__, exit_code=exc.exit_code)
        return exc.exit_code
    except Exception as exc:
        print(f"❌ Непредвиденная ошибка: {exc}", file=sys.stderr)
        logger.exception("generation.crashed")
        return EXIT_GENERIC_FAILURE

    print("✅ Генерация завершена успешно!")
    print(f"📦 Клиент создан в: {os.path.abspath(config.output)}")
    return EXIT_SUCCESS


def generate():
    """Универсальная команда генерации OpenAPI клиента"""
    sys.exit(main())


if __name__ == "__main__":
    generate()
