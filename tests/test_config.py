"""
Тесты для системы конфигурации
"""

import argparse
import os

import pytest
import toml

from openapi_sdkgen.config import DEFAULT_CONFIG_FILE, GeneratorConfig
from openapi_sdkgen.exceptions import ConfigError


def valid_config(**overrides):
    values = dict(
        input="api.json",
        name="my-api",
        version="1.0.0",
        description="My API",
        base_url="https://api.example.com",
    )
    values.update(overrides)
    return GeneratorConfig(**values)


class TestGeneratorConfig:
    """Тесты конфигурации генератора"""

    def test_default_values(self):
        """Тест значений по умолчанию"""
        config = GeneratorConfig()

        assert config.output == "."
        assert config.request_timeout_seconds == 120
        assert config.debug is False
        assert config.add_env_prefix is None

    def test_package_name(self):
        assert valid_config().package_name == "my_api"

    def test_save_and_load(self, tmp_path):
        """Тест сохранения и загрузки конфигурации"""
        config_path = str(tmp_path / "nested" / "openapi.toml")

        valid_config(repo_name="me/my-api", debug=True).save_to_file(config_path)
        loaded = GeneratorConfig.from_file(config_path)

        assert loaded.name == "my-api"
        assert loaded.repo_name == "me/my-api"
        # параметры логирования не сохраняются
        assert loaded.debug is False
        assert "spec_url" not in toml.load(config_path)

    def test_file_not_exists(self, tmp_path):
        """Тест загрузки несуществующего конфига"""
        assert GeneratorConfig.from_file(str(tmp_path / "nonexistent.toml")) is None

    def test_search_dir(self, tmp_path):
        """Конфиг ищется в директории проекта"""
        valid_config().save_to_file(str(tmp_path / DEFAULT_CONFIG_FILE))

        loaded = GeneratorConfig.from_file(search_dir=str(tmp_path))

        assert loaded.input == "api.json"

    def test_broken_file(self, tmp_path):
        config_path = tmp_path / "openapi.toml"
        config_path.write_text("name = [", encoding="utf-8")

        with pytest.raises(ConfigError):
            GeneratorConfig.from_file(str(config_path))

    def test_unknown_option(self, tmp_path):
        """Неизвестный ключ в файле"""
        config_path = tmp_path / "openapi.toml"
        config_path.write_text('url = "http://localhost"\n', encoding="utf-8")

        with pytest.raises(ConfigError, match="url"):
            GeneratorConfig.from_file(str(config_path))

    def test_merge_with_args(self):
        """Тест объединения конфига с аргументами"""
        config = valid_config(repo_name="me/original")
        args = argparse.Namespace(
            name="new-api", repo_name=None, debug=False, request_timeout_seconds=30
        )

        merged = config.merge_with_args(args)

        assert merged.name == "new-api"
        assert merged.repo_name == "me/original"
        assert merged.request_timeout_seconds == 30
        assert merged.input == "api.json"
        assert os.path.normpath(merged.output) == "."


class TestValidate:
    """Тесты проверки конфигурации"""

    def test_valid(self):
        config = valid_config()
        assert config.validate() is config

    def test_missing_options(self):
        """Все недостающие параметры перечислены"""
        with pytest.raises(ConfigError) as exc_info:
            GeneratorConfig(name="x").validate()

        message = exc_info.value.message
        for option in ("--input", "--version", "--description", "--base-url"):
            assert option in message
        assert "--name" not in message

    @pytest.mark.parametrize("name", ["my api", "1api", "class", "types", "common"])
    def test_bad_package_name(self, name):
        with pytest.raises(ConfigError):
            valid_config(name=name).validate()

    @pytest.mark.parametrize("timeout", [0, -5, "soon"])
    def test_bad_timeout(self, timeout):
        with pytest.raises(ConfigError):
            valid_config(request_timeout_seconds=timeout).validate()

    def test_timeout_from_string(self):
        assert valid_config(request_timeout_seconds="30").validate().request_timeout_seconds == 30
