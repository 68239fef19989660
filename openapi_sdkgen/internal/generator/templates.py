"""
Шаблоны файлов сгенерированного проекта: манифест, README, клиент, тесты
"""

import json
from typing import Any, Dict, List, Optional, Tuple

import toml

from ..types.models import docstring, indent
from ..utils.naming import env_var_name


def _table(headers: List[str], row: List[str]) -> str:
    return "\n".join(
        [
            "| " + " | ".join(headers) + " |",
            "|" + "|".join("----" for _ in headers) + "|",
            "| " + " | ".join(row) + " |",
        ]
    )


class Templates:
    """Шаблоны для генерации файлов"""

    readme = """# `{name}`

{description}

## API Details

{api_details}

## Client Details

{client_details}

## Install

```bash
pip install {name}
```

## Basic example

Typical use will require initializing a `Client` with an API token.

```python
from {package} import Client

client = Client.from_token("$TOKEN")
```

Alternatively, the library can search for the API token in the environment:

{env_variables}

And then you can create a client from the environment.

```python
from {package} import Client

client = Client.from_env()
```
"""

    client = '''{doc}

import os
from typing import List

from . import types
from .common import AiohttpClient, DEFAULT_RETRIES
from .types.error import InvalidRequest
{tag_imports}

DEFAULT_BASE_URL = {base_url}

# Переменные окружения с токеном, в порядке проверки
ENV_VARIABLES: List[str] = {env_variables}

DEFAULT_TIMEOUT = {timeout}


class Client(AiohttpClient):
    """
    Клиент API

    Копии через ``clone()`` разделяют пул соединений.
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        retries: int = DEFAULT_RETRIES,
        pool=None,
    ):
        super().__init__(token, base_url, timeout=timeout, retries=retries, pool=pool)

    @classmethod
    def from_token(cls, token: str, base_url: str = DEFAULT_BASE_URL) -> "Client":
        """Клиент с явным токеном"""
        return cls(token, base_url)

    @classmethod
    def from_env(cls, base_url: str = DEFAULT_BASE_URL) -> "Client":
        """Клиент с токеном из переменных окружения"""
        for variable in ENV_VARIABLES:
            token = os.environ.get(variable)
            if token:
                return cls(token, base_url)

        raise InvalidRequest(
            "API token is not set, define one of: " + ", ".join(ENV_VARIABLES)
        )
{tag_properties}

__all__ = [
    "Client",
    "DEFAULT_BASE_URL",
    "DEFAULT_TIMEOUT",
    "ENV_VARIABLES",
    "types",
]
'''

    tag_property = '''
    @property
    def {accessor}(self) -> {class_name}:
        {doc}
        return {class_name}(self)
'''

    tests = '''"""
Проверка сериализации сгенерированных типов
"""

from enum import Enum

import pytest

from {package} import types


ENUMS = [
{enums}
]

EXAMPLES = [
{examples}
]


class TestEnums:
    @pytest.mark.parametrize("enum", ENUMS, ids=lambda e: e.__name__)
    def test_round_trip(self, enum):
        """Каждое значение перечисления переживает сериализацию"""
        assert issubclass(enum, Enum)
        for member in enum:
            assert enum(member.value) is member
            assert str(member) == member.value


class TestModels:
    @pytest.mark.parametrize(
        "model, example", EXAMPLES, ids=lambda item: getattr(item, "__name__", None)
    )
    def test_example(self, model, example):
        """Пример валидируется и переживает выгрузку в JSON"""
        value = model.model_validate(example)
        assert model.model_validate_json(value.to_json()).to_json() == value.to_json()
'''

    def manifest(self, config: Any) -> str:
        """pyproject.toml сгенерированного проекта"""
        project: Dict[str, Any] = {
            "name": config.name,
            "version": config.version,
            "description": config.description,
            "readme": "README.md",
            "requires-python": ">=3.10",
            "dependencies": [
                "aiohttp>=3.8.0",
                "pydantic>=2.0.0",
                "pydantic-core",
                "phonenumbers>=8.13.0",
            ],
            "optional-dependencies": {
                "test": ["pytest>=7.0.0", "pytest-asyncio>=0.21.0"],
            },
        }

        if config.repo_name:
            project["urls"] = {"Repository": f"https://github.com/{config.repo_name}"}

        data = {
            "build-system": {
                "requires": ["setuptools>=61.0"],
                "build-backend": "setuptools.build_meta",
            },
            "project": project,
            "tool": {
                "setuptools": {"packages": {"find": {"include": [f"{config.package_name}*"]}}}
            },
        }

        return toml.dumps(data)

    @staticmethod
    def env_variables(config: Any) -> List[str]:
        """Имя переменной из --name, затем из --add-env-prefix"""
        variables = [env_var_name(config.name)]
        if config.add_env_prefix:
            prefixed = env_var_name(config.add_env_prefix)
            if prefixed not in variables:
                variables.append(prefixed)
        return variables

    def api_details(self, info: Dict[str, Any]) -> str:
        parts = []

        if info.get("description"):
            parts.append(str(info["description"]).strip())

        if info.get("termsOfService"):
            parts.append(f"[API Terms of Service]({info['termsOfService']})")

        contact = info.get("contact") or {}
        headers, row = [], []
        for key, wrap in (("name", False), ("url", True), ("email", False)):
            if contact.get(key):
                headers.append(key)
                row.append(f"<{contact[key]}>" if wrap else str(contact[key]))
        if headers:
            parts.append("### Contact\n\n" + _table(headers, row))

        license_info = info.get("license") or {}
        if license_info.get("name"):
            headers, row = ["name"], [str(license_info["name"])]
            if license_info.get("url"):
                headers.append("url")
                row.append(f"<{license_info['url']}>")
            parts.append("### License\n\n" + _table(headers, row))

        return "\n\n".join(parts)

    def readme_text(self, info: Dict[str, Any], config: Any) -> str:
        api_version = f"based on API spec version `{info.get('version', '')}`"
        if config.spec_url:
            client_details = (
                f"This client is generated from the [OpenAPI specs]({config.spec_url}) "
                f"{api_version}. This way it will remain up to date as features are added."
            )
        else:
            client_details = f"This client is generated {api_version}."

        text = self.readme.format(
            name=config.name,
            description=config.description,
            api_details=self.api_details(info),
            client_details=client_details,
            package=config.package_name,
            env_variables="\n".join(f"- `{v}`" for v in self.env_variables(config)),
        )
        # пустой раздел API Details не нужен
        return text.replace("## API Details\n\n\n\n", "")

    def client_module(
        self,
        readme: str,
        config: Any,
        tags: List[Tuple[str, str, str, Optional[str]]],
    ) -> str:
        """
        <package>/__init__.py

        tags: (модуль, свойство, класс, краткое описание) для каждого тега с операциями
        """
        tag_imports = "\n".join(
            f"from .{module} import {class_name}" for module, _, class_name, _ in tags
        )
        tag_properties = "".join(
            self.tag_property.format(
                accessor=accessor,
                class_name=class_name,
                doc=indent(
                    docstring(doc or f"Operations of the `{module}` tag."), "        "
                ).lstrip(),
            )
            for module, accessor, class_name, doc in tags
        )

        return self.client.format(
            doc=docstring(readme),
            tag_imports=tag_imports,
            base_url=json.dumps(config.base_url),
            env_variables=json.dumps(self.env_variables(config)),
            timeout=repr(config.request_timeout_seconds),
            tag_properties=tag_properties,
        )

    def tests_module(
        self, package: str, enums: List[str], examples: List[Tuple[str, str]]
    ) -> str:
        """tests/test_types.py: enums и пары (модель, литерал примера)"""
        return self.tests.format(
            package=package,
            enums="".join(f"    types.{name},\n" for name in enums).rstrip("\n"),
            examples="".join(
                f"    (types.{name}, {literal}),\n" for name, literal in examples
            ).rstrip("\n"),
        )


templates = Templates()
