"""
Общие фикстуры: небольшой OpenAPI документ и конфиг генератора
"""

import copy

import pytest

from openapi_sdkgen.config import GeneratorConfig

AI_PROMPT_REF = {"$ref": "#/components/schemas/AiPrompt"}

SAMPLE_SPEC = {
    "openapi": "3.0.3",
    "info": {
        "title": "Zoo",
        "version": "1.2.3",
        "description": "Zoo API for tests.",
        "termsOfService": "https://zoo.example.com/terms",
        "contact": {"name": "Zoo Team", "email": "team@zoo.example.com"},
        "license": {"name": "MIT", "url": "https://opensource.org/licenses/MIT"},
    },
    "tags": [
        {
            "name": "ai",
            "description": "Prompts and feedback.",
            "externalDocs": {"url": "https://docs.zoo.example.com/ai"},
        },
        {"name": "files"},
        {"name": "unused", "description": "Tag without operations."},
    ],
    "paths": {
        "/ai-prompts": {
            "get": {
                "tags": ["ai"],
                "operationId": "list_prompts",
                "summary": "List prompts.",
                "parameters": [
                    {
                        "name": "limit",
                        "in": "query",
                        "description": "Maximum number of items.",
                        "schema": {"type": "integer", "format": "uint32"},
                    },
                    {"name": "page_token", "in": "query", "schema": {"type": "string"}},
                    {
                        "name": "sort_by",
                        "in": "query",
                        "schema": {"$ref": "#/components/schemas/SortMode"},
                    },
                ],
                "responses": {
                    "200": {
                        "description": "A page of prompts.",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/AiPromptResultsPage"}
                            }
                        },
                    }
                },
            }
        },
        "/ai-prompts/{id}": {
            "parameters": [
                {
                    "name": "id",
                    "in": "path",
                    "required": True,
                    "schema": {"type": "string", "format": "uuid"},
                }
            ],
            "get": {
                "tags": ["ai"],
                "operationId": "get_prompt",
                "responses": {
                    "200": {
                        "description": "The prompt.",
                        "content": {"application/json": {"schema": AI_PROMPT_REF}},
                    },
                    "4XX": {"description": "Client error."},
                },
            },
            "delete": {
                "tags": ["ai"],
                "operationId": "delete_prompt",
                "deprecated": True,
                "externalDocs": {"url": "https://docs.zoo.example.com/delete"},
                "responses": {"204": {"description": "Deleted."}},
            },
        },
        "/ai-prompts/{id}/feedback": {
            "post": {
                "tags": ["ai"],
                "operationId": "create_feedback",
                "parameters": [
                    {
                        "name": "id",
                        "in": "path",
                        "required": True,
                        "schema": {"type": "string", "format": "uuid"},
                    },
                    {
                        "name": "feedback",
                        "in": "query",
                        "required": True,
                        "schema": {"$ref": "#/components/schemas/AiFeedback"},
                    },
                    {
                        "name": "X-Request-Id",
                        "in": "header",
                        "schema": {"type": "string"},
                    },
                    {"name": "session", "in": "cookie", "schema": {"type": "string"}},
                ],
                "responses": {"204": {"description": "Saved."}},
            }
        },
        "/files/{name}": {
            "put": {
                "tags": ["files"],
                "operationId": "upload_file",
                "parameters": [
                    {
                        "name": "name",
                        "in": "path",
                        "required": True,
                        "schema": {"type": "string"},
                    }
                ],
                "requestBody": {
                    "required": True,
                    "content": {
                        "application/octet-stream": {
                            "schema": {"type": "string", "format": "binary"}
                        }
                    },
                },
                "responses": {
                    "201": {
                        "description": "Stored.",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/FileInfo"}
                            }
                        },
                    }
                },
            }
        },
    },
    "components": {
        "schemas": {
            "AiFeedback": {
                "title": "AiFeedback",
                "type": "string",
                "enum": ["thumbs_up", "thumbs_down"],
            },
            "SortMode": {
                "type": "string",
                "enum": ["created_at_ascending", "created_at_descending"],
            },
            "AiPrompt": {
                "type": "object",
                "description": "A prompt sent to the model.",
                "required": ["id", "prompt"],
                "properties": {
                    "id": {"type": "string", "format": "uuid"},
                    "prompt": {"type": "string", "description": "The prompt text."},
                    "feedback": {"$ref": "#/components/schemas/AiFeedback"},
                    "created_at": {"type": "string", "format": "date-time"},
                    "metadata": {
                        "type": "object",
                        "additionalProperties": {"type": "string"},
                    },
                },
            },
            "AiPromptResultsPage": {
                "type": "object",
                "required": ["items"],
                "properties": {
                    "items": {"type": "array", "items": AI_PROMPT_REF},
                    "next_page": {"type": "string", "nullable": True},
                },
            },
            "FileInfo": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "size": {"type": "integer", "format": "int64"},
                },
            },
            "Pet": {
                "oneOf": [
                    {
                        "type": "object",
                        "required": ["type", "name"],
                        "properties": {
                            "type": {"type": "string", "enum": ["dog"]},
                            "name": {"type": "string"},
                        },
                    },
                    {
                        "type": "object",
                        "required": ["type", "lives"],
                        "properties": {
                            "type": {"type": "string", "enum": ["cat"]},
                            "lives": {"type": "integer"},
                        },
                    },
                ]
            },
        }
    },
}


@pytest.fixture
def sample_spec():
    """Копия тестового документа, которую можно менять"""
    return copy.deepcopy(SAMPLE_SPEC)


@pytest.fixture
def rich_spec(sample_spec):
    """Тестовый документ с multipart загрузкой и объединением без дискриминатора"""
    sample_spec["paths"]["/files/scans"] = {
        "post": {
            "tags": ["files"],
            "operationId": "scan_file",
            "requestBody": {
                "required": True,
                "content": {
                    "multipart/form-data": {
                        "schema": {"$ref": "#/components/schemas/ScanRequest"}
                    }
                },
            },
            "responses": {
                "200": {
                    "description": "Stored.",
                    "content": {
                        "application/json": {
                            "schema": {"$ref": "#/components/schemas/FileInfo"}
                        }
                    },
                }
            },
        }
    }
    sample_spec["components"]["schemas"].update(
        {
            "ScanRequest": {
                "type": "object",
                "required": ["title"],
                "properties": {"title": {"type": "string"}},
            },
            "Value": {"oneOf": [{"type": "integer"}, {"type": "string"}]},
            "Holder": {
                "type": "object",
                "required": ["v"],
                "properties": {"v": {"$ref": "#/components/schemas/Value"}},
            },
        }
    )
    return sample_spec


@pytest.fixture
def config(tmp_path):
    return GeneratorConfig(
        input="zoo.json",
        output=str(tmp_path / "out"),
        name="zoo-api",
        version="0.1.0",
        description="Zoo client",
        base_url="https://api.zoo.example.com",
    )
