"""
Тесты понижения операций в методы клиента
"""

import pytest

from openapi_sdkgen.exceptions import OperationShapeError, PathTemplateError
from openapi_sdkgen.internal.generator.operations import (
    OperationLowerer,
    body_encoding,
    success_code,
)
from openapi_sdkgen.internal.generator.type_lowerer import TypeLowerer
from openapi_sdkgen.internal.parser.index import SpecIndex
from openapi_sdkgen.internal.types.registry import TypeRef


def operation_lowerer(document):
    index = SpecIndex(document)
    lowerer = TypeLowerer(index)
    for name, schema in index.schemas().items():
        lowerer.lower_component(name, schema)
    return OperationLowerer(index, lowerer)


def lower(document):
    """Операции документа по operationId"""
    return {op.operation_id: op for op in operation_lowerer(document).lower_all()}


def single_get(parameters=None, **operation):
    """Документ с одной GET операцией /items"""
    operation.setdefault("operationId", "list_items")
    operation.setdefault("tags", ["items"])
    operation.setdefault("responses", {"204": {"description": "Ok."}})
    if parameters is not None:
        operation["parameters"] = parameters
    return {"openapi": "3.0.3", "paths": {"/items": {"get": operation}}}


class TestSampleOperations:
    """Тесты на тестовом документе"""

    def test_names_and_modules(self, sample_spec):
        """Модули по тегам, имена методов без повтора тега"""
        ops = lower(sample_spec)

        assert [(op.module, op.method_name) for op in ops.values()] == [
            ("ai", "list_prompts"),
            ("ai", "get_prompt"),
            ("ai", "delete_prompt"),
            ("ai", "create_feedback"),
            ("files", "upload"),
        ]

    def test_query_conditions(self, sample_spec):
        """Условия отправки query параметров"""
        op = lower(sample_spec)["list_prompts"]

        assert [(p.name, p.condition) for p in op.parameters] == [
            ("limit", "limit is not None and limit > 0"),
            ("page_token", "page_token"),
            ("sort_by", "sort_by is not None"),
        ]
        assert str(op.parameters[0].annotation) == "Optional[int]"

    def test_stream(self, sample_spec):
        """GET со страницей, page_token и limit получает потоковый вариант"""
        op = lower(sample_spec)["list_prompts"]

        assert op.stream.method_name == "list_prompts_stream"
        assert op.stream.page_parameter == "page_token"
        assert op.stream.item_type == TypeRef.named("AiPrompt")
        assert op.pagination_shape == "cursor"

    def test_stream_requires_limit(self, sample_spec):
        """Без limit потокового варианта нет"""
        operation = sample_spec["paths"]["/ai-prompts"]["get"]
        operation["parameters"] = operation["parameters"][1:]

        op = lower(sample_spec)["list_prompts"]

        assert op.stream is None
        assert op.pagination_shape == "none"

    def test_path_item_parameters(self, sample_spec):
        """Параметры path item наследуются операциями"""
        op = lower(sample_spec)["get_prompt"]

        assert len(op.parameters) == 1
        param = op.parameters[0]
        assert (param.location, param.name, str(param.type)) == ("path", "id", "UUID")
        assert param.required

    def test_success_codes(self, sample_spec):
        """Ответы 4XX не считаются успешными"""
        ops = lower(sample_spec)

        assert ops["get_prompt"].success_codes == (200,)
        assert ops["get_prompt"].response.type == TypeRef.named("AiPrompt")
        assert ops["get_prompt"].response.encoding == "json"
        assert ops["delete_prompt"].success_codes == (204,)
        assert ops["delete_prompt"].response is None

    def test_cookie_and_header(self, sample_spec):
        """Cookie параметры пропускаются, заголовки остаются"""
        op = lower(sample_spec)["create_feedback"]

        assert [(p.location, p.name) for p in op.parameters] == [
            ("path", "id"),
            ("query", "feedback"),
            ("header", "x_request_id"),
        ]
        assert op.parameters[2].json_name == "X-Request-Id"
        assert op.parameters[1].required

    def test_binary_body(self, sample_spec):
        """application/octet-stream передается как bytes"""
        op = lower(sample_spec)["upload_file"]

        assert op.request_body.encoding == "binary"
        assert str(op.request_body.type) == "bytes"
        assert op.request_body.required
        assert op.success_codes == (201,)

    def test_docs(self, sample_spec):
        """Документация с пометкой deprecated, ссылкой и примером"""
        ops = lower(sample_spec)
        docs = ops["delete_prompt"].docs

        assert docs.startswith("Perform a `DELETE` request to `/ai-prompts/{id}`.")
        assert "**NOTE:** This operation is marked as deprecated." in docs
        assert "See <https://docs.zoo.example.com/delete> for more information." in docs
        assert "Example::" in docs
        assert 'await client.ai.delete_prompt(id=UUID("' in docs

        docs = ops["list_prompts"].docs
        assert docs.startswith("List prompts.")
        assert "- `limit: Optional[int]`: Maximum number of items." in docs
        assert "result = await client.ai.list_prompts(" in docs

    def test_example_typed_literals(self):
        """Даты и UUID в примере строятся из строки, а не передаются строкой"""
        document = single_get(
            [
                {
                    "name": "since",
                    "in": "query",
                    "schema": {"type": "string", "format": "date-time"},
                },
                {"name": "day", "in": "query", "schema": {"type": "string", "format": "date"}},
            ]
        )

        docs = lower(document)["list_items"].docs

        assert 'since=datetime.fromisoformat("' in docs
        assert '+00:00")' in docs
        assert 'Z")' not in docs
        assert 'day=date.fromisoformat("' in docs

    def test_stream_docs(self, sample_spec):
        """В примере потока нет параметра страницы"""
        lowerer = operation_lowerer(sample_spec)
        op = next(op for op in lowerer.lower_all() if op.operation_id == "list_prompts")

        docs = lowerer.render_docs(op, stream=True)

        assert "Iterate over all pages and yield each item." in docs
        assert "async for item in client.ai.list_prompts_stream(" in docs
        assert "page_token" not in docs


class TestConditions:
    """Тесты условий по видам типов"""

    def test_kinds(self):
        ops = lower(
            single_get(
                [
                    {"name": "flag", "in": "query", "schema": {"type": "boolean"}},
                    {
                        "name": "ids",
                        "in": "query",
                        "schema": {"type": "array", "items": {"type": "string"}},
                    },
                    {
                        "name": "owner",
                        "in": "query",
                        "schema": {"type": "string", "format": "uuid"},
                    },
                    {"name": "score", "in": "query", "schema": {"type": "number"}},
                    {
                        "name": "sendNotificationEmail",
                        "in": "query",
                        "schema": {"type": "boolean"},
                    },
                ]
            )
        )

        assert [p.condition for p in ops["list_items"].parameters] == [
            "flag",
            "ids",
            "owner is not None and owner.int != 0",
            "score is not None",
            "send_notification_email is not None",
        ]

    def test_reserved_argument_name(self):
        """Имена локальных переменных метода не используются для аргументов"""
        ops = lower(
            single_get([{"name": "url", "in": "query", "schema": {"type": "string"}}])
        )

        assert ops["list_items"].parameters[0].name == "url_"


class TestShapeErrors:
    """Тесты ошибок формы операции"""

    def test_missing_operation_id(self):
        document = single_get()
        del document["paths"]["/items"]["get"]["operationId"]

        with pytest.raises(OperationShapeError):
            lower(document)

    def test_missing_tag(self):
        with pytest.raises(OperationShapeError):
            lower(single_get(tags=[]))

    def test_duplicate_method(self):
        """Две операции с одним именем метода в модуле"""
        document = single_get()
        document["paths"]["/other"] = {
            "get": {
                "operationId": "list_items",
                "tags": ["items"],
                "responses": {"204": {"description": "Ok."}},
            }
        }

        with pytest.raises(OperationShapeError):
            lower(document)

    def test_unsupported_body(self):
        """Тело только в XML"""
        document = single_get(
            requestBody={"content": {"application/xml": {"schema": {"type": "string"}}}}
        )

        with pytest.raises(OperationShapeError):
            lower(document)

    def test_undeclared_path_parameter(self):
        document = single_get()
        document["paths"] = {"/items/{id}": document["paths"]["/items"]}

        with pytest.raises(PathTemplateError):
            lower(document)


class TestHelpers:
    """Тесты вспомогательных функций"""

    @pytest.mark.parametrize(
        "media_type, expected",
        [
            ("application/json", "json"),
            ("application/json; charset=utf-8", "json"),
            ("application/merge-patch+json", "json"),
            ("application/x-www-form-urlencoded", "form"),
            ("multipart/form-data", "multipart"),
            ("application/octet-stream", "binary"),
            ("text/plain", "text"),
            ("application/xml", None),
        ],
    )
    def test_body_encoding(self, media_type, expected):
        assert body_encoding(media_type) == expected

    @pytest.mark.parametrize(
        "code, expected",
        [
            ("200", (200, False)),
            (201, (201, False)),
            ("2XX", (None, True)),
            ("404", (None, False)),
            ("default", (None, False)),
        ],
    )
    def test_success_code(self, code, expected):
        assert success_code(code) == expected

    def test_range_disables_explicit_codes(self):
        """Диапазон 2XX отключает проверку явных кодов"""
        ops = lower(
            single_get(
                responses={
                    "200": {"description": "Ok."},
                    "2XX": {"description": "Other."},
                }
            )
        )

        assert ops["list_items"].success_codes is None
