"""
Понижение операций OpenAPI в методы клиента
"""

from typing import Any, Dict, List, Optional, Set, Tuple

import structlog

from ...exceptions import OperationShapeError, UnsupportedCompositeError
from ..parser.index import SpecIndex
from ..types.operation import (
    HEADER,
    PATH,
    QUERY,
    Operation,
    OperationParameter,
    RequestBody,
    ResponseInfo,
    StreamInfo,
)
from ..types.registry import ANY, STR, Struct, TypeRef
from ..utils.naming import (
    client_accessor_name,
    field_name,
    operation_name,
    tag_module_name,
    type_name,
)
from .examples import ExampleGenerator, python_literal
from .path_template import parse_path
from .type_lowerer import TypeLowerer

logger = structlog.get_logger(__name__)

PAGE_PARAMETERS = ("page_token", "page", "cursor")
LIMIT_PARAMETER = "limit"

# параметр, который всегда отправляется, даже со значением false
ALWAYS_SENT_PARAMETERS = ("sendNotificationEmail",)

BYTES = TypeRef.primitive("bytes", "raw")

# значения примеров, которые строятся из строки
LITERAL_CONSTRUCTORS = {
    "datetime": "datetime.fromisoformat",
    "date": "date.fromisoformat",
    "time": "time.fromisoformat",
    "uuid": "UUID",
}

# Имена локальных переменных и импортов в теле метода
RESERVED_ARGUMENTS = frozenset(
    [
        "self",
        "body",
        "url",
        "query_params",
        "headers",
        "response",
        "types",
        "encode_path",
        "to_form",
        "to_multipart",
        "attachments",
        "to_query_value",
        "paginate",
        "fetch_page",
        "next_token",
    ]
)


def body_encoding(media_type: str) -> Optional[str]:
    """Способ передачи тела запроса для media type"""
    base = media_type.split(";", maxsplit=1)[0].strip().lower()

    if base == "application/json" or base.endswith("+json"):
        return "json"
    if base == "application/x-www-form-urlencoded":
        return "form"
    if base == "multipart/form-data":
        return "multipart"
    if base == "application/octet-stream":
        return "binary"
    if base == "text/plain":
        return "text"
    return None


def response_encoding(media_type: str) -> str:
    base = media_type.split(";", maxsplit=1)[0].strip().lower()

    if base == "application/json" or base.endswith("+json"):
        return "json"
    if base.startswith("text/"):
        return "text"
    return "binary"


def success_code(code: Any) -> Tuple[Optional[int], bool]:
    """(явный 2xx код, признак диапазона 2XX)"""
    text = str(code).strip()
    if text.isdigit():
        value = int(text)
        return (value if 200 <= value <= 299 else None), False
    return None, text.startswith("2")


class OperationLowerer:
    """Обход paths в порядке документа"""

    def __init__(
        self,
        index: SpecIndex,
        lowerer: TypeLowerer,
        examples: Optional[ExampleGenerator] = None,
    ):
        self.index = index
        self.lowerer = lowerer
        self.registry = lowerer.registry
        self.examples = examples or ExampleGenerator(index)

    def lower_all(self) -> List[Operation]:
        operations: List[Operation] = []
        names: Dict[str, Set[str]] = {}

        for path, method, operation, path_item in self.index.operations():
            op = self.lower_operation(path, method, operation, path_item)

            used = names.setdefault(op.module, set())
            method_names = [op.method_name] + ([op.stream.method_name] if op.stream else [])
            for name in method_names:
                if name in used:
                    raise OperationShapeError(
                        f"{method.upper()} {path}: метод '{name}' уже есть в модуле '{op.module}'"
                    )
                used.add(name)

            operations.append(op)

        return operations

    def lower_operation(
        self,
        path: str,
        method: str,
        operation: Dict[str, Any],
        path_item: Optional[Dict[str, Any]] = None,
    ) -> Operation:
        where = f"{method.upper()} {path}"

        operation_id = operation.get("operationId")
        if not operation_id:
            raise OperationShapeError(f"{where}: нет operationId")

        tags = operation.get("tags") or []
        if not tags:
            raise OperationShapeError(f"{where}: нет тега")

        tag = str(tags[0])
        try:
            module = tag_module_name(tag)
            method_name = operation_name(operation_id, tag)
        except ValueError as exc:
            raise OperationShapeError(f"{where}: {exc}") from exc

        template = parse_path(path)
        parameters = self._parameters(path_item or {}, operation, operation_id, where)
        template.check_parameters(
            p.json_name for p in parameters if p.location == PATH
        )

        success_codes, response = self._response(operation, operation_id, where)
        external = operation.get("externalDocs") or {}

        op = Operation(
            module=module,
            tag=tag,
            method_name=method_name,
            http_method=method.upper(),
            path=path,
            operation_id=operation_id,
            parameters=parameters,
            request_body=self._request_body(operation, operation_id, where),
            response=response,
            success_codes=success_codes,
            summary=operation.get("summary"),
            description=operation.get("description"),
            deprecated=bool(operation.get("deprecated")),
            external_docs=(
                (external["url"], external.get("description")) if external.get("url") else None
            ),
        )
        op.stream = self._stream(op)
        op.docs = self.render_docs(op)

        logger.debug(
            "operation.lowered",
            operation_id=operation_id,
            module=module,
            method=method_name,
            paginated=op.stream is not None,
        )
        return op

    def _merged_parameters(
        self, path_item: Dict[str, Any], operation: Dict[str, Any]
    ) -> List[Dict[str, Any]]:
        """Параметры path item и операции, параметр операции важнее"""
        merged: Dict[Tuple[str, str], Dict[str, Any]] = {}

        for source in (path_item.get("parameters") or [], operation.get("parameters") or []):
            for item in source:
                parameter = self.index.expand("parameter", item)
                key = (parameter.get("name"), parameter.get("in"))
                merged[key] = parameter

        return list(merged.values())

    def _parameters(
        self,
        path_item: Dict[str, Any],
        operation: Dict[str, Any],
        operation_id: str,
        where: str,
    ) -> List[OperationParameter]:
        parameters: List[OperationParameter] = []
        used: Set[str] = set()

        for parameter in self._merged_parameters(path_item, operation):
            json_name = parameter.get("name")
            location = parameter.get("in")

            if not json_name:
                raise OperationShapeError(f"{where}: параметр без имени")

            if location == "cookie":
                logger.warning("parameter.skipped", operation=where, parameter=json_name)
                continue

            if location not in (PATH, QUERY, HEADER):
                raise OperationShapeError(
                    f"{where}: параметр '{json_name}' в неизвестном месте '{location}'"
                )

            name, _ = field_name(json_name)
            if name in RESERVED_ARGUMENTS:
                name += "_"
            while name in used:
                name += "_"
            used.add(name)

            schema = self._parameter_schema(parameter)
            proposed = type_name(f"{operation_id}_{json_name}")
            ref = (
                self.lowerer.lower(schema, proposed, f"{where}/parameters/{json_name}")
                if schema is not None
                else STR
            )

            param = OperationParameter(
                location=location,
                name=name,
                json_name=json_name,
                type=ref.unwrap_optional(),
                required=bool(parameter.get("required")) or location == PATH,
                description=parameter.get("description"),
                example=self._example(schema),
            )
            param.condition = self.query_condition(param)
            parameters.append(param)

        return parameters

    @staticmethod
    def _parameter_schema(parameter: Dict[str, Any]) -> Optional[Any]:
        if "schema" in parameter:
            return parameter["schema"]
        for media in (parameter.get("content") or {}).values():
            if isinstance(media, dict) and "schema" in media:
                return media["schema"]
        return None

    def query_condition(self, param: OperationParameter) -> str:
        """Условие, при котором параметр попадает в запрос"""
        name = param.name
        kind = self.registry.kind_of(param.type)

        if param.location != QUERY or param.json_name in ALWAYS_SENT_PARAMETERS:
            return f"{name} is not None"
        if kind == "int":
            return f"{name} is not None and {name} > 0"
        if kind == "uuid":
            return f"{name} is not None and {name}.int != 0"
        if kind in ("bool", "str", "phone", "list", "dict"):
            return name
        return f"{name} is not None"

    def _example(self, schema: Any) -> Any:
        if schema is None:
            return None
        try:
            return self.examples.example(schema)
        except UnsupportedCompositeError:
            return None

    def _request_body(
        self, operation: Dict[str, Any], operation_id: str, where: str
    ) -> Optional[RequestBody]:
        body = operation.get("requestBody")
        if body is None:
            return None

        body = self.index.expand("request_body", body)
        content = body.get("content") or {}

        for media_type, media in content.items():
            encoding = body_encoding(media_type)
            if encoding is None:
                continue

            schema = (media or {}).get("schema")

            if encoding == "binary":
                ref = BYTES
            elif encoding == "text":
                ref = STR
            elif schema is None:
                ref = ANY
            else:
                ref = self.lowerer.lower(
                    schema,
                    type_name(f"{operation_id}_request_body"),
                    f"{where}/requestBody",
                )

            return RequestBody(
                media_type=media_type,
                type=ref,
                encoding=encoding,
                required=bool(body.get("required", False)),
                example=self._example(schema) if encoding in ("json", "form", "multipart") else None,
            )

        raise OperationShapeError(
            f"{where}: неподдерживаемый тип тела запроса ({', '.join(content) or 'пусто'})"
        )

    def _response(
        self, operation: Dict[str, Any], operation_id: str, where: str
    ) -> Tuple[Optional[Tuple[int, ...]], Optional[ResponseInfo]]:
        codes: List[int] = []
        has_range = False
        chosen: Optional[ResponseInfo] = None

        for code, response in (operation.get("responses") or {}).items():
            explicit, is_range = success_code(code)
            if explicit is None and not is_range:
                continue

            if explicit is not None:
                codes.append(explicit)
            has_range = has_range or is_range

            if chosen is not None:
                continue

            response = self.index.expand("response", response)
            content = response.get("content") or {}
            if not content:
                continue

            media_type = next(
                (m for m in content if response_encoding(m) == "json"), next(iter(content))
            )
            encoding = response_encoding(media_type)
            schema = (content[media_type] or {}).get("schema")

            if encoding == "binary":
                ref = BYTES
            elif encoding == "text":
                ref = STR
            elif schema is None:
                ref = ANY
            else:
                ref = self.lowerer.lower(
                    schema,
                    type_name(f"{operation_id}_response"),
                    f"{where}/responses/{code}",
                )

            chosen = ResponseInfo(media_type, ref, encoding)

        success_codes = tuple(codes) if codes and not has_range else None
        return success_codes, chosen

    def _stream(self, op: Operation) -> Optional[StreamInfo]:
        """Потоковый вариант для GET с постраничной выдачей"""
        if op.http_method != "GET" or op.response is None or op.response.encoding != "json":
            return None

        target = self.registry.resolve(op.response.type)
        named = self.registry.get(target.name) if target.kind == "named" else None
        if not isinstance(named, Struct) or named.pagination is None:
            return None

        query = op.parameters_in(QUERY)
        page = next((p for p in query if p.json_name in PAGE_PARAMETERS), None)
        has_limit = any(p.json_name == LIMIT_PARAMETER for p in query)

        if page is None or not has_limit:
            return None

        return StreamInfo(
            method_name=f"{op.method_name}_stream",
            page_parameter=page.name,
            item_type=named.pagination.item_type,
        )

    def _argument_literal(self, param_type: TypeRef, value: Any) -> str:
        target = self.registry.resolve(param_type)
        if target.kind == "named" and target.name in self.registry:
            named = self.registry.get(target.name)
            if isinstance(named, Struct):
                return f"types.{named.name}.model_validate({python_literal(value)})"
            return f"types.{named.name}({python_literal(value)})"

        constructor = LITERAL_CONSTRUCTORS.get(target.kind)
        if constructor is not None and isinstance(value, str):
            # fromisoformat до 3.11 не понимает суффикс Z
            if target.kind == "datetime" and value.endswith("Z"):
                value = value[:-1] + "+00:00"
            return f"{constructor}({python_literal(value)})"

        return python_literal(value)

    def render_example(self, op: Operation, stream: bool = False) -> str:
        """Пример вызова метода для документации"""
        arguments = []
        for param in op.arguments():
            if stream and op.stream and param.name == op.stream.page_parameter:
                continue
            if param.example is None:
                continue
            arguments.append(f"{param.name}={self._argument_literal(param.type, param.example)}")

        body = op.request_body
        if body is not None:
            if body.encoding == "binary":
                arguments.append('body=b"bytes"')
            elif body.encoding == "text":
                arguments.append('body="text"')
            elif body.example is not None:
                arguments.append(f"body={self._argument_literal(body.type, body.example)}")
            if body.encoding == "multipart":
                arguments.append(
                    'attachments=[Attachment(name="file", data=b"bytes", filename="file.json")]'
                )

        method = op.stream.method_name if stream else op.method_name
        call = f"client.{client_accessor_name(op.module)}.{method}({', '.join(arguments)})"

        lines = [f"async def example_{op.module}_{method}():", "    client = Client.from_env()"]
        if stream:
            lines += [f"    async for item in {call}:", "        print(item)"]
        elif op.response is not None and op.response.type is not None:
            lines += [f"    result = await {call}", "    print(result)"]
        else:
            lines += [f"    await {call}"]

        return "\n".join(lines)

    def render_docs(self, op: Operation, stream: bool = False) -> str:
        """Документация метода: описание, параметры, примечания и пример"""
        lines = [op.summary.strip() if op.summary else f"Perform a `{op.http_method}` request to `{op.path}`."]

        if stream:
            lines += ["", "Iterate over all pages and yield each item."]

        if op.description:
            lines += ["", op.description.strip()]

        arguments = [
            p for p in op.arguments() if not (stream and op.stream and p.name == op.stream.page_parameter)
        ]
        if arguments or op.request_body is not None:
            lines += ["", "**Parameters:**", ""]
            for param in arguments:
                line = f"- `{param.name}: {param.annotation}`"
                if param.description:
                    line += f": {' '.join(param.description.split())}"
                if param.required:
                    line += " (required)"
                lines.append(line)
            if op.request_body is not None:
                lines.append(f"- `body: {op.request_body.type}`")

        if op.deprecated:
            lines += ["", "**NOTE:** This operation is marked as deprecated."]

        if op.external_docs is not None:
            url, description = op.external_docs
            link = f"<{url}|{description}>" if description else f"<{url}>"
            lines += ["", f"See {link} for more information."]

        lines += ["", "Example::", ""]
        lines += ["    " + line for line in self.render_example(op, stream).split("\n")]

        return "\n".join(lines)
