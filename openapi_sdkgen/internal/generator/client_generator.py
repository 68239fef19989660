"""
Сборка проекта клиента: типы, модули тегов, клиент и метаданные
"""

import json
import os
from typing import Any, Dict, List, Optional, Set, Tuple

import structlog

from ...exceptions import UnknownReferenceError, UnsupportedCompositeError
from ..parser.index import SpecIndex
from ..types.models import Class, CodeFile, Function, Parameter, Project
from ..types.operation import HEADER, QUERY, Operation
from ..types.registry import StringEnum, Struct, TypeRef, TypeRegistry
from ..utils.naming import client_accessor_name, type_name
from .examples import ExampleGenerator, python_literal
from .operations import OperationLowerer
from .path_template import parse_path
from .templates import templates
from .type_lowerer import TypeLowerer
from .type_renderer import import_lines, qualified_ref, render_types_module

logger = structlog.get_logger(__name__)

RUNTIME_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "runtime")

# файлы поддержки: путь в runtime -> путь внутри пакета клиента
RUNTIME_FILES = [
    ("common.py", "common.py"),
    ("types/error.py", "types/error.py"),
    ("types/paginate.py", "types/paginate.py"),
    ("types/phone_number.py", "types/phone_number.py"),
    ("types/multipart.py", "types/multipart.py"),
    ("types/base64.py", "types/base64.py"),
    ("types/random.py", "types/random.py"),
    ("types/base.py", "types/base.py"),
]

# имена, занятые в __init__.py клиента
RESERVED_HANDLE_NAMES = frozenset(["Client", "AiohttpClient", "InvalidRequest", "List"])


def read_runtime_file(relative_path: str) -> str:
    with open(os.path.join(RUNTIME_DIR, relative_path), "r", encoding="utf-8") as f:
        return f.read()


def handle_class_name(tag: str) -> str:
    name = type_name(tag)
    if name in RESERVED_HANDLE_NAMES:
        name += "Operations"
    return name


class ClientGenerator:
    """Генератор API клиента из OpenAPI"""

    def __init__(self, document: Dict[str, Any], config: Any):
        self.index = SpecIndex(document)
        self.config = config
        self.registry = TypeRegistry()
        self.lowerer = TypeLowerer(self.index, self.registry)
        self.examples = ExampleGenerator(self.index)
        self.operations = OperationLowerer(self.index, self.lowerer, self.examples)
        self.project = Project(name=config.name, package=config.package_name)
        # имя компонента -> причина, по которой он пропущен
        self.skipped: Dict[str, str] = {}

    @property
    def package(self) -> str:
        return self.config.package_name

    def generate(self) -> Project:
        """Основная генерация"""
        self._lower_components()
        operations = self.operations.lower_all()
        self._check_references()

        self._add_runtime_files()
        self.project.add_file(
            render_types_module(self.registry, f"{self.package}/types/__init__.py")
        )
        handles = self._add_tag_modules(operations)
        self._add_client_module(handles)
        self._add_metadata()
        self._add_tests()

        logger.info(
            "project.generated",
            types=len(self.registry),
            operations=len(operations),
            modules=len(handles),
            files=len(self.project.files),
        )
        return self.project

    def _lower_components(self):
        """Регистрация схем из components/schemas, неподдерживаемые пропускаются"""
        for name, schema in self.index.schemas().items():
            try:
                self.lowerer.lower_component(name, schema)
            except UnsupportedCompositeError as exc:
                self.skipped[type_name(name)] = exc.reason
                logger.warning("schema.skipped", schema=name, reason=exc.reason)

    def _check_references(self):
        """Ссылка на пропущенную или неизвестную схему фатальна"""
        missing = self.registry.missing_references()
        if not missing:
            return

        name = sorted(missing)[0]
        referrers = ", ".join(sorted(missing[name]))

        if name in self.skipped:
            raise UnsupportedCompositeError(
                f"#/components/schemas/{name}",
                f"{self.skipped[name]} (нужна для {referrers})",
            )
        raise UnknownReferenceError(name, f"Тип '{name}' не определен, ссылаются: {referrers}")

    def _add_runtime_files(self):
        for source, target in RUNTIME_FILES:
            self.project.add_file(
                f"{self.package}/{target}",
                content=read_runtime_file(source),
                verbatim=True,
            )

    def _add_tag_modules(self, operations: List[Operation]) -> List[Tuple[str, str, str, Optional[str]]]:
        """Модуль с классом-обработчиком на каждый тег, у которого есть операции"""
        by_module: Dict[str, List[Operation]] = {}
        for op in operations:
            by_module.setdefault(op.module, []).append(op)

        handles = []
        for module, module_operations in by_module.items():
            tag = module_operations[0].tag
            class_name = handle_class_name(tag)
            tag_info = self.index.tag(tag) or {}

            self.project.add_file(self._tag_module(module, class_name, tag_info, module_operations))

            summary = (tag_info.get("description") or "").strip().split("\n", maxsplit=1)[0]
            accessor = client_accessor_name(module)
            handles.append((module, accessor, class_name, summary or None))

        return handles

    def _tag_module(
        self,
        module: str,
        class_name: str,
        tag_info: Dict[str, Any],
        operations: List[Operation],
    ) -> CodeFile:
        doc_parts = []
        if tag_info.get("description"):
            doc_parts.append(tag_info["description"].strip())
        external = tag_info.get("externalDocs") or {}
        if external.get("url"):
            doc_parts.append(f"FURTHER INFO: {external['url']}")

        handle = Class(name=class_name, doc="\n\n".join(doc_parts) or None)
        handle.add_function(
            "__init__",
            parameters=[Parameter(name="self"), Parameter(name="client", annotation="AiohttpClient")],
        ).set_code_block("self.client = client")

        for op in operations:
            handle.add_function(self._method(op))
            if op.stream is not None:
                handle.add_function(self._stream_method(op))

        code_file = CodeFile(
            file_name=f"{self.package}/{module}.py",
            imports=self._tag_imports(operations),
        )
        code_file.add_class(handle)
        return code_file

    def _tag_imports(self, operations: List[Operation]) -> List[str]:
        refs: List[TypeRef] = []
        extra: Set[Tuple[str, str]] = {(".common", "AiohttpClient")}
        uses_types = False

        for op in operations:
            for param in op.parameters:
                refs.append(param.annotation)
            if op.request_body is not None:
                refs.append(op.request_body.type)
                if not op.request_body.required:
                    extra.add(("typing", "Optional"))
                if op.request_body.encoding == "form":
                    extra.add((".common", "to_form"))
                elif op.request_body.encoding == "multipart":
                    extra.update(
                        [
                            (".common", "to_multipart"),
                            (".types.multipart", "Attachment"),
                            ("typing", "List"),
                            ("typing", "Optional"),
                        ]
                    )
            if op.response is not None and op.response.encoding == "json":
                refs.append(op.response.type)
            if any(p.location == "path" for p in op.parameters):
                extra.add((".common", "encode_path"))
            if op.parameters_in(QUERY):
                extra.add((".common", "to_query_value"))
            if op.stream is not None:
                refs.append(op.stream.item_type)
                extra.update(
                    [
                        ("typing", "Any"),
                        ("typing", "AsyncIterator"),
                        ("typing", "Optional"),
                        (".types.paginate", "paginate"),
                    ]
                )

        for ref in refs:
            if any(True for _ in ref.named_references()):
                uses_types = True

        lines = import_lines(refs, ".types", extra)
        if uses_types:
            lines.append("from . import types")
        return lines

    def _signature(self, op: Operation, skip: Optional[str] = None) -> List[Parameter]:
        parameters = [Parameter(name="self")]
        has_optional = False

        for param in op.arguments():
            if param.name == skip:
                continue
            if param.required:
                parameters.append(Parameter(name=param.name, annotation=qualified_ref(param.type)))
            else:
                has_optional = True
                parameters.append(
                    Parameter(
                        name=param.name,
                        annotation=qualified_ref(param.annotation),
                        default="None",
                    )
                )

        body = op.request_body
        if body is not None:
            if body.required:
                # обязательное тело после необязательных аргументов
                if has_optional:
                    parameters.append(Parameter(name="*"))
                parameters.append(Parameter(name="body", annotation=qualified_ref(body.type)))
            else:
                parameters.append(
                    Parameter(
                        name="body",
                        annotation=qualified_ref(TypeRef.optional(body.type)),
                        default="None",
                    )
                )
            if body.encoding == "multipart":
                parameters.append(
                    Parameter(
                        name="attachments",
                        annotation="Optional[List[Attachment]]",
                        default="None",
                    )
                )

        return parameters

    @staticmethod
    def _return_annotation(op: Operation) -> str:
        if op.response is None:
            return "None"
        if op.response.encoding == "text":
            return "str"
        if op.response.encoding == "binary":
            return "bytes"
        return qualified_ref(op.response.type)

    def _method(self, op: Operation) -> Function:
        template = parse_path(op.path)
        arg_names = {p.json_name: p.name for p in op.parameters if p.location == "path"}

        lines = [f"url = {template.url_expression('self.client.base_url', arg_names)}"]
        request_args = [f'"{op.http_method}"', "url"]

        query = op.parameters_in(QUERY)
        if query:
            lines.append("query_params = []")
            for param in query:
                lines += [
                    f"if {param.condition}:",
                    f"    query_params.append(({json.dumps(param.json_name)}, to_query_value({param.name})))",
                ]
            request_args.append("params=query_params")

        header_params = op.parameters_in(HEADER)
        if header_params:
            pairs = ", ".join(f"{json.dumps(p.json_name)}: {p.name}" for p in header_params)
            lines.append(f"headers = {{{pairs}}}")
            request_args.append("headers=headers")

        body = op.request_body
        if body is not None:
            if body.encoding == "json":
                request_args.append("json=body")
            elif body.encoding == "form":
                request_args.append("data=to_form(body) if body is not None else None")
            elif body.encoding == "multipart":
                request_args.append("data=to_multipart(body, attachments)")
            else:
                request_args.append("data=body")

        if op.success_codes is not None:
            codes = ", ".join(str(code) for code in op.success_codes)
            request_args.append(f"success=({codes},)")

        call = "await self.client.request(" + ", ".join(request_args) + ")"

        if op.response is None:
            lines.append(call)
        else:
            lines.append(f"response = {call}")
            if op.response.encoding == "text":
                lines.append("return response.text")
            elif op.response.encoding == "binary":
                lines.append("return response.content")
            else:
                lines.append(f"return self.client.decode({qualified_ref(op.response.type)}, response)")

        return Function(
            name=op.method_name,
            parameters=self._signature(op),
            response=self._return_annotation(op),
            async_def=True,
            doc=op.docs,
        ).set_code_block("\n".join(lines))

    def _stream_method(self, op: Operation) -> Function:
        """Асинхронный генератор по всем страницам"""
        stream = op.stream
        page_type = self._return_annotation(op)

        forwarded = [
            f"{p.name}={p.name}" for p in op.arguments() if p.name != stream.page_parameter
        ]
        forwarded.append(f"{stream.page_parameter}=next_token")
        if op.request_body is not None:
            forwarded.append("body=body")

        code = "\n".join(
            [
                f"async def fetch_page(next_token: Optional[Any]) -> {page_type}:",
                f"    return await self.{op.method_name}({', '.join(forwarded)})",
                "",
                "async for item in paginate(fetch_page):",
                "    yield item",
            ]
        )

        return Function(
            name=stream.method_name,
            parameters=self._signature(op, skip=stream.page_parameter),
            response=f"AsyncIterator[{qualified_ref(stream.item_type)}]",
            async_def=True,
            doc=self.operations.render_docs(op, stream=True),
        ).set_code_block(code)

    def _add_client_module(self, handles: List[Tuple[str, str, str, Optional[str]]]):
        readme = templates.readme_text(self.index.info, self.config)
        self.project.add_file(
            f"{self.package}/__init__.py",
            content=templates.client_module(readme, self.config, handles),
        )

    def _add_metadata(self):
        self.project.add_file("pyproject.toml", content=templates.manifest(self.config))
        self.project.add_file(
            "README.md", content=templates.readme_text(self.index.info, self.config)
        )

    def _add_tests(self):
        """tests/test_types.py с примерами каждой структуры из components"""
        enums = [named.name for named in self.registry if isinstance(named, StringEnum)]
        examples: List[Tuple[str, str]] = []

        self.examples.reset()
        for name, schema in self.index.schemas().items():
            named = self.registry.get(type_name(name))
            if not isinstance(named, Struct):
                continue
            try:
                example = self.examples.example(schema)
            except UnsupportedCompositeError as exc:
                logger.debug("example.skipped", schema=name, reason=exc.reason)
                continue
            examples.append((named.name, python_literal(example)))

        self.project.add_file(
            "tests/test_types.py",
            content=templates.tests_module(self.package, enums, examples),
        )
