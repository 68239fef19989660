"""
Модель операции: одна пара (path, method) из спецификации
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from .registry import TypeRef

PATH = "path"
QUERY = "query"
HEADER = "header"


@dataclass
class OperationParameter:
    """Аргумент метода, собранный из параметра OpenAPI"""

    location: str
    name: str
    json_name: str
    type: TypeRef
    required: bool = False
    description: Optional[str] = None
    # Python условие отправки параметра в запросе
    condition: Optional[str] = None
    example: Any = None

    @property
    def annotation(self) -> TypeRef:
        return self.type if self.required else TypeRef.optional(self.type)


@dataclass
class RequestBody:
    media_type: str
    type: TypeRef
    # json, form, multipart, binary, text
    encoding: str = "json"
    required: bool = True
    example: Any = None


@dataclass
class ResponseInfo:
    media_type: Optional[str]
    type: Optional[TypeRef]
    # json, binary, text или None когда тела нет
    encoding: Optional[str] = None


@dataclass
class StreamInfo:
    """Потоковый вариант операции с постраничной выдачей"""

    method_name: str
    page_parameter: str
    item_type: TypeRef


@dataclass
class Operation:
    module: str
    tag: str
    method_name: str
    http_method: str
    path: str
    operation_id: str
    parameters: List[OperationParameter] = field(default_factory=list)
    request_body: Optional[RequestBody] = None
    response: Optional[ResponseInfo] = None
    # Явные 2xx коды, None если объявлен диапазон
    success_codes: Optional[Tuple[int, ...]] = None
    stream: Optional[StreamInfo] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    deprecated: bool = False
    external_docs: Optional[Tuple[str, Optional[str]]] = None
    docs: str = ""

    @property
    def pagination_shape(self) -> str:
        return "cursor" if self.stream is not None else "none"

    def parameters_in(self, location: str) -> List[OperationParameter]:
        return [p for p in self.parameters if p.location == location]

    def arguments(self) -> List[OperationParameter]:
        """Обязательные аргументы первыми, порядок объявления сохраняется"""
        return [p for p in self.parameters if p.required] + [
            p for p in self.parameters if not p.required
        ]
