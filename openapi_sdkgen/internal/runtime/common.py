import asyncio
import json
import logging
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import quote

import aiohttp
from aiohttp import ClientSession, ClientTimeout, TCPConnector
from pydantic import BaseModel, RootModel, TypeAdapter, ValidationError

from .types.error import (
    CommunicationError,
    InvalidRequest,
    SerdeError,
    Server,
    UnexpectedResponse,
)
from .types.multipart import Attachment

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120
DEFAULT_RETRIES = 3

_ADAPTERS: Dict[Any, TypeAdapter] = {}


def to_query_value(value: Any) -> str:
    """Строковое значение параметра запроса"""
    if isinstance(value, RootModel):
        value = value.root
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (list, tuple, set)):
        return " ".join(to_query_value(item) for item in value)
    return str(value)


def encode_path(value: Any) -> str:
    """Процентное кодирование параметра пути"""
    return quote(to_query_value(value), safe="")


def to_json(value: Any) -> Any:
    """Тело запроса в виде JSON совместимых данных"""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, (list, tuple)):
        return [to_json(item) for item in value]
    if isinstance(value, dict):
        return {key: to_json(item) for key, item in value.items()}
    if isinstance(value, Enum):
        return value.value
    return TypeAdapter(Any).dump_python(value, mode="json")


def to_form(value: Any) -> Dict[str, str]:
    """Тело формы: поля модели в строковом виде"""
    return {
        key: item if isinstance(item, str) else to_query_value(item)
        for key, item in to_json(value).items()
        if item is not None
    }


def to_multipart(
    value: Any, attachments: Optional[Iterable[Attachment]] = None
) -> aiohttp.FormData:
    """
    Тело multipart/form-data

    Модель уходит JSON частью body, каждый Attachment отдельной частью.
    """
    form = aiohttp.FormData()
    if value is not None:
        form.add_field(
            "body",
            json.dumps(to_json(value)),
            filename="body.json",
            content_type="application/json",
        )
    for attachment in attachments or ():
        form.add_field(
            attachment.name,
            attachment.data,
            filename=attachment.filename,
            content_type=attachment.content_type,
        )
    return form


class Response:
    """Прочитанный ответ сервера"""

    def __init__(self, status: int, headers: Dict[str, str], content: bytes):
        self.status = status
        self.headers = headers
        self.content = content

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def __repr__(self) -> str:
        return f"Response(status={self.status})"


class ConnectionPool:
    """Общий пул соединений для клиента и его копий"""

    def __init__(self, max_connections: int = 100, max_connections_per_host: int = 10):
        self.max_connections = max_connections
        self.max_connections_per_host = max_connections_per_host
        self._connector: Optional[TCPConnector] = None

    def get_connector(self) -> TCPConnector:
        if self._connector is None or self._connector.closed:
            self._connector = TCPConnector(
                limit=self.max_connections,
                limit_per_host=self.max_connections_per_host,
                ttl_dns_cache=30,
                keepalive_timeout=60,
            )
        return self._connector

    async def close(self):
        if self._connector and not self._connector.closed:
            await self._connector.close()


class AiohttpClient:
    """HTTP клиент с Bearer авторизацией на базе aiohttp"""

    def __init__(
        self,
        token: str,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        retries: int = DEFAULT_RETRIES,
        pool: Optional[ConnectionPool] = None,
    ):
        self.token = token
        self.base_url = str(base_url).rstrip("/")
        self.timeout = timeout
        self.retries = max(int(retries), 1)
        self._pool = pool or ConnectionPool()

    def clone(self) -> "AiohttpClient":
        """Копия клиента с тем же пулом соединений"""
        return self.__copy__()

    def __copy__(self) -> "AiohttpClient":
        return type(self)(
            self.token,
            self.base_url,
            timeout=self.timeout,
            retries=self.retries,
            pool=self._pool,
        )

    def with_base_url(self, base_url: str) -> "AiohttpClient":
        client = self.clone()
        client.base_url = str(base_url).rstrip("/")
        return client

    def with_token(self, token: str) -> "AiohttpClient":
        client = self.clone()
        client.token = token
        return client

    def auth_headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def _send(self, method: str, url: str, **kwargs) -> Response:
        async with ClientSession(
            connector=self._pool.get_connector(),
            connector_owner=False,
            timeout=ClientTimeout(total=self.timeout),
        ) as session:
            async with session.request(method, url, **kwargs) as response:
                content = await response.read()
                return Response(response.status, dict(response.headers), content)

    async def request(
        self,
        method: str,
        url: str,
        params: Optional[Iterable[Tuple[str, str]]] = None,
        headers: Optional[Dict[str, Any]] = None,
        json: Any = None,
        data: Any = None,
        success: Optional[Iterable[int]] = None,
    ) -> Response:
        """
        Выполнение запроса с повторами при ошибках соединения

        Не 2xx статус превращается в Server, 2xx вне success в UnexpectedResponse.
        """
        if not self.base_url:
            raise InvalidRequest("base url is empty")

        request_headers = {
            **self.auth_headers(),
            **{
                key: to_query_value(value)
                for key, value in (headers or {}).items()
                if value is not None
            },
        }

        kwargs: Dict[str, Any] = {"headers": request_headers}
        if params:
            kwargs["params"] = list(params)
        if json is not None:
            kwargs["json"] = to_json(json)
        if data is not None:
            kwargs["data"] = data

        attempt = 0
        while True:
            attempt += 1
            try:
                logger.debug("Making %s request to %s", method, url)
                response = await self._send(method, url, **kwargs)
                break
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                if attempt >= self.retries:
                    raise CommunicationError(str(exc) or type(exc).__name__) from exc
                logger.warning(
                    "Request failed (retries left: %s): %s",
                    self.retries - attempt,
                    exc,
                )
                await asyncio.sleep(0.5 * attempt)

        logger.debug("Response status: %s", response.status)
        self.check_status(response, success)

        return response

    @staticmethod
    def check_status(response: Response, success: Optional[Iterable[int]] = None):
        if not 200 <= response.status < 300:
            raise Server(response.status, response.text)

        if success is not None and response.status not in set(success):
            raise UnexpectedResponse(response.status, response.text)

    @staticmethod
    def decode(type_: Any, response: Response) -> Any:
        """Разбор JSON ответа в указанный тип"""
        if not response.content.strip():
            return None

        adapter = _ADAPTERS.get(type_)
        if adapter is None:
            adapter = _ADAPTERS[type_] = TypeAdapter(type_)

        try:
            return adapter.validate_json(response.content)
        except ValidationError as exc:
            raise SerdeError(response.status, response.text) from exc

    async def close(self):
        """Закрытие пула соединений"""
        await self._pool.close()

    async def __aenter__(self) -> "AiohttpClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()


__all__: List[str] = [
    "AiohttpClient",
    "ConnectionPool",
    "Response",
    "encode_path",
    "to_form",
    "to_json",
    "to_multipart",
    "to_query_value",
]
