"""
Тесты модулей поддержки, которые копируются в сгенерированный клиент
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional

import aiohttp
import pytest
from pydantic import Field, TypeAdapter, ValidationError

from openapi_sdkgen.internal.runtime.common import (
    AiohttpClient,
    Response,
    encode_path,
    to_form,
    to_multipart,
    to_query_value,
)
from openapi_sdkgen.internal.runtime.types.base import Model
from openapi_sdkgen.internal.runtime.types.base64 import Base64Data
from openapi_sdkgen.internal.runtime.types.error import (
    CommunicationError,
    InvalidRequest,
    SerdeError,
    Server,
    UnexpectedResponse,
)
from openapi_sdkgen.internal.runtime.types.multipart import Attachment
from openapi_sdkgen.internal.runtime.types.paginate import Pagination, paginate
from openapi_sdkgen.internal.runtime.types.phone_number import PhoneNumber
from openapi_sdkgen.internal.runtime.types.random import RandomValues


class Color(str, Enum):
    Red = "red"


class Profile(Model):
    first_name: Optional[str] = Field(None, alias="firstName")
    age: Optional[int] = None


class Page(Pagination):
    def __init__(self, items, next_page):
        self.items = items
        self.next_page = next_page


def fetcher(pages, calls):
    """fetch_page по словарю токен -> (элементы, следующий токен)"""

    async def fetch_page(token):
        calls.append(token)
        items, next_page = pages[token]
        return Page(items, next_page)

    return fetch_page


async def collect(iterator):
    return [item async for item in iterator]


class TestPaginate:
    """Тесты обхода страниц"""

    @pytest.mark.asyncio
    async def test_all_pages(self):
        calls = []
        pages = {None: ([1, 2], "a"), "a": ([3], None)}

        assert await collect(paginate(fetcher(pages, calls))) == [1, 2, 3]
        assert calls == [None, "a"]

    @pytest.mark.asyncio
    async def test_empty_page_stops(self):
        """Пустая страница завершает обход даже с токеном"""
        calls = []
        pages = {None: ([], "a")}

        assert await collect(paginate(fetcher(pages, calls))) == []
        assert calls == [None]

    @pytest.mark.asyncio
    async def test_empty_token_stops(self):
        calls = []
        pages = {None: ([1], "")}

        assert await collect(paginate(fetcher(pages, calls))) == [1]
        assert calls == [None]

    @pytest.mark.asyncio
    async def test_repeated_token_stops(self):
        """Тот же токен второй раз не запрашивается"""
        calls = []
        pages = {None: ([1], "a"), "a": ([2], "a")}

        assert await collect(paginate(fetcher(pages, calls))) == [1, 2]
        assert calls == [None, "a"]

    @pytest.mark.asyncio
    async def test_error_propagates(self):
        async def fetch_page(token):
            raise Server(500, "down")

        with pytest.raises(Server):
            await collect(paginate(fetch_page))


class TestResponses:
    """Тесты проверки статуса и разбора ответа"""

    def test_server_error_keeps_body(self):
        with pytest.raises(Server) as exc_info:
            AiohttpClient.check_status(Response(503, {}, b"maintenance"))

        assert exc_info.value.status == 503
        assert exc_info.value.body == "maintenance"

    def test_unexpected_response(self):
        """2xx вне объявленных кодов"""
        with pytest.raises(UnexpectedResponse):
            AiohttpClient.check_status(Response(201, {}, b""), (200,))

        AiohttpClient.check_status(Response(201, {}, b""))
        AiohttpClient.check_status(Response(200, {}, b""), (200,))

    def test_decode(self):
        assert AiohttpClient.decode(List[int], Response(200, {}, b"[1, 2]")) == [1, 2]
        assert AiohttpClient.decode(Profile, Response(200, {}, b"  ")) is None

        profile = AiohttpClient.decode(Profile, Response(200, {}, b'{"firstName": "Ann"}'))
        assert profile.first_name == "Ann"

    def test_decode_error(self):
        """Текст ответа сохраняется в ошибке разбора"""
        with pytest.raises(SerdeError) as exc_info:
            AiohttpClient.decode(int, Response(200, {}, b'"many"'))

        assert exc_info.value.response_text == '"many"'
        assert exc_info.value.status == 200


class TestAiohttpClient:
    """Тесты запроса без сети"""

    @pytest.mark.asyncio
    async def test_request(self, monkeypatch):
        client = AiohttpClient("secret", "https://api.example.com/")
        sent = []

        async def send(method, url, **kwargs):
            sent.append((method, url, kwargs))
            return Response(200, {}, b"{}")

        monkeypatch.setattr(client, "_send", send)

        await client.request(
            "POST",
            f"{client.base_url}/profiles",
            params=[("limit", "10")],
            headers={"X-Id": 5, "X-Skip": None},
            json=Profile(first_name="Ann"),
            success=(200,),
        )

        method, url, kwargs = sent[0]
        assert (method, url) == ("POST", "https://api.example.com/profiles")
        assert kwargs["headers"] == {"Authorization": "Bearer secret", "X-Id": "5"}
        assert kwargs["params"] == [("limit", "10")]
        assert kwargs["json"] == {"firstName": "Ann"}

    @pytest.mark.asyncio
    async def test_retries(self, monkeypatch):
        """После исчерпания попыток ошибка соединения"""
        client = AiohttpClient("secret", "https://api.example.com", retries=2)
        attempts = []

        async def send(method, url, **kwargs):
            attempts.append(url)
            raise aiohttp.ClientConnectionError("refused")

        monkeypatch.setattr(client, "_send", send)

        with pytest.raises(CommunicationError):
            await client.request("GET", f"{client.base_url}/x")

        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_empty_base_url(self):
        client = AiohttpClient("secret", "")

        with pytest.raises(InvalidRequest):
            await client.request("GET", "/x")

    def test_clone_shares_pool(self):
        client = AiohttpClient("secret", "https://api.example.com")

        other = client.with_token("other").with_base_url("https://eu.example.com/")

        assert other._pool is client._pool
        assert other.token == "other"
        assert other.base_url == "https://eu.example.com"
        assert client.token == "secret"
        assert AiohttpClient("", "https://x").auth_headers() == {}


class TestValues:
    """Тесты преобразования значений"""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (True, "true"),
            (False, "false"),
            (7, "7"),
            (Color.Red, "red"),
            (["a", 1], "a 1"),
            (date(2024, 1, 2), "2024-01-02"),
            (datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc), "2024-01-02T03:04:05+00:00"),
        ],
    )
    def test_query_value(self, value, expected):
        assert to_query_value(value) == expected

    def test_encode_path(self):
        assert encode_path("a/b c") == "a%2Fb%20c"

    def test_form(self):
        """Пустые поля не отправляются"""
        assert to_form(Profile(first_name="Ann", age=3)) == {"firstName": "Ann", "age": "3"}
        assert to_form(Profile()) == {}

    def test_multipart(self):
        """Модель уходит частью body, файлы отдельными частями"""
        form = to_multipart(
            Profile(age=1),
            [Attachment("scan", b"\x00\x01", filename="scan.png", content_type="image/png")],
        )

        assert isinstance(form, aiohttp.FormData)
        parts = [
            (options["name"], options.get("filename"), value)
            for options, _, value in form._fields
        ]
        assert parts == [
            ("body", "body.json", '{"age": 1}'),
            ("scan", "scan.png", b"\x00\x01"),
        ]
        assert form._fields[0][1]["Content-Type"] == "application/json"
        assert form._fields[1][1]["Content-Type"] == "image/png"

    def test_multipart_without_body(self):
        form = to_multipart(None, [Attachment("file", b"data")])

        assert [options["name"] for options, _, _ in form._fields] == ["file"]

    def test_model(self):
        profile = Profile(first_name="Ann")

        assert profile.to_json() == '{"firstName":"Ann"}'
        assert Profile.table_headers() == ["firstName", "age"]
        assert profile.table_fields() == ["Ann", ""]


class TestPhoneNumber:
    """Тесты нормализации телефонов"""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("(201) 555-0123", "+1 201-555-0123"),
            ("+1-201-555-0123", "+1 201-555-0123"),
            ("+44 121 234 5678", "+44 121 234 5678"),
            ("", ""),
        ],
    )
    def test_normalize(self, raw, expected):
        assert PhoneNumber(raw) == expected

    @pytest.mark.parametrize("raw", ["call me", "+00000000", "555-555-5555"])
    def test_invalid(self, raw):
        """Номер, который не проходит проверку libphonenumber"""
        with pytest.raises(ValueError):
            PhoneNumber(raw)

    def test_e164(self):
        assert PhoneNumber("201.555.0123").e164 == "+12015550123"
        assert PhoneNumber("").e164 == ""

    def test_pydantic(self):
        adapter = TypeAdapter(PhoneNumber)

        assert adapter.validate_python("201.555.0123") == "+1 201-555-0123"
        assert adapter.dump_json(PhoneNumber("2015550123")) == b'"+1 201-555-0123"'
        with pytest.raises(ValidationError):
            adapter.validate_python("12")


class TestBase64Data:
    """Тесты base64"""

    def test_decode_variants(self):
        """Читается и стандартный, и URL-safe вариант, с паддингом и без"""
        assert Base64Data.decode("aGVsbG8") == b"hello"
        assert Base64Data.decode("aGVsbG8=") == b"hello"
        assert Base64Data.decode("-_8") == b"\xfb\xff"

    def test_encode(self):
        assert str(Base64Data(b"hello")) == "aGVsbG8"
        assert TypeAdapter(Base64Data).dump_json(Base64Data(b"hi")) == b'"aGk"'

    def test_invalid(self):
        with pytest.raises(ValidationError):
            TypeAdapter(Base64Data).validate_python(5)


class TestRandomValues:
    """Тесты детерминированных значений"""

    def test_same_seed(self):
        first, second = RandomValues(5), RandomValues(5)

        assert [first.uuid(), first.datetime(), first.word()] == [
            second.uuid(),
            second.datetime(),
            second.word(),
        ]

    def test_phone(self):
        """Случайные номера проходят проверку и уже нормализованы"""
        values = RandomValues()

        for _ in range(20):
            phone = values.phone()
            assert phone.startswith("+1 ")
            assert PhoneNumber(phone) == phone
