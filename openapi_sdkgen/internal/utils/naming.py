"""
Нормализация имен: теги, типы, поля, операции, варианты enum
"""

import keyword
import re
from functools import lru_cache
from typing import Tuple

_ONES = [
    "Zero",
    "One",
    "Two",
    "Three",
    "Four",
    "Five",
    "Six",
    "Seven",
    "Eight",
    "Nine",
    "Ten",
    "Eleven",
    "Twelve",
    "Thirteen",
    "Fourteen",
    "Fifteen",
    "Sixteen",
    "Seventeen",
    "Eighteen",
    "Nineteen",
]
_TENS = [
    "",
    "",
    "Twenty",
    "Thirty",
    "Forty",
    "Fifty",
    "Sixty",
    "Seventy",
    "Eighty",
    "Ninety",
]
_SCALES = [
    (10**12, "Trillion"),
    (10**9, "Billion"),
    (10**6, "Million"),
    (1000, "Thousand"),
    (100, "Hundred"),
]

# Значения enum, которые не переживают PascalCase
_SPECIAL_PROPER_NAMES = {
    "18-24": "EighteenToTwentyFour",
    "25-34": "TwentyFiveToThirtyFour",
    "35-44": "ThirtyFiveToFourtyFour",
    "45-54": "FourtyFiveToFiftyFour",
    "35-54": "ThirtyFiveToFiftyFour",
    "55-64": "FiftyFiveToSixtyFour",
    "55+": "FiftyFivePlus",
    "65+": "SixtyFivePlus",
    "-": "Dash",
}

_SPECIAL_FIELD_NAMES = {
    "+1": "plus_one",
    "-1": "minus_one",
    "_links": "underscore_links",
    "$ref": "ref_",
    "$type": "type_",
}

# Имена, которые нельзя использовать как поля pydantic моделей и аргументы
RESERVED_FIELD_NAMES = frozenset(
    keyword.kwlist
    + keyword.softkwlist
    + [
        "self",
        "ref",
        "type",
        "client",
        # встроенные типы, которые используются в аннотациях моделей
        "str",
        "int",
        "float",
        "bool",
        "bytes",
        "date",
        "datetime",
        "time",
        # атрибуты BaseModel и базовой модели клиента
        "json",
        "dict",
        "copy",
        "schema",
        "schema_json",
        "construct",
        "validate",
        "fields",
        "model_config",
        "model_fields",
        "table_headers",
        "table_fields",
        "to_json",
        "has_more_pages",
        "next_page_token",
        "page_items",
    ]
)

# Модули, которые генератор создает сам
RESERVED_MODULE_NAMES = frozenset(["types", "common", "tests"])

# Атрибуты сгенерированного Client, которые не может перекрыть свойство тега
CLIENT_ATTRIBUTES = frozenset(
    [
        "token",
        "base_url",
        "timeout",
        "retries",
        "clone",
        "with_base_url",
        "with_token",
        "auth_headers",
        "request",
        "check_status",
        "decode",
        "close",
        "from_token",
        "from_env",
    ]
)


def cardinal(number: int) -> str:
    """Число прописью в PascalCase: 100 -> OneHundred"""
    if number < 0:
        return "Minus" + cardinal(-number)
    if number < 20:
        return _ONES[number]
    if number < 100:
        tens, rest = divmod(number, 10)
        return _TENS[tens] + (_ONES[rest] if rest else "")

    if number >= 1000 * _SCALES[0][0]:
        # Слишком большое число: цифры по одной
        return "".join(_ONES[int(digit)] for digit in str(number))

    for scale, word in _SCALES:
        if number >= scale:
            head, rest = divmod(number, scale)
            return cardinal(head) + word + (cardinal(rest) if rest else "")

    return ""


@lru_cache(maxsize=4096)
def snake_case(name: str) -> str:
    """getThings -> get_things, HTTPError -> http_error, oauth2 -> oauth_2"""
    # Все, что не буква и не цифра, превращаем в разделитель
    s = re.sub(r"[^0-9a-zA-Z]+", "_", name)
    # HTTPError -> HTTP_Error
    s = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", s)
    # getThings -> get_Things
    s = re.sub(r"([a-z])([A-Z])", r"\1_\2", s)
    # oauth2 -> oauth_2, 2fa -> 2_fa
    s = re.sub(r"([a-zA-Z])([0-9])", r"\1_\2", s)
    s = re.sub(r"([0-9])([a-zA-Z])", r"\1_\2", s)
    s = re.sub(r"_+", "_", s)
    return s.strip("_").lower()


def pascal_case(name: str) -> str:
    """Каждое слово snake_case с заглавной буквы"""
    return "".join(part[:1].upper() + part[1:] for part in snake_case(name).split("_"))


def _replace_leading_digits(name: str) -> str:
    match = re.match(r"^([0-9]+)(.*)$", name)
    if not match:
        return name

    digits, rest = match.groups()
    return cardinal(int(digits)) + ("_" + rest if rest else "")


def _escape_keyword(name: str) -> str:
    if keyword.iskeyword(name) or keyword.issoftkeyword(name):
        return name + "_"
    return name


@lru_cache(maxsize=4096)
def type_name(name: str) -> str:
    """
    Имя типа в PascalCase

    Ведущие цифры заменяются числом прописью (2FaDisabled -> TwoFaDisabled),
    токен V1 удаляется. Пустая строка недопустима.
    """
    if not name:
        raise ValueError("Пустое имя типа")

    s = name.strip()
    s = _SPECIAL_PROPER_NAMES.get(s, s)

    if re.fullmatch(r"[+-]?[0-9]+", s):
        s = cardinal(int(s))

    result = pascal_case(_replace_leading_digits(s)).replace("V1", "")

    if not result:
        raise ValueError(f"Не удалось получить имя типа из '{name}'")

    return _escape_keyword(result)


def tag_module_name(tag: str) -> str:
    """Имя модуля для тега: oauth2 остается oauth2"""
    result = snake_case(tag)

    if result == "oauth_2":
        result = "oauth2"

    if not result:
        raise ValueError(f"Не удалось получить имя модуля из тега '{tag}'")

    result = _replace_leading_digits(result).lower()

    if result in RESERVED_MODULE_NAMES or keyword.iskeyword(result):
        result += "_"

    return result


def field_name(json_name: str) -> Tuple[str, bool]:
    """
    Имя поля модели или аргумента функции

    Returns:
        Пара (имя, нужен ли alias при сериализации)
    """
    prop = json_name.strip()

    if prop in _SPECIAL_FIELD_NAMES:
        prop = _SPECIAL_FIELD_NAMES[prop]
        return prop, prop != json_name

    prop = prop.lstrip("@_")
    prop = snake_case(prop)

    if prop and prop[0].isdigit():
        prop = snake_case(_replace_leading_digits(prop))

    if not prop:
        prop = "value"

    if prop in RESERVED_FIELD_NAMES:
        prop += "_"

    return prop, prop != json_name


def singular(name: str) -> str:
    """users -> user"""
    if name.endswith("s"):
        return name[:-1]
    return name


def remove_stutters(whole: str, stutter: str) -> str:
    """Убирает повтор имени тега в имени операции"""
    if not stutter:
        return whole

    prefix = f"{stutter}_"
    suffix = f"_{stutter}"
    infix = f"_{stutter}_"

    if whole.startswith(prefix):
        whole = whole[len(prefix) :]
    if whole.endswith(suffix):
        whole = whole[: -len(suffix)]
    if infix in whole:
        whole = whole.replace(infix, "_")

    return whole


def operation_name(operation_id: str, tag: str) -> str:
    """
    Имя метода клиента из operationId

    getThingsFromZoo + тег things -> get_from_zoo
    """
    original = snake_case(operation_id)
    tag = tag_module_name(tag).rstrip("_")

    name = remove_stutters(original, tag)
    name = remove_stutters(name, singular(tag))
    # только отдельный токен v1: list_v_12 остается как есть
    name = name.replace("_v_1_", "_")
    while name.endswith("_v_1"):
        name = name[: -len("_v_1")]

    if not name:
        name = original

    if not name:
        raise ValueError(f"Не удалось получить имя метода из '{operation_id}'")

    if name[0].isdigit():
        name = snake_case(_replace_leading_digits(name))

    if name in RESERVED_FIELD_NAMES:
        name += "_"

    return name


def enum_variant_name(value: str) -> Tuple[str, bool]:
    """
    Имя члена enum

    Returns:
        Пара (имя, отличается ли оно от JSON значения)
    """
    if value == "":
        return "Empty", True

    try:
        name = type_name(value)
    except ValueError:
        # Значение из одних спецсимволов: *, +, ...
        name = "Value" + "".join(str(ord(char)) for char in value)

    return name, name != value


def env_var_name(package_name: str) -> str:
    """my-api -> MY_API_API_TOKEN"""
    return snake_case(package_name).upper() + "_API_TOKEN"


def client_accessor_name(module: str) -> str:
    """Имя свойства Client для модуля тега"""
    return module + "_" if module in CLIENT_ATTRIBUTES else module
