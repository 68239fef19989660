"""
Разбор шаблонов путей вида /a/{b}/c и сборка выражения URL
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Mapping, Union

from ...exceptions import PathTemplateError


class State(Enum):
    START = "start"
    CONSTANT_OR_PARAMETER = "constant_or_parameter"
    CONSTANT = "constant"
    PARAMETER = "parameter"
    PARAMETER_SLASH = "parameter_slash"


@dataclass(frozen=True)
class Constant:
    text: str
    # суффикс вида :action или .json сразу после параметра
    attached: bool = False


@dataclass(frozen=True)
class Parameter:
    name: str


Component = Union[Constant, Parameter]


@dataclass
class PathTemplate:
    components: List[Component] = field(default_factory=list)
    trailing_slash: bool = False

    def parameters(self) -> List[str]:
        return [c.name for c in self.components if isinstance(c, Parameter)]

    def check_parameters(self, names: Iterable[str]) -> None:
        """Параметры шаблона должны совпадать с объявленными path параметрами"""
        declared = set(names)
        used = set(self.parameters())

        if declared != used:
            missing = sorted(used - declared)
            extra = sorted(declared - used)
            reason = []
            if missing:
                reason.append(f"не объявлены: {', '.join(missing)}")
            if extra:
                reason.append(f"нет в пути: {', '.join(extra)}")
            raise PathTemplateError(str(self), 0, "; ".join(reason))

    def _render(self, parameter: str) -> str:
        result = ""
        for component in self.components:
            if isinstance(component, Parameter):
                result += "/" + parameter.format(name=component.name)
            elif component.attached:
                result += component.text
            else:
                result += "/" + component.text

        if self.trailing_slash or not result:
            result += "/"

        return result

    def __str__(self) -> str:
        return self._render("{{{name}}}")

    def url_expression(self, base: str, arg_names: Mapping[str, str]) -> str:
        """
        Python выражение URL

        >>> parse_path("/measure/{number}").url_expression(
        ...     "self.client.base_url", {"number": "number"}
        ... )
        '"{}/measure/{}".format(self.client.base_url, encode_path(number))'
        """
        template = "{}" + self._render("{{}}")
        args = [base] + [
            f"encode_path({arg_names[name]})" for name in self.parameters()
        ]
        return f"{json.dumps(template)}.format({', '.join(args)})"


def parse_path(path: str) -> PathTemplate:
    """Посимвольный разбор пути конечным автоматом"""
    state = State.START
    template = PathTemplate()
    buffer = ""
    attached = False

    def fail(position: int, reason: str):
        raise PathTemplateError(path, position, reason)

    for position, char in enumerate(path):
        if state is State.START:
            if char != "/":
                fail(position, "путь должен начинаться с '/'")
            state = State.CONSTANT_OR_PARAMETER

        elif state is State.CONSTANT_OR_PARAMETER:
            if char == "/":
                fail(position, "пустой сегмент")
            elif char == "{":
                buffer = ""
                state = State.PARAMETER
            elif char == "}":
                fail(position, "'}' без '{'")
            else:
                buffer = char
                attached = False
                state = State.CONSTANT

        elif state is State.CONSTANT:
            if char == "/":
                template.components.append(Constant(buffer, attached))
                state = State.CONSTANT_OR_PARAMETER
            elif char in "{}":
                fail(position, f"'{char}' внутри константы")
            else:
                buffer += char

        elif state is State.PARAMETER:
            if char == "}":
                if not buffer:
                    fail(position, "пустое имя параметра")
                template.components.append(Parameter(buffer))
                state = State.PARAMETER_SLASH
            elif char in "{/":
                fail(position, "незакрытый параметр")
            else:
                buffer += char

        elif state is State.PARAMETER_SLASH:
            if char == "/":
                state = State.CONSTANT_OR_PARAMETER
            elif char in ":.":
                buffer = char
                attached = True
                state = State.CONSTANT
            elif char == "{":
                fail(position, "два параметра подряд")
            else:
                fail(position, f"после параметра допустимы '/', ':' или '.', получено '{char}'")

    if state is State.START:
        fail(0, "путь должен начинаться с '/'")
    elif state is State.PARAMETER:
        fail(len(path), "незакрытый параметр")
    elif state is State.CONSTANT:
        template.components.append(Constant(buffer, attached))
    elif state is State.CONSTANT_OR_PARAMETER and template.components:
        template.trailing_slash = True

    return template
