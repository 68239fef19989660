from typing import Optional, Union

from pydantic import BaseModel


def docstring(text: Optional[str]) -> str:
    """Текст в виде docstring, пустая строка если текста нет"""
    if not text or not text.strip():
        return ""

    body = text.strip().replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    return '"""\n' + body + '\n"""'


def indent(text: str, prefix: str = "    ") -> str:
    return "\n".join(prefix + line if line.strip() else "" for line in text.split("\n"))


class Parameter(BaseModel):
    """Аргумент функции или атрибут класса"""

    name: str
    annotation: Optional[str] = None
    default: Optional[str] = None
    doc: Optional[str] = None

    def __str__(self):
        result = self.name
        if self.annotation:
            result += f": {self.annotation}"
        if self.default is not None:
            result += f" = {self.default}"
        if self.doc:
            result += "\n" + docstring(self.doc)
        return result


class CodeBlock(BaseModel):
    code: str = "pass"

    def __str__(self):
        return self.code.replace("\t", "    ")


class Function(BaseModel):
    name: str
    parameters: list[Parameter] = []
    response: Optional[str] = "None"

    async_def: bool = False
    decorators: list[str] = []

    doc: Optional[str] = None

    code: CodeBlock = CodeBlock(code="pass")

    def __str__(self) -> str:
        arguments = ", ".join(str(p) for p in self.parameters)
        signature = (
            "\n".join(self.decorators + [""])
            + f"{'async ' if self.async_def else ''}def {self.name}({arguments})"
            + (f" -> {self.response}" if self.response else "")
            + ":"
        )

        body = "\n\n".join(filter(bool, [docstring(self.doc), str(self.code)]))
        return signature + "\n" + indent(body)

    def set_code_block(self, code_block: Union["CodeBlock", str]) -> "Function":
        if isinstance(code_block, str):
            code_block = CodeBlock(code=code_block)

        self.code = code_block
        return self


class Class(BaseModel):
    name: str
    inherits: list[str] = []
    doc: Optional[str] = None

    # атрибуты, блоки кода, методы и вложенные классы в порядке добавления
    members: list[Union[Parameter, CodeBlock, Function, "Class"]] = []

    def __str__(self) -> str:
        header = (
            f"class {self.name}"
            + (f"({', '.join(self.inherits)})" if self.inherits else "")
            + ":"
        )

        parts = [docstring(self.doc)] if self.doc else []
        attributes = []

        for member in self.members:
            if isinstance(member, (Parameter, CodeBlock)):
                attributes.append(str(member))
                continue
            if attributes:
                parts.append("\n".join(attributes))
                attributes = []
            parts.append(str(member))

        if attributes:
            parts.append("\n".join(attributes))

        return header + "\n" + indent("\n\n".join(parts) if parts else "pass")

    def add_parameter(self, parameter: Union[Parameter, str], **kwargs) -> Parameter:
        if isinstance(parameter, str):
            parameter = Parameter(name=parameter, **kwargs)

        self.members.append(parameter)
        return parameter

    def add_function(self, function: Union["Function", str], **kwargs) -> "Function":
        if isinstance(function, str):
            function = Function(name=function, **kwargs)

        self.members.append(function)
        return function

    def add_code_block(self, code_block: Union["CodeBlock", str]) -> "Class":
        if isinstance(code_block, str):
            code_block = CodeBlock(code=code_block)

        self.members.append(code_block)
        return self

    def functions(self) -> list[Function]:
        return [m for m in self.members if isinstance(m, Function)]


Class.model_rebuild()


class CodeFile(BaseModel):
    """
    Файл проекта

    Python файлы собираются из импортов и блоков, остальные хранятся как текст.
    """

    file_name: str

    doc: Optional[str] = None
    imports: list[str] = []
    body: list[Union[CodeBlock, Function, Class]] = []

    # готовое содержимое, копируется как есть
    content: Optional[str] = None
    verbatim: bool = False

    @property
    def is_python(self) -> bool:
        return self.file_name.endswith(".py")

    def __str__(self):
        if self.content is not None:
            return self.content

        parts = [
            docstring(self.doc),
            "\n".join(self.imports),
            *(str(item) for item in self.body),
        ]
        return "\n\n\n".join(filter(bool, parts)).replace("\t", "    ") + "\n"

    def add_function(self, function: Union["Function", str], **kwargs) -> "Function":
        if isinstance(function, str):
            function = Function(name=function, **kwargs)

        self.body.append(function)
        return function

    def add_class(self, cls: Union["Class", str], **kwargs) -> "Class":
        if isinstance(cls, str):
            cls = Class(name=cls, **kwargs)

        self.body.append(cls)
        return cls

    def add_code_block(self, code_block: Union["CodeBlock", str]) -> "CodeFile":
        if isinstance(code_block, str):
            code_block = CodeBlock(code=code_block)

        self.body.append(code_block)
        return self

    def get_class(self, name: str) -> Optional[Class]:
        for item in self.body:
            if isinstance(item, Class) and item.name == name:
                return item
        return None


class Project(BaseModel):
    name: str
    # имя импортируемого пакета внутри проекта
    package: str
    files: list[CodeFile] = []

    def add_file(self, file_name: Union["CodeFile", str], **kwargs) -> "CodeFile":
        if isinstance(file_name, str):
            code_file = CodeFile(file_name=file_name, **kwargs)
        else:
            code_file = file_name

        self.files.append(code_file)
        return code_file

    def get_file(self, file_name: str) -> Optional[CodeFile]:
        for code_file in self.files:
            if code_file.file_name == file_name:
                return code_file
        return None

    def file_names(self) -> list[str]:
        return [f.file_name for f in self.files]
