"""
Индекс OpenAPI документа: разрешение $ref в компоненты
"""

from typing import Any, Dict, Iterator, List, Optional, Tuple

from ...exceptions import UnknownReferenceError

# kind -> раздел components
COMPONENT_SECTIONS = {
    "schema": "schemas",
    "parameter": "parameters",
    "request_body": "requestBodies",
    "response": "responses",
}

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


class SpecIndex:
    """Обертка над разобранным документом, неизменяемая после создания"""

    def __init__(self, document: Dict[str, Any]):
        self.document = document

    @property
    def info(self) -> Dict[str, Any]:
        return self.document.get("info") or {}

    @property
    def components(self) -> Dict[str, Any]:
        return self.document.get("components") or {}

    def schemas(self) -> Dict[str, Any]:
        """Схемы компонентов в порядке документа"""
        return self.components.get("schemas") or {}

    def paths(self) -> Dict[str, Any]:
        return self.document.get("paths") or {}

    def tags(self) -> List[Dict[str, Any]]:
        return self.document.get("tags") or []

    def tag(self, name: str) -> Optional[Dict[str, Any]]:
        for tag in self.tags():
            if tag.get("name") == name:
                return tag
        return None

    def operations(self) -> Iterator[Tuple[str, str, Dict[str, Any], Dict[str, Any]]]:
        """(path, method, операция, path item) в порядке документа"""
        for path, path_item in self.paths().items():
            path_item = self.expand_path_item(path_item)
            for method in HTTP_METHODS:
                operation = path_item.get(method)
                if operation is not None:
                    yield path, method, operation, path_item

    def expand_path_item(self, path_item: Dict[str, Any]) -> Dict[str, Any]:
        ref = path_item.get("$ref")
        if ref is None:
            return path_item

        prefix = "#/components/pathItems/"
        if not ref.startswith(prefix):
            raise UnknownReferenceError(ref)

        name = ref[len(prefix) :]
        items = self.components.get("pathItems") or {}
        if name not in items:
            raise UnknownReferenceError(name)

        return items[name]

    @staticmethod
    def is_reference(item: Any) -> bool:
        return isinstance(item, dict) and "$ref" in item

    @staticmethod
    def prefix(kind: str) -> str:
        if kind not in COMPONENT_SECTIONS:
            raise ValueError(f"Неизвестный вид компонента: {kind}")
        return f"#/components/{COMPONENT_SECTIONS[kind]}/"

    def reference_name(self, reference: str, kind: str = "schema") -> str:
        """#/components/schemas/User -> User"""
        prefix = self.prefix(kind)
        if not isinstance(reference, str) or not reference.startswith(prefix):
            raise UnknownReferenceError(
                str(reference), f"Некорректная ссылка '{reference}' (ожидался {prefix}...)"
            )

        name = reference[len(prefix) :]
        if not name:
            raise UnknownReferenceError(reference)

        # JSON pointer экранирование
        return name.replace("~1", "/").replace("~0", "~")

    def resolve(self, kind: str, reference: str) -> Dict[str, Any]:
        """Компонент по ссылке, UnknownReferenceError если его нет"""
        name = self.reference_name(reference, kind)
        section = self.components.get(COMPONENT_SECTIONS[kind]) or {}

        if name not in section:
            raise UnknownReferenceError(name)

        return section[name]

    def expand(self, kind: str, item: Any) -> Dict[str, Any]:
        """Следует по $ref до конкретного объекта"""
        seen = set()

        while self.is_reference(item):
            reference = item["$ref"]
            if reference in seen:
                raise UnknownReferenceError(
                    reference, f"Циклическая цепочка ссылок: {reference}"
                )
            seen.add(reference)
            item = self.resolve(kind, reference)

        return item

    @staticmethod
    def transparent_allof(schema: Dict[str, Any]) -> Optional[Any]:
        """Единственная ветка allOf или None"""
        all_of = schema.get("allOf") if isinstance(schema, dict) else None
        if isinstance(all_of, list) and len(all_of) == 1:
            return all_of[0]
        return None
