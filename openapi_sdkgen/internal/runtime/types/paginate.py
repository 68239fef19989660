"""
Постраничная выдача: ленивый обход страниц
"""

import logging
from typing import Any, AsyncIterator, Awaitable, Callable, ClassVar, List, Optional

logger = logging.getLogger(__name__)


class Pagination:
    """
    Примесь для моделей страниц

    Подклассы указывают имена полей с элементами и токеном следующей страницы.
    """

    pagination_items_field: ClassVar[str] = "items"
    pagination_next_field: ClassVar[str] = "next_page"

    def next_page_token(self) -> Optional[Any]:
        token = getattr(self, self.pagination_next_field, None)
        if token is None or token == "":
            return None
        return token

    def has_more_pages(self) -> bool:
        return self.next_page_token() is not None

    def page_items(self) -> List[Any]:
        return list(getattr(self, self.pagination_items_field, None) or [])


async def paginate(
    fetch_page: Callable[[Optional[Any]], Awaitable[Pagination]],
) -> AsyncIterator[Any]:
    """
    Обходит страницы, пока есть следующая

    Первая страница запрашивается без токена. Обход заканчивается, когда
    страница пустая, следующей страницы нет или сервер вернул тот же токен.
    Ошибка запроса пробрасывается вызывающему.
    """
    token = None

    while True:
        page = await fetch_page(token)
        items = page.page_items()

        for item in items:
            yield item

        if not items or not page.has_more_pages():
            return

        next_token = page.next_page_token()
        if next_token == token:
            logger.warning("Server returned the same page token %r, stopping", token)
            return

        token = next_token


__all__ = ["Pagination", "paginate"]
