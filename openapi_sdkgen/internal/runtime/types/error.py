"""
Ошибки клиента
"""

from typing import Optional


class ClientError(Exception):
    """Базовая ошибка сгенерированного клиента"""

    def __init__(self, message: str, status: Optional[int] = None):
        self.message = message
        self._status = status
        super().__init__(message)

    @property
    def status(self) -> Optional[int]:
        """HTTP статус, если ответ был получен"""
        return self._status


class InvalidRequest(ClientError):
    """Запрос не удалось собрать"""

    def __init__(self, message: str):
        super().__init__(f"Invalid request: {message}")


class CommunicationError(ClientError):
    """Сервер недоступен или соединение оборвалось"""

    def __init__(self, message: str):
        super().__init__(f"Communication error: {message}")


class SerdeError(ClientError):
    """Ответ не удалось разобрать, исходный текст сохраняется"""

    def __init__(self, status: int, response_text: str):
        self.response_text = response_text
        super().__init__(
            f"Serde error: status {status}, response: {response_text}", status
        )


class Server(ClientError):
    """Сервер вернул не 2xx статус"""

    def __init__(self, status: int, body: str):
        self.body = body
        super().__init__(f"Server error: status {status}, body: {body}", status)


class UnexpectedResponse(ClientError):
    """2xx статус, которого нет среди объявленных"""

    def __init__(self, status: int, body: str):
        self.body = body
        super().__init__(f"Unexpected response: status {status}, body: {body}", status)


__all__ = [
    "ClientError",
    "CommunicationError",
    "InvalidRequest",
    "SerdeError",
    "Server",
    "UnexpectedResponse",
]
