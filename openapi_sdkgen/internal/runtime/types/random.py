"""
Детерминированные случайные значения для примеров и тестов
"""

import base64
import random
import uuid
from datetime import date, datetime, time, timedelta, timezone
from typing import List

DEFAULT_SEED = 123456

WORDS = [
    "alpha",
    "bravo",
    "charlie",
    "delta",
    "echo",
    "foxtrot",
    "golf",
    "hotel",
    "india",
    "juliet",
    "kilo",
    "lima",
]

# 2000-01-01T00:00:00Z
_EPOCH = datetime(2000, 1, 1, tzinfo=timezone.utc)
_SPAN_SECONDS = 30 * 365 * 24 * 60 * 60

# коды зон США, номера в которых проходят проверку libphonenumber
AREA_CODES = ["201", "212", "415", "617", "646", "718"]


class RandomValues:
    """Генератор значений по видам примитивов, одинаковый для одного seed"""

    def __init__(self, seed: int = DEFAULT_SEED):
        self.seed = seed
        self.rng = random.Random(seed)

    def integer(self, bits: int = 32, signed: bool = True) -> int:
        if signed:
            return self.rng.randint(-(2 ** (bits - 1)), 2 ** (bits - 1) - 1)
        return self.rng.randint(0, 2**bits - 1)

    def small_integer(self, low: int = 1, high: int = 100) -> int:
        return self.rng.randint(low, high)

    def number(self) -> float:
        return round(self.rng.uniform(-1000, 1000), 3)

    def boolean(self) -> bool:
        return self.rng.random() < 0.5

    def word(self) -> str:
        return self.rng.choice(WORDS)

    def string(self, words: int = 2) -> str:
        return "-".join(self.word() for _ in range(words))

    def choice(self, values: List):
        return self.rng.choice(values)

    def url(self) -> str:
        return f"https://example.com/{self.word()}"

    def email(self) -> str:
        return "email@example.com"

    def hostname(self) -> str:
        return f"{self.word()}.example.com"

    def ipv4(self) -> str:
        return ".".join(str(self.rng.randint(1, 254)) for _ in range(4))

    def ipv6(self) -> str:
        return ":".join(f"{self.rng.getrandbits(16):x}" for _ in range(8))

    def ip(self) -> str:
        return self.ipv4() if self.boolean() else self.ipv6()

    def datetime(self) -> str:
        moment = _EPOCH + timedelta(seconds=self.rng.randint(0, _SPAN_SECONDS))
        return moment.strftime("%Y-%m-%dT%H:%M:%SZ")

    def date(self) -> str:
        moment = _EPOCH + timedelta(seconds=self.rng.randint(0, _SPAN_SECONDS))
        return date(moment.year, moment.month, moment.day).isoformat()

    def time(self) -> str:
        return time(
            self.rng.randint(0, 23), self.rng.randint(0, 59), self.rng.randint(0, 59)
        ).isoformat()

    def uuid(self) -> str:
        return str(uuid.UUID(int=self.rng.getrandbits(128), version=4))

    def phone(self) -> str:
        area = self.rng.choice(AREA_CODES)
        exchange = self.rng.randint(200, 999)
        line = self.rng.randint(0, 9999)
        return f"+1 {area}-{exchange}-{line:04d}"

    def base64(self, size: int = 12) -> str:
        data = bytes(self.rng.getrandbits(8) for _ in range(size))
        return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


__all__ = ["DEFAULT_SEED", "RandomValues"]
