"""Генератор Python клиентов из OpenAPI v3 спецификаций"""

__version__ = "0.3.0"
