"""Загрузка и индекс OpenAPI документа"""
