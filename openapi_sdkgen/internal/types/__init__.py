"""Модели типов, операций и файлов проекта"""
