"""Поддержка типов сгенерированного клиента"""
