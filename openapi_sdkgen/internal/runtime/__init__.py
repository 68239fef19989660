"""Файлы поддержки, которые копируются в сгенерированный клиент как есть"""
