"""Понижение схем и операций, рендер и запись проекта"""
