"""Иерархия ошибок imtool.

Принципы:
- Каждая ошибка несёт понятное человеку сообщение.
- Ошибки ввода-вывода и формата наследуют встроенные `OSError`/`ValueError`,
  чтобы вызывающий код мог ловить их и по стандартным типам.
"""
from __future__ import annotations


class ImtoolError(Exception):
    """Базовая ошибка инструмента: операция прерывается целиком."""


class FileOpenError(ImtoolError, OSError):
    """Входной файл не читается или выходной путь недоступен для записи."""


class FormatError(ImtoolError, ValueError):
    """Неверная сигнатура, испорченный заголовок или укороченные данные."""


class ValueRangeError(ImtoolError, ValueError):
    """Значение вне допустимого диапазона (размеры, максимум канала и т.п.)."""


class UsageError(ImtoolError):
    """Неверная операция или аргументы командной строки."""
