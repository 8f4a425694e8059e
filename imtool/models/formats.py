"""Описание форматов файлов: сигнатуры и ширина значений на диске."""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from imtool.models.image_model import MAX_8_BIT_VALUE

CHANNELS_PER_PIXEL = 3


@dataclass(frozen=True)
class FileFormat:
    """Дескриптор формата.

    Fields:
        name: Человекочитаемое имя.
        magic: Двухсимвольная ASCII-сигнатура в начале файла.
        header_fields: Число десятичных целых в заголовке после сигнатуры.
    """
    name: str
    magic: bytes
    header_fields: int


RAW_FORMAT = FileFormat(name="raw pixmap", magic=b"P6", header_fields=3)
COMPACT_FORMAT = FileFormat(name="compact indexed", magic=b"C6", header_fields=4)


def channel_dtype(max_value: int) -> np.dtype:
    """1 байт на канал при max_value <= 255, иначе 2 байта big-endian."""
    if max_value <= MAX_8_BIT_VALUE:
        return np.dtype(np.uint8)
    return np.dtype(">u2")


def bytes_per_pixel(max_value: int) -> int:
    return CHANNELS_PER_PIXEL * channel_dtype(max_value).itemsize
