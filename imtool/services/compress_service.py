"""Компактный индексированный формат (C6): таблица цветов + индекс на пиксель.

Раскладка файла:
    C6 <width> <height> <max_value> <table_size>\\n
    таблица: table_size записей по 3 канала (1 байт или 2 байта big-endian)
    индексы: width * height беззнаковых little-endian целых по 1, 2 или 4 байта
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cached_property
from pathlib import Path
from typing import Dict, List

import numpy as np

from imtool.models.formats import COMPACT_FORMAT, channel_dtype
from imtool.models.image_model import Color, PixelImage, pack_colors, unpack_color
from imtool.services.codec_service import write_file

logger = logging.getLogger(__name__)

ONE_BYTE_LIMIT = 256
TWO_BYTE_LIMIT = 65536

_INDEX_DTYPES = {1: np.dtype("<u1"), 2: np.dtype("<u2"), 4: np.dtype("<u4")}


def index_width(table_size: int) -> int:
    """Байт на индекс: 1 при <= 256 цветах, 2 при <= 65536, иначе 4."""
    if table_size <= ONE_BYTE_LIMIT:
        return 1
    if table_size <= TWO_BYTE_LIMIT:
        return 2
    return 4


@dataclass(frozen=True)
class ColorTable:
    """Цвета в порядке первого появления и индекс каждого пикселя в таблице.

    Fields:
        colors: Уникальные цвета, colors[i] имеет индекс i.
        pixel_indices: Индексы пикселей в построчном порядке.
    """
    colors: List[Color]
    pixel_indices: np.ndarray

    @cached_property
    def index_of(self) -> Dict[Color, int]:
        """Обратное отображение цвет -> индекс; строится при первом обращении."""
        return {color: i for i, color in enumerate(self.colors)}

    def __len__(self) -> int:
        return len(self.colors)


class CompressService:
    def build_color_table(self, image: PixelImage) -> ColorTable:
        keys = pack_colors(*image.channels())
        unique, first_seen, inverse = np.unique(keys, return_index=True, return_inverse=True)
        # np.unique сортирует по значению; переставляем в порядок первого появления
        order = np.argsort(first_seen, kind="stable")
        rank = np.empty_like(order)
        rank[order] = np.arange(order.size)
        colors = [unpack_color(unique[i]) for i in order]
        return ColorTable(
            colors=colors,
            pixel_indices=rank[inverse.reshape(-1)],
        )

    def compress_bytes(self, image: PixelImage) -> bytes:
        table = self.build_color_table(image)
        width = index_width(len(table))
        header = (
            f"{COMPACT_FORMAT.magic.decode('ascii')} {image.width} {image.height} "
            f"{image.max_value} {len(table)}\n"
        )
        palette = np.array(table.colors, dtype=np.int64).reshape(-1, 3).astype(channel_dtype(image.max_value))
        indices = table.pixel_indices.astype(_INDEX_DTYPES[width])
        logger.info("Таблица цветов: %d записей, индекс %d байт", len(table), width)
        return header.encode("ascii") + palette.tobytes() + indices.tobytes()

    def compress(self, image: PixelImage, file_path: str | Path) -> None:
        path = Path(file_path)
        logger.info("Запись компактного файла %s", path)
        write_file(path, self.compress_bytes(image))
