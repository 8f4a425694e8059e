"""Пиксельные преобразования: масштабирование интенсивности и билинейный ресайз.

Принципы:
- Методы не мутируют исходное изображение и возвращают новое той же раскладки.
- Все вычисления векторизованы по каналам через numpy.
"""
from __future__ import annotations

import logging
from typing import Tuple

import numpy as np

from imtool.errors import ValueRangeError
from imtool.models.image_model import MAX_MAX_VALUE, MIN_MAX_VALUE, PixelImage

logger = logging.getLogger(__name__)


def _round_half_up(values: np.ndarray) -> np.ndarray:
    # значения неотрицательны, поэтому floor(x + 0.5) совпадает с round()
    return np.floor(values + 0.5)


class ProcessService:
    # ---------- Вспомогательные функции ----------
    def _axis_samples(self, src: int, dst: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Для каждой целевой координаты вдоль оси возвращает (base, base + 1, delta).
        Отношение src / dst; при src == 1 отношение равно 0 и оба соседа совпадают.
        """
        if src == 1:
            zeros = np.zeros(dst, dtype=np.intp)
            return zeros, zeros, np.zeros(dst, dtype=np.float64)

        ratio = src / dst
        origin = np.arange(dst, dtype=np.float64) * ratio
        base = np.floor(origin).astype(np.intp)
        delta = origin - base
        # у последней строки/столбца нет соседа справа: берём пару (src-2, src-1) с delta = 1
        edge = base >= src - 1
        base[edge] = src - 2
        delta[edge] = 1.0
        return base, base + 1, delta

    # ---------- 1) Масштабирование интенсивности ----------
    def rescale(self, image: PixelImage, new_max: int) -> PixelImage:
        """
        Линейно переводит значения каналов из [0, max_value] в [0, new_max]:
        new = round(old * new_max / max_value), с ограничением сверху new_max.

        Raises:
            ValueRangeError: если текущий максимум равен 0 или new_max вне [1, 65535].
        """
        if image.max_value < MIN_MAX_VALUE:
            raise ValueRangeError("Нельзя масштабировать изображение с максимумом канала 0")
        if not MIN_MAX_VALUE <= new_max <= MAX_MAX_VALUE:
            raise ValueRangeError(f"Новый максимум вне диапазона [{MIN_MAX_VALUE}, {MAX_MAX_VALUE}]: {new_max}")

        factor = new_max / image.max_value
        scaled = [
            np.clip(_round_half_up(channel.astype(np.float64) * factor), 0, new_max)
            for channel in image.channels()
        ]
        logger.info("Масштабирование интенсивности %d -> %d (коэффициент %.6f)", image.max_value, new_max, factor)
        return image.with_channels(image.width, image.height, *scaled, max_value=new_max)

    # ---------- 2) Билинейная интерполяция ----------
    def resize(self, image: PixelImage, new_width: int, new_height: int) -> PixelImage:
        """
        Ресайз до new_width × new_height билинейной интерполяцией:
        value = lerp(lerp(tl, tr, dx), lerp(bl, br, dx), dy), затем округление.
        Максимум канала не меняется.
        """
        if new_width <= 0 or new_height <= 0:
            raise ValueRangeError(f"Новые размеры должны быть положительными: {new_width}x{new_height}")

        x0, x1, dx = self._axis_samples(image.width, new_width)
        y0, y1, dy = self._axis_samples(image.height, new_height)
        dx = dx[np.newaxis, :]
        dy = dy[:, np.newaxis]
        rows0 = y0[:, np.newaxis]
        rows1 = y1[:, np.newaxis]

        resized = []
        for channel in image.channels():
            grid = channel.reshape(image.height, image.width).astype(np.float64)
            top_left = grid[rows0, x0]
            top_right = grid[rows0, x1]
            bottom_left = grid[rows1, x0]
            bottom_right = grid[rows1, x1]
            top = top_left + dx * (top_right - top_left)
            bottom = bottom_left + dx * (bottom_right - bottom_left)
            value = top + dy * (bottom - top)
            resized.append(np.clip(_round_half_up(value), 0, image.max_value).reshape(-1))

        logger.info("Ресайз %dx%d -> %dx%d", image.width, image.height, new_width, new_height)
        return image.with_channels(new_width, new_height, *resized)
