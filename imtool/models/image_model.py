"""Модели данных для изображений.

Принципы:
- SRP: только структура данных и проверка инвариантов, без логики обработки.
- Чистый код: неизменяемость (`frozen=True`); преобразования создают новое изображение.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Optional, Sequence, Tuple

import numpy as np

from imtool.errors import ValueRangeError
from imtool.models.storage import Channels, PixelStorage, storage_for

MIN_MAX_VALUE = 1
MAX_MAX_VALUE = 65535
MAX_8_BIT_VALUE = 255


class Color(NamedTuple):
    """Цвет без привязки к позиции пикселя."""
    red: int
    green: int
    blue: int


@dataclass(frozen=True)
class ImageInfo:
    """Сводка для операции `info`."""
    width: int
    height: int
    max_value: int


@dataclass(frozen=True, eq=False)
class PixelImage:
    """Неизменяемое изображение width × height с тремя 16-битными каналами.

    Fields:
        width: Ширина, px (> 0).
        height: Высота, px (> 0).
        max_value: Заявленный максимум канала, [1, 65535].
        storage: Пиксели в построчном порядке, индекс = y * width + x.
    """
    width: int
    height: int
    max_value: int
    storage: PixelStorage

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueRangeError(f"Размеры изображения должны быть положительными: {self.width}x{self.height}")
        if not MIN_MAX_VALUE <= self.max_value <= MAX_MAX_VALUE:
            raise ValueRangeError(
                f"Максимум канала вне диапазона [{MIN_MAX_VALUE}, {MAX_MAX_VALUE}]: {self.max_value}"
            )
        if len(self.storage) != self.width * self.height:
            raise ValueRangeError(
                f"Число пикселей {len(self.storage)} не равно {self.width}x{self.height}"
            )
        actual = self.storage.max_channel_value()
        if actual > self.max_value:
            raise ValueRangeError(f"Значение канала {actual} превышает максимум {self.max_value}")

    # ---- Конструкторы ----
    @classmethod
    def from_channels(
        cls,
        width: int,
        height: int,
        max_value: int,
        red: np.ndarray,
        green: np.ndarray,
        blue: np.ndarray,
        layout: str = "aos",
    ) -> "PixelImage":
        storage = storage_for(layout).from_channels(red, green, blue)
        return cls(width=width, height=height, max_value=max_value, storage=storage)

    @classmethod
    def from_rows(
        cls,
        rows: Sequence[Sequence[Tuple[int, int, int]]],
        max_value: int = MAX_8_BIT_VALUE,
        layout: str = "aos",
    ) -> "PixelImage":
        """Строит изображение из списка строк пикселей `[[(r, g, b), ...], ...]`."""
        height = len(rows)
        width = len(rows[0]) if height else 0
        if any(len(row) != width for row in rows):
            raise ValueRangeError("Все строки изображения должны быть одной длины")
        flat = np.array([px for row in rows for px in row], dtype=np.int64).reshape(-1, 3)
        if flat.size and (flat.min() < 0 or flat.max() > MAX_MAX_VALUE):
            raise ValueRangeError(f"Значения каналов должны лежать в [0, {MAX_MAX_VALUE}]")
        return cls.from_channels(width, height, max_value, flat[:, 0], flat[:, 1], flat[:, 2], layout=layout)

    # ---- Доступ ----
    @property
    def layout(self) -> str:
        return self.storage.layout

    @property
    def info(self) -> ImageInfo:
        return ImageInfo(width=self.width, height=self.height, max_value=self.max_value)

    def channels(self) -> Channels:
        return self.storage.channels()

    def pixel(self, x: int, y: int) -> Color:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Пиксель ({x}, {y}) вне изображения {self.width}x{self.height}")
        return Color(*self.storage.pixel(y * self.width + x))

    def with_channels(
        self,
        width: int,
        height: int,
        red: np.ndarray,
        green: np.ndarray,
        blue: np.ndarray,
        max_value: Optional[int] = None,
    ) -> "PixelImage":
        """Новое изображение той же раскладки с другими пикселями."""
        return PixelImage.from_channels(
            width,
            height,
            self.max_value if max_value is None else max_value,
            red,
            green,
            blue,
            layout=self.layout,
        )

    def to_layout(self, layout: str) -> "PixelImage":
        if layout == self.layout:
            return self
        return PixelImage.from_channels(
            self.width, self.height, self.max_value, *self.channels(), layout=layout
        )

    def to_array(self) -> np.ndarray:
        """Массив формы (height, width, 3), uint16."""
        return np.stack(self.channels(), axis=1).reshape(self.height, self.width, 3)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelImage):
            return NotImplemented
        if (self.width, self.height, self.max_value) != (other.width, other.height, other.max_value):
            return False
        return all(np.array_equal(a, b) for a, b in zip(self.channels(), other.channels()))

    __hash__ = None  # type: ignore[assignment]


# ---- Упаковка цвета в одно целое: r << 32 | g << 16 | b ----
_GREEN_SHIFT = np.uint64(16)
_RED_SHIFT = np.uint64(32)
_CHANNEL_MASK = 0xFFFF


def pack_colors(red: np.ndarray, green: np.ndarray, blue: np.ndarray) -> np.ndarray:
    """Ключи uint64, по одному на пиксель; равенство ключей = равенство цветов."""
    return (
        (red.astype(np.uint64) << _RED_SHIFT)
        | (green.astype(np.uint64) << _GREEN_SHIFT)
        | blue.astype(np.uint64)
    )


def pack_color(color: Tuple[int, int, int]) -> int:
    red, green, blue = color
    return (int(red) << 32) | (int(green) << 16) | int(blue)


def unpack_color(key: int) -> Color:
    key = int(key)
    return Color((key >> 32) & _CHANNEL_MASK, (key >> 16) & _CHANNEL_MASK, key & _CHANNEL_MASK)


def unpack_colors(keys: np.ndarray) -> Channels:
    keys = keys.astype(np.uint64)
    mask = np.uint64(_CHANNEL_MASK)
    return (
        ((keys >> _RED_SHIFT) & mask).astype(np.uint16),
        ((keys >> _GREEN_SHIFT) & mask).astype(np.uint16),
        (keys & mask).astype(np.uint16),
    )
