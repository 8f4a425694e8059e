"""Физические раскладки пиксельного буфера.

Принципы:
- Одна логическая модель, две стратегии хранения: записи на пиксель (AoS)
  или три параллельных массива каналов (SoA).
- Алгоритмы работают только через `channels()`/`from_channels()` и не знают,
  какая раскладка внутри.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Tuple, Type

import numpy as np

from imtool.errors import UsageError

CHANNEL_DTYPE = np.uint16

Channels = Tuple[np.ndarray, np.ndarray, np.ndarray]


def _as_channel(values: np.ndarray) -> np.ndarray:
    return np.array(values, dtype=CHANNEL_DTYPE).reshape(-1)


class PixelStorage(ABC):
    """Хранилище `n` пикселей по три 16-битных канала."""

    layout: str = ""

    @classmethod
    @abstractmethod
    def from_channels(cls, red: np.ndarray, green: np.ndarray, blue: np.ndarray) -> "PixelStorage":
        """Собирает хранилище из трёх одномерных массивов одинаковой длины."""

    @abstractmethod
    def channels(self) -> Channels:
        """Массивы (red, green, blue) длиной `len(self)`; только для чтения."""

    @abstractmethod
    def __len__(self) -> int:
        ...

    def pixel(self, index: int) -> Tuple[int, int, int]:
        red, green, blue = self.channels()
        return int(red[index]), int(green[index]), int(blue[index])

    def max_channel_value(self) -> int:
        if len(self) == 0:
            return 0
        return int(max(int(ch.max()) for ch in self.channels()))


class InterleavedStorage(PixelStorage):
    """AoS: один массив формы (n, 3), строка = пиксель."""

    layout = "aos"

    def __init__(self, records: np.ndarray) -> None:
        records = np.array(records, dtype=CHANNEL_DTYPE)
        if records.ndim != 2 or records.shape[1] != 3:
            raise ValueError(f"Ожидался массив формы (n, 3), получено {records.shape}")
        records.setflags(write=False)
        self._records = records

    @classmethod
    def from_channels(cls, red: np.ndarray, green: np.ndarray, blue: np.ndarray) -> "InterleavedStorage":
        return cls(np.stack([_as_channel(red), _as_channel(green), _as_channel(blue)], axis=1))

    def channels(self) -> Channels:
        return self._records[:, 0], self._records[:, 1], self._records[:, 2]

    def pixel(self, index: int) -> Tuple[int, int, int]:
        r, g, b = self._records[index]
        return int(r), int(g), int(b)

    def __len__(self) -> int:
        return int(self._records.shape[0])


class PlanarStorage(PixelStorage):
    """SoA: три независимых массива каналов."""

    layout = "soa"

    def __init__(self, red: np.ndarray, green: np.ndarray, blue: np.ndarray) -> None:
        planes = (_as_channel(red), _as_channel(green), _as_channel(blue))
        if not (planes[0].size == planes[1].size == planes[2].size):
            raise ValueError("Массивы каналов должны иметь одинаковую длину")
        for plane in planes:
            plane.setflags(write=False)
        self._planes = planes

    @classmethod
    def from_channels(cls, red: np.ndarray, green: np.ndarray, blue: np.ndarray) -> "PlanarStorage":
        return cls(red, green, blue)

    def channels(self) -> Channels:
        return self._planes

    def __len__(self) -> int:
        return int(self._planes[0].size)


_STORAGES: Dict[str, Type[PixelStorage]] = {
    InterleavedStorage.layout: InterleavedStorage,
    PlanarStorage.layout: PlanarStorage,
}


def storage_for(layout: str) -> Type[PixelStorage]:
    """Класс хранилища по имени раскладки ("aos" | "soa")."""
    try:
        return _STORAGES[layout]
    except KeyError:
        raise UsageError(f"Неизвестная раскладка пикселей: {layout}") from None
