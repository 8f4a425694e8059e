"""Гистограмма цветов и удаление редких цветов.

Принципы:
- SRP: подсчёт частот, классификация редких/частых цветов и перезапись пикселей.
- Поиск замены делегируется `ColorKDTree`; редкий цвет никогда не заменяется
  другим редким цветом.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Tuple

import numpy as np

from imtool.errors import ValueRangeError
from imtool.models.image_model import Color, PixelImage, pack_color, pack_colors, unpack_color, unpack_colors
from imtool.services.color_tree import ColorKDTree

logger = logging.getLogger(__name__)

Histogram = List[Tuple[Color, int]]


class QuantizeService:
    def histogram(self, image: PixelImage) -> Histogram:
        """
        Пары (цвет, количество) по возрастанию количества.
        При равных количествах раньше идёт цвет, раньше встретившийся в построчном обходе.
        """
        keys = pack_colors(*image.channels())
        unique, first_seen, counts = np.unique(keys, return_index=True, return_counts=True)
        order = np.lexsort((first_seen, counts))
        return [(unpack_color(unique[i]), int(counts[i])) for i in order]

    def rare_color_mapping(self, image: PixelImage, threshold: int) -> Dict[Color, Color]:
        """Отображение «редкий цвет -> ближайший частый цвет» для threshold редких цветов.

        Если частых цветов не остаётся (threshold >= числа цветов), отображение пустое.
        """
        if threshold < 0:
            raise ValueRangeError(f"Число удаляемых цветов не может быть отрицательным: {threshold}")

        hist = self.histogram(image)
        rare = [color for color, _count in hist[:threshold]]
        common = [color for color, _count in hist[threshold:]]
        if not rare:
            return {}
        if not common:
            logger.warning(
                "Все %d цветов попали в редкие: заменять не на что, изображение не меняется", len(hist)
            )
            return {}

        tree = ColorKDTree(common)
        logger.debug("k-d дерево: %d цветов, высота %d", len(tree), tree.height())
        mapping: Dict[Color, Color] = {}
        for color in rare:
            nearest = tree.nearest(color)
            if nearest is not None:
                mapping[color] = nearest
        return mapping

    def replace_colors(self, image: PixelImage, mapping: Dict[Color, Color]) -> PixelImage:
        """Перекрашивает пиксели, цвет которых есть в mapping; остальные не трогает."""
        if not mapping:
            return image

        source = np.array([pack_color(c) for c in mapping], dtype=np.uint64)
        target = np.array([pack_color(c) for c in mapping.values()], dtype=np.uint64)
        order = np.argsort(source)
        source, target = source[order], target[order]

        keys = pack_colors(*image.channels())
        pos = np.clip(np.searchsorted(source, keys), 0, source.size - 1)
        hit = source[pos] == keys
        keys = keys.copy()
        keys[hit] = target[pos[hit]]
        logger.debug("Перекрашено пикселей: %d", int(hit.sum()))
        return image.with_channels(image.width, image.height, *unpack_colors(keys))

    def remove_rare_colors(self, image: PixelImage, threshold: int) -> PixelImage:
        """Заменяет threshold наименее частых цветов ближайшими из оставшихся."""
        mapping = self.rare_color_mapping(image, threshold)
        logger.info("Удаление редких цветов: порог %d, заменено цветов %d", threshold, len(mapping))
        return self.replace_colors(image, mapping)
