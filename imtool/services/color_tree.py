"""Трёхмерное k-d дерево над цветами RGB для поиска ближайшего цвета.

Принципы:
- Узлы хранятся в плоских списках (арена): цвет, ось, индексы левого и правого
  потомков (-1 = нет потомка). Дерево не меняется после построения.
- Построение итеративное, поэтому не упирается в лимит рекурсии на больших наборах.
- Поиск точный: минимум квадрата евклидова расстояния, без извлечения корня.
"""
from __future__ import annotations

from operator import itemgetter
from typing import Iterable, List, Optional, Sequence, Tuple

from imtool.models.image_model import Color

AXES = 3
NO_NODE = -1


def squared_distance(a: Sequence[int], b: Sequence[int]) -> int:
    return (a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2 + (a[2] - b[2]) ** 2


class ColorKDTree:
    """Сбалансированное k-d дерево; оси чередуются red -> green -> blue по глубине."""

    def __init__(self, colors: Iterable[Tuple[int, int, int]], depth: int = 0) -> None:
        self._colors: List[Color] = []
        self._axes: List[int] = []
        self._left: List[int] = []
        self._right: List[int] = []
        self.root = self._build([Color(*c) for c in colors], depth)

    def __len__(self) -> int:
        return len(self._colors)

    def _add_node(self, color: Color, axis: int) -> int:
        self._colors.append(color)
        self._axes.append(axis)
        self._left.append(NO_NODE)
        self._right.append(NO_NODE)
        return len(self._colors) - 1

    def _build(self, colors: List[Color], depth: int) -> int:
        """
        На каждом уровне: сортировка по оси depth % 3, медиана (индекс size // 2)
        становится узлом, левая часть уходит влево, правая вправо.
        """
        root = NO_NODE
        # (цвета, глубина, родитель, True = левый потомок)
        pending: List[Tuple[List[Color], int, int, bool]] = [(colors, depth, NO_NODE, True)]
        while pending:
            items, level, parent, is_left = pending.pop()
            if not items:
                continue
            axis = level % AXES
            items = sorted(items, key=itemgetter(axis))
            median = len(items) // 2
            node = self._add_node(items[median], axis)
            if parent == NO_NODE:
                root = node
            elif is_left:
                self._left[parent] = node
            else:
                self._right[parent] = node
            pending.append((items[:median], level + 1, node, True))
            pending.append((items[median + 1:], level + 1, node, False))
        return root

    def height(self) -> int:
        """Число уровней дерева (0 для пустого)."""
        best = 0
        pending = [(self.root, 1)] if self.root != NO_NODE else []
        while pending:
            node, level = pending.pop()
            best = max(best, level)
            for child in (self._left[node], self._right[node]):
                if child != NO_NODE:
                    pending.append((child, level + 1))
        return best

    def nearest(self, target: Tuple[int, int, int]) -> Optional[Color]:
        """Ближайший к target цвет дерева или None, если дерево пустое."""
        node, _distance = self._search(self.root, tuple(int(v) for v in target))
        if node == NO_NODE:
            return None
        return self._colors[node]

    def _search(self, node: int, target: Tuple[int, int, int]) -> Tuple[int, int]:
        # глубина рекурсии ограничена высотой дерева, а она ~log2(n) после медианного построения
        if node == NO_NODE:
            return NO_NODE, 0

        color = self._colors[node]
        diff = target[self._axes[node]] - color[self._axes[node]]
        if diff < 0:
            near, far = self._left[node], self._right[node]
        else:
            near, far = self._right[node], self._left[node]

        best, best_distance = self._search(near, target)
        own_distance = squared_distance(target, color)
        if best == NO_NODE or own_distance <= best_distance:
            best, best_distance = node, own_distance

        # дальняя ветвь может содержать цвет ближе, только если плоскость ближе лучшего кандидата
        if diff * diff < best_distance:
            other, other_distance = self._search(far, target)
            if other != NO_NODE and other_distance < best_distance:
                best, best_distance = other, other_distance
        return best, best_distance
