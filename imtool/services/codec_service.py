"""Чтение и запись «сырого» формата пиксельной карты (P6).

Принципы:
- SRP: класс отвечает только за байтовое представление изображения.
- Файловые ошибки превращаются в `FileOpenError`, структурные в `FormatError`,
  недопустимые значения в `ValueRangeError`.
- Файл записывается одним вызовом после сборки всего буфера в памяти.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Tuple

import numpy as np

from imtool.errors import FileOpenError, FormatError, ValueRangeError
from imtool.models.formats import CHANNELS_PER_PIXEL, RAW_FORMAT, FileFormat, bytes_per_pixel, channel_dtype
from imtool.models.image_model import MAX_MAX_VALUE, MIN_MAX_VALUE, ImageInfo, PixelImage
from imtool.models.storage import storage_for

logger = logging.getLogger(__name__)

_HEADER_FIELD = re.compile(rb"\s+(\d+)")
_SEPARATORS = b" \t\n\r\x0b\x0c"


def parse_header(data: bytes, fmt: FileFormat) -> Tuple[List[int], int]:
    """Разбирает `<magic> <int> ... <int><sep>` и возвращает (числа, смещение данных).

    Raises:
        FormatError: неверная сигнатура, нет числа или нет разделителя перед данными.
    """
    magic = data[: len(fmt.magic)]
    if magic != fmt.magic:
        raise FormatError(
            f"Неверная сигнатура: ожидалась {fmt.magic.decode('ascii')}, получено {magic!r}"
        )
    pos = len(fmt.magic)
    values: List[int] = []
    for _ in range(fmt.header_fields):
        match = _HEADER_FIELD.match(data, pos)
        if match is None:
            raise FormatError(f"Испорченный заголовок {fmt.name}: ожидалось целое число (смещение {pos})")
        values.append(int(match.group(1)))
        pos = match.end()
    if pos >= len(data) or data[pos] not in _SEPARATORS:
        raise FormatError(f"Испорченный заголовок {fmt.name}: нет разделителя перед данными")
    return values, pos + 1


def read_file(path: str | Path) -> bytes:
    path = Path(path)
    try:
        return path.read_bytes()
    except OSError as exc:
        raise FileOpenError(f"Не удалось открыть файл: {path} ({exc.strerror or exc})") from exc


def write_file(path: str | Path, payload: bytes) -> None:
    path = Path(path)
    try:
        path.write_bytes(payload)
    except OSError as exc:
        raise FileOpenError(f"Не удалось записать файл: {path} ({exc.strerror or exc})") from exc


class CodecService:
    def decode_bytes(self, data: bytes, layout: str = "aos") -> PixelImage:
        """Декодирует содержимое файла P6.

        Args:
            data: Байты файла целиком.
            layout: Раскладка пикселей результата ("aos" | "soa").

        Returns:
            `PixelImage` с размерами и максимумом канала из заголовка.

        Raises:
            FormatError: если сигнатура/заголовок испорчены или данных меньше, чем нужно.
            ValueRangeError: если размеры или максимум канала недопустимы.
        """
        (width, height, max_value), offset = parse_header(data, RAW_FORMAT)
        if width <= 0 or height <= 0:
            raise ValueRangeError(f"Размеры изображения должны быть положительными: {width}x{height}")
        if not MIN_MAX_VALUE <= max_value <= MAX_MAX_VALUE:
            raise ValueRangeError(f"Максимум канала вне диапазона [{MIN_MAX_VALUE}, {MAX_MAX_VALUE}]: {max_value}")

        expected = width * height * bytes_per_pixel(max_value)
        available = len(data) - offset
        if available < expected:
            raise FormatError(f"Данные изображения обрезаны: ожидалось {expected} байт, найдено {available}")
        if available > expected:
            logger.warning("Игнорируются %d лишних байт после данных изображения", available - expected)

        samples = np.frombuffer(
            data, dtype=channel_dtype(max_value), count=width * height * CHANNELS_PER_PIXEL, offset=offset
        ).reshape(-1, CHANNELS_PER_PIXEL)
        storage = storage_for(layout).from_channels(samples[:, 0], samples[:, 1], samples[:, 2])
        logger.debug("Декодировано %dx%d, max=%d, раскладка %s", width, height, max_value, layout)
        return PixelImage(width=width, height=height, max_value=max_value, storage=storage)

    def encode_bytes(self, image: PixelImage) -> bytes:
        header = f"{RAW_FORMAT.magic.decode('ascii')}\n{image.width} {image.height}\n{image.max_value}\n"
        payload = np.stack(image.channels(), axis=1).astype(channel_dtype(image.max_value)).tobytes()
        return header.encode("ascii") + payload

    def decode(self, file_path: str | Path, layout: str = "aos") -> PixelImage:
        """Загружает изображение с диска.

        Raises:
            FileOpenError: если файл не открывается.
            FormatError, ValueRangeError: см. `decode_bytes`.
        """
        path = Path(file_path)
        logger.info("Чтение %s", path)
        return self.decode_bytes(read_file(path), layout=layout)

    def encode(self, image: PixelImage, file_path: str | Path) -> None:
        path = Path(file_path)
        logger.info("Запись %s (%dx%d, max=%d)", path, image.width, image.height, image.max_value)
        write_file(path, self.encode_bytes(image))

    def info(self, file_path: str | Path) -> ImageInfo:
        return self.decode(file_path).info
