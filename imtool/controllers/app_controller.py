"""Контроллер приложения: оркестрация одного запуска инструмента.

SOLID:
- SRP: класс проверяет аргументы операции и связывает сервисы (без логики обработки изображений).
- DIP: зависит от сервисов как от ролей; конкретные реализации подставляются полями.
Clean Code:
- Обработчики компактны; тяжёлая логика вынесена в сервисы.
"""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence, TextIO

from imtool.config import ToolConfig
from imtool.errors import UsageError, ValueRangeError
from imtool.models.image_model import MAX_MAX_VALUE, ImageInfo, PixelImage
from imtool.services.codec_service import CodecService
from imtool.services.compress_service import CompressService
from imtool.services.process_service import ProcessService
from imtool.services.quantize_service import QuantizeService

logger = logging.getLogger(__name__)

OPERATIONS = ("info", "maxlevel", "resize", "cutfreq", "compress")

# число дополнительных параметров каждой операции
_PARAM_COUNTS: Dict[str, int] = {"info": 0, "maxlevel": 1, "resize": 2, "cutfreq": 1, "compress": 0}


def _parse_int(value: str, name: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise UsageError(f"Параметр {name} должен быть целым числом: {value!r}") from None


@dataclass
class AppController:
    """Выполняет операцию над входным файлом и пишет результат.

    Ответственности:
    - Проверка имени операции и её параметров.
    - Загрузка изображения через `CodecService`.
    - Применение преобразования через соответствующий сервис.
    - Запись результата (сырой формат или компактный).
    """
    config: ToolConfig = field(default_factory=ToolConfig)
    out: TextIO = field(default_factory=lambda: sys.stdout)

    _codec: CodecService = field(default_factory=CodecService)
    _process_service: ProcessService = field(default_factory=ProcessService)
    _quantize_service: QuantizeService = field(default_factory=QuantizeService)
    _compress_service: CompressService = field(default_factory=CompressService)

    def run(self, operation: str, input_path: str | Path, output_path: str | Path, params: Sequence[str] = ()) -> Optional[ImageInfo]:
        """Проверяет аргументы и выполняет операцию.

        Returns:
            `ImageInfo` для операции info, иначе None.

        Raises:
            UsageError: неизвестная операция, неверное число или значение параметров.
            FileOpenError, FormatError, ValueRangeError: из сервисов.
        """
        handler = self._handlers().get(operation)
        if handler is None:
            raise UsageError(f"Недопустимая операция: {operation} (ожидается одна из {', '.join(OPERATIONS)})")
        expected = _PARAM_COUNTS[operation]
        if len(params) != expected:
            raise UsageError(
                f"Операция {operation} требует параметров: {expected}, передано: {len(params)}"
            )
        logger.info("Операция %s: %s -> %s", operation, input_path, output_path)
        return handler(Path(input_path), Path(output_path), list(params))

    def _handlers(self) -> Dict[str, Callable[[Path, Path, list], Optional[ImageInfo]]]:
        return {
            "info": self._handle_info,
            "maxlevel": self._handle_maxlevel,
            "resize": self._handle_resize,
            "cutfreq": self._handle_cutfreq,
            "compress": self._handle_compress,
        }

    # ---- Handlers ----
    def _handle_info(self, input_path: Path, _output_path: Path, _params: list) -> ImageInfo:
        info = self._load(input_path).info
        print(f"Width: {info.width}, Height: {info.height}, Max Color Value: {info.max_value}", file=self.out)
        return info

    def _handle_maxlevel(self, input_path: Path, output_path: Path, params: list) -> None:
        level = _parse_int(params[0], "maxlevel")
        if not 0 <= level <= MAX_MAX_VALUE:
            raise UsageError(f"Недопустимое значение maxlevel: {level} (ожидается 1..{MAX_MAX_VALUE})")
        if level == 0:
            # изображение с максимумом 0 нельзя прочитать обратно
            raise ValueRangeError("maxlevel 0 не поддерживается: максимум канала должен быть не меньше 1")
        image = self._load(input_path)
        self._codec.encode(self._process_service.rescale(image, level), output_path)

    def _handle_resize(self, input_path: Path, output_path: Path, params: list) -> None:
        width = _parse_int(params[0], "width")
        height = _parse_int(params[1], "height")
        if width <= 0 or height <= 0:
            raise UsageError(f"Недопустимые размеры для resize: {width}x{height}")
        image = self._load(input_path)
        self._codec.encode(self._process_service.resize(image, width, height), output_path)

    def _handle_cutfreq(self, input_path: Path, output_path: Path, params: list) -> None:
        count = _parse_int(params[0], "cutfreq")
        if count <= 0:
            raise UsageError(f"Недопустимое число удаляемых цветов: {count}")
        image = self._load(input_path)
        self._codec.encode(self._quantize_service.remove_rare_colors(image, count), output_path)

    def _handle_compress(self, input_path: Path, output_path: Path, _params: list) -> None:
        self._compress_service.compress(self._load(input_path), output_path)

    # ---- Helpers ----
    def _load(self, input_path: Path) -> PixelImage:
        return self._codec.decode(input_path, layout=self.config.layout)
