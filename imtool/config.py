"""Настройки запуска инструмента."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from imtool.errors import UsageError

LAYOUTS = ("aos", "soa")
DEFAULT_LAYOUT = "aos"
DEFAULT_LOG_LEVEL = "WARNING"

ENV_LAYOUT = "IMTOOL_LAYOUT"
ENV_LOG_LEVEL = "IMTOOL_LOG_LEVEL"


@dataclass(frozen=True)
class ToolConfig:
    """Параметры одного запуска.

    Fields:
        layout: Физическое хранение пикселей: "aos" (записи) или "soa" (массивы каналов).
        log_level: Имя уровня логирования, например "INFO".
    """
    layout: str = DEFAULT_LAYOUT
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self) -> None:
        if self.layout not in LAYOUTS:
            raise UsageError(f"Неизвестная раскладка пикселей: {self.layout} (ожидается {', '.join(LAYOUTS)})")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise UsageError(f"Неизвестный уровень логирования: {self.log_level}")

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level.upper())

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ToolConfig":
        env = os.environ if environ is None else environ
        return cls(
            layout=env.get(ENV_LAYOUT, DEFAULT_LAYOUT).lower(),
            log_level=env.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL),
        )

    def override(self, layout: Optional[str] = None, log_level: Optional[str] = None) -> "ToolConfig":
        """Возвращает копию, в которой заданные (не None) значения заменены."""
        changes = {}
        if layout is not None:
            changes["layout"] = layout.lower()
        if log_level is not None:
            changes["log_level"] = log_level
        return replace(self, **changes)
