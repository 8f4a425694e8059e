"""Командная строка: imtool INPUT OUTPUT OPERATION [PARAMS...]."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from imtool.config import LAYOUTS, ToolConfig
from imtool.controllers.app_controller import OPERATIONS, AppController
from imtool.errors import ImtoolError, UsageError

USAGE_HINT = "imtool input.ppm output.ppm [info | maxlevel <level> | resize <width> <height> | cutfreq <n> | compress]"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="imtool",
        description="Обработка изображений PPM (P6): информация, уровни, ресайз, редкие цвета, сжатие.",
    )
    parser.add_argument("input", help="Входной файл P6")
    parser.add_argument("output", help="Выходной файл (для info не используется)")
    parser.add_argument("operation", help=f"Операция: {', '.join(OPERATIONS)}")
    parser.add_argument("params", nargs="*", help="Параметры операции")
    parser.add_argument("--layout", choices=LAYOUTS, default=None, help="Раскладка пикселей в памяти")
    parser.add_argument("--log-level", default=None, help="Уровень логирования (DEBUG, INFO, WARNING...)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = ToolConfig.from_env().override(layout=args.layout, log_level=args.log_level)
        logging.basicConfig(
            level=config.log_level_value,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        AppController(config=config).run(args.operation, args.input, args.output, args.params)
    except UsageError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        print(f"Usage: {USAGE_HINT}", file=sys.stderr)
        return 1
    except ImtoolError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0
