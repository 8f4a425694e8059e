"""Точка входа в приложение."""
import sys

from imtool.cli import main


if __name__ == "__main__":
    sys.exit(main())
