from __future__ import annotations

from pathlib import Path
from typing import Callable

import numpy as np
import pytest

from imtool.models.image_model import PixelImage
from imtool.services.codec_service import CodecService


@pytest.fixture(params=["aos", "soa"])
def layout(request) -> str:
    return request.param


@pytest.fixture
def codec() -> CodecService:
    return CodecService()


@pytest.fixture
def random_image(layout: str) -> Callable[..., PixelImage]:
    def make(width: int = 5, height: int = 4, max_value: int = 255, seed: int = 0) -> PixelImage:
        rng = np.random.default_rng(seed)
        red, green, blue = (rng.integers(0, max_value + 1, size=width * height) for _ in range(3))
        return PixelImage.from_channels(width, height, max_value, red, green, blue, layout=layout)

    return make


@pytest.fixture
def ppm_file(tmp_path: Path, codec: CodecService) -> Callable[[PixelImage, str], Path]:
    def write(image: PixelImage, name: str = "input.ppm") -> Path:
        path = tmp_path / name
        codec.encode(image, path)
        return path

    return write
