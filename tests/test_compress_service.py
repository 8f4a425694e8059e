import numpy as np
import pytest

from imtool.errors import FileOpenError
from imtool.models.image_model import Color, PixelImage
from imtool.services.compress_service import CompressService, index_width


@pytest.fixture
def service() -> CompressService:
    return CompressService()


def _distinct_image(count: int, max_value: int = 255, layout: str = "aos") -> PixelImage:
    row = [(i % 256, i // 256, 0) for i in range(count)]
    return PixelImage.from_rows([row], max_value=max_value, layout=layout)


@pytest.mark.parametrize(
    ("table_size", "width"),
    [(1, 1), (256, 1), (257, 2), (65536, 2), (65537, 4)],
)
def test_index_width_tiers(table_size, width):
    assert index_width(table_size) == width


def test_color_table_first_occurrence_order(service, layout):
    image = PixelImage.from_rows([[(9, 9, 9), (1, 1, 1)], [(9, 9, 9), (5, 5, 5)]], layout=layout)

    table = service.build_color_table(image)

    assert table.colors == [Color(9, 9, 9), Color(1, 1, 1), Color(5, 5, 5)]
    assert table.index_of == {Color(9, 9, 9): 0, Color(1, 1, 1): 1, Color(5, 5, 5): 2}
    assert table.pixel_indices.tolist() == [0, 1, 0, 2]
    assert len(table) == 3


def test_compress_byte_layout(service, layout):
    image = PixelImage.from_rows([[(1, 2, 3), (4, 5, 6)], [(1, 2, 3), (7, 8, 9)]], layout=layout)

    data = service.compress_bytes(image)

    assert data == b"C6 2 2 255 3\n" + bytes(range(1, 10)) + bytes([0, 1, 0, 2])


def test_256_colors_use_one_byte_indices(service):
    data = service.compress_bytes(_distinct_image(256))
    header = b"C6 256 1 255 256\n"

    assert data.startswith(header)
    assert len(data) == len(header) + 256 * 3 + 256
    assert data[-1] == 255


def test_257_colors_use_two_byte_indices(service):
    data = service.compress_bytes(_distinct_image(257))
    header = b"C6 257 1 255 257\n"

    assert data.startswith(header)
    assert len(data) == len(header) + 257 * 3 + 257 * 2
    # индекс 256 в little-endian
    assert data[-2:] == b"\x00\x01"


def test_16_bit_table_and_little_endian_indices(service):
    row = [(i * 200, 0, 0) for i in range(300)]
    image = PixelImage.from_rows([row], max_value=65535)

    data = service.compress_bytes(image)

    header = b"C6 300 1 65535 300\n"
    table = data[len(header): len(header) + 300 * 6]
    indices = data[len(header) + 300 * 6:]
    assert data.startswith(header)
    assert table[6:12] == b"\x00\xc8\x00\x00\x00\x00"
    assert len(indices) == 600
    assert indices[258 * 2: 258 * 2 + 2] == b"\x02\x01"
    assert np.frombuffer(indices, dtype="<u2").tolist() == list(range(300))


def test_repeated_colors_share_one_entry(service):
    image = PixelImage.from_rows([[(3, 3, 3)] * 10] * 10)
    data = service.compress_bytes(image)
    assert data == b"C6 10 10 255 1\n\x03\x03\x03" + bytes(100)


def test_compress_to_file(service, tmp_path):
    image = _distinct_image(5)
    path = tmp_path / "out.cppm"

    service.compress(image, path)

    assert path.read_bytes() == service.compress_bytes(image)


def test_compress_unwritable(service, tmp_path):
    with pytest.raises(FileOpenError):
        service.compress(_distinct_image(2), tmp_path / "missing" / "out.cppm")


def test_index_of_is_built_on_demand(service):
    image = PixelImage.from_rows([[(4, 4, 4), (2, 2, 2), (4, 4, 4)]])

    table = service.build_color_table(image)

    assert "index_of" not in vars(table)
    assert [table.index_of[table.colors[i]] for i in table.pixel_indices] == table.pixel_indices.tolist()
    assert table.index_of is table.index_of
