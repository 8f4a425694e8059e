import pytest

from imtool.errors import ValueRangeError
from imtool.models.image_model import Color, PixelImage
from imtool.services.quantize_service import QuantizeService

A = (0, 0, 0)
B = (200, 200, 200)
C = (10, 10, 10)
D = (190, 190, 190)
E = (100, 0, 0)


@pytest.fixture
def service() -> QuantizeService:
    return QuantizeService()


@pytest.fixture
def counted_image(layout) -> PixelImage:
    # counts: C=1, D=1, E=1, B=5, A=9; C, D, E встречаются первыми
    row = [C, D, E] + [A] * 9 + [B] * 5
    return PixelImage.from_rows([row], layout=layout)


def test_histogram_ascending_with_first_seen_ties(service, counted_image):
    assert service.histogram(counted_image) == [
        (Color(*C), 1),
        (Color(*D), 1),
        (Color(*E), 1),
        (Color(*B), 5),
        (Color(*A), 9),
    ]


def test_histogram_tie_order_follows_first_occurrence(service):
    image = PixelImage.from_rows([[E, A, E, A, C]])
    assert [c for c, _ in service.histogram(image)] == [Color(*C), Color(*E), Color(*A)]


def test_rare_colors_map_to_common_ones(service, counted_image):
    mapping = service.rare_color_mapping(counted_image, 2)
    assert mapping == {Color(*C): Color(*A), Color(*D): Color(*B)}


def test_remove_two_rarest(service, counted_image, layout):
    result = service.remove_rare_colors(counted_image, 2)

    assert result.layout == layout
    colors = [result.pixel(x, 0) for x in range(result.width)]
    assert colors[0] == Color(*A)
    assert colors[1] == Color(*B)
    assert colors[2] == Color(*E)
    assert colors[3:] == [counted_image.pixel(x, 0) for x in range(3, counted_image.width)]
    assert set(colors) == {Color(*A), Color(*B), Color(*E)}


def test_zero_threshold_keeps_image(service, counted_image):
    assert service.remove_rare_colors(counted_image, 0) == counted_image


@pytest.mark.parametrize("threshold", [5, 6, 100])
def test_threshold_covering_every_color_keeps_image(service, counted_image, threshold):
    assert service.rare_color_mapping(counted_image, threshold) == {}
    assert service.remove_rare_colors(counted_image, threshold) == counted_image


def test_single_common_color_absorbs_all_rare_ones(service, counted_image):
    result = service.remove_rare_colors(counted_image, 4)
    assert {result.pixel(x, 0) for x in range(result.width)} == {Color(*A)}


def test_16_bit_colors_survive(service, layout):
    row = [(1000, 0, 0)] * 3 + [(1010, 0, 0)] + [(60000, 0, 0)] * 2
    image = PixelImage.from_rows([row], max_value=65535, layout=layout)

    result = service.remove_rare_colors(image, 1)

    assert result.pixel(3, 0) == Color(1000, 0, 0)
    assert result.pixel(4, 0) == Color(60000, 0, 0)
    assert result.max_value == 65535


def test_source_image_is_not_modified(service, counted_image):
    before = PixelImage.from_rows([[counted_image.pixel(x, 0) for x in range(counted_image.width)]])
    service.remove_rare_colors(counted_image, 2)
    assert counted_image == before


def test_negative_threshold(service, counted_image):
    with pytest.raises(ValueRangeError):
        service.remove_rare_colors(counted_image, -1)
