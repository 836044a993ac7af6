import struct

import pytest

from imgfun.bmp24 import Bmp24Image, Pixel, compute_equalization_lut
from imgfun.bmp8 import BmpError


def _image(rows):
    return Bmp24Image(len(rows[0]), len(rows), [list(r) for r in rows])


def _uniform(width, height, pixel):
    return Bmp24Image(width, height, [[pixel] * width for _ in range(height)])


@pytest.fixture
def sample():
    return _image(
        [
            [Pixel(10, 20, 30), Pixel(200, 100, 50), Pixel(0, 0, 0)],
            [Pixel(255, 255, 255), Pixel(1, 2, 3), Pixel(90, 80, 70)],
        ]
    )


def test_blank_is_black():
    img = Bmp24Image.blank(4, 2)
    assert img.width == 4 and img.height == 2
    assert all(p == Pixel(0, 0, 0) for row in img.data for p in row)


def test_save_load_round_trip(tmp_path, sample):
    path = tmp_path / "out.bmp"
    sample.save(path)
    loaded = Bmp24Image.load(path)
    assert loaded.width == 3 and loaded.height == 2
    assert loaded.color_depth == 24
    assert loaded.data == sample.data


def test_header_layout(tmp_path):
    img = _uniform(1, 1, Pixel(1, 2, 3))
    path = tmp_path / "one.bmp"
    img.save(path)
    raw = path.read_bytes()
    assert raw[:2] == b"BM"
    assert struct.unpack_from("<I", raw, 2)[0] == len(raw)
    assert struct.unpack_from("<I", raw, 10)[0] == 54
    assert struct.unpack_from("<I", raw, 14)[0] == 40
    assert struct.unpack_from("<H", raw, 28)[0] == 24
    assert struct.unpack_from("<i", raw, 38)[0] == 2835
    assert raw[54:57] == bytes([3, 2, 1])
    assert len(raw) % 4 == 2


def test_rows_stored_bottom_up(tmp_path):
    img = _image([[Pixel(255, 0, 0)], [Pixel(0, 0, 255)]])
    path = tmp_path / "rows.bmp"
    img.save(path)
    raw = path.read_bytes()
    assert raw[54:57] == bytes([255, 0, 0])
    assert raw[58:61] == bytes([0, 0, 255])


def test_load_rejects_bad_magic(tmp_path, sample):
    path = tmp_path / "bad.bmp"
    raw = bytearray(sample.to_bytes())
    raw[0:2] = b"XX"
    path.write_bytes(raw)
    with pytest.raises(BmpError):
        Bmp24Image.load(path)


def test_load_rejects_compressed(tmp_path, sample):
    path = tmp_path / "comp.bmp"
    raw = bytearray(sample.to_bytes())
    struct.pack_into("<I", raw, 30, 1)
    path.write_bytes(raw)
    with pytest.raises(BmpError):
        Bmp24Image.load(path)


def test_load_rejects_truncated(tmp_path, sample):
    path = tmp_path / "short.bmp"
    path.write_bytes(sample.to_bytes()[:60])
    with pytest.raises(BmpError):
        Bmp24Image.load(path)


def test_load_missing_file(tmp_path):
    with pytest.raises(BmpError):
        Bmp24Image.load(tmp_path / "missing.bmp")


def test_negative_twice_is_identity(sample):
    original = [list(r) for r in sample.data]
    sample.negative()
    assert sample.data[0][0] == Pixel(245, 235, 225)
    sample.negative()
    assert sample.data == original


def test_grayscale_equal_channels(sample):
    sample.grayscale()
    assert sample.data[0][0] == Pixel(20, 20, 20)
    assert all(p.red == p.green == p.blue for row in sample.data for p in row)


def test_brightness_clamps(sample):
    sample.brightness(100)
    assert sample.data[1][0] == Pixel(255, 255, 255)
    assert sample.data[0][0] == Pixel(110, 120, 130)
    sample.brightness(-300)
    assert all(p == Pixel(0, 0, 0) for row in sample.data for p in row)


def test_convolution_identity_kernel(sample):
    identity = [[0, 0, 0], [0, 1, 0], [0, 0, 0]]
    assert sample.convolution(1, 0, identity) == Pixel(200, 100, 50)


def test_convolution_out_of_range(sample):
    with pytest.raises(IndexError):
        sample.convolution(5, 0, [[1]])


def test_apply_filter_rejects_even_kernel(sample):
    with pytest.raises(ValueError):
        sample.apply_filter([[1, 0], [0, 1]])


def test_outline_of_uniform_image_interior_is_black():
    img = _uniform(3, 3, Pixel(100, 100, 100))
    img.outline()
    assert img.data[1][1] == Pixel(0, 0, 0)


def test_sharpen_of_uniform_interior_unchanged():
    img = _uniform(3, 3, Pixel(40, 50, 60))
    img.sharpen()
    assert img.data[1][1] == Pixel(40, 50, 60)


def test_blurs_keep_size_and_range(sample):
    sample.box_blur()
    sample.gaussian_blur()
    sample.emboss()
    assert len(sample.data) == 2 and all(len(r) == 3 for r in sample.data)
    assert all(
        0 <= c <= 255 for row in sample.data for p in row for c in (p.red, p.green, p.blue)
    )


def test_histograms_count_pixels(sample):
    for hist in (sample.histogram_red(), sample.histogram_green(), sample.histogram_blue()):
        assert len(hist) == 256
        assert sum(hist) == 6
    assert sample.histogram_red()[255] == 1
    assert sample.histogram_blue()[0] == 1


def test_equalization_lut_bounds():
    hist = [0] * 256
    hist[10] = 3
    hist[200] = 5
    lut = compute_equalization_lut(hist, 8)
    assert len(lut) == 256
    assert lut[10] == 0
    assert lut[200] == 255
    assert list(lut) == sorted(lut)


def test_equalization_lut_degenerate():
    hist = [0] * 256
    hist[7] = 4
    assert compute_equalization_lut(hist, 4) == tuple([0] * 256)


def test_equalize_black_and_white():
    img = _image([[Pixel(0, 0, 0), Pixel(255, 255, 255)]])
    lut = img.equalize()
    assert lut[255] == 255
    assert img.data[0][0] == Pixel(0, 0, 0)
    white = img.data[0][1]
    assert min(white.red, white.green, white.blue) >= 254