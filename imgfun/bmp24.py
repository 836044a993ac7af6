"""24-bit BMP images: loading, saving, colour filters and equalization."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Sequence

from .bmp8 import (
    BOX_BLUR,
    EMBOSS,
    GAUSSIAN_BLUR,
    LEVELS,
    OUTLINE,
    SHARPEN,
    BmpError,
    compute_cdf,
)

BMP_MAGIC = 0x4D42
HEADER_OFFSET = 54
INFO_HEADER_SIZE = 40
BITS_PER_PIXEL = 24
RESOLUTION = 2835


@dataclass(frozen=True)
class Pixel:
    """One RGB pixel with 8-bit channels."""

    red: int = 0
    green: int = 0
    blue: int = 0


def _round_half_away(value: float) -> int:
    if value >= 0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))


def _clamp_byte(value: float) -> int:
    """Clamp to 0..255 and truncate toward zero."""
    return int(min(max(value, 0.0), 255.0))


def _row_padding(width: int) -> int:
    return (4 - (width * 3) % 4) % 4


def _square_kernel(kernel: Sequence[Sequence[float]]) -> list[list[float]]:
    rows = [[float(c) for c in row] for row in kernel]
    size = len(rows)
    if size == 0 or size % 2 == 0:
        raise ValueError("kernel size must be odd and positive")
    if any(len(row) != size for row in rows):
        raise ValueError("kernel must be square")
    return rows


def compute_equalization_lut(hist: Iterable[int], total: int) -> tuple[int, ...]:
    """Build the 256-entry equalization table for a histogram of *total* samples."""
    cdf = compute_cdf(hist)
    cdf_min = next((v for v in cdf if v != 0), 0)
    span = total - cdf_min
    lut = []
    for value in cdf:
        if span == 0 or value < cdf_min:
            lut.append(0)
        else:
            lut.append(_clamp_byte(_round_half_away((value - cdf_min) / span * 255)))
    return tuple(lut)


@dataclass
class Bmp24Image:
    """A 24-bit image stored as rows of pixels, top row first."""

    width: int
    height: int
    data: list[list[Pixel]] = field(default_factory=list)
    color_depth: int = BITS_PER_PIXEL

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise BmpError("image dimensions must not be negative")
        if len(self.data) != self.height or any(
            len(row) != self.width for row in self.data
        ):
            raise BmpError("pixel data does not match width x height")

    @classmethod
    def blank(cls, width: int, height: int) -> "Bmp24Image":
        """Create a black image of the given size."""
        if width < 0 or height < 0:
            raise BmpError("image dimensions must not be negative")
        return cls(width, height, [[Pixel() for _ in range(width)] for _ in range(height)])

    @classmethod
    def load(cls, path) -> "Bmp24Image":
        """Read an uncompressed 24-bit BMP file."""
        try:
            raw = Path(path).read_bytes()
        except OSError as exc:
            raise BmpError(f"file doesn't exist: {path}") from exc
        if len(raw) < HEADER_OFFSET:
            raise BmpError("file is too short to be a BMP image")
        (magic,) = struct.unpack_from("<H", raw, 0)
        (offset,) = struct.unpack_from("<I", raw, 10)
        width, height = struct.unpack_from("<ii", raw, 18)
        (bits,) = struct.unpack_from("<H", raw, 28)
        (compression,) = struct.unpack_from("<I", raw, 30)
        if magic != BMP_MAGIC or bits != BITS_PER_PIXEL or compression != 0:
            raise BmpError("not an uncompressed 24-bit BMP image")
        if width < 0 or height < 0:
            raise BmpError("unsupported image dimensions")
        stride = width * 3 + _row_padding(width)
        if offset + stride * height - _row_padding(width) * (height > 0) > len(raw):
            raise BmpError("pixel data is truncated")
        rows: list[list[Pixel]] = [[] for _ in range(height)]
        for file_row in range(height):
            start = offset + file_row * stride
            chunk = raw[start:start + width * 3]
            rows[height - 1 - file_row] = [
                Pixel(red=chunk[i + 2], green=chunk[i + 1], blue=chunk[i])
                for i in range(0, width * 3, 3)
            ]
        return cls(width, height, rows, bits)

    def to_bytes(self) -> bytes:
        """Encode the image as an uncompressed 24-bit BMP file."""
        padding = _row_padding(self.width)
        image_size = (self.width * 3 + padding) * self.height
        header = struct.pack(
            "<HIHHI", BMP_MAGIC, HEADER_OFFSET + image_size, 0, 0, HEADER_OFFSET
        )
        info = struct.pack(
            "<IiiHHIIiiII",
            INFO_HEADER_SIZE,
            self.width,
            self.height,
            1,
            BITS_PER_PIXEL,
            0,
            image_size,
            RESOLUTION,
            RESOLUTION,
            0,
            0,
        )
        pad = bytes(padding)
        body = bytearray()
        for row in reversed(self.data):
            for p in row:
                body += bytes((p.blue, p.green, p.red))
            body += pad
        return header + info + bytes(body)

    def save(self, path) -> None:
        """Write the image to a BMP file."""
        try:
            Path(path).write_bytes(self.to_bytes())
        except OSError as exc:
            raise BmpError(f"cannot write file: {path}") from exc

    def _map_pixels(self, fn) -> None:
        self.data = [[fn(p) for p in row] for row in self.data]

    def negative(self) -> None:
        self._map_pixels(lambda p: Pixel(255 - p.red, 255 - p.green, 255 - p.blue))

    def grayscale(self) -> None:
        def gray(p: Pixel) -> Pixel:
            g = (p.red + p.green + p.blue) // 3
            return Pixel(g, g, g)

        self._map_pixels(gray)

    def brightness(self, value: int) -> None:
        self._map_pixels(
            lambda p: Pixel(
                _clamp_byte(p.red + value),
                _clamp_byte(p.green + value),
                _clamp_byte(p.blue + value),
            )
        )

    def _convolve(self, x: int, y: int, rows: list[list[float]]) -> Pixel:
        n = len(rows) // 2
        r = g = b = 0.0
        for ky, krow in enumerate(rows):
            py = y + ky - n
            if not 0 <= py < self.height:
                continue
            src_row = self.data[py]
            for kx, coeff in enumerate(krow):
                px = x + kx - n
                if 0 <= px < self.width:
                    p = src_row[px]
                    r += p.red * coeff
                    g += p.green * coeff
                    b += p.blue * coeff
        return Pixel(_clamp_byte(r), _clamp_byte(g), _clamp_byte(b))

    def convolution(self, x: int, y: int, kernel: Sequence[Sequence[float]]) -> Pixel:
        """Return the kernel-weighted pixel at (x, y); outside pixels are skipped."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError("pixel coordinates out of range")
        return self._convolve(x, y, _square_kernel(kernel))

    def apply_filter(self, kernel: Sequence[Sequence[float]]) -> None:
        rows = _square_kernel(kernel)
        self.data = [
            [self._convolve(x, y, rows) for x in range(self.width)]
            for y in range(self.height)
        ]

    def box_blur(self) -> None:
        self.apply_filter(BOX_BLUR)

    def gaussian_blur(self) -> None:
        self.apply_filter(GAUSSIAN_BLUR)

    def outline(self) -> None:
        self.apply_filter(OUTLINE)

    def emboss(self) -> None:
        self.apply_filter(EMBOSS)

    def sharpen(self) -> None:
        self.apply_filter(SHARPEN)

    def _histogram(self, channel: str) -> list[int]:
        hist = [0] * LEVELS
        for row in self.data:
            for p in row:
                hist[getattr(p, channel)] += 1
        return hist

    def histogram_red(self) -> list[int]:
        return self._histogram("red")

    def histogram_green(self) -> list[int]:
        return self._histogram("green")

    def histogram_blue(self) -> list[int]:
        return self._histogram("blue")

    def equalize(self) -> tuple[int, ...]:
        """Equalize the luminance channel in YUV space; return the luminance map."""
        size = self.width * self.height
        yuv = [
            [
                (
                    0.299 * p.red + 0.587 * p.green + 0.114 * p.blue,
                    -0.14713 * p.red - 0.28886 * p.green + 0.436 * p.blue,
                    0.615 * p.red - 0.51499 * p.green - 0.10001 * p.blue,
                )
                for p in row
            ]
            for row in self.data
        ]

        def level(lum: float) -> int:
            return int(min(max(_round_half_away(lum), 0), 255))

        hist = [0] * LEVELS
        for row in yuv:
            for lum, _, _ in row:
                hist[level(lum)] += 1
        cdf = compute_cdf(hist)
        span = size - cdf[0]
        if span == 0:
            lut = tuple([0] * LEVELS)
        else:
            lut = tuple(
                _clamp_byte(_round_half_away((c - cdf[0]) / span * 255.0)) for c in cdf
            )

        def rebuild(lum: float, u: float, v: float) -> Pixel:
            y_eq = float(lut[level(lum)])
            return Pixel(
                _clamp_byte(y_eq + 1.13983 * v),
                _clamp_byte(y_eq - 0.39465 * u - 0.58060 * v),
                _clamp_byte(y_eq + 2.03211 * u),
            )

        self.data = [[rebuild(*t) for t in row] for row in yuv]
        return lut