"""8-bit grayscale BMP images: loading, saving and pixel filters."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass, field
from typing import Iterable, Sequence

HEADER_SIZE = 54
COLOR_TABLE_SIZE = 1024
LEVELS = 256

BOX_BLUR = (
    (1 / 9, 1 / 9, 1 / 9),
    (1 / 9, 1 / 9, 1 / 9),
    (1 / 9, 1 / 9, 1 / 9),
)
GAUSSIAN_BLUR = (
    (1 / 16, 2 / 16, 1 / 16),
    (2 / 16, 4 / 16, 2 / 16),
    (1 / 16, 2 / 16, 1 / 16),
)
OUTLINE = (
    (-1, -1, -1),
    (-1, 8, -1),
    (-1, -1, -1),
)
EMBOSS = (
    (-2, -1, 0),
    (-1, 1, 1),
    (0, 1, 2),
)
SHARPEN = (
    (0, -1, 0),
    (-1, 5, -1),
    (0, -1, 0),
)


class BmpError(Exception):
    """Raised when a BMP file cannot be read, written or interpreted."""


def _round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    if value >= 0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))


def _clamp_byte(value: float) -> int:
    return int(min(max(value, 0), 255))


def compute_cdf(hist: Iterable[int]) -> list[int]:
    """Return the cumulative distribution of a 256-entry histogram."""
    counts = list(hist)
    if len(counts) != LEVELS:
        raise ValueError(f"histogram must have {LEVELS} entries, got {len(counts)}")
    cdf = []
    running = 0
    for count in counts:
        running += count
        cdf.append(running)
    return cdf


def _square_kernel(kernel: Sequence[Sequence[float]]) -> list[list[float]]:
    rows = [[float(c) for c in row] for row in kernel]
    size = len(rows)
    if size == 0 or size % 2 == 0:
        raise ValueError("kernel size must be odd and positive")
    if any(len(row) != size for row in rows):
        raise ValueError("kernel must be square")
    return rows


@dataclass
class Bmp8Image:
    """An 8-bit BMP image: raw header, palette and pixel bytes."""

    header: bytes
    color_table: bytes
    data: bytearray = field(default_factory=bytearray)

    def __post_init__(self) -> None:
        self.header = bytes(self.header)
        self.color_table = bytes(self.color_table)
        self.data = bytearray(self.data)
        if len(self.header) != HEADER_SIZE:
            raise BmpError(f"header must be {HEADER_SIZE} bytes")
        if len(self.color_table) != COLOR_TABLE_SIZE:
            raise BmpError(f"color table must be {COLOR_TABLE_SIZE} bytes")

    @property
    def width(self) -> int:
        return struct.unpack_from("<I", self.header, 18)[0]

    @property
    def height(self) -> int:
        return struct.unpack_from("<I", self.header, 22)[0]

    @property
    def color_depth(self) -> int:
        return struct.unpack_from("<H", self.header, 28)[0]

    @property
    def data_size(self) -> int:
        return len(self.data)

    @classmethod
    def load(cls, path) -> "Bmp8Image":
        """Read an 8-bit BMP file."""
        try:
            with open(path, "rb") as fh:
                header = fh.read(HEADER_SIZE)
                if len(header) != HEADER_SIZE:
                    raise BmpError("couldn't read BMP header")
                width, height = struct.unpack_from("<II", header, 18)
                depth = struct.unpack_from("<H", header, 28)[0]
                size = struct.unpack_from("<I", header, 34)[0]
                if depth != 8:
                    raise BmpError("only 8-bit grayscale images are supported")
                table = fh.read(COLOR_TABLE_SIZE)
                if len(table) != COLOR_TABLE_SIZE:
                    raise BmpError("color palette read error")
                if size == 0:
                    size = ((width + 3) // 4) * 4 * height
                data = fh.read(size)
                if len(data) != size:
                    raise BmpError("pixel read failed")
        except OSError as exc:
            raise BmpError(f"unable to open file {path}") from exc
        return cls(header, table, bytearray(data))

    def save(self, path) -> None:
        """Write header, palette and pixel bytes to a file."""
        try:
            with open(path, "wb") as fh:
                fh.write(self.header)
                fh.write(self.color_table)
                fh.write(self.data)
        except OSError as exc:
            raise BmpError(f"save error: {path}") from exc

    def info(self) -> str:
        """Return a human-readable summary of the image."""
        return (
            "Image information:\n"
            f"Width        : {self.width} pixels\n"
            f"Height       : {self.height} pixels\n"
            f"Color Depth  : {self.color_depth} bits\n"
            f"Image Size   : {self.data_size} bytes\n"
        )

    def negative(self) -> None:
        self.data[:] = bytes(255 - v for v in self.data)

    def brightness(self, value: int) -> None:
        self.data[:] = bytes(_clamp_byte(v + value) for v in self.data)

    def threshold(self, threshold: int) -> None:
        self.data[:] = bytes(255 if v >= threshold else 0 for v in self.data)

    def apply_filter(self, kernel: Sequence[Sequence[float]]) -> None:
        """Convolve the first width*height bytes with a square, odd-sized kernel."""
        rows = _square_kernel(kernel)
        n = len(rows) // 2
        width, height = self.width, self.height
        if width * height > len(self.data):
            raise BmpError("pixel data is shorter than width x height")
        taps = [
            (dy - n, dx - n, coeff)
            for dy, row in enumerate(rows)
            for dx, coeff in enumerate(row)
        ]
        src = bytes(self.data)
        out = bytearray(src)
        for y in range(height):
            for x in range(width):
                acc = 0.0
                for ky, kx, coeff in taps:
                    iy, ix = y + ky, x + kx
                    if 0 <= ix < width and 0 <= iy < height:
                        acc += src[iy * width + ix] * coeff
                acc = min(max(acc, 0.0), 255.0)
                out[y * width + x] = _round_half_away(acc)
        self.data[:] = out

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

    def histogram(self) -> list[int]:
        """Count occurrences of each byte value in the pixel data."""
        hist = [0] * LEVELS
        for value in self.data:
            hist[value] += 1
        return hist

    def equalize(self, cdf: Iterable[int]) -> tuple[int, ...]:
        """Remap pixels through the equalization table built from *cdf*.

        Returns the 256-entry lookup table that was applied.
        """
        cdf = list(cdf)
        if len(cdf) != LEVELS:
            raise ValueError(f"cdf must have {LEVELS} entries, got {len(cdf)}")
        total = self.width * self.height
        cdf_min = next((v for v in cdf if v != 0), 0)
        span = total - cdf_min
        lut = []
        for value in cdf:
            if span <= 0 or value < cdf_min:
                lut.append(0)
            else:
                mapped = _round_half_away((value - cdf_min) / span * 255.0)
                lut.append(_clamp_byte(mapped))
        table = bytes(lut)
        self.data[:] = self.data.translate(table)
        return tuple(lut)