"""PGM (P2 / P5) occupancy raster decoding."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from casemap.core.errors import MalformedRaster
from casemap.utils.logging import log

PLAIN_MAGIC = b"P2"
BINARY_MAGIC = b"P5"
COMMENT = ord("#")
_WHITESPACE = b" \t\r\n\v\f"


@dataclass(frozen=True, slots=True)
class RasterImage:
    """Immutable 8-bit grayscale raster, row-major."""

    width: int
    height: int
    pixels: bytes

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"negative raster size {self.width}x{self.height}")
        if len(self.pixels) != self.width * self.height:
            raise ValueError(
                f"pixel buffer holds {len(self.pixels)} bytes, "
                f"expected {self.width * self.height}"
            )

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def array(self) -> np.ndarray:
        """Read-only ``(height, width)`` uint8 view of the pixels."""
        arr = np.frombuffer(self.pixels, dtype=np.uint8).reshape(self.height, self.width)
        arr.flags.writeable = False
        return arr

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "RasterImage":
        if arr.ndim != 2:
            raise ValueError(f"expected a 2-D array, got shape {arr.shape}")
        data = np.ascontiguousarray(arr, dtype=np.uint8)
        return cls(width=int(data.shape[1]), height=int(data.shape[0]), pixels=data.tobytes())


class _HeaderReader:
    """Tokenizer for the PGM header; ``#`` comments are skipped here only."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self.pos = 0

    def _skip_blank(self) -> None:
        data = self._data
        while self.pos < len(data):
            ch = data[self.pos]
            if ch in _WHITESPACE:
                self.pos += 1
            elif ch == COMMENT:
                while self.pos < len(data) and data[self.pos] not in b"\r\n":
                    self.pos += 1
            else:
                return

    def token(self, name: str) -> bytes:
        self._skip_blank()
        start = self.pos
        data = self._data
        while self.pos < len(data) and data[self.pos] not in _WHITESPACE and data[self.pos] != COMMENT:
            self.pos += 1
        if start == self.pos:
            raise MalformedRaster(f"unexpected end of header while reading {name}")
        return data[start:self.pos]

    def integer(self, name: str) -> int:
        tok = self.token(name)
        if not tok.isdigit():
            raise MalformedRaster(f"{name} is not a non-negative integer: {tok!r}")
        return int(tok)


def decode_pgm(data: bytes) -> RasterImage:
    """
    解析 PGM 字节流

    Args:
        data: complete file contents, ``P2`` (ASCII) or ``P5`` (binary).

    Returns:
        RasterImage with samples rescaled to 0..255.

    Raises:
        MalformedRaster: unknown magic, non-positive size, bad maxval,
            sample count mismatch or a sample above maxval.
    """
    if not data:
        raise MalformedRaster("empty raster buffer")

    reader = _HeaderReader(bytes(data))
    magic = reader.token("magic")
    if magic not in (PLAIN_MAGIC, BINARY_MAGIC):
        raise MalformedRaster(f"unsupported raster format {magic!r}; expected P2 or P5")

    width = reader.integer("width")
    height = reader.integer("height")
    if width <= 0 or height <= 0:
        raise MalformedRaster(f"non-positive raster size {width}x{height}")
    maxval = reader.integer("maxval")
    if not 0 < maxval < 65536:
        raise MalformedRaster(f"maxval out of range: {maxval}")

    count = width * height
    if magic == BINARY_MAGIC:
        samples = _binary_samples(data, reader.pos, count, maxval)
    else:
        samples = _plain_samples(data, reader.pos, count, maxval)

    if samples.size and int(samples.max()) > maxval:
        raise MalformedRaster(f"sample {int(samples.max())} exceeds maxval {maxval}")

    if maxval != 255:
        samples = np.rint(samples.astype(np.float64) * 255.0 / maxval)
    pixels = samples.astype(np.uint8).tobytes()

    log.debug("decoded %s raster %dx%d maxval=%d", magic.decode(), width, height, maxval)
    return RasterImage(width=width, height=height, pixels=pixels)


def _binary_samples(data: bytes, pos: int, count: int, maxval: int) -> np.ndarray:
    # exactly one whitespace byte separates maxval from the data
    if pos >= len(data) or data[pos] not in _WHITESPACE:
        raise MalformedRaster("missing whitespace after maxval")
    body = memoryview(data)[pos + 1:]
    dtype = np.dtype(np.uint8) if maxval < 256 else np.dtype(">u2")
    expected = count * dtype.itemsize
    if len(body) != expected:
        raise MalformedRaster(
            f"binary data holds {len(body)} bytes, expected {expected} "
            f"({count} samples of {dtype.itemsize} byte(s))"
        )
    return np.frombuffer(body, dtype=dtype)


def _plain_samples(data: bytes, pos: int, count: int, maxval: int) -> np.ndarray:
    tokens: List[bytes] = bytes(data[pos:]).split()
    if len(tokens) != count:
        raise MalformedRaster(f"found {len(tokens)} samples, expected {count}")
    try:
        values = [int(tok) for tok in tokens]
    except ValueError as exc:
        raise MalformedRaster(f"non-integer sample in plain raster: {exc}") from exc
    # range-check as Python ints; oversized tokens would overflow the array dtype
    for value in values:
        if value < 0:
            raise MalformedRaster(f"negative sample {value} in plain raster")
        if value > maxval:
            raise MalformedRaster(f"sample {value} exceeds maxval {maxval}")
    return np.asarray(values, dtype=np.int64)
