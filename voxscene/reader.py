"""Reading the primitive types of .vox files.

The reader never raises from a read. The first error is latched and every
later read returns a zero value, so a chunk decoder can be written as a
straight run of reads followed by a single call to check().
"""

import re
from typing import Optional

from voxscene import rotation
from voxscene.errors import (
    ChunkLengthError,
    DictError,
    EndOfInputError,
    FormatError,
    VoxError,
)

# Largest zero-filled buffer a failed read returns (one palette). Longer
# failed reads return an empty buffer.
MAX_ZERO_FILL = 4 * 256


def _zeros(n: int) -> bytes:
    return bytes(n) if 0 <= n <= MAX_ZERO_FILL else b""


class VoxReader:
    """Sequential reader over an in-memory .vox byte buffer."""

    def __init__(self, data: bytes):
        self.data = bytes(data)
        self.pos = 0
        self.error: Optional[VoxError] = None

    def __len__(self) -> int:
        """Number of unread bytes."""
        return len(self.data) - self.pos

    def check(self):
        """Raise the latched error, if any."""
        if self.error is not None:
            raise self.error

    def read_bytes(self, n: int) -> bytes:
        """Read n bytes, or latch an error and return zero bytes."""
        if self.error is not None:
            return _zeros(n)
        if n < 0:
            self.error = FormatError(f"negative length {n}")
            return b""
        end = self.pos + n
        if end > len(self.data):
            if self.pos == len(self.data):
                self.error = EndOfInputError()
            else:
                self.error = EndOfInputError(
                    f"unexpected end of input: wanted {n} bytes, {len(self)} left",
                    partial=True,
                )
            return _zeros(n)
        bytes_ = self.data[self.pos : end]
        self.pos = end
        return bytes_

    def read_uint8(self) -> int:
        """Read an unsigned byte."""
        return int.from_bytes(self.read_bytes(1), "little")

    def read_int32(self) -> int:
        """Read a signed little-endian 32-bit integer."""
        return int.from_bytes(self.read_bytes(4), "little", signed=True)

    def read_string(self) -> str:
        """Read a STRING: an int32 length followed by that many raw bytes."""
        length = self.read_int32()
        return self.read_bytes(length).decode("utf-8", "surrogateescape")

    def read_dict(self) -> "VoxDict":
        """Read a DICT: an int32 count followed by count key/value STRING pairs."""
        length = self.read_int32()
        dict_ = {}
        for _ in range(length):
            if self.error is not None:
                break
            key = self.read_string()
            value = self.read_string()
            dict_[key] = value
        return VoxDict(dict_, self.error)

    def require_eof(self, chunk: str):
        """Latch an error unless the input has been consumed exactly.

        chunk names the chunk being decoded, for the error message.
        """
        if self.error is not None:
            if not isinstance(self.error, ChunkLengthError):
                self.error = ChunkLengthError(chunk, str(self.error))
            return
        self.read_uint8()
        if isinstance(self.error, EndOfInputError) and not self.error.partial:
            self.error = None
        elif self.error is None:
            self.error = ChunkLengthError(
                chunk, f"expected end of content, found {len(self) + 1} more bytes"
            )
        else:
            self.error = ChunkLengthError(chunk, str(self.error))


_SPLIT_RE = re.compile(r"[\s,]+")


class VoxDict:
    """Attributes read from a DICT payload.

    The accessors never raise. A value that doesn't parse latches an error,
    which check() raises later. Every key read, present or not, is recorded
    so that keys nobody asked for can be reported by assert_no_unread_fields().
    """

    def __init__(self, values: dict[str, str], error: Optional[VoxError] = None):
        self.values = values
        self.read: set[str] = set()
        self.error = error

    def check(self):
        """Raise the latched error, if any."""
        if self.error is not None:
            raise self.error

    def assert_no_unread_fields(self):
        """Raise DictError if the dict has keys that were never read."""
        unread = sorted(k for k in self.values if k not in self.read)
        if unread:
            raise DictError(f"unknown field[s] in dict: {', '.join(unread)}")

    def _lookup(self, name: str) -> Optional[str]:
        self.read.add(name)
        if self.error is not None:
            return None
        return self.values.get(name)

    def read_string(self, name: str, default: str) -> str:
        """Read a string value, defaulting to default."""
        value = self._lookup(name)
        return default if value is None else value

    def read_float(self, name: str, default: float) -> float:
        """Read a float value, defaulting to default."""
        value = self._lookup(name)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError:
            self.error = DictError(f"error parsing float {value!r} in field {name!r}")
            return default

    def read_bool(self, name: str, default: bool) -> bool:
        """Read a boolean stored as a number, defaulting to default."""
        return self.read_float(name, 1.0 if default else 0.0) != 0

    def read_rotation(self, name: str, default: int) -> int:
        """Read an encoded rotation, defaulting to default."""
        value = self._lookup(name)
        if value is None:
            return default
        try:
            code = int(value)
        except ValueError:
            self.error = DictError(
                f"error parsing rotation {value!r} in field {name!r}"
            )
            return default
        if not rotation.valid(code):
            self.error = DictError(f"invalid rotation {code} in field {name!r}")
            return default
        return code

    def read_int3(
        self, name: str, default: tuple[int, int, int]
    ) -> tuple[int, int, int]:
        """Read three integers separated by spaces or commas, defaulting to default."""
        value = self._lookup(name)
        if value is None:
            return default
        parts = [p for p in _SPLIT_RE.split(value.strip()) if p]
        try:
            if len(parts) != 3:
                raise ValueError(value)
            x, y, z = (int(p) for p in parts)
        except ValueError:
            self.error = DictError(
                f"error parsing three integers {value!r} in field {name!r}"
            )
            return default
        return (x, y, z)
