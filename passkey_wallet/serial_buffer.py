"""Growable binary buffer used to build and read compact key structures."""

from __future__ import annotations

import math
from typing import Iterable, Optional

from .errors import BufferUnderrunError, UnsupportedKeyFormatError, ValueOutOfRangeError

INITIAL_CAPACITY = 1024
VARUINT32_MAX = 0xFFFFFFFF


class SerialBuffer:
    """Append/read buffer with a write length and an independent read cursor.

    Pass ``array`` to deserialize existing data; omit it to serialize.
    """

    def __init__(self, array: Optional[bytes] = None) -> None:
        if array is None:
            self._array = bytearray(INITIAL_CAPACITY)
            self.length = 0
        else:
            self._array = bytearray(array)
            self.length = len(array)
        self.read_pos = 0

    @property
    def capacity(self) -> int:
        return len(self._array)

    # Writing -----------------------------------------------------------
    def reserve(self, size: int) -> None:
        """Grow storage so at least ``size`` bytes are free."""
        if self.length + size <= len(self._array):
            return
        new_capacity = max(len(self._array), 1)
        while self.length + size > new_capacity:
            new_capacity = math.ceil(new_capacity * 1.5)
        self._array.extend(bytes(new_capacity - len(self._array)))

    def push_array(self, data: Iterable[int]) -> None:
        chunk = bytes(data)
        self.reserve(len(chunk))
        self._array[self.length : self.length + len(chunk)] = chunk
        self.length += len(chunk)

    def push(self, *values: int) -> None:
        self.push_array(values)

    def push_varuint32(self, value: int) -> None:
        if value < 0 or value > VARUINT32_MAX:
            raise ValueOutOfRangeError(
                f"varuint32 value {value} is out of range",
                field="varuint32",
                expected=f"0..{VARUINT32_MAX}",
                actual=value,
            )
        while True:
            if value >> 7:
                self.push(0x80 | (value & 0x7F))
                value >>= 7
            else:
                self.push(value)
                break

    def push_bytes(self, data: bytes) -> None:
        """Append length-prefixed binary data."""
        self.push_varuint32(len(data))
        self.push_array(data)

    def push_string(self, value: str) -> None:
        self.push_bytes(value.encode("utf-8"))

    def as_bytes(self) -> bytes:
        return bytes(self._array[: self.length])

    # Reading -----------------------------------------------------------
    def get(self) -> int:
        if self.read_pos < self.length:
            value = self._array[self.read_pos]
            self.read_pos += 1
            return value
        raise BufferUnderrunError(
            "Read past end of buffer", expected=self.read_pos + 1, actual=self.length
        )

    def get_array(self, size: int) -> bytes:
        if self.read_pos + size > self.length:
            raise BufferUnderrunError(
                "Read past end of buffer",
                expected=self.read_pos + size,
                actual=self.length,
            )
        result = bytes(self._array[self.read_pos : self.read_pos + size])
        self.read_pos += size
        return result

    def get_varuint32(self) -> int:
        value = 0
        shift = 0
        while True:
            byte = self.get()
            value |= (byte & 0x7F) << shift
            shift += 7
            if not byte & 0x80:
                break
            if shift >= 35:
                raise ValueOutOfRangeError("varuint32 is too long", field="varuint32")
        if value > VARUINT32_MAX:
            raise ValueOutOfRangeError(
                f"varuint32 value {value} is out of range", field="varuint32", actual=value
            )
        return value

    def get_bytes(self) -> bytes:
        """Read length-prefixed binary data."""
        return self.get_array(self.get_varuint32())

    def get_string(self) -> str:
        data = self.get_bytes()
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise UnsupportedKeyFormatError(
                "String is not valid UTF-8", field="string", actual=data[:16].hex()
            ) from exc

    def remaining(self) -> int:
        return self.length - self.read_pos
