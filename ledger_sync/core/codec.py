"""
Binary codec for the remote ledger's payloads.

Values travel as SCALE-encoded bytes (little-endian fixed-width integers,
compact length prefixes, tagged options/results/enums) wrapped in hex text
on the RPC boundary. Types are described by composable ``ScaleType``
instances; ``encode``/``decode`` and their hex variants are the entry points.

Example:
    >>> entry = TupleType(U64, STR)
    >>> encode_hex(entry, (7, "hi"))
    '0700000000000000086869'
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Generic, List, Optional, Sequence, Tuple, Type, TypeVar, Union

from ledger_sync.core.exceptions import CodecError

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful branch of a decoded ``Result``."""

    value: T


@dataclass(frozen=True)
class Err(Generic[E]):
    """Error branch of a decoded ``Result``."""

    value: E


class ScaleReader:
    """Cursor over an immutable byte buffer."""

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._offset = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def read(self, size: int) -> bytes:
        if size < 0 or size > self.remaining:
            raise CodecError(
                f"Unexpected end of input: wanted {size} bytes at offset {self._offset}, "
                f"{self.remaining} left"
            )
        chunk = self._data[self._offset:self._offset + size]
        self._offset += size
        return chunk

    def read_byte(self) -> int:
        return self.read(1)[0]


class ScaleType:
    """Base class for codec type descriptors."""

    def encode_into(self, value: Any, out: bytearray) -> None:
        raise NotImplementedError

    def decode_from(self, reader: ScaleReader) -> Any:
        raise NotImplementedError


class _FixedInt(ScaleType):
    def __init__(self, size: int, signed: bool):
        self.size = size
        self.signed = signed

    def encode_into(self, value: int, out: bytearray) -> None:
        try:
            out += int(value).to_bytes(self.size, "little", signed=self.signed)
        except OverflowError as e:
            kind = "i" if self.signed else "u"
            raise CodecError(f"{value} does not fit in {kind}{self.size * 8}") from e

    def decode_from(self, reader: ScaleReader) -> int:
        return int.from_bytes(reader.read(self.size), "little", signed=self.signed)


class _Bool(ScaleType):
    def encode_into(self, value: bool, out: bytearray) -> None:
        out.append(1 if value else 0)

    def decode_from(self, reader: ScaleReader) -> bool:
        flag = reader.read_byte()
        if flag > 1:
            raise CodecError(f"Invalid bool byte: {flag:#04x}")
        return flag == 1


class _Compact(ScaleType):
    """Variable-length unsigned integer used for lengths and counts."""

    def encode_into(self, value: int, out: bytearray) -> None:
        value = int(value)
        if value < 0:
            raise CodecError(f"Compact integers are unsigned, got {value}")
        if value < 1 << 6:
            out.append(value << 2)
        elif value < 1 << 14:
            out += ((value << 2) | 0b01).to_bytes(2, "little")
        elif value < 1 << 30:
            out += ((value << 2) | 0b10).to_bytes(4, "little")
        else:
            size = max(4, (value.bit_length() + 7) // 8)
            if size > 67:
                raise CodecError(f"Compact integer too large: {value}")
            out.append(((size - 4) << 2) | 0b11)
            out += value.to_bytes(size, "little")

    def decode_from(self, reader: ScaleReader) -> int:
        """
        Raises:
            CodecError: If the value is truncated or not in its shortest form
        """
        first = reader.read_byte()
        mode = first & 0b11
        if mode == 0b00:
            return first >> 2
        if mode == 0b01:
            value = int.from_bytes(bytes([first]) + reader.read(1), "little") >> 2
            lower_bound = 1 << 6
        elif mode == 0b10:
            value = int.from_bytes(bytes([first]) + reader.read(3), "little") >> 2
            lower_bound = 1 << 14
        else:
            raw = reader.read((first >> 2) + 4)
            if raw[-1] == 0:
                raise CodecError(f"Non-canonical compact integer: {raw.hex()} has a zero high byte")
            value = int.from_bytes(raw, "little")
            lower_bound = 1 << 30
        if value < lower_bound:
            raise CodecError(f"Non-canonical compact integer: {value} encoded in mode {mode:#04b}")
        return value


class _Bytes(ScaleType):
    """``Vec<u8>``: compact length followed by raw bytes."""

    def encode_into(self, value: bytes, out: bytearray) -> None:
        COMPACT.encode_into(len(value), out)
        out += bytes(value)

    def decode_from(self, reader: ScaleReader) -> bytes:
        return reader.read(COMPACT.decode_from(reader))


class _Str(ScaleType):
    def encode_into(self, value: str, out: bytearray) -> None:
        BYTES.encode_into(value.encode("utf-8"), out)

    def decode_from(self, reader: ScaleReader) -> str:
        raw = BYTES.decode_from(reader)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CodecError(f"Invalid UTF-8 string: {e}") from e


U8 = _FixedInt(1, signed=False)
U16 = _FixedInt(2, signed=False)
U32 = _FixedInt(4, signed=False)
U64 = _FixedInt(8, signed=False)
U128 = _FixedInt(16, signed=False)
I8 = _FixedInt(1, signed=True)
I16 = _FixedInt(2, signed=True)
I32 = _FixedInt(4, signed=True)
I64 = _FixedInt(8, signed=True)
BOOL = _Bool()
COMPACT = _Compact()
BYTES = _Bytes()
STR = _Str()


class OptionType(ScaleType):
    def __init__(self, inner: ScaleType):
        self.inner = inner

    def encode_into(self, value: Any, out: bytearray) -> None:
        if value is None:
            out.append(0)
        else:
            out.append(1)
            self.inner.encode_into(value, out)

    def decode_from(self, reader: ScaleReader) -> Any:
        tag = reader.read_byte()
        if tag == 0:
            return None
        if tag == 1:
            return self.inner.decode_from(reader)
        raise CodecError(f"Invalid Option tag: {tag:#04x}")


class VecType(ScaleType):
    def __init__(self, inner: ScaleType):
        self.inner = inner

    def encode_into(self, value: Sequence[Any], out: bytearray) -> None:
        COMPACT.encode_into(len(value), out)
        for item in value:
            self.inner.encode_into(item, out)

    def decode_from(self, reader: ScaleReader) -> List[Any]:
        length = COMPACT.decode_from(reader)
        # Every element takes at least one byte on the wire
        if length > reader.remaining:
            raise CodecError(f"Vec length {length} exceeds remaining input ({reader.remaining} bytes)")
        return [self.inner.decode_from(reader) for _ in range(length)]


class TupleType(ScaleType):
    def __init__(self, *items: ScaleType):
        self.items = items

    def encode_into(self, value: Sequence[Any], out: bytearray) -> None:
        if len(value) != len(self.items):
            raise CodecError(f"Expected a {len(self.items)}-tuple, got {len(value)} values")
        for item_type, item in zip(self.items, value):
            item_type.encode_into(item, out)

    def decode_from(self, reader: ScaleReader) -> Tuple[Any, ...]:
        return tuple(item_type.decode_from(reader) for item_type in self.items)


class StructType(ScaleType):
    """
    Named fields encoded back to back in declaration order.

    Args:
        fields: ``(name, type)`` pairs in wire order.
        factory: Optional callable receiving the decoded fields as keyword
            arguments (e.g. a pydantic model). Without it a dict is returned.
    """

    def __init__(self, fields: Sequence[Tuple[str, ScaleType]], factory: Optional[Callable[..., Any]] = None):
        self.fields = list(fields)
        self.factory = factory

    def encode_into(self, value: Any, out: bytearray) -> None:
        for name, field_type in self.fields:
            field_value = value[name] if isinstance(value, dict) else getattr(value, name)
            field_type.encode_into(field_value, out)

    def decode_from(self, reader: ScaleReader) -> Any:
        values = {name: field_type.decode_from(reader) for name, field_type in self.fields}
        if self.factory is None:
            return values
        try:
            return self.factory(**values)
        except ValueError as e:
            raise CodecError(f"Decoded fields rejected by {self.factory.__name__}: {e}") from e


class EnumType(ScaleType):
    """Unit-variant enum carried as its u8 variant index."""

    def __init__(self, enum_cls: Type[IntEnum]):
        self.enum_cls = enum_cls

    def encode_into(self, value: IntEnum, out: bytearray) -> None:
        U8.encode_into(int(value), out)

    def decode_from(self, reader: ScaleReader) -> IntEnum:
        index = reader.read_byte()
        try:
            return self.enum_cls(index)
        except ValueError as e:
            raise CodecError(f"Invalid {self.enum_cls.__name__} variant index: {index}") from e


class ResultType(ScaleType):
    def __init__(self, ok: ScaleType, err: ScaleType):
        self.ok = ok
        self.err = err

    def encode_into(self, value: Union[Ok, Err], out: bytearray) -> None:
        if isinstance(value, Ok):
            out.append(0)
            self.ok.encode_into(value.value, out)
        elif isinstance(value, Err):
            out.append(1)
            self.err.encode_into(value.value, out)
        else:
            raise CodecError(f"Result values must be Ok or Err, got {type(value).__name__}")

    def decode_from(self, reader: ScaleReader) -> Union[Ok, Err]:
        tag = reader.read_byte()
        if tag == 0:
            return Ok(self.ok.decode_from(reader))
        if tag == 1:
            return Err(self.err.decode_from(reader))
        raise CodecError(f"Invalid Result tag: {tag:#04x}")


def encode(scale_type: ScaleType, value: Any) -> bytes:
    out = bytearray()
    scale_type.encode_into(value, out)
    return bytes(out)


def decode(scale_type: ScaleType, data: bytes) -> Any:
    """
    Decode a single value from ``data``.

    Bytes left over after the value is complete are ignored.

    Raises:
        CodecError: If the payload is truncated or carries invalid tags.
    """
    return scale_type.decode_from(ScaleReader(data))


def encode_hex(scale_type: ScaleType, value: Any) -> str:
    return encode(scale_type, value).hex()


def decode_hex(scale_type: ScaleType, text: str) -> Any:
    """
    Decode a hex-wrapped payload as returned by the RPC endpoint.

    Raises:
        CodecError: If ``text`` is not valid hex or the payload is malformed.
    """
    if not isinstance(text, str):
        raise CodecError(f"Expected hex text, got {type(text).__name__}")
    try:
        data = bytes.fromhex(text)
    except ValueError as e:
        raise CodecError(f"Invalid hex string: {e}") from e
    return decode(scale_type, data)
