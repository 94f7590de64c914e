"""Self-describing binary encoding for RPC and persisted state.

Values are plain Python data (None, bool, int, float, str, bytes, list,
tuple, dict) and dataclass instances.  Dataclass fields whose names start
with an underscore are private and are never transmitted; the encoder warns
about them once per class.  Decoding into an existing object warns when that
object already holds non-default values.
"""

import dataclasses
import io
import logging
import struct
import threading
import typing
from typing import Any, BinaryIO

_log = logging.getLogger(__name__)

_lock = threading.Lock()
_error_count = 0
_checked: set = set()
_by_name: dict = {}
_by_class: dict = {}
_auto_named: set = set()

_NONE = ord("N")
_TRUE = ord("T")
_FALSE = ord("F")
_INT = ord("i")
_FLOAT = ord("f")
_STR = ord("s")
_BYTES = ord("b")
_LIST = ord("l")
_TUPLE = ord("t")
_DICT = ord("d")
_OBJECT = ord("o")


def error_count() -> int:
    """Number of problems reported so far (private fields, non-default targets)."""
    with _lock:
        return _error_count


def _note_error() -> None:
    global _error_count
    with _lock:
        _error_count += 1


def _is_dataclass_type(tp: Any) -> bool:
    return isinstance(tp, type) and dataclasses.is_dataclass(tp)


def _is_dataclass_instance(value: Any) -> bool:
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def _default_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def register(cls: type) -> None:
    """Register a dataclass under its qualified name."""
    register_name(_default_name(cls), cls)


def register_name(name: str, cls: type) -> None:
    """Register a dataclass under an explicit name."""
    if not _is_dataclass_type(cls):
        raise TypeError(f"only dataclasses can be registered, not {cls!r}")
    _check_type(cls)
    with _lock:
        owner = _by_name.get(name)
        if owner is not None and owner is not cls:
            raise ValueError(f"name {name!r} is already registered for {owner.__qualname__}")
        current = _by_class.get(cls)
        if current is not None and current != name and cls not in _auto_named:
            raise ValueError(f"{cls.__qualname__} is already registered as {current!r}")
        _by_name[name] = cls
        _by_class[cls] = name
        _auto_named.discard(cls)


def _class_name(cls: type) -> str:
    with _lock:
        name = _by_class.get(cls)
        if name is not None:
            return name
        base = _default_name(cls)
        name = base
        suffix = 1
        while name in _by_name:
            suffix += 1
            name = f"{base}#{suffix}"
        _by_name[name] = cls
        _by_class[cls] = name
        _auto_named.add(cls)
        return name


def _field_types(cls: type) -> dict:
    # annotations written as strings are not resolved; they are simply not followed
    return {
        f.name: f.type for f in dataclasses.fields(cls) if not isinstance(f.type, str)
    }


def _check_type(tp: Any) -> None:
    args = typing.get_args(tp)
    if args:
        for arg in args:
            if arg is not Ellipsis:
                _check_type(arg)
        return
    if not _is_dataclass_type(tp):
        return
    with _lock:
        if tp in _checked:
            return
        _checked.add(tp)
    types = _field_types(tp)
    for f in dataclasses.fields(tp):
        if f.name.startswith("_"):
            _log.warning(
                "labgob error: private field %s of %s in RPC or persist/snapshot "
                "is never transmitted",
                f.name,
                tp.__name__,
            )
            _note_error()
        _check_type(types.get(f.name, object))


def _check_value(value: Any) -> None:
    if isinstance(value, (list, tuple)):
        for item in value:
            _check_value(item)
    elif isinstance(value, dict):
        for key, item in value.items():
            _check_value(key)
            _check_value(item)
    elif _is_dataclass_instance(value):
        _check_type(type(value))
        for f in dataclasses.fields(value):
            _check_value(getattr(value, f.name))


def _check_default(value: Any, depth: int, name: str) -> None:
    global _error_count
    if depth > 3:
        return
    if _is_dataclass_instance(value):
        for f in dataclasses.fields(value):
            path = f"{name}.{f.name}" if name else f.name
            _check_default(getattr(value, f.name), depth + 1, path)
    elif isinstance(value, (bool, int, float, str)) and value:
        with _lock:
            if _error_count < 1:
                _log.warning(
                    "labgob warning: decoding into a non-default variable/field %s may not work",
                    name or type(value).__name__,
                )
            _error_count += 1


def _put_uvarint(out: bytearray, number: int) -> None:
    while True:
        byte = number & 0x7F
        number >>= 7
        if number:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return


def _put_bytes(out: bytearray, data: bytes) -> None:
    _put_uvarint(out, len(data))
    out += data


def _encode(value: Any, out: bytearray) -> None:
    if value is None:
        out.append(_NONE)
    elif isinstance(value, bool):
        out.append(_TRUE if value else _FALSE)
    elif isinstance(value, int):
        number = int(value)
        out.append(_INT)
        _put_uvarint(out, 2 * number if number >= 0 else -2 * number - 1)
    elif isinstance(value, float):
        out.append(_FLOAT)
        out += struct.pack(">d", value)
    elif isinstance(value, str):
        out.append(_STR)
        _put_bytes(out, value.encode("utf-8"))
    elif isinstance(value, (bytes, bytearray)):
        out.append(_BYTES)
        _put_bytes(out, bytes(value))
    elif isinstance(value, (list, tuple)):
        out.append(_LIST if isinstance(value, list) else _TUPLE)
        _put_uvarint(out, len(value))
        for item in value:
            _encode(item, out)
    elif isinstance(value, dict):
        out.append(_DICT)
        _put_uvarint(out, len(value))
        for key, item in value.items():
            _encode(key, out)
            _encode(item, out)
    elif _is_dataclass_instance(value):
        public = [f.name for f in dataclasses.fields(value) if not f.name.startswith("_")]
        out.append(_OBJECT)
        _put_bytes(out, _class_name(type(value)).encode("utf-8"))
        _put_uvarint(out, len(public))
        for field_name in public:
            _put_bytes(out, field_name.encode("utf-8"))
            _encode(getattr(value, field_name), out)
    else:
        raise TypeError(f"cannot encode value of type {type(value).__name__}")


class LabEncoder:
    """Writes encoded values, one after another, to a binary stream."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def encode(self, value: Any) -> None:
        """Append one value to the stream."""
        _check_value(value)
        out = bytearray()
        _encode(value, out)
        self._stream.write(bytes(out))


class LabDecoder:
    """Reads values written by LabEncoder from a binary stream."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def decode(self) -> Any:
        """Read the next value; raises EOFError when the stream is exhausted."""
        head = self._stream.read(1)
        if not head:
            raise EOFError("no more values in stream")
        value = self._decode_tagged(head[0])
        _check_value(value)
        return value

    def decode_into(self, target: Any) -> Any:
        """Read the next value and copy its transmitted fields onto a dataclass instance."""
        if not _is_dataclass_instance(target):
            raise TypeError("decode_into needs a dataclass instance")
        _check_value(target)
        _check_default(target, 2, "")
        value = self.decode()
        if type(value) is not type(target):
            raise TypeError(
                f"stream holds {type(value).__name__}, not {type(target).__name__}"
            )
        for f in dataclasses.fields(target):
            if not f.name.startswith("_"):
                setattr(target, f.name, getattr(value, f.name))
        return target

    def _read(self, size: int) -> bytes:
        data = self._stream.read(size)
        if len(data) != size:
            raise ValueError("truncated value in stream")
        return data

    def _read_uvarint(self) -> int:
        number = 0
        shift = 0
        while True:
            byte = self._read(1)[0]
            number |= (byte & 0x7F) << shift
            if not byte & 0x80:
                return number
            shift += 7

    def _read_text(self) -> str:
        return self._read(self._read_uvarint()).decode("utf-8")

    def _decode_next(self) -> Any:
        return self._decode_tagged(self._read(1)[0])

    def _decode_tagged(self, tag: int) -> Any:
        if tag == _NONE:
            return None
        if tag == _TRUE:
            return True
        if tag == _FALSE:
            return False
        if tag == _INT:
            zigzag = self._read_uvarint()
            return zigzag >> 1 if not zigzag & 1 else -(zigzag >> 1) - 1
        if tag == _FLOAT:
            return struct.unpack(">d", self._read(8))[0]
        if tag == _STR:
            return self._read_text()
        if tag == _BYTES:
            return self._read(self._read_uvarint())
        if tag == _LIST:
            return [self._decode_next() for _ in range(self._read_uvarint())]
        if tag == _TUPLE:
            return tuple(self._decode_next() for _ in range(self._read_uvarint()))
        if tag == _DICT:
            result = {}
            for _ in range(self._read_uvarint()):
                key = self._decode_next()
                result[key] = self._decode_next()
            return result
        if tag == _OBJECT:
            return self._decode_object()
        raise ValueError(f"unknown tag {tag!r} in stream")

    def _decode_object(self) -> Any:
        name = self._read_text()
        received = {}
        for _ in range(self._read_uvarint()):
            field_name = self._read_text()
            received[field_name] = self._decode_next()
        with _lock:
            cls = _by_name.get(name)
        if cls is None:
            raise ValueError(f"type {name!r} is not registered")
        obj = cls.__new__(cls)
        for f in dataclasses.fields(cls):
            if f.name in received and not f.name.startswith("_"):
                value = received[f.name]
            elif f.default is not dataclasses.MISSING:
                value = f.default
            elif f.default_factory is not dataclasses.MISSING:
                value = f.default_factory()
            else:
                value = None
            object.__setattr__(obj, f.name, value)
        return obj


def _roundtrip_bytes(value: Any) -> bytes:
    buf = io.BytesIO()
    LabEncoder(buf).encode(value)
    return buf.getvalue()