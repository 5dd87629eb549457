from __future__ import annotations
import io, re
from typing import Any, IO, Optional, Tuple, Union, cast
from .types import BinaryInput, Scalar
from .constants import _BOOLEAN_TOKENS

# Decimal literal with optional exponent; "nan", "inf" and digit separators stay text.
_NUMBER_PATTERN = re.compile(r"^\s*-?(\d+\.?|\.\d+|\d+\.\d+)([eE][-+]?\d+)?\s*$")


def _open_binary_stream(body: BinaryInput) -> Tuple[IO[bytes], bool]:
    if isinstance(body, bytes):
        return io.BytesIO(body), True
    if isinstance(body, bytearray):
        return io.BytesIO(bytes(body)), True
    if hasattr(body, "read"):
        return cast(IO[bytes], body), False
    raise TypeError("body must be bytes-like or a binary stream")


def _ensure_bytes(body: BinaryInput) -> bytes:
    if isinstance(body, bytes):
        return body
    if isinstance(body, bytearray):
        return bytes(body)
    data = cast(IO[bytes], body).read()
    return data


def _file_extension(file_name: str) -> str:
    if "." not in file_name:
        return ""
    return file_name.rsplit(".", 1)[1].lower()


def _parse_number(token: str) -> Optional[Union[int, float]]:
    if not _NUMBER_PATTERN.match(token):
        return None
    stripped = token.strip()
    if "." in stripped or "e" in stripped or "E" in stripped:
        return float(stripped)
    return int(stripped)


def _coerce_token(token: str) -> Scalar:
    """Dynamic typing for a delimited-text cell."""
    if token == "":
        return None
    if token in _BOOLEAN_TOKENS:
        return _BOOLEAN_TOKENS[token]
    number = _parse_number(token)
    if number is not None:
        return number
    return token


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")
