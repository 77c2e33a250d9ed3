"""Conversion between frames and ipmitool's textual hex form."""

from __future__ import annotations

import binascii

from ..errors import FramingError


def to_arg_tokens(data: bytes) -> list[str]:
    """Format each byte as a separate ``0xNN`` argument.

    ipmitool rejects a raw command packed into a single argument.
    """
    return [f"0x{b:02x}" for b in data]


def from_hex_string(text: str) -> bytes:
    """Parse ipmitool's space-separated hex output back into bytes.

    A token may hold more than one byte (``"0a1b"``). Empty or
    whitespace-only input yields ``b""``.

    Raises:
        FramingError: If a token is not hex or has an odd number of digits.
    """
    buf = bytearray()
    # ipmitool wraps long replies onto several lines
    for token in text.strip().split():
        try:
            buf += binascii.unhexlify(token)
        except (binascii.Error, ValueError) as e:
            raise FramingError(f"Malformed hex token {token!r} in {text!r}") from e
    return bytes(buf)
