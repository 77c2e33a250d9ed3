"""Binary framing of IPMI requests and responses.

Request frame::

    +------------------+---------+------------------+
    | Network Function | Command |     Payload      |
    | 1 byte           | 1 byte  | variable length  |
    +------------------+---------+------------------+

Response frame::

    +-----------------+------------------+
    | Completion Code |     Payload      |
    | 1 byte          | variable length  |
    +-----------------+------------------+

``ipmitool raw`` prints only the payload of a successful response; failures
are reported through its exit status and stderr. :func:`decode_response`
puts the completion code back so responses look the same as on transports
that receive it on the wire.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Protocol, TypeVar

from ..errors import FramingError

logger = logging.getLogger(__name__)


class CompletionCode(IntEnum):
    """Completion codes defined by the IPMI v2.0 specification."""

    COMMAND_COMPLETED = 0x00
    NODE_BUSY = 0xC0
    INVALID_COMMAND = 0xC1
    INVALID_FOR_LUN = 0xC2
    TIMEOUT = 0xC3
    OUT_OF_SPACE = 0xC4
    RESERVATION_CANCELLED = 0xC5
    REQUEST_DATA_TRUNCATED = 0xC6
    REQUEST_DATA_LENGTH_INVALID = 0xC7
    REQUEST_DATA_FIELD_LENGTH_EXCEEDED = 0xC8
    PARAMETER_OUT_OF_RANGE = 0xC9
    CANNOT_RETURN_NUMBER_OF_REQUESTED_DATA_BYTES = 0xCA
    REQUESTED_SENSOR_NOT_PRESENT = 0xCB
    INVALID_DATA_FIELD = 0xCC
    COMMAND_ILLEGAL = 0xCD
    COMMAND_RESPONSE_NOT_PROVIDED = 0xCE
    DUPLICATED_REQUEST = 0xCF
    INSUFFICIENT_PRIVILEGE = 0xD4
    UNSPECIFIED_ERROR = 0xFF


@dataclass
class Request:
    """A single IPMI request."""

    network_function: int
    command: int
    data: bytes = b""

    def __repr__(self) -> str:
        return (
            f"Request(network_function=0x{self.network_function:02X}, "
            f"command=0x{self.command:02X}, "
            f"data={self.data.hex(' ') if self.data else '(empty)'})"
        )


class Response(Protocol):
    """Anything that can be decoded from a full response frame."""

    @classmethod
    def from_bytes(cls, data: bytes) -> Response:  # pragma: no cover
        ...


R = TypeVar("R", bound=Response)


@dataclass
class RawResponse:
    """A response whose payload is left undecoded."""

    completion_code: int
    data: bytes = b""

    @property
    def ok(self) -> bool:
        return self.completion_code == CompletionCode.COMMAND_COMPLETED

    def to_bytes(self) -> bytes:
        return bytes([self.completion_code]) + self.data

    def to_dict(self) -> dict:
        return {
            "completion_code": self.completion_code,
            "data_hex": self.data.hex(" ") if self.data else "",
        }

    @classmethod
    def from_bytes(cls, data: bytes) -> RawResponse:
        if len(data) < 1:
            raise FramingError("Response frame is missing its completion code")
        return cls(completion_code=data[0], data=bytes(data[1:]))


def encode_request(request: Request) -> bytes:
    """Encode a request as network function, command and payload bytes.

    Both codes are truncated to their low 8 bits; no other validation is
    done here.
    """
    return bytes([request.network_function & 0xFF, request.command & 0xFF]) + bytes(
        request.data
    )


def decode_response(data: bytes, response_type: type[R] = RawResponse) -> R:
    """Decode the payload printed by ``ipmitool raw`` into ``response_type``.

    Args:
        data: Reply bytes without the leading completion code.
        response_type: Class whose ``from_bytes`` decodes a full frame.

    Raises:
        FramingError: If the bytes do not fit ``response_type``.
    """
    frame = bytes([CompletionCode.COMMAND_COMPLETED]) + bytes(data)
    logger.debug("Response frame: %s", frame.hex(" "))
    return response_type.from_bytes(frame)
