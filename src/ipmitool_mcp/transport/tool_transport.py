"""IPMI transport that delegates every command to an ipmitool subprocess.

Usage::

    transport = ToolTransport(Connection("bmc.example", "admin", "secret"))
    transport.open()
    response = transport.send(build_get_device_id(), DeviceIdResponse)
    transport.close()

A transport is single-use (``UNOPENED -> OPEN -> CLOSED``) and must not be
shared between threads: all runs share one password descriptor and its
read cursor.
"""

from __future__ import annotations

import logging
import os
from enum import Enum

from ..errors import TransportStateError
from ..models.connection import Connection
from ..protocol.framing import R, RawResponse, Request, decode_response, encode_request
from ..protocol.hexargs import from_hex_string, to_arg_tokens
from .credentials import CredentialChannel
from .invoker import ProcessInvoker

logger = logging.getLogger(__name__)

RAW_SUBCOMMAND = "raw"
# "&" instead of the default "~" so ssh sessions do not eat the escape
CONSOLE_ARGS = ("sol", "activate", "-e", "&")


class TransportState(Enum):
    UNOPENED = "unopened"
    OPEN = "open"
    CLOSED = "closed"


class ToolTransport:
    """Sends raw IPMI requests through ipmitool."""

    def __init__(
        self,
        connection: Connection,
        credential_dir: str | os.PathLike | None = None,
    ) -> None:
        self.connection = connection
        self._credentials = CredentialChannel(connection.password, credential_dir)
        self._invoker = ProcessInvoker(connection, self._credentials)
        self._state = TransportState.UNOPENED

    @property
    def state(self) -> TransportState:
        return self._state

    @property
    def invoker(self) -> ProcessInvoker:
        return self._invoker

    def open(self) -> None:
        """Provision the password channel.

        Raises:
            TransportStateError: If the transport was already opened.
            CredentialSetupError: If the password file cannot be set up; the
                transport stays unopened.
        """
        if self._state is not TransportState.UNOPENED:
            raise TransportStateError(f"Cannot open a transport that is {self._state.value}")
        self._credentials.open()
        self._state = TransportState.OPEN
        logger.info(
            "Opened ipmitool transport to %s@%s (%s)",
            self.connection.username,
            self.connection.hostname,
            self.connection.interface,
        )

    def close(self) -> None:
        """Release the password channel.

        Raises:
            TransportStateError: If the transport is not open, including a
                transport that was never opened or is already closed.
        """
        self._require_open("close")
        self._credentials.close()
        self._state = TransportState.CLOSED
        logger.info("Closed ipmitool transport to %s", self.connection.hostname)

    def send(self, request: Request, response_type: type[R] = RawResponse) -> R:
        """Send one request with ``ipmitool raw`` and decode the reply.

        Failures leave the transport open; the caller may retry or close.

        Raises:
            TransportStateError: If the transport is not open.
            ToolInvocationError: If ipmitool fails or exits non-zero.
            FramingError: If the output is not hex or does not fit
                ``response_type``.
        """
        self._require_open("send")
        frame = encode_request(request)
        logger.debug("Request frame: %s", frame.hex(" "))
        output = self._invoker.run([RAW_SUBCOMMAND, *to_arg_tokens(frame)])
        return decode_response(from_hex_string(output), response_type)

    def interactive_session(self) -> None:
        """Attach the terminal to a Serial-over-LAN console until it ends.

        Raises:
            TransportStateError: If the transport is not open.
            ToolInvocationError: If ipmitool fails or exits non-zero.
        """
        self._require_open("start a console on")
        self._invoker.run_attached(CONSOLE_ARGS)

    def __enter__(self) -> ToolTransport:
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        if self._state is TransportState.OPEN:
            self.close()

    def __repr__(self) -> str:
        return f"ToolTransport({self.connection!r}, state={self._state.value})"

    def _require_open(self, action: str) -> None:
        if self._state is not TransportState.OPEN:
            raise TransportStateError(
                f"Cannot {action} a transport that is {self._state.value}"
            )
