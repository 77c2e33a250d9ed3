"""Exception types raised by the transport.

Each error also derives from the built-in exception it most resembles, so
callers can catch ``OSError``, ``ConnectionError``, ``ValueError`` or
``RuntimeError`` without importing this module.
"""

from __future__ import annotations

from collections.abc import Sequence


class IpmiToolError(Exception):
    """Base class for all transport errors."""


class CredentialSetupError(IpmiToolError, OSError):
    """The password file could not be created, unlinked, written or rewound."""


class ToolInvocationError(IpmiToolError, ConnectionError):
    """ipmitool could not be spawned or exited with a non-zero status.

    The message carries everything an operator needs to tell credential,
    connectivity and protocol problems apart: the executable path, the
    full argument list, the captured stderr and the OS-level error.
    """

    def __init__(
        self,
        path: str,
        args: Sequence[str],
        stderr: str = "",
        reason: str = "",
        returncode: int | None = None,
    ) -> None:
        self.path = path
        self.args_list = list(args)
        self.stderr = stderr
        self.reason = reason
        self.returncode = returncode
        super().__init__(
            f"run {path} {' '.join(self.args_list)}: {stderr.strip()} ({reason})"
        )

    def __reduce__(self):
        return (
            type(self),
            (self.path, self.args_list, self.stderr, self.reason, self.returncode),
        )


class FramingError(IpmiToolError, ValueError):
    """Reply bytes are malformed hex or do not fit the expected response."""


class TransportStateError(IpmiToolError, RuntimeError):
    """An operation was called in a state that does not allow it."""
