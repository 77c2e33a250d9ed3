"""Anonymous password file handed to ipmitool through an inherited descriptor.

The password is written to a temporary file whose directory entry is
removed straight away, so it can only be reached through the open
descriptor. ipmitool is pointed at that descriptor with
``-f /proc/self/fd/N``; the password never appears in argv, in a named
file, or in the logs.
"""

from __future__ import annotations

import io
import logging
import os
import tempfile

from ..errors import CredentialSetupError, TransportStateError

logger = logging.getLogger(__name__)

FILE_PREFIX = "ipmitool-mcp"
# Resolved by the child against its own descriptor table. The descriptor
# keeps the same number in the child (see ProcessInvoker).
FD_PATH_TEMPLATE = "/proc/self/fd/{fd}"


class CredentialChannel:
    """Holds the password in an unlinked temporary file.

    Usage::

        channel = CredentialChannel(password)
        channel.open()
        channel.rewind()        # before every ipmitool run
        channel.fd_path         # "/proc/self/fd/N"
        channel.close()

    :meth:`close` must be called exactly once after a successful
    :meth:`open`; :class:`~ipmitool_mcp.transport.tool_transport.ToolTransport`
    enforces that.
    """

    def __init__(self, secret: str, directory: str | os.PathLike | None = None) -> None:
        self._secret = secret
        self._directory = directory
        self._file: io.FileIO | None = None

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def open(self) -> None:
        """Create the file, unlink it and write the password into it.

        Raises:
            CredentialSetupError: If any step fails. Whatever was opened is
                closed first.
        """
        try:
            fd, path = tempfile.mkstemp(prefix=FILE_PREFIX, dir=self._directory)
        except OSError as e:
            raise CredentialSetupError(f"error creating temporary file: {e}") from e

        try:
            f = os.fdopen(fd, "w+b", buffering=0)
        except OSError as e:
            os.close(fd)
            os.unlink(path)
            raise CredentialSetupError(f"error opening temporary file: {e}") from e

        try:
            os.unlink(path)
        except OSError as e:
            f.close()
            raise CredentialSetupError(f"error removing temporary file: {e}") from e

        try:
            data = memoryview(self._secret.encode("utf-8"))
            while data:
                data = data[f.write(data):]
        except OSError as e:
            f.close()
            raise CredentialSetupError(f"error writing password: {e}") from e

        self._file = f
        logger.debug("Password file ready on descriptor %d", fd)

    def close(self) -> None:
        """Release the descriptor, and with it the file's storage."""
        if self._file is None:
            raise TransportStateError("password file is not open")
        f, self._file = self._file, None
        f.close()

    def rewind(self) -> None:
        """Move the read cursor back to the start of the password."""
        try:
            self._require_open().seek(0, io.SEEK_SET)
        except OSError as e:
            raise CredentialSetupError(f"error seeking the password file: {e}") from e

    def fileno(self) -> int:
        return self._require_open().fileno()

    @property
    def fd_path(self) -> str:
        return FD_PATH_TEMPLATE.format(fd=self.fileno())

    def _require_open(self) -> io.FileIO:
        if self._file is None:
            raise TransportStateError("password file is not open")
        return self._file
