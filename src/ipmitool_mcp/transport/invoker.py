"""Build and run ipmitool command lines.

Every run is one synchronous attempt: no retries and no timeout. A hung
ipmitool blocks the caller until it exits.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass

from ..errors import ToolInvocationError
from ..models.connection import Connection
from .credentials import CredentialChannel

logger = logging.getLogger(__name__)


@dataclass
class ToolCommand:
    """A ready-to-run ipmitool command line."""

    argv: list[str]
    pass_fds: tuple[int, ...]

    @property
    def path(self) -> str:
        return self.argv[0]


class ProcessInvoker:
    """Runs ipmitool against one controller with the password channel attached."""

    def __init__(self, connection: Connection, credentials: CredentialChannel) -> None:
        self._connection = connection
        self._credentials = credentials

    def options(self) -> list[str]:
        """Connection options that precede every subcommand."""
        conn = self._connection
        opts = [
            "-H", conn.hostname,
            "-U", conn.username,
            "-f", self._credentials.fd_path,
            "-I", conn.interface,
        ]
        if conn.port != 0:
            opts += ["-p", str(conn.port)]
        return opts

    def build_command(self, args: Sequence[str]) -> ToolCommand:
        """Assemble ``path <options> <args>`` and the descriptor to pass on."""
        return ToolCommand(
            argv=[self._connection.path, *self.options(), *args],
            pass_fds=(self._credentials.fileno(),),
        )

    def run(self, args: Sequence[str]) -> str:
        """Run ipmitool and return its stdout verbatim.

        Raises:
            ToolInvocationError: If ipmitool cannot be started or exits
                non-zero. The message includes the path, every argument
                and ipmitool's stderr.
            CredentialSetupError: If the password file cannot be rewound.
        """
        cmd = self.build_command(args)
        self._credentials.rewind()
        logger.debug("Running %s", " ".join(cmd.argv))

        try:
            proc = subprocess.run(
                cmd.argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                pass_fds=cmd.pass_fds,
                text=True,
                check=False,
            )
        except OSError as e:
            raise ToolInvocationError(
                path=cmd.path, args=cmd.argv, reason=str(e)
            ) from e

        if proc.returncode != 0:
            logger.warning(
                "%s exited with status %d: %s",
                cmd.path, proc.returncode, proc.stderr.strip(),
            )
            raise ToolInvocationError(
                path=cmd.path,
                args=cmd.argv,
                stderr=proc.stderr,
                reason=f"exit status {proc.returncode}",
                returncode=proc.returncode,
            )
        return proc.stdout

    def run_attached(self, args: Sequence[str]) -> None:
        """Run ipmitool with this process's stdin, stdout and stderr.

        Blocks until ipmitool exits.

        Raises:
            ToolInvocationError: If ipmitool cannot be started or exits non-zero.
        """
        cmd = self.build_command(args)
        self._credentials.rewind()
        logger.debug("Running attached %s", " ".join(cmd.argv))

        try:
            returncode = subprocess.call(cmd.argv, pass_fds=cmd.pass_fds)
        except OSError as e:
            raise ToolInvocationError(
                path=cmd.path, args=cmd.argv, reason=str(e)
            ) from e

        if returncode != 0:
            logger.warning("%s exited with status %d", cmd.path, returncode)
            raise ToolInvocationError(
                path=cmd.path,
                args=cmd.argv,
                reason=f"exit status {returncode}",
                returncode=returncode,
            )
