"""Tests for ipmitool command assembly and execution."""

import copy
import logging
import os
import pickle
import stat
import subprocess
import sys
from unittest.mock import patch

import pytest

from ipmitool_mcp.errors import ToolInvocationError
from ipmitool_mcp.models.connection import Connection
from ipmitool_mcp.transport.credentials import CredentialChannel
from ipmitool_mcp.transport.invoker import ProcessInvoker

linux_only = pytest.mark.skipif(
    not sys.platform.startswith("linux"), reason="needs /proc/self/fd"
)


@pytest.fixture
def channel(tmp_path):
    ch = CredentialChannel("hunter2", tmp_path)
    ch.open()
    yield ch
    if ch.is_open:
        ch.close()


def _script(tmp_path, body: str) -> str:
    path = tmp_path / "fake-ipmitool"
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return str(path)


def test_options_default(channel):
    """Host, user, password path and interface, without a port."""
    invoker = ProcessInvoker(Connection("bmc", "admin", "hunter2"), channel)
    assert invoker.options() == [
        "-H", "bmc",
        "-U", "admin",
        "-f", f"/proc/self/fd/{channel.fileno()}",
        "-I", "lanplus",
    ]


def test_options_with_port(channel):
    """A non-zero port adds -p."""
    conn = Connection("bmc", "admin", "hunter2", interface="lan", port=6230)
    options = ProcessInvoker(conn, channel).options()
    assert options[-4:] == ["-I", "lan", "-p", "6230"]


def test_build_command(channel):
    """Path, options, then the subcommand, with the descriptor passed on."""
    conn = Connection("bmc", "admin", "hunter2", path="/opt/ipmitool")
    cmd = ProcessInvoker(conn, channel).build_command(["raw", "0x06", "0x01"])
    assert cmd.path == "/opt/ipmitool"
    assert cmd.argv[-3:] == ["raw", "0x06", "0x01"]
    assert cmd.pass_fds == (channel.fileno(),)
    assert "hunter2" not in cmd.argv


def test_build_command_default_tool(channel):
    """Without a path ipmitool is looked up by name."""
    cmd = ProcessInvoker(Connection("bmc", "admin", "pw"), channel).build_command([])
    assert cmd.argv[0] == "ipmitool"


def test_cursor_at_start_before_each_run(channel):
    """Every run sees the password from offset 0."""
    invoker = ProcessInvoker(Connection("bmc", "admin", "hunter2"), channel)
    seen = []

    def fake_run(argv, **kwargs):
        fd = kwargs["pass_fds"][0]
        assert os.lseek(fd, 0, os.SEEK_CUR) == 0
        # ipmitool consumes the stream
        seen.append(os.read(fd, 100))
        return subprocess.CompletedProcess(argv, 0, stdout=" 00\n", stderr="")

    with patch("ipmitool_mcp.transport.invoker.subprocess.run", side_effect=fake_run):
        assert invoker.run(["raw", "0x06", "0x01"]) == " 00\n"
        assert invoker.run(["raw", "0x06", "0x01"]) == " 00\n"

    assert seen == [b"hunter2", b"hunter2"]


def test_nonzero_exit_raises(channel):
    """A failing ipmitool surfaces path, arguments and stderr."""
    invoker = ProcessInvoker(Connection("bmc", "admin", "hunter2"), channel)
    failed = subprocess.CompletedProcess(
        [], 1, stdout="", stderr="Unable to establish session\n"
    )
    with patch("ipmitool_mcp.transport.invoker.subprocess.run", return_value=failed):
        with pytest.raises(ToolInvocationError) as exc_info:
            invoker.run(["raw", "0x06", "0x01"])

    err = exc_info.value
    message = str(err)
    assert "ipmitool" in message
    assert "-H bmc -U admin" in message
    assert "raw 0x06 0x01" in message
    assert "Unable to establish session" in message
    assert "exit status 1" in message
    assert err.returncode == 1
    assert "hunter2" not in message


def test_spawn_failure(channel, tmp_path):
    """A missing executable is an invocation error carrying the OS error."""
    missing = str(tmp_path / "no-such-ipmitool")
    invoker = ProcessInvoker(Connection("bmc", "admin", "pw", path=missing), channel)
    with pytest.raises(ToolInvocationError) as exc_info:
        invoker.run(["raw", "0x06", "0x01"])
    assert missing in str(exc_info.value)
    assert exc_info.value.returncode is None
    assert isinstance(exc_info.value.__cause__, OSError)


@linux_only
def test_real_subprocess_reads_password(channel, tmp_path):
    """The child reads the password through the -f pseudo-path, twice."""
    # $6 is the argument after -f
    path = _script(
        tmp_path,
        '[ "$(cat "$6")" = "hunter2" ] || { echo "bad password" >&2; exit 3; }\n'
        'echo " 00 01 02 03"',
    )
    invoker = ProcessInvoker(Connection("bmc", "admin", "hunter2", path=path), channel)
    assert invoker.run(["raw", "0x06", "0x01"]) == " 00 01 02 03\n"
    assert invoker.run(["raw", "0x06", "0x01"]) == " 00 01 02 03\n"


@linux_only
def test_real_subprocess_failure(channel, tmp_path):
    """stderr from the real child ends up in the error verbatim."""
    path = _script(tmp_path, 'echo "Unable to establish session" >&2\nexit 1')
    invoker = ProcessInvoker(Connection("bmc", "admin", "hunter2", path=path), channel)
    with pytest.raises(ToolInvocationError, match="Unable to establish session"):
        invoker.run(["raw", "0x06", "0x01"])


@linux_only
def test_run_attached_exit_status(channel, tmp_path):
    """An attached run reports a non-zero exit."""
    path = _script(tmp_path, "exit 2")
    invoker = ProcessInvoker(Connection("bmc", "admin", "pw", path=path), channel)
    with pytest.raises(ToolInvocationError, match="exit status 2"):
        invoker.run_attached(["sol", "activate"])


@linux_only
def test_run_attached_success(channel, tmp_path):
    """A clean attached run returns None."""
    path = _script(tmp_path, "exit 0")
    invoker = ProcessInvoker(Connection("bmc", "admin", "pw", path=path), channel)
    assert invoker.run_attached(["sol", "activate"]) is None


def test_run_attached_logs_failure(channel, caplog):
    """A non-zero attached exit is logged as a warning."""
    invoker = ProcessInvoker(Connection("bmc", "admin", "pw"), channel)
    with patch("ipmitool_mcp.transport.invoker.subprocess.call", return_value=1):
        with caplog.at_level(logging.WARNING, logger="ipmitool_mcp.transport.invoker"):
            with pytest.raises(ToolInvocationError):
                invoker.run_attached(["sol", "activate"])
    assert "exited with status 1" in caplog.text


def test_invocation_error_pickles():
    """The error survives pickling and copying with all its fields."""
    err = ToolInvocationError(
        path="ipmitool",
        args=["ipmitool", "raw", "0x06", "0x01"],
        stderr="Unable to establish session",
        reason="exit status 1",
        returncode=1,
    )
    for restored in (pickle.loads(pickle.dumps(err)), copy.copy(err)):
        assert type(restored) is ToolInvocationError
        assert str(restored) == str(err)
        assert restored.path == "ipmitool"
        assert restored.args_list == ["ipmitool", "raw", "0x06", "0x01"]
        assert restored.stderr == "Unable to establish session"
        assert restored.returncode == 1
