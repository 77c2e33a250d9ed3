"""Subprocess transport: password channel, ipmitool invoker and facade."""

from .credentials import CredentialChannel
from .invoker import ProcessInvoker
from .tool_transport import ToolTransport, TransportState
