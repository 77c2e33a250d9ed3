"""Drive ipmitool as an out-of-band IPMI command transport."""

from .errors import (
    CredentialSetupError,
    FramingError,
    IpmiToolError,
    ToolInvocationError,
    TransportStateError,
)
from .models.connection import Connection
from .protocol.framing import CompletionCode, RawResponse, Request
from .transport.tool_transport import ToolTransport, TransportState

__version__ = "0.1.0"
