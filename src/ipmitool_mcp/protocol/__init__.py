"""Protocol layer: request/response framing, hex arguments, commands and decoders."""

from .framing import Request, RawResponse, CompletionCode, encode_request, decode_response
from .hexargs import to_arg_tokens, from_hex_string
from .commands import NetworkFunction, AppCommand, ChassisCommand, build_raw
