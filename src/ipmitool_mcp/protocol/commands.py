"""Network function and command codes, plus request builders.

Only the handful of commands the server exposes are listed here. Any other
command can be sent with :func:`build_raw`.
"""

from __future__ import annotations

from enum import IntEnum

from .framing import Request


class NetworkFunction(IntEnum):
    """Request network function codes (responses use code + 1)."""

    CHASSIS = 0x00
    BRIDGE = 0x02
    SENSOR_EVENT = 0x04
    APP = 0x06
    FIRMWARE = 0x08
    STORAGE = 0x0A
    TRANSPORT = 0x0C
    GROUP_EXTENSION = 0x2C
    OEM_GROUP = 0x2E


class AppCommand(IntEnum):
    """Commands in the App network function."""

    GET_DEVICE_ID = 0x01
    COLD_RESET = 0x02
    WARM_RESET = 0x03
    GET_SELF_TEST_RESULTS = 0x04


class ChassisCommand(IntEnum):
    """Commands in the Chassis network function."""

    GET_CHASSIS_CAPABILITIES = 0x00
    GET_CHASSIS_STATUS = 0x01
    CHASSIS_CONTROL = 0x02


class ChassisControl(IntEnum):
    """Actions accepted by the Chassis Control command."""

    POWER_DOWN = 0x00
    POWER_UP = 0x01
    POWER_CYCLE = 0x02
    HARD_RESET = 0x03
    PULSE_DIAGNOSTIC_INTERRUPT = 0x04
    SOFT_SHUTDOWN = 0x05


# Mapping from human-readable action names to chassis control codes
CHASSIS_ACTION_MAP: dict[str, ChassisControl] = {
    "off": ChassisControl.POWER_DOWN,
    "on": ChassisControl.POWER_UP,
    "cycle": ChassisControl.POWER_CYCLE,
    "reset": ChassisControl.HARD_RESET,
    "diag": ChassisControl.PULSE_DIAGNOSTIC_INTERRUPT,
    "soft": ChassisControl.SOFT_SHUTDOWN,
}


def build_raw(network_function: int, command: int, data: bytes = b"") -> Request:
    """Build an arbitrary request.

    Args:
        network_function: Network function code 0x00-0x3F.
        command: Command code 0-255.
        data: Request payload.
    """
    if not 0 <= network_function <= 0x3F:
        raise ValueError(
            f"Network function must be 0x00-0x3F, got {network_function:#x}"
        )
    if not 0 <= command <= 0xFF:
        raise ValueError(f"Command must be 0-255, got {command}")
    return Request(network_function=network_function, command=command, data=bytes(data))


def build_get_device_id() -> Request:
    """Build a Get Device ID request (App 0x01)."""
    return Request(NetworkFunction.APP, AppCommand.GET_DEVICE_ID)


def build_get_chassis_status() -> Request:
    """Build a Get Chassis Status request (Chassis 0x01)."""
    return Request(NetworkFunction.CHASSIS, ChassisCommand.GET_CHASSIS_STATUS)


def build_chassis_control(action: str | int) -> Request:
    """Build a Chassis Control request.

    Args:
        action: One of ``CHASSIS_ACTION_MAP``'s names or a ``ChassisControl`` code.
    """
    if isinstance(action, str):
        if action not in CHASSIS_ACTION_MAP:
            raise ValueError(
                f"Unknown chassis action '{action}'. Valid: {list(CHASSIS_ACTION_MAP)}"
            )
        code = CHASSIS_ACTION_MAP[action]
    else:
        try:
            code = ChassisControl(action)
        except ValueError:
            raise ValueError(f"Unknown chassis control code {action!r}") from None
    return Request(NetworkFunction.CHASSIS, ChassisCommand.CHASSIS_CONTROL, bytes([code]))
