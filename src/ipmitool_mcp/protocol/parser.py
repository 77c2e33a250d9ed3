"""Decoders for the responses of the commands in :mod:`.commands`.

Each class takes a full response frame (completion code first) in its
``from_bytes``, so it can be handed straight to
:func:`~ipmitool_mcp.protocol.framing.decode_response`.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar

from ..errors import FramingError


def _check_length(name: str, data: bytes, minimum: int) -> None:
    if len(data) < minimum:
        raise FramingError(
            f"{name} needs at least {minimum} bytes, got {len(data)}"
        )


def _bcd(value: int) -> int:
    return (value >> 4) * 10 + (value & 0x0F)


@dataclass
class DeviceIdResponse:
    """Parsed Get Device ID response."""

    MIN_SIZE: ClassVar[int] = 12

    completion_code: int
    device_id: int
    device_revision: int
    provides_sdrs: bool
    available: bool
    firmware_major: int
    firmware_minor: int
    ipmi_version: str
    additional_support: int
    manufacturer_id: int
    product_id: int
    aux_firmware: bytes = b""

    @property
    def firmware(self) -> str:
        return f"{self.firmware_major}.{self.firmware_minor:02d}"

    def to_dict(self) -> dict:
        return {
            "device_id": self.device_id,
            "device_revision": self.device_revision,
            "provides_sdrs": self.provides_sdrs,
            "available": self.available,
            "firmware": self.firmware,
            "ipmi_version": self.ipmi_version,
            "additional_support": self.additional_support,
            "manufacturer_id": self.manufacturer_id,
            "product_id": self.product_id,
            "aux_firmware_hex": self.aux_firmware.hex(" ") if self.aux_firmware else "",
        }

    @classmethod
    def from_bytes(cls, data: bytes) -> DeviceIdResponse:
        _check_length("Get Device ID response", data, cls.MIN_SIZE)
        cc, dev_id, dev_rev, fw_major, fw_minor, ipmi_ver, support = data[:7]
        # manufacturer ID is 20 bits, little-endian in 3 bytes
        manufacturer = int.from_bytes(data[7:10], "little") & 0x0FFFFF
        (product,) = struct.unpack_from("<H", data, 10)
        return cls(
            completion_code=cc,
            device_id=dev_id,
            device_revision=dev_rev & 0x0F,
            provides_sdrs=bool(dev_rev & 0x80),
            # bit 7 set means firmware update or self-init in progress
            available=not fw_major & 0x80,
            firmware_major=fw_major & 0x7F,
            firmware_minor=_bcd(fw_minor),
            ipmi_version=f"{ipmi_ver & 0x0F}.{ipmi_ver >> 4}",
            additional_support=support,
            manufacturer_id=manufacturer,
            product_id=product,
            aux_firmware=bytes(data[12:16]),
        )


@dataclass
class ChassisStatusResponse:
    """Parsed Get Chassis Status response."""

    MIN_SIZE: ClassVar[int] = 4

    completion_code: int
    power_state: int
    last_power_event: int
    misc_state: int
    front_panel: int | None = None

    @property
    def power_on(self) -> bool:
        return bool(self.power_state & 0x01)

    @property
    def power_overload(self) -> bool:
        return bool(self.power_state & 0x02)

    @property
    def power_fault(self) -> bool:
        return bool(self.power_state & 0x08)

    @property
    def intrusion(self) -> bool:
        return bool(self.misc_state & 0x01)

    def to_dict(self) -> dict:
        return {
            "power_on": self.power_on,
            "power_overload": self.power_overload,
            "power_fault": self.power_fault,
            "intrusion": self.intrusion,
            "power_state": self.power_state,
            "last_power_event": self.last_power_event,
            "misc_state": self.misc_state,
            "front_panel": self.front_panel,
        }

    @classmethod
    def from_bytes(cls, data: bytes) -> ChassisStatusResponse:
        _check_length("Get Chassis Status response", data, cls.MIN_SIZE)
        return cls(
            completion_code=data[0],
            power_state=data[1],
            last_power_event=data[2],
            misc_state=data[3],
            front_panel=data[4] if len(data) > 4 else None,
        )
