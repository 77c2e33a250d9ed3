"""Connection parameters for a remote baseboard management controller."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_INTERFACE = "lanplus"
DEFAULT_TOOL = "ipmitool"  # resolved on PATH at spawn time


@dataclass(frozen=True)
class Connection:
    """Immutable settings for one transport instance.

    ``interface`` and ``path`` fall back to :data:`DEFAULT_INTERFACE` and
    :data:`DEFAULT_TOOL` when left empty. A ``port`` of 0 leaves the
    choice to ipmitool. The password is kept out of ``repr()``.
    """

    hostname: str
    username: str
    password: str = field(repr=False)
    interface: str = ""
    port: int = 0
    path: str = ""

    def __post_init__(self) -> None:
        if not self.hostname:
            raise ValueError("Connection hostname is required")
        if not self.username:
            raise ValueError("Connection username is required")
        if not 0 <= self.port <= 0xFFFF:
            raise ValueError(f"Port must be 0-65535, got {self.port}")

        # frozen dataclass: defaults are filled in through object.__setattr__
        if not self.interface:
            object.__setattr__(self, "interface", DEFAULT_INTERFACE)
        if not self.path:
            object.__setattr__(self, "path", DEFAULT_TOOL)

    def to_dict(self) -> dict:
        return {
            "hostname": self.hostname,
            "username": self.username,
            "interface": self.interface,
            "port": self.port,
            "path": self.path,
        }
