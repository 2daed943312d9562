# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2024 Robin Jarry

import dataclasses
import re
import typing

from . import ids


ADDR_RE = re.compile(
    r"^(?:(?P<domain>[0-9a-fA-F]{4,8}):)?(?P<bus>[0-9a-fA-F]{2}):"
    r"(?P<device>[0-9a-fA-F]{2})\.(?P<function>[0-7])$"
)
DOWNSTREAM_PORT_TYPES = ("Root Port", "Downstream Port")


@dataclasses.dataclass(frozen=True, order=True)
class PciAddr:
    domain: int
    bus: int
    device: int
    function: int

    @classmethod
    def parse(cls, text: str) -> "PciAddr":
        match = ADDR_RE.match(text.strip())
        if match is None:
            raise ValueError(f"invalid pci address: {text!r}")
        return cls(
            int(match.group("domain") or "0", 16),
            int(match.group("bus"), 16),
            int(match.group("device"), 16),
            int(match.group("function"), 16),
        )

    def __str__(self):
        return f"{self.domain:04x}:{self.bus:02x}:{self.device:02x}.{self.function:x}"


@dataclasses.dataclass(frozen=True)
class LinkInfo:
    speed: typing.Optional[float] = None
    width: typing.Optional[int] = None

    def __bool__(self):
        return self.speed is not None or self.width is not None


@dataclasses.dataclass
class Device:
    """
    One entry of the bus enumeration.

    Link fields are None when lspci did not report them, which is not the
    same thing as a reported zero.
    """

    address: PciAddr
    class_code: int
    class_description: str
    vendor_id: int
    device_id: int
    vendor: str = ""
    device_name: str = ""
    revision: typing.Optional[int] = None
    is_bridge: bool = False
    primary_bus: typing.Optional[int] = None
    secondary_bus: typing.Optional[int] = None
    subordinate_bus: typing.Optional[int] = None
    link_speed_current: typing.Optional[float] = None
    link_speed_capable: typing.Optional[float] = None
    link_width_current: typing.Optional[int] = None
    link_width_capable: typing.Optional[int] = None
    link_flagged_downgraded: bool = False
    port_type: typing.Optional[str] = None
    numa_node: typing.Optional[int] = None
    kernel_driver: typing.Optional[str] = None
    physical_slot: typing.Optional[str] = None
    serial_number: typing.Optional[int] = None
    slot_name: typing.Optional[str] = None

    @property
    def short_name(self) -> typing.Optional[str]:
        return ids.SHORT_NAMES.get((self.vendor_id, self.device_id))

    @property
    def display_name(self) -> str:
        name = self.short_name or self.device_name
        if not name:
            name = f"unknown {self.vendor_id:04x}:{self.device_id:04x}"
        return name

    @property
    def link_current(self) -> LinkInfo:
        return LinkInfo(self.link_speed_current, self.link_width_current)

    @property
    def link_capable(self) -> LinkInfo:
        return LinkInfo(self.link_speed_capable, self.link_width_capable)

    @property
    def link_down(self) -> bool:
        # empty root or downstream ports report a x0 link
        return self.link_width_current == 0

    @property
    def faces_downstream(self) -> bool:
        """
        Root and downstream ports report the link towards their secondary
        bus, every other function reports the link towards its parent.
        """
        return self.port_type in DOWNSTREAM_PORT_TYPES

    @property
    def group_name(self) -> str:
        """
        Name of the root complex group a root port belongs to. Root ports on
        bus 00 are usually provided by the platform controller hub.
        """
        pch = self.address.bus == 0
        if self.numa_node is None:
            return "PCH" if pch else "CPU"
        if pch:
            return f"PCH (on NUMA node #{self.numa_node})"
        return f"NUMA node #{self.numa_node}"

    @property
    def link_downgraded(self) -> bool:
        if self.link_down:
            return False
        if self.link_flagged_downgraded:
            return True
        for cur, cap in (
            (self.link_speed_current, self.link_speed_capable),
            (self.link_width_current, self.link_width_capable),
        ):
            if cur is not None and cap is not None and cur < cap:
                return True
        return False

    def to_dict(self) -> dict:
        d = dataclasses.asdict(self)
        d["address"] = str(self.address)
        d["class_code"] = f"{self.class_code:04x}"
        d["vendor_id"] = f"{self.vendor_id:04x}"
        d["device_id"] = f"{self.device_id:04x}"
        if self.serial_number is not None:
            d["serial_number"] = f"{self.serial_number:016x}"
        d["link_downgraded"] = self.link_downgraded
        return d


@dataclasses.dataclass(frozen=True)
class SlotHint:
    """
    Partial pci address taken from an inventory record. Fields the record
    did not provide are None.
    """

    domain: int
    bus: int
    device: typing.Optional[int] = None
    function: typing.Optional[int] = None

    def __str__(self):
        s = f"{self.domain:04x}:{self.bus:02x}"
        if self.device is not None:
            s += f":{self.device:02x}"
            if self.function is not None:
                s += f".{self.function:x}"
        return s


@dataclasses.dataclass(frozen=True)
class SlotRecord:
    designation: str
    bus_address_hint: SlotHint
    handle: typing.Optional[str] = None
