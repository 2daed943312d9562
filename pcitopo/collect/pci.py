# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2024 Robin Jarry

import re
import typing

from . import D
from ..bits import parse_hex, split_vendor
from ..errors import MalformedRecord, PciTopoError
from ..model import Device, PciAddr


HEADER_RE = re.compile(
    r"^(?:(?P<domain>[0-9a-f]{4,8}):)?(?P<bus>[0-9a-f]{2}):(?P<device>[0-9a-f]{2})"
    r"\.(?P<function>[0-7])\s+(?P<class_name>.*?)\s*\[(?P<class_code>[0-9a-f]{4})\]:"
    r"\s*(?P<description>.*?)\s*\[(?P<vendor_id>[0-9a-f]{4}):(?P<device_id>[0-9a-f]{4})\]"
    r"(?:\s+\(rev (?P<revision>[0-9a-f]{2})\))?",
    flags=re.IGNORECASE,
)
BUS_RE = re.compile(
    r"^\s+Bus: primary=(?P<primary>[0-9a-f]{2}), secondary=(?P<secondary>[0-9a-f]{2}),"
    r" subordinate=(?P<subordinate>[0-9a-f]{2})",
    flags=re.MULTILINE | re.IGNORECASE,
)
LNK_CAP_RE = re.compile(r"^\s+LnkCap:\s*(?P<caps>.*)$", flags=re.MULTILINE)
LNK_STA_RE = re.compile(r"^\s+LnkSta:\s*(?P<caps>.*)$", flags=re.MULTILINE)
SPEED_RE = re.compile(r"\bSpeed\s+(?P<speed>\d+(?:\.\d+)?)\s*GT/s(?P<flags>(?:\s+\(\w+\))*)")
WIDTH_RE = re.compile(r"\bWidth\s+x(?P<width>\d+)(?P<flags>(?:\s+\(\w+\))*)")
EXPRESS_RE = re.compile(
    r"^\s+Capabilities: \[[0-9a-f]+\] Express \(v\d\) (?P<port_type>.+?)(?:, MSI| \(|,|$)",
    flags=re.MULTILINE,
)
NUMA_RE = re.compile(r"^\s+NUMA node: (\d+)$", flags=re.MULTILINE)
DRIVER_RE = re.compile(r"^\s+Kernel driver in use: (.+)$", flags=re.MULTILINE)
PHYSICAL_SLOT_RE = re.compile(r"^\s+Physical Slot: (.+)$", flags=re.MULTILINE)
SERIAL_RE = re.compile(
    r"\] Device Serial Number ((?:[0-9a-f]{2}-){7}[0-9a-f]{2})$",
    flags=re.MULTILINE | re.IGNORECASE,
)

# PCI bridge, semi-transparent PCI-to-PCI bridge
BRIDGE_CLASSES = {0x0604, 0x0609}


def parse_report(sources: D, data: D):
    devices, diagnostics = parse_devices(sources.lspci)
    data.devices = devices
    data.diagnostics.extend(diagnostics)


def split_records(text: str) -> typing.Iterator[str]:
    block = []
    for line in text.splitlines():
        if line.strip():
            block.append(line.rstrip())
        elif block:
            yield "\n".join(block)
            block = []
    if block:
        yield "\n".join(block)


def parse_devices(
    text: str,
) -> typing.Tuple[typing.List[Device], typing.List[PciTopoError]]:
    """
    Parse the whole output of lspci -nnvv. Records that cannot be parsed
    are skipped and reported in the returned diagnostics.
    """
    devices = []
    diagnostics = []
    seen = set()

    for block in split_records(text):
        try:
            dev = parse_device(block)
        except MalformedRecord as e:
            diagnostics.append(e)
            continue
        if dev.address in seen:
            diagnostics.append(
                MalformedRecord(f"duplicate record for {dev.address}", block.split("\n", 1)[0])
            )
            continue
        seen.add(dev.address)
        devices.append(dev)

    return devices, diagnostics


def parse_device(block: str) -> Device:
    header = block.split("\n", 1)[0]
    match = HEADER_RE.match(header)
    if match is None:
        raise MalformedRecord("invalid device header", header)

    vendor_id = parse_hex(match.group("vendor_id"))
    vendor, device_name = split_vendor(vendor_id, match.group("description"))
    class_code = parse_hex(match.group("class_code"))
    revision = match.group("revision")

    dev = Device(
        address=PciAddr(
            parse_hex(match.group("domain") or "0"),
            parse_hex(match.group("bus")),
            parse_hex(match.group("device")),
            parse_hex(match.group("function")),
        ),
        class_code=class_code,
        class_description=match.group("class_name"),
        vendor_id=vendor_id,
        device_id=parse_hex(match.group("device_id")),
        vendor=vendor,
        device_name=device_name,
        revision=parse_hex(revision) if revision else None,
        is_bridge=class_code in BRIDGE_CLASSES,
    )

    if dev.is_bridge:
        m = BUS_RE.search(block)
        if m is not None:
            dev.primary_bus = parse_hex(m.group("primary"))
            dev.secondary_bus = parse_hex(m.group("secondary"))
            dev.subordinate_bus = parse_hex(m.group("subordinate"))

    m = LNK_CAP_RE.search(block)
    if m is not None:
        dev.link_speed_capable, dev.link_width_capable, _ = parse_link(m.group("caps"))

    m = LNK_STA_RE.search(block)
    if m is not None:
        speed, width, downgraded = parse_link(m.group("caps"))
        dev.link_speed_current = speed
        dev.link_width_current = width
        dev.link_flagged_downgraded = downgraded

    m = EXPRESS_RE.search(block)
    if m is not None:
        dev.port_type = m.group("port_type").strip()

    m = NUMA_RE.search(block)
    if m is not None:
        dev.numa_node = int(m.group(1))

    m = DRIVER_RE.search(block)
    if m is not None:
        dev.kernel_driver = m.group(1).strip()

    m = PHYSICAL_SLOT_RE.search(block)
    if m is not None:
        dev.physical_slot = m.group(1).strip()

    m = SERIAL_RE.search(block)
    if m is not None:
        dev.serial_number = parse_hex(m.group(1).replace("-", ""))

    return dev


def parse_link(
    caps: str,
) -> typing.Tuple[typing.Optional[float], typing.Optional[int], bool]:
    speed = width = None
    downgraded = False

    m = SPEED_RE.search(caps)
    if m is not None:
        speed = float(m.group("speed"))
        downgraded |= "(downgraded)" in m.group("flags")

    m = WIDTH_RE.search(caps)
    if m is not None:
        width = int(m.group("width"))
        downgraded |= "(downgraded)" in m.group("flags")

    return speed, width, downgraded
