# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2024 Robin Jarry

import re
import typing

from . import D
from ..bits import parse_hex
from ..errors import MalformedRecord, PciTopoError
from ..model import SlotHint, SlotRecord


HANDLE_RE = re.compile(
    r"^Handle (0x[a-fA-F0-9]+), DMI type (\d+), \d+ bytes$", flags=re.MULTILINE
)
BUS_ADDRESS_RE = re.compile(
    r"^(?:(?P<domain>[0-9a-f]{4}):)?(?P<bus>[0-9a-f]{2})"
    r"(?::(?P<device>[0-9a-f]{2})(?:\.(?P<function>[0-7]))?)?$",
    flags=re.IGNORECASE,
)
SYSTEM_SLOT = 9


def parse_report(sources: D, data: D):
    if sources.dmidecode is None:
        return
    slots, diagnostics = parse_slots(sources.dmidecode)
    data.slots = slots
    data.diagnostics.extend(diagnostics)


def parse_slots(
    dmi: str,
) -> typing.Tuple[typing.List[SlotRecord], typing.List[PciTopoError]]:
    slots = []
    diagnostics = []

    blocks = HANDLE_RE.split(dmi)
    # split() yields the text before the first handle, then (handle, type, body)
    for i in range(1, len(blocks) - 2, 3):
        handle, dmi_type, block = blocks[i : i + 3]
        if int(dmi_type) != SYSTEM_SLOT:
            continue
        try:
            slot = parse_slot(handle, block)
        except MalformedRecord as e:
            diagnostics.append(e)
            continue
        if slot is not None:
            slots.append(slot)

    return slots, diagnostics


def parse_slot(handle: str, block: str) -> typing.Optional[SlotRecord]:
    """
    Parse the body of a DMI type 9 record. Return None when the record has
    no usable bus address.
    """
    fields = split_block(block)
    name = fields.get("Designation")
    if not name:
        raise MalformedRecord(f"slot {handle} has no designation")

    address = fields.get("Bus Address")
    if address is None:
        return None

    hint = parse_hint(address)
    if hint is None:
        raise MalformedRecord(f"slot {handle} ({name}) has an invalid bus address", address)
    if hint.bus == 0xFF and hint.device in (None, 0x1F) and hint.function in (None, 7):
        # smbios placeholder for slots without a bus
        return None

    return SlotRecord(designation=name, bus_address_hint=hint, handle=handle)


def parse_hint(address: str) -> typing.Optional[SlotHint]:
    match = BUS_ADDRESS_RE.match(address.strip())
    if match is None:
        return None
    device = match.group("device")
    function = match.group("function")
    return SlotHint(
        domain=parse_hex(match.group("domain") or "0"),
        bus=parse_hex(match.group("bus")),
        device=parse_hex(device) if device is not None else None,
        function=parse_hex(function) if function is not None else None,
    )


def split_block(block: str) -> D:
    fields = D()
    for match in re.finditer(r"^\t([\w -]+):[ \t]*(.*)$", block, flags=re.MULTILINE):
        fields[match.group(1).strip()] = match.group(2).strip()
    return fields
