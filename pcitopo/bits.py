# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2024 Robin Jarry

import re
import typing

from . import ids


SUFFIX = (
    r"(?:Corporation|Corp\.?|Incorporated|Inc\.?|Co\.?,? Ltd\.?|Co\.?|Ltd\.?|"
    r"Limited|LLC|GmbH|AG|S\.A\.|Semiconductors?|Electronics|Technology|"
    r"Technologies|Company|Systems|Networks|Group|Microsystems)(?=[\s,]|$)"
)
VENDOR_RE = re.compile(
    rf"^(?P<vendor>.+?\b{SUFFIX}(?:,?\s+{SUFFIX})*(?:\s+\[[^\]]+\])?)\s+(?P<name>\S.*)$"
)


def parse_hex(value: str) -> int:
    return int(value, 16)


def split_vendor(vendor_id: int, description: str) -> typing.Tuple[str, str]:
    """
    lspci prints the vendor and device names glued together. Split them
    using the known vendor strings first, then common company suffixes.
    """
    description = description.strip()
    for vendor in ids.VENDOR_NAMES.get(vendor_id, ()):
        if description == vendor:
            return vendor, ""
        if description.startswith(vendor + " "):
            return vendor, description[len(vendor) :].strip()
    match = VENDOR_RE.match(description)
    if match:
        return match.group("vendor"), match.group("name")
    return "", description


def format_speed(speed: float) -> str:
    if speed == int(speed):
        return f"{int(speed)}GT/s"
    return f"{speed:g}GT/s"


def format_link(speed: typing.Optional[float], width: typing.Optional[int]) -> str:
    parts = []
    if speed is not None:
        parts.append(format_speed(speed))
    if width is not None:
        parts.append(f"x{width}")
    return " ".join(parts)
