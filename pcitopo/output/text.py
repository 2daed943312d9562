# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2024 Robin Jarry

from ..bits import format_link
from ..topology import Node


def render(report, **opts):
    for line in tree_lines(report.topology.root):
        print(line)


def tree_lines(node: Node, indent: str = ""):
    yield indent + describe(node)
    for child in node.children:
        yield from tree_lines(child, indent + "  ")


def describe(node: Node) -> str:
    dev = node.device
    if dev is None:
        return f"[{node.name}]"
    line = f"{dev.address} {dev.display_name}"
    if dev.vendor:
        line += f" ({dev.vendor})"
    link = format_link(dev.link_speed_current, dev.link_width_current)
    if link:
        line += f" {link}"
        cap = format_link(dev.link_speed_capable, dev.link_width_capable)
        if cap and cap != link:
            line += f"/{cap}"
    if dev.link_downgraded:
        line += " downgraded"
    if dev.slot_name is not None:
        line += f" slot={dev.slot_name!r}"
    return line
