# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2024 Robin Jarry

"""
Rebuild the pci tree from the flat list of enumerated devices.

Parent links are derived from the bus numbers only: a device hangs below
the bridge whose secondary bus is the device's own bus. Enumeration order
is never relied upon.
"""

import typing

from .errors import InconsistentTopology, MalformedRecord, OrphanDevice, PciTopoError
from .model import Device, PciAddr, SlotHint, SlotRecord


ROOT = "root"
BUS = "bus"
DEVICE = "device"

SLOT_MATCH_LEVELS = ("function", "device", "bus")


class Node:
    """
    A node of the topology tree: the synthetic host root, a placeholder for
    a bus that no enumerated bridge exposes, or an enumerated device.
    """

    def __init__(
        self,
        kind: str,
        device: typing.Optional[Device] = None,
        bus: typing.Optional[typing.Tuple[int, int]] = None,
    ):
        self.kind = kind
        self.device = device
        self.bus = bus
        self.parent: typing.Optional["Node"] = None
        self.children: typing.List["Node"] = []

    @property
    def sort_key(self) -> typing.Tuple[int, int, int, int]:
        if self.device is not None:
            a = self.device.address
            return (a.domain, a.bus, a.device, a.function)
        if self.bus is not None:
            return (self.bus[0], self.bus[1], -1, -1)
        return (-1, -1, -1, -1)

    @property
    def name(self) -> str:
        if self.kind == ROOT:
            return "host"
        if self.kind == BUS:
            return f"bus {self.bus[0]:04x}:{self.bus[1]:02x}"
        return str(self.device.address)

    def add_child(self, node: "Node"):
        node.parent = self
        self.children.append(node)

    def remove_child(self, node: "Node"):
        self.children.remove(node)
        node.parent = None

    def __repr__(self):
        return f"<Node {self.name}>"


class Topology:
    def __init__(self):
        self.root = Node(ROOT)
        self.nodes: typing.Dict[PciAddr, Node] = {}
        self.placeholders: typing.Dict[typing.Tuple[int, int], Node] = {}

    def __len__(self):
        return len(self.nodes)

    def __iter__(self) -> typing.Iterator[Device]:
        for _, node in self.walk():
            if node.device is not None:
                yield node.device

    def walk(
        self, node: typing.Optional[Node] = None, depth: int = 0
    ) -> typing.Iterator[typing.Tuple[int, Node]]:
        """
        Depth first traversal, children in address order.
        """
        if node is None:
            node = self.root
        yield depth, node
        for child in node.children:
            yield from self.walk(child, depth + 1)

    def find(
        self,
        domain: int,
        bus: int,
        device: typing.Optional[int] = None,
        function: typing.Optional[int] = None,
    ) -> typing.List[Device]:
        found = []
        for addr, node in self.nodes.items():
            if (addr.domain, addr.bus) != (domain, bus):
                continue
            if device is not None and addr.device != device:
                continue
            if function is not None and addr.function != function:
                continue
            found.append(node.device)
        found.sort(key=lambda d: d.address)
        return found

    def placeholder(self, domain: int, bus: int) -> Node:
        node = self.placeholders.get((domain, bus))
        if node is None:
            node = Node(BUS, bus=(domain, bus))
            self.placeholders[(domain, bus)] = node
            self.root.add_child(node)
        return node

    def sort(self):
        for _, node in self.walk():
            node.children.sort(key=lambda n: n.sort_key)


def build_topology(
    devices: typing.Iterable[Device],
) -> typing.Tuple[Topology, typing.List[PciTopoError]]:
    topo = Topology()
    diagnostics = []
    bridges: typing.Dict[typing.Tuple[int, int], Node] = {}

    for dev in devices:
        topo.nodes[dev.address] = Node(DEVICE, device=dev)

    # index bridges by the bus they expose, first seen wins
    for addr, node in topo.nodes.items():
        dev = node.device
        if not dev.is_bridge or dev.secondary_bus is None:
            continue
        key = (addr.domain, dev.secondary_bus)
        if dev.secondary_bus == addr.bus:
            diagnostics.append(
                InconsistentTopology(f"bridge {addr} claims its own bus {key[1]:02x} as secondary")
            )
            continue
        if key in bridges:
            diagnostics.append(
                InconsistentTopology(
                    f"bridges {bridges[key].device.address} and {addr} both claim"
                    f" secondary bus {key[0]:04x}:{key[1]:02x}, keeping the former"
                )
            )
            continue
        bridges[key] = node

    for addr, node in topo.nodes.items():
        parent = bridges.get((addr.domain, addr.bus))
        if parent is not None:
            parent.add_child(node)
        elif addr.bus == 0:
            topo.root.add_child(node)
        else:
            topo.placeholder(addr.domain, addr.bus).add_child(node)

    # bridges claiming each other's buses form loops unreachable from the root
    reached = {id(n) for _, n in topo.walk()}
    for addr in sorted(topo.nodes):
        node = topo.nodes[addr]
        if id(node) in reached:
            continue
        diagnostics.append(
            OrphanDevice(f"{addr} is not reachable from the host bridge, detached from its parent")
        )
        node.parent.remove_child(node)
        topo.placeholder(addr.domain, addr.bus).add_child(node)
        reached.update(id(n) for _, n in topo.walk(node))

    topo.sort()

    return topo, diagnostics


def match_slot(
    topo: Topology,
    hint: SlotHint,
    levels: typing.Sequence[str] = SLOT_MATCH_LEVELS,
) -> typing.Tuple[typing.Optional[str], typing.List[Device]]:
    """
    Return the most specific match level for a slot hint with its candidate
    devices. Bus level only applies when the hint does not name a device.
    """
    for level in levels:
        if level == "function":
            if hint.device is None or hint.function is None:
                continue
            found = topo.find(hint.domain, hint.bus, hint.device, hint.function)
        elif level == "device":
            if hint.device is None:
                continue
            found = topo.find(hint.domain, hint.bus, hint.device)
        elif level == "bus":
            if hint.device is not None:
                continue
            found = topo.find(hint.domain, hint.bus)
        else:
            raise ValueError(f"unknown slot match level: {level}")
        if found:
            return level, found
    return None, []


def annotate_slots(
    topo: Topology,
    slots: typing.Iterable[SlotRecord],
    levels: typing.Sequence[str] = SLOT_MATCH_LEVELS,
) -> typing.List[PciTopoError]:
    diagnostics = []

    for slot in slots:
        hint = slot.bus_address_hint
        level, found = match_slot(topo, hint, levels)
        if not found:
            diagnostics.append(
                MalformedRecord(f"slot {slot.designation!r} matches no device", str(hint))
            )
            continue
        if len(found) > 1:
            addrs = ", ".join(str(d.address) for d in found)
            diagnostics.append(
                InconsistentTopology(
                    f"slot {slot.designation!r} is ambiguous at {level} level ({addrs}),"
                    " not annotated",
                    str(hint),
                )
            )
            continue
        dev = found[0]
        if dev.slot_name is not None:
            diagnostics.append(
                InconsistentTopology(
                    f"slot {slot.designation!r} matches {dev.address}"
                    f" already in slot {dev.slot_name!r}, ignored",
                    str(hint),
                )
            )
            continue
        dev.slot_name = slot.designation

    return diagnostics
