# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2024 Robin Jarry


import contextlib
import re

import graphviz

from ..bits import format_link
from ..collect import D
from ..model import Device
from ..topology import BUS, Node


ENDPOINT_TYPES = ("Endpoint", "Legacy Endpoint")
PCI_BRIDGE_TYPE = "PCI-Express to PCI/PCI-X Bridge"


def render(report: D, **opts):
    print(PciGraph(report, **opts).source())


class PciGraph:

    def __init__(self, report: D, clusters: bool = True, **opts):
        self.dot = graphviz.Graph(
            name="pci",
            node_attr={
                "fontsize": "11",
                "fontname": "monospace",
                "margin": "0.05",
                "shape": "rectangle",
            },
            edge_attr={
                "fontsize": "11",
                "fontname": "monospace",
                "margin": "0",
            },
            graph_attr={
                "fontsize": "11",
                "fontname": "monospace",
                "compound": "true",
                "rankdir": "LR",
            },
        )
        self.cur = self.dot
        self.stack = []
        self.links = set()
        self.clusters = set()
        # cluster key -> (label, attributes, member node ids)
        self.groups = {}
        self.with_clusters = clusters
        self.report = report
        self.topo = report.topology
        self.build()

    def source(self):
        return self.dot.source

    def safe_id(self, n):
        return re.sub(r"\W", "_", n)

    def edge(self, a, b, **kwargs):
        a = self.safe_id(a)
        b = self.safe_id(b)
        link = frozenset((a, b))
        if link in self.links:
            # check for duplicate links
            return
        self.links.add(link)
        if "label" in kwargs:
            kwargs["label"] = format_label(kwargs["label"], max_width=30)
        self.dot.edge(a, b, **kwargs)

    @contextlib.contextmanager
    def subgraph(self, name=None, **kwargs):
        self.stack.append(self.cur)
        with self.cur.subgraph(name=name, graph_attr=kwargs) as cur:
            try:
                self.cur = cur
                yield cur
            finally:
                self.cur = self.stack.pop()

    def cluster(self, name, label, **kwargs):
        kwargs["label"] = format_label(label)
        if "style" not in kwargs:
            kwargs["style"] = "dotted"
        kwargs["cluster"] = "true"
        name = "cluster_" + self.safe_id(name)
        base = name
        i = 1
        while name in self.clusters:
            name = f"{base}_{i}"
            i += 1
        self.clusters.add(name)
        return self.subgraph(name=name, **kwargs)

    def node(self, name: str, label, **kwargs):
        name = self.safe_id(name)
        if kwargs.get("shape", "rectangle") != "rectangle":
            kwargs.setdefault("margin", "0")
        if "tooltip" in kwargs:
            kwargs["tooltip"] = format_label(kwargs["tooltip"])
        self.cur.node(name, format_label(label, max_width=30), **kwargs)

    def build(self):
        self.node(
            node_id(self.topo.root),
            ["Host bridge", f"{len(self.topo)} devices"],
            style="bold",
        )
        self.bus(self.topo.root)
        if not self.with_clusters:
            return
        # membership only, nodes are declared in tree order
        for key, (label, kwargs, members) in self.groups.items():
            with self.cluster(key, label, **kwargs):
                for m in members:
                    self.cur.node(m)

    def bus(self, parent: Node):
        for child in parent.children:
            self.pci_node(child)
            self.link(parent, child)
            self.classify(parent, child)
            self.bus(child)
            self.empty_bus(child)

    def group(self, key: str, label: str, node: Node, **kwargs):
        if key not in self.groups:
            self.groups[key] = (label, kwargs, [])
        members = self.groups[key][2]
        nid = self.safe_id(node_id(node))
        if nid not in members:
            members.append(nid)

    def classify(self, parent: Node, node: Node):
        dev = node.device
        if dev is None:
            return
        if dev.port_type == "Root Port" and dev.secondary_bus is not None:
            self.group(f"group {dev.group_name}", dev.group_name, node)
        elif is_switch(node):
            key = f"switch {self.unique_id(node)}"
            self.group(key, "PCIe switch", node, color="blue")
            for port in node.children:
                self.group(key, "PCIe switch", port)
        elif dev.port_type == PCI_BRIDGE_TYPE:
            self.group(f"bridge {self.unique_id(node)}", "PCI bridge", node)
        elif dev.port_type in ENDPOINT_TYPES:
            functions = [
                n
                for n in parent.children
                if n.device is not None
                and n.device.port_type in ENDPOINT_TYPES
                and n.device.address.device == dev.address.device
            ]
            if len(functions) > 1:
                key = f"device {functions[0].device.address}"
                self.group(key, "multi-function device", node)

    def unique_id(self, node: Node) -> str:
        """
        Identify a physical chip by its Device Serial Number. A switch port
        reporting a different serial makes it untrustworthy, fall back to
        the address.
        """
        dev = node.device
        if dev.serial_number is None:
            return str(dev.address)
        if is_switch(node):
            for port in node.children:
                serial = port.device.serial_number
                if serial is not None and serial != dev.serial_number:
                    return str(dev.address)
        return f"{dev.serial_number:016x}"

    def link(self, parent: Node, child: Node):
        kwargs = {}
        dev = child.device
        if dev is not None and not dev.faces_downstream:
            label = link_label(dev)
            if label:
                kwargs["label"] = label
            if dev.link_downgraded:
                kwargs.update(color="red", style="bold")
        self.edge(node_id(parent), node_id(child), **kwargs)

    def empty_bus(self, node: Node):
        dev = node.device
        if dev is None or dev.secondary_bus is None or node.children:
            return
        domain, bus = dev.address.domain, dev.secondary_bus
        if self.topo.find(domain, bus) or (domain, bus) in self.topo.placeholders:
            return
        name = f"bus {domain:04x}:{bus:02x}"
        self.node(self.safe_id(name), [name, "(empty)"], style="dashed")
        kwargs = {}
        cap = format_link(dev.link_speed_capable, dev.link_width_capable)
        if cap:
            kwargs["label"] = f"max {cap}"
        self.edge(node_id(node), name, **kwargs)

    def pci_node(self, node: Node):
        if node.kind == BUS:
            self.node(
                node_id(node),
                [node.name, "(no bridge reported)"],
                style="dashed",
                color="gray",
            )
            return

        dev = node.device
        color = "blue" if dev.is_bridge else "darkorange"
        if upstream_downgraded(dev):
            color = "red"
        self.node(
            node_id(node),
            device_labels(dev),
            tooltip=device_tooltip(dev),
            color=color,
        )


def node_id(node: Node) -> str:
    if node.device is not None:
        return pci_node_id(str(node.device.address))
    if node.kind == BUS:
        return f"bus_{node.bus[0]:04x}_{node.bus[1]:02x}"
    return "host"


def pci_node_id(pci_id):
    return f"pci_{pci_id}"


def is_switch(node: Node) -> bool:
    if node.device is None or node.device.port_type != "Upstream Port":
        return False
    if not node.children:
        return False
    return all(
        c.device is not None and c.device.port_type == "Downstream Port"
        for c in node.children
    )


def upstream_downgraded(dev: Device) -> bool:
    return dev.link_downgraded and not dev.faces_downstream


def link_label(dev: Device) -> str:
    cur = format_link(dev.link_speed_current, dev.link_width_current)
    cap = format_link(dev.link_speed_capable, dev.link_width_capable)
    if cur and cap and cur != cap:
        return f"{cur} (max {cap})"
    if cur:
        return cur
    if cap:
        return f"max {cap}"
    return ""


def device_labels(dev: Device) -> list[str]:
    labels = [escape(dev.display_name)]
    if dev.vendor:
        labels.append(escape(dev.vendor))
    labels.append(escape(f"{dev.class_description} [{dev.class_code:04x}]"))
    labels.append(str(dev.address))
    link = link_label(dev)
    if link:
        labels.append(link)
        if upstream_downgraded(dev):
            labels.append("(downgraded)")
    if dev.slot_name is not None:
        labels.append(escape(f"slot {dev.slot_name}"))
    return labels


def device_tooltip(dev: Device) -> list[str]:
    tip = [escape(f"{dev.vendor} {dev.device_name}".strip())]
    tip.append(f"id {dev.vendor_id:04x}:{dev.device_id:04x}")
    if dev.port_type:
        tip.append(escape(dev.port_type))
    if dev.kernel_driver:
        tip.append(escape(f"driver {dev.kernel_driver}"))
    if dev.numa_node is not None:
        tip.append(f"NUMA node {dev.numa_node}")
    if dev.physical_slot:
        tip.append(escape(f"physical slot {dev.physical_slot}"))
    if dev.serial_number is not None:
        tip.append(f"serial {dev.serial_number:016x}")
    return tip


def escape(text: str) -> str:
    """
    Escape characters that have a meaning inside a quoted DOT string.
    """
    text = text.replace("\\", "\\\\").replace('"', '\\"')
    return text.replace("\r", "").replace("\n", "\\n")


def wrap_text(text: str, margin: int) -> list[str]:
    lines = []
    more = True

    while more:
        if len(text) <= margin:
            # whole text fits in a single line
            line = text
            more = False
        else:
            # find split point, preferably before margin
            split = -1
            for w, t in enumerate(text):
                if w >= margin and split != -1:
                    break
                if t in " \t,":
                    split = w
            if split == -1:
                # no space found to split, print a long line
                line = text
                more = False
            else:
                line = text[: split + 1].rstrip()
                text = text[split + 1 :]
                # find start of next word
                while text and text[0] in " \t":
                    text = text[1:]
                if not text:
                    # only trailing whitespace, we're done
                    more = False
        lines.append(line)

    return lines


def format_label(lines, max_width: int = 0) -> str:
    if isinstance(lines, str):
        lines = [lines]
    if max_width:
        out = []
        for line in lines:
            out += wrap_text(line, max_width)
        lines = out
    return graphviz.nohtml("\\n".join(lines))
