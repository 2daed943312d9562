# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2024 Robin Jarry

import json

from ..topology import Node


def render(report, **opts):
    print(json.dumps(to_json(report), indent=opts.get("indent")))


def to_json(report) -> dict:
    return {
        "topology": node_json(report.topology.root),
        "slots": [
            {
                "designation": s.designation,
                "bus_address": str(s.bus_address_hint),
                "handle": s.handle,
            }
            for s in report.slots
        ],
        "diagnostics": [{"kind": d.kind, "message": str(d)} for d in report.diagnostics],
    }


def node_json(node: Node) -> dict:
    out = {"kind": node.kind, "name": node.name}
    if node.device is not None:
        out["device"] = node.device.to_dict()
    out["children"] = [node_json(c) for c in node.children]
    return out
