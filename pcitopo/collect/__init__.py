# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2024 Robin Jarry

import importlib
import pkgutil
import typing

from .. import topology
from ..errors import EmptyInput


class D(dict):

    def __getattr__(self, attr):
        try:
            return self[attr]
        except KeyError as e:
            raise AttributeError(attr) from e

    def __setattr__(self, attr, value):
        return self.__setitem__(attr, value)


def parse_report(
    lspci: str,
    dmidecode: typing.Optional[str] = None,
    slot_match: typing.Optional[typing.Sequence[str]] = None,
) -> D:
    """
    Run every collector on the raw command outputs, then rebuild the
    topology and annotate it with the slot names (if dmidecode output was
    provided).
    """
    sources = D(lspci=lspci, dmidecode=dmidecode)
    data = D(devices=[], slots=[], diagnostics=[])
    for collector in discover_collectors():
        collector.parse_report(sources, data)

    if not data.devices:
        raise EmptyInput(
            "no parseable pci device record found", diagnostics=data.diagnostics
        )

    data.topology, diagnostics = topology.build_topology(data.devices)
    data.diagnostics.extend(diagnostics)

    if dmidecode is not None:
        levels = tuple(slot_match or topology.SLOT_MATCH_LEVELS)
        data.diagnostics.extend(topology.annotate_slots(data.topology, data.slots, levels))

    return data


def discover_collectors():
    for info in pkgutil.walk_packages(__path__, prefix=__name__ + "."):
        mod = importlib.import_module(info.name, __name__)
        if not (hasattr(mod, "parse_report") and callable(mod.parse_report)):
            continue
        yield mod
