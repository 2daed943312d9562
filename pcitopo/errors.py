# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2024 Robin Jarry

"""
Error kinds.

Only EmptyInput is ever raised by the pipeline. The other kinds are
collected in the diagnostics list returned next to each stage's result.
"""

import typing


class PciTopoError(Exception):
    kind = "error"

    def __init__(self, message: str, line: typing.Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.line = line

    def __str__(self):
        if self.line is not None:
            return f"{self.message}: {self.line!r}"
        return self.message


class MalformedRecord(PciTopoError):
    kind = "malformed record"


class InconsistentTopology(PciTopoError):
    kind = "inconsistent topology"


class OrphanDevice(PciTopoError):
    kind = "orphan device"


class EmptyInput(PciTopoError):
    """
    Nothing usable in the input. Diagnostics collected before giving up are
    kept so that the rejected lines can still be reported.
    """

    kind = "empty input"

    def __init__(
        self,
        message: str,
        line: typing.Optional[str] = None,
        diagnostics: typing.Sequence[PciTopoError] = (),
    ):
        super().__init__(message, line)
        self.diagnostics = list(diagnostics)
