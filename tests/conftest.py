# tests/conftest.py
from __future__ import annotations

from typing import Optional

import pytest

from pcitopo.model import Device, PciAddr


LSPCI = """\
00:00.0 Host bridge [0600]: Intel Corporation 8th Gen Core Processor Host Bridge/DRAM Registers [8086:3ec2] (rev 07)
\tSubsystem: Dell 8th Gen Core Processor Host Bridge/DRAM Registers [1028:0869]
\tControl: I/O- Mem+ BusMaster+ SpecCycle- MemWINV- VGASnoop- ParErr- Stepping- SERR- FastB2B- DisINTx-
\tLatency: 0
\tCapabilities: [e0] Vendor Specific Information: Len=10 <?>
\tKernel driver in use: skl_uncore

00:01.0 PCI bridge [0604]: Intel Corporation 6th-10th Gen Core Processor PCIe Controller (x16) [8086:1901] (rev 07) (prog-if 00 [Normal decode])
\tControl: I/O+ Mem+ BusMaster+ SpecCycle- MemWINV- VGASnoop- ParErr- Stepping- SERR- FastB2B- DisINTx+
\tLatency: 0, Cache Line Size: 64 bytes
\tInterrupt: pin A routed to IRQ 122
\tBus: primary=00, secondary=01, subordinate=01, sec-latency=0
\tI/O behind bridge: 0000e000-0000efff [size=4K]
\tCapabilities: [a0] Express (v2) Root Port (Slot+), MSI 00
\t\tDevCap:\tMaxPayload 256 bytes, PhantFunc 0
\t\tLnkCap:\tPort #2, Speed 8GT/s, Width x16, ASPM L0s L1, Exit Latency L0s <256ns, L1 <8us
\t\t\tClockPM- Surprise- LLActRep- BwNot+ ASPMOptComp+
\t\tLnkCtl:\tASPM L0s L1 Enabled; RCB 64 bytes, Disabled- CommClk+
\t\tLnkSta:\tSpeed 8GT/s (ok), Width x8 (downgraded)
\t\t\tTrErr- Train- SlotClk+ DLActive- BWMgmt+ ABWMgmt+
\t\tLnkCap2: Supported Link Speeds: 2.5-8GT/s, Crosslink- Retimer- 2Retimers- DRS-
\t\tLnkSta2: Current De-emphasis Level: -6dB, EqualizationComplete+
\tKernel driver in use: pcieport

01:00.0 VGA compatible controller [0300]: NVIDIA Corporation TU106 [GeForce RTX 2060 Rev. A] [10de:1f08] (rev a1) (prog-if 00 [VGA controller])
\tSubsystem: Dell TU106 [GeForce RTX 2060 Rev. A] [1028:0869]
\tCapabilities: [68] Express (v2) Legacy Endpoint, MSI 00
\t\tLnkCap:\tPort #0, Speed 16GT/s, Width x16, ASPM L0s L1, Exit Latency L0s <512ns, L1 <4us
\t\tLnkSta:\tSpeed 8GT/s (downgraded), Width x8 (downgraded)
\tKernel driver in use: nvidia

01:00.1 Audio device [0403]: NVIDIA Corporation TU106 High Definition Audio Controller [10de:10f9] (rev a1)
\tCapabilities: [68] Express (v2) Endpoint, MSI 00
\t\tLnkCap:\tPort #0, Speed 8GT/s, Width x16, ASPM L0s L1
\t\tLnkSta:\tSpeed 8GT/s (ok), Width x8 (downgraded)
\tKernel driver in use: snd_hda_intel

00:1c.0 PCI bridge [0604]: Intel Corporation Cannon Lake PCH PCI Express Root Port #1 [8086:a338] (rev f0) (prog-if 00 [Normal decode])
\tBus: primary=00, secondary=02, subordinate=05, sec-latency=0
\tCapabilities: [40] Express (v2) Root Port (Slot+), MSI 00
\t\tLnkCap:\tPort #1, Speed 8GT/s, Width x4, ASPM L0s L1, Exit Latency L0s <1us, L1 <16us
\t\tLnkSta:\tSpeed 8GT/s (ok), Width x4 (ok)
\tKernel driver in use: pcieport

02:00.0 PCI bridge [0604]: PLX Technology, Inc. PEX 8747 48-Lane, 5-Port PCI Express Gen 3 (8.0 GT/s) Switch [10b5:8747] (rev ca) (prog-if 00 [Normal decode])
\tBus: primary=02, secondary=03, subordinate=05, sec-latency=0
\tCapabilities: [68] Express (v2) Upstream Port, MSI 00
\t\tLnkCap:\tPort #0, Speed 8GT/s, Width x4, ASPM L1, Exit Latency L1 <4us
\t\tLnkSta:\tSpeed 8GT/s (ok), Width x4 (ok)
\tCapabilities: [100 v1] Device Serial Number ca-87-00-10-b5-df-0e-00
\tKernel driver in use: pcieport

03:08.0 PCI bridge [0604]: PLX Technology, Inc. PEX 8747 48-Lane, 5-Port PCI Express Gen 3 (8.0 GT/s) Switch [10b5:8747] (rev ca) (prog-if 00 [Normal decode])
\tBus: primary=03, secondary=04, subordinate=04, sec-latency=0
\tCapabilities: [68] Express (v2) Downstream Port (Slot+), MSI 00
\t\tLnkCap:\tPort #8, Speed 8GT/s, Width x4, ASPM L1, Exit Latency L1 <4us
\t\tLnkSta:\tSpeed 8GT/s (ok), Width x4 (ok)
\tCapabilities: [100 v1] Device Serial Number ca-87-00-10-b5-df-0e-00
\tKernel driver in use: pcieport

03:10.0 PCI bridge [0604]: PLX Technology, Inc. PEX 8747 48-Lane, 5-Port PCI Express Gen 3 (8.0 GT/s) Switch [10b5:8747] (rev ca) (prog-if 00 [Normal decode])
\tBus: primary=03, secondary=05, subordinate=05, sec-latency=0
\tCapabilities: [68] Express (v2) Downstream Port (Slot+), MSI 00
\t\tLnkCap:\tPort #16, Speed 8GT/s, Width x8, ASPM L1, Exit Latency L1 <4us
\t\tLnkSta:\tSpeed 2.5GT/s (downgraded), Width x0 (downgraded)
\tKernel driver in use: pcieport

04:00.0 Non-Volatile memory controller [0108]: Samsung Electronics Co Ltd NVMe SSD Controller SM981/PM981/PM983 [144d:a808] (prog-if 02 [NVM Express])
\tSubsystem: Samsung Electronics Co Ltd SSD 970 EVO Plus 1TB [144d:a801]
\tPhysical Slot: 4
\tCapabilities: [70] Express (v2) Endpoint, MSI 00
\t\tLnkCap:\tPort #0, Speed 8GT/s, Width x4, ASPM L1, Exit Latency L1 <64us
\t\tLnkSta:\tSpeed 8GT/s (ok), Width x4 (ok)
\tNUMA node: 0
\tKernel driver in use: nvme

00:1f.0 ISA bridge [0601]: Intel Corporation Cannon Point-LP LPC Controller [8086:9d84] (rev 30)
\tSubsystem: Dell Cannon Point-LP LPC Controller [1028:0869]
\tControl: I/O+ Mem+ BusMaster+ SpecCycle- MemWINV- VGASnoop- ParErr- Stepping- SERR- FastB2B- DisINTx-
\tLatency: 0
"""

DMIDECODE = """\
# dmidecode 3.3
Getting SMBIOS data from sysfs.
SMBIOS 3.1.1 present.

Handle 0x0000, DMI type 0, 24 bytes
BIOS Information
\tVendor: Dell Inc.
\tVersion: 1.10.2

Handle 0x0900, DMI type 9, 17 bytes
System Slot Information
\tDesignation: PCIe x16 Slot 1
\tType: x16 PCI Express 3
\tCurrent Usage: In Use
\tLength: Long
\tID: 1
\tCharacteristics:
\t\t3.3 V is provided
\t\tPME signal is supported
\tBus Address: 0000:00:01.0

Handle 0x0901, DMI type 9, 17 bytes
System Slot Information
\tDesignation: M.2 Slot
\tType: x4 PCI Express 3
\tCurrent Usage: In Use
\tLength: Short
\tID: 2
\tBus Address: 0000:04:00.0

Handle 0x0902, DMI type 9, 17 bytes
System Slot Information
\tDesignation: PCIe x1 Slot 2
\tType: x1 PCI Express 3
\tCurrent Usage: Available
\tBus Address: 0000:ff:1f.7

Handle 0x0903, DMI type 9, 13 bytes
System Slot Information
\tDesignation: Legacy Slot
\tType: 32-bit PCI
\tCurrent Usage: Unknown

Handle 0x0A00, DMI type 10, 6 bytes
On Board Device Information
\tType: Video
\tStatus: Enabled
\tDescription: Onboard VGA
"""


@pytest.fixture
def lspci_text() -> str:
    return LSPCI


@pytest.fixture
def dmidecode_text() -> str:
    return DMIDECODE


@pytest.fixture
def make_device():
    """
    Build Device records without going through the lspci parser. Passing a
    secondary bus number makes the device a PCI bridge.
    """

    def factory(addr: str, secondary: Optional[int] = None, **kwargs) -> Device:
        is_bridge = secondary is not None
        kwargs.setdefault("class_code", 0x0604 if is_bridge else 0x0200)
        kwargs.setdefault(
            "class_description", "PCI bridge" if is_bridge else "Ethernet controller"
        )
        kwargs.setdefault("vendor_id", 0x8086)
        kwargs.setdefault("device_id", 0x1234)
        return Device(
            address=PciAddr.parse(addr),
            is_bridge=is_bridge,
            secondary_bus=secondary,
            **kwargs,
        )

    return factory
