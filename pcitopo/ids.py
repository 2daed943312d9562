# SPDX-License-Identifier: Apache-2.0
# Copyright (c) 2024 Robin Jarry

"""
Well known pci ids.

SHORT_NAMES are compact device names used in graph labels instead of the
long pci.ids strings. VENDOR_NAMES are the vendor strings lspci prints
in front of the device name, used to split both apart.
"""

SHORT_NAMES = {
    (0x1000, 0x005D): "MegaRAID 3108",
    (0x1000, 0x00B2): "switch mgmt",
    (0x1000, 0x02B2): "placeholder",
    (0x1000, 0xC010): "placeholder",
    (0x1022, 0x1485): "AMD SPP",
    (0x1022, 0x1486): "AMD PSPCPP",
    (0x1022, 0x1487): "AMD HD Audio",
    (0x1022, 0x148A): "dummy function",
    (0x1022, 0x148C): "AMD XHCI",
    (0x1022, 0x1498): "AMD PTDMA",
    (0x1022, 0x149C): "AMD XHCI",
    (0x1022, 0x7901): "AMD SATA",
    (0x102B, 0x0522): "Matrox VGA",
    (0x102B, 0x0534): "Matrox VGA",
    (0x102B, 0x0536): "Matrox VGA",
    (0x10DE, 0x0E0F): "NVIDIA GK208 HDMP/DP Audio",
    (0x10DE, 0x128B): "NVIDIA GT 710",
    (0x10DE, 0x1AF1): "A100 NVSwitch",
    (0x10DE, 0x20B0): "A100 SXM4 40GB",
    (0x10DE, 0x22A3): "H100 NVSwitch",
    (0x10DE, 0x2330): "H100 SXM5 80GB",
    (0x10DE, 0x2335): "H200 SXM5 141GB",
    (0x10DE, 0x2901): "B200 SXM6 192GB",
    (0x10EC, 0x8125): "Realtek RTL8125 2.5GbE",
    (0x1344, 0x51C3): "Micron NVMe",
    (0x144D, 0xA808): "Samsung NVMe",
    (0x144D, 0xA80A): "Samsung NVMe",
    (0x144D, 0xA80C): "Samsung NVMe",
    (0x144D, 0xA824): "Samsung NVMe",
    (0x144D, 0xA825): "Samsung NVMe",
    (0x14E4, 0x165F): "Broadcom BCM5720",
    (0x15B3, 0x1019): "MT28800 ConnectX-5 Ex ETH",
    (0x15B3, 0x101B): "MT28908 ConnectX-6 IB",
    (0x15B3, 0x101D): "MT2892 ConnectX-6 Dx ETH",
    (0x15B3, 0x101E): "ConnectX-7 IB VF",
    (0x15B3, 0x1021): "MT2910 ConnectX-7 IB",
    (0x15B3, 0xA2DC): "MT43244 BlueField-3",
    (0x15B3, 0xC2D5): "MT43244 BlueField-3 mgmt",
    (0x1912, 0x0014): "Renesas USB3",
    (0x1A03, 0x2000): "ASPEED VGA",
    (0x1A03, 0x2402): "ASPEED IPMI",
    (0x1B4B, 0x2241): "Marvell NVMe",
    (0x1B4B, 0x9485): "Marvell SAS/SATA",
    (0x8086, 0x1563): "Intel X550",
    (0x8086, 0x15F3): "Intel I225-V",
    (0x8086, 0x2723): "Intel Wi-Fi 6 AX200",
}

VENDOR_NAMES = {
    0x1000: ("Broadcom / LSI",),
    0x1002: ("Advanced Micro Devices, Inc. [AMD/ATI]",),
    0x1022: ("Advanced Micro Devices, Inc. [AMD]",),
    0x102B: ("Matrox Electronics Systems Ltd.",),
    0x10B5: ("PLX Technology, Inc.", "Broadcom / PLX"),
    0x10DE: ("NVIDIA Corporation",),
    0x10EC: ("Realtek Semiconductor Co., Ltd.",),
    0x1344: ("Micron Technology Inc",),
    0x144D: ("Samsung Electronics Co Ltd",),
    0x14E4: ("Broadcom Inc. and subsidiaries",),
    0x15B3: ("Mellanox Technologies",),
    0x1912: ("Renesas Technology Corp.", "Renesas Electronics Corporation"),
    0x1A03: ("ASPEED Technology, Inc.",),
    0x1AF4: ("Red Hat, Inc.",),
    0x1B36: ("Red Hat, Inc.",),
    0x1B4B: ("Marvell Technology Group Ltd.",),
    0x1D0F: ("Amazon.com, Inc.",),
    0x2646: ("Kingston Technology Company, Inc.",),
    0x8086: ("Intel Corporation",),
}
