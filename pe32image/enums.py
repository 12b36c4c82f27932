#!/usr/bin/python3
# -*- coding: utf-8 -*-
#
# Copyright (C) 2021 Richard Hughes <richard@hughsie.com>
#
# See https://docs.microsoft.com/en-us/windows/win32/debug/pe-format
#
# SPDX-License-Identifier: BSD-2-Clause-Patent

from enum import IntEnum
from typing import Optional


class PeMachineType(IntEnum):
    """The type of target machine"""

    UNKNOWN = 0x0
    TARGET_HOST = 0x0001
    AMD64 = 0x8664
    I386 = 0x14C
    RISCV32 = 0x5032
    RISCV64 = 0x5064
    RISCV128 = 0x5128
    AM33 = 0x1D3
    ARM = 0x1C0
    ARM64 = 0xAA64
    ARMNT = 0x1C4
    EBC = 0xEBC
    IA64 = 0x200
    M32R = 0x9041
    MIPS16 = 0x266
    MIPSFPU = 0x366
    MIPSFPU16 = 0x466
    POWERPC = 0x1F0
    POWERPCFP = 0x1F1
    R3000_BIG_ENDIAN = 0x160
    R3000_LITTLE_ENDIAN = 0x162
    R4000 = 0x166
    R10000 = 0x168
    SH3 = 0x1A2
    SH3DSP = 0x1A3
    SH3E = 0x1A4
    SH4 = 0x1A6
    SH5 = 0x1A8
    THUMB = 0x1C2
    WCEMIPSV2 = 0x169
    ALPHA = 0x184
    ALPHA64 = 0x284
    TRICORE = 0x520
    CEF = 0xCEF
    CEE = 0xC0EE

    def __str__(self):
        return self.name.lower()

    @classmethod
    def from_code(cls, code: int) -> Optional["PeMachineType"]:
        """Returns the machine type, or ``None`` for an unknown code"""
        try:
            return cls(code)
        except ValueError:
            return None


class PeOptionalHeaderMagic(IntEnum):
    """The state of the image file"""

    ROM = 0x107
    PE32 = 0x10B
    PE32_PLUS = 0x20B

    def __str__(self):
        return {
            PeOptionalHeaderMagic.ROM: "ROM",
            PeOptionalHeaderMagic.PE32: "PE32",
            PeOptionalHeaderMagic.PE32_PLUS: "PE32+",
        }[self]

    @classmethod
    def from_code(cls, code: int) -> Optional["PeOptionalHeaderMagic"]:
        try:
            return cls(code)
        except ValueError:
            return None


class PeSubsystem(IntEnum):
    """The subsystem that is required to run the image"""

    UNKNOWN = 0
    NATIVE = 1
    WINDOWS_GUI = 2
    WINDOWS_CUI = 3
    OS2_CUI = 5
    POSIX_CUI = 7
    NATIVE_WINDOWS = 8
    WINDOWS_CE_GUI = 9
    EFI_APPLICATION = 10
    EFI_BOOT_SERVICE_DRIVER = 11
    EFI_RUNTIME_DRIVER = 12
    EFI_ROM = 13
    XBOX = 14
    WINDOWS_BOOT_APPLICATION = 16

    def __str__(self):
        return self.name.lower()

    @classmethod
    def from_code(cls, code: int) -> Optional["PeSubsystem"]:
        try:
            return cls(code)
        except ValueError:
            return None


class PeFileFlag(IntEnum):
    IMAGE_FILE_RELOCS_STRIPPED = 0x0001
    IMAGE_FILE_EXECUTABLE_IMAGE = 0x0002
    IMAGE_FILE_LINE_NUMS_STRIPPED = 0x0004
    IMAGE_FILE_LOCAL_SYMS_STRIPPED = 0x0008
    IMAGE_FILE_AGGRESSIVE_WS_TRIM = 0x0010
    IMAGE_FILE_LARGE_ADDRESS_AWARE = 0x0020
    # 0x0040 is reserved
    IMAGE_FILE_BYTES_REVERSED_LO = 0x0080
    IMAGE_FILE_32BIT_MACHINE = 0x0100
    IMAGE_FILE_DEBUG_STRIPPED = 0x0200
    IMAGE_FILE_REMOVABLE_RUN_FROM_SWAP = 0x0400
    IMAGE_FILE_NET_RUN_FROM_SWAP = 0x0800
    IMAGE_FILE_SYSTEM = 0x1000
    IMAGE_FILE_DLL = 0x2000
    IMAGE_FILE_UP_SYSTEM_ONLY = 0x4000
    IMAGE_FILE_BYTES_REVERSED_HI = 0x8000


class PeCoffDllCharacteristics(IntEnum):
    HIGH_ENTROPY_VA = 0x0020
    DYNAMIC_BASE = 0x0040
    FORCE_INTEGRITY = 0x0080
    NX_COMPAT = 0x0100
    NO_ISOLATION = 0x0200
    NO_SEH = 0x0400
    NO_BIND = 0x0800
    APPCONTAINER = 0x1000
    WDM_DRIVER = 0x2000
    GUARD_CF = 0x4000
    TERMINAL_SERVER_AWARE = 0x8000


class PeSectionFlag(IntEnum):
    IMAGE_SCN_TYPE_NO_PAD = 0x00000008
    IMAGE_SCN_CNT_CODE = 0x00000020
    IMAGE_SCN_CNT_INITIALIZED_DATA = 0x00000040
    IMAGE_SCN_CNT_UNINITIALIZED_DATA = 0x00000080
    IMAGE_SCN_LNK_OTHER = 0x00000100
    IMAGE_SCN_LNK_INFO = 0x00000200
    IMAGE_SCN_LNK_REMOVE = 0x00000800
    IMAGE_SCN_LNK_COMDAT = 0x00001000
    IMAGE_SCN_GPREL = 0x00008000
    IMAGE_SCN_MEM_PURGEABLE = 0x00020000
    IMAGE_SCN_MEM_16BIT = 0x00020000
    IMAGE_SCN_MEM_LOCKED = 0x00040000
    IMAGE_SCN_MEM_PRELOAD = 0x00080000
    IMAGE_SCN_ALIGN_1BYTES = 0x00100000
    IMAGE_SCN_ALIGN_2BYTES = 0x00200000
    IMAGE_SCN_ALIGN_4BYTES = 0x00300000
    IMAGE_SCN_ALIGN_8BYTES = 0x00400000
    IMAGE_SCN_ALIGN_16BYTES = 0x00500000
    IMAGE_SCN_ALIGN_32BYTES = 0x00600000
    IMAGE_SCN_ALIGN_64BYTES = 0x00700000
    IMAGE_SCN_ALIGN_128BYTES = 0x00800000
    IMAGE_SCN_ALIGN_256BYTES = 0x00900000
    IMAGE_SCN_ALIGN_512BYTES = 0x00A00000
    IMAGE_SCN_ALIGN_1024BYTES = 0x00B00000
    IMAGE_SCN_ALIGN_2048BYTES = 0x00C00000
    IMAGE_SCN_ALIGN_4096BYTES = 0x00D00000
    IMAGE_SCN_ALIGN_8192BYTES = 0x00E00000
    IMAGE_SCN_LNK_NRELOC_OVFL = 0x01000000
    IMAGE_SCN_MEM_DISCARDABLE = 0x02000000
    IMAGE_SCN_MEM_NOT_CACHED = 0x04000000
    IMAGE_SCN_MEM_NOT_PAGED = 0x08000000
    IMAGE_SCN_MEM_SHARED = 0x10000000
    IMAGE_SCN_MEM_EXECUTE = 0x20000000
    IMAGE_SCN_MEM_READ = 0x40000000
    IMAGE_SCN_MEM_WRITE = 0x80000000


# the alignment levels are a 4-bit number, not independent bits
PE_SECTION_ALIGN_MASK = 0x00F00000


class PeImageDirectoryEntry(IntEnum):
    EXPORT = 0
    IMPORT = 1
    RESOURCE = 2
    EXCEPTION = 3
    SECURITY = 4
    BASERELOC = 5
    DEBUG = 6
    ARCHITECTURE = 7
    GLOBALPTR = 8
    TLS = 9
    LOAD_CONFIG = 10
    BOUND_IMPORT = 11
    IAT = 12
    DELAY_IMPORT = 13
    COM_DESCRIPTOR = 14

    def __str__(self):
        return self.name.lower()


PE_DOS_SIGNATURE = b"MZ"
PE_NT_SIGNATURE = b"PE\0\0"

# COFF standard fields + PE32 BaseOfData + Windows-specific fields
PE32_OPTIONAL_HEADER_MIN_SIZE = 24 + 4 + 64

PE32_FILE_ALIGNMENT_MIN = 512
PE32_FILE_ALIGNMENT_MAX = 65536
