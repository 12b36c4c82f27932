#!/usr/bin/python3
# -*- coding: utf-8 -*-
#
# Copyright (C) 2021 Richard Hughes <richard@hughsie.com>
#
# SPDX-License-Identifier: BSD-2-Clause-Patent

from dataclasses import dataclass
from typing import Dict, Any, Tuple

import json

from .cursor import (
    PeCursor,
    context,
    le_u16,
    map_opt,
    map_value,
    sequence,
    unpack,
)
from .enums import (
    PeOptionalHeaderMagic,
    PeSubsystem,
    PE32_FILE_ALIGNMENT_MIN,
    PE32_FILE_ALIGNMENT_MAX,
)
from .errors import PeErrorKind
from .flags import PeDllCharacteristics

parse_magic = context(
    "PeOptionalHeaderMagic",
    map_opt(
        le_u16,
        PeOptionalHeaderMagic.from_code,
        PeErrorKind.MALFORMED,
        "unknown optional header magic",
    ),
)

parse_subsystem = context(
    "PeSubsystem",
    map_opt(
        le_u16,
        PeSubsystem.from_code,
        PeErrorKind.UNSUPPORTED,
        "unknown subsystem",
    ),
)

parse_dll_characteristics = context(
    "PeDllCharacteristics",
    map_value(le_u16, PeDllCharacteristics.from_bits_truncate),
)

_parse_standard = context(
    "PeOptionalHeaderStandard",
    sequence(parse_magic, unpack("<BBLLLLL")),
)

_parse_windows_specific = context(
    "PeOptionalHeaderWindowsSpecific",
    sequence(
        unpack("<LLLLHHHHHHLLLL"),
        parse_subsystem,
        parse_dll_characteristics,
        unpack("<LLLLLL"),
    ),
)


def is_power_of_two(value: int) -> bool:
    return value > 0 and value & (value - 1) == 0


@dataclass(frozen=True)
class PeOptionalHeaderStandard:
    """The standard COFF fields of the optional header"""

    magic: PeOptionalHeaderMagic
    major_linker_version: int
    minor_linker_version: int
    size_of_code: int
    size_of_initialized_data: int
    size_of_uninitialized_data: int
    address_of_entry_point: int
    base_of_code: int

    @classmethod
    def parse(cls, cur: PeCursor) -> Tuple[PeCursor, "PeOptionalHeaderStandard"]:
        cur, (magic, fields) = _parse_standard(cur)
        return cur, cls(magic, *fields)

    def _json(self) -> Dict[str, Any]:
        return {
            "Magic": str(self.magic),
            "MajorLinkerVersion": "0x{:X}".format(self.major_linker_version),
            "MinorLinkerVersion": "0x{:X}".format(self.minor_linker_version),
            "SizeOfCode": "0x{:X}".format(self.size_of_code),
            "SizeOfInitializedData": "0x{:X}".format(self.size_of_initialized_data),
            "SizeOfUninitializedData": "0x{:X}".format(
                self.size_of_uninitialized_data
            ),
            "AddressOfEntryPoint": "0x{:X}".format(self.address_of_entry_point),
            "BaseOfCode": "0x{:X}".format(self.base_of_code),
        }

    def __str__(self) -> str:
        return json.dumps(self._json(), indent=4)


@dataclass(frozen=True)
class PeOptionalHeaderWindowsSpecific:
    """The PE32 extension of the optional header used by the Windows loader"""

    base_of_data: int
    image_base: int
    section_alignment: int
    file_alignment: int
    major_operating_system_version: int
    minor_operating_system_version: int
    major_image_version: int
    minor_image_version: int
    major_subsystem_version: int
    minor_subsystem_version: int
    win32_version_value: int
    size_of_image: int
    size_of_headers: int
    check_sum: int
    subsystem: PeSubsystem
    dll_characteristics: PeDllCharacteristics
    size_of_stack_reserve: int
    size_of_stack_commit: int
    size_of_heap_reserve: int
    size_of_heap_commit: int
    loader_flags: int
    number_of_rva_and_sizes: int

    @classmethod
    def parse(
        cls, cur: PeCursor
    ) -> Tuple[PeCursor, "PeOptionalHeaderWindowsSpecific"]:
        cur, (fields, subsystem, dll_characteristics, sizes) = (
            _parse_windows_specific(cur)
        )
        return cur, cls(*fields, subsystem, dll_characteristics, *sizes)

    def has_valid_alignment(self) -> bool:
        """FileAlignment is a power of two in 512..64K and no larger than SectionAlignment"""
        return (
            PE32_FILE_ALIGNMENT_MIN <= self.file_alignment <= PE32_FILE_ALIGNMENT_MAX
            and is_power_of_two(self.file_alignment)
            and self.section_alignment >= self.file_alignment
        )

    def _json(self) -> Dict[str, Any]:
        return {
            "BaseOfData": "0x{:X}".format(self.base_of_data),
            "ImageBase": "0x{:X}".format(self.image_base),
            "SectionAlignment": "0x{:X}".format(self.section_alignment),
            "FileAlignment": "0x{:X}".format(self.file_alignment),
            "OperatingSystemVersion": "{}.{}".format(
                self.major_operating_system_version,
                self.minor_operating_system_version,
            ),
            "ImageVersion": "{}.{}".format(
                self.major_image_version, self.minor_image_version
            ),
            "SubsystemVersion": "{}.{}".format(
                self.major_subsystem_version, self.minor_subsystem_version
            ),
            "Win32VersionValue": "0x{:X}".format(self.win32_version_value),
            "SizeOfImage": "0x{:X}".format(self.size_of_image),
            "SizeOfHeaders": "0x{:X}".format(self.size_of_headers),
            "CheckSum": "0x{:X}".format(self.check_sum),
            "Subsystem": str(self.subsystem),
            "DllCharacteristics": self.dll_characteristics.names,
            "SizeOfStackReserve": "0x{:X}".format(self.size_of_stack_reserve),
            "SizeOfStackCommit": "0x{:X}".format(self.size_of_stack_commit),
            "SizeOfHeapReserve": "0x{:X}".format(self.size_of_heap_reserve),
            "SizeOfHeapCommit": "0x{:X}".format(self.size_of_heap_commit),
            "LoaderFlags": "0x{:X}".format(self.loader_flags),
            "NumberOfRvaAndSizes": "0x{:X}".format(self.number_of_rva_and_sizes),
        }

    def __str__(self) -> str:
        return json.dumps(self._json(), indent=4)
