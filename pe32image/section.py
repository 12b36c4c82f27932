#!/usr/bin/python3
# -*- coding: utf-8 -*-
#
# Copyright (C) 2021 Richard Hughes <richard@hughsie.com>
#
# SPDX-License-Identifier: BSD-2-Clause-Patent

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Sequence, Tuple, Union

import json

from .cursor import (
    PeCursor,
    context,
    count,
    cut,
    le_u32,
    map_opt,
    map_value,
    sequence,
    take,
    unpack,
    verify,
)
from .errors import PeErrorKind
from .flags import PeSectionCharacteristics


def _decode_name(raw: bytes) -> Optional[str]:
    """Decodes the 8-byte name, which is only NUL terminated when shorter"""
    idx = raw.find(b"\0")
    if idx != -1:
        raw = raw[:idx]
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return None


parse_section_name = context(
    "Name",
    cut(map_opt(take(8), _decode_name, PeErrorKind.MALFORMED, "name is not UTF-8")),
)

parse_section_characteristics = context(
    "PeSectionCharacteristics",
    map_value(le_u32, PeSectionCharacteristics.from_bits_truncate),
)

_parse_section_header = context(
    "PeSectionHeader",
    sequence(
        parse_section_name,
        unpack("<LLLLLLHH"),
        parse_section_characteristics,
    ),
)


@dataclass(frozen=True)
class PeSectionHeader:
    """An entry in the section table.

    The Windows SDK declares ``VirtualSize`` in a union with
    ``PhysicalAddress``; only the ``VirtualSize`` meaning is used here.
    """

    name: str
    virtual_size: int
    virtual_address: int
    size_of_raw_data: int
    pointer_to_raw_data: int
    pointer_to_relocations: int
    pointer_to_linenumbers: int
    number_of_relocations: int
    number_of_linenumbers: int
    characteristics: PeSectionCharacteristics

    @classmethod
    def parse(cls, cur: PeCursor) -> Tuple[PeCursor, "PeSectionHeader"]:
        cur, (name, fields, characteristics) = _parse_section_header(cur)
        return cur, cls(name, *fields, characteristics=characteristics)

    def verify(self, file_alignment: int, section_alignment: int) -> bool:
        """Checks the address, raw size and raw pointer are aligned"""
        if not file_alignment or not section_alignment:
            return False
        return (
            self.virtual_address % section_alignment == 0
            and self.size_of_raw_data % file_alignment == 0
            and self.pointer_to_raw_data % file_alignment == 0
        )

    def _json(self) -> Dict[str, Any]:
        return {
            "Name": self.name,
            "VirtualSize": "0x{:04X}".format(self.virtual_size),
            "VirtualAddress": "0x{:02X}".format(self.virtual_address),
            "SizeOfRawData": "0x{:02X}".format(self.size_of_raw_data),
            "PointerToRawData": "0x{:02X}".format(self.pointer_to_raw_data),
            "PointerToRelocations": "0x{:02X}".format(self.pointer_to_relocations),
            "PointerToLinenumbers": "0x{:02X}".format(self.pointer_to_linenumbers),
            "NumberOfRelocations": "0x{:02X}".format(self.number_of_relocations),
            "NumberOfLinenumbers": "0x{:02X}".format(self.number_of_linenumbers),
            "Characteristics": self.characteristics.names,
        }

    def __str__(self) -> str:
        return json.dumps(self._json(), indent=4)


@dataclass(frozen=True)
class PeSection:
    """A section header and a private copy of its on-disk bytes"""

    header: PeSectionHeader
    data: bytes = field(repr=False)
    uninitialized_data_size: int = 0

    @classmethod
    def from_buffer(
        cls, buf: Union[bytes, memoryview], header: PeSectionHeader
    ) -> Optional["PeSection"]:
        """Copies the raw data out of the file, or ``None`` if out of range"""
        start = header.pointer_to_raw_data
        end = start + header.size_of_raw_data
        if end > len(buf):
            return None
        return cls(
            header=header,
            data=bytes(buf[start:end]),
            uninitialized_data_size=max(
                0, header.virtual_size - header.size_of_raw_data
            ),
        )

    @property
    def name(self) -> str:
        return self.header.name

    @property
    def virtual_address(self) -> int:
        return self.header.virtual_address

    @property
    def virtual_size(self) -> int:
        return self.header.virtual_size

    def contains_rva(self, rva: int) -> bool:
        size = max(self.header.virtual_size, self.header.size_of_raw_data)
        return self.header.virtual_address <= rva < self.header.virtual_address + size

    def _json(self) -> Dict[str, Any]:
        val = self.header._json()
        val["RawDataSz"] = "0x{:04X}".format(len(self.data))
        val["UninitializedDataSz"] = "0x{:04X}".format(self.uninitialized_data_size)
        return val

    def __str__(self) -> str:
        return json.dumps(self._json(), indent=4)


def verify_section_order(sections: Sequence[PeSection]) -> bool:
    """Checks sections are sorted by address and do not overlap"""
    next_allowed_address: int = 0
    for section in sections:
        if section.header.virtual_address < next_allowed_address:
            return False
        next_allowed_address = (
            section.header.virtual_address + section.header.virtual_size
        )
    return True


def parse_sections(
    cur: PeCursor,
    number_of_sections: int,
    file_alignment: int,
    section_alignment: int,
) -> Tuple[PeCursor, List[PeSection]]:
    """Parses, validates and copies each entry of the section table"""

    buf = cur.buf
    parse_header = context(
        "Validate header",
        verify(
            PeSectionHeader.parse,
            lambda header: header.verify(file_alignment, section_alignment),
            PeErrorKind.INCONSISTENT,
            "section is not aligned to FileAlignment/SectionAlignment",
        ),
    )
    parse_section = context(
        "Get section data",
        map_opt(
            parse_header,
            lambda header: PeSection.from_buffer(buf, header),
            PeErrorKind.OUT_OF_BOUNDS,
            "section raw data is beyond the end of the buffer",
        ),
    )
    return context("Sections", cut(count(parse_section, number_of_sections)))(cur)
