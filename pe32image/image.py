#!/usr/bin/python3
# -*- coding: utf-8 -*-
#
# Copyright (C) 2021 Richard Hughes <richard@hughsie.com>
#
# See https://docs.microsoft.com/en-us/windows/win32/debug/pe-format
#
# SPDX-License-Identifier: BSD-2-Clause-Patent
#
# pylint: disable=too-many-instance-attributes

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Dict, Any, List, Optional, Tuple, Union

import json

from .coff_header import PeCoffHeader
from .cursor import PeCursor, cut, skip_to, tag
from .data_directory import PeDataDirectory, PeDataDirectoryType, parse_data_directories
from .dos_header import PeDosHeader
from .enums import (
    PeImageDirectoryEntry,
    PeOptionalHeaderMagic,
    PE_NT_SIGNATURE,
    PE32_OPTIONAL_HEADER_MIN_SIZE,
)
from .errors import PeParseError, PeErrorKind, PeErrorSeverity
from .optional_header import PeOptionalHeaderStandard, PeOptionalHeaderWindowsSpecific
from .section import PeSection, parse_sections, verify_section_order

# DOS header + signature + COFF header + PE32 optional header with no directories
PE32_MIN_IMAGE_SIZE = 0x40 + 4 + 20 + 24 + 4 + 68

# where e_lfanew lives in the DOS header
PE_LFANEW_OFFSET = 0x3C


class PeParseState(IntEnum):
    """Each step of decoding an image, in the order they are reached"""

    START = 0
    PARSED_MZ = 1
    SKIPPED_TO_EXTENDED_HEADER = 2
    PARSED_COFF = 3
    CHECKED_OPTIONAL_HEADER_SIZE = 4
    PARSED_OPTIONAL_HEADER_STANDARD = 5
    CHECKED_MAGIC_IS_PE32 = 6
    PARSED_OPTIONAL_HEADER_WINDOWS_SPECIFIC = 7
    CHECKED_ALIGNMENT_VALUES = 8
    PARSED_DATA_DIRECTORIES = 9
    PARSED_AND_VALIDATED_SECTIONS = 10
    CHECKED_SECTION_ORDERING = 11
    ASSEMBLED = 12

    def __str__(self):
        return self.name.lower()


def _gate(ok: bool, kind: PeErrorKind, offset: int, message: str) -> None:
    if not ok:
        raise PeParseError(kind, offset, message, severity=PeErrorSeverity.FAILURE)


class _PeImageAssembler:
    """Runs every step once, in order, stopping at the first failure"""

    def __init__(self, buf: Union[bytes, bytearray, memoryview]):
        self.cur: PeCursor = PeCursor(buf)
        self.state: PeParseState = PeParseState.START
        self.dos_hdr: Optional[PeDosHeader] = None
        self.coff_hdr: Optional[PeCoffHeader] = None
        self.coff_offset: int = 0
        self.optional_hdr: Optional[PeOptionalHeaderStandard] = None
        self.optional_offset: int = 0
        self.windows_hdr: Optional[PeOptionalHeaderWindowsSpecific] = None
        self.windows_offset: int = 0
        self.data_directories: Dict[PeDataDirectoryType, PeDataDirectory] = {}
        self.sections: List[PeSection] = []
        self.sections_offset: int = 0

    def _parse_mz(self) -> None:
        _gate(
            len(self.cur.buf) >= PE32_MIN_IMAGE_SIZE,
            PeErrorKind.MALFORMED,
            len(self.cur.buf),
            f"buffer is smaller than the minimum of 0x{PE32_MIN_IMAGE_SIZE:X} bytes",
        )
        _, self.dos_hdr = PeDosHeader.parse(self.cur)

    def _skip_to_extended_header(self) -> None:
        assert self.dos_hdr
        _gate(
            self.dos_hdr.e_lfanew < len(self.cur.buf),
            PeErrorKind.MALFORMED,
            PE_LFANEW_OFFSET,
            f"e_lfanew 0x{self.dos_hdr.e_lfanew:X} is beyond the end of the buffer",
        )
        self.cur, _ = skip_to(self.dos_hdr.e_lfanew)(self.cur)
        self.cur, _ = cut(tag(PE_NT_SIGNATURE))(self.cur)

    def _parse_coff(self) -> None:
        self.coff_offset = self.cur.offset
        self.cur, self.coff_hdr = PeCoffHeader.parse(self.cur)

    def _check_optional_header_size(self) -> None:
        assert self.coff_hdr
        _gate(
            self.coff_hdr.size_of_optional_header >= PE32_OPTIONAL_HEADER_MIN_SIZE,
            PeErrorKind.INCONSISTENT,
            self.coff_offset,
            f"SizeOfOptionalHeader 0x{self.coff_hdr.size_of_optional_header:X} "
            f"is smaller than a PE32 optional header",
        )

    def _parse_optional_header_standard(self) -> None:
        self.optional_offset = self.cur.offset
        self.cur, self.optional_hdr = PeOptionalHeaderStandard.parse(self.cur)

    def _check_magic_is_pe32(self) -> None:
        assert self.optional_hdr
        _gate(
            self.optional_hdr.magic == PeOptionalHeaderMagic.PE32,
            PeErrorKind.UNSUPPORTED,
            self.optional_offset,
            f"{self.optional_hdr.magic} images are not supported",
        )

    def _parse_optional_header_windows_specific(self) -> None:
        self.windows_offset = self.cur.offset
        self.cur, self.windows_hdr = PeOptionalHeaderWindowsSpecific.parse(self.cur)

    def _check_alignment_values(self) -> None:
        assert self.windows_hdr
        _gate(
            self.windows_hdr.has_valid_alignment(),
            PeErrorKind.INCONSISTENT,
            self.windows_offset,
            "FileAlignment 0x{:X} / SectionAlignment 0x{:X} are invalid".format(
                self.windows_hdr.file_alignment, self.windows_hdr.section_alignment
            ),
        )

    def _parse_data_directories(self) -> None:
        assert self.windows_hdr
        self.cur, self.data_directories = parse_data_directories(
            self.cur, self.windows_hdr.number_of_rva_and_sizes
        )

    def _parse_sections(self) -> None:
        assert self.coff_hdr and self.windows_hdr
        self.sections_offset = self.cur.offset
        self.cur, self.sections = parse_sections(
            self.cur,
            self.coff_hdr.number_of_sections,
            file_alignment=self.windows_hdr.file_alignment,
            section_alignment=self.windows_hdr.section_alignment,
        )

    def _check_section_ordering(self) -> None:
        _gate(
            verify_section_order(self.sections),
            PeErrorKind.INCONSISTENT,
            self.sections_offset,
            "sections overlap or are not sorted by address",
        )

    def _steps(self) -> List[Tuple[str, Callable[[], None], PeParseState]]:
        return [
            ("DOS header", self._parse_mz, PeParseState.PARSED_MZ),
            (
                "PE header offset sanity check",
                self._skip_to_extended_header,
                PeParseState.SKIPPED_TO_EXTENDED_HEADER,
            ),
            ("COFF header", self._parse_coff, PeParseState.PARSED_COFF),
            (
                "Check size of PE32 optional COFF header",
                self._check_optional_header_size,
                PeParseState.CHECKED_OPTIONAL_HEADER_SIZE,
            ),
            (
                "Optional header",
                self._parse_optional_header_standard,
                PeParseState.PARSED_OPTIONAL_HEADER_STANDARD,
            ),
            (
                "Check if optional header specifies PE32",
                self._check_magic_is_pe32,
                PeParseState.CHECKED_MAGIC_IS_PE32,
            ),
            (
                "PE32 optional header",
                self._parse_optional_header_windows_specific,
                PeParseState.PARSED_OPTIONAL_HEADER_WINDOWS_SPECIFIC,
            ),
            (
                "Verify file and section alignment values",
                self._check_alignment_values,
                PeParseState.CHECKED_ALIGNMENT_VALUES,
            ),
            (
                "Data directories",
                self._parse_data_directories,
                PeParseState.PARSED_DATA_DIRECTORIES,
            ),
            (
                "Section table",
                self._parse_sections,
                PeParseState.PARSED_AND_VALIDATED_SECTIONS,
            ),
            (
                "Verify sections",
                self._check_section_ordering,
                PeParseState.CHECKED_SECTION_ORDERING,
            ),
        ]

    def run(self) -> "PeImage":

        for label, step, state in self._steps():
            try:
                step()
            except PeParseError as e:
                raise (
                    e.with_context(label)
                    .with_context("PeImage")
                    .with_state(str(self.state))
                    .as_failure()
                ) from None
            self.state = state

        assert self.dos_hdr
        assert self.coff_hdr
        assert self.optional_hdr
        assert self.windows_hdr
        image = PeImage(
            dos_hdr=self.dos_hdr,
            coff_hdr=self.coff_hdr,
            optional_hdr=self.optional_hdr,
            windows_hdr=self.windows_hdr,
            data_directories=dict(self.data_directories),
            sections=tuple(self.sections),
        )
        self.state = PeParseState.ASSEMBLED
        return image


@dataclass(frozen=True)
class PeImage:
    """A fully validated PE32 image.

    Use ``PeImage.parse()`` to decode a buffer; the returned object holds
    copies of all the section data and does not reference the buffer.
    """

    dos_hdr: PeDosHeader
    coff_hdr: PeCoffHeader
    optional_hdr: PeOptionalHeaderStandard
    windows_hdr: PeOptionalHeaderWindowsSpecific
    data_directories: Dict[PeDataDirectoryType, PeDataDirectory] = field(
        default_factory=dict
    )
    sections: Tuple[PeSection, ...] = ()

    @classmethod
    def parse(cls, buf: Union[bytes, bytearray, memoryview]) -> "PeImage":
        """Decodes a complete image, raising ``PeParseError`` on any problem"""
        return _PeImageAssembler(buf).run()

    @property
    def image_base(self) -> int:
        return self.windows_hdr.image_base

    @property
    def entry_point(self) -> int:
        """The absolute virtual address of the entry point"""
        return self.windows_hdr.image_base + self.optional_hdr.address_of_entry_point

    def get_section_by_name(self, name: str) -> Optional[PeSection]:
        for section in self.sections:
            if section.name == name:
                return section
        return None

    def get_section_for_rva(self, rva: int) -> Optional[PeSection]:
        for section in self.sections:
            if section.contains_rva(rva):
                return section
        return None

    def get_data_directory(
        self, index: Union[int, PeImageDirectoryEntry]
    ) -> Optional[PeDataDirectory]:
        return self.data_directories.get(PeDataDirectoryType.from_index(int(index)))

    def entry_point_data(self, size: Optional[int] = None) -> Optional[bytes]:
        """Returns the raw bytes starting at the entry point, if they are in the file"""
        rva = self.optional_hdr.address_of_entry_point
        section = self.get_section_for_rva(rva)
        if not section:
            return None
        offset = rva - section.virtual_address
        if offset >= len(section.data):
            return None
        if size is None:
            return section.data[offset:]
        return section.data[offset : offset + size]

    def _json(self) -> Dict[str, Any]:
        return {
            "DosHdr": self.dos_hdr._json(),
            "CoffHdr": self.coff_hdr._json(),
            "OptionalHdr": self.optional_hdr._json(),
            "WindowsHdr": self.windows_hdr._json(),
            "DataDirectories": {
                str(key): value._json() for key, value in self.data_directories.items()
            },
            "Sections": [d._json() for d in self.sections],
        }

    def __str__(self) -> str:
        return json.dumps(self._json(), indent=4)
