#!/usr/bin/python3
# -*- coding: utf-8 -*-
#
# Copyright (C) 2021 Richard Hughes <richard@hughsie.com>
#
# SPDX-License-Identifier: BSD-2-Clause-Patent

from dataclasses import dataclass
from typing import Dict, Any, Optional, Tuple

import json

from .cursor import PeCursor, context, count, unpack
from .enums import PeImageDirectoryEntry

_parse_data_directory = context("PeDataDirectory", unpack("<LL"))


@dataclass(frozen=True)
class PeDataDirectory:
    """The location of a table the loader uses, by RVA and size"""

    virtual_address: int
    size: int

    @classmethod
    def parse(cls, cur: PeCursor) -> Tuple[PeCursor, "PeDataDirectory"]:
        cur, (virtual_address, size) = _parse_data_directory(cur)
        return cur, cls(virtual_address, size)

    def _json(self) -> Dict[str, Any]:
        return {
            "VirtualAddress": "0x{:X}".format(self.virtual_address),
            "Size": "0x{:02X}".format(self.size),
        }

    def __str__(self) -> str:
        return json.dumps(self._json(), indent=4)


@dataclass(frozen=True)
class PeDataDirectoryType:
    """The key of a data directory, which is either well known or just an index"""

    index: int
    entry: Optional[PeImageDirectoryEntry] = None

    @classmethod
    def from_index(cls, index: int) -> "PeDataDirectoryType":
        """Never fails; unknown indexes are kept as-is"""
        try:
            return cls(index, PeImageDirectoryEntry(index))
        except ValueError:
            return cls(index)

    @property
    def known(self) -> bool:
        return self.entry is not None

    def __str__(self) -> str:
        if self.entry is not None:
            return str(self.entry)
        return f"unknown-{self.index}"


def parse_data_directories(
    cur: PeCursor, number_of_rva_and_sizes: int
) -> Tuple[PeCursor, Dict[PeDataDirectoryType, PeDataDirectory]]:
    """Parses the directory table, dropping any entry with no size"""

    # a huge count fails on the first entry past the end of the buffer
    number = min(number_of_rva_and_sizes, cur.remaining // 8 + 1)
    cur, entries = context(
        "Parse data directories",
        count(PeDataDirectory.parse, number),
    )(cur)
    directories: Dict[PeDataDirectoryType, PeDataDirectory] = {}
    for index, entry in enumerate(entries):
        if entry.size == 0:
            continue
        directories[PeDataDirectoryType.from_index(index)] = entry
    return cur, directories
