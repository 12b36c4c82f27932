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
    cut,
    le_u16_array,
    le_u32,
    sequence,
    tag,
    unpack,
)
from .enums import PE_DOS_SIGNATURE


_parse_dos_header = context(
    "PeDosHeader",
    sequence(
        cut(tag(PE_DOS_SIGNATURE)),
        unpack("<HHHHHHHHHHHHH"),
        le_u16_array(4),
        unpack("<HH"),
        le_u16_array(10),
        le_u32,
    ),
)


@dataclass(frozen=True)
class PeDosHeader:
    """The legacy MS-DOS header at the start of every image"""

    e_cblp: int  # bytes on last page of file
    e_cp: int  # pages in file
    e_crlc: int  # relocations
    e_cparhdr: int  # size of header in paragraphs
    e_minalloc: int  # minimum extra paragraphs needed
    e_maxalloc: int  # maximum extra paragraphs needed
    e_ss: int  # initial (relative) SS value
    e_sp: int  # initial SP value
    e_csum: int  # checksum
    e_ip: int  # initial IP value
    e_cs: int  # initial (relative) CS value
    e_lfarlc: int  # file address of relocation table
    e_ovno: int  # overlay number
    e_res: Tuple[int, ...]  # reserved words
    e_oemid: int  # OEM ID
    e_oeminfo: int  # OEM info
    e_res2: Tuple[int, ...]  # more reserved words
    e_lfanew: int  # file address of EXE header

    @classmethod
    def parse(cls, cur: PeCursor) -> Tuple[PeCursor, "PeDosHeader"]:
        cur, (_, fields, e_res, (e_oemid, e_oeminfo), e_res2, e_lfanew) = (
            _parse_dos_header(cur)
        )
        return cur, cls(
            *fields,
            e_res=e_res,
            e_oemid=e_oemid,
            e_oeminfo=e_oeminfo,
            e_res2=e_res2,
            e_lfanew=e_lfanew,
        )

    def _json(self) -> Dict[str, Any]:
        return {
            "e_cblp": "0x{:04X}".format(self.e_cblp),
            "e_cp": "0x{:04X}".format(self.e_cp),
            "e_crlc": "0x{:04X}".format(self.e_crlc),
            "e_cparhdr": "0x{:04X}".format(self.e_cparhdr),
            "e_minalloc": "0x{:04X}".format(self.e_minalloc),
            "e_maxalloc": "0x{:04X}".format(self.e_maxalloc),
            "e_ss": "0x{:04X}".format(self.e_ss),
            "e_sp": "0x{:04X}".format(self.e_sp),
            "e_csum": "0x{:04X}".format(self.e_csum),
            "e_ip": "0x{:04X}".format(self.e_ip),
            "e_cs": "0x{:04X}".format(self.e_cs),
            "e_lfarlc": "0x{:04X}".format(self.e_lfarlc),
            "e_ovno": "0x{:04X}".format(self.e_ovno),
            "e_oemid": "0x{:04X}".format(self.e_oemid),
            "e_oeminfo": "0x{:04X}".format(self.e_oeminfo),
            "e_lfanew": "0x{:02X}".format(self.e_lfanew),
        }

    def __str__(self) -> str:
        return json.dumps(self._json(), indent=4)
