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
from .enums import PeMachineType
from .errors import PeErrorKind
from .flags import PeCharacteristics

parse_machine_type = context(
    "PeMachineType",
    map_opt(
        le_u16,
        PeMachineType.from_code,
        PeErrorKind.UNSUPPORTED,
        "unknown machine type",
    ),
)

parse_characteristics = context(
    "PeCharacteristics",
    map_value(le_u16, PeCharacteristics.from_bits_truncate),
)

_parse_coff_header = context(
    "PeCoffHeader",
    sequence(
        parse_machine_type,
        unpack("<HLLLH"),
        parse_characteristics,
    ),
)


@dataclass(frozen=True)
class PeCoffHeader:
    """The COFF file header that follows the ``PE\\0\\0`` signature"""

    machine: PeMachineType
    number_of_sections: int
    time_date_stamp: int
    pointer_to_symbol_table: int
    number_of_symbols: int
    size_of_optional_header: int
    characteristics: PeCharacteristics

    @classmethod
    def parse(cls, cur: PeCursor) -> Tuple[PeCursor, "PeCoffHeader"]:
        cur, (machine, fields, characteristics) = _parse_coff_header(cur)
        return cur, cls(machine, *fields, characteristics=characteristics)

    def _json(self) -> Dict[str, Any]:
        return {
            "Machine": str(self.machine),
            "NumberOfSections": "0x{:02X}".format(self.number_of_sections),
            "TimeDateStamp": "0x{:X}".format(self.time_date_stamp),
            "PointerToSymbolTable": "0x{:X}".format(self.pointer_to_symbol_table),
            "NumberOfSymbols": "0x{:X}".format(self.number_of_symbols),
            "SizeOfOptionalHeader": "0x{:X}".format(self.size_of_optional_header),
            "Characteristics": self.characteristics.names,
        }

    def __str__(self) -> str:
        return json.dumps(self._json(), indent=4)
