#!/usr/bin/python3
# -*- coding: utf-8 -*-
#
# Copyright (C) 2021 Richard Hughes <richard@hughsie.com>
#
# SPDX-License-Identifier: BSD-2-Clause-Patent

from enum import IntEnum
from typing import ClassVar, Iterator, List, Optional, Type, Union

from .enums import (
    PeFileFlag,
    PeCoffDllCharacteristics,
    PeSectionFlag,
    PE_SECTION_ALIGN_MASK,
)


class PeFlags:
    """A set of named bits over a fixed-width integer.

    Unknown bits are always dropped when the set is created, so decoding a
    raw field can never fail.
    """

    _FLAGS: ClassVar[Type[IntEnum]]
    _MULTIBIT_MASK: ClassVar[int] = 0

    __slots__ = ("_value",)

    def __init__(self, value: int = 0):
        self._value: int = int(value) & self.all_bits()

    @classmethod
    def all_bits(cls) -> int:
        bits: int = 0
        for flag in cls._FLAGS:
            bits |= int(flag)
        return bits

    @classmethod
    def from_bits_truncate(cls, value: int) -> "PeFlags":
        return cls(value)

    @property
    def value(self) -> int:
        return self._value

    def contains(self, flag: Union[int, IntEnum, "PeFlags"]) -> bool:
        """Returns if every bit of ``flag`` is set"""
        bits = int(flag)
        multibit = bits & self._MULTIBIT_MASK
        if multibit and (self._value & self._MULTIBIT_MASK) != multibit:
            return False
        bits &= ~self._MULTIBIT_MASK
        return self._value & bits == bits

    def __contains__(self, flag: Union[int, IntEnum, "PeFlags"]) -> bool:
        return self.contains(flag)

    def __iter__(self) -> Iterator[IntEnum]:
        for flag in self._FLAGS:
            if self.contains(flag):
                yield flag

    @property
    def names(self) -> List[str]:
        return [flag.name for flag in self]

    def _coerce(self, other: object) -> Optional[int]:
        if isinstance(other, PeFlags):
            if not isinstance(other, type(self)):
                return None
            return other.value
        if isinstance(other, int):
            return int(other)
        return None

    def __or__(self, other: Union[int, IntEnum, "PeFlags"]) -> "PeFlags":
        bits = self._coerce(other)
        if bits is None:
            return NotImplemented
        return type(self)(self._value | bits)

    __ror__ = __or__

    def __and__(self, other: Union[int, IntEnum, "PeFlags"]) -> "PeFlags":
        bits = self._coerce(other)
        if bits is None:
            return NotImplemented
        return type(self)(self._value & bits)

    __rand__ = __and__

    def __eq__(self, other: object) -> bool:
        bits = self._coerce(other)
        if bits is None:
            return NotImplemented
        return self._value == bits

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._value))

    def __int__(self) -> int:
        return self._value

    def __index__(self) -> int:
        return self._value

    def __bool__(self) -> bool:
        return self._value != 0

    def __repr__(self) -> str:
        return "{}({})".format(type(self).__name__, "|".join(self.names) or "0")


class PeCharacteristics(PeFlags):
    """COFF file characteristics"""

    _FLAGS = PeFileFlag


class PeDllCharacteristics(PeFlags):
    """Optional header DLL characteristics"""

    _FLAGS = PeCoffDllCharacteristics


class PeSectionCharacteristics(PeFlags):
    """Section characteristics, including the alignment sub-field"""

    _FLAGS = PeSectionFlag
    _MULTIBIT_MASK = PE_SECTION_ALIGN_MASK

    @property
    def alignment(self) -> Optional[int]:
        """The requested alignment in bytes, or ``None`` if unset"""
        level = (self._value & PE_SECTION_ALIGN_MASK) >> 20
        if level == 0 or level > 14:
            return None
        return 1 << (level - 1)
