#!/usr/bin/python3
# -*- coding: utf-8 -*-
#
# Copyright (C) 2021 Richard Hughes <richard@hughsie.com>
#
# SPDX-License-Identifier: BSD-2-Clause-Patent
#
# pylint: disable=invalid-name

"""Parser combinators over an immutable byte cursor.

A parser is any callable taking a ``PeCursor`` and returning a tuple of the
cursor for the unconsumed remainder and the decoded value. Failures raise
``PeParseError``; only errors with ``PeErrorSeverity.ERROR`` may be
backtracked over by ``alt()``.
"""

from struct import unpack_from, calcsize
from typing import Any, Callable, List, Optional, Protocol, Tuple, TypeVar, Union

from .errors import PeParseError, PeErrorKind, PeErrorSeverity

T = TypeVar("T")
U = TypeVar("U")


class PeCursor:
    """A read position inside a complete, immutable buffer"""

    __slots__ = ("_buf", "_offset")

    def __init__(self, buf: Union[bytes, bytearray, memoryview], offset: int = 0):
        if not isinstance(buf, memoryview):
            buf = memoryview(buf)
        if offset < 0 or offset > len(buf):
            raise ValueError(f"offset 0x{offset:X} outside buffer")
        self._buf: memoryview = buf
        self._offset: int = offset

    @property
    def buf(self) -> memoryview:
        return self._buf

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._buf) - self._offset

    def at(self, offset: int) -> "PeCursor":
        """Returns a cursor over the same buffer at an absolute offset"""
        return PeCursor(self._buf, offset)

    def advance(self, size: int) -> "PeCursor":
        return PeCursor(self._buf, self._offset + size)

    def __len__(self) -> int:
        return self.remaining

    def __repr__(self) -> str:
        return f"PeCursor(offset=0x{self._offset:X},remaining=0x{self.remaining:X})"


Parser = Callable[[PeCursor], Tuple[PeCursor, T]]


class PeParsable(Protocol):
    """Anything that can decode itself from a cursor"""

    @classmethod
    def parse(cls, cur: PeCursor) -> Tuple[PeCursor, Any]:
        ...


def _need(cur: PeCursor, size: int) -> None:
    if cur.remaining < size:
        raise PeParseError(
            PeErrorKind.MALFORMED,
            cur.offset,
            f"need 0x{size:X} bytes, only 0x{cur.remaining:X} remaining",
            severity=PeErrorSeverity.FAILURE,
        )


def unpack(fmt: str) -> Parser[Tuple[Any, ...]]:
    """Reads a fixed-size struct, e.g. ``"<HHL"``"""

    size = calcsize(fmt)

    def parser(cur: PeCursor) -> Tuple[PeCursor, Tuple[Any, ...]]:
        _need(cur, size)
        return cur.advance(size), unpack_from(fmt, cur.buf, cur.offset)

    return parser


def _scalar(fmt: str) -> Parser[int]:

    inner = unpack(fmt)

    def parser(cur: PeCursor) -> Tuple[PeCursor, int]:
        cur, (value,) = inner(cur)
        return cur, value

    return parser


le_u8: Parser[int] = _scalar("<B")
le_u16: Parser[int] = _scalar("<H")
le_u32: Parser[int] = _scalar("<L")


def le_u16_array(n: int) -> Parser[Tuple[int, ...]]:
    """Reads a fixed number of little-endian words"""
    return unpack(f"<{n}H")


def take(size: int) -> Parser[bytes]:
    """Copies a fixed-length slice"""

    def parser(cur: PeCursor) -> Tuple[PeCursor, bytes]:
        _need(cur, size)
        return cur.advance(size), cur.buf[cur.offset : cur.offset + size].tobytes()

    return parser


def tag(literal: bytes) -> Parser[bytes]:
    """Matches a literal; a mismatch is recoverable, running out of data is not"""

    def parser(cur: PeCursor) -> Tuple[PeCursor, bytes]:
        _need(cur, len(literal))
        if cur.buf[cur.offset : cur.offset + len(literal)] != literal:
            raise PeParseError(PeErrorKind.MALFORMED, cur.offset, f"expected {literal!r}")
        return cur.advance(len(literal)), literal

    return parser


def skip_to(offset: int) -> Parser[None]:
    """Moves to an absolute offset in the buffer"""

    def parser(cur: PeCursor) -> Tuple[PeCursor, None]:
        if offset > len(cur.buf):
            raise PeParseError(
                PeErrorKind.MALFORMED,
                cur.offset,
                f"offset 0x{offset:X} is beyond the end of the buffer",
                severity=PeErrorSeverity.FAILURE,
            )
        return cur.at(offset), None

    return parser


def sequence(*parsers: Parser[Any]) -> Parser[Tuple[Any, ...]]:
    def parser(cur: PeCursor) -> Tuple[PeCursor, Tuple[Any, ...]]:
        values: List[Any] = []
        for inner in parsers:
            cur, value = inner(cur)
            values.append(value)
        return cur, tuple(values)

    return parser


def count(inner: Parser[T], n: int) -> Parser[List[T]]:
    def parser(cur: PeCursor) -> Tuple[PeCursor, List[T]]:
        values: List[T] = []
        for _ in range(n):
            cur, value = inner(cur)
            values.append(value)
        return cur, values

    return parser


def map_value(inner: Parser[T], func: Callable[[T], U]) -> Parser[U]:
    def parser(cur: PeCursor) -> Tuple[PeCursor, U]:
        cur, value = inner(cur)
        return cur, func(value)

    return parser


def map_opt(
    inner: Parser[T],
    func: Callable[[T], Optional[U]],
    kind: PeErrorKind,
    message: str = "",
) -> Parser[U]:
    """Like ``map_value()`` but a ``None`` result is an error at the start offset"""

    def parser(cur: PeCursor) -> Tuple[PeCursor, U]:
        rest, value = inner(cur)
        result = func(value)
        if result is None:
            raise PeParseError(kind, cur.offset, message or f"invalid value {value!r}")
        return rest, result

    return parser


def verify(
    inner: Parser[T],
    predicate: Callable[[T], bool],
    kind: PeErrorKind,
    message: str = "",
) -> Parser[T]:
    def parser(cur: PeCursor) -> Tuple[PeCursor, T]:
        rest, value = inner(cur)
        if not predicate(value):
            raise PeParseError(kind, cur.offset, message or "verification failed")
        return rest, value

    return parser


def context(label: str, inner: Parser[T]) -> Parser[T]:
    """Adds a label to any error raised by the inner parser"""

    def parser(cur: PeCursor) -> Tuple[PeCursor, T]:
        try:
            return inner(cur)
        except PeParseError as e:
            raise e.with_context(label) from None

    return parser


def cut(inner: Parser[T]) -> Parser[T]:
    """Prevents any alternative from being tried once the inner parser fails"""

    def parser(cur: PeCursor) -> Tuple[PeCursor, T]:
        try:
            return inner(cur)
        except PeParseError as e:
            raise e.as_failure() from None

    return parser


def alt(*parsers: Parser[Any]) -> Parser[Any]:
    """Returns the result of the first parser that succeeds"""

    def parser(cur: PeCursor) -> Tuple[PeCursor, Any]:
        error: Optional[PeParseError] = None
        for inner in parsers:
            try:
                return inner(cur)
            except PeParseError as e:
                if e.fatal:
                    raise
                error = e
        if error:
            raise error
        raise PeParseError(PeErrorKind.MALFORMED, cur.offset, "no alternatives")

    return parser
