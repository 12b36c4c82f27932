#!/usr/bin/python3
# -*- coding: utf-8 -*-
#
# Copyright (C) 2021 Richard Hughes <richard@hughsie.com>
#
# SPDX-License-Identifier: BSD-2-Clause-Patent

from enum import IntEnum
from typing import Optional, List, Sequence


class PeErrorKind(IntEnum):
    """The reason an image was rejected"""

    MALFORMED = 1
    UNSUPPORTED = 2
    INCONSISTENT = 3
    OUT_OF_BOUNDS = 4

    def __str__(self):
        return self.name.lower()


class PeErrorSeverity(IntEnum):
    """Whether an alternative parser may still be tried"""

    ERROR = 0
    FAILURE = 1

    def __str__(self):
        return self.name.lower()


def _hexdump(buf: bytes, offset: int, size: int = 128) -> List[str]:

    lines: List[str] = []
    chunk = buf[offset : offset + size]
    for idx in range(0, len(chunk), 16):
        row = chunk[idx : idx + 16]
        hexstr = " ".join("{:02X}".format(b) for b in row)
        text = "".join(chr(b) if 0x20 <= b < 0x7F else "." for b in row)
        lines.append("0x{:08X}  {}  {}".format(offset + idx, hexstr.ljust(47), text))
    return lines


class PeParseError(Exception):
    """Error for when a buffer cannot be decoded as a PE32 image.

    A single exception type is used for every failure; ``severity`` says if
    the error is recoverable (``ERROR``) or must abort the whole parse
    (``FAILURE``), and ``contexts`` is the chain of labels from the outermost
    parser to the innermost one.
    """

    def __init__(
        self,
        kind: PeErrorKind,
        offset: int,
        message: str = "",
        severity: PeErrorSeverity = PeErrorSeverity.ERROR,
        contexts: Optional[Sequence[str]] = None,
        state: Optional[str] = None,
    ):
        """Initializes PeParseError"""
        self.kind: PeErrorKind = kind
        """Error kind, e.g. ``PeErrorKind.MALFORMED``"""
        self.offset: int = offset
        """Byte offset into the buffer where the failing parser started"""
        self.message: str = message
        self.severity: PeErrorSeverity = severity
        self.contexts: List[str] = list(contexts or [])
        """Outer-to-inner context labels"""
        self.state: Optional[str] = state
        """The last image parse state that was reached, if any"""
        Exception.__init__(self, str(self))

    @property
    def fatal(self) -> bool:
        return self.severity == PeErrorSeverity.FAILURE

    def _copy(self, **kwargs) -> "PeParseError":
        values = {
            "kind": self.kind,
            "offset": self.offset,
            "message": self.message,
            "severity": self.severity,
            "contexts": self.contexts,
            "state": self.state,
        }
        values.update(kwargs)
        return PeParseError(**values)

    def with_context(self, label: str) -> "PeParseError":
        """Returns a copy with an outer context label"""
        return self._copy(contexts=[label] + self.contexts)

    def with_state(self, state: str) -> "PeParseError":
        """Returns a copy recording the last parse state reached"""
        return self._copy(state=state)

    def as_failure(self) -> "PeParseError":
        """Returns a copy that cannot be backtracked over"""
        if self.fatal:
            return self
        return self._copy(severity=PeErrorSeverity.FAILURE)

    def describe(self, buf: Optional[bytes] = None) -> str:
        """Returns a multi-line diagnostic, optionally with the data at the error"""

        lines: List[str] = [
            "{} {} at 0x{:X}: {}".format(
                self.severity, self.kind, self.offset, self.message or "no details"
            )
        ]
        if self.state:
            lines.append(f"last state: {self.state}")
        for context in self.contexts:
            lines.append(f"context: {context}")
        if buf is not None and self.offset < len(buf):
            lines.append("data at error:")
            lines.extend(_hexdump(buf, self.offset))
        return "\n".join(lines)

    def __str__(self) -> str:
        chain = " → ".join(self.contexts)
        if chain:
            chain += " "
        text = f"{chain}at 0x{self.offset:X}: {self.kind}"
        if self.message:
            text += f" ({self.message})"
        return text

    def __repr__(self) -> str:
        return (
            "PeParseError("
            + ", ".join(
                [
                    f"kind={self.kind.name}",
                    f"severity={self.severity.name}",
                    f"offset=0x{self.offset:X}",
                    f'contexts="{" → ".join(self.contexts)}"',
                ]
            )
            + ")"
        )
