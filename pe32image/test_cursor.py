#!/usr/bin/python3
# -*- coding: utf-8 -*-
#
# Copyright (C) 2021 Richard Hughes <richard@hughsie.com>
#
# SPDX-License-Identifier: BSD-2-Clause-Patent
#
# pylint: disable=wrong-import-position,protected-access

import os
import sys
import unittest

# allows us to run this from the project root
sys.path.append(os.path.realpath("."))

from pe32image.cursor import (
    PeCursor,
    alt,
    context,
    count,
    cut,
    le_u8,
    le_u16,
    le_u16_array,
    le_u32,
    map_opt,
    map_value,
    sequence,
    skip_to,
    tag,
    take,
    verify,
)
from pe32image.errors import PeParseError, PeErrorKind, PeErrorSeverity


class TestCursor(unittest.TestCase):
    """Testcases for the parser primitives and combinators"""

    def test_integers(self):

        cur = PeCursor(b"\x01\x02\x03\x04\x05\x06\x07")
        cur, val = le_u8(cur)
        self.assertEqual(val, 0x01)
        cur, val = le_u16(cur)
        self.assertEqual(val, 0x0302)
        cur, val = le_u32(cur)
        self.assertEqual(val, 0x07060504)
        self.assertEqual(cur.offset, 7)
        self.assertEqual(cur.remaining, 0)

    def test_immutable(self):

        cur = PeCursor(b"\xAA\xBB")
        cur2, _ = le_u8(cur)
        self.assertEqual(cur.offset, 0)
        self.assertEqual(cur2.offset, 1)
        with self.assertRaises(AttributeError):
            cur.offset = 1  # type: ignore[misc]

    def test_truncated(self):

        cur = PeCursor(b"\x01\x02\x03", 1)
        with self.assertRaises(PeParseError) as cm:
            le_u32(cur)
        self.assertEqual(cm.exception.kind, PeErrorKind.MALFORMED)
        self.assertEqual(cm.exception.severity, PeErrorSeverity.FAILURE)
        self.assertEqual(cm.exception.offset, 1)

        with self.assertRaises(PeParseError) as cm:
            take(4)(cur)
        self.assertTrue(cm.exception.fatal)

        with self.assertRaises(PeParseError) as cm:
            le_u16_array(4)(PeCursor(b"\0" * 7))
        self.assertTrue(cm.exception.fatal)

    def test_take(self):

        cur, val = take(3)(PeCursor(b"abcdef", 2))
        self.assertEqual(val, b"cde")
        self.assertIsInstance(val, bytes)
        self.assertEqual(cur.offset, 5)

        _, val = le_u16_array(2)(PeCursor(b"\x01\x00\x02\x00"))
        self.assertEqual(val, (1, 2))

    def test_tag(self):

        cur, val = tag(b"MZ")(PeCursor(b"MZ\x90\x00"))
        self.assertEqual(val, b"MZ")
        self.assertEqual(cur.offset, 2)

        # a mismatch can be backtracked over
        with self.assertRaises(PeParseError) as cm:
            tag(b"MZ")(PeCursor(b"ZM\x90\x00"))
        self.assertEqual(cm.exception.kind, PeErrorKind.MALFORMED)
        self.assertFalse(cm.exception.fatal)

        # unless it is cut
        with self.assertRaises(PeParseError) as cm:
            cut(tag(b"MZ"))(PeCursor(b"ZM\x90\x00"))
        self.assertTrue(cm.exception.fatal)

    def test_alt(self):

        parser = alt(tag(b"MZ"), tag(b"ZM"))
        _, val = parser(PeCursor(b"ZM"))
        self.assertEqual(val, b"ZM")

        # fatal errors are never retried
        parser = alt(cut(tag(b"MZ")), tag(b"ZM"))
        with self.assertRaises(PeParseError) as cm:
            parser(PeCursor(b"ZM"))
        self.assertTrue(cm.exception.fatal)

        # the last recoverable error is raised
        with self.assertRaises(PeParseError) as cm:
            alt(tag(b"MZ"), tag(b"PE"))(PeCursor(b"ZM"))
        self.assertIn("PE", cm.exception.message)

    def test_skip_to(self):

        cur, _ = skip_to(4)(PeCursor(b"\0" * 8, 1))
        self.assertEqual(cur.offset, 4)
        cur, _ = skip_to(8)(PeCursor(b"\0" * 8))
        self.assertEqual(cur.remaining, 0)
        with self.assertRaises(PeParseError) as cm:
            skip_to(9)(PeCursor(b"\0" * 8))
        self.assertTrue(cm.exception.fatal)

    def test_sequence_count(self):

        cur, val = sequence(le_u8, le_u16, take(1))(PeCursor(b"\x01\x02\x03\x04"))
        self.assertEqual(val, (1, 0x0302, b"\x04"))
        self.assertEqual(cur.remaining, 0)

        cur, val = count(le_u16, 3)(PeCursor(b"\x01\x00\x02\x00\x03\x00\xFF"))
        self.assertEqual(val, [1, 2, 3])
        self.assertEqual(cur.offset, 6)

        _, val = count(le_u16, 0)(PeCursor(b""))
        self.assertEqual(val, [])

    def test_map_verify(self):

        _, val = map_value(le_u8, lambda v: v * 2)(PeCursor(b"\x02"))
        self.assertEqual(val, 4)

        parser = map_opt(
            le_u8, lambda v: None if v > 1 else v, PeErrorKind.UNSUPPORTED
        )
        _, val = parser(PeCursor(b"\x00"))
        self.assertEqual(val, 0)
        with self.assertRaises(PeParseError) as cm:
            parser(PeCursor(b"\x00\x05", 1))
        self.assertEqual(cm.exception.kind, PeErrorKind.UNSUPPORTED)
        self.assertEqual(cm.exception.offset, 1)
        self.assertFalse(cm.exception.fatal)

        parser = verify(le_u16, lambda v: v % 2 == 0, PeErrorKind.INCONSISTENT)
        _, val = parser(PeCursor(b"\x02\x00"))
        self.assertEqual(val, 2)
        with self.assertRaises(PeParseError) as cm:
            parser(PeCursor(b"\x03\x00"))
        self.assertEqual(cm.exception.kind, PeErrorKind.INCONSISTENT)

    def test_context(self):

        parser = context("outer", sequence(le_u8, context("inner", le_u32)))
        with self.assertRaises(PeParseError) as cm:
            parser(PeCursor(b"\x01\x02"))
        self.assertEqual(cm.exception.contexts, ["outer", "inner"])
        self.assertEqual(cm.exception.offset, 1)
        self.assertIn("outer → inner", str(cm.exception))

    def test_describe(self):

        buf = b"MZ" + bytes(range(0x20, 0x40))
        with self.assertRaises(PeParseError) as cm:
            context("PeDosHeader", cut(tag(b"PE")))(PeCursor(buf))
        text = cm.exception.describe(buf)
        self.assertIn("context: PeDosHeader", text)
        self.assertIn("0x00000000  4D 5A 20 21", text)
        self.assertNotIn("data at error", cm.exception.describe())


if __name__ == "__main__":
    unittest.main()
