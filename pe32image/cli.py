#!/usr/bin/python3
# -*- coding: utf-8 -*-
#
# Copyright (C) 2021 Richard Hughes <richard@hughsie.com>
#
# SPDX-License-Identifier: BSD-2-Clause-Patent
#
# pylint: disable=wrong-import-position

from typing import List
import argparse
import os
import sys

from importlib import metadata as importlib_metadata
from importlib.metadata import PackageNotFoundError

sys.path.append(os.path.realpath("."))

from pe32image import PeImage, PeParseError


def _image_summary(image: PeImage) -> List[str]:

    lines: List[str] = [
        f"Machine:           {image.coff_hdr.machine}",
        f"Subsystem:         {image.windows_hdr.subsystem}",
        f"Characteristics:   {', '.join(image.coff_hdr.characteristics.names)}",
        f"DllCharacteristics: {', '.join(image.windows_hdr.dll_characteristics.names)}",
        f"ImageBase:         0x{image.image_base:08X}",
        f"EntryPoint:        0x{image.entry_point:08X}",
        f"SectionAlignment:  0x{image.windows_hdr.section_alignment:X}",
        f"FileAlignment:     0x{image.windows_hdr.file_alignment:X}",
    ]
    if image.data_directories:
        lines.append("Data directories:")
        for key, directory in image.data_directories.items():
            lines.append(
                f" - {str(key).ljust(16)} 0x{directory.virtual_address:08X} "
                f"size 0x{directory.size:X}"
            )
    return lines


def _section_summary(image: PeImage) -> List[str]:

    lines: List[str] = ["Sections:"]
    for section in image.sections:
        hdr = section.header
        lines.append(
            f" - {hdr.name.ljust(8)} VA 0x{hdr.virtual_address:08X} "
            f"VSZ 0x{hdr.virtual_size:X} RAW 0x{hdr.pointer_to_raw_data:X}+0x{hdr.size_of_raw_data:X} "
            f"BSS 0x{section.uninitialized_data_size:X} "
            f"[{', '.join(hdr.characteristics.names)}]"
        )
    return lines


def _entry_dump(image: PeImage, size: int) -> List[str]:

    blob = image.entry_point_data(size)
    if blob is None:
        return ["Entry point is not backed by section data"]
    return [
        "Entry point bytes:",
        " ".join("{:02X}".format(b) for b in blob),
    ]


def main():
    """Main entrypoint"""
    parser = argparse.ArgumentParser(
        prog="pe32image", description="Decode and validate PE32 images"
    )
    try:
        parser.add_argument(
            "--version",
            action="version",
            version="%(prog)s " + importlib_metadata.version("pe32image"),
        )
    except PackageNotFoundError:
        pass
    parser.add_argument(
        "--load",
        default=[],
        nargs="+",
        help="file to decode, e.g. .exe,.dll,.efi",
    )
    parser.add_argument(
        "--json",
        dest="json",
        default=False,
        action="store_true",
        help="Show all decoded headers as JSON",
    )
    parser.add_argument(
        "--sections",
        dest="sections",
        default=False,
        action="store_true",
        help="Show the section table",
    )
    parser.add_argument(
        "--entry",
        dest="entry",
        type=int,
        default=0,
        help="Show this many bytes from the entry point",
    )
    parser.add_argument(
        "--verbose",
        dest="verbose",
        default=False,
        action="store_true",
        help="Show verbose operation",
    )
    args = parser.parse_args()

    # sanity check
    if not args.load:
        print("Use pe32image --help for command line arguments")
        sys.exit(1)

    rc: int = 0
    for filepath in args.load:
        try:
            with open(filepath, "rb") as f:
                blob: bytes = f.read()
        except FileNotFoundError:
            print(f"{filepath} does not exist")
            sys.exit(1)
        if args.verbose:
            print(f"Loading {filepath} (0x{len(blob):X} bytes)")
        try:
            image = PeImage.parse(blob)
        except PeParseError as e:
            print(f"{filepath} is not a valid PE32 image:")
            print(e.describe(blob if args.verbose else None))
            rc = 2
            continue

        if args.json:
            print(str(image))
            continue
        print(f"{filepath}:")
        for line in _image_summary(image):
            print(line)
        if args.sections:
            for line in _section_summary(image):
                print(line)
        if args.entry:
            for line in _entry_dump(image, args.entry):
                print(line)

    # success
    sys.exit(rc)


if __name__ == "__main__":
    main()
