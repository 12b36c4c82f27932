#!/usr/bin/python3
# -*- coding: utf-8 -*-
#
# Copyright (C) 2021 Richard Hughes <richard@hughsie.com>
#
# SPDX-License-Identifier: BSD-2-Clause-Patent

from pe32image.image import PeImage, PeParseState
from pe32image.dos_header import PeDosHeader
from pe32image.coff_header import PeCoffHeader
from pe32image.optional_header import (
    PeOptionalHeaderStandard,
    PeOptionalHeaderWindowsSpecific,
)
from pe32image.data_directory import PeDataDirectory, PeDataDirectoryType
from pe32image.section import PeSection, PeSectionHeader
from pe32image.cursor import PeCursor, PeParsable
from pe32image.flags import (
    PeFlags,
    PeCharacteristics,
    PeDllCharacteristics,
    PeSectionCharacteristics,
)
from pe32image.enums import (
    PeMachineType,
    PeOptionalHeaderMagic,
    PeSubsystem,
    PeFileFlag,
    PeCoffDllCharacteristics,
    PeSectionFlag,
    PeImageDirectoryEntry,
)
from pe32image.errors import PeParseError, PeErrorKind, PeErrorSeverity
