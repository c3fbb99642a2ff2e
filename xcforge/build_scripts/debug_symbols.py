#!/usr/bin/env python3
# -- coding: utf-8 --
#
# debug_symbols.py
# xcforge
#
# Copyright 2024 xcforge Project Authors. All rights reserved.
# Use of this source code is governed by a MIT-style
# license that can be found at
#
# https://opensource.org/license/MIT
#
# The above copyright notice and this permission
# notice shall be included in all copies or
# substantial portions of the Software.

"""
Debug symbol discovery for built frameworks.

xcodebuild never tells us where it put the debug output of an archive, so
the files are looked up by convention:

    <debug dir>/<Product>.framework.dSYM
    <debug dir>/<Product>.framework.dSYM/Contents/Resources/DWARF/<Product>
    <debug dir>/<UUID>.bcsymbolmap        (one per binary slice)

A missing file is never an error here: a variant may simply not produce
debug output, so discovery stops at the first file that is not there.
"""

import os
import re
import uuid
from typing import List

from xcforge.build_scripts.build_utils import decode_bytes, product_name

UUID_LINE_PATTERN = re.compile(r"^UUID: ([a-zA-Z0-9\-]+)", re.MULTILINE)

SYMBOL_MAP_EXTENSION = ".bcsymbolmap"


def dsym_path(target, debug_dir):
    return os.path.join(debug_dir, f"{product_name(target)}.framework.dSYM")


def dwarf_path(target, dsym):
    return os.path.join(dsym, "Contents", "Resources", "DWARF", product_name(target))


def parse_slice_identifiers(output: str) -> List[uuid.UUID]:
    """
    Parse the slice UUIDs out of ``dwarfdump --uuid`` output.

    Only lines starting with ``UUID: `` count. Text that does not parse as
    a UUID is skipped; no matching line yields an empty list.

    Example:
        parse_slice_identifiers(
            "UUID: 3F1B2C4D-0000-4000-8000-00000000000A (arm64) Foo\n"
        )
        # -> [UUID('3f1b2c4d-0000-4000-8000-00000000000a')]
    """
    identifiers = []
    for text in UUID_LINE_PATTERN.findall(output):
        try:
            identifiers.append(uuid.UUID(text))
        except ValueError:
            continue
    return identifiers


def symbol_map_name(identifier: uuid.UUID) -> str:
    return f"{str(identifier).upper()}{SYMBOL_MAP_EXTENSION}"


class DebugSymbolResolver:
    """Finds the dSYM bundle and BCSymbolMap files of a built framework."""

    def __init__(self, context):
        self.context = context

    def binary_slice_identifiers(self, binary):
        """Ask dwarfdump for the UUID of every slice in ``binary``."""
        command = [self.context.xcrun, "dwarfdump", "--uuid", binary]
        output = self.context.run(command, capture_output=True)
        return parse_slice_identifiers(decode_bytes(output or b""))

    def resolve(self, target, debug_dir):
        """
        Collect the debug symbol files of ``target`` in ``debug_dir``.

        Returns:
            list: Existing paths, the dSYM bundle first followed by the
            BCSymbolMap files in the order dwarfdump listed the slices.
            Empty when there is no dSYM bundle.

        Raises:
            ProcessError: if dwarfdump fails
        """
        dsym = dsym_path(target, debug_dir)
        if not os.path.exists(dsym):
            return []

        files = [dsym]

        dwarf = dwarf_path(target, dsym)
        if not os.path.exists(dwarf):
            return files

        for identifier in self.binary_slice_identifiers(dwarf):
            symbol_map = os.path.join(os.path.dirname(dsym), symbol_map_name(identifier))
            if os.path.exists(symbol_map) and symbol_map not in files:
                files.append(symbol_map)

        return files
