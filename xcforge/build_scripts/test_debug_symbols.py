#!/usr/bin/env python3
"""
Tests for debug symbol discovery.

Run with: python3 -m pytest test_debug_symbols.py
"""

import os
import tempfile
import unittest
import uuid

from xcforge.build_scripts.debug_symbols import (
    DebugSymbolResolver,
    dsym_path,
    dwarf_path,
    parse_slice_identifiers,
)
from xcforge.utils.cmd.cmd_util import NonZeroExitError, command_name
from xcforge.utils.context.context import CliContext
from xcforge.utils.context.diagnostics import Diagnostics
from xcforge.utils.context.result import CliResult

UUID_A = "3F1B2C4D-0000-4000-8000-00000000000A"
UUID_B = "3F1B2C4D-0000-4000-8000-00000000000B"
UUID_C = "3F1B2C4D-0000-4000-8000-00000000000C"

DWARFDUMP_OUTPUT = (
    f"UUID: {UUID_A.lower()} (armv7) /tmp/MyLib\n"
    f"UUID: {UUID_B} (arm64) /tmp/MyLib\n"
    f"UUID: {UUID_C} (arm64e) /tmp/MyLib\n"
)


class FakeRunner:
    """Records commands and returns canned dwarfdump output."""

    def __init__(self, output=b"", code=0):
        self.output = output
        self.code = code
        self.commands = []

    def __call__(self, command, capture_output=False, timeout_second=None):
        self.commands.append(list(command))
        if self.code:
            return CliResult(error=NonZeroExitError(command_name(command), self.code))
        return CliResult(value=self.output)


class TestParseSliceIdentifiers(unittest.TestCase):
    def test_parses_every_uuid_line(self):
        identifiers = parse_slice_identifiers(DWARFDUMP_OUTPUT)

        self.assertEqual(identifiers, [uuid.UUID(UUID_A), uuid.UUID(UUID_B), uuid.UUID(UUID_C)])

    def test_lines_must_start_with_uuid(self):
        output = f"warning: no UUID: {UUID_A}\n  UUID: {UUID_B}\n"

        self.assertEqual(parse_slice_identifiers(output), [])

    def test_invalid_uuid_is_skipped(self):
        output = f"UUID: not-a-uuid (arm64)\nUUID: {UUID_A} (x86_64)\n"

        self.assertEqual(parse_slice_identifiers(output), [uuid.UUID(UUID_A)])

    def test_no_match_is_empty(self):
        self.assertEqual(parse_slice_identifiers(""), [])


class TestDebugSymbolResolver(unittest.TestCase):
    """Test the file discovery chain dSYM -> DWARF -> BCSymbolMaps."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.debug_dir = self.temp_dir.name
        self.target = "My-Lib"
        self.dsym = dsym_path(self.target, self.debug_dir)
        self.dwarf = dwarf_path(self.target, self.dsym)

    def tearDown(self):
        self.temp_dir.cleanup()

    def _resolver(self, runner):
        return DebugSymbolResolver(CliContext(Diagnostics(quiet=True), runner))

    def _touch(self, path):
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(b"")

    def test_paths_use_product_name(self):
        self.assertEqual(os.path.basename(self.dsym), "My_Lib.framework.dSYM")
        self.assertTrue(self.dwarf.endswith(os.path.join("Contents", "Resources", "DWARF", "My_Lib")))

    def test_no_dsym(self):
        runner = FakeRunner(DWARFDUMP_OUTPUT.encode())

        self.assertEqual(self._resolver(runner).resolve(self.target, self.debug_dir), [])
        self.assertEqual(runner.commands, [])

    def test_dsym_without_dwarf(self):
        os.makedirs(self.dsym)
        runner = FakeRunner(DWARFDUMP_OUTPUT.encode())

        self.assertEqual(self._resolver(runner).resolve(self.target, self.debug_dir), [self.dsym])
        self.assertEqual(runner.commands, [])

    def test_only_existing_symbol_maps(self):
        self._touch(self.dwarf)
        self._touch(os.path.join(self.debug_dir, f"{UUID_C}.bcsymbolmap"))
        self._touch(os.path.join(self.debug_dir, f"{UUID_A}.bcsymbolmap"))
        runner = FakeRunner(DWARFDUMP_OUTPUT.encode())

        files = self._resolver(runner).resolve(self.target, self.debug_dir)

        self.assertEqual(
            files,
            [
                self.dsym,
                os.path.join(self.debug_dir, f"{UUID_A}.bcsymbolmap"),
                os.path.join(self.debug_dir, f"{UUID_C}.bcsymbolmap"),
            ],
        )
        self.assertEqual(runner.commands, [["xcrun", "dwarfdump", "--uuid", self.dwarf]])

    def test_no_uuids_in_output(self):
        self._touch(self.dwarf)
        runner = FakeRunner(b"")

        self.assertEqual(self._resolver(runner).resolve(self.target, self.debug_dir), [self.dsym])

    def test_dwarfdump_failure_propagates(self):
        self._touch(self.dwarf)
        runner = FakeRunner(code=1)

        with self.assertRaises(NonZeroExitError) as context:
            self._resolver(runner).resolve(self.target, self.debug_dir)

        self.assertEqual(context.exception.command, "dwarfdump")


if __name__ == "__main__":
    unittest.main()
