#!/usr/bin/env python3
"""
Tests for the products command and the root command dispatch.

Run with: python3 -m pytest test_products.py
"""

import json
import os
import tempfile
import unittest

from xcforge.cli import Cli
from xcforge.commands.products import Products
from xcforge.utils.cmd.cmd_util import NonZeroExitError, command_name
from xcforge.utils.context.context import CliContext
from xcforge.utils.context.diagnostics import Diagnostics
from xcforge.utils.context.result import CliResult

DUMP = {
    "name": "MyPackage",
    "products": [{"name": "MyLib", "type": {"library": ["automatic"]}, "targets": ["MyLib"]}],
    "targets": [{"name": "MyLib", "type": "regular"}, {"name": "Support", "type": "regular"}],
}


class FakeSwift:
    def __init__(self, fail=False):
        self.fail = fail

    def __call__(self, command, capture_output=False, timeout_second=None):
        if self.fail:
            return CliResult(error=NonZeroExitError(command_name(command), 1))
        if "dump-package" in command:
            return CliResult(value=json.dumps(DUMP).encode())
        return CliResult(value=b'{"identity": "mypackage", "dependencies": []}')


class TestProducts(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.diagnostics = Diagnostics(quiet=True)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_prints_products(self):
        command = Products()
        args = command.cli(["--package-path", self.temp_dir.name])

        command.exec(CliContext(self.diagnostics, FakeSwift()), args)

        (message,) = self.diagnostics.messages("info")
        self.assertIn("Available MyPackage products:\n    MyLib", message)
        self.assertIn("Additional available targets:\n    Support", message)

    def test_swift_failure(self):
        command = Products()
        args = command.cli(["--package-path", self.temp_dir.name])

        with self.assertRaises(SystemExit) as context:
            command.exec(CliContext(self.diagnostics, FakeSwift(fail=True)), args)

        self.assertEqual(context.exception.code, 1)
        self.assertEqual(len(self.diagnostics.messages("error")), 1)


class TestCli(unittest.TestCase):
    def test_command_list(self):
        self.assertEqual(Cli().get_command_list(), ["build", "products"])


if __name__ == "__main__":
    unittest.main()
