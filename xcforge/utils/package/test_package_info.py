#!/usr/bin/env python3
"""
Tests for the Swift package model.

Run with: python3 -m pytest test_package_info.py
"""

import json
import os
import tempfile
import unittest

from xcforge.build_scripts.platforms import TargetPlatform
from xcforge.utils.cmd.cmd_util import NonZeroExitError, command_name
from xcforge.utils.context.context import CliContext
from xcforge.utils.context.diagnostics import Diagnostics
from xcforge.utils.context.result import CliResult
from xcforge.utils.package.package_info import (
    EXIT_VALIDATION_ERROR,
    ManifestError,
    Manifest,
    PackageInfo,
    ValidationError,
    WorkspaceState,
    package_identity,
)

ROOT_DUMP = {
    "name": "MyPackage",
    "platforms": [
        {"platformName": "ios", "version": "13.0", "options": []},
        {"platformName": "macos", "version": "10.15", "options": []},
    ],
    "products": [
        {"name": "MyLib", "type": {"library": ["automatic"]}, "targets": ["MyLib"]},
        {"name": "my-tool", "type": {"executable": None}, "targets": ["Tool"]},
    ],
    "targets": [
        {"name": "MyLib", "type": "regular"},
        {"name": "Internal", "type": "regular"},
        {"name": "Tool", "type": "executable"},
        {"name": "MyLibTests", "type": "test"},
    ],
}

NIO_DUMP = {
    "name": "swift-nio",
    "products": [{"name": "NIO", "type": {"library": ["automatic"]}, "targets": ["NIO"]}],
    "targets": [{"name": "NIO", "type": "regular"}, {"name": "NIOCore", "type": "regular"}],
}

RESOLVED_V1 = {
    "object": {
        "pins": [
            {
                "package": "swift-nio",
                "repositoryURL": "https://github.com/apple/swift-nio.git",
                "state": {"branch": None, "revision": "abc", "version": "2.40.0"},
            },
            {
                "package": "Edge",
                "repositoryURL": "https://github.com/example/Edge.git",
                "state": {"branch": "main", "revision": "def", "version": None},
            },
        ]
    },
    "version": 1,
}

RESOLVED_V2 = {
    "pins": [
        {
            "identity": "swift-nio",
            "kind": "remoteSourceControl",
            "location": "https://github.com/apple/swift-nio.git",
            "state": {"revision": "abc", "version": "2.41.1"},
        }
    ],
    "version": 2,
}


class FakeSwift:
    """Answers ``swift package`` commands from canned JSON keyed by package path."""

    def __init__(self, dumps, tree):
        self.dumps = dumps
        self.tree = tree
        self.commands = []

    def __call__(self, command, capture_output=False, timeout_second=None):
        command = list(command)
        self.commands.append(command)
        path = command[command.index("--package-path") + 1]
        if "dump-package" in command:
            if path not in self.dumps:
                return CliResult(error=NonZeroExitError(command_name(command), 1))
            return CliResult(value=json.dumps(self.dumps[path]).encode())
        if "show-dependencies" in command:
            return CliResult(value=json.dumps(self.tree).encode())
        return CliResult(error=NonZeroExitError(command_name(command), 1))


class TestManifest(unittest.TestCase):
    def test_from_dump(self):
        manifest = Manifest.from_dump(ROOT_DUMP)

        self.assertEqual(manifest.name, "MyPackage")
        self.assertEqual(manifest.library_product_names, ["MyLib"])
        self.assertEqual(manifest.targets, ["MyLib", "Internal"])
        self.assertEqual(manifest.platforms, ["ios", "macos"])

    def test_missing_sections(self):
        manifest = Manifest.from_dump({"name": "Bare", "platforms": None})

        self.assertEqual(manifest.products, [])
        self.assertEqual(manifest.platforms, [])


class TestWorkspaceState(unittest.TestCase):
    def test_resolved_v1(self):
        state = WorkspaceState.from_resolved(json.dumps(RESOLVED_V1))

        self.assertEqual(state.get("swift-nio").version, "2.40.0")
        self.assertIsNone(state.get("edge").version)
        self.assertIsNone(state.get("missing"))

    def test_resolved_v2(self):
        state = WorkspaceState.from_resolved(json.dumps(RESOLVED_V2).encode())

        self.assertEqual(state.get("swift-nio").version, "2.41.1")

    def test_invalid_json(self):
        with self.assertRaises(ManifestError):
            WorkspaceState.from_resolved("{not json")

    def test_package_identity(self):
        self.assertEqual(package_identity("https://github.com/apple/swift-nio.git"), "swift-nio")
        self.assertEqual(package_identity("/Users/me/Code/MyPackage/"), "mypackage")


class TestPackageInfoLoad(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = os.path.join(self.temp_dir.name, "MyPackage")
        self.nio = os.path.join(self.root, ".build", "checkouts", "swift-nio")
        os.makedirs(self.nio)
        self.tree = {
            "identity": "mypackage",
            "name": "MyPackage",
            "url": self.root,
            "version": "unspecified",
            "path": self.root,
            "dependencies": [
                {
                    "identity": "swift-nio",
                    "name": "swift-nio",
                    "url": "https://github.com/apple/swift-nio.git",
                    "version": "2.39.0",
                    "path": self.nio,
                    "dependencies": [],
                },
                {
                    "name": "Gone",
                    "url": "https://github.com/example/Gone.git",
                    "version": "unspecified",
                    "path": os.path.join(self.root, "missing"),
                    "dependencies": [],
                },
            ],
        }
        self.swift = FakeSwift({self.root: ROOT_DUMP, self.nio: NIO_DUMP}, self.tree)
        self.context = CliContext(Diagnostics(quiet=True), self.swift)

    def tearDown(self):
        self.temp_dir.cleanup()

    def load(self, **kwargs):
        return PackageInfo.load(self.context, self.root, **kwargs)

    def test_graph(self):
        package = self.load()

        self.assertEqual([p.identity for p in package.graph.packages], ["mypackage", "swift-nio", "gone"])
        self.assertTrue(package.graph.root.is_root)
        self.assertEqual(package.graph.package_for_target("NIOCore").identity, "swift-nio")
        self.assertEqual(package.graph.package_for_target("Internal").identity, "mypackage")
        self.assertIsNone(package.graph.package_for_target("Nope"))
        self.assertEqual(package.graph.packages[2].targets, [])

    def test_versions_from_tree(self):
        package = self.load()

        self.assertEqual(package.workspace_state.get("swift-nio").version, "2.39.0")
        self.assertIsNone(package.workspace_state.get("mypackage"))
        self.assertIsNone(package.workspace_state.get("gone"))

    def test_package_resolved_wins(self):
        with open(os.path.join(self.root, "Package.resolved"), "w") as f:
            json.dump(RESOLVED_V2, f)

        package = self.load()

        self.assertEqual(package.workspace_state.get("swift-nio").version, "2.41.1")

    def test_dump_failure_propagates(self):
        self.swift.dumps.pop(self.nio)

        with self.assertRaises(NonZeroExitError) as context:
            self.load()

        self.assertEqual(context.exception.command, "swift")

    def test_directories(self):
        package = self.load(build_path="out", xcconfig="./Config/Overrides.xcconfig")

        self.assertEqual(package.build_directory, os.path.join(self.root, "out"))
        self.assertEqual(package.project_build_directory, os.path.join(self.root, "out", "xcforge"))
        self.assertEqual(
            package.distribution_xcconfig,
            os.path.join(self.root, "out", "xcforge", "Distribution.xcconfig"),
        )
        self.assertEqual(
            package.overrides_xcconfig,
            os.path.join(self.root, "Config/Overrides.xcconfig"),
        )

    def test_absolute_xcconfig(self):
        package = self.load(xcconfig="/etc/Overrides.xcconfig")

        self.assertEqual(package.overrides_xcconfig, "/etc/Overrides.xcconfig")

    def test_supported_platforms(self):
        package = self.load()

        self.assertEqual(
            package.supported_platforms([TargetPlatform.TVOS, TargetPlatform.IOS]),
            [TargetPlatform.IOS],
        )


class TestProductValidation(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        root = self.temp_dir.name
        nio = os.path.join(root, "nio")
        os.makedirs(nio)
        tree = {
            "identity": "mypackage",
            "dependencies": [{"identity": "swift-nio", "name": "swift-nio", "path": nio, "dependencies": []}],
        }
        context = CliContext(Diagnostics(quiet=True), FakeSwift({root: ROOT_DUMP, nio: NIO_DUMP}, tree))
        self.package = PackageInfo.load(context, root)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_defaults_to_library_products(self):
        self.assertEqual(self.package.valid_product_names(), ["MyLib"])

    def test_targets_are_valid(self):
        self.assertEqual(self.package.valid_product_names(["NIOCore", "Internal"]), ["NIOCore", "Internal"])

    def test_invalid_names_list_alternatives(self):
        with self.assertRaises(ValidationError) as context:
            self.package.valid_product_names(["MyLib", "Bogus"])

        message = str(context.exception)
        self.assertEqual(context.exception.exit_code, EXIT_VALIDATION_ERROR)
        self.assertIn("Invalid product/target name(s):\n    Bogus", message)
        self.assertIn("Available MyPackage products:\n    MyLib", message)
        self.assertIn("Additional available targets:\n    Internal\n    NIO\n    NIOCore", message)

    def test_no_products(self):
        self.package.manifest.products = []

        with self.assertRaises(ValidationError) as context:
            self.package.valid_product_names()

        self.assertIn("No products to create frameworks for were found", str(context.exception))

    def test_print_all_products(self):
        diagnostics = Diagnostics(quiet=True)

        self.package.print_all_products(diagnostics)

        self.assertIn("Available MyPackage products", diagnostics.messages("info")[0])


if __name__ == "__main__":
    unittest.main()
