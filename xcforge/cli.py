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

import os
import sys
import importlib
import argparse

from xcforge import __version__
from xcforge.utils.context.namespace import CliNameSpace
from xcforge.utils.context.context import CliContext
from xcforge.utils.context.command import CliCommand

SCRIPT_PATH = os.path.split(os.path.realpath(__file__))[0]
PACKAGE_NAME = os.path.basename(SCRIPT_PATH)


# Root Class for Command Line Interface
class Cli(CliCommand):
    def description(self) -> str:
        return """XCFORGE - Create XCFrameworks out of Swift Packages

USAGE:
    xcforge <command> [options]

COMMANDS:
    build       Build, merge and optionally zip XCFrameworks
    products    List the products and targets that can be built

EXAMPLES:
    xcforge build                       # Build every library product
    xcforge build MyLib --zip           # Build and package one product
    xcforge products                    # Show what can be built

For more information on a specific command:
    xcforge <command> --help
        """

    def get_command_list(self) -> list:
        arr = []
        for command in os.listdir(os.path.join(SCRIPT_PATH, "commands")):
            if not command.startswith("_") and not command.startswith("test_") and command.endswith(".py"):
                arr.append(os.path.splitext(os.path.basename(command))[0])
        return sorted(arr)

    def _parser(self, add_help=True) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="xcforge",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
            add_help=add_help,
        )
        parser.add_argument(
            "subcommand",
            metavar=f"{self.get_command_list()}",
            type=str,
            nargs="?",
            choices=self.get_command_list(),
        )
        return parser

    def cli(self) -> CliNameSpace:
        # help for the main command only, `xcforge build --help` goes to the sub-command
        if len(sys.argv) == 2 and sys.argv[1] in ["--help", "-h"]:
            self._parser().print_help()
            sys.exit(0)
        if len(sys.argv) == 2 and sys.argv[1] == "--version":
            print(f"xcforge {__version__}")
            sys.exit(0)

        # parse only known args - this will NOT consume --help if present
        args, unknown = self._parser(add_help=False).parse_known_args()
        return args

    def exec(self, context: CliContext, args: CliNameSpace):
        if not args.subcommand:
            print("ERROR: No command specified\n")
            self._parser().print_help()
            sys.exit(1)

        module = importlib.import_module(f"{PACKAGE_NAME}.commands.{args.subcommand}")
        klass = getattr(module, args.subcommand.capitalize())
        sub_cmd = klass()
        sub_cmd.exec(context, sub_cmd.cli())


def main():
    cmd = Cli()
    cmd.exec(CliContext(), cmd.cli())


if __name__ == "__main__":
    main()
