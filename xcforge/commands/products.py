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
import argparse

from xcforge.utils.context.command import CliCommand
from xcforge.utils.context.context import CliContext
from xcforge.utils.context.errors import XcforgeError
from xcforge.utils.context.namespace import CliNameSpace
from xcforge.utils.package.package_info import PackageInfo


class Products(CliCommand):
    def description(self) -> str:
        return """Print the products and targets of a Swift Package that xcforge can build.

EXAMPLES:
    xcforge products
    xcforge products --package-path ../MyPackage
        """

    def cli(self, argv=None) -> CliNameSpace:
        parser = argparse.ArgumentParser(
            prog="xcforge products",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
        )
        parser.add_argument(
            "--package-path",
            default=".",
            metavar="directory",
            help="the location of the Package (default: .)",
        )
        if argv is None:
            module_name = os.path.splitext(os.path.basename(__file__))[0]
            argv = [x for x in sys.argv[1:] if x != module_name]
        args, unknown = parser.parse_known_args(argv)
        return args

    def exec(self, context: CliContext, args: CliNameSpace):
        try:
            package = PackageInfo.load(context, args.package_path)
        except XcforgeError as e:
            context.diagnostics.error(str(e))
            sys.exit(e.exit_code)
        package.print_all_products(context.diagnostics)
