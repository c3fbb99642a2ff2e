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
Console diagnostics for xcforge.

Every stage reports through the ``Diagnostics`` instance carried by the
``CliContext`` instead of printing on its own, so a run can be silenced or
inspected from tests. Messages keep the banner/prefix style of the console
output: ``====`` banners around stages, ``⚠️  Warning:`` and ``ERROR:``.
"""

import sys
import time
from typing import List, Optional, TextIO, Tuple

BANNER_WIDTH = 80


class Diagnostics:
    """Collects and prints the messages of one xcforge run."""

    def __init__(self, stream: Optional[TextIO] = None, quiet: bool = False):
        self.stream = stream
        self.quiet = quiet
        self.records: List[Tuple[str, str]] = []

    def _emit(self, text: str):
        if self.quiet:
            return
        print(text, file=self.stream or sys.stdout, flush=True)

    def banner(self, title: str):
        self._emit("=" * BANNER_WIDTH)
        self._emit(title)
        self._emit("=" * BANNER_WIDTH)

    def info(self, message: str):
        self.records.append(("info", message))
        self._emit(message)

    def warning(self, message: str):
        self.records.append(("warning", message))
        self._emit(f"   ⚠️  Warning: {message}")

    def error(self, message: str):
        self.records.append(("error", message))
        self._emit(f"ERROR: {message}")

    def command(self, argv: List[str]):
        self.records.append(("command", " ".join(argv)))
        self._emit(f"$ {' '.join(argv)}")

    def messages(self, kind: str) -> List[str]:
        return [message for record_kind, message in self.records if record_kind == kind]

    def elapsed(self, start_time: float):
        """Print the time spent since ``start_time`` in a human-readable format."""
        elapsed = time.time() - start_time
        if elapsed < 60:
            self._emit(f"\n⏱ Completed in {elapsed:.2f} seconds")
        elif elapsed < 3600:
            minutes = int(elapsed // 60)
            seconds = elapsed % 60
            self._emit(f"\n⏱ Completed in {minutes} min {seconds:.1f} sec")
        else:
            hours = int(elapsed // 3600)
            minutes = int((elapsed % 3600) // 60)
            seconds = elapsed % 60
            self._emit(f"\n⏱ Completed in {hours} hr {minutes} min {seconds:.0f} sec")
