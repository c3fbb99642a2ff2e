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

from typing import Callable, Optional

from .diagnostics import Diagnostics


# This context data class to save the context of the command
class CliContext:
    """State threaded through one run of the pipeline.

    ``runner`` is the callable used to launch external processes; it has the
    signature of ``xcforge.utils.cmd.cmd_util.run_command`` and is replaced by
    a fake in tests. ``timeout_second`` applies to every command run through
    the context.
    """

    def __init__(
        self,
        diagnostics: Optional[Diagnostics] = None,
        runner: Optional[Callable] = None,
        xcrun: str = "xcrun",
        swift: str = "swift",
        ditto: str = "ditto",
        timeout_second: Optional[float] = None,
    ):
        self.diagnostics = diagnostics or Diagnostics()
        self.xcrun = xcrun
        self.swift = swift
        self.ditto = ditto
        self.timeout_second = timeout_second
        if runner is None:
            from ..cmd.cmd_util import run_command

            runner = run_command
        self._runner = runner

    def run(self, command, capture_output=False):
        """Run ``command`` and return the captured output, raising on failure."""
        self.diagnostics.command(list(command))
        return self._runner(
            command, capture_output=capture_output, timeout_second=self.timeout_second
        ).unwrap()
