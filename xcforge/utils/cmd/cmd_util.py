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

import subprocess
from threading import Timer

from ..context.errors import XcforgeError
from ..context.result import CliResult

# commands launched through this prefix report the wrapped tool's name
LAUNCHER_PREFIX = "xcrun"

# shell convention for "command not found"
COMMAND_NOT_FOUND_CODE = 127


class ProcessError(XcforgeError):
    """An external command did not exit cleanly."""

    def __init__(self, command, message):
        super().__init__(message)
        self.command = command


class NonZeroExitError(ProcessError):
    def __init__(self, command, code):
        super().__init__(command, f"{command} exited with a non-zero code: {code}")
        self.code = code


class SignalExitError(ProcessError):
    def __init__(self, command, signal_number):
        super().__init__(command, f"{command} exited due to signal: {signal_number}")
        self.signal = signal_number


def command_name(command):
    """Name a command by its tool, looking through the ``xcrun`` launcher."""
    if not command:
        return "<command>"
    if command[0] == LAUNCHER_PREFIX and len(command) > 1:
        return command[1]
    return command[0]


def exit_error(command, returncode):
    """Convert a process return code into a ``ProcessError``, or None for 0."""
    if returncode == 0:
        return None
    name = command_name(command)
    if returncode < 0:
        return SignalExitError(name, -returncode)
    return NonZeroExitError(name, returncode)


def run_command(command, capture_output=False, timeout_second=None):
    """
    Run an external command and wait for it to finish.

    Args:
        command: Argument vector, the executable first
        capture_output: Return stdout bytes instead of streaming them to the terminal
        timeout_second: Kill the process after this many seconds (default: no limit)

    Returns:
        CliResult: value is the captured stdout (``b""`` when not captured),
        error is a ``ProcessError`` when the command failed
    """
    command = [str(arg) for arg in command]
    try:
        popen = subprocess.Popen(
            command,
            stdout=subprocess.PIPE if capture_output else None,
        )
    except OSError:
        return CliResult(error=NonZeroExitError(command_name(command), COMMAND_NOT_FOUND_CODE))

    timer = None
    if timeout_second:
        timer = Timer(timeout_second, lambda process: process.kill(), [popen])
    try:
        if timer:
            timer.start()
        stdout, _ = popen.communicate()
    finally:
        if timer:
            timer.cancel()

    error = exit_error(command, popen.returncode)
    if error:
        return CliResult(error=error)
    return CliResult(value=stdout or b"")

