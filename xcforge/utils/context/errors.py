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

"""Base error type for everything xcforge raises on purpose."""


class XcforgeError(Exception):
    """An error that aborts the current xcforge run.

    ``exit_code`` is the process status the command line exits with when the
    error reaches it.
    """

    exit_code = 1
