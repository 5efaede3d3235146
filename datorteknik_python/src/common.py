# common.py

# Copyright (C) 2024 the Datorteknik authors. License: GNU GPL Version 3

# This file is part of Datorteknik. Datorteknik is free software: you
# can redistribute it and/or modify it under the terms of the GNU
# General Public License as published by the Free Software Foundation,
# either version 3 of the License, or (at your option) any later
# version. Datorteknik is distributed in the hope that it will be
# useful, but WITHOUT ANY WARRANTY; without even the implied warranty
# of MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the GNU
# General Public License for more details. You should have received a
# copy of the GNU General Public License along with Datorteknik. If
# not, see <https://www.gnu.org/licenses/>.

# ----------------------------------------------------------------------
# common.py
# ----------------------------------------------------------------------

def stacktrace():
    import traceback
    traceback.print_stack()

# The mode controls developer tracing and error output for every
# module. Tracing is off by default; the widgets and tests turn it on
# when they want to see what the ALU and the datapath are doing.

class Mode:
    def __init__(self):
        self.trace = False
        self.show_err = True

    def set_trace(self):
        self.trace = True

    def clear_trace(self):
        self.trace = False

    def set_show_err(self, b):
        self.show_err = b

    def devlog(self, xs):
        if self.trace:
            print(xs)

    def errlog(self, xs):
        if self.show_err:
            print(xs)

mode = Mode()

# ----------------------------------------------------------------------
# Logging error message
# ----------------------------------------------------------------------

def indicate_error(xs):
    print(f"\033[91m\033[1m{xs}\033[0m") # ANSI escape codes for red and bold
    stacktrace()

# ----------------------------------------------------------------------
# Dialogues with the user
# ----------------------------------------------------------------------

def modal_warning(msg):
    print(f"WARNING: {msg}")
