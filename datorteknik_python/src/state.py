# state.py

# Copyright (C) 2024 the Datorteknik authors. License: GNU GPL Version 3

# This file is part of Datorteknik. Datorteknik is free software: you
# can redistribute it and/or modify it under the terms of the GNU
# General Public License as published by the Free Software Foundation,
# either version 3 of the License, or (at your option) any later
# version. Datorteknik is distributed in the hope that it will be
# useful, but WITHOUT ANY WARRANTY; without even the implied warranty
# of MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the GNU
# General Public License for more details. You should have received
# a copy of the GNU General Public License along with Datorteknik. If
# not, see <https://www.gnu.org/licenses/>.

# -------------------------------------------------------------------------
# state.py defines the key data structures around the datapath
# simulator: its configuration, its run status, and the layout and
# validation of exported snapshots.
# -------------------------------------------------------------------------

import json
import common
import architecture as arch

# -------------------------------------------------------------------------
# Run status
# -------------------------------------------------------------------------

# idle -> running <-> paused, and completed after the last statement.
# Only reset or loading a program leaves completed, apart from the
# restart performed by stepping past the end.

StatusIdle = "idle"
StatusRunning = "running"
StatusPaused = "paused"
StatusCompleted = "completed"

statuses = [StatusIdle, StatusRunning, StatusPaused, StatusCompleted]

# -------------------------------------------------------------------------
# Configuration
# -------------------------------------------------------------------------

class DatapathConfig:
    """Named options for a datapath simulator.

    memory_size     number of memory bytes, 1..256
    register_count  number of general registers, 1..16
    clock_interval  milliseconds between steps while running
    """

    option_names = ["memory_size", "register_count", "clock_interval"]

    def __init__(self, memory_size=arch.default_mem_size,
                 register_count=arch.default_register_count,
                 clock_interval=arch.default_clock_interval):
        if not is_int(memory_size) or not 1 <= memory_size <= arch.max_mem_size:
            raise ValueError(f"memory_size must be between 1 and {arch.max_mem_size}, got {memory_size!r}")
        if not is_int(register_count) or not 1 <= register_count <= arch.max_register_count:
            raise ValueError(f"register_count must be between 1 and {arch.max_register_count}, got {register_count!r}")
        if not is_int(clock_interval) or clock_interval <= 0:
            raise ValueError(f"clock_interval must be a positive number of milliseconds, got {clock_interval!r}")
        self.memory_size = memory_size
        self.register_count = register_count
        self.clock_interval = clock_interval

    def with_options(self, **options):
        unknown = [k for k in options if k not in self.option_names]
        if unknown:
            raise ValueError(f"unknown datapath option(s) {unknown}, expected {self.option_names}")
        merged = self.as_dict()
        merged.update(options)
        return DatapathConfig(**merged)

    def as_dict(self):
        return {
            "memory_size": self.memory_size,
            "register_count": self.register_count,
            "clock_interval": self.clock_interval
        }

    def __eq__(self, other):
        if not isinstance(other, DatapathConfig):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    def __repr__(self):
        return (f"DatapathConfig(memory_size={self.memory_size}, " +
                f"register_count={self.register_count}, clock_interval={self.clock_interval})")

# -------------------------------------------------------------------------
# Snapshots
# -------------------------------------------------------------------------

# A snapshot is a JSON object
#   {"microProgram": [...], "state": {...}, "presetName": name or null}
# The state fields are listed below with the checks applied on import.

byte_fields = ["pc", "ir", "mar", "mdr", "busA", "busB", "aluResult"]
flag_fields = ["aluFlags", "flags"]
trace_fields = ["step", "operation", "result"]

def is_byte(x):
    return isinstance(x, int) and not isinstance(x, bool) and 0 <= x <= arch.byte_mask

def is_int(x):
    return isinstance(x, int) and not isinstance(x, bool)

def check_flags(errors, name, d):
    if not isinstance(d, dict):
        errors.append(f"state.{name} must be an object")
        return
    for f in arch.flag_names:
        if not isinstance(d.get(f), bool):
            errors.append(f"state.{name}.{f} must be true or false")

def check_byte_list(errors, name, xs, n):
    if not isinstance(xs, list):
        errors.append(f"state.{name} must be a list")
    elif len(xs) != n:
        errors.append(f"state.{name} has {len(xs)} entries, expected {n}")
    elif not all(is_byte(x) for x in xs):
        errors.append(f"state.{name} entries must be bytes 0..255")

def check_trace(errors, xs):
    if not isinstance(xs, list):
        errors.append("state.executionTrace must be a list")
        return
    for i, e in enumerate(xs):
        if not isinstance(e, dict) or not is_int(e.get("step")) \
           or not isinstance(e.get("operation"), str) \
           or not isinstance(e.get("result"), str):
            errors.append(f"state.executionTrace[{i}] must have step, operation and result")
            return

def parse_snapshot(snapshot):
    """Accept a snapshot dict or its JSON text; return (dict, errors)."""
    if isinstance(snapshot, (str, bytes, bytearray)):
        try:
            snapshot = json.loads(snapshot)
        except ValueError as e:
            return None, [f"snapshot is not valid JSON: {e}"]
    if not isinstance(snapshot, dict):
        return None, ["snapshot must be a JSON object"]
    return snapshot, []

def validate_snapshot(snapshot, config):
    """Return the list of problems with a snapshot, empty if it is usable."""
    errors = []
    program = snapshot.get("microProgram")
    if not isinstance(program, list) or not all(isinstance(x, str) for x in program):
        errors.append("microProgram must be a list of strings")
    preset_name = snapshot.get("presetName")
    if preset_name is not None and not isinstance(preset_name, str):
        errors.append("presetName must be a string or null")
    st = snapshot.get("state")
    if not isinstance(st, dict):
        errors.append("state must be an object")
        return errors

    check_byte_list(errors, "registers", st.get("registers"), config.register_count)
    check_byte_list(errors, "memory", st.get("memory"), config.memory_size)
    for f in byte_fields:
        if not is_byte(st.get(f)):
            errors.append(f"state.{f} must be a byte 0..255")
    for f in flag_fields:
        check_flags(errors, f, st.get(f))
    step = st.get("currentStep")
    if not is_int(step) or step < 0:
        errors.append("state.currentStep must be a non-negative integer")
    elif isinstance(program, list) and step > len(program):
        errors.append(f"state.currentStep {step} is past the end of the program")
    if st.get("status") not in statuses:
        errors.append(f"state.status must be one of {statuses}")
    check_trace(errors, st.get("executionTrace"))

    if errors:
        common.mode.devlog(f"validate_snapshot found {len(errors)} problem(s)")
    return errors
