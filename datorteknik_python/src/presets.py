# presets.py

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
# presets.py holds the example micro-operation programs offered on the
# datapath page
# -------------------------------------------------------------------------

# Fetch an instruction: the address in PC goes to MAR, the byte at
# that address is read into MDR and copied to IR, then PC advances.

fetch_decode_execute = (
    "MAR ← PC",
    "MDR ← Mem[MAR]",
    "IR ← MDR",
    "PC ← PC + 1",
)

# Read the byte at PC and write it back to the next location

load_store = (
    "MAR ← PC",
    "MDR ← Mem[MAR]",
    "PC ← PC + 1",
    "MAR ← PC",
    "Mem[MAR] ← MDR",
)

# R[3] := R[1] + R[2], then R[4] := R[3] - R[2], then latch the flags

alu_operation = (
    "A ← R[1]",
    "B ← R[2]",
    "ALU ← A + B",
    "R[3] ← ALU",
    "A ← R[3]",
    "ALU ← A - B",
    "R[4] ← ALU",
    "FLAGS ← ALU.flags",
)

presets = {
    "fetch-decode-execute": (fetch_decode_execute,
                             "Fetch an instruction into IR and advance PC"),
    "load-store": (load_store,
                   "Copy the byte at PC to the following memory location"),
    "alu-operation": (alu_operation,
                      "Add and subtract registers through the ALU and latch the flags"),
}

def list_presets():
    return [(name, description) for name, (_, description) in presets.items()]

def get_preset(name):
    if name not in presets:
        raise KeyError(f"unknown preset {name!r}, expected one of {list(presets)}")
    return presets[name][0]
