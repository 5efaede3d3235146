# microops.py

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

# ----------------------------------------------------------------------
# microops.py parses micro-operation statements such as "MAR ← PC"
# into MicroOp records. Parsing happens once, when a program is
# loaded; the datapath then dispatches on the kind of each record.
# ----------------------------------------------------------------------

import re
import common
import architecture as arch

# ----------------------------------------------------------------------
# Parsed statement
# ----------------------------------------------------------------------

class MicroOp:
    def __init__(self, kind, text, reg=None):
        self.kind = kind
        self.text = text
        self.reg = reg

    def is_unknown(self):
        return self.kind == arch.mop_unknown

    def __eq__(self, other):
        if not isinstance(other, MicroOp):
            return NotImplemented
        return (self.kind, self.reg, self.text) == (other.kind, other.reg, other.text)

    def __repr__(self):
        r = "" if self.reg is None else f", reg={self.reg}"
        return f"MicroOp({self.kind!r}, {self.text!r}{r})"

# ----------------------------------------------------------------------
# Statement normalisation
# ----------------------------------------------------------------------

# Statements are matched case-insensitively and without whitespace,
# so "mar <- pc", "MAR←PC" and "MAR ← PC" are the same statement.

whitespace = re.compile(r"\s+")

def normalise(text):
    xs = text.replace(arch.ascii_arrow, arch.arrow)
    xs = whitespace.sub("", xs)
    return xs.upper()

# ----------------------------------------------------------------------
# Parsers
# ----------------------------------------------------------------------

# A register is written R[n] or Rn

reg_pat = r"R(?:\[([0-9]+)\]|([0-9]+))"

mar_pc_parser = re.compile(r"^MAR←PC$")
mdr_mem_parser = re.compile(r"^MDR←MEM\[MAR\]$")
ir_mdr_parser = re.compile(r"^IR←MDR$")
pc_inc_parser = re.compile(r"^PC←PC\+1$")
a_reg_parser = re.compile(r"^A←" + reg_pat + r"$")
b_reg_parser = re.compile(r"^B←" + reg_pat + r"$")
alu_add_parser = re.compile(r"^ALU←A\+B$")
alu_sub_parser = re.compile(r"^ALU←A-B$")
alu_and_parser = re.compile(r"^ALU←A&B$")
reg_alu_parser = re.compile(r"^" + reg_pat + r"←ALU$")
flags_alu_parser = re.compile(r"^FLAGS←ALU\.FLAGS$")
mem_mdr_parser = re.compile(r"^MEM\[MAR\]←MDR$")

statement_parsers = [
    (mar_pc_parser, arch.mop_mar_pc),
    (mdr_mem_parser, arch.mop_mdr_mem),
    (ir_mdr_parser, arch.mop_ir_mdr),
    (pc_inc_parser, arch.mop_pc_inc),
    (a_reg_parser, arch.mop_a_reg),
    (b_reg_parser, arch.mop_b_reg),
    (alu_add_parser, arch.mop_alu_add),
    (alu_sub_parser, arch.mop_alu_sub),
    (alu_and_parser, arch.mop_alu_and),
    (reg_alu_parser, arch.mop_reg_alu),
    (flags_alu_parser, arch.mop_flags_alu),
    (mem_mdr_parser, arch.mop_mem_mdr)
]

def parse_statement(text):
    xs = normalise(text)
    for parser, kind in statement_parsers:
        m = parser.match(xs)
        if m:
            reg = None
            if kind in arch.register_kinds:
                reg = int(m.group(1) if m.group(1) is not None else m.group(2))
            op = MicroOp(kind, text, reg)
            common.mode.devlog(f"parse_statement <{text}> {op}")
            return op
    common.mode.devlog(f"parse_statement <{text}> unknown")
    return MicroOp(arch.mop_unknown, text)

# ----------------------------------------------------------------------
# Programs
# ----------------------------------------------------------------------

# A program is either a sequence of statements or a text with one
# statement per line. In a text, everything after // is a comment and
# blank lines are skipped.

def split_program(program):
    if isinstance(program, str):
        statements = []
        for line in program.split("\n"):
            i = line.find("//")
            if i >= 0:
                line = line[:i]
            line = line.strip()
            if line:
                statements.append(line)
        return statements
    return [str(x).strip() for x in program]

def parse_program(program):
    return [parse_statement(x) for x in split_program(program)]

def validate_program(ops, register_count=arch.default_register_count):
    """Return warnings for statements that will not do anything useful.

    Unknown statements and register numbers outside the register file
    are reported, but a program with warnings can still be loaded and
    run.
    """
    warnings = []
    for i, op in enumerate(ops):
        if op.is_unknown():
            warnings.append(f"step {i}: unknown operation '{op.text}'")
        elif op.reg is not None and not 0 <= op.reg < register_count:
            warnings.append(f"step {i}: register R[{op.reg}] is outside R[0]..R[{register_count - 1}]")
    return warnings
