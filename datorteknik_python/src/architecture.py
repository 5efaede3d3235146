# architecture.py

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

# --------------------------------------------------------------------
# architecture.py defines global constants and tables specifying the
# byte format, flag bits, operation names, adder modes and the
# micro-operation vocabulary of the datapath
# --------------------------------------------------------------------

# --------------------------------------------------------------------
# Bit indexing
# --------------------------------------------------------------------

# Bits are indexed Little End (LE): the least significant (rightmost)
# bit has index 0 and the most significant bit of a byte has index 7.
# Bit strings are written the other way round, so character 0 of an
# 8-character bit string is bit 7 and character 7 is bit 0.

def get_bit_in_byte_le(w, i):
    return (w >> i) & 0x01

def mask_to_set_bit_le(i):
    return (1 << i) & 0xFF

# Return Boolean from bit i in byte x

def extract_bool_le(x, i):
    return get_bit_in_byte_le(x, i) == 1

# --------------------------------------------------------------------
# Architecture constants
# --------------------------------------------------------------------

byte_size = 8
byte_mask = 0xFF
sign_bit = 7
byte_modulus = 256  # 2^8

# Default datapath configuration; see state.DatapathConfig

default_mem_size = 256
default_register_count = 8
default_clock_interval = 1000  # milliseconds between timer steps

max_mem_size = 256  # MAR and PC are bytes
max_register_count = 16

# --------------------------------------------------------------------
# ALU operations
# --------------------------------------------------------------------

# Operation names accepted by Alu8.perform, in the order they appear
# on the ALU page.

alu_operations = [
    "and", "or", "xor", "not",  # logical
    "add", "sub", "inc", "dec",  # arithmetic
    "shl", "shr"  # shift
]

# Operation classes select the carry/overflow rule in updating the
# flags. inc shares the add rule and dec shares the sub rule.

op_class = {
    "and": "logic", "or": "logic", "xor": "logic", "not": "logic",
    "add": "add", "inc": "add",
    "sub": "sub", "dec": "sub",
    "shl": "shl",
    "shr": "shr"
}

# --------------------------------------------------------------------
# Adder modes
# --------------------------------------------------------------------

mode_unsigned = "unsigned"
mode_twos_complement = "twos-complement"

adder_modes = [mode_unsigned, mode_twos_complement]

# Operand ranges for each mode, as shown on the adder page

min_unsigned = 0
max_unsigned = 255
min_tc = -128
max_tc = 127

def operand_range(m):
    if m == mode_twos_complement:
        return (min_tc, max_tc)
    else:
        return (min_unsigned, max_unsigned)

adder_add = "add"
adder_sub = "sub"

# ----------------------------------------------------------------------
# Condition flags
# ----------------------------------------------------------------------

# The four flags are kept as separate Booleans in a FlagSet, but they
# are also displayed as a compact code in the trace. Bits are numbered
# from right to left.

# index  val  code  meaning
# ------------------------------------------------
# bit 0  01   C     carry out of bit 7, or borrow
# bit 1  02   V     signed (two's complement) overflow
# bit 2  04   Z     result byte is zero
# bit 3  08   N     bit 7 of the result byte is set

bit_ccC = 0
bit_ccV = 1
bit_ccZ = 2
bit_ccN = 3

ccC = mask_to_set_bit_le(bit_ccC)
ccV = mask_to_set_bit_le(bit_ccV)
ccZ = mask_to_set_bit_le(bit_ccZ)
ccN = mask_to_set_bit_le(bit_ccN)

flag_names = ["zero", "negative", "carry", "overflow"]

# Return a string giving symbolic representation of the condition
# code; this is used in trace descriptions

def show_cc(c):
    return (('Z' if extract_bool_le(c, bit_ccZ) else '') +
            ('N' if extract_bool_le(c, bit_ccN) else '') +
            ('C' if extract_bool_le(c, bit_ccC) else '') +
            ('V' if extract_bool_le(c, bit_ccV) else ''))

# ----------------------------------------------------------------------
# Micro-operation kinds
# ----------------------------------------------------------------------

# Each row of the datapath vocabulary is one kind. A parsed statement
# is a MicroOp carrying its kind and, for the register transfers, the
# register number.

mop_mar_pc = "MAR<-PC"
mop_mdr_mem = "MDR<-Mem[MAR]"
mop_ir_mdr = "IR<-MDR"
mop_pc_inc = "PC<-PC+1"
mop_a_reg = "A<-R[n]"
mop_b_reg = "B<-R[n]"
mop_alu_add = "ALU<-A+B"
mop_alu_sub = "ALU<-A-B"
mop_alu_and = "ALU<-A&B"
mop_reg_alu = "R[n]<-ALU"
mop_flags_alu = "FLAGS<-ALU.flags"
mop_mem_mdr = "Mem[MAR]<-MDR"
mop_unknown = "unknown"

micro_op_kinds = [
    mop_mar_pc, mop_mdr_mem, mop_ir_mdr, mop_pc_inc,
    mop_a_reg, mop_b_reg,
    mop_alu_add, mop_alu_sub, mop_alu_and,
    mop_reg_alu, mop_flags_alu, mop_mem_mdr,
    mop_unknown
]

# Kinds whose statement names a register

register_kinds = [mop_a_reg, mop_b_reg, mop_reg_alu]

arrow = "←"  # the left arrow used in statements
ascii_arrow = "<-"
