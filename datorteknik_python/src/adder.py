# adder.py

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

# ------------------------------------------------------------------------
# adder.py simulates an 8-bit ripple-carry adder one bit at a time.
# Numbers are handled as bit strings rather than Python integers so
# that every carry can be shown on the adder page. Subtraction is
# addition of the two's complement of the second operand.
# ------------------------------------------------------------------------

import common
import architecture as arch
import arithmetic as arith

# ------------------------------------------------------------------------
# Ripple-carry primitive
# ------------------------------------------------------------------------

# Add two bit strings of equal length, starting with the rightmost
# (least significant) character. Returns the sum bits, the carry out
# of the leftmost position, and one explanation line per position.

def ripple_add(bits_a, bits_b, carry_in=0):
    n = len(bits_a)
    carry = carry_in
    result_bits = ""
    lines = []
    for i in range(n - 1, -1, -1):
        bit_a = int(bits_a[i])
        bit_b = int(bits_b[i])
        s = bit_a + bit_b + carry
        result_bit = s % 2
        new_carry = s // 2
        result_bits = str(result_bit) + result_bits
        position = n - 1 - i
        lines.append(f"Bit {position}: {bit_a} + {bit_b} + {carry}(carry)" +
                     f" = {s} → bit={result_bit}, carry={new_carry}")
        carry = new_carry
    return result_bits, carry, lines

def invert_bits(bits):
    return "".join("1" if c == "0" else "0" for c in bits)

def twos_complement(bits):
    one = "0" * (len(bits) - 1) + "1"
    result_bits, _, _ = ripple_add(invert_bits(bits), one)
    return result_bits

def check_mode(m):
    if m not in arch.adder_modes:
        raise ValueError(f"unknown adder mode {m!r}, expected one of {arch.adder_modes}")
    return m

def clamp_operand(value, m):
    lo, hi = arch.operand_range(check_mode(m))
    return arith.clamp(value, lo, hi)

# ------------------------------------------------------------------------
# Adder
# ------------------------------------------------------------------------

class BitSerialAdder:
    """Bit-serial adder/subtractor for the adder page.

    The mode decides how operands are encoded and how the result bits
    are read back. ``calculate`` runs one whole computation and returns
    the result, the flags and the step trace.
    """

    def __init__(self, mode=arch.mode_unsigned):
        self.mode = check_mode(mode)
        self.operand_a = 0
        self.operand_b = 0
        self.operation = arch.adder_add
        self.steps = []

    def configure(self, mode):
        self.mode = check_mode(mode)
        common.mode.devlog(f"BitSerialAdder mode={self.mode}")

    def to_binary(self, value, mode=None):
        m = self.mode if mode is None else check_mode(mode)
        if m == arch.mode_twos_complement and value < 0:
            value = arch.byte_modulus + value
        return arith.byte_to_bin8(value)

    def from_binary(self, bits, mode=None):
        m = self.mode if mode is None else check_mode(mode)
        value = int(bits, 2)
        if m == arch.mode_unsigned:
            return value
        n = len(bits)
        return value - (1 << n) if value >= (1 << (n - 1)) else value

    def twos_complement(self, bits):
        return twos_complement(bits)

    def add_binary(self, bits_a, bits_b):
        steps = []
        if self.operation == arch.adder_add:
            steps.append(f"Addition: {self.operand_a} + {self.operand_b}")
        else:
            steps.append(f"Subtraction: {self.operand_a} - {self.operand_b}")
            steps.append(f"Rewritten as: {self.operand_a} + (-{self.operand_b})")
            steps.append(f"Two's complement of {self.operand_b}: {bits_b}")
        steps.append(f"Operand A: {bits_a}")
        steps.append(f"Operand B: {bits_b}")
        steps.append("")
        steps.append("Bitwise addition from right to left:")

        result_bits, carry, lines = ripple_add(bits_a, bits_b)
        steps.extend(lines)
        if carry > 0:
            steps.append(f"Final carry: {carry}")

        self.steps = steps
        return {"bits": result_bits, "carry": carry}

    def compute_flags(self, result_bits, result, carry):
        flags = arith.FlagSet()
        flags.zero = result == 0
        flags.negative = self.mode == arch.mode_twos_complement and result_bits[0] == "1"
        flags.carry = carry > 0
        if self.mode == arch.mode_twos_complement:
            a_sign = self.operand_a < 0
            if self.operation == arch.adder_add:
                b_sign = self.operand_b < 0
            else:
                b_sign = self.operand_b >= 0
            result_sign = result < 0
            flags.overflow = (a_sign == b_sign) and (a_sign != result_sign)
        else:
            flags.overflow = flags.carry
        return flags

    def calculate(self, operand_a, operand_b, operation=arch.adder_add, mode=None):
        if mode is not None:
            self.configure(mode)
        if operation not in (arch.adder_add, arch.adder_sub):
            raise ValueError(f"unknown adder operation {operation!r}")
        self.operation = operation
        self.operand_a = clamp_operand(operand_a, self.mode)
        self.operand_b = clamp_operand(operand_b, self.mode)

        bits_a = self.to_binary(self.operand_a)
        bits_b = self.to_binary(self.operand_b)
        if operation == arch.adder_sub:
            bits_b = self.twos_complement(bits_b)
        r = self.add_binary(bits_a, bits_b)

        result = self.from_binary(r["bits"])
        flags = self.compute_flags(r["bits"], result, r["carry"])
        common.mode.devlog(f"BitSerialAdder {self.operand_a} {operation} {self.operand_b}" +
                           f" mode={self.mode} bits={r['bits']} result={result}" +
                           f" cc=[{arch.show_cc(flags.to_cc())}]")
        return {
            "result_decimal": result,
            "result_bits": r["bits"],
            "flags": flags,
            "step_trace": list(self.steps)
        }
