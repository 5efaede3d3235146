# arithmetic.py

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
# arithmetic.py defines the 8-bit ALU using Python arithmetic. This
# includes byte representation, data conversions, the condition flags,
# and the ten operations of the ALU page.
# ------------------------------------------------------------------------

import common
import architecture as arch

byte_mask = arch.byte_mask

# ------------------------------------------------------------------------
# Ensuring and asserting validity of bytes
# ------------------------------------------------------------------------

# All operations that produce a byte should produce a valid byte,
# which is represented as a nonnegative integer x with 0 <= x < 2^8.
# The assert function checks a value and outputs an error message to
# the console if it is not valid, then wraps it.

def limit8(x):
    return x & byte_mask

def assert8(x):
    if 0 <= x < 2**8:
        return x
    else:
        common.indicate_error(f"assert8 fail: {x}")
        return x & byte_mask

# Inputs coming from a page are clamped, not wrapped: 300 becomes 255
# and -4 becomes 0. Anything that is not a number becomes 0.

def clamp(x, lo, hi):
    try:
        v = int(x)
    except (TypeError, ValueError):
        common.mode.devlog(f"clamp: {x!r} is not a number, using 0")
        v = 0
    return max(lo, min(hi, v))

def clamp_byte(x):
    return clamp(x, 0, byte_mask)

# ------------------------------------------------------------------------
# Bytes, binary numbers, and two's complement integers
# ------------------------------------------------------------------------

const80 = 128  # 2^7
const100 = 256  # 2^8

def byte_to_int(w):
    x = assert8(w)
    return x if x < const80 else x - const100

def int_to_byte(x):
    result = x % const100
    common.mode.devlog(f"int_to_byte {x} returning {result}")
    return result

def byte_to_bin8(x):
    return format(limit8(x), f"0{arch.byte_size}b")

def show_byte(w):
    if 0 <= w <= byte_mask:
        return f"{byte_to_hex2(w)} bin={w} tc={byte_to_int(w)}"
    else:
        return f"byte {w} is invalid: out of range"

# ------------------------------------------------------------------------
# Hexadecimal notation
# ------------------------------------------------------------------------

hex_digit = ['0', '1', '2', '3', '4', '5', '6', '7', '8', '9', 'a', 'b', 'c', 'd', 'e', 'f']

def byte_to_hex2(x):
    y = limit8(x)
    return hex_digit[y >> 4] + hex_digit[y & 0x0F]

# ------------------------------------------------------------------------
# Condition flags
# ------------------------------------------------------------------------

class FlagSet:
    def __init__(self, zero=False, negative=False, carry=False, overflow=False):
        self.zero = zero
        self.negative = negative
        self.carry = carry
        self.overflow = overflow

    def copy(self):
        return FlagSet(self.zero, self.negative, self.carry, self.overflow)

    def as_dict(self):
        return {
            "zero": self.zero,
            "negative": self.negative,
            "carry": self.carry,
            "overflow": self.overflow
        }

    @classmethod
    def from_dict(cls, d):
        return cls(bool(d["zero"]), bool(d["negative"]),
                   bool(d["carry"]), bool(d["overflow"]))

    def to_cc(self):
        c = 0
        if self.zero: c |= arch.ccZ
        if self.negative: c |= arch.ccN
        if self.carry: c |= arch.ccC
        if self.overflow: c |= arch.ccV
        return c

    def __eq__(self, other):
        if not isinstance(other, FlagSet):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    def __repr__(self):
        return (f"FlagSet(zero={self.zero}, negative={self.negative}, " +
                f"carry={self.carry}, overflow={self.overflow})")

# The sign of an operand or result is bit 7 of its low byte. This
# also works for the negative raw results of sub and not, since
# Python integers behave as infinitely sign-extended two's complement.

def sign8(x):
    return arch.extract_bool_le(x, arch.sign_bit)

# Compute the flags for a raw (unmasked) result. The operand values
# are the ones given to the operation; inc and dec pass 1 as b.

def alu_flags(raw, a, b, op):
    flags = FlagSet()
    primary = limit8(raw)
    flags.zero = primary == 0
    flags.negative = sign8(primary)
    cls = arch.op_class[op]
    if cls == "add":
        flags.carry = raw > byte_mask
        flags.overflow = (sign8(a) == sign8(b)) and (sign8(a) != sign8(raw))
    elif cls == "sub":
        flags.carry = raw < 0
        flags.overflow = (sign8(a) != sign8(b)) and (sign8(a) != sign8(raw))
    elif cls == "shl":
        flags.carry = arch.get_bit_in_byte_le(a, 7) == 1
    elif cls == "shr":
        flags.carry = arch.get_bit_in_byte_le(a, 0) == 1
    # logic: carry and overflow stay cleared
    common.mode.devlog(f"alu_flags op={op} raw={raw} a={a} b={b}" +
                       f" cc=[{arch.show_cc(flags.to_cc())}]")
    return flags

# ------------------------------------------------------------------------
# Operations for the ALU
# ------------------------------------------------------------------------

# Each op returns [primary, flags] where primary is the result byte.

def finish(raw, a, b, op):
    return [limit8(raw), alu_flags(raw, a, b, op)]

def op_and(a, b):
    return finish(a & b, a, b, "and")

def op_or(a, b):
    return finish(a | b, a, b, "or")

def op_xor(a, b):
    return finish(a ^ b, a, b, "xor")

def op_not(a):
    return finish(~a, a, 0, "not")

def op_add(a, b):
    return finish(a + b, a, b, "add")

def op_sub(a, b):
    return finish(a - b, a, b, "sub")

def op_inc(a):
    return finish(a + 1, a, 1, "inc")

def op_dec(a):
    return finish(a - 1, a, 1, "dec")

def op_shl(a):
    return finish(a << 1, a, 0, "shl")

def op_shr(a):
    return finish(a >> 1, a, 0, "shr")

def g_r(op, a, b):
    return op(a)

def g_rr(op, a, b):
    return op(a, b)

# Dispatch table from operation name to the function and its arity
# adaptor

dispatch_alu_op = {
    "and": (op_and, g_rr),
    "or": (op_or, g_rr),
    "xor": (op_xor, g_rr),
    "not": (op_not, g_r),
    "add": (op_add, g_rr),
    "sub": (op_sub, g_rr),
    "inc": (op_inc, g_r),
    "dec": (op_dec, g_r),
    "shl": (op_shl, g_r),
    "shr": (op_shr, g_r)
}

# ------------------------------------------------------------------------
# ALU instance
# ------------------------------------------------------------------------

class Alu8:
    """An 8-bit ALU holding the result and flags of its last operation.

    Every operation overwrites both the result and the flags, so an
    instance never needs resetting. Inputs to the ten operations are
    expected to be bytes already; ``perform`` clamps them first.
    """

    def __init__(self):
        self.result = 0
        self.flags = FlagSet()

    def apply(self, op, a, b=0):
        fcn, g = dispatch_alu_op[op]
        primary, flags = g(fcn, a, b)
        self.result = primary
        self.flags = flags
        common.mode.devlog(f"Alu8 {op} a={a} b={b} result={show_byte(primary)}")
        return self.result

    def and_(self, a, b):
        return self.apply("and", a, b)

    def or_(self, a, b):
        return self.apply("or", a, b)

    def xor(self, a, b):
        return self.apply("xor", a, b)

    def not_(self, a):
        return self.apply("not", a)

    def add(self, a, b):
        return self.apply("add", a, b)

    def sub(self, a, b):
        return self.apply("sub", a, b)

    def inc(self, a):
        return self.apply("inc", a)

    def dec(self, a):
        return self.apply("dec", a)

    def shl(self, a):
        return self.apply("shl", a)

    def shr(self, a):
        return self.apply("shr", a)

    def perform(self, operation, a, b=0):
        """Clamp both inputs to a byte and run the named operation.

        Returns the result byte, or None for an unknown operation name
        (the ALU keeps its previous result and flags).
        """
        if operation not in arch.alu_operations:
            common.mode.errlog(f"Unknown operation: {operation}")
            return None
        return self.apply(operation, clamp_byte(a), clamp_byte(b))

    def get_flags(self):
        return self.flags.copy()

    def get_result(self):
        return self.result
