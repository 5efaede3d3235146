import pytest
import adder
from adder import BitSerialAdder

def flags(r):
    return r["flags"].as_dict()

# Encoding

def test_round_trip_unsigned():
    a = BitSerialAdder()
    for v in range(0, 256):
        bits = a.to_binary(v, "unsigned")
        assert len(bits) == 8
        assert a.from_binary(bits, "unsigned") == v

def test_round_trip_twos_complement():
    a = BitSerialAdder("twos-complement")
    for v in range(-128, 128):
        bits = a.to_binary(v)
        assert len(bits) == 8
        assert a.from_binary(bits) == v

def test_twos_complement_encoding():
    a = BitSerialAdder()
    assert a.to_binary(-1, "twos-complement") == "11111111"
    assert a.to_binary(-128, "twos-complement") == "10000000"
    assert a.from_binary("10000000", "twos-complement") == -128
    assert a.from_binary("10000000", "unsigned") == 128

def test_negation_is_involutive():
    a = BitSerialAdder()
    for v in range(256):
        bits = format(v, "08b")
        assert a.twos_complement(a.twos_complement(bits)) == bits

def test_twos_complement_negates():
    assert adder.twos_complement("00000011") == "11111101"
    assert adder.twos_complement("00000000") == "00000000"

def test_add_binary_reports_carry_out():
    a = BitSerialAdder()
    r = a.add_binary("11111111", "00000001")
    assert r == {"bits": "00000000", "carry": 1}
    r = a.add_binary("00000101", "00000011")
    assert r == {"bits": "00001000", "carry": 0}

# Unsigned mode

def test_unsigned_addition():
    r = BitSerialAdder().calculate(5, 3, "add", "unsigned")
    assert r["result_decimal"] == 8
    assert r["result_bits"] == "00001000"
    assert flags(r) == {"zero": False, "negative": False, "carry": False, "overflow": False}

def test_unsigned_addition_wraps():
    r = BitSerialAdder().calculate(200, 100, "add", "unsigned")
    assert r["result_decimal"] == 44
    # overflow mirrors carry in unsigned mode
    assert flags(r) == {"zero": False, "negative": False, "carry": True, "overflow": True}

def test_unsigned_subtraction_sets_carry_without_borrow():
    r = BitSerialAdder().calculate(5, 3, "sub", "unsigned")
    assert r["result_decimal"] == 2
    assert r["flags"].carry
    assert r["flags"].overflow

def test_unsigned_subtraction_with_borrow():
    r = BitSerialAdder().calculate(3, 5, "sub", "unsigned")
    assert r["result_decimal"] == 254
    assert r["result_bits"] == "11111110"
    # never negative in unsigned mode
    assert flags(r) == {"zero": False, "negative": False, "carry": False, "overflow": False}

# Two's complement mode

def test_twos_complement_overflow():
    r = BitSerialAdder().calculate(100, 50, "add", "twos-complement")
    assert r["result_decimal"] == -106
    assert r["result_bits"] == "10010110"
    assert flags(r) == {"zero": False, "negative": True, "carry": False, "overflow": True}

def test_twos_complement_minus_one_plus_one():
    r = BitSerialAdder().calculate(-1, 1, "add", "twos-complement")
    assert r["result_decimal"] == 0
    assert flags(r) == {"zero": True, "negative": False, "carry": True, "overflow": False}

def test_twos_complement_subtraction():
    r = BitSerialAdder().calculate(5, 3, "sub", "twos-complement")
    assert r["result_decimal"] == 2
    assert not r["flags"].overflow

def test_twos_complement_subtraction_overflow():
    r = BitSerialAdder().calculate(-128, 1, "sub", "twos-complement")
    assert r["result_decimal"] == 127
    assert flags(r) == {"zero": False, "negative": False, "carry": True, "overflow": True}

def test_negative_result():
    r = BitSerialAdder().calculate(3, 5, "sub", "twos-complement")
    assert r["result_decimal"] == -2
    assert r["flags"].negative
    assert not r["flags"].overflow

# Clamping and configuration

def test_operands_clamped_to_mode_range():
    a = BitSerialAdder("twos-complement")
    r = a.calculate(200, -300, "add")
    assert a.operand_a == 127
    assert a.operand_b == -128
    assert r["result_decimal"] == -1

def test_clamp_operand():
    assert adder.clamp_operand(-5, "unsigned") == 0
    assert adder.clamp_operand("x", "twos-complement") == 0
    assert adder.clamp_operand(-200, "twos-complement") == -128

def test_configure_sets_default_mode():
    a = BitSerialAdder()
    a.configure("twos-complement")
    assert a.calculate(1, 2, "sub")["result_decimal"] == -1

def test_unknown_mode_rejected():
    with pytest.raises(ValueError):
        BitSerialAdder("signed-magnitude")
    with pytest.raises(ValueError):
        BitSerialAdder().configure("bcd")

def test_unknown_operation_rejected():
    with pytest.raises(ValueError):
        BitSerialAdder().calculate(1, 2, "mul")

# Step trace

def test_addition_trace():
    r = BitSerialAdder().calculate(5, 3, "add", "unsigned")
    trace = r["step_trace"]
    assert trace[0] == "Addition: 5 + 3"
    assert trace[1] == "Operand A: 00000101"
    assert trace[2] == "Operand B: 00000011"
    bit_lines = [x for x in trace if x.startswith("Bit ")]
    assert len(bit_lines) == 8
    assert bit_lines[0] == "Bit 0: 1 + 1 + 0(carry) = 2 → bit=0, carry=1"
    assert bit_lines[7] == "Bit 7: 0 + 0 + 0(carry) = 0 → bit=0, carry=0"
    assert not any(x.startswith("Final carry") for x in trace)

def test_subtraction_trace_shows_negated_operand():
    r = BitSerialAdder().calculate(5, 3, "sub", "unsigned")
    trace = r["step_trace"]
    assert trace[0] == "Subtraction: 5 - 3"
    assert trace[1] == "Rewritten as: 5 + (-3)"
    assert trace[2] == "Two's complement of 3: 11111101"
    assert trace[4] == "Operand B: 11111101"
    assert trace[-1] == "Final carry: 1"

def test_trace_is_reproducible():
    a = BitSerialAdder()
    first = a.calculate(77, 99, "add", "unsigned")["step_trace"]
    a.calculate(1, 1, "sub", "twos-complement")
    second = a.calculate(77, 99, "add", "unsigned")["step_trace"]
    assert first == second
