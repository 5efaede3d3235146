import json
import pytest
import presets
import state as st
from arithmetic import FlagSet
from datapath import DatapathSimulator

def fetch_sim():
    ds = DatapathSimulator()
    ds.load_preset("fetch-decode-execute")
    ds.load_memory([7])
    return ds

# Fetch cycle

def test_fetch_decode_execute():
    ds = fetch_sim()
    for _ in range(4):
        ds.step()
    assert ds.mar == 0
    assert ds.mdr == 7
    assert ds.ir == 7
    assert ds.pc == 1
    assert len(ds.execution_trace) == 4
    assert ds.status == st.StatusCompleted

def test_trace_entries():
    ds = fetch_sim()
    ds.step()
    entry = ds.step()
    assert entry == {"step": 1, "operation": "MDR ← Mem[MAR]", "result": "MDR = Mem[0] = 7"}
    assert ds.execution_trace[0] == {"step": 0, "operation": "MAR ← PC", "result": "MAR = 0"}

def test_step_after_end_restarts():
    ds = fetch_sim()
    for _ in range(4):
        ds.step()
    assert ds.step() is None
    assert ds.current_step == 0
    assert ds.status == st.StatusIdle
    entry = ds.step()
    assert entry["step"] == 0
    # the second fetch starts from the advanced PC
    assert ds.mar == 1

def test_step_with_no_program_does_nothing():
    ds = DatapathSimulator()
    assert ds.step() is None
    assert ds.execution_trace == []

def test_pc_wraps_at_memory_size():
    ds = DatapathSimulator(memory_size=4)
    ds.load_program(["PC ← PC + 1"] * 5)
    ds.run_to_completion()
    assert ds.pc == 1

# Registers and ALU

def test_alu_operation_preset():
    ds = DatapathSimulator()
    ds.load_preset("alu-operation")
    ds.set_register(1, 10)
    ds.set_register(2, 20)
    ds.run_to_completion()
    assert ds.registers[3] == 30
    assert ds.registers[4] == 10
    assert ds.flags == FlagSet(zero=False, negative=False, carry=False, overflow=False)
    assert ds.status == st.StatusCompleted

def test_alu_add_sets_carry_but_never_overflow():
    ds = DatapathSimulator()
    ds.load_program(["A ← R[0]", "B ← R[1]", "ALU ← A + B"])
    ds.set_register(0, 200)
    ds.set_register(1, 100)
    ds.run_to_completion()
    assert ds.alu_result == 44
    assert ds.alu_flags == FlagSet(zero=False, negative=False, carry=True, overflow=False)

def test_alu_sub_borrow_does_not_set_carry():
    ds = DatapathSimulator()
    ds.load_program(["A ← R[0]", "B ← R[1]", "ALU ← A - B"])
    ds.set_register(0, 30)
    ds.set_register(1, 100)
    ds.run_to_completion()
    assert ds.alu_result == 186
    assert ds.alu_flags == FlagSet(zero=False, negative=True, carry=False, overflow=False)

def test_alu_and_zero():
    ds = DatapathSimulator()
    ds.load_program(["A ← R[0]", "B ← R[1]", "ALU ← A & B", "R[2] ← ALU"])
    ds.set_register(0, 0xF0)
    ds.set_register(1, 0x0F)
    ds.set_register(2, 99)
    ds.run_to_completion()
    assert ds.registers[2] == 0
    assert ds.alu_flags.zero

def test_flags_only_change_when_latched():
    ds = DatapathSimulator()
    ds.load_program(["A ← R[0]", "B ← R[0]", "ALU ← A - B", "FLAGS ← ALU.flags"])
    ds.set_register(0, 5)
    ds.step()
    ds.step()
    ds.step()
    assert ds.alu_flags.zero
    assert not ds.flags.zero
    entry = ds.step()
    assert ds.flags.zero
    assert entry["result"] == "FLAGS = [Z]"

def test_memory_store():
    ds = DatapathSimulator()
    ds.load_preset("load-store")
    ds.load_memory([42])
    ds.run_to_completion()
    assert ds.memory[1] == 42
    assert ds.pc == 1

def test_out_of_range_register_reads_zero_and_ignores_writes():
    ds = DatapathSimulator(register_count=4)
    ds.load_program(["A ← R[9]", "ALU ← A + B", "R[12] ← ALU"])
    ds.bus_a = 55
    warnings = ds.load_warnings
    assert len(warnings) == 2
    ds.run_to_completion()
    assert ds.bus_a == 0
    assert ds.registers == [0, 0, 0, 0]
    assert len(ds.execution_trace) == 3
    assert ds.execution_trace[2]["result"] == "R[12] does not exist, write of 0 ignored"

def test_out_of_range_memory_reads_zero():
    ds = DatapathSimulator(memory_size=8)
    ds.load_program(["MDR ← Mem[MAR]", "Mem[MAR] ← MDR"])
    ds.mar = 200
    ds.mdr = 9
    ds.run_to_completion()
    assert ds.mdr == 0
    assert ds.memory == [0] * 8

# Unknown statements

def test_unknown_operation_is_recorded_and_execution_continues():
    ds = DatapathSimulator()
    ds.load_program(["MAR ← PC", "MEM_READ", "IR ← MDR"])
    ds.step()
    entry = ds.step()
    assert entry["result"] == "Unknown operation: MEM_READ"
    assert ds.step()["result"] == "IR = 0"
    assert ds.status == st.StatusCompleted

def test_failing_micro_op_is_recorded(monkeypatch):
    import architecture as arch
    import datapath

    def broken(ds, op):
        raise RuntimeError("bus fault")

    monkeypatch.setitem(datapath.dispatch_micro_op, arch.mop_ir_mdr, broken)
    ds = DatapathSimulator()
    ds.load_program(["IR ← MDR", "MAR ← PC"])
    assert ds.step()["result"] == "Error: bus fault"
    assert ds.step()["result"] == "MAR = 0"

# Loading and reset

def test_load_resets_step_and_trace():
    ds = fetch_sim()
    ds.step()
    ds.step()
    ds.load_preset("alu-operation")
    assert ds.current_step == 0
    assert ds.execution_trace == []
    assert ds.status == st.StatusIdle
    assert ds.preset_name == "alu-operation"
    assert ds.micro_program == list(presets.get_preset("alu-operation"))

def test_unknown_preset():
    with pytest.raises(KeyError):
        DatapathSimulator().load_preset("multiply")

def test_reset_clears_everything():
    ds = DatapathSimulator()
    ds.load_preset("alu-operation")
    ds.set_register(1, 200)
    ds.set_register(2, 100)
    ds.load_memory([1, 2, 3])
    ds.run_to_completion()
    ds.reset()
    assert ds.registers == [0] * 8
    assert (ds.pc, ds.ir, ds.mar, ds.mdr) == (0, 0, 0, 0)
    assert (ds.bus_a, ds.bus_b, ds.alu_result) == (0, 0, 0)
    assert ds.flags == FlagSet()
    assert ds.alu_flags == FlagSet()
    assert ds.memory == [0] * 256
    assert ds.execution_trace == []
    assert ds.current_step == 0
    assert ds.status == st.StatusIdle
    # the program stays loaded
    assert len(ds.micro_program) == len(presets.get_preset("alu-operation"))

# Breakpoints and synchronous running

def test_run_to_completion_stops_at_breakpoint():
    ds = fetch_sim()
    ds.set_breakpoint(2)
    n = ds.run_to_completion()
    assert n == 2
    assert ds.status == st.StatusPaused
    assert ds.current_step == 2
    # resuming executes the statement at the breakpoint
    ds.run_to_completion()
    assert ds.status == st.StatusCompleted
    assert ds.ir == 7

def test_breakpoint_at_first_step_pauses_before_running():
    ds = fetch_sim()
    ds.set_breakpoint(0)
    assert ds.run_to_completion() == 0
    assert ds.status == st.StatusPaused
    assert ds.execution_trace == []
    assert ds.mar == 0 and ds.mdr == 0
    assert ds.run_to_completion() == 4
    assert ds.status == st.StatusCompleted

def test_breakpoint_at_first_step_after_a_completed_run():
    ds = fetch_sim()
    ds.run_to_completion()
    assert ds.status == st.StatusCompleted
    ds.set_breakpoint(0)
    assert ds.run_to_completion() == 0
    assert ds.status == st.StatusPaused
    assert ds.current_step == 0
    assert len(ds.execution_trace) == 4

def test_clear_breakpoints():
    ds = fetch_sim()
    ds.set_breakpoint(1)
    ds.set_breakpoint(3)
    ds.clear_breakpoint(1)
    assert ds.run_to_completion() == 3
    ds.clear_breakpoints()
    ds.reset()
    ds.load_memory([7])
    assert ds.run_to_completion() == 4
    assert ds.status == st.StatusCompleted

def test_run_to_completion_step_limit():
    ds = fetch_sim()
    assert ds.run_to_completion(max_steps=2) == 2
    assert ds.status == st.StatusPaused

def test_run_to_completion_without_program():
    assert DatapathSimulator().run_to_completion() == 0

# Configuration

def test_config_options():
    ds = DatapathSimulator(memory_size=16, register_count=4, clock_interval=50)
    assert len(ds.memory) == 16
    assert len(ds.registers) == 4
    assert ds.config.clock_interval == 50

def test_config_object():
    cfg = st.DatapathConfig(memory_size=32)
    ds = DatapathSimulator(cfg)
    assert len(ds.memory) == 32

# Snapshots

def test_export_import_round_trip():
    ds = fetch_sim()
    ds.step()
    ds.step()
    snap = ds.export_state()
    other = DatapathSimulator()
    assert other.import_state(snap) == []
    assert other.export_state() == snap
    other.step()
    other.step()
    assert other.ir == 7
    assert other.pc == 1

def test_export_is_json_serialisable():
    ds = fetch_sim()
    ds.run_to_completion()
    text = ds.export_json()
    snap = json.loads(text)
    assert snap["presetName"] == "fetch-decode-execute"
    assert snap["state"]["currentStep"] == 4
    assert snap["state"]["status"] == "completed"
    other = DatapathSimulator()
    assert other.import_state(text) == []
    assert other.ir == 7

def test_import_bad_json_leaves_state_unchanged():
    ds = fetch_sim()
    ds.step()
    before = ds.export_state()
    errors = ds.import_state("{not json")
    assert errors
    assert "JSON" in errors[0]
    assert ds.export_state() == before

def test_import_missing_fields_leaves_state_unchanged():
    ds = fetch_sim()
    before = ds.export_state()
    snap = ds.export_state()
    del snap["state"]["memory"]
    snap["state"]["pc"] = 300
    errors = ds.import_state(snap)
    assert len(errors) == 2
    assert ds.export_state() == before

def test_import_wrong_register_count():
    snap = DatapathSimulator(register_count=4).export_state()
    errors = DatapathSimulator().import_state(snap)
    assert any("registers" in e for e in errors)

def test_import_running_status_becomes_paused():
    ds = fetch_sim()
    snap = ds.export_state()
    snap["state"]["status"] = "running"
    other = DatapathSimulator()
    assert other.import_state(snap) == []
    assert other.status == st.StatusPaused

def test_import_not_an_object():
    assert DatapathSimulator().import_state("[1, 2, 3]") == ["snapshot must be a JSON object"]

def test_every_micro_op_kind_has_an_action():
    import architecture as arch
    import datapath
    assert set(datapath.dispatch_micro_op) == set(arch.micro_op_kinds)
