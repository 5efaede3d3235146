# datapath.py

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
# datapath.py defines the micro-operation semantics of the simulated
# CPU datapath and the simulator that steps through a program
# -------------------------------------------------------------------------

import json
import common
import architecture as arch
import arithmetic as arith
import microops as mops
import presets as pre
import state as st
import clock

# -------------------------------------------------------------------------
# Register and memory access
# -------------------------------------------------------------------------

# Indexes outside the register file or the memory read as 0 and
# writes to them are dropped.

def read_register(ds, n):
    if 0 <= n < len(ds.registers):
        return ds.registers[n]
    common.mode.devlog(f"read_register R[{n}] out of range, reading 0")
    return 0

def write_register(ds, n, x):
    if 0 <= n < len(ds.registers):
        ds.registers[n] = arith.assert8(x)
    else:
        common.mode.devlog(f"write_register R[{n}] out of range, ignored")

def mem_fetch(ds, a):
    if 0 <= a < len(ds.memory):
        return ds.memory[a]
    common.mode.devlog(f"mem_fetch a={a} out of range, reading 0")
    return 0

def mem_store(ds, a, x):
    if 0 <= a < len(ds.memory):
        ds.memory[a] = arith.assert8(x)
    else:
        common.mode.devlog(f"mem_store a={a} out of range, ignored")

# -------------------------------------------------------------------------
# ALU inside the datapath
# -------------------------------------------------------------------------

# The datapath ALU keeps its own, simpler flag rule: zero and negative
# come from the result byte, carry is set only when the raw result
# exceeds 255, and overflow is never set.

def datapath_alu_flags(raw):
    primary = arith.limit8(raw)
    return arith.FlagSet(zero=primary == 0,
                         negative=arch.extract_bool_le(primary, arch.sign_bit),
                         carry=raw > arch.byte_mask,
                         overflow=False)

def alu_latch(ds, raw):
    ds.alu_result = arith.limit8(raw)
    ds.alu_flags = datapath_alu_flags(raw)

# -------------------------------------------------------------------------
# Micro-operation semantics
# -------------------------------------------------------------------------

# Each function applies one micro-operation and returns a short
# description of its effect for the trace.

def mop_mar_pc(ds, op):
    ds.mar = ds.pc
    return f"MAR = {ds.mar}"

def mop_mdr_mem(ds, op):
    ds.mdr = mem_fetch(ds, ds.mar)
    return f"MDR = Mem[{ds.mar}] = {ds.mdr}"

def mop_ir_mdr(ds, op):
    ds.ir = ds.mdr
    return f"IR = {ds.ir}"

def mop_pc_inc(ds, op):
    ds.pc = (ds.pc + 1) % len(ds.memory)
    return f"PC = {ds.pc}"

def mop_a_reg(ds, op):
    ds.bus_a = read_register(ds, op.reg)
    return f"A = R[{op.reg}] = {ds.bus_a}"

def mop_b_reg(ds, op):
    ds.bus_b = read_register(ds, op.reg)
    return f"B = R[{op.reg}] = {ds.bus_b}"

def mop_alu_add(ds, op):
    alu_latch(ds, ds.bus_a + ds.bus_b)
    return f"ALU = {ds.bus_a} + {ds.bus_b} = {ds.alu_result}"

def mop_alu_sub(ds, op):
    alu_latch(ds, ds.bus_a - ds.bus_b)
    return f"ALU = {ds.bus_a} - {ds.bus_b} = {ds.alu_result}"

def mop_alu_and(ds, op):
    alu_latch(ds, ds.bus_a & ds.bus_b)
    return f"ALU = {ds.bus_a} & {ds.bus_b} = {ds.alu_result}"

def mop_reg_alu(ds, op):
    if not 0 <= op.reg < len(ds.registers):
        return f"R[{op.reg}] does not exist, write of {ds.alu_result} ignored"
    write_register(ds, op.reg, ds.alu_result)
    return f"R[{op.reg}] = {ds.alu_result}"

def mop_flags_alu(ds, op):
    ds.flags = ds.alu_flags.copy()
    return f"FLAGS = [{arch.show_cc(ds.flags.to_cc())}]"

def mop_mem_mdr(ds, op):
    mem_store(ds, ds.mar, ds.mdr)
    return f"Mem[{ds.mar}] = {ds.mdr}"

def mop_unknown(ds, op):
    return f"Unknown operation: {op.text}"

dispatch_micro_op = {
    arch.mop_mar_pc: mop_mar_pc,
    arch.mop_mdr_mem: mop_mdr_mem,
    arch.mop_ir_mdr: mop_ir_mdr,
    arch.mop_pc_inc: mop_pc_inc,
    arch.mop_a_reg: mop_a_reg,
    arch.mop_b_reg: mop_b_reg,
    arch.mop_alu_add: mop_alu_add,
    arch.mop_alu_sub: mop_alu_sub,
    arch.mop_alu_and: mop_alu_and,
    arch.mop_reg_alu: mop_reg_alu,
    arch.mop_flags_alu: mop_flags_alu,
    arch.mop_mem_mdr: mop_mem_mdr,
    arch.mop_unknown: mop_unknown
}

def execute_micro_op(ds, op):
    common.mode.devlog(f"execute_micro_op step={ds.current_step} {op}")
    try:
        return dispatch_micro_op[op.kind](ds, op)
    except Exception as e:
        common.mode.errlog(f"micro-op '{op.text}' failed: {e}")
        return f"Error: {e}"

# Reasons a run stops by itself

reason_completed = "Execution completed."
reason_breakpoint = "Breakpoint reached."

# -------------------------------------------------------------------------
# Datapath simulator
# -------------------------------------------------------------------------

class DatapathSimulator:
    """The datapath state machine of the micro-operation page.

    A simulator owns its registers, memory, buses and ALU latch, the
    loaded program and the execution trace. ``step`` applies one
    statement; ``run`` steps on a Qt timer until the program completes,
    a breakpoint is reached, or ``pause`` is called.
    """

    def __init__(self, config=None, **options):
        if config is None:
            config = st.DatapathConfig()
        if options:
            config = config.with_options(**options)
        self.config = config
        self.micro_program = []
        self.ops = []
        self.preset_name = None
        self.load_warnings = []
        self.breakpoints = set()
        self.clock = None
        self.clear_machine()
        common.mode.devlog(f"new DatapathSimulator {config}")

    def clear_machine(self):
        self.registers = [0] * self.config.register_count
        self.memory = [0] * self.config.memory_size
        self.pc = 0
        self.ir = 0
        self.mar = 0
        self.mdr = 0
        self.bus_a = 0
        self.bus_b = 0
        self.alu_result = 0
        self.alu_flags = arith.FlagSet()
        self.flags = arith.FlagSet()
        self.current_step = 0
        self.execution_trace = []
        self.status = st.StatusIdle
        self.resuming = False

    # Loading programs

    def load_program(self, program, preset_name=None):
        self.stop_clock()
        self.ops = mops.parse_program(program)
        self.micro_program = [op.text for op in self.ops]
        self.preset_name = preset_name
        self.current_step = 0
        self.execution_trace = []
        self.status = st.StatusIdle
        self.resuming = False
        self.load_warnings = mops.validate_program(self.ops, self.config.register_count)
        for w in self.load_warnings:
            common.modal_warning(f"load_program: {w}")
        common.mode.devlog(f"load_program {len(self.ops)} statements preset={preset_name}")
        return self.load_warnings

    def load_preset(self, name):
        return self.load_program(pre.get_preset(name), preset_name=name)

    # Seeding the machine

    def set_register(self, n, x):
        write_register(self, n, arith.limit8(x))

    def load_memory(self, values, start=0):
        for i, x in enumerate(values):
            mem_store(self, start + i, arith.limit8(x))

    # Stepping

    def step(self):
        if self.current_step >= len(self.ops):
            common.mode.devlog("step: end of program, restarting at step 0")
            self.current_step = 0
            if self.status == st.StatusCompleted:
                self.status = st.StatusIdle
            return None
        op = self.ops[self.current_step]
        result = execute_micro_op(self, op)
        entry = {"step": self.current_step, "operation": op.text, "result": result}
        self.execution_trace.append(entry)
        self.current_step += 1
        if self.current_step >= len(self.ops):
            self.status = st.StatusCompleted
        return entry

    # One timer tick: the breakpoint check, then a step. Returns None
    # to keep going, or the reason for stopping. The first tick after
    # resuming from a pause passes the breakpoint it stopped on.

    def at_breakpoint(self):
        if self.resuming:
            self.resuming = False
            return False
        return self.current_step in self.breakpoints

    def tick(self):
        if self.at_breakpoint():
            self.status = st.StatusPaused
            common.mode.devlog(f"breakpoint at step {self.current_step}")
            return reason_breakpoint
        self.step()
        if self.status == st.StatusCompleted:
            return reason_completed
        return None

    def start_running(self):
        if self.current_step >= len(self.ops):
            self.current_step = 0
        self.resuming = self.status == st.StatusPaused
        self.status = st.StatusRunning

    def run_to_completion(self, max_steps=1000):
        """Step without a timer until the program ends, a breakpoint is
        reached, or max_steps statements have run. Returns the number
        of steps taken."""
        if not self.ops:
            common.mode.errlog("run_to_completion: no program loaded")
            return 0
        self.stop_clock()
        self.start_running()
        n = 0
        while n < max_steps:
            reason = self.tick()
            if reason == reason_breakpoint:
                break
            n += 1
            if reason is not None:
                break
        else:
            self.status = st.StatusPaused
        return n

    # Timer-driven execution

    def run(self):
        if not self.ops:
            common.mode.errlog("run: no program loaded")
            return False
        if self.clock is None:
            self.clock = clock.StepClock(self, self.config.clock_interval)
        self.start_running()
        self.clock.start()
        return True

    def stop_clock(self):
        if self.clock is not None:
            self.clock.stop()

    def pause(self):
        self.stop_clock()
        if self.status == st.StatusRunning:
            self.status = st.StatusPaused

    def toggle_running(self):
        if self.status == st.StatusRunning:
            self.pause()
            return False
        return self.run()

    def is_running(self):
        return self.status == st.StatusRunning

    def reset(self):
        self.stop_clock()
        self.clear_machine()
        common.mode.devlog("DatapathSimulator reset")

    # Breakpoints

    def set_breakpoint(self, step_index):
        self.breakpoints.add(step_index)

    def clear_breakpoint(self, step_index):
        self.breakpoints.discard(step_index)

    def clear_breakpoints(self):
        self.breakpoints.clear()

    # Accessors

    def get_flags(self):
        return self.flags.copy()

    def get_alu_flags(self):
        return self.alu_flags.copy()

    # Snapshots

    def export_state(self):
        return {
            "microProgram": list(self.micro_program),
            "state": {
                "registers": list(self.registers),
                "pc": self.pc,
                "ir": self.ir,
                "mar": self.mar,
                "mdr": self.mdr,
                "memory": list(self.memory),
                "busA": self.bus_a,
                "busB": self.bus_b,
                "aluResult": self.alu_result,
                "aluFlags": self.alu_flags.as_dict(),
                "flags": self.flags.as_dict(),
                "currentStep": self.current_step,
                "status": self.status,
                "executionTrace": [dict(e) for e in self.execution_trace]
            },
            "presetName": self.preset_name
        }

    def export_json(self):
        return json.dumps(self.export_state(), ensure_ascii=False)

    def import_state(self, snapshot):
        """Restore an exported snapshot, given as a dict or JSON text.

        Returns the list of problems found. The simulator is only
        changed when that list is empty.
        """
        snap, errors = st.parse_snapshot(snapshot)
        if not errors:
            errors = st.validate_snapshot(snap, self.config)
        if errors:
            for e in errors:
                common.mode.errlog(f"import_state: {e}")
            return errors

        self.stop_clock()
        s = snap["state"]
        self.ops = [mops.parse_statement(x) for x in snap["microProgram"]]
        self.micro_program = list(snap["microProgram"])
        self.preset_name = snap.get("presetName")
        self.load_warnings = mops.validate_program(self.ops, self.config.register_count)
        self.registers = list(s["registers"])
        self.memory = list(s["memory"])
        self.pc = s["pc"]
        self.ir = s["ir"]
        self.mar = s["mar"]
        self.mdr = s["mdr"]
        self.bus_a = s["busA"]
        self.bus_b = s["busB"]
        self.alu_result = s["aluResult"]
        self.alu_flags = arith.FlagSet.from_dict(s["aluFlags"])
        self.flags = arith.FlagSet.from_dict(s["flags"])
        self.current_step = s["currentStep"]
        self.execution_trace = [dict(e) for e in s["executionTrace"]]
        self.status = st.StatusPaused if s["status"] == st.StatusRunning else s["status"]
        common.mode.devlog(f"import_state {len(self.ops)} statements status={self.status}")
        return []
