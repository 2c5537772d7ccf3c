"""Tests for the IntcodeMachine suspend/resume contract."""

import copy
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from intcode_vm import (
    AWAITING_INPUT,
    HALTED,
    DecodeError,
    InputMode,
    InputNotExpectedError,
    InputQueueEmptyError,
    InputRequiredError,
    IntcodeMachine,
    MachineFault,
    MemoryAccessError,
    Signal,
    Status,
    StepLimitExceeded,
    run_program,
)

# Reads one value, outputs value * 2, repeats forever
DOUBLER = [3, 11, 1002, 11, 2, 11, 4, 11, 1105, 1, 0, 0]

# Reads one value into 11 and outputs 1 if it equals 8, else 0
EQUAL_TO_8 = [3, 9, 8, 9, 10, 9, 4, 9, 99, -1, 8]


class TestConstruction:
    """Test machine construction."""

    def test_initial_state(self):
        """New machines start RUNNING at pointer 0 with relative base 0."""
        machine = IntcodeMachine([99])
        assert machine.status is Status.RUNNING
        assert machine.pointer == 0
        assert machine.relative_base == 0
        assert machine.step_count == 0

    def test_program_is_copied(self):
        """The caller's program list is never mutated."""
        program = [1, 0, 0, 0, 99]
        machine = IntcodeMachine(program)
        machine.run()
        assert program == [1, 0, 0, 0, 99]
        assert machine.memory == [2, 0, 0, 0, 99]

    def test_from_text(self):
        """from_text parses program text."""
        machine = IntcodeMachine.from_text("104,5,99\n")
        assert machine.run() == Signal.output(5)


class TestSuspension:
    """Test the three suspension points."""

    def test_output_then_halt(self):
        """OUTPUT suspends, then HALT."""
        machine = IntcodeMachine([104, 1, 104, 2, 99])
        assert machine.run() == Signal.output(1)
        assert machine.run() == Signal.output(2)
        assert machine.run() == HALTED
        assert machine.is_halted() is True

    def test_halted_is_idempotent(self):
        """run() after HALT returns HALTED with no side effects."""
        machine = IntcodeMachine([1101, 1, 1, 5, 99, 0])
        assert machine.run() == HALTED
        memory = machine.memory
        steps = machine.step_count
        for _ in range(3):
            assert machine.run() == HALTED
        assert machine.memory == memory
        assert machine.step_count == steps

    def test_awaiting_input(self):
        """INPUT with nothing queued suspends with AWAITING_INPUT."""
        machine = IntcodeMachine(list(EQUAL_TO_8))
        assert machine.run() is AWAITING_INPUT
        assert machine.is_awaiting_input() is True
        assert machine.pointer == 0

    def test_awaiting_input_repeats_until_supplied(self):
        """run() keeps reporting AWAITING_INPUT without executing."""
        machine = IntcodeMachine(list(EQUAL_TO_8))
        machine.run()
        assert machine.run() is AWAITING_INPUT
        assert machine.step_count == 0

    def test_supply_input_resumes(self):
        """supply_input lets the pending INPUT complete."""
        machine = IntcodeMachine(list(EQUAL_TO_8))
        assert machine.run() is AWAITING_INPUT
        machine.supply_input(8)
        assert machine.status is Status.RUNNING
        assert machine.run() == Signal.output(1)
        assert machine.run() == HALTED

    def test_interactive_loop(self):
        """A caller can alternate between outputs and inputs."""
        machine = IntcodeMachine(DOUBLER)
        feed = iter([1, 5, -3])
        outputs = []
        for _ in range(7):
            signal = machine.run()
            if signal.is_output:
                outputs.append(signal.value)
            elif signal.is_awaiting_input:
                value = next(feed, None)
                if value is None:
                    break
                machine.supply_input(value)
        assert outputs == [2, 10, -6]


class TestInputContracts:
    """Test pull and queue input conventions."""

    def test_supply_input_when_not_awaiting(self):
        """supply_input is only valid at an AWAITING_INPUT suspension."""
        machine = IntcodeMachine(list(EQUAL_TO_8))
        with pytest.raises(InputNotExpectedError):
            machine.supply_input(1)
        assert machine.status is Status.RUNNING

    def test_supply_input_after_halt(self):
        """supply_input after HALT is a caller error."""
        machine = IntcodeMachine([99])
        machine.run()
        with pytest.raises(InputNotExpectedError):
            machine.supply_input(1)

    def test_push_input_fifo(self):
        """Pushed values are consumed in FIFO order."""
        machine = IntcodeMachine(DOUBLER)
        machine.push_input(1, 2, 3)
        assert [machine.run().value for _ in range(3)] == [2, 4, 6]
        assert machine.run() is AWAITING_INPUT

    def test_push_input_resumes_waiting_machine(self):
        """push_input also satisfies a pending INPUT."""
        machine = IntcodeMachine(DOUBLER)
        assert machine.run() is AWAITING_INPUT
        machine.push_input(21)
        assert machine.run() == Signal.output(42)

    def test_queue_mode_empty_queue_faults(self):
        """In QUEUE mode an empty queue is fatal, not a suspension."""
        machine = IntcodeMachine(DOUBLER, input_mode=InputMode.QUEUE)
        machine.push_input(4)
        assert machine.run() == Signal.output(8)
        with pytest.raises(InputQueueEmptyError):
            machine.run()
        assert machine.status is Status.FAULTED

    def test_run_until_halt(self):
        """run_until_halt collects all outputs."""
        machine = IntcodeMachine(list(EQUAL_TO_8))
        assert machine.run_until_halt([8]) == [1]
        assert machine.is_halted()

    def test_run_until_halt_missing_input(self):
        """run_until_halt rejects programs that want more input."""
        machine = IntcodeMachine(DOUBLER)
        with pytest.raises(InputRequiredError):
            machine.run_until_halt([1])

    def test_missing_input_is_not_a_fault(self):
        """Running out of queued input leaves the machine resumable."""
        machine = IntcodeMachine([3, 0, 4, 0, 99])
        with pytest.raises(InputRequiredError) as excinfo:
            machine.run_until_halt()
        assert not isinstance(excinfo.value, MachineFault)
        assert machine.status is Status.AWAITING_INPUT
        assert machine.fault is None
        assert machine.get_summary()["error"] is None
        machine.supply_input(6)
        assert machine.run() == Signal.output(6)

    def test_run_program(self):
        """run_program is a one-call helper."""
        assert run_program(EQUAL_TO_8, [5]) == [0]


class TestFaults:
    """Test structured failures."""

    def test_unknown_opcode(self):
        """Unknown opcodes raise DecodeError and fault the machine."""
        machine = IntcodeMachine([104, 1, 42])
        assert machine.run() == Signal.output(1)
        with pytest.raises(DecodeError) as excinfo:
            machine.run()
        assert excinfo.value.pointer == 2
        assert "at pointer 2" in str(excinfo.value)
        assert machine.status is Status.FAULTED
        assert machine.fault is excinfo.value

    def test_fault_is_sticky(self):
        """A faulted machine re-raises on every later run()."""
        machine = IntcodeMachine([42])
        with pytest.raises(DecodeError):
            machine.run()
        with pytest.raises(DecodeError):
            machine.run()

    def test_negative_jump_target(self):
        """Jumping to a negative address faults on the next fetch."""
        machine = IntcodeMachine([1105, 1, -4])
        with pytest.raises(MemoryAccessError) as excinfo:
            machine.run()
        assert excinfo.value.pointer == -4
        assert "at pointer -4" in str(excinfo.value)
        assert "at pointer -4" in machine.get_summary()["error"]

    def test_faults_are_machine_faults(self):
        """All fatal conditions share one base class."""
        machine = IntcodeMachine([4, -1, 99])
        with pytest.raises(MachineFault):
            machine.run()

    def test_fault_does_not_affect_other_machines(self):
        """A fault in one machine leaves another untouched."""
        good = IntcodeMachine([104, 7, 99])
        bad = IntcodeMachine([77])
        with pytest.raises(DecodeError):
            bad.run()
        assert good.run() == Signal.output(7)

    def test_get_summary_reports_error(self):
        """Summary includes the fault message."""
        machine = IntcodeMachine([77])
        with pytest.raises(DecodeError):
            machine.run()
        summary = machine.get_summary()
        assert summary["status"] == "FAULTED"
        assert "Unknown opcode 77" in summary["error"]


class TestStepBudget:
    """Test caller-imposed step budgets."""

    def test_budget_exceeded(self):
        """An infinite loop stops when the budget runs out."""
        machine = IntcodeMachine([1105, 1, 0])
        with pytest.raises(StepLimitExceeded):
            machine.run(max_steps=100)
        assert machine.step_count == 100

    def test_budget_is_not_a_fault(self):
        """The machine stays resumable after the budget runs out."""
        machine = IntcodeMachine([1101, 0, 0, 20, 1101, 0, 0, 20, 104, 3, 99])
        with pytest.raises(StepLimitExceeded):
            machine.run(max_steps=1)
        assert machine.status is Status.RUNNING
        assert machine.run() == Signal.output(3)

    def test_budget_enough(self):
        """A sufficient budget behaves like no budget."""
        machine = IntcodeMachine([104, 3, 99])
        assert machine.run(max_steps=1) == Signal.output(3)

    def test_zero_budget_after_halt(self):
        """A halted machine reports HALTED even with no budget left."""
        machine = IntcodeMachine([99])
        assert machine.run() == HALTED
        assert machine.run(max_steps=0) == HALTED

    def test_zero_budget_while_awaiting_input(self):
        """A machine waiting for input reports it without spending steps."""
        machine = IntcodeMachine([3, 0, 99])
        assert machine.run() is AWAITING_INPUT
        assert machine.run(max_steps=0) is AWAITING_INPUT

    def test_zero_budget_with_input_ready(self):
        """Queued input makes the machine runnable, so the budget applies."""
        machine = IntcodeMachine([3, 0, 99])
        machine.run()
        machine.supply_input(1)
        with pytest.raises(StepLimitExceeded):
            machine.run(max_steps=0)

    def test_zero_budget_after_fault(self):
        """A faulted machine re-raises its fault rather than the budget error."""
        machine = IntcodeMachine([42])
        with pytest.raises(DecodeError):
            machine.run()
        with pytest.raises(DecodeError):
            machine.run(max_steps=0)


class TestFork:
    """Test deep copies for speculative exploration."""

    def test_fork_at_awaiting_input(self):
        """Forks supplied with different inputs never interfere."""
        machine = IntcodeMachine(list(EQUAL_TO_8))
        assert machine.run() is AWAITING_INPUT

        left = machine.copy()
        right = machine.copy()
        left.supply_input(8)
        right.supply_input(5)

        assert left.run() == Signal.output(1)
        assert right.run() == Signal.output(0)
        assert left.run() == HALTED
        assert right.run() == HALTED
        assert left.read(9) == 1
        assert right.read(9) == 0

        # Original is still suspended and unchanged
        assert machine.is_awaiting_input()
        assert machine.memory == EQUAL_TO_8

    def test_fork_copies_queued_input(self):
        """Queued inputs are copied, not shared."""
        machine = IntcodeMachine(DOUBLER)
        machine.push_input(1, 2)
        clone = machine.copy()
        assert machine.run() == Signal.output(2)
        assert clone.run() == Signal.output(2)
        clone.push_input(100)
        assert machine.run() == Signal.output(4)
        assert machine.run() is AWAITING_INPUT
        assert clone.run() == Signal.output(4)
        assert clone.run() == Signal.output(200)

    def test_copy_module_support(self):
        """copy.copy and copy.deepcopy both fork."""
        machine = IntcodeMachine([1101, 1, 1, 10, 99])
        for clone in (copy.copy(machine), copy.deepcopy(machine)):
            clone.run()
            assert clone.read(10) == 2
        assert machine.read(10) == 0


class TestTrace:
    """Test the optional execution trace."""

    def test_trace_disabled_by_default(self):
        """No entries are recorded unless asked."""
        machine = IntcodeMachine([104, 1, 99])
        machine.run()
        assert machine.trace == []

    def test_trace_entries(self):
        """Each executed step is recorded with its rendering."""
        machine = IntcodeMachine([1002, 4, 3, 4, 33], record_trace=True)
        assert machine.run() == HALTED
        assert len(machine.trace) == 2
        first = machine.trace[0]
        assert first.pointer == 0
        assert first.word == 1002
        assert first.text == "MUL [4], #3 -> [4]"
        assert first.pre_state["pointer"] == 0
        assert first.post_state["pointer"] == 4
        assert machine.trace[1].signal == HALTED

    def test_trace_records_fault(self):
        """A faulting step is recorded with its error."""
        machine = IntcodeMachine([55], record_trace=True)
        with pytest.raises(DecodeError):
            machine.run()
        assert machine.trace[-1].error is not None
        assert machine.trace[-1].text == "<55>"

    def test_print_trace(self, capsys):
        """print_trace writes a readable trace."""
        machine = IntcodeMachine([104, 9, 99], record_trace=True)
        machine.run()
        machine.run()
        machine.print_trace()
        out = capsys.readouterr().out
        assert "OUT #9" in out
        assert "Output(9)" in out
        assert "HALTED" in out
