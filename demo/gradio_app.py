"""Intcode VM Interactive Demo.

A Gradio web interface for running and inspecting Intcode programs.

Usage:
    cd /path/to/intcode-vm
    python demo/gradio_app.py

Features:
    - Paste or load example programs
    - Queue input values up front
    - See outputs, final machine state and a step-by-step trace
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import gradio as gr
from intcode_vm import IntcodeMachine, MachineFault, ProgramFormatError, StepLimitExceeded


# =============================================================================
# Example Programs
# =============================================================================

EXAMPLE_PROGRAMS = {
    "Equal to 8 (position)": ("3,9,8,9,10,9,4,9,99,-1,8", "8"),
    "Less than 8 (immediate)": ("3,3,1107,-1,8,3,4,3,99", "5"),
    "Compare with 8": (
        "3,21,1008,21,8,20,1005,20,22,107,8,21,20,1006,20,31,"
        "1106,0,36,98,0,0,1002,21,125,20,4,20,1105,1,46,104,"
        "999,1105,1,46,1101,1000,1,20,4,20,1105,1,46,98,99",
        "9",
    ),
    "Quine": ("109,1,204,-1,1001,100,1,100,1008,100,16,101,1006,101,0,99", ""),
    "16-digit output": ("1102,34915192,34915192,7,4,7,99,0", ""),
    "Large value": ("104,1125899906842624,99", ""),
    "Custom": ("", ""),
}

TRACE_LIMIT = 200


# =============================================================================
# Execution Functions
# =============================================================================

def run_program(program: str, inputs: str, max_steps: int, show_trace: bool) -> tuple:
    """Execute an Intcode program and return results.

    Args:
        program: Program text
        inputs: Comma-separated input values
        max_steps: Maximum instructions for the whole run
        show_trace: Record and render the execution trace

    Returns:
        Tuple of (summary_text, outputs_text, trace_text)
    """
    if not program.strip():
        return "Error: No program provided", "", ""

    try:
        machine = IntcodeMachine.from_text(program, record_trace=show_trace)
        values = [int(v) for v in inputs.replace("\n", ",").split(",") if v.strip()]
    except (ProgramFormatError, ValueError) as e:
        return f"Error: {e}", "", ""

    machine.push_input(*values)

    budget = int(max_steps)
    outputs = []
    error_msg = None
    try:
        while True:
            remaining = budget - machine.step_count
            if remaining <= 0 and not machine.is_halted():
                error_msg = f"Step budget exhausted ({budget} steps)"
                break
            signal = machine.run(max_steps=remaining)
            if signal.is_output:
                outputs.append(signal.value)
            elif signal.is_awaiting_input:
                error_msg = "Program is waiting for more input"
                break
            else:
                break
    except StepLimitExceeded:
        error_msg = f"Step budget exhausted ({budget} steps)"
    except MachineFault as e:
        error_msg = str(e)

    # Format summary
    summary = machine.get_summary()
    summary_lines = [
        "EXECUTION SUMMARY",
        "=" * 40,
        f"Steps: {summary['steps']}",
        f"Status: {summary['status']}",
        f"IP: {summary['pointer']}",
        f"Relative base: {summary['relative_base']}",
        f"Memory cells: {summary['memory_size']}",
        f"Unused inputs: {summary['pending_inputs']}",
    ]
    if error_msg:
        summary_lines.append(f"\nStopped: {error_msg}")
    summary_text = "\n".join(summary_lines)

    outputs_text = "\n".join(str(v) for v in outputs)

    # Format trace
    trace_text = ""
    if show_trace:
        trace_lines = ["EXECUTION TRACE", "=" * 60]
        for entry in machine.trace[:TRACE_LIMIT]:
            line = f"{entry.step:>6}  IP={entry.pointer:<6} {entry.text}"
            if entry.signal is not None:
                line += f"   => {entry.signal}"
            if entry.error:
                line += f"   !! {entry.error}"
            trace_lines.append(line)
        if len(machine.trace) > TRACE_LIMIT:
            trace_lines.append(f"\n... ({len(machine.trace) - TRACE_LIMIT} more entries)")
        trace_text = "\n".join(trace_lines)

    return summary_text, outputs_text, trace_text


def load_example(example_name: str) -> tuple:
    """Load an example program and its suggested inputs."""
    return EXAMPLE_PROGRAMS.get(example_name, ("", ""))


# =============================================================================
# Gradio Interface
# =============================================================================

def create_demo():
    """Create and return the Gradio demo interface."""

    with gr.Blocks(title="Intcode VM Demo", theme=gr.themes.Soft()) as demo:
        gr.Markdown("""
        # Intcode VM: Resumable Intcode Interpreter

        Programs run until they produce an output, need an input, or halt.
        This page queues your inputs up front and collects every output.

        **Pipeline**: `fetch -> decode -> control unit -> state`
        """)

        with gr.Row():
            with gr.Column(scale=2):
                gr.Markdown("### Program")

                example_dropdown = gr.Dropdown(
                    choices=list(EXAMPLE_PROGRAMS.keys()),
                    value="Equal to 8 (position)",
                    label="Load Example"
                )

                program_input = gr.Textbox(
                    value=EXAMPLE_PROGRAMS["Equal to 8 (position)"][0],
                    label="Program Text",
                    lines=8,
                    placeholder="Comma-separated integers..."
                )

                inputs_box = gr.Textbox(
                    value=EXAMPLE_PROGRAMS["Equal to 8 (position)"][1],
                    label="Inputs (comma-separated)"
                )

                gr.Markdown("### Settings")

                with gr.Row():
                    max_steps = gr.Slider(
                        minimum=100,
                        maximum=10000000,
                        value=1000000,
                        step=100,
                        label="Max Steps"
                    )
                    show_trace = gr.Checkbox(value=True, label="Record Trace")

                run_button = gr.Button("Run Program", variant="primary")

            with gr.Column(scale=3):
                with gr.Row():
                    summary_output = gr.Textbox(
                        label="Summary",
                        lines=10,
                        interactive=False
                    )
                    outputs_output = gr.Textbox(
                        label="Outputs",
                        lines=10,
                        interactive=False
                    )

                trace_output = gr.Textbox(
                    label="Execution Trace",
                    lines=20,
                    interactive=False
                )

        with gr.Accordion("Instruction Reference", open=False):
            gr.Markdown("""
            | Opcode | Mnemonic | Effect |
            |--------|----------|--------|
            | `1` | `ADD a, b -> c` | c = a + b |
            | `2` | `MUL a, b -> c` | c = a * b |
            | `3` | `IN -> a` | a = next input |
            | `4` | `OUT a` | emit a |
            | `5` | `JT a, b` | jump to b if a != 0 |
            | `6` | `JF a, b` | jump to b if a == 0 |
            | `7` | `LT a, b -> c` | c = 1 if a < b else 0 |
            | `8` | `EQ a, b -> c` | c = 1 if a == b else 0 |
            | `9` | `ARB a` | relative base += a |
            | `99` | `HALT` | stop |

            **Modes** (hundreds, thousands, ten-thousands digit):
            `0` position `[n]`, `1` immediate `#n`, `2` relative `[rb+n]`
            """)

        example_dropdown.change(
            fn=load_example,
            inputs=[example_dropdown],
            outputs=[program_input, inputs_box]
        )

        run_button.click(
            fn=run_program,
            inputs=[program_input, inputs_box, max_steps, show_trace],
            outputs=[summary_output, outputs_output, trace_output]
        )

    return demo


# =============================================================================
# Main
# =============================================================================

if __name__ == "__main__":
    demo = create_demo()
    demo.launch(
        share=False,
        server_name="0.0.0.0",
        server_port=7861,
        show_error=True
    )
