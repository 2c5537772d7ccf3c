#!/usr/bin/env python3
"""Intcode VM Command Line Interface.

Run Intcode programs with the resumable Intcode machine.

Usage:
    python main.py --program programs/diagnostic.txt --input 5
    python main.py --inline "3,9,8,9,10,9,4,9,99,-1,8" --input 8
"""

import argparse
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from intcode_vm import IntcodeMachine, MachineFault, ProgramFormatError, StepLimitExceeded


def parse_inputs(values):
    """Flatten repeated --input flags, each of which may be a comma list."""
    result = []
    for value in values or []:
        for part in value.split(","):
            part = part.strip()
            if part:
                result.append(int(part))
    return result


def main():
    parser = argparse.ArgumentParser(
        description="Intcode VM: Resumable Intcode Interpreter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run a program file with two queued inputs
    python main.py --program day09.txt --input 1 --input 2

    # Run with full trace output
    python main.py --inline "1002,4,3,4,33" --trace

    # Answer input requests from the keyboard
    python main.py --program day05.txt --interactive

    # Print outputs as ASCII text
    python main.py --program day17.txt --ascii
        """
    )

    parser.add_argument(
        "--program", "-p",
        type=str,
        help="Path to program file (comma- or newline-separated integers)"
    )
    parser.add_argument(
        "--inline", "-i",
        type=str,
        help="Inline program text"
    )
    parser.add_argument(
        "--input", "-n",
        action="append",
        help="Input value(s); repeatable, comma lists allowed"
    )
    parser.add_argument(
        "--interactive",
        action="store_true",
        help="Prompt on stdin whenever the program needs input"
    )
    parser.add_argument(
        "--ascii", "-a",
        action="store_true",
        help="Print outputs below 128 as ASCII characters"
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help="Maximum instructions between suspensions. Default: unlimited"
    )
    parser.add_argument(
        "--trace", "-t",
        action="store_true",
        help="Print full execution trace"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Minimal output (outputs only)"
    )

    args = parser.parse_args()

    if not args.program and not args.inline:
        parser.error("Either --program or --inline is required")

    try:
        inputs = parse_inputs(args.input)
    except ValueError as e:
        parser.error(f"Invalid --input value: {e}")

    # Load program
    if args.program:
        program_path = Path(args.program)
        if not program_path.exists():
            print(f"Error: Program file not found: {args.program}")
            sys.exit(1)
        source = program_path.read_text()
        if not args.quiet:
            print(f"Loading program: {args.program}")
    else:
        source = args.inline
        if not args.quiet:
            print("Running inline program")

    try:
        machine = IntcodeMachine.from_text(source, record_trace=args.trace)
    except ProgramFormatError as e:
        print(f"Error: {e}")
        sys.exit(1)

    machine.push_input(*inputs)

    if not args.quiet:
        print("-" * 60)
        print("Executing...")
        print("-" * 60)

    outputs = []
    text = []
    try:
        while True:
            signal = machine.run(max_steps=args.max_steps)
            if signal.is_output:
                outputs.append(signal.value)
                if args.ascii and 0 <= signal.value < 128:
                    text.append(chr(signal.value))
                elif args.quiet or args.ascii:
                    if text:
                        print("".join(text), end="")
                        text = []
                    print(signal.value)
                else:
                    print(f"Output: {signal.value}")
            elif signal.is_awaiting_input:
                if not args.interactive:
                    print("Execution stopped: program is waiting for input")
                    break
                try:
                    line = input("> ")
                except EOFError:
                    print("Execution stopped: end of input")
                    break
                try:
                    machine.supply_input(int(line.strip()))
                except ValueError:
                    print(f"Not an integer: {line.strip()!r}")
            else:
                break
    except (MachineFault, StepLimitExceeded) as e:
        print(f"Execution error: {e}")

    if text:
        print("".join(text), end="")

    if args.trace:
        machine.print_trace()
    elif not args.quiet:
        print()
        summary = machine.get_summary()
        print(f"Steps: {summary['steps']}")
        print(f"Status: {summary['status']}")
        print(f"Outputs: {len(outputs)}")
        if summary['error']:
            print(f"Error: {summary['error']}")

    # Return exit code based on halted state
    return 0 if machine.is_halted() else 1


if __name__ == "__main__":
    sys.exit(main())
