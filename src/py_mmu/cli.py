"""Command-line driver for the MMU simulation.

The driver is a thin I/O wrapper around ``MemorySimulation``:

    1. Build the simulation (optionally from a JSON geometry and a seed).
    2. Ask how many processes to simulate (unless ``--count`` was given).
    3. Repeat the create → request → translate step for each process.
    4. Show the requested memory view, then deallocate every process.

Running out of process slots ends the run at once with exit status 1,
as does an unreadable config file.  The formatting helpers are pure so
they can be tested without any I/O.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from py_mmu.config import DEFAULT_CONFIG, ConfigError, load_config
from py_mmu.entropy import RandomEntropy
from py_mmu.memory.translator import TranslationStatus
from py_mmu.process.lifecycle import SlotsExhaustedError
from py_mmu.simulation import MemorySimulation
from py_mmu.visualize import (
    format_page_table,
    format_physical_memory,
    format_summary,
    format_virtual_memory,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from py_mmu.simulation import StepReport

EXIT_OK = 0
EXIT_FAILURE = 1
_BANNER_WIDTH = 38


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for ``py-mmu``."""
    parser = argparse.ArgumentParser(
        prog="py-mmu",
        description="Simulate an MMU with two-level paging and first-fit allocation.",
    )
    parser.add_argument("--seed", type=int, default=None, help="seed for reproducible runs")
    parser.add_argument("--count", type=int, default=None, help="number of processes")
    parser.add_argument("--config", type=Path, default=None, help="JSON geometry overrides")
    parser.add_argument(
        "--show",
        choices=("virtual", "physical", "pagetables", "none"),
        default="virtual",
        help="memory view to print after the run",
    )
    parser.add_argument("--log", action="store_true", help="print the full event log")
    return parser


def format_banner(sim: MemorySimulation, seed: int) -> str:
    """Format the geometry banner shown before the run."""
    border = "=" * _BANNER_WIDTH
    body = "\n".join(f"  {line}" for line in sim.boot_log())
    return f"  {border}\n        MMU simulation (seed {seed})\n  {border}\n{body}\n"


def format_step(report: StepReport) -> str:
    """Format one step's outcome as a short paragraph."""
    process = report.process
    lines = [f"Process {process.pid}: {process.size} bytes"]
    if report.denied:
        lines.append("  memory request denied")
        return "\n".join(lines)
    lines.append(f"  granted {report.granted} bytes")
    result = report.translation
    if result is None:
        if report.error is not None:
            lines.append(f"  not translated: {report.error}")
        return "\n".join(lines)
    lines.append(
        f"  logical address {result.logical_address} → page {result.page_number} "
        f"[{result.outer_index}][{result.inner_index}], offset {result.offset}"
    )
    if result.status is TranslationStatus.MAPPED:
        lines.append(
            f"  page fault: {result.required_pages} frame(s) at frame {result.frame_number}, "
            f"physical address {result.physical_address}"
        )
    elif result.status is TranslationStatus.ALREADY_MAPPED:
        lines.append(f"  page {result.page_number} already mapped to frame {result.frame_number}")
    else:
        lines.append("  page fault: no free block, process left unmapped")
    return "\n".join(lines)


def read_process_count(maximum: int, *, input_fn: Callable[[str], str] = input) -> int | None:
    """Prompt until the user enters a count in ``[1, maximum]``.

    Returns:
        The count, or None if input ended (Ctrl+D) or was interrupted.

    """
    while True:
        try:
            text = input_fn(f"How many processes (1-{maximum})? ")
        except (EOFError, KeyboardInterrupt):
            return None
        try:
            count = int(text)
        except ValueError:
            print(f"Not a number: {text!r}")  # noqa: T201
            continue
        if 1 <= count <= maximum:
            return count
        print(f"Enter a number between 1 and {maximum}.")  # noqa: T201


def run(argv: Sequence[str] | None = None, *, input_fn: Callable[[str], str] = input) -> int:
    """Run one simulation from the command line and return the exit status."""
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.config) if args.config is not None else DEFAULT_CONFIG
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)  # noqa: T201
        return EXIT_FAILURE

    entropy = RandomEntropy(config, seed=args.seed)
    sim = MemorySimulation(config, entropy=entropy)
    print(format_banner(sim, entropy.seed))  # noqa: T201

    count = args.count
    if count is None:
        count = read_process_count(config.max_process_count, input_fn=input_fn)
        if count is None:
            print("\nNo processes simulated.")  # noqa: T201
            return EXIT_OK

    try:
        for _ in range(count):
            print(format_step(sim.step()))  # noqa: T201
    except SlotsExhaustedError as e:
        print(f"Error: {e}", file=sys.stderr)  # noqa: T201
        return EXIT_FAILURE

    if args.show == "virtual":
        print(format_virtual_memory(sim.virtual))  # noqa: T201
    elif args.show == "physical":
        print(format_physical_memory(sim.physical))  # noqa: T201
    elif args.show == "pagetables":
        for process in sim.processes:
            print(format_page_table(process))  # noqa: T201
    if args.log:
        print("\n".join(sim.logger.lines()))  # noqa: T201

    print(format_summary(sim))  # noqa: T201
    sim.teardown()
    print(f"Deallocated all processes; {sim.physical.remaining_bytes} bytes free.")  # noqa: T201
    return EXIT_OK


def main() -> None:
    """Console entry point for ``py-mmu``."""
    raise SystemExit(run())
