"""Plain-text rendering of cycle views and the execution log."""

from __future__ import annotations

from typing import Iterable, List

from .decoder import ABSENT, UNKNOWN
from .history import HistoryEntry
from .view import CycleView

NO_INSTRUCTION_DATA = "(No instruction data available)"
NO_MEM_WRITES = "(No memory writes this cycle)"
NO_HISTORY = "(No execution history yet)"


def render_flags(view: CycleView) -> str:
    return " ".join(f"{bit.name}:{bit.value}" for bit in view.flags)


def render_registers(view: CycleView) -> List[str]:
    rows = list(view.registers)
    rows.append(("FLAGS", render_flags(view)))
    rows.extend(view.system)
    width = max(len(name) for name, _ in rows)
    return [f"  {name:<{width}}  {value}" for name, value in rows]


def render_instruction(view: CycleView) -> List[str]:
    instr = view.instruction
    if instr is None:
        return [f"  PC: {view.pc}", "", f"  {NO_INSTRUCTION_DATA}"]
    opcode = UNKNOWN if instr.opcode is None else instr.opcode
    mode = UNKNOWN if instr.mode is None else instr.mode
    return [
        f"  PC:     {view.pc}",
        f"  Opcode: {instr.mnemonic} ({opcode})",
        f"  Mode:   {instr.mode_name} ({mode})",
        f"  Rd:     {ABSENT if instr.rd is None else instr.rd}",
        f"  Rs:     {ABSENT if instr.rs is None else instr.rs}",
        f"  Extra:  {instr.extra}",
    ]


def render_mem_writes(view: CycleView) -> List[str]:
    if not view.mem_writes:
        return [f"  {NO_MEM_WRITES}"]
    return [f"  Addr {w.addr}: {w.old} → {w.new}" for w in view.mem_writes]


def render_history(entries: Iterable[HistoryEntry]) -> List[str]:
    lines = []
    for entry in entries:
        marker = ">" if entry.is_current else " "
        cycle = ABSENT if entry.cycle is None else entry.cycle
        lines.append(f"{marker} Cycle {cycle}: {entry.instruction}")
    return lines or [f"  {NO_HISTORY}"]


def render_cycle(view: CycleView, progress: float) -> str:
    """Render the full panel for one cycle."""

    cycle = ABSENT if view.cycle is None else view.cycle
    lines = [
        f"Cycle: {cycle} / {max(view.total - 1, 0)}    Progress: {progress:.1f}%",
        "Registers",
        *render_registers(view),
        "Instruction",
        *render_instruction(view),
        "Memory Writes",
        *render_mem_writes(view),
    ]
    return "\n".join(lines)


def render_screen(view: CycleView, progress: float, entries: Iterable[HistoryEntry]) -> str:
    return "\n".join([render_cycle(view, progress), "Execution Log", *render_history(entries)])


__all__ = [
    "render_cycle",
    "render_flags",
    "render_history",
    "render_screen",
]
