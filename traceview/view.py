"""Display-independent view of a single cycle snapshot."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from .decoder import decode_flags, decode_mode, decode_opcode, format_value, parse_int

SYSTEM_REGISTERS: Tuple[Tuple[str, str], ...] = (
    ("SP", "sp"),
    ("IR", "ir"),
    ("MAR", "mar"),
    ("MDR", "mdr"),
)


@dataclass(frozen=True)
class FlagBit:
    name: str
    value: int

    @property
    def is_set(self) -> bool:
        return bool(self.value)


@dataclass(frozen=True)
class InstructionView:
    """Decoded ``instr`` block."""

    opcode: Optional[int]
    mnemonic: str
    mode: Optional[int]
    mode_name: str
    rd: Any
    rs: Any
    extra: str


@dataclass(frozen=True)
class MemoryWriteView:
    addr: str
    old: str
    new: str


@dataclass(frozen=True)
class CycleView:
    """Everything a presenter needs to draw one cycle, already formatted."""

    index: int
    total: int
    cycle: Any
    pc: str
    registers: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
    flags: Tuple[FlagBit, ...] = field(default_factory=tuple)
    system: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
    instruction: Optional[InstructionView] = None
    mem_writes: Tuple[MemoryWriteView, ...] = field(default_factory=tuple)

    @property
    def has_instruction(self) -> bool:
        return self.instruction is not None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["registers"] = [list(pair) for pair in self.registers]
        data["system"] = [list(pair) for pair in self.system]
        data["flags"] = list(data["flags"])
        data["mem_writes"] = list(data["mem_writes"])
        return data


def _build_instruction(instr: Any) -> Optional[InstructionView]:
    if not isinstance(instr, Mapping):
        return None
    return InstructionView(
        opcode=parse_int(instr.get("opcode")),
        mnemonic=decode_opcode(instr.get("opcode")),
        mode=parse_int(instr.get("mode")),
        mode_name=decode_mode(instr.get("mode")),
        rd=instr.get("rd"),
        rs=instr.get("rs"),
        extra=format_value(instr.get("extra"), 4),
    )


def _build_mem_writes(writes: Any) -> Tuple[MemoryWriteView, ...]:
    if not isinstance(writes, (list, tuple)):
        return ()
    views = []
    for write in writes:
        if not isinstance(write, Mapping):
            continue
        views.append(
            MemoryWriteView(
                addr=format_value(write.get("addr"), 4),
                old=format_value(write.get("old"), 2),
                new=format_value(write.get("new"), 2),
            )
        )
    return tuple(views)


def build_cycle_view(snapshot: Any, index: int, total: int) -> CycleView:
    """Decode ``snapshot`` into a :class:`CycleView`; never raises."""

    if not isinstance(snapshot, Mapping):
        return CycleView(index=index, total=total, cycle=None, pc=format_value(None))

    raw_registers = snapshot.get("registers")
    registers: Tuple[Tuple[str, str], ...] = ()
    if isinstance(raw_registers, Mapping):
        registers = tuple(
            (str(name), format_value(value, 4)) for name, value in raw_registers.items()
        )

    system = tuple(
        (label, format_value(snapshot[key], 4))
        for label, key in SYSTEM_REGISTERS
        if key in snapshot
    )

    return CycleView(
        index=index,
        total=total,
        cycle=snapshot.get("cycle"),
        pc=format_value(snapshot.get("pc"), 4),
        registers=registers,
        flags=tuple(FlagBit(name, bit) for name, bit in decode_flags(snapshot.get("flags"))),
        system=system,
        instruction=_build_instruction(snapshot.get("instr")),
        mem_writes=_build_mem_writes(snapshot.get("mem_writes")),
    )


__all__ = [
    "CycleView",
    "FlagBit",
    "InstructionView",
    "MemoryWriteView",
    "build_cycle_view",
]
