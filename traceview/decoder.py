"""Decoding and formatting of raw cycle-trace fields.

Every function here is pure and total: malformed or out-of-range input
degrades to :data:`UNKNOWN` / :data:`ABSENT` or to the input itself, so a
trace produced by a newer or older simulator still renders.
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Optional, Tuple

# fmt: off
OPCODE_MNEMONICS: Tuple[str, ...] = (
    "NOP", "HALT", "MOV", "LOAD", "STORE",
    "ADD", "SUB", "AND", "OR", "XOR",
    "CMP", "SHL", "SHR", "JMP", "JZ",
    "JNZ", "JC", "JNC", "JN", "CALL",
    "RET", "PUSH", "POP", "IN", "OUT",
)
# fmt: on

MODE_NAMES: Tuple[str, ...] = ("REG", "IMM", "DIR", "IND", "OFF", "REL")

# Most significant of the low four bits first.
FLAG_NAMES: Tuple[str, ...] = ("Z", "N", "C", "V")

UNKNOWN = "?"
ABSENT = "-"
NO_INSTRUCTION = "N/A"

VALUE_MASK = 0xFFFF
FLAG_MASK = 0x0F


def _is_hex_literal(value: str) -> bool:
    return value.startswith(("0x", "0X"))


def parse_int(raw: Any) -> Optional[int]:
    """Parse a numeric-or-hex-string trace field, returning ``None`` on failure."""

    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        if not math.isfinite(raw):
            return None
        return int(raw)
    if isinstance(raw, str):
        text = raw.strip()
        try:
            if _is_hex_literal(text):
                return int(text, 16)
            return int(text, 10)
        except ValueError:
            return None
    return None


def _lookup(table: Tuple[str, ...], raw: Any) -> str:
    if isinstance(raw, float) and not raw.is_integer():
        return UNKNOWN
    index = parse_int(raw)
    if index is None or not 0 <= index < len(table):
        return UNKNOWN
    return table[index]


def decode_opcode(raw: Any) -> str:
    """Return the mnemonic for ``raw`` or :data:`UNKNOWN`."""
    return _lookup(OPCODE_MNEMONICS, raw)


def decode_mode(raw: Any) -> str:
    """Return the addressing-mode name for ``raw`` or :data:`UNKNOWN`."""
    return _lookup(MODE_NAMES, raw)


def decode_flags(raw: Any) -> Tuple[Tuple[str, int], ...]:
    """Split a flags bitmask into ``(name, bit)`` pairs, Z first."""

    value = parse_int(raw)
    if value is None:
        value = 0
    value &= FLAG_MASK
    width = len(FLAG_NAMES)
    return tuple(
        (name, (value >> (width - 1 - i)) & 1) for i, name in enumerate(FLAG_NAMES)
    )


def _to_hex(value: int, width: int) -> str:
    return f"0x{value & VALUE_MASK:0{width}X}"


def format_value(val: Any, width: int = 4) -> str:
    """Canonicalise a trace value as an uppercase ``0x``-prefixed hex string.

    Numeric input is masked to 16 bits and zero padded to ``width`` digits.
    Strings that already carry a ``0x`` prefix keep their authored digits
    (only the case is normalised), so wider debug fields survive intact.
    """

    if val is None:
        return ABSENT
    if isinstance(val, bool):
        return str(val)
    if isinstance(val, str):
        if _is_hex_literal(val):
            return "0x" + val[2:].upper()
        if not val.strip():
            return _to_hex(0, width)
        parsed = parse_int(val)
        if parsed is None:
            try:
                parsed = parse_int(float(val))
            except ValueError:
                parsed = None
        if parsed is None:
            return val
        return _to_hex(parsed, width)
    if isinstance(val, (int, float)):
        parsed = parse_int(val)
        if parsed is None:
            return str(val)
        return _to_hex(parsed, width)
    return str(val)


def instruction_summary(snapshot: Any) -> str:
    """One-line ``MNEMONIC (PC: 0x....)`` summary used by the history log."""

    if not isinstance(snapshot, Mapping):
        return NO_INSTRUCTION
    instr = snapshot.get("instr")
    if not isinstance(instr, Mapping):
        return NO_INSTRUCTION
    mnemonic = decode_opcode(instr.get("opcode"))
    return f"{mnemonic} (PC: {format_value(snapshot.get('pc'), 4)})"


__all__ = [
    "ABSENT",
    "FLAG_NAMES",
    "MODE_NAMES",
    "NO_INSTRUCTION",
    "OPCODE_MNEMONICS",
    "UNKNOWN",
    "decode_flags",
    "decode_mode",
    "decode_opcode",
    "format_value",
    "instruction_summary",
    "parse_int",
]
