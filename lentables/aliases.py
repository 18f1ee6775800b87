"""Expansion of partial (nibble masked) opcodes into per-opcode aliases."""

from __future__ import annotations

from typing import List, Tuple

from .metadata import OpcodeMetadata


def expand_aliases(
    metadata: OpcodeMetadata, opcode: int, mask: int
) -> List[Tuple[int, OpcodeMetadata]]:
    """Clone ``metadata`` onto the opcodes governed by a partial descriptor.

    ``mask`` is the fixed high nibble.  Only the part of the sixteen opcode
    block starting at the declared ``opcode`` is aliased, every clone records
    ``opcode`` as its origin.
    """

    if not (0 <= mask <= 0xF):
        raise ValueError(f"partial opcode mask {mask:#x} is wider than a nibble")

    aliases: List[Tuple[int, OpcodeMetadata]] = []
    base = mask << 4
    for nibble in range(0x10):
        candidate = base | nibble
        if candidate < opcode:
            continue
        aliases.append((candidate, metadata.cloned_from(opcode)))
    return aliases
