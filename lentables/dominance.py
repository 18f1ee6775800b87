"""Majority vote between the encoding forms sharing an opcode."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import List, Sequence

from .metadata import OpcodeMetadata


@dataclass(frozen=True)
class Dominance:
    metadata: OpcodeMetadata
    conflicting: bool = False


def resolve_dominant(records: Sequence[OpcodeMetadata]) -> Dominance:
    """Pick the canonical metadata for one (map, opcode) slot.

    Directly declared records vote; the most frequent value wins and the first
    seen value wins a tie.  Alias clones only decide the slot when nothing was
    declared for it directly, in which case the clone of the highest origin
    opcode is used.
    """

    if not records:
        raise ValueError("cannot resolve the dominant metadata of an empty slot")

    direct: List[OpcodeMetadata] = [record for record in records if not record.is_alias]
    if not direct:
        return Dominance(max(records, key=lambda record: record.origin))

    # Counter keeps the first record of every value as its key and
    # most_common() is stable for equal counts.
    votes = Counter(direct)
    winner, _ = votes.most_common(1)[0]
    return Dominance(winner, conflicting=len(votes) > 1)
