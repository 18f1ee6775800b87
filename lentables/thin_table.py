"""Range compression of the dense opcode tables."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterator, List, Optional, Sequence, Tuple

from .errors import ConsistencyError
from .fat_table import OPCODE_COUNT, FatTable
from .metadata import OpcodeMetadata


logger = logging.getLogger(__name__)

Entries = Sequence[Optional[OpcodeMetadata]]

# marks working slots already covered by an emitted range
_CLAIMED = object()

# rule counts are stored in one byte by the consumer
MAX_RULES = 0xFF


@dataclass(frozen=True)
class OpcodeRange:
    """Inclusive opcode range sharing one metadata value."""

    start: int
    end: int
    metadata: OpcodeMetadata

    def __contains__(self, opcode: object) -> bool:
        return isinstance(opcode, int) and self.start <= opcode <= self.end

    @property
    def width(self) -> int:
        return self.end - self.start + 1


@dataclass(frozen=True)
class RangeTable:
    """Rules of one map in emission order; the first covering rule wins."""

    map_index: int
    rules: Tuple[OpcodeRange, ...]

    def lookup(self, opcode: int) -> Optional[OpcodeMetadata]:
        for rule in self.rules:
            if opcode in rule:
                return rule.metadata
        return None

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self) -> Iterator[OpcodeRange]:
        return iter(self.rules)

    @property
    def name(self) -> str:
        return f"OPCODE_TABLE_{self.map_index}"


@dataclass(frozen=True)
class ThinTable:
    tables: Tuple[RangeTable, ...]

    def lookup(self, map_index: int, opcode: int) -> Optional[OpcodeMetadata]:
        if not (0 <= map_index < len(self.tables)):
            return None
        return self.tables[map_index].lookup(opcode)

    def rule_counts(self) -> List[int]:
        return [len(table) for table in self.tables]


class RangeCompressor:
    """Greedy replacement of a dense table by metadata-uniform ranges.

    Empty slots are "don't care": the disassembler never asks for an opcode
    that does not exist, so a range may run across them.  Each round picks the
    range covering the most occupied slots, the first one in ascending
    ``(start, end)`` order on ties.  Slots of an emitted range are claimed and
    no later range may cross them, which keeps the rules disjoint.  The result
    is not guaranteed to be the smallest possible rule set.
    """

    def compress(self, map_index: int, entries: Entries) -> RangeTable:
        if len(entries) != OPCODE_COUNT:
            raise ValueError(f"map {map_index} table must have {OPCODE_COUNT} entries")

        working: List[object] = list(entries)
        rules: List[OpcodeRange] = []
        while True:
            candidate = self._best_candidate(working)
            if candidate is None:
                break
            start, end = candidate
            rule = OpcodeRange(start, end, working[start])
            logger.debug(
                "map %d: range %#x-%#x is %s", map_index, start, end, rule.metadata.describe()
            )
            rules.append(rule)
            for opcode in range(start, end + 1):
                working[opcode] = _CLAIMED

        if not rules:
            # C++ has no empty arrays, any metadata serves an unused map
            rules.append(OpcodeRange(0, OPCODE_COUNT - 1, OpcodeMetadata()))
        if len(rules) > MAX_RULES:
            raise ConsistencyError(
                f"map {map_index} needs {len(rules)} ranges, the table length field holds {MAX_RULES}"
            )

        table = RangeTable(map_index, tuple(absorb_gaps(rules)))
        verify_ranges(table, entries)
        return table

    @staticmethod
    def _best_candidate(working: Sequence[object]) -> Optional[Tuple[int, int]]:
        best: Optional[Tuple[int, int]] = None
        best_count = 0
        for start, value in enumerate(working):
            if value is None or value is _CLAIMED:
                continue
            count = 0
            for end in range(start, OPCODE_COUNT):
                slot = working[end]
                if slot is None:
                    continue
                # every wider range from this start is invalid as well
                if slot is _CLAIMED or slot != value:
                    break
                count += 1
                if count > best_count:
                    best, best_count = (start, end), count
        return best


def absorb_gaps(rules: Sequence[OpcodeRange]) -> List[OpcodeRange]:
    """Stretch the rules over the uncovered opcodes, keeping their order.

    Uncovered opcodes are empty in the dense table.  Each gap joins the rule
    to its left; a gap below the lowest rule joins that rule.
    """

    if not rules:
        return []

    order = sorted(range(len(rules)), key=lambda idx: rules[idx].start)
    bounds = {idx: (rules[idx].start, rules[idx].end) for idx in order}
    first = order[0]
    bounds[first] = (0, bounds[first][1])
    for current, following in zip(order, order[1:]):
        bounds[current] = (bounds[current][0], rules[following].start - 1)
    last = order[-1]
    bounds[last] = (bounds[last][0], OPCODE_COUNT - 1)

    return [
        replace(rule, start=bounds[idx][0], end=bounds[idx][1])
        for idx, rule in enumerate(rules)
    ]


def verify_ranges(table: RangeTable, entries: Entries) -> None:
    """Check that ``table`` answers every occupied opcode like ``entries``."""

    covered = [0] * OPCODE_COUNT
    for rule in table.rules:
        if not (0 <= rule.start <= rule.end < OPCODE_COUNT):
            raise ConsistencyError(
                f"map {table.map_index}: invalid range {rule.start:#x}-{rule.end:#x}"
            )
        for opcode in range(rule.start, rule.end + 1):
            covered[opcode] += 1

    if any(count > 1 for count in covered):
        overlap = next(opcode for opcode, count in enumerate(covered) if count > 1)
        raise ConsistencyError(f"map {table.map_index}: ranges overlap at {overlap:#x}")
    if table.rules and not all(covered):
        hole = next(opcode for opcode, count in enumerate(covered) if not count)
        raise ConsistencyError(f"map {table.map_index}: opcode {hole:#x} is not covered")

    for opcode, expected in enumerate(entries):
        if expected is None:
            continue
        actual = table.lookup(opcode)
        if actual != expected:
            raise ConsistencyError(
                f"map {table.map_index}: opcode {opcode:#x} compresses to"
                f" {actual.describe() if actual else 'nothing'}, expected {expected.describe()}"
            )


def build_thin_table(fat_table: FatTable, compressor: Optional[RangeCompressor] = None) -> ThinTable:
    compressor = compressor or RangeCompressor()
    tables: List[RangeTable] = []
    for table in fat_table.tables:
        ranges = compressor.compress(table.map_index, table.entries())
        logger.info(
            "map %d: %d occupied opcodes in %d ranges",
            table.map_index,
            table.occupied(),
            len(ranges),
        )
        tables.append(ranges)
    return ThinTable(tuple(tables))
