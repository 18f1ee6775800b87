"""Dense, directly indexed opcode tables."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import DefaultDict, Dict, Iterable, List, Optional, Sequence, Tuple

from .aliases import expand_aliases
from .descriptor import RawInstructionDescriptor
from .dominance import resolve_dominant
from .extractor import extract_metadata
from .metadata import OpcodeMetadata


logger = logging.getLogger(__name__)

OPCODE_COUNT = 0x100


class RecordIndex:
    """Metadata records collected per (map, opcode) in database order."""

    def __init__(self, map_count: int = 0) -> None:
        self.map_count = map_count
        self._records: DefaultDict[Tuple[int, int], List[OpcodeMetadata]] = defaultdict(list)

    def add(self, map_index: int, opcode: int, record: OpcodeMetadata) -> None:
        self.map_count = max(self.map_count, map_index + 1)
        self._records[(map_index, opcode)].append(record)

    def records(self, map_index: int, opcode: int) -> Sequence[OpcodeMetadata]:
        return self._records.get((map_index, opcode), ())

    def __len__(self) -> int:
        return sum(len(records) for records in self._records.values())


def collect_records(descriptors: Iterable[RawInstructionDescriptor]) -> RecordIndex:
    """Run extraction and alias expansion over every descriptor."""

    index = RecordIndex()
    for descriptor in descriptors:
        # excluded maps still exist in the output, only their slot stays empty
        index.map_count = max(index.map_count, descriptor.map + 1)
        metadata = extract_metadata(descriptor)
        if metadata is None:
            continue
        if descriptor.partial_mask is None:
            index.add(descriptor.map, descriptor.opcode, metadata)
            continue
        for opcode, alias in expand_aliases(metadata, descriptor.opcode, descriptor.partial_mask):
            index.add(descriptor.map, opcode, alias)
    return index


@dataclass(frozen=True)
class TableSlot:
    """Resolved content of a non-empty opcode slot."""

    metadata: OpcodeMetadata
    names: Tuple[str, ...] = ()
    conflicting: bool = False


@dataclass(frozen=True)
class OpcodeTable:
    """The 256 slots of one instruction map."""

    map_index: int
    slots: Tuple[Optional[TableSlot], ...]

    def __post_init__(self) -> None:
        if len(self.slots) != OPCODE_COUNT:
            raise ValueError(f"map {self.map_index} table must have {OPCODE_COUNT} slots")

    def metadata(self, opcode: int) -> Optional[OpcodeMetadata]:
        slot = self.slots[opcode]
        return slot.metadata if slot is not None else None

    def entries(self) -> List[Optional[OpcodeMetadata]]:
        return [slot.metadata if slot is not None else None for slot in self.slots]

    def occupied(self) -> int:
        return sum(1 for slot in self.slots if slot is not None)

    @property
    def name(self) -> str:
        return f"OPCODE_TABLE_{self.map_index}"


@dataclass(frozen=True)
class FatTable:
    tables: Tuple[OpcodeTable, ...]
    longest_fixed: int = 0

    def conflicts(self) -> Dict[int, List[int]]:
        found: Dict[int, List[int]] = {}
        for table in self.tables:
            opcodes = [
                opcode
                for opcode, slot in enumerate(table.slots)
                if slot is not None and slot.conflicting
            ]
            if opcodes:
                found[table.map_index] = opcodes
        return found


class FatTableBuilder:
    """Resolve every slot of every map into a :class:`FatTable`."""

    def build(self, index: RecordIndex) -> FatTable:
        tables: List[OpcodeTable] = []
        longest_fixed = 0
        for map_index in range(index.map_count):
            slots: List[Optional[TableSlot]] = []
            for opcode in range(OPCODE_COUNT):
                slot = self._build_slot(map_index, opcode, index.records(map_index, opcode))
                if slot is not None:
                    longest_fixed = max(longest_fixed, slot.metadata.fixed)
                slots.append(slot)
            tables.append(OpcodeTable(map_index, tuple(slots)))

        logger.info("longest fixed: %d", longest_fixed)
        return FatTable(tuple(tables), longest_fixed)

    def _build_slot(
        self, map_index: int, opcode: int, records: Sequence[OpcodeMetadata]
    ) -> Optional[TableSlot]:
        if not records:
            return None

        dominance = resolve_dominant(records)
        if dominance.conflicting:
            self._report_conflict(map_index, opcode, records)
        return TableSlot(
            metadata=dominance.metadata,
            names=tuple(record.iclass for record in records),
            conflicting=dominance.conflicting,
        )

    @staticmethod
    def _report_conflict(
        map_index: int, opcode: int, records: Sequence[OpcodeMetadata]
    ) -> None:
        details = "\n".join(f"  {record.iclass} => {record.pattern}" for record in records)
        logger.warning("opcode %#x (map %d) has conflicts:\n%s", opcode, map_index, details)


def build_fat_table(descriptors: Iterable[RawInstructionDescriptor]) -> FatTable:
    return FatTableBuilder().build(collect_records(descriptors))
