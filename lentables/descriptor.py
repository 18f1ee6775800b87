"""Loader for the JSON instruction encoding database."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, List, Mapping, Optional, Sequence, Tuple

from .errors import DatabaseError


IMMEDIATE_FLAGS: Tuple[str, ...] = ("has_imm16", "has_imm32", "has_imm8", "has_imm8_2")


@dataclass(frozen=True)
class RawInstructionDescriptor:
    """One documented encoding form as found in the database.

    ``partial_mask`` carries the fixed high nibble of descriptors that govern a
    whole block of sixteen opcodes (``+r`` style encodings).  It is ``None``
    for descriptors that name a single opcode.
    """

    map: int
    opcode: int
    pattern: str
    iclass: str = ""
    has_modrm: bool = False
    has_imm16: bool = False
    has_imm32: bool = False
    has_imm8: bool = False
    has_imm8_2: bool = False
    partial_mask: Optional[int] = None

    @property
    def tokens(self) -> Tuple[str, ...]:
        return tuple(self.pattern.split())

    def has_token(self, token: str) -> bool:
        return token in self.tokens

    @property
    def is_partial(self) -> bool:
        return self.partial_mask is not None

    def label(self) -> str:
        return f"map {self.map} opcode {self.opcode:#04x}"

    @classmethod
    def from_json(cls, entry: Mapping[str, Any], index: int = 0) -> "RawInstructionDescriptor":
        """Create a descriptor from one ``Instructions`` record."""

        if not isinstance(entry, Mapping):
            raise DatabaseError(f"record {index}: expected an object, got {type(entry).__name__}")

        map_index = _require(entry, "map", int, index)
        if map_index < 0:
            raise DatabaseError(f"record {index}: map index must be non-negative, got {map_index}")

        opcode_text = _require(entry, "opcode_hex", str, index)
        try:
            opcode = int(opcode_text, 16)
        except ValueError:
            raise DatabaseError(
                f"record {index}: opcode_hex {opcode_text!r} is not hexadecimal"
            ) from None
        if not (0 <= opcode <= 0xFF):
            raise DatabaseError(f"record {index}: opcode {opcode_text!r} does not fit in a byte")

        partial_mask = None
        if _require(entry, "partial_opcode", bool, index):
            partial_mask = parse_partial_mask(_require(entry, "opcode", str, index), index)

        flags = {name: _require(entry, name, bool, index) for name in IMMEDIATE_FLAGS}

        return cls(
            map=map_index,
            opcode=opcode,
            pattern=_require(entry, "pattern", str, index),
            iclass=_require(entry, "iclass", str, index),
            has_modrm=_require(entry, "has_modrm", bool, index),
            partial_mask=partial_mask,
            **flags,
        )


def parse_partial_mask(text: str, index: int = 0) -> int:
    """Return the high nibble encoded in a ``0bXXXX_...`` opcode literal."""

    token = text.strip()
    if not token.startswith("0b"):
        raise DatabaseError(f"record {index}: partial opcode {text!r} is not a binary literal")
    nibble, separator, _ = token[2:].partition("_")
    if not separator or len(nibble) != 4 or any(ch not in "01" for ch in nibble):
        raise DatabaseError(
            f"record {index}: partial opcode {text!r} must start with four fixed bits"
        )
    return int(nibble, 2)


def _require(entry: Mapping[str, Any], key: str, kind: type, index: int) -> Any:
    if key not in entry:
        raise DatabaseError(f"record {index}: missing required field {key!r}")
    value = entry[key]
    # bool is a subclass of int, a flag is never a valid map index
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise DatabaseError(
            f"record {index}: field {key!r} must be {kind.__name__}, got {type(value).__name__}"
        )
    return value


class InstructionDatabase(Sequence[RawInstructionDescriptor]):
    """Ordered collection of the descriptors of one database dump."""

    def __init__(self, descriptors: Sequence[RawInstructionDescriptor]) -> None:
        self._descriptors: List[RawInstructionDescriptor] = list(descriptors)

    @classmethod
    def from_json(cls, data: Any) -> "InstructionDatabase":
        if not isinstance(data, Mapping) or "Instructions" not in data:
            raise DatabaseError("database must be an object with an 'Instructions' list")
        records = data["Instructions"]
        if not isinstance(records, list):
            raise DatabaseError("'Instructions' must be a list")
        return cls(
            [RawInstructionDescriptor.from_json(entry, idx) for idx, entry in enumerate(records)]
        )

    @classmethod
    def load(cls, path: Path) -> "InstructionDatabase":
        try:
            data = json.loads(path.read_text("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise DatabaseError(f"{path}: invalid JSON ({exc})") from exc
        return cls.from_json(data)

    @property
    def map_count(self) -> int:
        """Number of instruction maps, counting from map 0."""

        if not self._descriptors:
            return 0
        return max(descriptor.map for descriptor in self._descriptors) + 1

    def __len__(self) -> int:
        return len(self._descriptors)

    def __getitem__(self, index: int) -> RawInstructionDescriptor:
        return self._descriptors[index]

    def __iter__(self) -> Iterator[RawInstructionDescriptor]:
        return iter(self._descriptors)
