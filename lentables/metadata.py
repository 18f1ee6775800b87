"""Length-relevant metadata attached to a single opcode."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from .errors import InvariantViolation


@dataclass(frozen=True)
class OpcodeMetadata:
    """Everything the length disassembler needs to know about an opcode.

    ``fixed`` counts the extra bytes contributed either by a fixed-size
    displacement or by a fixed-size immediate.  The remaining flags mark fields
    whose width follows the effective address size (``disp_asz``) or operand
    size (``disp_osz``, ``imm_osz``, ``uimm_osz``).

    Only the six length fields take part in comparisons and hashing.  The
    provenance fields exist for the generated comments and conflict reports.
    """

    modrm: bool = False
    fixed: int = 0
    disp_asz: bool = False
    disp_osz: bool = False
    imm_osz: bool = False
    uimm_osz: bool = False
    origin: Optional[int] = field(default=None, compare=False)
    pattern: str = field(default="", compare=False)
    iclass: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if not (0 <= self.fixed <= 0xFF):
            raise InvariantViolation(f"fixed length {self.fixed} does not fit in a byte")
        if self.disp_asz and self.disp_osz:
            raise InvariantViolation(
                f"{self.iclass or 'opcode'}: displacement cannot depend on both address and operand size"
            )
        if self.imm_osz and self.uimm_osz:
            raise InvariantViolation(
                f"{self.iclass or 'opcode'}: immediate cannot be both sign-extended and unsigned"
            )

    @property
    def is_alias(self) -> bool:
        return self.origin is not None

    def as_tuple(self) -> Tuple[bool, int, bool, bool, bool, bool]:
        return (
            self.modrm,
            self.fixed,
            self.disp_asz,
            self.disp_osz,
            self.imm_osz,
            self.uimm_osz,
        )

    def cloned_from(self, opcode: int) -> "OpcodeMetadata":
        return replace(self, origin=opcode)

    def describe(self) -> str:
        return "modrm={} fixed={} disp_asz={} disp_osz={} imm_osz={} uimm_osz={}".format(
            *(int(value) for value in self.as_tuple())
        )
