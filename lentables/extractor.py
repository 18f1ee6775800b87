"""Reduce a raw encoding form to its length-relevant metadata."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, FrozenSet, Optional, Tuple

from .descriptor import RawInstructionDescriptor
from .errors import InvariantViolation
from .metadata import OpcodeMetadata


# Forms the length disassembler decodes by hand because one opcode covers too
# many differently sized instructions.
EXCLUDED_OPCODES: FrozenSet[Tuple[int, int]] = frozenset(
    {
        (0, 0xF6),
        (0, 0xF7),
        (0, 0xA1),
        (0, 0xE8),
        (0, 0xE9),
        # mov cr/dr
        (1, 0x20),
        (1, 0x21),
        (1, 0x22),
        (1, 0x23),
    }
)

# Applied in order, the last matching token decides the displacement length.
DISPLACEMENT_TOKENS: Tuple[Tuple[str, int], ...] = (
    ("BRDISP8()", 1),
    ("BRDISP32()", 4),
    ("BRDISP64()", 8),
    ("MEMDISP32()", 4),
    ("MEMDISP16()", 2),
    ("MEMDISP8()", 1),
    ("MEMDISP()", 4),
)

SIZE_FLAG_TOKENS: Tuple[Tuple[str, str], ...] = (
    ("MEMDISPv()", "disp_asz"),
    ("UIMMv()", "uimm_osz"),
    ("SIMMz()", "imm_osz"),
    ("BRDISPz()", "disp_osz"),
)

IMMEDIATE_WIDTHS: Tuple[Tuple[str, int], ...] = (
    ("has_imm16", 2),
    ("has_imm32", 4),
    ("has_imm8", 1),
    ("has_imm8_2", 1),
)

SIGN_EXTENDED_IMM8 = "SE_IMM8()"
NOT_LONG_MODE = "MODE!=2"


@dataclass
class LengthFields:
    """Mutable scratch state shared by the extraction rules."""

    displacement: int = 0
    immediate: int = 0
    disp_asz: bool = False
    disp_osz: bool = False
    imm_osz: bool = False
    uimm_osz: bool = False


@dataclass(frozen=True)
class OverrideRule:
    """Correction applied after the token rules for a known family of opcodes."""

    name: str
    applies: Callable[[RawInstructionDescriptor], bool]
    apply: Callable[[LengthFields], None]


def _drop_immediate(fields: LengthFields) -> None:
    fields.immediate = 0


def _operand_sized_branch(fields: LengthFields) -> None:
    fields.displacement = 0
    fields.disp_osz = True


OVERRIDES: Tuple[OverrideRule, ...] = (
    # The shift-by-one forms list ONE() but encode no immediate byte.
    OverrideRule(
        "shift-by-one",
        lambda desc: desc.map == 0 and 0xD0 <= desc.opcode <= 0xD3,
        _drop_immediate,
    ),
    # Jcc rel16/rel32: 2 or 4 bytes outside long mode, always 4 inside it.
    OverrideRule(
        "conditional-branch",
        lambda desc: desc.map == 1
        and 0x80 <= desc.opcode <= 0x8F
        and not desc.has_token(NOT_LONG_MODE),
        _operand_sized_branch,
    ),
)


def is_excluded(descriptor: RawInstructionDescriptor) -> bool:
    return (descriptor.map, descriptor.opcode) in EXCLUDED_OPCODES


def scan_tokens(descriptor: RawInstructionDescriptor) -> LengthFields:
    """Derive the raw length fields from the pattern tokens and flags."""

    tokens = set(descriptor.tokens)
    fields = LengthFields()

    for token, size in DISPLACEMENT_TOKENS:
        if token in tokens:
            fields.displacement = size

    for token, name in SIZE_FLAG_TOKENS:
        if token in tokens:
            setattr(fields, name, True)

    for flag, size in IMMEDIATE_WIDTHS:
        if getattr(descriptor, flag):
            fields.immediate += size
    if SIGN_EXTENDED_IMM8 in tokens:
        fields.immediate += 1

    return fields


def extract_metadata(descriptor: RawInstructionDescriptor) -> Optional[OpcodeMetadata]:
    """Return the metadata of ``descriptor`` or ``None`` if it is hand-handled."""

    if is_excluded(descriptor):
        return None

    fields = scan_tokens(descriptor)
    for rule in OVERRIDES:
        if rule.applies(descriptor):
            rule.apply(fields)

    # A single field stores either length, the consumer cannot tell them apart.
    if fields.immediate and fields.displacement:
        raise InvariantViolation(
            f"{descriptor.iclass} ({descriptor.label()}) has both a {fields.immediate} byte"
            f" immediate and a {fields.displacement} byte displacement: {descriptor.pattern}"
        )

    return OpcodeMetadata(
        modrm=descriptor.has_modrm,
        fixed=fields.immediate or fields.displacement,
        disp_asz=fields.disp_asz,
        disp_osz=fields.disp_osz,
        imm_osz=fields.imm_osz,
        uimm_osz=fields.uimm_osz,
        pattern=descriptor.pattern,
        iclass=descriptor.iclass,
    )
