import pytest

from lentables import OpcodeMetadata
from lentables.aliases import expand_aliases


def test_aliases_start_at_declared_opcode():
    metadata = OpcodeMetadata(uimm_osz=True, iclass="MOV")

    aliases = expand_aliases(metadata, 0x25, 0b0010)

    opcodes = [opcode for opcode, _ in aliases]
    assert opcodes == list(range(0x25, 0x30))
    assert not set(range(0x20, 0x25)) & set(opcodes)
    assert all(alias.origin == 0x25 for _, alias in aliases)
    assert all(alias == metadata for _, alias in aliases)


def test_block_aligned_opcode_covers_whole_block():
    aliases = expand_aliases(OpcodeMetadata(), 0x50, 0b0101)

    assert [opcode for opcode, _ in aliases] == list(range(0x50, 0x60))


def test_declared_opcode_past_block_yields_nothing():
    assert expand_aliases(OpcodeMetadata(), 0x60, 0b0101) == []


def test_mask_must_fit_a_nibble():
    with pytest.raises(ValueError, match="nibble"):
        expand_aliases(OpcodeMetadata(), 0x00, 0x10)
