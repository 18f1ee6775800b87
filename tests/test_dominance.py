import pytest

from lentables import OpcodeMetadata, resolve_dominant


M1 = OpcodeMetadata(modrm=True, fixed=1, iclass="ADD", pattern="0x80 MODRM() UIMM8()")
M2 = OpcodeMetadata(modrm=True, imm_osz=True, iclass="ADD", pattern="0x80 MODRM() SIMMz()")


def test_single_record_is_dominant():
    dominance = resolve_dominant([M1])

    assert dominance.metadata is M1
    assert not dominance.conflicting


def test_identical_records_do_not_conflict():
    other = OpcodeMetadata(modrm=True, fixed=1, iclass="OR")

    dominance = resolve_dominant([M1, other, M1])

    assert dominance.metadata == M1
    assert not dominance.conflicting


def test_majority_wins_and_conflict_is_flagged():
    dominance = resolve_dominant([M1, M2, M2])

    assert dominance.metadata == M2
    assert dominance.conflicting


def test_tie_is_resolved_deterministically():
    first = resolve_dominant([M1, M2])
    second = resolve_dominant([M1, M2])

    assert first.conflicting
    assert first.metadata == second.metadata == M1
    assert resolve_dominant([M2, M1]).metadata == M2


def test_aliases_do_not_vote_against_direct_records():
    dominance = resolve_dominant([M2.cloned_from(0x80), M2.cloned_from(0x80), M1])

    assert dominance.metadata == M1
    assert not dominance.conflicting


def test_alias_only_slot_uses_highest_origin():
    low = OpcodeMetadata(fixed=1).cloned_from(0x40)
    high = OpcodeMetadata(fixed=4).cloned_from(0x48)

    dominance = resolve_dominant([low, high])

    assert dominance.metadata is high
    assert not dominance.conflicting


def test_empty_slot_is_an_error():
    with pytest.raises(ValueError):
        resolve_dominant([])
