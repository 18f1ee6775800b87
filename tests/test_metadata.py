import pytest

from lentables import InvariantViolation, OpcodeMetadata


def test_equality_ignores_provenance():
    first = OpcodeMetadata(modrm=True, fixed=1, pattern="A", iclass="ADD")
    second = OpcodeMetadata(modrm=True, fixed=1, origin=0x50, pattern="B", iclass="OR")

    assert first == second
    assert hash(first) == hash(second)
    assert len({first, second}) == 1


def test_equality_covers_every_length_field():
    base = OpcodeMetadata(modrm=True)

    assert base != OpcodeMetadata(modrm=False)
    assert base != OpcodeMetadata(modrm=True, fixed=4)
    assert base != OpcodeMetadata(modrm=True, disp_asz=True)
    assert base != OpcodeMetadata(modrm=True, disp_osz=True)
    assert base != OpcodeMetadata(modrm=True, imm_osz=True)
    assert base != OpcodeMetadata(modrm=True, uimm_osz=True)


def test_as_tuple_follows_table_field_order():
    metadata = OpcodeMetadata(modrm=True, fixed=2, disp_osz=True, uimm_osz=True)

    assert metadata.as_tuple() == (True, 2, False, True, False, True)


def test_cloned_from_marks_alias():
    metadata = OpcodeMetadata(uimm_osz=True, iclass="MOV")
    alias = metadata.cloned_from(0xB8)

    assert not metadata.is_alias
    assert alias.is_alias
    assert alias.origin == 0xB8
    assert alias.iclass == "MOV"
    assert alias == metadata


@pytest.mark.parametrize(
    "fields,message",
    [
        ({"disp_asz": True, "disp_osz": True}, "address and operand size"),
        ({"imm_osz": True, "uimm_osz": True}, "sign-extended and unsigned"),
        ({"fixed": 256}, "fit in a byte"),
        ({"fixed": -1}, "fit in a byte"),
    ],
)
def test_construction_enforces_invariants(fields, message):
    with pytest.raises(InvariantViolation, match=message):
        OpcodeMetadata(**fields)
