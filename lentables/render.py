"""Serialise the opcode tables into C headers."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List

from .fat_table import FatTable, OpcodeTable, TableSlot
from .metadata import OpcodeMetadata
from .thin_table import RangeTable, ThinTable


GENERATED_BANNER = "// This file has been generated, do not edit manually."


def _bool(value: bool) -> str:
    return "true" if value else "false"


def insn_def(metadata: OpcodeMetadata) -> str:
    modrm, fixed, disp_asz, disp_osz, imm_osz, uimm_osz = metadata.as_tuple()
    return "OPCODE_INSN_DEF({}, {}, {}, {}, {}, {})".format(
        _bool(modrm),
        fixed,
        _bool(disp_asz),
        _bool(disp_osz),
        _bool(imm_osz),
        _bool(uimm_osz),
    )


class FatTableRenderer:
    """Render a :class:`FatTable` as one 256 entry array per map."""

    def render(self, fat_table: FatTable) -> str:
        lines: List[str] = [GENERATED_BANNER, ""]
        for table in fat_table.tables:
            lines.extend(self._render_table(table))
        lines.append("const OPCODE_INFO* const OPCODE_TABLES[] = {")
        for table in fat_table.tables:
            lines.append(f"\t{table.name},")
        lines.append("};")
        return "\n".join(lines) + "\n"

    def write(self, fat_table: FatTable, output_path: Path) -> None:
        output_path.write_text(self.render(fat_table), "utf-8")

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _render_table(self, table: OpcodeTable) -> Iterable[str]:
        yield f"const OPCODE_INFO {table.name}[] = {{"
        for opcode, slot in enumerate(table.slots):
            if slot is None:
                yield f"\tOPCODE_EMPTY_DEF, // {opcode:#x}"
            else:
                yield self._render_slot(opcode, slot)
        yield "};"
        yield ""

    @staticmethod
    def _render_slot(opcode: int, slot: TableSlot) -> str:
        comment = f"{', '.join(slot.names)} => {opcode:#x}"
        if slot.metadata.origin is not None:
            comment += f" (Cloned from {slot.metadata.origin:#x})"
        if slot.conflicting:
            comment += " (HAS CONFLICTS)"
        return f"\t{insn_def(slot.metadata)}, // {comment}"


class ThinTableRenderer:
    """Render a :class:`ThinTable` as range rule arrays plus a summary."""

    def render(self, thin_table: ThinTable) -> str:
        lines: List[str] = [GENERATED_BANNER, ""]
        for table in thin_table.tables:
            lines.extend(self._render_table(table))
        lines.append("const OPCODE_TABLE_DEFINITION OPCODE_TABLES[] = {")
        for table in thin_table.tables:
            lines.append(f"\tOPCODE_TABLE_DEF({table.name}, {len(table)}),")
        lines.append("};")
        return "\n".join(lines) + "\n"

    def write(self, thin_table: ThinTable, output_path: Path) -> None:
        output_path.write_text(self.render(thin_table), "utf-8")

    @staticmethod
    def _render_table(table: RangeTable) -> Iterable[str]:
        yield f"const OPCODE_INFO_RANGE {table.name}[] = {{"
        for rule in table:
            yield f"\tRANGE_OPCODE_INSN_DEF({rule.start}, {rule.end}, {insn_def(rule.metadata)}),"
        yield "};"
        yield ""
