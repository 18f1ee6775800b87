"""End-to-end generation of the fat and thin opcode tables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Tuple

from .descriptor import RawInstructionDescriptor
from .fat_table import FatTable, build_fat_table
from .render import FatTableRenderer, ThinTableRenderer
from .thin_table import ThinTable, build_thin_table


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedTables:
    fat: FatTable
    thin: ThinTable

    def render(self) -> "RenderedTables":
        return RenderedTables(
            fat=FatTableRenderer().render(self.fat),
            thin=ThinTableRenderer().render(self.thin),
        )


@dataclass(frozen=True)
class RenderedTables:
    fat: str
    thin: str


def generate(descriptors: Iterable[RawInstructionDescriptor]) -> GeneratedTables:
    """Build and verify both tables for ``descriptors``."""

    fat = build_fat_table(descriptors)
    thin = build_thin_table(fat)
    conflicts = sum(len(opcodes) for opcodes in fat.conflicts().values())
    if conflicts:
        logger.warning("%d opcode slot(s) resolved by majority vote", conflicts)
    return GeneratedTables(fat, thin)


def write_artifacts(
    descriptors: Iterable[RawInstructionDescriptor], fat_path: Path, thin_path: Path
) -> GeneratedTables:
    """Generate both headers and write them once everything has succeeded.

    Each header is first written next to its destination and only moved into
    place once both writes went through, so a failing write leaves the
    previous headers untouched.
    """

    tables = generate(descriptors)
    rendered = tables.render()

    staged: List[Tuple[Path, Path]] = []
    try:
        for path, text in ((fat_path, rendered.fat), (thin_path, rendered.thin)):
            temporary = path.with_name(f".{path.name}.tmp")
            temporary.write_text(text, "utf-8")
            staged.append((temporary, path))
    except OSError:
        for temporary, _ in staged:
            temporary.unlink()
        raise

    for temporary, path in staged:
        os.replace(temporary, path)
    return tables
