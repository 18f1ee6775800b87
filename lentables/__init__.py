"""Public package exports for the x86 length table generator."""

from .descriptor import InstructionDatabase, RawInstructionDescriptor
from .dominance import Dominance, resolve_dominant
from .errors import ConsistencyError, DatabaseError, GenerationError, InvariantViolation
from .extractor import extract_metadata
from .fat_table import FatTable, FatTableBuilder, OpcodeTable, build_fat_table, collect_records
from .metadata import OpcodeMetadata
from .pipeline import GeneratedTables, generate, write_artifacts
from .render import FatTableRenderer, ThinTableRenderer
from .thin_table import OpcodeRange, RangeCompressor, RangeTable, ThinTable, build_thin_table

__all__ = [
    "InstructionDatabase",
    "RawInstructionDescriptor",
    "Dominance",
    "resolve_dominant",
    "ConsistencyError",
    "DatabaseError",
    "GenerationError",
    "InvariantViolation",
    "extract_metadata",
    "FatTable",
    "FatTableBuilder",
    "OpcodeTable",
    "build_fat_table",
    "collect_records",
    "OpcodeMetadata",
    "GeneratedTables",
    "generate",
    "write_artifacts",
    "FatTableRenderer",
    "ThinTableRenderer",
    "OpcodeRange",
    "RangeCompressor",
    "RangeTable",
    "ThinTable",
    "build_thin_table",
]
