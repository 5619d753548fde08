"""
Smart Scraper - list inference and extraction engine

Detects the repeating list behind a clicked element, turns clicks into
columns and re-extracts every row of the list whenever the columns change.
"""

from .list_identifier import ListContext, ListIdentifier, identify_repeated_list
from .field_resolver import FieldCandidate, FieldResolver
from .extractor import Extractor, extract_rows
from .reconciler import (
    DuplicateChoice,
    ReconcilerState,
    SelectionOutcome,
    SelectionReconciler,
    SelectionResult,
)
from .text import normalize_text
from .export import ExportFormat, export_rows, to_csv, to_json

__version__ = "1.0.0"
__all__ = [
    "ListContext", "ListIdentifier", "identify_repeated_list",
    "FieldCandidate", "FieldResolver",
    "Extractor", "extract_rows",
    "DuplicateChoice", "ReconcilerState", "SelectionOutcome",
    "SelectionReconciler", "SelectionResult",
    "normalize_text",
    "ExportFormat", "export_rows", "to_csv", "to_json",
]
