"""
Column Cleaning Service

Runs a TextTransform over one column of the current rows and writes the
result back only when it is complete: a failed or malformed transform leaves
every existing value in place.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import List, Optional, Protocol, runtime_checkable

from config import config
from scraper.reconciler import SelectionReconciler

logger = logging.getLogger(__name__)


@runtime_checkable
class TextTransform(Protocol):
    """Anything that maps a column of strings to a same-length column"""

    def transform(self, values: List[str], instruction: str) -> List[str]: ...


@dataclass
class CleaningResult:
    """Result of cleaning one column"""
    success: bool
    field_id: str
    instruction: str
    values_changed: int = 0
    error: Optional[str] = None
    processing_time: Optional[float] = None


class ColumnCleaner:
    """Applies a TextTransform to a reconciler's column, one request at a time"""

    def __init__(self, transform: TextTransform):
        self.transform = transform
        self._busy = threading.Lock()

    @property
    def in_progress(self) -> bool:
        return self._busy.locked()

    def clean(self, reconciler: SelectionReconciler, field_id: str,
              instruction: Optional[str] = None) -> CleaningResult:
        """
        Clean one column in place

        Args:
            reconciler: Session owning the rows
            field_id: Column to clean
            instruction: Free-text instruction (configured default when omitted)

        Returns:
            CleaningResult; on failure the column is untouched
        """
        instruction = instruction or config.DEFAULT_CLEANING_INSTRUCTION

        if reconciler.get_field(field_id) is None:
            return CleaningResult(False, field_id, instruction, error=f"Unknown field '{field_id}'")

        if not self._busy.acquire(blocking=False):
            return CleaningResult(False, field_id, instruction,
                                  error="Cleaning already in progress")

        start_time = time.time()
        try:
            original = reconciler.column(field_id)
            try:
                cleaned = self.transform.transform(list(original), instruction)
            except Exception as e:
                logger.error(f"AI cleaning failed for '{field_id}': {e}")
                return CleaningResult(False, field_id, instruction, error=str(e),
                                      processing_time=time.time() - start_time)

            error = self._check(original, cleaned)
            if error:
                logger.error(f"Rejected cleaning result for '{field_id}': {error}")
                return CleaningResult(False, field_id, instruction, error=error,
                                      processing_time=time.time() - start_time)

            # The rows may have been re-extracted or the field removed while the model ran
            try:
                reconciler.replace_column(field_id, cleaned)
            except (KeyError, ValueError) as e:
                error = f"Column changed during cleaning: {e}"
                logger.error(f"Discarded cleaning result for '{field_id}': {error}")
                return CleaningResult(False, field_id, instruction, error=error,
                                      processing_time=time.time() - start_time)

            changed = sum(1 for before, after in zip(original, cleaned) if before != after)
            logger.info(f"Cleaned column '{field_id}': {changed}/{len(original)} values changed")

            return CleaningResult(True, field_id, instruction, values_changed=changed,
                                  processing_time=time.time() - start_time)
        finally:
            self._busy.release()

    @staticmethod
    def _check(original: List[str], cleaned) -> Optional[str]:
        if not isinstance(cleaned, list):
            return f"Expected a list of values, got {type(cleaned).__name__}"
        if len(cleaned) != len(original):
            return f"Expected {len(original)} values, got {len(cleaned)}"
        if not all(isinstance(value, str) for value in cleaned):
            return "Cleaned values must all be strings"
        return None
