from dataclasses import dataclass, field
from typing import Optional

from models.pending_occurrence import PendingOccurrence


@dataclass
class ProcessingResult:
    """Outcome of one processing pass over the recurring definitions."""
    created: list[PendingOccurrence] = field(default_factory=list)
    processed_ids: list[int] = field(default_factory=list)
    failures: list[tuple[int, str]] = field(default_factory=list)  # (definition_id, message)
    marked_overdue: int = 0
    error: Optional[str] = None          # storage failure that stopped the whole pass
    overdue_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.failures and self.error is None and self.overdue_error is None
