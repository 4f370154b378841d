"""Action report collected while a command runs."""

from __future__ import annotations

from collections import Counter
from typing import Callable

from pgapprole.core.models import ActionOutcome, ActionRecord

RecordListener = Callable[[ActionRecord], None]


class ActionReport:
    """
    Ordered log of (description, outcome) pairs for one command.

    The report is purely observational. An optional listener is called for
    every record as it is added so frontends can print steps immediately.
    """

    def __init__(self, command_name: str, listener: RecordListener | None = None):
        self.command_name = command_name
        self.records: list[ActionRecord] = []
        self._listener = listener

    def record(self, description: str, outcome: ActionOutcome) -> ActionRecord:
        """Append a record and notify the listener."""
        rec = ActionRecord(description=description, outcome=outcome)
        self.records.append(rec)
        if self._listener is not None:
            self._listener(rec)
        return rec

    def tally(self) -> dict[ActionOutcome, int]:
        """Return outcome counts in enum order, omitting outcomes that never occurred."""
        counts = Counter(r.outcome for r in self.records)
        return {o: counts[o] for o in ActionOutcome if counts[o]}

    def outcomes(self) -> list[ActionOutcome]:
        return [r.outcome for r in self.records]

    def __len__(self) -> int:
        return len(self.records)
