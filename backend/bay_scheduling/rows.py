"""
Multi-row bays.

Cada bay é dividida em N sub-rows de altura igual (default 20). O row sob o
ponteiro é:

    row = ⌊ y / (cell_height / N) ⌋     clamped a [0, N-1]

Remover um row vazio é imediato; remover um row com schedules devolve um
RowRemovalRequest que só é aplicado depois de confirmado.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence

from bay_scheduling.client import ScheduleStoreError
from bay_scheduling.notifications import Notifier, ToastCollector, failure, success
from bay_scheduling.types import ScheduleEntry
from feature_flags import FeatureFlags

logger = logging.getLogger(__name__)


def row_at(relative_y: float, cell_height: float, row_count: int) -> int:
    """Index of the sub-row under a vertical offset inside a bay cell."""
    if row_count <= 0:
        raise ValueError(f"row_count must be positive, got {row_count}")
    if cell_height <= 0:
        return 0
    row = int(math.floor(relative_y / (cell_height / row_count)))
    return max(0, min(row, row_count - 1))


class RowRemovalAction(str, Enum):
    RELOCATE = "relocate"
    DELETE = "delete"


@dataclass
class RowRemovalRequest:
    """Pedido de remoção de um row ocupado, à espera de confirmação."""
    bay_id: int
    row: int
    affected: List[ScheduleEntry]
    shifted: List[ScheduleEntry] = field(default_factory=list)

    @property
    def affected_count(self) -> int:
        return len(self.affected)


class BayRowLayout:
    """
    Row counts por bay e as operações de add/remove.

    store: objeto com update_schedule(id, payload) e delete_schedule(id)
    (normalmente um ScheduleStoreClient).
    """

    def __init__(
        self,
        store,
        notifier: Optional[Notifier] = None,
        row_counts: Optional[Mapping[int, int]] = None,
        default_row_count: Optional[int] = None,
        view_only: Optional[bool] = None,
    ):
        self.store = store
        self.notify = notifier or ToastCollector()
        self.row_counts: Dict[int, int] = dict(row_counts or {})
        if default_row_count is None:
            default_row_count = FeatureFlags.get_config().default_row_count
        self.default_row_count = default_row_count
        self.view_only = FeatureFlags.is_view_only() if view_only is None else view_only

    def row_count(self, bay_id: int) -> int:
        return self.row_counts.get(bay_id, self.default_row_count)

    def _refuse_view_only(self) -> bool:
        if self.view_only:
            self.notify(failure("View only", "Row changes are disabled in view-only mode"))
            return True
        return False

    def add_row(self, bay_id: int) -> int:
        if self._refuse_view_only():
            return self.row_count(bay_id)
        count = self.row_count(bay_id) + 1
        self.row_counts[bay_id] = count
        self.notify(success("Row added", f"Bay now has {count} rows"))
        return count

    # ─────────────────────────────────────────────────────────────────────────
    # REMOVAL
    # ─────────────────────────────────────────────────────────────────────────

    def request_row_removal(
        self,
        bay_id: int,
        row: int,
        entries: Sequence[ScheduleEntry],
    ) -> Optional[RowRemovalRequest]:
        """
        Remove um row vazio de imediato, ou devolve um RowRemovalRequest
        quando o row tem schedules (nada muda até confirm_row_removal).
        """
        if self._refuse_view_only():
            return None
        count = self.row_count(bay_id)
        if not 0 <= row < count:
            raise ValueError(f"Row {row} out of range for bay {bay_id} ({count} rows)")
        if count <= 1:
            self.notify(failure("Cannot remove row", "A bay must keep at least one row"))
            return None

        bay_entries = [e for e in entries if e.bay_id == bay_id]
        affected = [e for e in bay_entries if e.row == row]
        shifted = [e for e in bay_entries if e.row > row]
        request = RowRemovalRequest(bay_id=bay_id, row=row, affected=affected, shifted=shifted)

        if affected:
            logger.info(f"Row {row} of bay {bay_id} has {len(affected)} schedules, confirmation required")
            return request

        if self._apply_removal(request):
            self.notify(success("Row removed", f"Row {row + 1} removed"))
        return None

    def confirm_row_removal(
        self,
        request: RowRemovalRequest,
        action: RowRemovalAction,
        target_row: Optional[int] = None,
    ) -> bool:
        """
        Aplica um pedido pendente.

        RELOCATE move os schedules afetados para target_row (default: o row
        acima, ou 0) contado depois da remoção; DELETE apaga-os do store.
        """
        if self._refuse_view_only():
            return False
        action = RowRemovalAction(action)
        remaining = self.row_count(request.bay_id) - 1
        try:
            if action == RowRemovalAction.RELOCATE:
                target = target_row if target_row is not None else max(request.row - 1, 0)
                target = max(0, min(target, remaining - 1))
                for entry in request.affected:
                    self.store.update_schedule(entry.id, {"row": target})
            else:
                for entry in request.affected:
                    self.store.delete_schedule(entry.id)
        except ScheduleStoreError as exc:
            logger.error(f"Row removal failed for bay {request.bay_id}, row {request.row}: {exc}")
            self.notify(failure("Update failed", str(exc)))
            return False

        if not self._apply_removal(request):
            return False

        verb = "moved" if action == RowRemovalAction.RELOCATE else "deleted"
        self.notify(success("Row removed", f"{request.affected_count} schedules {verb}"))
        return True

    def cancel_row_removal(self, request: RowRemovalRequest) -> None:
        logger.debug(f"Row removal cancelled for bay {request.bay_id}, row {request.row}")

    def _apply_removal(self, request: RowRemovalRequest) -> bool:
        try:
            for entry in request.shifted:
                self.store.update_schedule(entry.id, {"row": entry.row - 1})
        except ScheduleStoreError as exc:
            logger.error(f"Failed to shift rows of bay {request.bay_id}: {exc}")
            self.notify(failure("Update failed", str(exc)))
            return False

        self.row_counts[request.bay_id] = self.row_count(request.bay_id) - 1
        return True
