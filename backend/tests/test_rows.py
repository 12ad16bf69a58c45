"""
Testes para bays com múltiplos rows (R1-R3)
"""
from datetime import date

import pytest

from bay_scheduling.notifications import ToastCollector
from bay_scheduling.rows import BayRowLayout, RowRemovalAction, row_at
from bay_scheduling.types import ScheduleEntry
from feature_flags import FeatureFlags


@pytest.fixture
def toasts():
    return ToastCollector()


@pytest.fixture
def layout(fake_store, toasts):
    return BayRowLayout(fake_store, notifier=toasts, row_counts={1: 4}, default_row_count=20)


@pytest.fixture
def bay1_entries():
    """Bay 1: rows 0, 1, 1 e 3."""
    return [
        ScheduleEntry(id=100, project_id=10, bay_id=1, start_date=date(2024, 1, 8), end_date=date(2024, 1, 19), row=0),
        ScheduleEntry(id=101, project_id=11, bay_id=1, start_date=date(2024, 1, 15), end_date=date(2024, 2, 2), row=1),
        ScheduleEntry(id=103, project_id=12, bay_id=1, start_date=date(2024, 2, 5), end_date=date(2024, 2, 9), row=1),
        ScheduleEntry(id=104, project_id=12, bay_id=1, start_date=date(2024, 3, 4), end_date=date(2024, 3, 8), row=3),
        ScheduleEntry(id=102, project_id=12, bay_id=2, start_date=date(2024, 1, 22), end_date=date(2024, 2, 9), row=3),
    ]


@pytest.fixture
def populated_store(fake_store, bay1_entries):
    fake_store.entries = {e.id: e for e in bay1_entries}
    return fake_store


class TestR1_RowUnderPointer:
    """R1: Row sob o ponteiro."""

    def test_row_at(self):
        """R1.1: ⌊y / (h / N)⌋."""
        assert row_at(0, 400, 20) == 0
        assert row_at(39.9, 400, 20) == 1
        assert row_at(40, 400, 20) == 2
        assert row_at(399, 400, 20) == 19

    def test_row_at_clamps(self):
        """R1.2: Fora da célula fica no primeiro/último row."""
        assert row_at(-5, 400, 20) == 0
        assert row_at(1000, 400, 20) == 19

    def test_row_at_invalid_count(self):
        with pytest.raises(ValueError):
            row_at(10, 400, 0)

    def test_default_row_count(self, fake_store):
        """R1.3: 20 rows por defeito (configurável)."""
        assert BayRowLayout(fake_store).row_count(5) == 20


class TestR2_AddRemoveRows:
    """R2: Adicionar/remover rows."""

    def test_add_row(self, layout, toasts):
        """R2.1: Adiciona um row no fim."""
        assert layout.add_row(1) == 5
        assert layout.add_row(2) == 21
        assert toasts.last.title == "Row added"

    def test_remove_empty_row_shifts_higher_rows(self, layout, populated_store, bay1_entries, toasts):
        """R2.2: Row vazio é removido logo e os rows acima descem um."""
        request = layout.request_row_removal(1, 2, bay1_entries)

        assert request is None
        assert layout.row_count(1) == 3
        assert populated_store.writes("update") == [("update", 104, {"row": 2})]
        assert toasts.last.title == "Row removed"

    def test_remove_occupied_row_requires_confirmation(self, layout, populated_store, bay1_entries):
        """R2.3: Row ocupado devolve pedido e nada muda."""
        request = layout.request_row_removal(1, 1, bay1_entries)

        assert request is not None
        assert [e.id for e in request.affected] == [101, 103]
        assert [e.id for e in request.shifted] == [104]
        assert populated_store.calls == []
        assert layout.row_count(1) == 4

    def test_confirm_relocate(self, layout, populated_store, bay1_entries):
        """R2.4: RELOCATE move para o row acima por defeito."""
        request = layout.request_row_removal(1, 1, bay1_entries)
        assert layout.confirm_row_removal(request, RowRemovalAction.RELOCATE) is True

        assert populated_store.entries[101].row == 0
        assert populated_store.entries[103].row == 0
        assert populated_store.entries[104].row == 2
        assert populated_store.entries[102].row == 3     # outra bay
        assert layout.row_count(1) == 3

    def test_confirm_relocate_to_target(self, layout, populated_store, bay1_entries):
        request = layout.request_row_removal(1, 1, bay1_entries)
        layout.confirm_row_removal(request, "relocate", target_row=2)
        assert populated_store.entries[101].row == 2

    def test_confirm_delete(self, layout, populated_store, bay1_entries, toasts):
        """R2.5: DELETE apaga os schedules afetados."""
        request = layout.request_row_removal(1, 1, bay1_entries)
        assert layout.confirm_row_removal(request, RowRemovalAction.DELETE) is True

        assert 101 not in populated_store.entries
        assert 103 not in populated_store.entries
        assert populated_store.entries[104].row == 2
        assert toasts.last.description == "2 schedules deleted"

    def test_cancel_keeps_everything(self, layout, populated_store, bay1_entries):
        """R2.6: Cancelar não altera nada."""
        request = layout.request_row_removal(1, 1, bay1_entries)
        layout.cancel_row_removal(request)
        assert populated_store.calls == []
        assert layout.row_count(1) == 4

    def test_last_row_cannot_be_removed(self, fake_store, toasts):
        """R2.7: A bay mantém pelo menos um row."""
        layout = BayRowLayout(fake_store, notifier=toasts, row_counts={1: 1})
        assert layout.request_row_removal(1, 0, []) is None
        assert layout.row_count(1) == 1
        assert toasts.last.is_error

    def test_out_of_range_row(self, layout):
        with pytest.raises(ValueError):
            layout.request_row_removal(1, 4, [])

    def test_store_failure_keeps_row(self, layout, populated_store, bay1_entries, toasts):
        """R2.8: Falha do store → toast, row mantém-se."""
        request = layout.request_row_removal(1, 1, bay1_entries)
        populated_store.fail = True
        assert layout.confirm_row_removal(request, RowRemovalAction.DELETE) is False
        assert layout.row_count(1) == 4
        assert toasts.last.is_error


class TestR3_ViewOnly:
    """R3: Modo view-only bloqueia alterações de rows."""

    def test_view_only_refuses_removal(self, populated_store, bay1_entries, toasts):
        """R3.1: Remoção recusada com toast, nada muda no store."""
        layout = BayRowLayout(populated_store, notifier=toasts, row_counts={1: 4}, view_only=True)

        assert layout.request_row_removal(1, 1, bay1_entries) is None
        assert layout.request_row_removal(1, 2, bay1_entries) is None
        assert populated_store.calls == []
        assert layout.row_count(1) == 4
        assert toasts.last.title == "View only"
        assert toasts.last.is_error

    def test_view_only_refuses_pending_confirmation(self, layout, populated_store, bay1_entries):
        """R3.2: Um pedido pendente não é aplicado depois de entrar em view-only."""
        request = layout.request_row_removal(1, 1, bay1_entries)
        layout.view_only = True

        assert layout.confirm_row_removal(request, RowRemovalAction.DELETE) is False
        assert 101 in populated_store.entries
        assert layout.row_count(1) == 4

    def test_view_only_refuses_add(self, fake_store, toasts):
        layout = BayRowLayout(fake_store, notifier=toasts, row_counts={1: 4}, view_only=True)
        assert layout.add_row(1) == 4
        assert layout.row_count(1) == 4

    def test_view_only_from_environment(self, monkeypatch, fake_store):
        monkeypatch.setenv("BAYPLAN_VIEW_ONLY", "true")
        FeatureFlags.reset()
        assert BayRowLayout(fake_store).view_only is True
