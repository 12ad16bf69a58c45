"""
Testes para a timeline do grid - slots, geometria das barras, projeção (T1-T3)
"""
from datetime import date

import pytest

from bay_scheduling.timeline import (
    MAX_SLOTS,
    PROJECT_COLORS,
    BayScheduleGrid,
    clamped_slot_index,
    compute_bar_geometry,
    date_at_offset,
    generate_time_slots,
    locate_slot,
    project_color,
)
from bay_scheduling.types import BarState, DateRange, Granularity, ScheduleEntry


def _entry(start, end, schedule_id=1, project_id=10, bay_id=1, row=0):
    return ScheduleEntry(id=schedule_id, project_id=project_id, bay_id=bay_id,
                         start_date=start, end_date=end, total_hours=100, row=row)


@pytest.fixture
def january_weeks():
    """Semanas de Janeiro 2024: 1, 8, 15, 22, 29."""
    return generate_time_slots(DateRange(date(2024, 1, 3), date(2024, 1, 31)), Granularity.WEEK)


class TestT1_TimeSlots:
    """T1: Geração de time slots."""

    def test_week_slots_start_on_monday(self, january_weeks):
        """T1.1: O primeiro slot semanal é a semana que contém o início do range."""
        assert [s.date for s in january_weeks] == [
            date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15), date(2024, 1, 22), date(2024, 1, 29),
        ]
        assert all(s.width == 100 for s in january_weeks)
        assert all(s.is_start_of_week for s in january_weeks)
        assert january_weeks[0].label.startswith("W01")

    def test_slots_are_contiguous(self, january_weeks):
        """T1.2: O fim de cada slot é o início do seguinte."""
        for current, nxt in zip(january_weeks, january_weeks[1:]):
            assert current.end == nxt.date

    def test_day_slots(self):
        """T1.3: Slots diários com largura 50 e flag de dia útil."""
        slots = generate_time_slots(DateRange(date(2024, 1, 1), date(2024, 1, 7)), Granularity.DAY)
        assert len(slots) == 7
        assert all(s.width == 50 for s in slots)
        assert slots[0].is_business_day is False   # New Year's Day
        assert slots[1].is_business_day is True
        assert slots[5].is_business_day is False   # sábado

    def test_month_slots(self):
        """T1.4: Slots mensais cobrem meses civis."""
        slots = generate_time_slots(DateRange(date(2024, 1, 15), date(2024, 3, 10)), "month")
        assert [s.date for s in slots] == [date(2024, 1, 1), date(2024, 2, 1), date(2024, 3, 1)]
        assert slots[0].label == "Jan 2024"
        assert slots[1].end == date(2024, 3, 1)
        assert all(s.width == 150 and s.is_start_of_month for s in slots)

    def test_quarter_slots(self):
        """T1.5: Slots trimestrais começam em Jan/Abr/Jul/Out."""
        slots = generate_time_slots(DateRange(date(2024, 2, 1), date(2024, 12, 31)), Granularity.QUARTER)
        assert [s.date.month for s in slots] == [1, 4, 7, 10]
        assert [s.label for s in slots] == ["Q1 2024", "Q2 2024", "Q3 2024", "Q4 2024"]
        assert all(s.width == 200 for s in slots)

    def test_inverted_range_raises(self):
        """T1.6: Range invertido é rejeitado."""
        with pytest.raises(ValueError):
            generate_time_slots(DateRange(date(2024, 2, 1), date(2024, 1, 1)), Granularity.WEEK)

    def test_slot_cap(self):
        """T1.7: A geração pára em MAX_SLOTS."""
        slots = generate_time_slots(DateRange(date(2000, 1, 1), date(2020, 1, 1)), Granularity.DAY)
        assert len(slots) == MAX_SLOTS


class TestT2_BarGeometry:
    """T2: left/width das barras."""

    def test_bar_inside_range(self, january_weeks):
        """T2.1: left = s·w e left + width = (t+1)·w dentro do range."""
        geometry = compute_bar_geometry(_entry(date(2024, 1, 10), date(2024, 1, 20)), january_weeks)
        assert geometry.start_slot == 1
        assert geometry.end_slot == 2
        assert geometry.left == 100
        assert geometry.left + geometry.width == 300
        assert geometry.clamped is False

    def test_one_week_entry_is_one_slot_wide(self, january_weeks):
        """T2.2: Entrada de uma semana em vista semanal tem largura 100."""
        geometry = compute_bar_geometry(_entry(date(2024, 1, 8), date(2024, 1, 14)), january_weeks)
        assert geometry.width == 100

    def test_end_beyond_range_clamps(self, january_weeks):
        """T2.3: Fim fora do range fica no último slot, sem exceção."""
        geometry = compute_bar_geometry(_entry(date(2024, 1, 22), date(2024, 6, 1)), january_weeks)
        assert geometry.end_slot == len(january_weeks) - 1
        assert geometry.left == 300
        assert geometry.width == 200
        assert geometry.clamped is True

    def test_start_before_range_clamps(self, january_weeks):
        """T2.4: Início antes do range fica no slot 0."""
        geometry = compute_bar_geometry(_entry(date(2023, 11, 1), date(2024, 1, 9)), january_weeks)
        assert geometry.left == 0
        assert geometry.width == 200

    def test_inverted_entry_has_positive_width(self, january_weeks):
        """T2.5: end < start nunca dá largura negativa."""
        geometry = compute_bar_geometry(_entry(date(2024, 1, 20), date(2024, 1, 2)), january_weeks)
        assert geometry.end_slot == geometry.start_slot
        assert geometry.width == 100

    def test_missing_end_date(self, january_weeks):
        """T2.6: Sem end_date a barra ocupa o slot do início."""
        geometry = compute_bar_geometry(_entry(date(2024, 1, 16), None), january_weeks)
        assert geometry.start_slot == geometry.end_slot == 2

    def test_min_width_floor(self, january_weeks):
        """T2.7: A largura mínima aplica-se quando supera o slot."""
        geometry = compute_bar_geometry(_entry(date(2024, 1, 8), date(2024, 1, 9)), january_weeks, min_width=120)
        assert geometry.width == 120

    def test_slot_lookup(self, january_weeks):
        """T2.8: locate_slot devolve None fora do range; clamped_slot_index nunca falha."""
        assert locate_slot(january_weeks, date(2024, 1, 17)) == 2
        assert locate_slot(january_weeks, date(2023, 12, 31)) is None
        assert locate_slot(january_weeks, date(2024, 2, 5)) is None
        assert clamped_slot_index(january_weeks, date(2023, 12, 31)) == 0
        assert clamped_slot_index(january_weeks, date(2024, 2, 5)) == 4
        assert clamped_slot_index(january_weeks, None, fallback=3) == 3

    def test_date_at_offset(self, january_weeks):
        """T2.9: Offset horizontal → data do slot."""
        assert date_at_offset(january_weeks, 250) == date(2024, 1, 15)
        assert date_at_offset(january_weeks, -10) == date(2024, 1, 1)
        assert date_at_offset(january_weeks, 10_000) == date(2024, 1, 29)

    def test_project_color_palette(self):
        """T2.10: Cor indexada por project_id % 13."""
        assert len(PROJECT_COLORS) == 13
        assert project_color(0) == PROJECT_COLORS[0]
        assert project_color(13) == PROJECT_COLORS[0]
        assert project_color(15) == PROJECT_COLORS[2]


class TestT3_GridProjection:
    """T3: Projeção completa do grid."""

    def _grid(self, bays, projects, entries):
        return BayScheduleGrid(
            bays=bays,
            projects=projects,
            entries=entries,
            date_range=DateRange(date(2024, 1, 1), date(2024, 2, 25)),
            granularity=Granularity.WEEK,
        )

    def test_render_is_idempotent(self, sample_bays, sample_projects, sample_entries):
        """T3.1: Renderizar duas vezes dá o mesmo layout."""
        grid = self._grid(sample_bays, sample_projects, sample_entries)
        assert grid.render().to_dict() == grid.render().to_dict()

    def test_bars_grouped_by_bay(self, sample_bays, sample_projects, sample_entries):
        """T3.2: Cada bay tem as suas barras, ordenadas por row."""
        layout = self._grid(sample_bays, sample_projects, sample_entries).render()
        by_bay = {block.bay.id: block for block in layout.bays}
        assert [b.schedule_id for b in by_bay[1].bars] == [100, 101]
        assert [b.schedule_id for b in by_bay[2].bars] == [102]
        assert by_bay[3].bars == []
        assert by_bay[1].row_count == 20
        assert layout.total_width == len(layout.slots) * 100
        assert layout.unassigned == []

    def test_missing_project_keeps_bar(self, sample_bays, sample_projects):
        """T3.3: Projeto em falta mantém a barra com label de fallback."""
        grid = self._grid(sample_bays, sample_projects, [_entry(date(2024, 1, 8), date(2024, 1, 12), project_id=99)])
        bar = grid.render().bays[0].bars[0]
        assert bar.project_name == "Project #99"

    def test_missing_bay_goes_to_unassigned(self, sample_bays, sample_projects):
        """T3.4: Bay em falta → unassigned, nunca perdida."""
        grid = self._grid(sample_bays, sample_projects, [_entry(date(2024, 1, 8), date(2024, 1, 12), bay_id=42)])
        layout = grid.render()
        assert [b.bay_id for b in layout.unassigned] == [42]

    def test_pending_positions_and_states(self, sample_bays, sample_projects, sample_entries):
        """T3.5: Posições otimistas substituem as do fetch durante o drop."""
        grid = self._grid(sample_bays, sample_projects, sample_entries)
        moved = _entry(date(2024, 1, 29), date(2024, 2, 9), schedule_id=100, project_id=10, bay_id=2, row=3)
        layout = grid.render(states={100: BarState.DROPPED}, pending={100: moved})

        bay2 = next(block for block in layout.bays if block.bay.id == 2)
        bar = next(b for b in bay2.bars if b.schedule_id == 100)
        assert bar.state == BarState.DROPPED
        assert bar.row == 3
        assert bar.left == 400
        assert bar.to_dict()["state"] == "dropped"
