import datetime as dt

import pytest

from phase_timeline.layout import PHASE_PALETTE, layout_timeline, month_labels
from phase_timeline.models import Phase, TimeAxis


def _phase(name, start=None, end=None):
    return Phase(name=name, start_date=start, end_date=end)


def test_empty_input_has_no_layout():
    layout = layout_timeline([])

    assert layout.is_empty
    assert layout.axis is None
    assert layout.bars == []
    assert layout.months == []


def test_phases_without_both_dates_are_left_out():
    phases = [_phase("Undated"), _phase("Half", start=dt.date(2024, 1, 1))]

    assert layout_timeline(phases).is_empty


def test_single_phase_fills_the_axis():
    layout = layout_timeline([_phase("A", dt.date(2024, 1, 1), dt.date(2024, 1, 10))])

    assert layout.axis == TimeAxis(dt.date(2024, 1, 1), dt.date(2024, 1, 10), 10)
    bar = layout.bars[0]
    assert bar.start_percent == 0
    assert bar.width_percent == pytest.approx(100)
    assert bar.duration_days == 10
    assert bar.color == PHASE_PALETTE[0]


def test_two_separate_phases_share_one_axis():
    a = _phase("A", dt.date(2024, 1, 1), dt.date(2024, 1, 5))
    b = _phase("B", dt.date(2024, 2, 1), dt.date(2024, 2, 10))

    layout = layout_timeline([a, b])

    assert layout.axis.min_date == dt.date(2024, 1, 1)
    assert layout.axis.max_date == dt.date(2024, 2, 10)
    assert layout.total_days == 41
    bar_a, bar_b = layout.bars
    assert bar_a.start_percent == 0
    assert bar_b.start_offset_days == 31
    assert bar_b.start_percent == pytest.approx(31 / 41 * 100)
    assert bar_b.width_percent == pytest.approx(10 / 41 * 100)


def test_bars_keep_input_order_and_source_index():
    phases = [
        _phase("Late", dt.date(2024, 3, 1), dt.date(2024, 3, 5)),
        _phase("Undated"),
        _phase("Early", dt.date(2024, 1, 1), dt.date(2024, 1, 5)),
    ]

    layout = layout_timeline(phases)

    assert [bar.phase.name for bar in layout.bars] == ["Late", "Early"]
    assert [bar.phase_index for bar in layout.bars] == [0, 2]
    # Palette position counts dated phases only.
    assert [bar.color for bar in layout.bars] == [PHASE_PALETTE[0], PHASE_PALETTE[1]]


def test_palette_cycles():
    start = dt.date(2024, 1, 1)
    phases = [_phase(f"P{i}", start, start + dt.timedelta(days=i)) for i in range(len(PHASE_PALETTE) + 1)]

    layout = layout_timeline(phases)

    assert layout.bars[-1].color == PHASE_PALETTE[0]


def test_inverted_range_is_a_single_day_bar():
    layout = layout_timeline([_phase("Backwards", dt.date(2024, 1, 10), dt.date(2024, 1, 5))])

    assert layout.axis.min_date == dt.date(2024, 1, 5)
    assert layout.total_days == 6
    bar = layout.bars[0]
    assert bar.duration_days == 1
    assert bar.start_offset_days == 5
    assert bar.width_percent == pytest.approx(100 / 6)


def test_bad_dates_only_drop_their_own_phase():
    phases = [
        _phase("Broken", "not-a-date", "2024-01-05"),
        _phase("Fine", "2024-01-01", "2024-01-10"),
    ]

    layout = layout_timeline(phases)

    assert [bar.phase.name for bar in layout.bars] == ["Fine"]
    assert layout.bars[0].phase_index == 1
    assert layout.total_days == 10


def test_reordering_keeps_geometry_but_may_change_colour():
    a = _phase("A", dt.date(2024, 1, 1), dt.date(2024, 1, 20))
    b = _phase("B", dt.date(2024, 1, 10), dt.date(2024, 2, 15))

    forward = {bar.phase.name: bar for bar in layout_timeline([a, b]).bars}
    backward = {bar.phase.name: bar for bar in layout_timeline([b, a]).bars}

    for name in ("A", "B"):
        assert forward[name].start_percent == pytest.approx(backward[name].start_percent)
        assert forward[name].width_percent == pytest.approx(backward[name].width_percent)
    assert forward["A"].color != backward["A"].color


def test_month_labels_partition_the_axis():
    layout = layout_timeline([_phase("A", dt.date(2023, 12, 15), dt.date(2024, 2, 3))])

    months = layout.months
    assert [m.label for m in months] == ["Dec 2023", "Jan 2024", "Feb 2024"]
    assert months[0].start == dt.date(2023, 12, 15)
    assert months[-1].end == dt.date(2024, 2, 3)
    assert sum(m.width_percent for m in months) == pytest.approx(100)
    for current, following in zip(months, months[1:]):
        assert following.position_percent == pytest.approx(current.position_percent + current.width_percent)


def test_month_labels_for_axis_inside_one_month():
    axis = TimeAxis(dt.date(2024, 5, 10), dt.date(2024, 5, 12), 3)

    labels = month_labels(axis)

    assert len(labels) == 1
    assert labels[0].position_percent == 0
    assert labels[0].width_percent == pytest.approx(100)


def test_layout_is_repeatable():
    phases = [_phase("A", dt.date(2024, 1, 1), dt.date(2024, 4, 1))]

    assert layout_timeline(phases) == layout_timeline(phases)


def test_utc_timestamps_with_trailing_z_lay_out():
    phases = [_phase("Synced", "2024-01-01T00:00:00.000Z", "2024-01-10T00:00:00.000Z")]

    layout = layout_timeline(phases)

    assert layout.axis.min_date == dt.date(2024, 1, 1)
    assert layout.total_days == 10
