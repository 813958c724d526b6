from .duration import compute_duration, sync_duration
from .layout import PHASE_PALETTE, layout_timeline
from .models import MonthLabel, Phase, PhaseBar, TimeAxis, TimelineLayout

__all__ = [
    "PHASE_PALETTE",
    "MonthLabel",
    "Phase",
    "PhaseBar",
    "TimeAxis",
    "TimelineLayout",
    "compute_duration",
    "layout_timeline",
    "sync_duration",
]
