"""Fixed appointment slot enumeration and selectability rules.

Salons book in half-hour slots identified by a clock label such as
``"02:30 PM"``. The day is split into three segments shown to customers in
order: morning, afternoon and evening.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

# Slots starting sooner than this after "now" cannot be picked for today.
SLOT_BUFFER_MINUTES = 60

SLOT_STEP_MINUTES = 30

LABEL_FORMAT = "%I:%M %p"

_ANCHOR_DAY = date(2000, 1, 1)


def _labels(first: time, last: time) -> tuple[str, ...]:
    labels = []
    current = datetime.combine(_ANCHOR_DAY, first)
    end = datetime.combine(_ANCHOR_DAY, last)
    while current <= end:
        labels.append(current.strftime(LABEL_FORMAT))
        current += timedelta(minutes=SLOT_STEP_MINUTES)
    return tuple(labels)


SLOT_SEGMENTS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("morning", _labels(time(9, 0), time(11, 30))),
    ("afternoon", _labels(time(12, 0), time(17, 30))),
    ("evening", _labels(time(18, 0), time(22, 30))),
)

TIME_LABELS: tuple[str, ...] = tuple(label for _, labels in SLOT_SEGMENTS for label in labels)


@dataclass(frozen=True)
class SlotView:
    label: str
    segment: str
    occupied: bool
    within_buffer: bool

    @property
    def available(self) -> bool:
        return not (self.occupied or self.within_buffer)

    def to_dict(self) -> dict[str, object]:
        return {
            "time": self.label,
            "available": self.available,
            "occupied": self.occupied,
            "within_buffer": self.within_buffer,
        }


def is_valid_label(label: str) -> bool:
    return label in TIME_LABELS


def label_to_time(label: str) -> time:
    """Parse a slot label such as ``"12:30 PM"`` into a clock time."""
    try:
        return datetime.strptime(label, LABEL_FORMAT).time()
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Unknown time label: {label!r}") from exc


def slot_start(slot_date: date, label: str) -> datetime:
    return datetime.combine(slot_date, label_to_time(label))


def within_buffer(slot_date: date, label: str, now: datetime) -> bool:
    """True when the slot is today and starts less than the buffer after ``now``.

    Future dates are never buffered. ``now`` is local wall-clock time.
    """
    if slot_date != now.date():
        return False
    return slot_start(slot_date, label) < now + timedelta(minutes=SLOT_BUFFER_MINUTES)


def build_slot_views(slot_date: date, occupied: set[str], now: datetime) -> list[SlotView]:
    return [
        SlotView(
            label=label,
            segment=segment,
            occupied=label in occupied,
            within_buffer=within_buffer(slot_date, label, now),
        )
        for segment, labels in SLOT_SEGMENTS
        for label in labels
    ]


def selectable_labels(slot_date: date, occupied: set[str], now: datetime) -> list[str]:
    return [view.label for view in build_slot_views(slot_date, occupied, now) if view.available]


def group_by_segment(views: list[SlotView]) -> list[dict[str, object]]:
    grouped = []
    for segment, _ in SLOT_SEGMENTS:
        grouped.append({
            "segment": segment,
            "slots": [view.to_dict() for view in views if view.segment == segment],
        })
    return grouped
