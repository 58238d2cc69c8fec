"""
Interval arithmetic over half-open ``TimeRange`` values.

Pure functions: no I/O, no mutation of their inputs.
"""

from typing import Iterable, List

from .models import TimeRange


def overlaps(a: TimeRange, b: TimeRange) -> bool:
    """True iff the half-open ranges share at least one instant."""
    return a.start < b.end and b.start < a.end


def contains(outer: TimeRange, inner: TimeRange) -> bool:
    """True iff ``inner`` lies completely inside ``outer``."""
    return outer.start <= inner.start and inner.end <= outer.end


def subtract(window: TimeRange, busy_ranges: Iterable[TimeRange]) -> List[TimeRange]:
    """
    Subtract busy times from a window, yielding the free ranges in order.

    Example:
    Window: 09:00 - 17:00
    Busy: [10:00-11:00, 14:00-15:00]
    Result: [09:00-10:00, 11:00-14:00, 15:00-17:00]

    Busy ranges may be unsorted, overlap each other, or stick out of the
    window. A busy range covering the whole window leaves nothing.
    """
    free_ranges: List[TimeRange] = []
    current_start = window.start

    relevant = sorted(
        (busy for busy in busy_ranges if overlaps(window, busy)),
        key=lambda r: r.start,
    )

    for busy in relevant:
        # Clip busy range to the window
        clipped_busy_start = max(busy.start, window.start)
        clipped_busy_end = min(busy.end, window.end)

        if current_start < clipped_busy_start:
            free_ranges.append(TimeRange(start=current_start, end=clipped_busy_start))

        current_start = max(current_start, clipped_busy_end)

    if current_start < window.end:
        free_ranges.append(TimeRange(start=current_start, end=window.end))

    return free_ranges


def merge(ranges: Iterable[TimeRange]) -> List[TimeRange]:
    """
    Merge overlapping or adjacent time ranges.

    Example: [09:00-10:00, 10:00-11:00] -> [09:00-11:00]
    """
    sorted_ranges = sorted(ranges, key=lambda r: r.start)
    if not sorted_ranges:
        return []

    merged: List[TimeRange] = [sorted_ranges[0]]

    for current in sorted_ranges[1:]:
        last = merged[-1]

        if current.start <= last.end:
            merged[-1] = TimeRange(start=last.start, end=max(last.end, current.end))
        else:
            merged.append(current)

    return merged
