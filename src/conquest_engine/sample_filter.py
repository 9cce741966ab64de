"""Accept/reject decision for incoming location fixes."""

from __future__ import annotations

from enum import Enum

from .geo import distance_m
from .models import ConquestSettings, RawFix, TrackedPoint


class FilterVerdict(str, Enum):
    ACCEPTED = "accepted"
    LOW_ACCURACY = "low_accuracy"
    TOO_SOON = "too_soon"
    TOO_CLOSE = "too_close"


def evaluate(
    candidate: RawFix,
    last_accepted: TrackedPoint | None,
    settings: ConquestSettings,
) -> FilterVerdict:
    """Check a fix against the accuracy, time and distance thresholds, in that order.

    The time and distance rules only apply once a point has been accepted, so
    the first fix of a session can only be rejected for accuracy.
    """
    if candidate.accuracy is not None and candidate.accuracy > settings.accuracy_threshold_m:
        return FilterVerdict.LOW_ACCURACY

    if last_accepted is None:
        return FilterVerdict.ACCEPTED

    elapsed_ms = (candidate.timestamp - last_accepted.timestamp).total_seconds() * 1000
    if elapsed_ms < settings.min_time_threshold_ms:
        return FilterVerdict.TOO_SOON

    if distance_m(candidate, last_accepted) < settings.min_distance_threshold_m:
        return FilterVerdict.TOO_CLOSE

    return FilterVerdict.ACCEPTED


def should_accept(
    candidate: RawFix,
    last_accepted: TrackedPoint | None,
    settings: ConquestSettings,
) -> bool:
    return evaluate(candidate, last_accepted, settings) is FilterVerdict.ACCEPTED
