"""Lifecycle stage derivation for events."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Iterator

from campushub.domain.models import Event, LifecycleStage

# Events carry no end time; each one occupies a fixed one-day window.
OCCUPANCY_WINDOW = timedelta(hours=24)


def classify(event: Event, now: datetime) -> LifecycleStage:
	"""Map ``event.event_date`` to exactly one stage relative to ``now``.

	Upcoming: now < event_date
	Ongoing: event_date <= now <= event_date + 24h
	Completed: now > event_date + 24h
	"""
	if now < event.event_date:
		return LifecycleStage.UPCOMING
	if now <= event.event_date + OCCUPANCY_WINDOW:
		return LifecycleStage.ONGOING
	return LifecycleStage.COMPLETED


def with_stage(events: Iterable[Event], now: datetime) -> Iterator[tuple[Event, LifecycleStage]]:
	"""Pair active events with their stage; inactive events are dropped."""
	for event in events:
		if not event.is_active:
			continue
		yield event, classify(event, now)
