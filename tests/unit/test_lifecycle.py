from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from campushub.domain import lifecycle
from campushub.domain.models import Event, LifecycleStage

T = datetime(2026, 3, 14, 18, 0, tzinfo=timezone.utc)


def _event(*, is_active: bool = True) -> Event:
	return Event(
		id=uuid4(),
		title="Tech Talk",
		event_date=T,
		created_by=uuid4(),
		is_active=is_active,
		created_at=T - timedelta(days=7),
		updated_at=T - timedelta(days=7),
	)


@pytest.mark.parametrize(
	("now", "expected"),
	[
		(T - timedelta(days=1), LifecycleStage.UPCOMING),
		(T - timedelta(microseconds=1), LifecycleStage.UPCOMING),
		(T, LifecycleStage.ONGOING),
		(T + timedelta(hours=12), LifecycleStage.ONGOING),
		(T + timedelta(hours=24), LifecycleStage.ONGOING),
		(T + timedelta(hours=24, seconds=1), LifecycleStage.COMPLETED),
		(T + timedelta(days=30), LifecycleStage.COMPLETED),
	],
)
def test_classify_boundaries(now, expected):
	assert lifecycle.classify(_event(), now) is expected


def test_classify_is_deterministic_for_fixed_now():
	event = _event()
	now = T + timedelta(hours=3)
	assert {lifecycle.classify(event, now) for _ in range(5)} == {LifecycleStage.ONGOING}


def test_with_stage_drops_inactive_events():
	active = _event()
	inactive = _event(is_active=False)
	staged = list(lifecycle.with_stage([active, inactive], T - timedelta(hours=1)))
	assert staged == [(active, LifecycleStage.UPCOMING)]
