"""Authorization policy for club, event and registration operations.

Rules are evaluated top to bottom; the first rule naming the action decides.
Actions no rule names are denied.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from campushub.domain import lifecycle
from campushub.domain.exceptions import ForbiddenError
from campushub.domain.models import Action, Club, Event, Identity, LifecycleStage, Registration, Role
from campushub.obs import metrics as obs_metrics

Resource = Union[Club, Event, Registration, None]
Check = Callable[[Identity, Resource, datetime], bool]

PUBLISHER_ROLES = frozenset({Role.FACULTY, Role.CLUB_OFFICER})


def _is_publisher(identity: Identity, resource: Resource, now: datetime) -> bool:
	return identity.role in PUBLISHER_ROLES


def _owns_club(identity: Identity, resource: Resource, now: datetime) -> bool:
	if not isinstance(resource, Club):
		return False
	return resource.created_by is not None and resource.created_by == identity.id


def _created_event(identity: Identity, resource: Resource, now: datetime) -> bool:
	return isinstance(resource, Event) and resource.created_by == identity.id


def _event_open(identity: Identity, resource: Resource, now: datetime) -> bool:
	if not isinstance(resource, Event) or not resource.is_active:
		return False
	return lifecycle.classify(resource, now) is not LifecycleStage.COMPLETED


def _is_registrant(identity: Identity, resource: Resource, now: datetime) -> bool:
	return isinstance(resource, Registration) and resource.user_id == identity.id


@dataclass(frozen=True, slots=True)
class Rule:
	actions: frozenset[Action]
	check: Check


RULES: tuple[Rule, ...] = (
	Rule(frozenset({Action.CREATE_CLUB, Action.CREATE_EVENT}), _is_publisher),
	Rule(frozenset({Action.EDIT_CLUB, Action.DEACTIVATE_CLUB, Action.MANAGE_MEMBERSHIP}), _owns_club),
	Rule(frozenset({Action.EDIT_EVENT, Action.DEACTIVATE_EVENT}), _created_event),
	Rule(frozenset({Action.REGISTER}), _event_open),
	Rule(frozenset({Action.CANCEL_REGISTRATION}), _is_registrant),
)


def can_perform(
	identity: Optional[Identity],
	action: Action,
	resource: Resource = None,
	*,
	now: Optional[datetime] = None,
) -> bool:
	if identity is None:
		return False
	moment = now or datetime.now(timezone.utc)
	for rule in RULES:
		if action in rule.actions:
			return rule.check(identity, resource, moment)
	return False


def assert_can_perform(
	identity: Optional[Identity],
	action: Action,
	resource: Resource = None,
	*,
	now: Optional[datetime] = None,
) -> None:
	if not can_perform(identity, action, resource, now=now):
		obs_metrics.inc_authz_denied(action.value)
		raise ForbiddenError(f"{action.value}_not_permitted")
