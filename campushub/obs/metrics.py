"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNTER = Counter(
	"campushub_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"campushub_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

IDENTITIES_CREATED = Counter(
	"campushub_identities_created_total",
	"Identities created via sign-up",
	["role"],
)

CLUBS_CREATED = Counter(
	"campushub_clubs_created_total",
	"Clubs created segmented by origin",
	["origin"],
)

CLUBS_DEACTIVATED = Counter(
	"campushub_clubs_deactivated_total",
	"Clubs soft-deleted by their owners",
)

EVENTS_CREATED = Counter(
	"campushub_events_created_total",
	"Events published",
)

EVENTS_DEACTIVATED = Counter(
	"campushub_events_deactivated_total",
	"Events soft-deleted by their creators",
)

MEMBERSHIP_CHANGES = Counter(
	"campushub_membership_changes_total",
	"Club roster mutations segmented by action",
	["action"],
)

REGISTRATION_ATTEMPTS = Counter(
	"campushub_registration_attempts_total",
	"Event registration attempts segmented by outcome",
	["outcome"],
)

REGISTRATIONS_CANCELLED = Counter(
	"campushub_registrations_cancelled_total",
	"Event registrations cancelled",
)

AUTHZ_DENIALS = Counter(
	"campushub_authz_denials_total",
	"Authorization policy denials segmented by action",
	["action"],
)

REPOSITORY_FAILURES = Counter(
	"campushub_repository_failures_total",
	"Storage failures surfaced as unavailable",
	["operation"],
)


def observe_request(route: str, method: str, status: int, duration_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(duration_seconds)


def inc_identity_created(role: str) -> None:
	IDENTITIES_CREATED.labels(role=role).inc()


def inc_club_created(origin: str) -> None:
	CLUBS_CREATED.labels(origin=origin).inc()


def inc_club_deactivated() -> None:
	CLUBS_DEACTIVATED.inc()


def inc_event_created() -> None:
	EVENTS_CREATED.inc()


def inc_event_deactivated() -> None:
	EVENTS_DEACTIVATED.inc()


def inc_membership_change(action: str) -> None:
	MEMBERSHIP_CHANGES.labels(action=action).inc()


def inc_registration_attempt(outcome: str) -> None:
	REGISTRATION_ATTEMPTS.labels(outcome=outcome).inc()


def inc_registration_cancelled() -> None:
	REGISTRATIONS_CANCELLED.inc()


def inc_authz_denied(action: str) -> None:
	AUTHZ_DENIALS.labels(action=action).inc()


def inc_repository_failure(operation: str) -> None:
	REPOSITORY_FAILURES.labels(operation=operation).inc()
