from __future__ import annotations

import json
import logging

from campushub.obs import logging as obs_logging


def _record(**extra) -> logging.LogRecord:
	record = logging.LogRecord("campushub.test", logging.INFO, __file__, 1, "membership.added", None, None)
	for key, value in extra.items():
		setattr(record, key, value)
	return record


def test_formatter_redacts_sensitive_fields_and_binds_context():
	tokens = obs_logging.bind_context(request_id="req-1", route="/api/v1/clubs", user_id="u-1")
	try:
		line = obs_logging.JSONLogFormatter().format(
			_record(contact_email="club@cmrit.ac.in", club_id="c-1", notes="x" * 400)
		)
	finally:
		obs_logging.reset_context(tokens)

	payload = json.loads(line)
	assert payload["msg"] == "membership.added"
	assert payload["request_id"] == "req-1"
	assert payload["user_id"] == "u-1"
	assert payload["contact_email"] == "[redacted]"
	assert payload["club_id"] == "c-1"
	assert len(payload["notes"]) < 400
	assert obs_logging.current_request_id("none") == "none"
