import io

import pytest

from dirserve.utils import logging
from dirserve.utils.logging import (
	LogLevel,
	debug,
	error,
	event,
	exception,
	info,
	isEnabled,
	logged,
	setLevel,
	warning,
)


def test_default_threshold(log: io.StringIO) -> None:
	setLevel("info")
	debug("Hidden")
	info("Shown", Path="/docs")
	output = log.getvalue()
	assert "Hidden" not in output
	assert "Shown" in output
	assert "/docs" in output


def test_threshold(log: io.StringIO) -> None:
	assert setLevel("WARNING") is LogLevel.Warning
	info("Hidden")
	warning("Careful")
	error("Failed", "LISTFAIL", Path="/docs")
	output = log.getvalue()
	assert "Hidden" not in output
	assert "Careful" in output
	assert "LISTFAIL" in output
	assert not logged(info)
	assert logged(warning)
	assert logged(error)


def test_debug(log: io.StringIO) -> None:
	setLevel(LogLevel.Debug)
	assert logged(debug)
	debug("Details", Size=10)
	event("GET", "/docs")
	assert "Details" in log.getvalue()
	assert "/docs" in log.getvalue()


def test_aliases() -> None:
	assert setLevel("warn") is LogLevel.Warning
	assert setLevel(" error ") is LogLevel.Error
	assert not isEnabled(LogLevel.Warning)
	assert isEnabled(LogLevel.Exception)


def test_unknown_level() -> None:
	level = logging.THRESHOLD
	with pytest.raises(ValueError):
		setLevel("verbose")
	assert logging.THRESHOLD is level


def test_exception(log: io.StringIO) -> None:
	try:
		raise RuntimeError("boom")
	except RuntimeError as e:
		assert exception(e, "While testing") is e
	output = log.getvalue()
	assert "While testing: [RuntimeError] boom" in output
	assert "test_exception" in output


# EOF
