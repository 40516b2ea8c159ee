import sys
from enum import Enum
from typing import Any, Callable, TypeAlias

from .term import Term

# Entries go to stderr, tests swap this stream for a buffer
ERR = sys.stderr

ORIGIN: str = "dirserve"

TPrimitive: TypeAlias = None | bool | int | float | str


class LogLevel(Enum):
	Debug = 0
	Info = 10
	Warning = 30
	Error = 40  # A managed error
	Exception = 50  # An unmanaged error


LOG_LEVEL_COLOR: dict[LogLevel, int] = {
	LogLevel.Debug: 31,
	LogLevel.Info: 75,
	LogLevel.Warning: 202,
	LogLevel.Error: 160,
	LogLevel.Exception: 124,
}

LOG_LEVEL_NAMES: dict[str, LogLevel] = {
	"debug": LogLevel.Debug,
	"info": LogLevel.Info,
	"warn": LogLevel.Warning,
	"warning": LogLevel.Warning,
	"error": LogLevel.Error,
}

# The minimum level at which entries are written out
THRESHOLD: LogLevel = LogLevel.Info


def setLevel(level: LogLevel | str) -> LogLevel:
	"""Sets the logging threshold, `level` can be a `LogLevel` or one
	of the names in `LOG_LEVEL_NAMES`."""
	if isinstance(level, str):
		key = level.strip().lower()
		if key not in LOG_LEVEL_NAMES:
			raise ValueError(
				f"Unknown log level '{level}', pick one of: {', '.join(LOG_LEVEL_NAMES)}"
			)
		level = LOG_LEVEL_NAMES[key]
	global THRESHOLD
	THRESHOLD = level
	return level


def isEnabled(level: LogLevel) -> bool:
	return level.value >= THRESHOLD.value


def formatData(value: Any) -> str:
	if value is None or value == () or value == [] or value == {}:
		return "◌"
	elif isinstance(value, dict):
		return " ".join(
			f"{Term.BOLD}{k}{Term.NORMAL}={formatData(v)}" for k, v in value.items()
		)
	elif isinstance(value, (list, tuple)):
		return ",".join(formatData(_) for _ in value)
	elif isinstance(value, str):
		return repr(value) if " " in value else value
	elif isinstance(value, bool):
		return "✓" if value else "✗"
	elif isinstance(value, float):
		return f"{value:0.2f}"
	else:
		return str(value)


def write(level: LogLevel, label: str, text: str) -> bool:
	"""Writes an entry if `level` passes the threshold, telling if it did."""
	if not isEnabled(level):
		return False
	clr: str = Term.Color(LOG_LEVEL_COLOR[level])
	ERR.write(f"{clr}{Term.BOLD}[{ORIGIN}]{label}{Term.RESET} {text}{Term.RESET}\n")
	ERR.flush()
	return True


def message(
	level: LogLevel, text: str, icon: str | None, context: dict[str, TPrimitive]
) -> bool:
	return write(level, f" {icon}" if icon else "", f"{text} {formatData(context)}")


def debug(text: str, *, icon: str | None = None, **context: TPrimitive) -> bool:
	return message(LogLevel.Debug, text, icon, context)


def info(text: str, *, icon: str | None = None, **context: TPrimitive) -> bool:
	return message(LogLevel.Info, text, icon, context)


def warning(text: str, *, icon: str | None = None, **context: TPrimitive) -> bool:
	return message(LogLevel.Warning, text, icon, context)


def error(text: str, code: int | str | None, **context: TPrimitive) -> bool:
	"""Logs a managed error, `code` is a short identifier that can be
	searched for in the logs, like `NOTFOUND`."""
	return write(LogLevel.Error, f" {code}", f"{text} {formatData(context)}")


def event(name: str, value: Any = None, **context: TPrimitive) -> bool:
	return write(LogLevel.Info, f" {name}", f"{formatData(value)} {formatData(context)}")


def exception(e: BaseException, text: str | None = None) -> BaseException:
	"""Writes the exception and its traceback, whatever the threshold, and
	returns it so that it can be used as `raise exception(e)`."""
	try:
		summary = f"[{e.__class__.__name__}] {e}"
		ERR.write(f"!!! EXCP {f'{text}: {summary}' if text else summary}\n")
		tb = e.__traceback__
		while tb:
			code = tb.tb_frame.f_code
			ERR.write(
				f"... in {code.co_name:15s} at {tb.tb_lineno:4d} in {code.co_filename}\n"
			)
			tb = tb.tb_next
		ERR.flush()
	except Exception:  # nosec: B110
		# Called from exception handlers, so it must never raise
		pass
	return e


LOGGED_LEVELS: dict[Callable[..., Any], LogLevel] = {
	debug: LogLevel.Debug,
	info: LogLevel.Info,
	warning: LogLevel.Warning,
	error: LogLevel.Error,
}


def logged(item: Callable[..., Any]) -> bool:
	"""Tells if the given logging function would currently produce output,
	to avoid building entries as in `logged(debug) and debug(...)`."""
	return isEnabled(LOGGED_LEVELS.get(item, LogLevel.Info))


# EOF
