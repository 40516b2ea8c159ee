import json as basejson
from pathlib import Path
from typing import Any


def asPrimitive(value: Any) -> Any:
	"""Turns named tuples into dictionaries, recursively, so that listing
	entries serialize as objects rather than arrays."""
	if isinstance(value, tuple) and hasattr(value, "_asdict"):
		return {k: asPrimitive(v) for k, v in value._asdict().items()}
	elif isinstance(value, (list, tuple)):
		return [asPrimitive(_) for _ in value]
	elif isinstance(value, dict):
		return {str(k): asPrimitive(v) for k, v in value.items()}
	elif isinstance(value, Path):
		return str(value)
	else:
		return value


def json(value: Any) -> bytes:
	"""Serializes the given value as UTF-8 encoded JSON."""
	return basejson.dumps(asPrimitive(value), ensure_ascii=False).encode("utf8")


# EOF
