import resource

from .logging import warning

# Each connection and each file being sent holds a descriptor. Darwin
# reports a really high hard limit that overflows `setrlimit`.
MAX_FILES: int = 10 * 10240


def unlimit(maximum: int = MAX_FILES) -> int:
	"""Raises the soft limit of open files up to the hard limit, capped at
	`maximum`, and returns the limit in effect."""
	soft, hard = resource.getrlimit(resource.RLIMIT_NOFILE)
	target = maximum if hard == resource.RLIM_INFINITY else min(maximum, hard)
	if target <= soft:
		return soft
	try:
		resource.setrlimit(resource.RLIMIT_NOFILE, (target, hard))
	except (ValueError, OSError) as e:
		warning("Could not raise the open files limit", Limit=soft, Reason=str(e))
		return soft
	return target


# EOF
