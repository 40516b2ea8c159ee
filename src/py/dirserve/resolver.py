import os
from urllib.parse import unquote

from .config import RootConfig
from .outcomes import BadRequest, NotFound

__doc__ = """
Maps request paths to paths under the root directory. The mapping is
lexical: the path is decoded, each segment is checked, and the segments
are joined onto the root. Nothing touches the filesystem until every
segment has been accepted.

Decoding comes first so that encoded traversals like `%2e%2e` are seen
as `..` by the segment check.

Symbolic links inside the root that point outside of it are followed,
unless the configuration asks for `strictSymlinks`, in which case
`confine` must be called on the resolved path.
"""


def decodePath(path: str) -> str:
	"""Percent-decodes the path, invalid UTF-8 sequences are replaced by
	U+FFFD instead of failing."""
	return unquote(path, encoding="utf-8", errors="replace")


def isValidSegment(segment: str) -> bool:
	return not (segment.startswith("..") or "\\" in segment or "\0" in segment)


def segments(path: str) -> list[str]:
	"""Returns the non-empty segments of the decoded `path`, raising
	`BadRequest` if one of them is invalid."""
	res: list[str] = []
	for segment in path.lstrip("/").split("/"):
		if not segment:
			continue
		elif not isValidSegment(segment):
			raise BadRequest(f"Invalid path segment: {segment!r}")
		else:
			res.append(segment)
	return res


def resolve(path: str, config: RootConfig) -> str:
	"""Resolves the raw (percent-encoded) request `path` to a path under
	the configured root."""
	return os.path.join(config.root, *segments(decodePath(path)))


def confine(path: str, config: RootConfig) -> str:
	"""Ensures that `path` stays within the root once symbolic links are
	resolved, raising `NotFound` otherwise. This accesses the filesystem."""
	root: str = os.path.realpath(config.root)
	real: str = os.path.realpath(path)
	if real != root and not real.startswith(
		root if root.endswith(os.sep) else root + os.sep
	):
		raise NotFound(f"Path resolves outside of the root: {real}")
	return path


# EOF
