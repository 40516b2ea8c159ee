import asyncio
import errno
import os
import stat
from datetime import timezone
from email.utils import formatdate, parsedate_to_datetime
from pathlib import Path
from typing import Literal, NamedTuple, Protocol
from urllib.parse import quote

from .config import RootConfig
from .http.model import HTTPBodyFile, HTTPRequest, HTTPResponse
from .outcomes import BadRequest, NotFound
from .resolver import confine, decodePath, segments
from .utils.files import contentType
from .utils.logging import debug, logged

# -----------------------------------------------------------------------------
#
# CONTENT DELEGATE
#
# -----------------------------------------------------------------------------
#
# The content delegate gets the first shot at a request. It either handles
# it, in which case the response is sent as is, or reports it missed, in
# which case the file service tries to list a directory.


class Handled(NamedTuple):
	response: HTTPResponse


class Missed(NamedTuple):
	reason: str = "not found"


class ContentDelegate(Protocol):
	async def transmit(self, request: HTTPRequest) -> Handled | Missed:
		"""Tries to serve the request, raising on unexpected failures."""
		...


# -----------------------------------------------------------------------------
#
# RANGES & DATES
#
# -----------------------------------------------------------------------------


class ByteRange(NamedTuple):
	"""An inclusive byte range, as in `Content-Range`."""

	start: int
	end: int

	@property
	def length(self) -> int:
		return self.end - self.start + 1


def parseRange(header: str | None, size: int) -> ByteRange | Literal[False] | None:
	"""Parses a `Range` header for a file of the given `size`. Returns
	`None` when the header should be ignored (absent, malformed, or
	asking for more than one range) and `False` when the range cannot be
	satisfied."""
	if not header or not header.startswith("bytes="):
		return None
	value: str = header[6:].strip()
	if "," in value or "-" not in value:
		return None
	first, last = (_.strip() for _ in value.split("-", 1))
	try:
		if not first:
			# Suffix range, the last `n` bytes
			n = int(last)
			if n <= 0 or size == 0:
				return False
			return ByteRange(max(0, size - n), size - 1)
		start = int(first)
		end = int(last) if last else size - 1
	except ValueError:
		return None
	if start < 0 or end < start:
		return None
	elif start >= size:
		return False
	else:
		return ByteRange(start, min(end, size - 1))


def parseHTTPDate(value: str | None) -> int | None:
	"""Parses an HTTP date as seconds since the epoch, or `None` if it
	is missing or malformed."""
	if not value:
		return None
	try:
		date = parsedate_to_datetime(value)
	except (TypeError, ValueError, IndexError):
		return None
	if date.tzinfo is None:
		date = date.replace(tzinfo=timezone.utc)
	return int(date.timestamp())


# -----------------------------------------------------------------------------
#
# FILE TRANSMITTER
#
# -----------------------------------------------------------------------------


class FileTransmitter:
	"""Serves regular files from the root directory, supporting
	conditional requests and single byte ranges. Directories are served
	through their `index.html` if they have one."""

	INDEX: str = "index.html"
	METHODS: tuple[str, ...] = ("GET", "HEAD")

	def __init__(self, config: RootConfig):
		self.config: RootConfig = config

	async def transmit(self, request: HTTPRequest) -> Handled | Missed:
		if request.method not in self.METHODS:
			return Missed(f"method {request.method} is not supported")
		try:
			parts = segments(decodePath(request.path))
		except BadRequest as e:
			return Missed(e.message)
		return await asyncio.to_thread(self.serve, request, parts)

	def locate(self, path: str) -> os.stat_result | None:
		"""Returns the status of `path`, or `None` if it is not there."""
		try:
			if self.config.strictSymlinks:
				confine(path, self.config)
			return os.stat(path)
		except (FileNotFoundError, NotADirectoryError, NotFound):
			return None

	def serve(self, request: HTTPRequest, parts: list[str]) -> Handled | Missed:
		path: str = os.path.join(self.config.root, *parts)
		st = self.locate(path)
		if st is None:
			return Missed()
		if stat.S_ISDIR(st.st_mode):
			index_path: str = os.path.join(path, self.INDEX)
			index_st = self.locate(index_path)
			if index_st is None or not stat.S_ISREG(index_st.st_mode):
				return Missed("directory has no index")
			elif not request.path.endswith("/"):
				return Handled(request.redirect(self.location(request, parts)))
			else:
				path, st = index_path, index_st
		elif not stat.S_ISREG(st.st_mode):
			return Missed("not a regular file")
		if not os.access(path, os.R_OK):
			raise PermissionError(errno.EACCES, os.strerror(errno.EACCES), path)
		logged(debug) and debug("Transmitting file", Path=path, Size=st.st_size)
		return Handled(self.respond(request, Path(path), st))

	@staticmethod
	def location(request: HTTPRequest, parts: list[str]) -> str:
		"""The slash-terminated URL of a directory, rebuilt from its decoded
		segments so that it always stays on this host."""
		path: str = "/" + "".join(f"{quote(_, safe='')}/" for _ in parts)
		return f"{path}?{request.queryString}" if request.queryString else path

	def respond(
		self, request: HTTPRequest, path: Path, st: os.stat_result
	) -> HTTPResponse:
		mtime: int = int(st.st_mtime)
		size: int = st.st_size
		headers: dict[str, str] = {
			"Last-Modified": formatdate(mtime, usegmt=True),
			"Accept-Ranges": "bytes",
		}
		unmodified_since = parseHTTPDate(request.header("If-Unmodified-Since"))
		if unmodified_since is not None and mtime > unmodified_since:
			return request.respondEmpty(412, headers)
		modified_since = parseHTTPDate(request.header("If-Modified-Since"))
		if modified_since is not None and mtime <= modified_since:
			return request.respondEmpty(304, headers)
		content_type: str = contentType(path.name)
		rng = parseRange(request.header("Range"), size)
		if rng is False:
			headers["Content-Range"] = f"bytes */{size}"
			return request.respondEmpty(416, headers)
		elif rng is None:
			res = request.respond(
				HTTPBodyFile(path, 0, size), contentType=content_type, headers=headers
			)
		else:
			headers["Content-Range"] = f"bytes {rng.start}-{rng.end}/{size}"
			res = request.respond(
				HTTPBodyFile(path, rng.start, rng.length),
				contentType=content_type,
				headers=headers,
				status=206,
			)
		return res.withoutBody() if request.isHead else res


# EOF
