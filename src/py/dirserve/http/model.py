from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, NamedTuple, TypeAlias
from urllib.parse import parse_qsl, urlencode

from ..utils.json import json
from .status import HTTP_STATUS

# Header values are sent as is, so they must stay within latin-1
HEADER_ENCODING: str = "latin-1"


def headername(name: str, *, cache: dict[str, str] = {}) -> str:
	"""Normalizes `name` as `Kebab-Case`, the `cache` default argument
	memoizes the normalized names."""
	key: str = name.lower()
	res = cache.get(key)
	if res is None:
		res = cache[key] = "-".join(_.capitalize() for _ in key.split("-"))
	return res


class HTTPRequestError(Exception):
	"""An error that handlers can raise to answer with the given status."""

	def __init__(self, message: str, status: int | None = None):
		super().__init__(message)
		self.message: str = message
		self.status: int | None = status


# -----------------------------------------------------------------------------
#
# BODIES
#
# -----------------------------------------------------------------------------


class HTTPBodyBlob(NamedTuple):
	"""A body held in memory."""

	payload: bytes = b""

	@property
	def size(self) -> int:
		return len(self.payload)


class HTTPBodyFile(NamedTuple):
	"""A body read from a file, limited to `length` bytes starting at
	`offset` when the length is given."""

	path: Path
	offset: int = 0
	length: int | None = None

	@property
	def size(self) -> int:
		if self.length is not None:
			return self.length
		return self.path.stat().st_size - self.offset


THTTPBody: TypeAlias = HTTPBodyBlob | HTTPBodyFile


class HTTPBodyWriter(ABC):
	"""Writes response heads and bodies to a client."""

	async def write(self, body: THTTPBody | bytes | None) -> None:
		if body is None:
			return
		elif isinstance(body, bytes):
			await self._writeBytes(body)
		elif isinstance(body, HTTPBodyBlob):
			await self._writeBytes(body.payload)
		elif body.size > 0:
			# Empty files have nothing to send
			await self._writeFile(body)

	async def _writeFile(self, body: HTTPBodyFile, chunkSize: int = 64_000) -> None:
		left: int = body.size
		with open(body.path, "rb") as f:
			f.seek(body.offset)
			while left > 0:
				chunk = f.read(min(chunkSize, left))
				if not chunk:
					break
				left -= len(chunk)
				await self._writeBytes(chunk)

	@abstractmethod
	async def _writeBytes(self, data: bytes) -> None: ...


# -----------------------------------------------------------------------------
#
# RESPONSE
#
# -----------------------------------------------------------------------------


class HTTPResponse:
	"""A response status, its headers and an optional body."""

	__slots__ = ["protocol", "status", "headers", "body"]

	@staticmethod
	def Create(
		content: str | bytes | HTTPBodyFile | None = None,
		contentType: str | None = None,
		*,
		status: int = 200,
		headers: dict[str, str] | None = None,
		protocol: str = "HTTP/1.1",
	) -> "HTTPResponse":
		res_headers: dict[str, str] = {
			headername(k): str(v) for k, v in (headers or {}).items()
		}
		body: THTTPBody | None = None
		if isinstance(content, str):
			body = HTTPBodyBlob(content.encode("utf8"))
		elif isinstance(content, bytes):
			body = HTTPBodyBlob(content)
		elif isinstance(content, HTTPBodyFile):
			body = content
		elif content is not None:
			raise ValueError(f"Unsupported response content: {type(content)}")
		if contentType:
			res_headers["Content-Type"] = contentType
		if body is not None:
			res_headers["Content-Length"] = str(body.size)
		elif status not in (204, 304):
			# Keep-alive clients would otherwise wait for a body
			res_headers["Content-Length"] = "0"
		return HTTPResponse(status, res_headers, body, protocol)

	def __init__(
		self,
		status: int,
		headers: dict[str, str],
		body: THTTPBody | None = None,
		protocol: str = "HTTP/1.1",
	):
		self.status: int = status
		self.headers: dict[str, str] = headers
		self.body: THTTPBody | None = body
		self.protocol: str = protocol

	def getHeader(self, name: str) -> str | None:
		return self.headers.get(headername(name))

	def setHeader(self, name: str, value: str | int | None) -> "HTTPResponse":
		if value is None:
			self.headers.pop(headername(name), None)
		else:
			self.headers[headername(name)] = str(value)
		return self

	def withoutBody(self) -> "HTTPResponse":
		"""Drops the body but keeps `Content-Length`, as expected for `HEAD`."""
		self.body = None
		return self

	def head(self) -> bytes:
		"""Serializes the status line and the headers."""
		lines: list[str] = [
			f"{self.protocol} {self.status} {HTTP_STATUS.get(self.status, 'Unknown')}"
		]
		lines += [f"{k}: {v}" for k, v in self.headers.items()]
		return ("\r\n".join(lines) + "\r\n\r\n").encode(
			HEADER_ENCODING, errors="replace"
		)

	def __repr__(self) -> str:
		return f"<HTTPResponse {self.status} {self.headers}>"


# -----------------------------------------------------------------------------
#
# REQUEST
#
# -----------------------------------------------------------------------------


class HTTPRequest:
	"""A parsed request, which is also where responses are made from so
	that they use the same protocol version."""

	__slots__ = ["method", "path", "queryString", "headers", "protocol"]

	@staticmethod
	def Create(
		method: str = "GET",
		path: str = "/",
		headers: dict[str, str] | None = None,
		query: dict[str, str] | None = None,
	) -> "HTTPRequest":
		return HTTPRequest(
			method,
			path,
			urlencode(query) if query else "",
			{headername(k): v for k, v in (headers or {}).items()},
		)

	def __init__(
		self,
		method: str,
		path: str,
		queryString: str = "",
		headers: dict[str, str] | None = None,
		protocol: str = "HTTP/1.1",
	):
		self.method: str = method
		# NOTE: The path is kept as it was received, still percent-encoded
		self.path: str = path
		self.queryString: str = queryString
		self.headers: dict[str, str] = headers or {}
		self.protocol: str = protocol

	@property
	def isHead(self) -> bool:
		return self.method == "HEAD"

	@property
	def keepAlive(self) -> bool:
		"""Tells if the connection stays open after the response, HTTP/1.0
		connections are always closed."""
		return (
			self.protocol != "HTTP/1.0"
			and (self.header("Connection") or "").lower() != "close"
		)

	@property
	def query(self) -> dict[str, str]:
		return dict(parse_qsl(self.queryString, keep_blank_values=True))

	def header(self, name: str) -> str | None:
		return self.headers.get(headername(name))

	def param(self, name: str, default: str | None = None) -> str | None:
		return self.query.get(name, default)

	# --
	# Responses

	def respond(
		self,
		content: str | bytes | HTTPBodyFile | None = None,
		contentType: str | None = None,
		*,
		status: int = 200,
		headers: dict[str, str] | None = None,
	) -> HTTPResponse:
		return HTTPResponse.Create(
			content,
			contentType,
			status=status,
			headers=headers,
			protocol=self.protocol,
		)

	def respondEmpty(
		self, status: int, headers: dict[str, str] | None = None
	) -> HTTPResponse:
		return self.respond(status=status, headers=headers)

	def respondText(self, content: str, status: int = 200) -> HTTPResponse:
		return self.respond(content, "text/plain; charset=utf-8", status=status)

	def respondHTML(
		self, html: str, status: int = 200, headers: dict[str, str] | None = None
	) -> HTTPResponse:
		return self.respond(
			html, "text/html; charset=utf-8", status=status, headers=headers
		)

	def returns(self, value: Any, status: int = 200) -> HTTPResponse:
		return self.respond(json(value), "application/json", status=status)

	def error(
		self,
		status: int,
		message: str | None = None,
		headers: dict[str, str] | None = None,
	) -> HTTPResponse:
		return self.respond(
			message or HTTP_STATUS.get(status, "Error"),
			"text/plain; charset=utf-8",
			status=status,
			headers=headers,
		)

	def notFound(self) -> HTTPResponse:
		return self.error(404)

	def notAllowed(self, allowed: list[str]) -> HTTPResponse:
		return self.error(405, headers={"Allow": ", ".join(allowed)})

	def redirect(self, location: str, status: int = 307) -> HTTPResponse:
		return self.respondEmpty(status, {"Location": location})

	def __repr__(self) -> str:
		query: str = f"?{self.queryString}" if self.queryString else ""
		return f"<HTTPRequest {self.method} {self.path}{query}>"


# EOF
