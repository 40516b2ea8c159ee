from typing import Iterator, NamedTuple

from .model import HTTPRequest, headername

# A TLS record starts with this content type byte, which is what clients
# trying `https://` on the plain port send first.
TLS_HANDSHAKE: int = 0x16


class ParseError(NamedTuple):
	reason: str


class HTTPParser:
	"""A stateful parser for the requests of one connection. Chunks are
	fed as they are read from the socket, and each complete request head
	yields an `HTTPRequest`. Pipelined requests in the same chunk are all
	yielded, in order.

	Request bodies are read and discarded, as no handler uses them. Once
	a `ParseError` is yielded, the connection must be closed."""

	MAX_HEAD: int = 64_000

	def __init__(self) -> None:
		self.buffer: bytearray = bytearray()
		# Number of bytes to discard before the next request head
		self.skipping: int = 0

	def feed(self, chunk: bytes) -> Iterator[HTTPRequest | ParseError]:
		self.buffer += chunk
		while self.buffer:
			if self.skipping:
				n = min(self.skipping, len(self.buffer))
				del self.buffer[:n]
				self.skipping -= n
				continue
			elif self.buffer[0] == TLS_HANDSHAKE:
				if len(self.buffer) < 5:
					return
				self.skipping = 5 + (self.buffer[3] << 8) + self.buffer[4]
				continue
			elif self.buffer.startswith(b"\r\n"):
				# Stray line breaks between requests are tolerated
				del self.buffer[:2]
				continue
			end = self.buffer.find(b"\r\n\r\n")
			if end == -1:
				if len(self.buffer) > self.MAX_HEAD:
					yield self.fail("Request head is too large")
				return
			head = bytes(self.buffer[:end])
			del self.buffer[: end + 4]
			res = parseHead(head)
			if isinstance(res, ParseError):
				yield self.fail(res.reason)
				return
			if res.header("Transfer-Encoding"):
				yield self.fail("Chunked request bodies are not supported")
				return
			length = res.header("Content-Length")
			if length:
				if not length.isdigit():
					yield self.fail(f"Invalid Content-Length: {length}")
					return
				self.skipping = int(length)
			yield res

	def fail(self, reason: str) -> ParseError:
		self.buffer.clear()
		self.skipping = 0
		return ParseError(reason)


def parseHead(head: bytes) -> HTTPRequest | ParseError:
	"""Parses the request line and headers of `head`, which excludes the
	blank line ending it."""
	lines = head.split(b"\r\n")
	# Request lines are ASCII, anything else in the path is percent-encoded
	parts = lines[0].decode("ascii", errors="replace").split(" ")
	if len(parts) == 2:
		# HTTP/0.9 style line, without a protocol
		parts.append("HTTP/1.0")
	if len(parts) != 3 or not parts[0] or not parts[2].startswith("HTTP/"):
		return ParseError(f"Malformed request line: {parts[0]}")
	method, target, protocol = parts
	if not target.startswith("/"):
		return ParseError(f"Unsupported request target: {target}")
	path, _, query = target.partition("?")
	headers: dict[str, str] = {}
	for line in lines[1:]:
		name, sep, value = line.decode("latin-1").partition(":")
		if not sep or not name.strip():
			return ParseError(f"Malformed header: {name}")
		headers[headername(name.strip())] = value.strip()
	return HTTPRequest(method, path, query, headers, protocol)


# EOF
