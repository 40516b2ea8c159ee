from dirserve.http.model import HTTPRequest
from dirserve.http.parser import HTTPParser, ParseError

REQUEST: bytes = (
	b"GET /docs/a%20b.txt?format=json&x HTTP/1.1\r\n"
	b"Host: 127.0.0.1\r\n"
	b"range: bytes=0-3\r\n"
	b"Connection: close\r\n"
	b"\r\n"
)


def parse(parser: HTTPParser, *chunks: bytes) -> list[HTTPRequest | ParseError]:
	return [item for chunk in chunks for item in parser.feed(chunk)]


def test_request() -> None:
	(req,) = parse(HTTPParser(), REQUEST)
	assert isinstance(req, HTTPRequest)
	assert req.method == "GET"
	assert req.protocol == "HTTP/1.1"
	# The path is kept encoded, decoding is up to the resolver
	assert req.path == "/docs/a%20b.txt"
	assert req.queryString == "format=json&x"
	assert req.query == {"format": "json", "x": ""}
	assert req.header("Range") == "bytes=0-3"
	assert req.header("connection") == "close"
	assert not req.keepAlive


def test_request_in_chunks() -> None:
	chunks = [
		b"GET /time/5 ",
		b"HTTP/1.1\r\nHost: ",
		b"127.0.0.1\r",
		b"\nConn",
		b"ection: close\r\n",
		b"\r",
		b"\n",
	]
	parser = HTTPParser()
	for chunk in chunks[:-1]:
		assert list(parser.feed(chunk)) == []
	(req,) = list(parser.feed(chunks[-1]))
	assert isinstance(req, HTTPRequest)
	assert req.path == "/time/5"
	assert req.header("Host") == "127.0.0.1"


def test_pipelined_requests() -> None:
	reqs = parse(
		HTTPParser(),
		b"GET /a HTTP/1.1\r\n\r\nHEAD /b HTTP/1.1\r\n\r\nGET /c HTTP/1.1\r\n",
		b"\r\n",
	)
	assert [(_.method, _.path) for _ in reqs if isinstance(_, HTTPRequest)] == [
		("GET", "/a"),
		("HEAD", "/b"),
		("GET", "/c"),
	]


def test_request_bodies_are_skipped() -> None:
	reqs = parse(
		HTTPParser(),
		b"POST /upload HTTP/1.1\r\nContent-Length: 5\r\n\r\nhel",
		b"loGET /next HTTP/1.1\r\n\r\n",
	)
	assert [_.path for _ in reqs if isinstance(_, HTTPRequest)] == ["/upload", "/next"]


def test_request_without_protocol() -> None:
	(req,) = parse(HTTPParser(), b"GET /\r\n\r\n")
	assert isinstance(req, HTTPRequest)
	assert req.protocol == "HTTP/1.0"
	assert not req.keepAlive


def test_tls_handshake_is_skipped() -> None:
	record = bytes([0x16, 0x03, 0x01, 0x00, 0x04]) + b"\x01\x02\x03\x04"
	(req,) = parse(HTTPParser(), record[:3], record[3:] + b"GET / HTTP/1.1\r\n\r\n")
	assert isinstance(req, HTTPRequest)
	assert req.path == "/"


MALFORMED: list[bytes] = [
	b"HTTP/1.1 200 OK\r\n\r\n",
	b"GET\r\n\r\n",
	b"GET http://example.com/ HTTP/1.1\r\n\r\n",
	b"GET / HTTP/1.1\r\nNo colon\r\n\r\n",
	b"POST / HTTP/1.1\r\nContent-Length: -1\r\n\r\n",
	b"POST / HTTP/1.1\r\nTransfer-Encoding: chunked\r\n\r\n",
]


def test_malformed_requests() -> None:
	for data in MALFORMED:
		(res,) = parse(HTTPParser(), data + b"GET / HTTP/1.1\r\n\r\n")
		assert isinstance(res, ParseError), f"Expected an error for {data!r}"


def test_head_too_large() -> None:
	parser = HTTPParser()
	(res,) = parse(parser, b"GET / HTTP/1.1\r\nX-Big: " + b"x" * (parser.MAX_HEAD + 1))
	assert isinstance(res, ParseError)


# EOF
