import asyncio
import socket
from pathlib import Path

from dirserve.config import RootConfig
from dirserve.http.model import HTTPBodyFile, HTTPBodyWriter, HTTPRequest
from dirserve.model import Application
from dirserve.server import SERVER_BADREQUEST, SERVER_ERROR, Connection, ServerOptions
from dirserve.services.files import FileService


class BufferWriter(HTTPBodyWriter):
	def __init__(self) -> None:
		self.data: bytearray = bytearray()

	async def _writeBytes(self, data: bytes) -> None:
		self.data += data


class BrokenApplication(Application):
	async def process(self, request: HTTPRequest):
		raise RuntimeError("broken")


async def exchange(app: Application, request: bytes) -> bytes:
	"""Sends the request through a socket pair, and returns everything the
	server wrote before closing the connection."""
	loop = asyncio.get_running_loop()
	server, client = socket.socketpair()
	server.setblocking(False)
	client.setblocking(False)
	await loop.sock_sendall(client, request)
	await Connection(app, server, loop, ServerOptions(keepalive=2.0)).serve()
	chunks: list[bytes] = []
	while chunk := await loop.sock_recv(client, 65_536):
		chunks.append(chunk)
	client.close()
	return b"".join(chunks)


def serve(config: RootConfig, request: bytes) -> bytes:
	return asyncio.run(exchange(Application([FileService(config)]), request))


def test_file(config: RootConfig) -> None:
	res = serve(config, b"GET /notes.txt HTTP/1.1\r\nConnection: close\r\n\r\n")
	assert res.startswith(b"HTTP/1.1 200 OK\r\n")
	assert b"Content-Length: 10\r\n" in res
	assert res.endswith(b"\r\n\r\n0123456789")


def test_range(config: RootConfig) -> None:
	res = serve(
		config,
		b"GET /notes.txt HTTP/1.1\r\nRange: bytes=2-5\r\nConnection: close\r\n\r\n",
	)
	assert res.startswith(b"HTTP/1.1 206 Partial Content\r\n")
	assert res.endswith(b"\r\n\r\n2345")


def test_listing(config: RootConfig) -> None:
	res = serve(config, b"GET /docs HTTP/1.0\r\n\r\n")
	assert res.startswith(b"HTTP/1.0 200 OK\r\n")
	assert b"a.txt" in res


def test_keep_alive(config: RootConfig) -> None:
	res = serve(
		config,
		b"HEAD /notes.txt HTTP/1.1\r\n\r\n"
		b"GET /nope HTTP/1.1\r\nConnection: close\r\n\r\n",
	)
	assert res.count(b"HTTP/1.1 ") == 2
	assert b"HTTP/1.1 404 Not Found\r\n" in res
	assert b"X-Error: NotFound\r\n" in res


def test_empty_file_keeps_connection(tree: Path, config: RootConfig) -> None:
	(tree / "empty.txt").write_bytes(b"")
	res = serve(
		config,
		b"GET /empty.txt HTTP/1.1\r\n\r\n"
		b"GET /notes.txt HTTP/1.1\r\nConnection: close\r\n\r\n",
	)
	first, second = res.split(b"HTTP/1.1 200 OK\r\n")[1:]
	assert b"Content-Length: 0\r\n" in first
	assert first.endswith(b"\r\n\r\n")
	assert second.endswith(b"\r\n\r\n0123456789")


def test_malformed_request(config: RootConfig) -> None:
	res = serve(config, b"GARBAGE\r\n\r\nGET /notes.txt HTTP/1.1\r\n\r\n")
	assert res == SERVER_BADREQUEST


def test_failing_application() -> None:
	res = asyncio.run(exchange(BrokenApplication(), b"GET / HTTP/1.1\r\n\r\n"))
	assert res == SERVER_ERROR


def test_empty_file_body_is_not_written(tmp_path: Path) -> None:
	path = tmp_path / "empty.txt"
	path.write_bytes(b"")
	writer = BufferWriter()
	asyncio.run(writer.write(HTTPBodyFile(path, 0, 0)))
	assert writer.data == b""


def test_file_body_slice(tmp_path: Path) -> None:
	path = tmp_path / "data.bin"
	path.write_bytes(b"0123456789")
	writer = BufferWriter()
	asyncio.run(writer.write(HTTPBodyFile(path, 3, 4)))
	assert writer.data == b"3456"


# EOF
