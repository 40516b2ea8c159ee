import asyncio
import errno
import socket
import threading
from signal import SIGINT, SIGTERM
from typing import NamedTuple

from .config import HOST, LOG_REQUESTS, PORT
from .http.model import HTTPBodyFile, HTTPBodyWriter, HTTPRequest
from .http.parser import HTTPParser, ParseError
from .model import Application, Service, mount
from .utils.limits import unlimit
from .utils.logging import debug, error, event, exception, info, logged, warning


class ServerOptions(NamedTuple):
	host: str = "127.0.0.1"
	port: int = 8000
	backlog: int = 10_000
	# Timeout after which the accept loop checks for a stop request
	polling: float = 1.0
	readsize: int = 4_096
	# Idle time after which a keep-alive connection is closed
	keepalive: float = 30.0
	logRequests: bool = True
	stopSignals: bool = True


OPTIONS: ServerOptions = ServerOptions()

# Static payloads, sent when no response could be produced
SERVER_BADREQUEST: bytes = (
	b"HTTP/1.1 400 Bad Request\r\n"
	b"Content-Type: text/plain\r\n"
	b"Content-Length: 11\r\n"
	b"Connection: close\r\n"
	b"\r\n"
	b"Bad request"
)
SERVER_ERROR: bytes = (
	b"HTTP/1.1 500 Internal Server Error\r\n"
	b"Content-Type: text/plain\r\n"
	b"Content-Length: 21\r\n"
	b"Connection: close\r\n"
	b"\r\n"
	b"Internal server error"
)


class SocketWriter(HTTPBodyWriter):
	"""Writes to a non-blocking socket through the event loop."""

	def __init__(self, client: socket.socket, loop: asyncio.AbstractEventLoop):
		self.client: socket.socket = client
		self.loop: asyncio.AbstractEventLoop = loop

	async def _writeBytes(self, data: bytes) -> None:
		await self.loop.sock_sendall(self.client, data)

	async def _writeFile(self, body: HTTPBodyFile, chunkSize: int = 64_000) -> None:
		with open(body.path, "rb") as f:
			# Falls back to reading and sending when `sendfile` is not available
			await self.loop.sock_sendfile(self.client, f, body.offset, body.size)


class Connection:
	"""Processes the requests of one client socket until it closes."""

	def __init__(
		self,
		app: Application,
		client: socket.socket,
		loop: asyncio.AbstractEventLoop,
		options: ServerOptions = OPTIONS,
	):
		self.app: Application = app
		self.client: socket.socket = client
		self.loop: asyncio.AbstractEventLoop = loop
		self.options: ServerOptions = options
		self.parser: HTTPParser = HTTPParser()
		self.writer: SocketWriter = SocketWriter(client, loop)

	async def serve(self) -> None:
		buffer = bytearray(self.options.readsize)
		isOpen: bool = True
		try:
			while isOpen:
				try:
					n = await asyncio.wait_for(
						self.loop.sock_recv_into(self.client, buffer),
						timeout=self.options.keepalive,
					)
				except TimeoutError:
					logged(debug) and debug("Connection idle, closing")
					break
				if not n:
					break
				isOpen = await self.process(bytes(buffer[:n]))
		except (BrokenPipeError, ConnectionResetError):
			logged(debug) and debug("Client closed connection")
		except Exception as e:
			exception(e)
		finally:
			self.client.close()

	async def process(self, data: bytes) -> bool:
		"""Answers every request completed by `data`, returning `False`
		when the connection must be closed."""
		for item in self.parser.feed(data):
			if isinstance(item, ParseError):
				warning("Malformed request", Reason=item.reason)
				await self.writer.write(SERVER_BADREQUEST)
				return False
			elif not await self.respond(item):
				return False
		return True

	async def respond(self, request: HTTPRequest) -> bool:
		if self.options.logRequests:
			event(request.method, request.path)
		try:
			res = await self.app.process(request)
		except Exception as e:
			exception(e, f"Failed processing {request.method} {request.path}")
			await self.writer.write(SERVER_ERROR)
			return False
		await self.writer.write(res.head())
		await self.writer.write(res.body)
		return request.keepAlive


async def serve(app: Application, options: ServerOptions = OPTIONS) -> None:
	"""Accepts connections until SIGINT or SIGTERM, serving each one in
	its own task."""
	server = socket.socket(
		socket.AF_INET6 if ":" in options.host else socket.AF_INET,
		socket.SOCK_STREAM,
	)
	server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
	server.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
	try:
		server.bind((options.host, options.port))
	except OSError:
		error(f"Unable to bind to {options.host}:{options.port}", "HOSTPORTERR")
		server.close()
		raise
	server.listen(options.backlog)
	server.setblocking(False)

	loop = asyncio.get_running_loop()
	stopping = asyncio.Event()
	# Signal handlers can only be registered from the main thread
	if options.stopSignals and threading.current_thread() is threading.main_thread():
		for sig in (SIGINT, SIGTERM):
			loop.add_signal_handler(sig, stopping.set)

	tasks: set[asyncio.Task[None]] = set()
	await app.start()
	info(
		f"Listening on http://{options.host}:{options.port}",
		icon="🚀",
		Host=options.host,
		Port=options.port,
	)
	try:
		while not stopping.is_set():
			try:
				client, _ = await asyncio.wait_for(
					loop.sock_accept(server), timeout=options.polling
				)
			except TimeoutError:
				continue
			except OSError as e:
				if e.errno != errno.EMFILE:
					raise
				warning("Too many open files, delaying accept")
				await asyncio.sleep(0.1)
				continue
			client.setblocking(False)
			task = loop.create_task(Connection(app, client, loop, options).serve())
			tasks.add(task)
			task.add_done_callback(tasks.discard)
	finally:
		info("Server stopping…")
		server.close()
		for task in tasks:
			task.cancel()
		await asyncio.gather(*tasks, return_exceptions=True)
		await app.stop()


def run(
	*components: Application | Service,
	host: str = HOST,
	port: int = PORT,
	logRequests: bool = LOG_REQUESTS,
	keepalive: float = OPTIONS.keepalive,
) -> None:
	"""Mounts the components in an application and serves it until
	interrupted."""
	unlimit()
	options = ServerOptions(
		host=host, port=port, logRequests=logRequests, keepalive=keepalive
	)
	try:
		asyncio.run(serve(mount(*components), options))
	except KeyboardInterrupt:
		event("ManualShutdown")


# EOF
