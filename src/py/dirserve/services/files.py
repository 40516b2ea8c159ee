import asyncio
import os
from base64 import b64decode
from pathlib import Path

from ..config import RootConfig
from ..decorators import on
from ..delegate import ContentDelegate, FileTransmitter, Handled
from ..http.model import HTTPRequest, HTTPResponse
from ..listing import Listing, listDirectory
from ..model import Service
from ..outcomes import (
	BadRequest,
	Delegated,
	Failed,
	InternalError,
	Listed,
	NotFound,
	ResolutionError,
	TResponseOutcome,
)
from ..render import Renderer
from ..resolver import confine, decodePath, resolve
from ..utils.logging import debug, error, exception, logged

# A one pixel PNG, so that browsers stop asking for a favicon
FAVICON: bytes = b64decode(
	"iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mPk+89QDwADvgGOSHzRgAAAAABJRU5ErkJggg=="
)

ERROR_CODES: dict[type[ResolutionError], str] = {
	BadRequest: "BADPATH",
	NotFound: "NOTFOUND",
	InternalError: "LISTFAIL",
}


class FileService(Service):
	"""Serves the files of a root directory, and lists the directories
	that the content delegate does not serve."""

	def __init__(
		self,
		root: str | Path | RootConfig | None = None,
		*,
		delegate: ContentDelegate | None = None,
		renderer: Renderer | None = None,
	):
		super().__init__()
		self.config: RootConfig = (
			root if isinstance(root, RootConfig) else RootConfig.Make(root)
		)
		self.delegate: ContentDelegate = delegate or FileTransmitter(self.config)
		self.renderer: Renderer = renderer or Renderer()

	async def dispatch(self, request: HTTPRequest) -> TResponseOutcome:
		"""Produces the outcome of the request: the delegate's response if
		it handled it, otherwise a listing if the path is a directory, or
		a failure."""
		path: str = request.path
		try:
			served = await self.delegate.transmit(request)
		except Exception as e:
			exception(e)
			return self.failed(
				InternalError(f"Unhandled error: {e}"), path, code="DELEGATEFAIL"
			)
		if isinstance(served, Handled):
			return Delegated(served.response)
		logged(debug) and debug("Delegate missed", Path=path, Reason=served.reason)
		current: str = decodePath(path)
		try:
			local_path: str = resolve(path, self.config)
		except BadRequest as e:
			return self.failed(e, current)
		try:
			return Listed(await asyncio.to_thread(self.listPath, local_path), current)
		except ResolutionError as e:
			return self.failed(e, current)
		except OSError as e:
			return self.failed(InternalError(str(e)), current)

	def listPath(self, path: str) -> Listing:
		"""Lists the directory at `path`, raising `NotFound` if it is not a
		directory."""
		if self.config.strictSymlinks:
			confine(path, self.config)
		if not os.path.isdir(path):
			raise NotFound("File not found")
		return listDirectory(path, self.config)

	def failed(
		self, failure: ResolutionError, path: str, *, code: str | None = None
	) -> Failed:
		error(
			failure.message,
			code or ERROR_CODES.get(type(failure), "FAILED"),
			Path=path,
			Status=failure.STATUS,
		)
		return Failed(failure, path)

	@on(priority=1, GET_HEAD="/favicon.ico")
	def favicon(self, request: HTTPRequest) -> HTTPResponse:
		res = request.respond(FAVICON, contentType="image/png")
		return res.withoutBody() if request.isHead else res

	# SEE: https://kubernetes.io/docs/reference/using-api/health-checks/
	@on(priority=1, GET_HEAD="/healthz")
	def health(self, request: HTTPRequest) -> HTTPResponse:
		res = request.respondText("ok")
		return res.withoutBody() if request.isHead else res

	@on(GET_HEAD="/{path:any}")
	async def read(self, request: HTTPRequest, path: str) -> HTTPResponse:
		return self.renderer.render(request, await self.dispatch(request))


# EOF
