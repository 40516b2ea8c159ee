from typing import ClassVar, NamedTuple, TypeAlias

from .http.model import HTTPRequestError, HTTPResponse
from .listing import Listing

# -----------------------------------------------------------------------------
#
# ERRORS
#
# -----------------------------------------------------------------------------
#
# The failures a request can end with. They are raised by the resolver and
# caught by the file service, which is the only place turning them into
# responses.


class ResolutionError(HTTPRequestError):
	STATUS: ClassVar[int] = 500
	# Returned to the client as the `X-Error` header
	KIND: ClassVar[str] = "InternalError"
	# Shown to the client instead of the message, when set
	PUBLIC: ClassVar[str | None] = None

	def __init__(self, message: str):
		super().__init__(message, status=self.STATUS)

	@property
	def publicMessage(self) -> str:
		return self.PUBLIC or self.message


class BadRequest(ResolutionError):
	"""The path is malformed or tries to escape the root."""

	STATUS = 400
	KIND = "BadRequest"


class NotFound(ResolutionError):
	"""The path does not resolve to a directory or servable file."""

	STATUS = 404
	KIND = "NotFound"


class InternalError(ResolutionError):
	"""An I/O or delegate failure, the detail is only logged."""

	STATUS = 500
	KIND = "InternalError"
	PUBLIC = "The server failed to process the request"


# -----------------------------------------------------------------------------
#
# OUTCOMES
#
# -----------------------------------------------------------------------------


class Delegated(NamedTuple):
	"""The content delegate produced the response, which is sent as is."""

	response: HTTPResponse


class Listed(NamedTuple):
	"""The path is a directory that was listed, `path` is the decoded
	request path."""

	listing: Listing
	path: str


class Failed(NamedTuple):
	error: ResolutionError
	path: str

	@property
	def status(self) -> int:
		return self.error.STATUS


TResponseOutcome: TypeAlias = Delegated | Listed | Failed


# EOF
