import re
from inspect import iscoroutine
from typing import Any, Callable, ClassVar, Pattern

from .http.model import HTTPRequest, HTTPRequestError, HTTPResponse
from .utils.logging import debug


async def awaited(value: Any) -> Any:
	return await value if iscoroutine(value) else value


# -----------------------------------------------------------------------------
#
# ROUTE
#
# -----------------------------------------------------------------------------


class Route:
	"""A path template where `{name}` captures one path segment and
	`{name:any}` captures the rest of the path, slashes included. Anything
	else is matched literally."""

	RE_TEMPLATE: ClassVar[Pattern[str]] = re.compile(
		r"\{(?P<name>[A-Za-z_]\w*)(:(?P<type>[^}]+))?\}"
	)

	PATTERNS: ClassVar[dict[str, str]] = {
		"segment": r"[^/]+",
		"any": r".*",
	}

	@classmethod
	def Compile(cls, template: str) -> Pattern[str]:
		expr: list[str] = []
		offset: int = 0
		for match in cls.RE_TEMPLATE.finditer(template):
			kind: str = match.group("type") or "segment"
			if kind not in cls.PATTERNS:
				raise ValueError(
					f"Unknown route pattern '{kind}' in {template}, expected one of: {', '.join(cls.PATTERNS)}"
				)
			expr.append(re.escape(template[offset : match.start()]))
			expr.append(f"(?P<{match.group('name')}>{cls.PATTERNS[kind]})")
			offset = match.end()
		expr.append(re.escape(template[offset:]))
		return re.compile(f"^{''.join(expr)}$")

	def __init__(self, template: str, handler: "Handler | None" = None):
		self.template: str = template
		self.regexp: Pattern[str] = self.Compile(template)
		self.handler: Handler | None = handler

	@property
	def priority(self) -> int:
		return self.handler.priority if self.handler else 0

	def match(self, path: str) -> dict[str, str] | None:
		matched = self.regexp.match(path)
		return matched.groupdict() if matched else None

	def __repr__(self) -> str:
		return f"(Route {self.template!r})"


# -----------------------------------------------------------------------------
#
# HANDLER
#
# -----------------------------------------------------------------------------


class Handler:
	"""Binds a function to the `(method, template)` pairs it answers."""

	def __init__(
		self,
		functor: Callable[..., Any],
		methods: list[tuple[str, str]],
		priority: int = 0,
	):
		self.functor: Callable[..., Any] = functor
		self.methods: list[tuple[str, str]] = methods
		self.priority: int = priority

	async def __call__(
		self, request: HTTPRequest, params: dict[str, str]
	) -> HTTPResponse:
		try:
			return await awaited(self.functor(request, **params))
		except HTTPRequestError as e:
			return request.error(e.status or 500, e.message)

	def __repr__(self) -> str:
		return f"(Handler {self.functor.__name__} {self.methods} :priority {self.priority})"


# -----------------------------------------------------------------------------
#
# DISPATCHER
#
# -----------------------------------------------------------------------------


class Dispatcher:
	"""Matches request methods and paths against the routes of the
	registered handlers."""

	def __init__(self) -> None:
		self.routes: dict[str, list[Route]] = {}

	def register(self, handler: Handler) -> "Dispatcher":
		for method, template in handler.methods:
			debug("Registered route", Method=method, Path=template)
			self.routes.setdefault(method, []).append(Route(template, handler))
		return self

	def prepare(self) -> "Dispatcher":
		"""Sorts routes by decreasing priority, keeping the registration
		order amongst equal priorities."""
		for routes in self.routes.values():
			routes.sort(key=lambda _: -_.priority)
		return self

	def match(
		self, method: str, path: str
	) -> tuple[Route | None, dict[str, str] | None]:
		"""Returns the first route that matches with its parameters, which
		requires `prepare()` to have been called."""
		for route in self.routes.get(method, ()):
			params = route.match(path)
			if params is not None:
				return route, params
		return None, None

	def allowed(self, path: str) -> list[str]:
		"""Returns the methods for which a route matches `path`."""
		return sorted(
			method
			for method, routes in self.routes.items()
			if any(_.match(path) is not None for _ in routes)
		)


# EOF
