from .decorators import ON, ON_PRIORITY
from .http.model import HTTPRequest, HTTPResponse
from .routing import Dispatcher, Handler
from .utils.logging import warning

# -----------------------------------------------------------------------------
#
# SERVICE
#
# -----------------------------------------------------------------------------


class Service:
	"""Groups the `@on` handlers of a subclass, which are collected from
	its methods when the service is mounted."""

	def __init__(self, name: str | None = None) -> None:
		self.name: str = name or self.__class__.__name__
		self.app: Application | None = None

	async def start(self) -> None:
		"""Can be overridden to do asynchronous pre-start work"""

	async def stop(self) -> None:
		"""Can be overridden to do asynchronous post-stop work"""

	@property
	def handlers(self) -> list[Handler]:
		res: list[Handler] = []
		for name in dir(type(self)):
			attr = getattr(type(self), name, None)
			if callable(attr) and hasattr(attr, ON):
				res.append(
					Handler(
						getattr(self, name),
						getattr(attr, ON),
						getattr(attr, ON_PRIORITY, 0),
					)
				)
		return res

	def __repr__(self) -> str:
		return f"(Service {self.name}{' :mounted' if self.app else ''})"


# -----------------------------------------------------------------------------
#
# APPLICATION
#
# -----------------------------------------------------------------------------


class Application:
	def __init__(self, services: list[Service] | None = None) -> None:
		self.dispatcher: Dispatcher = Dispatcher()
		self.services: list[Service] = []
		for service in services or ():
			self.mount(service)

	async def start(self) -> "Application":
		self.dispatcher.prepare()
		for service in self.services:
			await service.start()
		return self

	async def stop(self) -> "Application":
		for service in self.services:
			await service.stop()
		return self

	async def process(self, request: HTTPRequest) -> HTTPResponse:
		"""Answers with the matching handler, with a 405 when only other
		methods match the path, or with a 404."""
		route, params = self.dispatcher.match(request.method, request.path)
		if route and route.handler:
			return await route.handler(request, params or {})
		elif allowed := self.dispatcher.allowed(request.path):
			warning("Method not allowed", Method=request.method, Path=request.path)
			return request.notAllowed(allowed)
		else:
			warning("No route found", Method=request.method, Path=request.path)
			return request.notFound()

	def mount(self, service: Service) -> Service:
		if service.app:
			raise RuntimeError(f"Service is already mounted: {service}")
		for handler in service.handlers:
			self.dispatcher.register(handler)
		# Routes must stay sorted when mounting after start
		self.dispatcher.prepare()
		service.app = self
		self.services.append(service)
		return service


def mount(*components: Application | Service) -> Application:
	"""Returns the given application, or a new one, with the given
	services mounted."""
	apps = [_ for _ in components if isinstance(_, Application)]
	if len(apps) > 1:
		raise RuntimeError(f"Expected at most one application, got: {apps}")
	app = apps[0] if apps else Application()
	for item in components:
		if isinstance(item, Service):
			if not item.app:
				app.mount(item)
		elif not isinstance(item, Application):
			raise RuntimeError(f"Unsupported component type {type(item)}: {item}")
	return app


# EOF
