from typing import Any, Callable, TypeVar

T = TypeVar("T")

# Attributes set on the decorated functions
ON: str = "_dirserve_on"
ON_PRIORITY: str = "_dirserve_on_priority"


def on(priority: int = 0, **methods: str | list[str]) -> Callable[[T], T]:
	"""Marks a service method as a request handler.

	HTTP methods are given as keyword arguments, joined with `_` to share
	the same templates, each with one or more route templates (see
	`Route`). When a template matches, the method is called with the
	request and the template's parameters:

	>    @on(GET_HEAD="/{path:any}")
	>    def read(self, request, path):
	>        return request.respond(...)

	When more than one handler matches, the one with the highest
	`priority` wins."""

	def decorator(function: T) -> T:
		meta: dict[str, Any] = function.__dict__
		routes: list[tuple[str, str]] = meta.setdefault(ON, [])
		meta[ON_PRIORITY] = priority
		for names, templates in methods.items():
			for method in names.upper().split("_"):
				for template in [templates] if isinstance(templates, str) else templates:
					routes.append((method, template))
		return function

	return decorator


# EOF
