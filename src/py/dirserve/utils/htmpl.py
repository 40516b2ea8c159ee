from typing import Callable, Iterable, Iterator, LiteralString, Union, cast

from mypy_extensions import KwArg, VarArg

# --
# Builds HTML documents as trees of nodes, serialized as a stream of
# strings. Text and attribute values are always escaped, so file names
# read from the filesystem can be embedded as is.

VOID_TAGS: set[str] = {"br", "hr", "img", "input", "link", "meta"}

ESCAPED = str.maketrans(
	{"&": "&amp;", "<": "&lt;", ">": "&gt;", '"': "&quot;", "'": "&#x27;"}
)


def escape(text: str) -> str:
	return text.translate(ESCAPED)


TAttribute = str | bool | float | int | None
TContent = Union["Node", str, int, float, None]


class Node:
	__slots__ = ["name", "attributes", "children"]

	def __init__(
		self,
		name: str,
		children: Iterable[TContent] = (),
		attributes: dict[str, TAttribute] | None = None,
	):
		self.name: str = name
		self.children: list[TContent] = list(children)
		self.attributes: dict[str, TAttribute] = attributes or {}

	def iterHTML(self) -> Iterator[str]:
		yield f"<{self.name}"
		for k, v in self.attributes.items():
			if v is True:
				yield f" {k}"
			elif v is not None and v is not False:
				yield f' {k}="{escape(str(v))}"'
		yield ">"
		if self.name in VOID_TAGS:
			return
		for child in self.children:
			if isinstance(child, Node):
				yield from child.iterHTML()
			elif child is not None:
				yield escape(str(child))
		yield f"</{self.name}>"

	def __str__(self) -> str:
		return "".join(self.iterHTML())


class Raw(Node):
	"""Content that is output without escaping, like inline CSS."""

	__slots__ = ["content"]

	def __init__(self, content: str):
		super().__init__("#raw")
		self.content: str = content

	def iterHTML(self) -> Iterator[str]:
		yield self.content


def raw(content: str) -> Raw:
	return Raw(content)


NodeFactory = Callable[[VarArg(TContent | list[TContent]), KwArg(TAttribute)], Node]


def nodeFactory(name: str) -> NodeFactory:
	def factory(*children: TContent | list[TContent], **attributes: TAttribute) -> Node:
		content: list[TContent] = []
		for _ in children:
			if isinstance(_, list):
				content += _
			else:
				content.append(_)
		# `_` stands for `class`, which is a reserved word
		return Node(
			name, content, {("class" if k == "_" else k): v for k, v in attributes.items()}
		)

	factory.__name__ = name
	return cast(NodeFactory, factory)


HTML_TAGS: list[LiteralString] = (
	"""\
a body code footer h1 head html meta p style table tbody td th thead time
title tr\
""".split()
)


class Markup:
	"""Exposes a node factory per tag as attributes, as in `H.a(...)`."""

	def __init__(self, tags: Iterable[str]):
		self.factories: dict[str, NodeFactory] = {_: nodeFactory(_) for _ in tags}

	def __getattr__(self, name: str) -> NodeFactory:
		factories = self.__dict__.get("factories", {})
		if name not in factories:
			raise AttributeError(f"No tag {name}, pick one of {', '.join(factories)}")
		return cast(NodeFactory, factories[name])


H: Markup = Markup(HTML_TAGS)


def html(*nodes: Node, doctype: str | None = "html") -> Iterator[str]:
	if doctype:
		yield f"<!DOCTYPE {doctype}>\n"
	for _ in nodes:
		yield from _.iterHTML()


# EOF
