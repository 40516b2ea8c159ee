from datetime import datetime, timezone
from urllib.parse import quote

from .http.model import HTTPRequest, HTTPResponse
from .listing import EntryInfo, Listing
from .outcomes import Delegated, Failed, Listed, TResponseOutcome
from .utils.htmpl import H, Node, html, raw
from .utils.logging import error, exception

PAGE_CSS: str = """
:root {
	font-family: sans-serif;
	font-size: 14px;
	line-height: 1.35em;
	padding: 20px;
	background: #F0F0F0;
}
h1 {
	margin-top: 1.75em;
	margin-bottom: 1.75em;
	line-height: 1.25em;
}
table {
	border-collapse: collapse;
	min-width: 50%;
}
td, th {
	padding: 0.25em 1em 0.25em 0em;
	text-align: left;
}
td.size, th.size {
	text-align: right;
}
tr.dir a::before {
	content: "\\1F4C1  ";
}
tr.file a::before {
	content: "\\1F4C4  ";
}
footer {
	margin-top: 2em;
	color: #808080;
}
"""

# The header that tells the kind of failure to clients
ERROR_HEADER: str = "X-Error"


def href(uri: str) -> str:
	"""Percent-encodes a listing URI so that it can be used as a link."""
	return quote(uri, safe="/")


def formatSize(size: int) -> str:
	value: float = size
	for unit in ("B", "KB", "MB", "GB"):
		if value < 1024:
			return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
		value /= 1024
	return f"{value:.1f} TB"


def formatTime(timestamp: int) -> str:
	return datetime.fromtimestamp(timestamp, timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def page(title: str, *content: Node) -> str:
	return "".join(
		html(
			H.html(
				H.head(
					H.meta(charset="utf-8"),
					H.meta(
						name="viewport",
						content="width=device-width, initial-scale=1.0",
					),
					H.title(title),
					H.style(raw(PAGE_CSS)),
				),
				H.body(*content),
			),
			doctype="html",
		)
	)


def breadcrumbs(path: str) -> list[Node | str]:
	"""Links to each of the ancestors of the `path`, the last segment
	not being a link."""
	parts: list[str] = [_ for _ in path.split("/") if _]
	res: list[Node | str] = [H.a("/", href="/")]
	for i, part in enumerate(parts):
		if i == len(parts) - 1:
			res.append(part)
		else:
			res.append(H.a(part, href=href("/" + "/".join(parts[: i + 1]) + "/")))
			res.append("/")
	return res


def entryRow(entry: EntryInfo) -> Node:
	return H.tr(
		H.td(
			H.a(
				entry.name if entry.isFile else f"{entry.name}/",
				href=href(entry.uri if entry.isFile else f"{entry.uri}/"),
				type=entry.contentType if entry.isFile else None,
			)
		),
		H.td(formatSize(entry.size) if entry.isFile else "", _="size"),
		H.td(H.time(formatTime(entry.lastModified))),
		_="file" if entry.isFile else "dir",
	)


def renderListing(listing: Listing, path: str) -> str:
	parts: list[str] = [_ for _ in path.split("/") if _]
	rows: list[Node] = []
	if parts:
		parent: str = "/".join(parts[:-1])
		rows.append(H.tr(H.td(H.a("..", href=href(f"/{parent}/" if parent else "/"))), _="dir"))
	rows += [entryRow(_) for _ in listing]
	return page(
		f"Index of /{'/'.join(parts)}",
		H.h1("Index of ", *breadcrumbs(path)),
		H.table(
			H.thead(H.tr(H.th("Name"), H.th("Size", _="size"), H.th("Modified"))),
			H.tbody(*rows),
		),
		H.footer(f"{len(listing)} entries"),
	)


def renderFailure(failure: Failed) -> str:
	title: str = f"{failure.status} {failure.error.KIND}"
	return page(
		title,
		H.h1(title),
		H.p(failure.error.publicMessage),
		H.p("Path: ", H.code(failure.path or "/")),
		H.p(H.a("Back to /", href="/")),
	)


class Renderer:
	"""Turns the outcome of a request into a response."""

	def render(self, request: HTTPRequest, outcome: TResponseOutcome) -> HTTPResponse:
		if isinstance(outcome, Delegated):
			return outcome.response
		try:
			if isinstance(outcome, Listed):
				res = (
					request.returns({"path": outcome.path, "entries": outcome.listing})
					if request.param("format") == "json"
					else request.respondHTML(renderListing(outcome.listing, outcome.path))
				)
			else:
				res = request.respondHTML(
					renderFailure(outcome),
					status=outcome.status,
					headers={ERROR_HEADER: outcome.error.KIND},
				)
		except Exception as e:
			error(
				"Failed to render response", "RENDERFAIL", Path=request.path, Reason=str(e)
			)
			exception(e)
			res = request.respondText(
				f"Failed to render template. Error: {e}", status=500
			).setHeader(ERROR_HEADER, "InternalError")
		return res.withoutBody() if request.isHead else res


# EOF
