import asyncio
import os
from email.utils import formatdate
from pathlib import Path

import pytest

from conftest import MTIME
from dirserve.config import RootConfig
from dirserve.delegate import (
	ByteRange,
	FileTransmitter,
	Handled,
	Missed,
	parseHTTPDate,
	parseRange,
)
from dirserve.http.model import HTTPBodyFile, HTTPRequest, HTTPResponse

# Header, expected range for a 10 bytes file
RANGES: list[tuple[str | None, ByteRange | bool | None]] = [
	(None, None),
	("bytes=0-3", ByteRange(0, 3)),
	("bytes=5-", ByteRange(5, 9)),
	("bytes=-3", ByteRange(7, 9)),
	("bytes=-30", ByteRange(0, 9)),
	("bytes=8-100", ByteRange(8, 9)),
	("bytes=10-", False),
	("bytes=20-30", False),
	("bytes=-0", False),
	("bytes=0-1,4-5", None),
	("bytes=3-1", None),
	("bytes=a-b", None),
	("items=0-3", None),
	("bytes=", None),
]


@pytest.mark.parametrize("header,expected", RANGES)
def test_parse_range(header: str | None, expected) -> None:
	assert parseRange(header, 10) == expected


def test_parse_http_date() -> None:
	assert parseHTTPDate(formatdate(MTIME, usegmt=True)) == MTIME
	assert parseHTTPDate("yesterday") is None
	assert parseHTTPDate(None) is None


def transmit(config: RootConfig, path: str, method: str = "GET", **headers: str):
	return asyncio.run(
		FileTransmitter(config).transmit(
			HTTPRequest.Create(method, path, {k.replace("_", "-"): v for k, v in headers.items()})
		)
	)


def served(result: Handled | Missed) -> HTTPResponse:
	assert isinstance(result, Handled), f"Expected a handled request, got: {result}"
	return result.response


def test_serves_files(config: RootConfig) -> None:
	res = served(transmit(config, "/notes.txt"))
	assert res.status == 200
	assert res.getHeader("Content-Type") == "text/plain"
	assert res.getHeader("Content-Length") == "10"
	assert res.getHeader("Accept-Ranges") == "bytes"
	assert res.getHeader("Last-Modified") == formatdate(MTIME, usegmt=True)
	assert isinstance(res.body, HTTPBodyFile)
	assert res.body.path == Path(config.root) / "notes.txt"


def test_head_has_no_body(config: RootConfig) -> None:
	res = served(transmit(config, "/notes.txt", "HEAD"))
	assert res.status == 200
	assert res.getHeader("Content-Length") == "10"
	assert res.body is None


def test_encoded_names(tree: Path, config: RootConfig) -> None:
	(tree / "docs" / "a b.txt").write_text("spaced")
	res = served(transmit(config, "/docs/a%20b.txt"))
	assert res.getHeader("Content-Length") == "6"


def test_not_modified(config: RootConfig) -> None:
	res = served(
		transmit(config, "/notes.txt", If_Modified_Since=formatdate(MTIME, usegmt=True))
	)
	assert res.status == 304
	assert res.body is None
	assert res.getHeader("Content-Length") is None
	res = served(
		transmit(
			config, "/notes.txt", If_Modified_Since=formatdate(MTIME - 60, usegmt=True)
		)
	)
	assert res.status == 200


def test_precondition_failed(config: RootConfig) -> None:
	res = served(
		transmit(
			config,
			"/notes.txt",
			If_Unmodified_Since=formatdate(MTIME - 60, usegmt=True),
		)
	)
	assert res.status == 412
	res = served(
		transmit(
			config, "/notes.txt", If_Unmodified_Since=formatdate(MTIME, usegmt=True)
		)
	)
	assert res.status == 200


def test_partial_content(config: RootConfig) -> None:
	res = served(transmit(config, "/notes.txt", Range="bytes=2-5"))
	assert res.status == 206
	assert res.getHeader("Content-Range") == "bytes 2-5/10"
	assert res.getHeader("Content-Length") == "4"
	assert res.body == HTTPBodyFile(Path(config.root) / "notes.txt", 2, 4)


def test_range_not_satisfiable(config: RootConfig) -> None:
	res = served(transmit(config, "/notes.txt", Range="bytes=10-"))
	assert res.status == 416
	assert res.getHeader("Content-Range") == "bytes */10"
	assert res.getHeader("Content-Length") == "0"


def test_multiple_ranges_are_ignored(config: RootConfig) -> None:
	res = served(transmit(config, "/notes.txt", Range="bytes=0-1,4-5"))
	assert res.status == 200
	assert res.getHeader("Content-Length") == "10"


def test_index_redirect(config: RootConfig) -> None:
	res = served(transmit(config, "/site"))
	assert res.status == 307
	assert res.getHeader("Location") == "/site/"


def test_index_redirect_stays_on_host(tree: Path, config: RootConfig) -> None:
	(tree / "evil.com").mkdir()
	(tree / "evil.com" / "index.html").write_text("<h1>Local</h1>")
	# A Location starting with `//` would point to another host
	for path in ("//evil.com", "/%2Fevil.com", "///evil.com"):
		res = served(transmit(config, path))
		assert res.status == 307
		assert res.getHeader("Location") == "/evil.com/"


def test_index_redirect_encodes_segments(tree: Path, config: RootConfig) -> None:
	(tree / "a b?").mkdir()
	(tree / "a b?" / "index.html").write_text("<h1>Site</h1>")
	res = served(transmit(config, "/a%20b%3F"))
	assert res.getHeader("Location") == "/a%20b%3F/"


def test_index_redirect_keeps_query(config: RootConfig) -> None:
	request = HTTPRequest.Create("GET", "/site", query={"page": "2"})
	res = served(asyncio.run(FileTransmitter(config).transmit(request)))
	assert res.getHeader("Location") == "/site/?page=2"


def test_index_is_served(config: RootConfig) -> None:
	res = served(transmit(config, "/site/"))
	assert res.status == 200
	assert res.getHeader("Content-Type") == "text/html"
	assert isinstance(res.body, HTTPBodyFile)
	assert res.body.path.name == "index.html"


def test_misses(config: RootConfig) -> None:
	# A directory without an index is left to the listing
	assert isinstance(transmit(config, "/docs"), Missed)
	assert isinstance(transmit(config, "/docs/"), Missed)
	assert isinstance(transmit(config, "/nope.txt"), Missed)
	assert isinstance(transmit(config, "/notes.txt/more"), Missed)
	assert isinstance(transmit(config, "/../etc/passwd"), Missed)
	assert isinstance(transmit(config, "/notes.txt", "POST"), Missed)


def test_unreadable_files_raise(
	config: RootConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
	monkeypatch.setattr(os, "access", lambda path, mode: False)
	with pytest.raises(PermissionError):
		transmit(config, "/notes.txt")


def test_strict_symlinks(tree: Path, tmp_path_factory: pytest.TempPathFactory) -> None:
	outside = tmp_path_factory.mktemp("outside")
	(outside / "secret.txt").write_text("secret")
	os.symlink(outside / "secret.txt", tree / "secret.txt")
	lenient = RootConfig.Make(str(tree))
	strict = RootConfig.Make(str(tree), strictSymlinks=True)
	assert served(transmit(lenient, "/secret.txt")).status == 200
	assert isinstance(transmit(strict, "/secret.txt"), Missed)
	assert served(transmit(strict, "/notes.txt")).status == 200


# EOF
