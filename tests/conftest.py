import io
import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from dirserve.config import RootConfig
from dirserve.utils import logging

# A fixed modification time, so that conditional requests can be tested
MTIME: int = 1_700_000_000


@pytest.fixture(autouse=True)
def log(monkeypatch: pytest.MonkeyPatch) -> Iterator[io.StringIO]:
	"""Captures the log output, and restores the threshold afterwards."""
	stream = io.StringIO()
	monkeypatch.setattr(logging, "ERR", stream)
	level = logging.THRESHOLD
	yield stream
	logging.setLevel(level)


@pytest.fixture
def tree(tmp_path: Path) -> Path:
	"""A small directory tree:

	```
	docs/a.txt
	docs/sub/
	notes.txt      (10 bytes)
	site/index.html
	```
	"""
	(tmp_path / "docs" / "sub").mkdir(parents=True)
	(tmp_path / "docs" / "a.txt").write_text("hello")
	(tmp_path / "notes.txt").write_bytes(b"0123456789")
	(tmp_path / "site").mkdir()
	(tmp_path / "site" / "index.html").write_text("<h1>Site</h1>")
	for path in (
		tmp_path / "notes.txt",
		tmp_path / "docs" / "a.txt",
		tmp_path / "site" / "index.html",
	):
		os.utime(path, (MTIME, MTIME))
	return tmp_path


@pytest.fixture
def config(tree: Path) -> RootConfig:
	return RootConfig.Make(str(tree))


# EOF
