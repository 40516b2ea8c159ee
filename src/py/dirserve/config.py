import os
from os import getenv
from pathlib import Path
from typing import NamedTuple

PORT: int = int(getenv("PORT", 8000))

# The server exposes a directory, so it only listens locally unless told otherwise
HOST: str = getenv("HOST", "127.0.0.1")

ROOT: str = getenv("DIRSERVE_ROOT", ".")

LOG_LEVEL: str = getenv("DIRSERVE_LOG_LEVEL", "info")

LOG_REQUESTS: bool = getenv("DIRSERVE_LOG_REQUESTS", "1") == "1"


class RootConfig(NamedTuple):
	"""The directory exposed by the server, shared read-only by all
	requests. Build it with `RootConfig.Make` so that the root is
	normalized."""

	root: str
	strictSymlinks: bool = False

	@staticmethod
	def Make(root: str | Path | None = None, *, strictSymlinks: bool = False) -> "RootConfig":
		path: str = str(ROOT if root is None else root)
		# Listing URIs are derived by removing the root prefix from the
		# absolute path of entries, so the root must not end with a separator.
		# The filesystem root is kept as is.
		if path != os.sep:
			path = path.rstrip(os.sep) or (os.sep if path else ".")
		return RootConfig(root=path, strictSymlinks=strictSymlinks)

	@property
	def isFilesystemRoot(self) -> bool:
		return self.root == os.sep


# EOF
