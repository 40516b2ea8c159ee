"""
Embedded File Server Example

Serves a directory with a custom content delegate, which wraps the
bundled `FileTransmitter` to add caching headers to the files it sends.
Directories without an `index.html` are still listed.

Usage:
    python fileserver.py [ROOT]

Test with:
    http://localhost:8000/                  # Listing of ROOT
    http://localhost:8000/?format=json      # Same listing, as JSON
"""

import sys

from dirserve import FileService, HTTPRequest, RootConfig, run
from dirserve.delegate import FileTransmitter, Handled, Missed
from dirserve.utils.logging import info


class CachingTransmitter:
	"""Sends files like `FileTransmitter`, telling clients they can keep
	them for an hour."""

	def __init__(self, config: RootConfig, maxAge: int = 3600):
		self.transmitter = FileTransmitter(config)
		self.maxAge = maxAge

	async def transmit(self, request: HTTPRequest) -> Handled | Missed:
		res = await self.transmitter.transmit(request)
		if isinstance(res, Handled) and res.response.status in (200, 206, 304):
			res.response.setHeader("Cache-Control", f"max-age={self.maxAge}")
		return res


if __name__ == "__main__":
	config = RootConfig.Make(sys.argv[1] if len(sys.argv) > 1 else ".")
	info("Starting embedded file server", Root=config.root)
	run(FileService(config, delegate=CachingTransmitter(config)))

# EOF
