import argparse
import ipaddress
import os
import sys

from . import config
from .config import RootConfig
from .server import run
from .services.files import FileService
from .utils.logging import error, info, setLevel, warning

# The address used when the given one is not a valid IP address
FALLBACK_HOST: str = "127.0.0.1"


def parseHost(addr: str) -> str:
	"""Returns `addr` if it is a valid IPv4 or IPv6 address, the fallback
	host otherwise."""
	try:
		ipaddress.ip_address(addr)
	except ValueError:
		warning(
			f"Invalid address '{addr}', using {FALLBACK_HOST}", Address=addr
		)
		return FALLBACK_HOST
	return addr


def parser() -> argparse.ArgumentParser:
	res = argparse.ArgumentParser(
		prog="dirserve",
		description="Serves and lists the files of a local directory over HTTP",
		formatter_class=argparse.ArgumentDefaultsHelpFormatter,
	)
	res.add_argument(
		"-r",
		"--root",
		action="store",
		dest="root",
		help="The directory to serve",
		default=config.ROOT,
	)
	res.add_argument(
		"-a",
		"--addr",
		action="store",
		dest="addr",
		help="The IP address to listen on",
		default=config.HOST,
	)
	res.add_argument(
		"-p",
		"--port",
		action="store",
		dest="port",
		type=int,
		help="Specifies the port",
		default=config.PORT,
	)
	res.add_argument(
		"-l",
		"--log",
		action="store",
		dest="log",
		help="Logging threshold: debug, info, warning or error",
		default=config.LOG_LEVEL,
	)
	res.add_argument(
		"--strict-symlinks",
		action="store_true",
		dest="strictSymlinks",
		help="Refuses to follow symbolic links that lead outside of the root",
	)
	return res


def main(args: list[str] | None = None) -> int:
	options = parser().parse_args(args=sys.argv[1:] if args is None else args)
	try:
		setLevel(options.log)
	except ValueError as e:
		error(str(e), "BADLOGLEVEL")
		return 1
	if not os.path.isdir(options.root):
		error(f"Root directory does not exist: {options.root}", "NOROOT")
		return 1
	root = RootConfig.Make(options.root, strictSymlinks=options.strictSymlinks)
	info("Serving directory", Root=root.root, Strict=root.strictSymlinks)
	run(FileService(root), host=parseHost(options.addr), port=options.port)
	return 0


if __name__ == "__main__":
	sys.exit(main())

# EOF
