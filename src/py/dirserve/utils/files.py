import mimetypes
from pathlib import Path

mimetypes.init()

DEFAULT_CONTENT_TYPE: str = "application/octet-stream"

# Overrides for types the platform database gets wrong or lacks
MIME_TYPES: dict[str, str] = dict(
	bz2="application/x-bzip",
	gz="application/x-gzip",
	md="text/markdown",
	mjs="text/javascript",
	wasm="application/wasm",
	webmanifest="application/manifest+json",
)


def extension(name: str) -> str:
	"""Returns the last suffix of `name`, lower-cased and without the dot,
	or an empty string. Dotfiles like `.bashrc` have no extension."""
	return Path(name).suffix[1:].lower()


def contentType(path: Path | str, default: str = DEFAULT_CONTENT_TYPE) -> str:
	"""Guesses the content type from the extension of the given path, without
	looking at the file itself."""
	name = str(path)
	ext = extension(name)
	return (
		res
		if (res := MIME_TYPES.get(ext))
		else mimetypes.guess_type(name, strict=False)[0] or default
	)


# EOF
