import os
from typing import NamedTuple, TypeAlias

from .config import RootConfig
from .utils.files import contentType, extension
from .utils.logging import warning


class EntryInfo(NamedTuple):
	"""An entry of a directory listing. The `uri` is the entry path relative
	to the root, as a decoded path: it must go through `render.href` to be
	used as a link, which percent-encodes it back into a request path."""

	name: str
	extension: str
	contentType: str
	isFile: bool
	lastModified: int
	uri: str
	size: int = 0


Listing: TypeAlias = tuple[EntryInfo, ...]


def entryURI(path: str, config: RootConfig) -> str | None:
	"""Returns the URI for the absolute `path` of an entry, or `None` when
	the path is not within the root."""
	root: str = config.root
	if not path.startswith(root):
		return None
	elif config.isFilesystemRoot:
		return path
	else:
		return path[len(root) :]


def listDirectory(path: str, config: RootConfig) -> Listing:
	"""Lists the immediate children of the directory at `path`, which must
	have been resolved under the root. Any `OSError` raised while
	reading the directory or the metadata of one of its entries
	propagates, so that a listing is either complete or not returned."""
	entries: list[EntryInfo] = []
	with os.scandir(path) as children:
		for child in children:
			child_path: str = os.path.join(path, child.name)
			uri: str | None = entryURI(child_path, config)
			if uri is None:
				# The entry may have been swapped while we were scanning
				warning("Skipped entry outside of root", Path=child_path, Root=config.root)
				continue
			is_file: bool = child.is_file()
			# Broken symbolic links are listed with their own metadata
			stat = child.stat(follow_symlinks=is_file or child.is_dir())
			entries.append(
				EntryInfo(
					name=child.name,
					extension=extension(child.name),
					contentType=contentType(child.name),
					isFile=is_file,
					lastModified=int(stat.st_mtime),
					uri=uri,
					size=stat.st_size if is_file else 0,
				)
			)
	# Directories first, then by name
	return tuple(sorted(entries, key=lambda _: (_.isFile, _.name)))


# EOF
