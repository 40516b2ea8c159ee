from pathlib import Path

import pytest

from dirserve.config import RootConfig

# Given root, normalized root
ROOTS: list[tuple[str, str]] = [
	("/srv/www", "/srv/www"),
	("/srv/www/", "/srv/www"),
	("/srv/www//", "/srv/www"),
	("/", "/"),
	("///", "/"),
	(".", "."),
	("./", "."),
	("", "."),
	("public", "public"),
]


@pytest.mark.parametrize("root,expected", ROOTS)
def test_root_normalization(root: str, expected: str) -> None:
	assert RootConfig.Make(root).root == expected


def test_paths_and_options() -> None:
	config = RootConfig.Make(Path("/srv/www"), strictSymlinks=True)
	assert config == RootConfig("/srv/www", True)
	assert not config.isFilesystemRoot
	assert RootConfig.Make("/").isFilesystemRoot
	assert RootConfig.Make("/srv").strictSymlinks is False


# EOF
