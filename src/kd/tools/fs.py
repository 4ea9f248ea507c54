from collections.abc import Iterable
from pathlib import Path

MANIFEST_SUFFIXES = (".yaml", ".yml")


def list_manifest_files(paths: Iterable[Path]) -> list[Path]:
    """
    Expand the given *paths* into a list of manifest files. Directories are searched recursively for YAML files,
    files are returned as given.

    Raises:
        FileNotFoundError: If one of the paths does not exist.
    """

    files: list[Path] = []
    for path in paths:
        if path.is_dir():
            files.extend(
                item for item in sorted(path.rglob("*")) if item.is_file() and item.suffix in MANIFEST_SUFFIXES
            )
        elif path.exists():
            files.append(path)
        else:
            raise FileNotFoundError(f"No such file or directory: '{path}'")
    return files
