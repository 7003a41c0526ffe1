"""Resource exhaustion files: oversized files and nested zip bombs."""

import os
import uuid
import zipfile
from pathlib import Path
from typing import Optional, Union

from webinject.core.errors import GenerationError


KB = 1024
MB = 1024 * KB
GB = 1024 * MB

PathLike = Union[str, os.PathLike]


def file_of_size(directory: PathLike, size: int, unit: int = MB) -> Path:
    """
    Create a file of `size * unit` bytes in `directory`.

    The file ends one byte past the requested size: the writer seeks to the
    requested offset and writes a single terminating byte.
    """
    if size < 0 or unit < 1:
        raise GenerationError("size must be >= 0 and unit >= 1")
    directory = Path(directory)
    if not directory.is_dir():
        raise GenerationError(f"{directory} is not a directory")

    path = directory / f"{uuid.uuid4()}.bin"
    with open(path, "wb") as f:
        f.seek(size * unit)
        f.write(b"\0")
    return path


def zip_bomb(base_file: PathLike, depth: int, width: int,
             directory: Optional[PathLike] = None) -> Path:
    """
    Nest `base_file` into archives `depth` levels deep, `width` copies per level.

    The leaf archive holds the base file; each level above holds `width`
    copies of the level below named "<level>-<n>.zip".  The returned archive
    therefore has exactly `width` entries, all of them archives.
    """
    if depth < 1 or width < 1:
        raise GenerationError("depth and width must both be >= 1")
    base_file = Path(base_file)
    if not base_file.is_file():
        raise GenerationError(f"{base_file} is not a file")
    directory = Path(directory) if directory is not None else base_file.parent

    stem = uuid.uuid4().hex
    current = directory / f"{stem}-leaf.zip"
    with zipfile.ZipFile(current, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.write(base_file, arcname=base_file.name)

    for level in range(1, depth + 1):
        outer = directory / f"{stem}-{level}.zip"
        with zipfile.ZipFile(outer, "w", zipfile.ZIP_DEFLATED) as zf:
            for n in range(width):
                zf.write(current, arcname=f"{level}-{n}.zip")
        current.unlink()
        current = outer
    return current
