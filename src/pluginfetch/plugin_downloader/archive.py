"""
Unpacking of downloaded plugin archives.

The archive format is recognized from the file contents, not its name: a
`.vsix` is a zip container, a `.tar.gz` a gzip-compressed tarball.
"""

import pathlib
import tarfile
import zipfile
import zlib


class ArchiveError(Exception):
    """The file is not an archive that can be unpacked."""


# Raised by zipfile for unsupported compression methods, encrypted members,
# truncated data and corrupt deflate streams.
ZIP_ERRORS = (
    zipfile.BadZipFile,
    NotImplementedError,
    RuntimeError,
    ValueError,
    EOFError,
    zlib.error,
)

TAR_ERRORS = (tarfile.TarError, ValueError, EOFError, zlib.error)


def unpack(archive_path: pathlib.Path, destination_dir: pathlib.Path) -> None:
    """
    Extract an archive into a directory, creating it if needed.

    Members that would land outside the destination are refused. The
    destination may hold partially extracted files when this raises.

    Raises:
        ArchiveError: If the file is neither a zip nor a tar archive, or is corrupt
    """
    destination_dir = pathlib.Path(destination_dir)
    destination_dir.mkdir(parents=True, exist_ok=True)

    if zipfile.is_zipfile(archive_path):
        try:
            with zipfile.ZipFile(archive_path) as archive:
                root = destination_dir.resolve()
                for name in archive.namelist():
                    if not (root / name).resolve().is_relative_to(root):
                        raise ArchiveError(f"Refusing to extract {name} outside {destination_dir}")
                archive.extractall(destination_dir)
        except ZIP_ERRORS as e:
            raise ArchiveError(f"Corrupt zip archive {archive_path}: {e}") from e
        return

    if tarfile.is_tarfile(archive_path):
        try:
            with tarfile.open(archive_path, "r:*") as archive:
                archive.extractall(destination_dir, filter="data")
        except TAR_ERRORS as e:
            raise ArchiveError(f"Corrupt tar archive {archive_path}: {e}") from e
        return

    raise ArchiveError(f"Unsupported archive format: {archive_path}")
