"""
Unpacks zip installers.

Directory entries are created with the mode recorded in the archive; files are
written byte-for-byte with default permissions. Entry names come from
registered package sources; absolute names are kept under the target
directory.
"""
import shutil
import stat
import zipfile
import zlib
from pathlib import Path, PurePosixPath

from fetchexec.internal.logging import get_logger
from fetchexec.kernel.contracts import ArchiveExtractor
from fetchexec.kernel.errors import ArchiveFormatError, FilesystemError

_CREATE_SYSTEM_UNIX = 3
_DOS_READONLY = 0x01

_ARCHIVE_ERRORS = (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError)


def entry_mode(info: zipfile.ZipInfo) -> int:
    """Permission bits recorded for an archive entry."""
    if info.create_system == _CREATE_SYSTEM_UNIX:
        mode = stat.S_IMODE(info.external_attr >> 16)
        if mode:
            return mode
    if info.external_attr & _DOS_READONLY:
        return 0o555
    return 0o777


def entry_path(target_dir: Path, name: str) -> Path:
    """Where an entry lands. Absolute names are rooted at `target_dir`, not at `/`."""
    parts = [part for part in PurePosixPath(name).parts if part.strip("/")]
    return target_dir.joinpath(*parts)


class ZipExtractor(ArchiveExtractor):

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    def extract(self, archive_path: Path, target_dir: Path) -> list[Path]:
        archive_path = Path(archive_path)
        target_dir = Path(target_dir)
        self.logger.info("Extracting archive", archive=str(archive_path), target=str(target_dir))

        try:
            target_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Unable to create {target_dir}: {e}") from e

        written: list[Path] = []
        try:
            with zipfile.ZipFile(archive_path, "r") as zf:
                for info in zf.infolist():
                    destination = entry_path(target_dir, info.filename)
                    if info.is_dir():
                        destination.mkdir(mode=entry_mode(info), parents=True, exist_ok=True)
                    else:
                        destination.parent.mkdir(mode=0o777, parents=True, exist_ok=True)
                        with zf.open(info, "r") as source, open(destination, "wb") as dest:
                            shutil.copyfileobj(source, dest)
                    written.append(destination)
        except _ARCHIVE_ERRORS as e:
            self.logger.error("Corrupt archive", archive=str(archive_path), error=str(e))
            raise ArchiveFormatError(f"Unable to extract {archive_path}: {e}") from e
        except OSError as e:
            self.logger.error("Extraction failed", archive=str(archive_path), error=str(e))
            raise FilesystemError(f"Unable to extract {archive_path} into {target_dir}: {e}") from e

        self.logger.info("Extraction complete", archive=str(archive_path), entries=len(written))
        return written
