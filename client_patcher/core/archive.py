"""
Archive boundary: unpack the source archive into a working directory and
repackage the working directory into the patched archive.
"""

from __future__ import annotations
import os
import struct
import zipfile
from pathlib import Path, PurePosixPath
from typing import List

from .errors import PatchIOError
from .logger import get_logger

log = get_logger(__name__)

ZIP64_EXTRA_ID = 0x0001
UTF8_NAME_FLAG = 0x800

_WRITABLE_COMPRESSION = {
    zipfile.ZIP_STORED,
    zipfile.ZIP_DEFLATED,
    zipfile.ZIP_BZIP2,
    zipfile.ZIP_LZMA,
}


def patched_archive_path(source: Path, suffix: str = "-patched") -> Path:
    """``client.jar`` -> ``client-patched.jar`` next to the source."""
    return source.with_name(f"{source.stem}{suffix}{source.suffix}")


def _is_safe_name(name: str) -> bool:
    if "\\" in name or name.startswith("/"):
        return False
    parts = PurePosixPath(name).parts
    return bool(parts) and ".." not in parts and not parts[0].endswith(":")


def extract_archive(source: Path, dest: Path) -> List[zipfile.ZipInfo]:
    """Extract every member of ``source`` into ``dest`` and return the member list."""
    try:
        with zipfile.ZipFile(source) as zf:
            members = zf.infolist()
            for info in members:
                if not _is_safe_name(info.filename):
                    raise PatchIOError(
                        f"Refusing to extract unsafe entry name: {info.filename!r}",
                        pass_name="extract",
                    )
            zf.extractall(dest)
    except (OSError, zipfile.BadZipFile) as exc:
        raise PatchIOError(f"Failed to extract {source}: {exc}", pass_name="extract") from exc
    log.debug(f"Extracted {len(members)} entries from {source} into {dest}")
    return members


def _strip_zip64_extra(extra: bytes) -> bytes:
    """Drop zip64 size records; the writer adds its own when needed."""
    kept = bytearray()
    pos = 0
    while pos + 4 <= len(extra):
        header_id, size = struct.unpack_from("<HH", extra, pos)
        end = pos + 4 + size
        if header_id != ZIP64_EXTRA_ID:
            kept += extra[pos:end]
        pos = end
    return bytes(kept)


def _copy_info(info: zipfile.ZipInfo) -> zipfile.ZipInfo:
    copied = zipfile.ZipInfo(info.filename, date_time=info.date_time)
    copied.compress_type = (
        info.compress_type if info.compress_type in _WRITABLE_COMPRESSION else zipfile.ZIP_DEFLATED
    )
    copied.comment = info.comment
    copied.extra = _strip_zip64_extra(info.extra)
    copied.create_system = info.create_system
    copied.external_attr = info.external_attr
    copied.internal_attr = info.internal_attr
    return copied


def assemble_archive(source: Path, work_root: Path, output: Path) -> Path:
    """Write ``output`` with every member of ``source``, taking bytes from ``work_root``.

    Members keep their order, names and metadata. Names are written as ASCII
    or flagged UTF-8, so a non-ASCII name stored in a legacy code page is
    refused rather than re-encoded. The archive is first written to a temporary
    sibling and renamed, so ``output`` either appears complete or not at all.
    """
    tmp = output.with_name(output.name + ".tmp")
    try:
        with zipfile.ZipFile(source) as src:
            members = src.infolist()
            for info in members:
                _check_name_encoding(info)
            with zipfile.ZipFile(tmp, "w") as dst:
                dst.comment = src.comment
                for info in members:
                    target = work_root.joinpath(*PurePosixPath(info.filename).parts)
                    if info.is_dir():
                        dst.writestr(_copy_info(info), b"")
                        continue
                    if not target.is_file():
                        raise PatchIOError(
                            f"Entry {info.filename} is missing from the working directory",
                            pass_name="assemble",
                        )
                    dst.writestr(_copy_info(info), target.read_bytes())
        os.replace(tmp, output)
    except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile) as exc:
        _discard(tmp)
        raise PatchIOError(f"Failed to assemble {output}: {exc}", pass_name="assemble") from exc
    except PatchIOError:
        _discard(tmp)
        raise
    log.debug(f"Assembled {output}")
    return output


def _check_name_encoding(info: zipfile.ZipInfo) -> None:
    if info.flag_bits & UTF8_NAME_FLAG or info.filename.isascii():
        return
    raise PatchIOError(
        f"Entry {info.filename!r} uses a legacy name encoding that cannot be written back",
        pass_name="assemble",
    )


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
