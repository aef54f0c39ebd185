"""Load expressions to evaluate in batch from a text file or an archive."""
from collections.abc import Callable
from pathlib import Path
import tarfile
import tempfile
from typing import Dict, List
import zipfile

import py7zr


def _read_zip(archive_path: Path) -> str:
    with zipfile.ZipFile(archive_path, "r") as zf:
        names = [n for n in zf.namelist() if n.endswith(".txt")]
        if not names:
            raise ValueError("📄❌ No .txt file found in zip archive")
        return zf.read(names[0]).decode("utf-8")


def _read_tar_xz(archive_path: Path) -> str:
    with tarfile.open(archive_path, "r:xz") as tf:
        members = [m for m in tf.getmembers() if m.isfile() and m.name.endswith(".txt")]
        if not members:
            raise ValueError("📄❌ No .txt file found in tar.xz archive")
        return tf.extractfile(members[0]).read().decode("utf-8")


def _read_7z(archive_path: Path) -> str:
    # py7zr only extracts to disk
    with py7zr.SevenZipFile(archive_path, mode="r") as archive, tempfile.TemporaryDirectory() as tmpdir:
        names = [n for n in archive.getnames() if n.endswith(".txt")]
        if not names:
            raise ValueError("📄❌ No .txt file found in 7z archive")
        archive.extract(path=tmpdir, targets=[names[0]])
        return (Path(tmpdir) / names[0]).read_text(encoding="utf-8")


# Archive extension(s) -> reader returning the first .txt member
ARCHIVE_READERS: Dict[str, Callable[[Path], str]] = {
    ".zip": _read_zip,
    ".tar.xz": _read_tar_xz,
    ".7z": _read_7z,
}


def _archive_suffix(path: Path) -> str:
    if path.suffixes[-2:] == [".tar", ".xz"]:
        return ".tar.xz"
    return path.suffix


def read_expressions(input_file: Path) -> List[str]:
    """
    Read one expression per non-blank line from a .txt file, or from the
    first .txt member of a .zip, .tar.xz or .7z archive.

    :param Path input_file: Path to a .txt file or a supported archive

    :return: Stripped, non-empty lines
    :rtype: List[str]
    :raises ValueError: If the archive format is unsupported or contains no .txt file
    """
    suffix = _archive_suffix(input_file)
    if suffix == ".txt":
        content = input_file.read_text(encoding="utf-8")
    elif suffix in ARCHIVE_READERS:
        content = ARCHIVE_READERS[suffix](input_file)
    else:
        raise ValueError(f"📄❌ Unsupported archive format: {suffix}")
    return [line.strip() for line in content.splitlines() if line.strip()]


def build_output_path(input_path: Path) -> Path:
    """
    Results file for a batch input: same folder, extensions folded into the
    name (``ops.tar.xz`` -> ``ops_tar_xz_results.txt``).
    """
    suffixes = "".join(input_path.suffixes)
    stem = input_path.name[: len(input_path.name) - len(suffixes)]
    return input_path.with_name(f"{stem}{suffixes.replace('.', '_')}_results.txt")
