from __future__ import annotations

import gzip
import logging
import shutil
import tarfile
import zipfile
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def _check_member(dest: Path, name: str) -> None:
    target = (dest / name).resolve()
    if target != dest and dest not in target.parents:
        raise ValueError(f"Archive member escapes destination: {name}")


def extract(archive: str, dest: str) -> Path:
    """Extract a .tar.gz/.tgz, .zip or single-file .gz archive into dest.

    Corrupt or mislabelled downloads (an HTML error page saved as .zip, say)
    raise ValueError, like unsupported types and escaping members do.
    """

    a = Path(archive)
    d = Path(dest).resolve()
    d.mkdir(parents=True, exist_ok=True)
    name = a.name.lower()

    try:
        if name.endswith((".tar.gz", ".tgz", ".tar")):
            _extract_tar(a, d)
        elif name.endswith(".zip"):
            with zipfile.ZipFile(a) as zf:
                for n in zf.namelist():
                    _check_member(d, n)
                zf.extractall(d)
        elif name.endswith(".gz"):
            out = d / a.name[: -len(".gz")]
            with gzip.open(a, "rb") as src, open(out, "wb") as dst:
                shutil.copyfileobj(src, dst)
        else:
            raise ValueError(f"Unsupported archive type: {a.name}")
    except (zipfile.BadZipFile, tarfile.TarError, gzip.BadGzipFile, EOFError) as e:
        raise ValueError(f"Corrupt archive {a.name}: {e}") from e

    logger.info("Extracted %s -> %s", a, d)
    return d


def _extract_tar(a: Path, d: Path) -> None:
    with tarfile.open(a) as tf:
        for m in tf.getmembers():
            _check_member(d, m.name)
            if m.issym():
                _check_member(d, str(Path(m.name).parent / m.linkname))
            elif m.islnk():
                _check_member(d, m.linkname)
        if hasattr(tarfile, "data_filter"):
            tf.extractall(d, filter="data")
        else:
            tf.extractall(d)


def find_file(root: str, name: str) -> Optional[Path]:
    """Return the shallowest regular file called name under root."""

    matches = sorted(
        (p for p in Path(root).rglob(name) if p.is_file()),
        key=lambda p: len(p.relative_to(root).parts),
    )
    return matches[0] if matches else None


def single_top_dir(root: str) -> Path:
    """Unwrap archives that hold one top-level directory (GitHub branch zips)."""

    r = Path(root)
    entries = [p for p in r.iterdir() if not p.name.startswith("__MACOSX")]
    if len(entries) == 1 and entries[0].is_dir():
        return entries[0]
    return r
