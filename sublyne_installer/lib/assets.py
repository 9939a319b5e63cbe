from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Collection

logger = logging.getLogger(__name__)


def copy_tree(src: str, dst: str, *, skip_top: Collection[str] = (), dry_run: bool = False) -> None:
    """Copy the contents of src into dst, ignoring top-level names in skip_top."""

    s = Path(src)
    d = Path(dst)
    if not s.exists():
        raise FileNotFoundError(src)

    if dry_run:
        logger.info("Would copy tree %s -> %s", str(s), str(d))
        return

    d.mkdir(parents=True, exist_ok=True)
    for item in s.rglob("*"):
        rel = item.relative_to(s)
        if rel.parts[0] in skip_top:
            continue
        out = d / rel
        if item.is_dir():
            out.mkdir(parents=True, exist_ok=True)
        else:
            out.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(item, out)


def clear_dir(path: str, *, keep: Collection[str] = (), dry_run: bool = False) -> None:
    """Remove everything under path except top-level names in keep."""

    p = Path(path)
    if not p.exists():
        return
    for item in p.iterdir():
        if item.name in keep:
            continue
        if dry_run:
            logger.info("Would remove %s", str(item))
        elif item.is_dir() and not item.is_symlink():
            shutil.rmtree(item)
        else:
            item.unlink()
