from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import List


TEMP_SUFFIX = ".tmp"


def dumps_manifest(names: List[str]) -> str:
    return json.dumps(names, ensure_ascii=False, indent=2)


class ManifestWriter:
    def __init__(self, atomic: bool = True) -> None:
        self.atomic = atomic

    def write(self, path: str | Path, names: List[str]) -> None:
        path = Path(path)
        payload = dumps_manifest(names)
        if not self.atomic:
            with open(path, "w", encoding="utf-8") as f:
                f.write(payload)
            return

        # Temp name ends in .tmp so watchers filtering on image extensions skip it.
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=TEMP_SUFFIX, dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.chmod(tmp_name, _target_mode(path))
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise


def _target_mode(path: Path) -> int:
    """Mode a plain ``open(path, "w")`` would leave: the existing file's, else 0o666 minus umask."""
    try:
        return path.stat().st_mode & 0o777
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask
