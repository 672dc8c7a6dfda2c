from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List, Optional

from imgmanifest.io.writer import ManifestWriter
from imgmanifest.utils.config import ManifestSettings


def is_image_name(name: str, extensions: Iterable[str]) -> bool:
    return Path(name).suffix.lower() in extensions


class ManifestGenerator:
    """Scans ``settings.media_dir`` and writes the sorted image names as a JSON array."""

    def __init__(self, settings: ManifestSettings, writer: Optional[ManifestWriter] = None) -> None:
        self.settings = settings
        self.writer = writer if writer is not None else ManifestWriter(atomic=settings.atomic_write)

    def scan(self) -> List[str]:
        settings = self.settings
        names = [
            name
            for name in os.listdir(settings.media_dir)
            if name != settings.manifest_name and is_image_name(name, settings.extensions)
        ]
        # Plain code-point order: "B.png" sorts before "a.png".
        names.sort()
        return names

    def generate(self) -> List[str]:
        names = self.scan()
        self.writer.write(self.settings.manifest_path, names)
        return names


def summary_line(names: List[str], manifest_name: str) -> str:
    return f"Generated {manifest_name} with {len(names)} images"
