from __future__ import annotations

from pathlib import Path

from imgmanifest.cli import main


MEDIA_DIR = Path(__file__).resolve().parent.parent / "media"


if __name__ == "__main__":
    main(default_media_dir=MEDIA_DIR)
