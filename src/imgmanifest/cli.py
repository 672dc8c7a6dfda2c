from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional, Sequence

from imgmanifest.manifest.generator import ManifestGenerator, summary_line
from imgmanifest.utils.config import AppConfig, ManifestSettings
from imgmanifest.watch.loop import WatchLoop


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Write the sorted image filenames of a media folder to a JSON manifest")
    parser.add_argument("--watch", action="store_true", help="Keep running and regenerate on changes")
    parser.add_argument("--media-dir", required=False, help="Folder to scan (overrides config)")
    parser.add_argument("--config", action="append", default=[], help="YAML config file; may repeat, later files win")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace, default_media_dir: str | Path) -> ManifestSettings:
    cfg = AppConfig.from_files(*args.config)
    return ManifestSettings.from_config(cfg, default_media_dir=default_media_dir, media_dir=args.media_dir)


def run_once(generator: ManifestGenerator) -> List[str]:
    names = generator.generate()
    print(summary_line(names, generator.settings.manifest_name))
    for name in names:
        print(f"  - {name}")
    return names


def main(argv: Optional[Sequence[str]] = None, default_media_dir: str | Path = "media") -> None:
    args = parse_args(argv)
    settings = build_settings(args, default_media_dir)
    generator = ManifestGenerator(settings)
    if args.watch:
        WatchLoop(generator).run_forever()
    else:
        run_once(generator)


if __name__ == "__main__":
    main()
