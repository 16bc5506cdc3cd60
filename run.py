"""Entry point: render the whole site into a static output directory.

Behavior:
    1. Initialize logging (INFO level)
    2. Ask for the output directory (default: dist)
    3. Confirm before replacing an existing non-empty directory
    4. Render every sitemap path plus sitemap.xml / robots.txt
"""

from __future__ import annotations

import shutil
import sys
from pathlib import Path

from app import create_app
from luxcars.build import build_site
from luxcars.console import Console
from luxcars.logger import Logger, setup_logging
from luxcars.sitemap import build_sitemap_paths


DEFAULT_OUT_DIR = 'dist'


class App:

    def __init__(self, out_dir: str | None = None, interactive: bool = True):
        self.out_dir = out_dir
        self.interactive = interactive

    # --- interactive helpers ---
    def getOutDir(self) -> Path | None:
        raw = self.out_dir or (Console.input_str('output dir', DEFAULT_OUT_DIR) if self.interactive else DEFAULT_OUT_DIR)
        if not raw:
            return None
        out = Path(raw)
        if out.is_dir() and any(out.iterdir()):
            if self.interactive and not Console.confirm(f'{out} is not empty, replace it?'):
                return None
            shutil.rmtree(out)
        return out

    def run(self) -> int:
        setup_logging()  # default INFO
        out = self.getOutDir()
        if out is None:
            Logger.debug("No output dir, exit.")
            return 0

        try:
            app = create_app()
            ext = app.extensions
            paths = build_sitemap_paths(ext['dealers'], ext['cars'], ext['brands'])
            report = build_site(app, out, paths)
        except Exception as e:  # noqa: BLE001
            Logger.exception(e)
            return 1
        return 1 if report.failed else 0


def main() -> int:
    out_dir = sys.argv[1] if len(sys.argv) > 1 else None
    return App(out_dir=out_dir, interactive=out_dir is None).run()


if __name__ == "__main__":
    raise SystemExit(main())
