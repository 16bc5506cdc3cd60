from __future__ import annotations
"""Render the Flask site into a directory of static files."""
from dataclasses import dataclass, field
from pathlib import Path
import shutil
from typing import Iterable, List
from urllib.parse import urlparse

from .logger import Logger


log = Logger.bind(__name__)

EXTRA_PATHS = ('/sitemap.xml', '/robots.txt')
_FILE_SUFFIXES = ('.xml', '.txt')


@dataclass
class BuildReport:
    written: List[Path] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def output_path(out_dir: Path, url_or_path: str) -> Path:
    """``/a/b`` -> ``out/a/b/index.html``; ``/robots.txt`` -> ``out/robots.txt``."""
    path = urlparse(url_or_path).path or '/'
    rel = path.strip('/')
    if rel.endswith(_FILE_SUFFIXES):
        return out_dir / rel
    if not rel:
        return out_dir / 'index.html'
    return out_dir / rel / 'index.html'


def copy_static(app, out_dir: Path) -> None:
    static = Path(app.static_folder) if app.static_folder else None
    if static and static.is_dir():
        shutil.copytree(static, out_dir / 'static', dirs_exist_ok=True)


def build_site(app, out_dir: Path | str, urls: Iterable[str]) -> BuildReport:
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    report = BuildReport()
    paths: List[str] = []
    for u in list(urls) + list(EXTRA_PATHS):
        p = urlparse(u).path or '/'
        if p not in paths:
            paths.append(p)

    done = Logger.time_block('static build')
    client = app.test_client()
    for p in paths:
        resp = client.get(p)
        if resp.status_code != 200:
            log.warn(f"page skipped path={p} status={resp.status_code}")
            report.failed.append(p)
            continue
        target = output_path(out_dir, p)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(resp.get_data())
        report.written.append(target)
    copy_static(app, out_dir)
    elapsed = done()
    log.info(f"static build done pages={len(report.written)} failed={len(report.failed)} out={out_dir} ms={elapsed:.0f}")
    return report


__all__ = ["build_site", "output_path", "BuildReport"]
