from __future__ import annotations

import hashlib
import logging
import os
import shutil
import urllib.request
from pathlib import Path

from platformdirs import user_cache_dir

from .errors import SourceError

logger = logging.getLogger(__name__)


def _asset_cache_dir() -> Path:
    env = os.getenv("WIFIDATA_ASSET_CACHE_DIR")
    if env:
        return Path(env)
    return Path(user_cache_dir("wifidata", "wifidata"))


def ensure_local_asset(path: Path, *, url_env: str, label: str) -> Path:
    """Return a local copy of ``path``, downloading it from ``$url_env`` if missing.

    Downloads land in the user cache directory and are reused on later
    calls. When the file is missing and no URL is configured, ``path`` is
    returned unchanged and the caller decides what a missing file means.
    """
    if path.exists():
        return path

    url = os.getenv(url_env, "").strip()
    if not url:
        return path

    cache_dir = _asset_cache_dir()
    cache_dir.mkdir(parents=True, exist_ok=True)
    # One subdirectory per URL.
    digest = hashlib.sha256(url.encode("utf-8")).hexdigest()[:16]
    target = cache_dir / digest / Path(url).name
    target.parent.mkdir(parents=True, exist_ok=True)
    if target.exists():
        return target

    tmp_path = target.with_suffix(target.suffix + ".tmp")
    try:
        req = urllib.request.Request(url, headers={"User-Agent": "wifidata"})
        with urllib.request.urlopen(req, timeout=60) as resp, tmp_path.open(
            "wb"
        ) as handle:
            shutil.copyfileobj(resp, handle)
        tmp_path.replace(target)
    except OSError as exc:
        raise SourceError(f"Failed downloading {label} from {url}: {exc}") from exc
    finally:
        if tmp_path.exists():
            tmp_path.unlink()

    logger.info("assets.downloaded label=%s path=%s", label, target)
    return target
