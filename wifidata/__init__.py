# wifidata/__init__.py
from importlib.metadata import PackageNotFoundError, version
import sys

_MINIMUM_PYTHON = (3, 11)
_REQUIRED_DEPENDENCIES = {
    "sqlalchemy": "2.0",
    "pandas": "2.1",
    "numpy": "1.26",
    "openpyxl": "3.1",
}

if sys.version_info < _MINIMUM_PYTHON:
    raise RuntimeError(f"Python >= {'.'.join(map(str, _MINIMUM_PYTHON))} is required.")


def _gte(installed: str, required: str) -> bool:
    from packaging import version as pv

    return pv.parse(installed) >= pv.parse(required)


_required_issues: list[str] = []
for pkg, minv in _REQUIRED_DEPENDENCIES.items():
    try:
        v = version(pkg)
    except PackageNotFoundError:
        _required_issues.append(f"{pkg}>={minv} (not installed)")
        continue
    if not _gte(v, minv):
        _required_issues.append(f"{pkg}>={minv} (found {v})")

if _required_issues:
    raise ImportError(
        "wifidata requires the following dependencies: "
        + ", ".join(_required_issues)
    ) from None


try:
    __version__ = version("wifidata")
except PackageNotFoundError:
    __version__ = "0.0.0"

from .entities import RankedWifiPoint, WifiPoint
from .errors import (
    DuplicateRecordError,
    RecordNotFoundError,
    SourceError,
    ValidationError,
    WifiDataError,
)
from .paging import Page, PageRequest
from .service import WifiPointService
from .store import WifiPointStore

__all__ = [
    "DuplicateRecordError",
    "Page",
    "PageRequest",
    "RankedWifiPoint",
    "RecordNotFoundError",
    "SourceError",
    "ValidationError",
    "WifiDataError",
    "WifiPoint",
    "WifiPointService",
    "WifiPointStore",
    "__version__",
]
