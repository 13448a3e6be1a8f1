"""Process initialization: wire the store, run the one-time load, build the API."""

from __future__ import annotations

from dataclasses import dataclass
import logging

from .api import WifiPointApi
from .config import Settings
from .errors import SourceError
from .ingest import STATUS_FAILED, LoadReport, WifiPointLoader, resolve_source
from .ranking import ProximityRanker
from .service import WifiPointService
from .store import WifiPointStore

__all__ = ["App", "bootstrap"]

logger = logging.getLogger(__name__)


@dataclass
class App:
    settings: Settings
    store: WifiPointStore
    service: WifiPointService
    api: WifiPointApi
    load_report: LoadReport


def bootstrap(settings: Settings, *, engine=None) -> App:
    """Build the application and call the loader once.

    The load is idempotent: on every start after the first it finds a
    populated store and does nothing. Source failures are logged and the
    application still starts, with an empty store.
    """
    if engine is not None:
        store = WifiPointStore(engine)
    else:
        store = WifiPointStore.from_url(settings.database_url)
    ranker = ProximityRanker(store)
    service = WifiPointService(store, ranker)
    api = WifiPointApi(
        service,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )

    report = _load(store, settings)
    return App(settings=settings, store=store, service=service, api=api, load_report=report)


def _load(store: WifiPointStore, settings: Settings) -> LoadReport:
    if store.count() == 0:
        try:
            source = resolve_source(settings.source_path, url_env=settings.source_url_env)
        except SourceError as exc:
            logger.error("app.source_unavailable reason=%s", exc)
            return LoadReport(STATUS_FAILED, str(settings.source_path))
    else:
        source = settings.source_path
    loader = WifiPointLoader(store, source, progress_every=settings.progress_every)
    return loader.load()
