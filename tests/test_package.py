import importlib

import pytest


def test_import_requires_core_dependencies(monkeypatch):
    module = importlib.import_module("wifidata")

    from importlib import metadata as im

    def fake_version(name):
        if name in {"sqlalchemy", "openpyxl"}:
            raise im.PackageNotFoundError
        return "9999"

    monkeypatch.setattr(im, "version", fake_version)

    with pytest.raises(ImportError) as excinfo:
        importlib.reload(module)

    assert "sqlalchemy" in str(excinfo.value)
    assert "openpyxl" in str(excinfo.value)


def test_import_rejects_outdated_dependencies(monkeypatch):
    module = importlib.import_module("wifidata")

    from importlib import metadata as im

    def fake_version(name):
        return "1.0" if name == "pandas" else "9999"

    monkeypatch.setattr(im, "version", fake_version)

    with pytest.raises(ImportError, match=r"pandas>=2\.1 \(found 1\.0\)"):
        importlib.reload(module)


def test_public_names_are_exported():
    import wifidata

    for name in wifidata.__all__:
        assert hasattr(wifidata, name)
