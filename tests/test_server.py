import json
import threading
import urllib.error
import urllib.request

import pytest

from wifidata.api import WifiPointApi
from wifidata.entities import WifiPoint
from wifidata.server import make_server
from wifidata.service import WifiPointService
from wifidata.store import WifiPointStore, create_sqlite_memory_engine


@pytest.fixture
def base_url():
    store = WifiPointStore(create_sqlite_memory_engine())
    store.bulk_insert(
        [
            WifiPoint(id="A", programa="Pilares", latitude=19.0, longitude=-99.0, alcaldia="Tlalpan"),
            WifiPoint(id="B", programa="Pilares", latitude=19.1, longitude=-99.0, alcaldia="Tlalpan"),
        ]
    )
    httpd = make_server(WifiPointApi(WifiPointService(store)), "127.0.0.1", 0)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{httpd.server_address[1]}"
    finally:
        httpd.shutdown()
        httpd.server_close()


def _get(url):
    with urllib.request.urlopen(url, timeout=5) as resp:
        return resp.status, resp.headers.get("Content-Type"), json.loads(resp.read())


def test_nearby_over_http(base_url):
    status, content_type, body = _get(
        f"{base_url}/api/v1/wifi-points/nearby?lat=19.0&lon=-99.0&size=1"
    )

    assert status == 200
    assert content_type.startswith("application/json")
    assert [item["id"] for item in body["content"]] == ["A"]
    assert body["total_elements"] == 2


def test_errors_carry_status_and_envelope(base_url):
    with pytest.raises(urllib.error.HTTPError) as excinfo:
        _get(f"{base_url}/api/v1/wifi-points/nearby?lat=91&lon=0")

    assert excinfo.value.code == 400
    body = json.loads(excinfo.value.read())
    assert body["status"] == 400
    assert body["path"] == "/api/v1/wifi-points/nearby"


def test_non_get_methods_are_rejected(base_url):
    req = urllib.request.Request(f"{base_url}/api/v1/wifi-points", data=b"{}", method="POST")

    with pytest.raises(urllib.error.HTTPError) as excinfo:
        urllib.request.urlopen(req, timeout=5)

    assert excinfo.value.code == 405
