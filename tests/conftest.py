import logging
import threading
from typing import Any, Dict, List, Optional

import pytest
import requests

from botdarr.core.cache import MediaCache
from botdarr.core.event_bus import EventBus
from botdarr.core.models import Entry
from botdarr.core.secure_storage import SecureStorage
from botdarr.core.settings_manager import SettingsManager


def make_entries(count: int, start: int = 1) -> List[Entry]:
    return [Entry(id=i, title=f"movie{i}") for i in range(start, start + count)]


class FakeFetcher:
    """Returns queued fetch results in order; a queued exception is raised."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            self.calls += 1
            result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


class FakeApiClient:
    """
    Records requests and answers them from a {(method, endpoint-suffix): response} map.
    A response that is an exception is raised instead.
    """

    def __init__(self, routes: Optional[Dict[Any, Any]] = None):
        self.routes = routes or {}
        self.requests: List[Dict[str, Any]] = []

    def api_request(self, url, api_key=None, params=None, method="GET", json_payload=None, timeout=None):
        self.requests.append({"url": url, "api_key": api_key, "params": params, "method": method, "json": json_payload})
        for (route_method, suffix), response in self.routes.items():
            if route_method == method and url.endswith(suffix):
                if isinstance(response, Exception):
                    raise response
                return response
        raise requests.exceptions.ConnectionError(f"no route for {method} {url}")

    def close(self):
        pass


class NoKeyringStorage(SecureStorage):
    def get_credential(self, key: str):
        return None


class RecordingNotifier:
    def __init__(self):
        self.messages = []

    def notify(self, service_name: str, message: str):
        self.messages.append((service_name, message))


def http_error(status_code: int, text: str = "") -> requests.exceptions.HTTPError:
    response = requests.Response()
    response.status_code = status_code
    response._content = text.encode()
    return requests.exceptions.HTTPError(f"{status_code} Client Error", response=response)


@pytest.fixture
def settings(tmp_path) -> SettingsManager:
    ini = tmp_path / "botdarr.ini"
    ini.write_text(
        "[radarr]\n"
        "url=http://radarr.local:7878/\n"
        "api_key=radarr-key\n"
        "default_profile=HD-1080p\n"
        "root_folder=/movies\n"
        "\n"
        "[sonarr]\n"
        "url=http://sonarr.local:8989\n"
        "api_key=sonarr-key\n"
        "default_profile=any\n"
        "root_folder=/tv\n"
    )
    return SettingsManager(str(ini))


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def plugin_args(settings, event_bus):
    def build(api_client):
        return (logging.getLogger("tests"), settings, NoKeyringStorage(), api_client, event_bus)
    return build


@pytest.fixture
def empty_cache() -> MediaCache:
    return MediaCache("radarr", FakeFetcher([]))


@pytest.fixture
def cache_with():
    def build(*entries: Entry) -> MediaCache:
        cache = MediaCache("radarr", FakeFetcher([]))
        for entry in entries:
            cache.add(entry)
        return cache
    return build

