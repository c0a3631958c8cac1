import pytest
import requests

from botdarr.core.errors import ConfigError, FetchError
from botdarr.core.models import EntryStatus, MessageKind
from botdarr.plugins.plugin_radarr import RadarrBackend
from botdarr.plugins.plugin_sonarr import SonarrBackend
from conftest import FakeApiClient, RecordingNotifier, http_error

PROFILES = [{"id": 1, "name": "Any"}, {"id": 4, "name": "HD-1080p"}]


def movie(tmdb_id: int, title: str = None, library_id: int = 0) -> dict:
    record = {"tmdbId": tmdb_id, "title": title or f"movie{tmdb_id}", "titleSlug": f"movie-{tmdb_id}", "year": 2014}
    if library_id:
        record["id"] = library_id
    return record


@pytest.fixture
def radarr(plugin_args):
    def build(routes):
        return RadarrBackend(*plugin_args(FakeApiClient(routes)))
    return build


def test_fetch_all_builds_entries(radarr) -> None:
    backend = radarr({("GET", "/api/v3/movie"): [movie(1, library_id=10), movie(2, library_id=11), {"title": "no id"}]})

    entries = backend.fetch_all()

    assert [(e.id, e.title) for e in entries] == [(1, "movie1"), (2, "movie2")]
    request = backend.api_client.requests[0]
    assert request["url"] == "http://radarr.local:7878/api/v3/movie"
    assert request["api_key"] == "radarr-key"


def test_fetch_all_wraps_network_errors(radarr) -> None:
    backend = radarr({("GET", "/api/v3/movie"): requests.exceptions.ConnectTimeout("timed out")})

    with pytest.raises(FetchError) as exc_info:
        backend.fetch_all()

    assert exc_info.value.service == "radarr"


def test_cache_reload_goes_through_backend(radarr) -> None:
    backend = radarr({("GET", "/api/v3/movie"): [movie(1, library_id=10)]})

    assert backend.cache.reload() == 1
    assert backend.cache.contains(1)


def test_search_sends_term(radarr) -> None:
    backend = radarr({("GET", "/movie/lookup"): [movie(5)]})

    backend.search("John Wick")

    assert backend.api_client.requests[0]["params"] == {"term": "John Wick"}


def test_lookup_find_new_too_many_results(radarr) -> None:
    backend = radarr({("GET", "/movie/lookup"): [movie(i) for i in range(1, 41)]})

    result = backend.lookup("searchTerm", find_new=True)

    assert len(result) == 21
    assert result[0].text == "Too many movies found, please narrow search"


def test_lookup_existing_movie_not_returned_when_finding_new(radarr) -> None:
    backend = radarr({("GET", "/movie/lookup"): [movie(1)]})
    backend.cache.add(backend._to_entry(movie(1)))

    result = backend.lookup("searchTerm", find_new=True)

    assert result.is_terminal
    assert result[0].kind is MessageKind.ALREADY_EXISTS


def test_lookup_existing_movie_returned(radarr) -> None:
    backend = radarr({("GET", "/movie/lookup"): [movie(1)]})
    backend.cache.add(backend._to_entry(movie(1)))

    result = backend.lookup("searchTerm", find_new=False)

    assert len(result) == 1
    assert result[0].entry.title == "movie1"
    assert result[0].status is EntryStatus.EXISTING


def test_lookup_absorbs_library_records(radarr) -> None:
    backend = radarr({("GET", "/movie/lookup"): [movie(1, library_id=33), movie(2)]})

    result = backend.lookup("movie", find_new=True)

    assert backend.cache.contains(1)
    assert not backend.cache.contains(2)
    assert [item.entry.id for item in result.entries] == [2]


def test_lookup_search_failure_is_reported(radarr) -> None:
    backend = radarr({("GET", "/movie/lookup"): http_error(500, "boom")})

    result = backend.lookup("searchTerm", find_new=True)

    assert result.is_terminal
    assert result[0].kind is MessageKind.SEARCH_FAILED


def test_add_with_title_adds_single_new_movie(radarr, event_bus) -> None:
    added_events = []
    event_bus.subscribe("item_added", lambda service, data: added_events.append((service, data["title"])))
    backend = radarr({
        ("GET", "/movie/lookup"): [movie(7, "John Wick")],
        ("GET", "/qualityprofile"): PROFILES,
        ("POST", "/api/v3/movie"): movie(7, "John Wick", library_id=99),
    })

    result = backend.add_with_title("John Wick")

    assert result[0].kind is MessageKind.ADDED
    assert result[0].text == "Movie added, John Wick"
    assert backend.cache.contains(7)
    assert added_events == [("radarr", "John Wick")]

    post = backend.api_client.requests[-1]
    assert post["method"] == "POST"
    assert post["json"]["qualityProfileId"] == 4
    assert post["json"]["rootFolderPath"] == "/movies"
    assert post["json"]["addOptions"] == {"searchForMovie": True}
    assert post["json"]["titleSlug"] == "movie-7"


def test_add_with_title_no_movies_found(radarr) -> None:
    backend = radarr({("GET", "/movie/lookup"): []})

    result = backend.add_with_title("searchTerm")

    assert result[0].text == "No movies found"


def test_add_with_title_existing_single_result(radarr) -> None:
    backend = radarr({("GET", "/movie/lookup"): [movie(1)]})
    backend.cache.add(backend._to_entry(movie(1)))

    result = backend.add_with_title("searchTerm")

    assert result[0].text == "Movie already exists"


def test_add_with_title_existing_multiple_results(radarr) -> None:
    backend = radarr({("GET", "/movie/lookup"): [movie(1), movie(2)]})
    backend.cache.add(backend._to_entry(movie(1)))
    backend.cache.add(backend._to_entry(movie(2)))

    result = backend.add_with_title("movie1")

    assert result[0].text == "No new movies found, check existing movies"


def test_add_with_title_multiple_new_asks_user(radarr) -> None:
    backend = radarr({("GET", "/movie/lookup"): [movie(1), movie(2)]})

    result = backend.add_with_title("movie")

    assert [item.entry.id for item in result.entries] == [1, 2]
    assert all(request["method"] == "GET" for request in backend.api_client.requests)


def test_add_with_id_already_cached(radarr) -> None:
    backend = radarr({})
    backend.cache.add(backend._to_entry(movie(484737, "John Wick")))

    result = backend.add_with_id("John Wick", 484737)

    assert result[0].kind is MessageKind.ALREADY_EXISTS
    assert backend.api_client.requests == []


def test_add_with_id_not_in_results(radarr) -> None:
    backend = radarr({("GET", "/movie/lookup"): [movie(1)]})

    result = backend.add_with_id("John Wick", 484737)

    assert result[0].kind is MessageKind.NO_RESULTS


def test_add_existing_in_backend_updates_cache(radarr) -> None:
    backend = radarr({
        ("GET", "/movie/lookup"): [movie(7)],
        ("GET", "/qualityprofile"): PROFILES,
        ("POST", "/api/v3/movie"): http_error(400, "This movie has already been added"),
    })

    result = backend.add_with_id("movie7", 7)

    assert result[0].kind is MessageKind.ALREADY_EXISTS
    assert backend.cache.contains(7)


def test_add_failure_is_reported(radarr) -> None:
    backend = radarr({
        ("GET", "/movie/lookup"): [movie(7)],
        ("GET", "/qualityprofile"): [{"id": 1, "name": "Any"}],
    })

    result = backend.add_with_id("movie7", 7)

    # default_profile HD-1080p is not on the server
    assert result[0].kind is MessageKind.ADD_FAILED
    assert not backend.cache.contains(7)


def test_downloads_none(radarr) -> None:
    backend = radarr({("GET", "/api/v3/queue"): {"records": []}})

    result = backend.downloads()

    assert result[0].text == "No movies downloading"


def test_downloads_found(radarr) -> None:
    backend = radarr({("GET", "/api/v3/queue"): {"records": [
        {"id": 1, "title": "John.Wick.2014", "status": "downloading", "timeleft": "00:05:00", "size": 200, "sizeleft": 50},
    ]}})

    result = backend.downloads()

    assert len(result) == 1
    assert result[0].kind is MessageKind.DOWNLOAD
    assert result[0].text == "John.Wick.2014: downloading, 75% done, 00:05:00 left"


def test_periodic_notifications_forward_downloads(radarr) -> None:
    backend = radarr({("GET", "/api/v3/queue"): [
        {"id": 1, "title": "Alien", "status": "queued"},
    ]})
    notifier = RecordingNotifier()

    backend.send_periodic_notifications(notifier)

    assert notifier.messages == [("radarr", "Alien: queued, 0% done")]


def test_periodic_notifications_can_be_disabled(radarr) -> None:
    backend = radarr({})
    backend.set_setting("notify_downloads", False)
    notifier = RecordingNotifier()

    backend.send_periodic_notifications(notifier)

    assert notifier.messages == []
    assert backend.api_client.requests == []


def test_missing_url_disables_backend(plugin_args) -> None:
    backend = RadarrBackend(*plugin_args(FakeApiClient()))
    backend.settings.clear_plugin_settings("radarr")

    assert not backend.is_enabled()
    with pytest.raises(ConfigError):
        backend.fetch_all()


def test_sonarr_payload(plugin_args) -> None:
    show = {"tvdbId": 81189, "title": "Breaking Bad", "seasons": [{"seasonNumber": 1, "monitored": True}]}
    backend = SonarrBackend(*plugin_args(FakeApiClient({
        ("GET", "/series/lookup"): [show],
        ("GET", "/qualityprofile"): PROFILES,
        ("POST", "/api/v3/series"): dict(show, id=3),
    })))

    result = backend.add_with_title("Breaking Bad")

    assert result[0].text == "Show added, Breaking Bad"
    payload = backend.api_client.requests[-1]["json"]
    assert payload["tvdbId"] == 81189
    assert payload["qualityProfileId"] == 1
    assert payload["rootFolderPath"] == "/tv"
    assert payload["seasons"] == show["seasons"]
    assert "languageProfileId" not in payload


def test_missing_api_key_is_reported_not_raised(radarr) -> None:
    backend = radarr({})
    backend.set_setting("api_key", "")

    assert backend.is_enabled()
    for result in (backend.lookup("John Wick", find_new=True),
                   backend.add_with_id("John Wick", 245891),
                   backend.add_with_title("John Wick"),
                   backend.downloads(),
                   backend.profiles()):
        assert result.is_terminal
        assert result[0].kind is MessageKind.SEARCH_FAILED
    assert backend.api_client.requests == []


def test_malformed_records_are_skipped(radarr) -> None:
    backend = radarr({("GET", "/api/v3/movie"): [movie(1), "garbage", None, movie(2)]})

    assert [e.id for e in backend.fetch_all()] == [1, 2]


def test_profiles_listed(radarr) -> None:
    backend = radarr({("GET", "/qualityprofile"): [
        {"id": 1, "name": "Any", "items": [
            {"quality": {"name": "SDTV"}, "allowed": True},
            {"quality": {"name": "Bluray-480p"}, "allowed": False},
            {"name": "WEB 1080p", "items": [], "allowed": True},
        ]},
        {"id": 4, "name": "HD-1080p"},
    ]})

    result = backend.profiles()

    assert [item.kind for item in result] == [MessageKind.PROFILE, MessageKind.PROFILE]
    assert [item.text for item in result] == ["Any: SDTV, WEB 1080p", "HD-1080p"]


def test_profiles_none(radarr) -> None:
    backend = radarr({("GET", "/qualityprofile"): []})

    assert backend.profiles()[0].text == "No profiles found"


def release(guid: str, rejected: bool = False) -> dict:
    return {
        "guid": guid, "indexerId": 3, "indexer": "nyaa", "title": f"John.Wick.2014.{guid}",
        "quality": {"quality": {"name": "Bluray-1080p"}}, "size": 2 * 1024 ** 3,
        "protocol": "torrent", "seeders": 12, "rejected": rejected,
        "rejections": ["Quality not wanted"] if rejected else [],
    }


def test_releases_hide_rejected(radarr) -> None:
    backend = radarr({
        ("GET", "/movie/lookup"): [movie(245891, "John Wick", library_id=8), movie(2, "John Wick 2")],
        ("GET", "/api/v3/release"): [release("a"), release("b", rejected=True)],
    })

    result = backend.releases("John Wick")

    assert [item.kind for item in result] == [MessageKind.RELEASE]
    assert result[0].text == "John.Wick.2014.a [Bluray-1080p, 2.00 GB, nyaa], seeders=12, guid=a"
    assert backend.api_client.requests[-1]["params"] == {"movieId": 8}


def test_releases_include_rejected(radarr) -> None:
    backend = radarr({
        ("GET", "/movie/lookup"): [movie(245891, "John Wick", library_id=8)],
        ("GET", "/api/v3/release"): [release("a"), release("b", rejected=True)],
    })

    result = backend.releases("John Wick", include_rejected=True)

    assert len(result) == 2
    assert result[1].text.endswith("rejected: Quality not wanted, guid=b")


def test_releases_use_cached_library_id(radarr) -> None:
    backend = radarr({
        ("GET", "/movie/lookup"): [movie(245891, "John Wick")],
        ("GET", "/api/v3/release"): [release("a")],
    })
    backend.cache.add(backend._to_entry(movie(245891, "John Wick", library_id=8)))

    result = backend.releases("John Wick")

    assert result[0].kind is MessageKind.RELEASE
    assert backend.api_client.requests[-1]["params"] == {"movieId": 8}


def test_releases_require_movie_in_library(radarr) -> None:
    backend = radarr({("GET", "/movie/lookup"): [movie(245891, "John Wick")]})

    result = backend.releases("John Wick")

    assert result[0].kind is MessageKind.NO_RESULTS
    assert len(backend.api_client.requests) == 1


def test_releases_ambiguous_title(radarr) -> None:
    backend = radarr({("GET", "/movie/lookup"): [
        movie(1, "John Wick 2", library_id=8), movie(2, "John Wick 3", library_id=9),
    ]})

    result = backend.releases("John Wick")

    assert result[0].kind is MessageKind.TOO_MANY_RESULTS


def test_releases_truncated(radarr) -> None:
    backend = radarr({
        ("GET", "/movie/lookup"): [movie(245891, "John Wick", library_id=8)],
        ("GET", "/api/v3/release"): [release(str(i)) for i in range(25)],
    })
    backend.set_setting("max_results", 20)

    result = backend.releases("John Wick")

    assert len(result) == 21
    assert result[0].kind is MessageKind.TOO_MANY_RESULTS


def test_force_download_listed_release(radarr) -> None:
    backend = radarr({
        ("GET", "/movie/lookup"): [movie(245891, "John Wick", library_id=8)],
        ("GET", "/api/v3/release"): [release("a")],
        ("POST", "/api/v3/release"): {},
    })
    backend.releases("John Wick")

    result = backend.force_download("a")

    assert result[0].kind is MessageKind.DOWNLOAD_STARTED
    assert result[0].text == "Download started, John.Wick.2014.a"
    assert backend.api_client.requests[-1]["json"] == {"guid": "a", "indexerId": 3}


def test_force_download_unknown_guid(radarr) -> None:
    backend = radarr({})

    result = backend.force_download("nope")

    assert result[0].kind is MessageKind.NO_RESULTS
    assert backend.api_client.requests == []


def test_force_download_failure_is_reported(radarr) -> None:
    backend = radarr({
        ("GET", "/movie/lookup"): [movie(245891, "John Wick", library_id=8)],
        ("GET", "/api/v3/release"): [release("a")],
        ("POST", "/api/v3/release"): http_error(500, "indexer down"),
    })
    backend.releases("John Wick")

    result = backend.force_download("a")

    assert result[0].kind is MessageKind.DOWNLOAD_FAILED
