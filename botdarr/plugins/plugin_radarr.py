"""
Radarr Plugin - Movie management
Inherits from ArrBackend and uses the default (v3) logic.
Adds the indexer release listing and forced downloads.
"""
from typing import Any, Dict, Optional

from botdarr.core.errors import ConfigError, FetchError
from botdarr.core.models import Entry, MessageKind, ReconciliationResult, StatusMessage

from .plugin_arr_base import ArrBackend


class RadarrBackend(ArrBackend):
    """Radarr movie management."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # guid -> release record from the last release listings
        self._releases: Dict[str, Dict[str, Any]] = {}

    def get_name(self) -> str:
        return "radarr"

    def get_version(self) -> str:
        return "1.0.0"

    def get_description(self) -> str:
        return "Search and request movies with Radarr"

    @property
    def media_noun(self) -> str:
        return "movie"

    @property
    def library_endpoint(self) -> str:
        return "movie"

    @property
    def item_search_endpoint(self) -> str:
        return "movie/lookup"

    @property
    def id_field(self) -> str:
        return "tmdbId"

    def _build_add_payload(self, item_json: Dict[str, Any], quality_profile_id: int, root_folder_path: str) -> Dict[str, Any]:
        """Builds the JSON payload for adding a Radarr movie."""
        return {
            "tmdbId": item_json.get("tmdbId"),
            "title": item_json.get("title"),
            "qualityProfileId": quality_profile_id,
            "rootFolderPath": root_folder_path,
            "monitored": True,
            "addOptions": {"searchForMovie": True},
            **{k: item_json[k] for k in ["titleSlug", "images", "year"] if k in item_json}
        }

    # --- Releases ---

    def releases(self, title: str, include_rejected: bool = False) -> ReconciliationResult:
        """
        Lists the indexer releases of a movie already in Radarr.
        Releases Radarr rejected for the movie's profile are only listed
        when include_rejected is set.
        """
        try:
            results = self.search(title)
        except (FetchError, ConfigError) as e:
            self.logger.error(f"Search failed for '{title}': {e}")
            return ReconciliationResult.message(MessageKind.SEARCH_FAILED, f"Search failed for '{title}': {e.detail}")

        in_library = [entry for entry in results if self._library_id(entry)]
        if not in_library:
            return ReconciliationResult.message(
                MessageKind.NO_RESULTS, f"No movies found in {self.get_name()}, add the movie first"
            )
        exact = [entry for entry in in_library if entry.title.lower() == title.strip().lower()]
        if len(exact) == 1:
            in_library = exact
        if len(in_library) > 1:
            return ReconciliationResult.message(
                MessageKind.TOO_MANY_RESULTS, "Too many movies found, please narrow search"
            )

        movie = in_library[0]
        try:
            records = self._request("release", params={"movieId": self._library_id(movie)})
        except (FetchError, ConfigError) as e:
            self.logger.error(f"Failed to fetch releases for '{movie.title}': {e}")
            return ReconciliationResult.message(
                MessageKind.SEARCH_FAILED, f"Could not load downloads for {movie.title}, {e.detail}"
            )

        releases = [
            record for record in records or []
            if isinstance(record, dict) and record.get("guid") and (include_rejected or not record.get("rejected"))
        ]
        if not releases:
            return ReconciliationResult.message(MessageKind.NO_RESULTS, f"No downloads found for {movie.title}")

        self._releases.update({record["guid"]: record for record in releases})
        items = [StatusMessage(MessageKind.RELEASE, self._format_release(record))
                 for record in releases[:self.max_results]]
        if len(releases) > self.max_results:
            items.insert(0, StatusMessage(
                MessageKind.TOO_MANY_RESULTS, f"Too many downloads found, showing the first {self.max_results}"
            ))
        self.logger.info(f"Found {len(releases)} releases for '{movie.title}'")
        return ReconciliationResult(tuple(items))

    def force_download(self, guid: str) -> ReconciliationResult:
        """Sends a release from an earlier listing to the download client."""
        release = self._releases.get(guid)
        if release is None:
            return ReconciliationResult.message(
                MessageKind.NO_RESULTS, f"Unknown download {guid}, list the downloads for the movie first"
            )

        try:
            self._request("release", method="POST",
                          json_payload={"guid": guid, "indexerId": release.get("indexerId")})
        except (FetchError, ConfigError) as e:
            self.logger.error(f"Failed to download '{release.get('title')}': {e}")
            return ReconciliationResult.message(MessageKind.DOWNLOAD_FAILED, f"Could not start download, {e.detail}")

        self.logger.info(f"Forced download of '{release.get('title')}'")
        return ReconciliationResult.message(MessageKind.DOWNLOAD_STARTED, f"Download started, {release.get('title')}")

    def _library_id(self, entry: Entry) -> Optional[int]:
        cached = self.cache.lookup(entry.id)
        return entry.payload.get("id") or (cached.payload.get("id") if cached else None)

    @staticmethod
    def _format_release(record: Dict[str, Any]) -> str:
        quality = record.get("quality", {}).get("quality", {}).get("name", "unknown quality")
        size_gb = (record.get("size") or 0) / 1024 ** 3
        text = f"{record.get('title', 'Unknown')} [{quality}, {size_gb:.2f} GB, {record.get('indexer', 'unknown indexer')}]"
        if record.get("protocol") == "torrent":
            text += f", seeders={record.get('seeders') or 0}"
        if record.get("rejected"):
            text += f", rejected: {'; '.join(record.get('rejections') or [])}"
        return f"{text}, guid={record['guid']}"
