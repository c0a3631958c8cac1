"""
Base *Arr Plugin
Contains the shared backend logic for Radarr and Sonarr.
This class is designed to be subclassed and have its endpoint
properties and payload builder overridden.
"""
from abc import abstractmethod
from typing import Any, Dict, List, Optional, Tuple

import requests

from botdarr.core.errors import ConfigError, FetchError
from botdarr.core.models import Entry, MessageKind, QueueItem, ReconciliationResult, StatusMessage
from botdarr.core.plugin_base import PluginBase
from botdarr.core.reconciler import DEFAULT_MAX_RESULTS, reconcile


class ArrBackend(PluginBase):
    """
    Shared base backend for *Arr services.
    """

    # --- Properties for Overriding ---

    @property
    def api_version(self) -> str:
        return "v3"

    @property
    @abstractmethod
    def media_noun(self) -> str:
        """Singular noun used in user messages ("movie", "show")"""

    @property
    @abstractmethod
    def library_endpoint(self) -> str:
        """API endpoint listing (GET) and adding (POST) library items"""

    @property
    @abstractmethod
    def item_search_endpoint(self) -> str:
        """API endpoint for a lookup"""

    @property
    @abstractmethod
    def id_field(self) -> str:
        """Record field holding the stable external id (tmdbId, tvdbId)"""

    @abstractmethod
    def _build_add_payload(self, item_json: Dict[str, Any], quality_profile_id: int, root_folder_path: str) -> Dict[str, Any]:
        """Builds the JSON payload for adding an item."""

    # --- Settings ---

    def is_enabled(self) -> bool:
        return super().is_enabled() and bool(self.get_setting("url"))

    @property
    def max_results(self) -> int:
        return self.get_setting("max_results", DEFAULT_MAX_RESULTS)

    def _get_arr_base_url(self) -> Tuple[str, str]:
        """Helper to get base URL and API key for this service."""
        base_url = self.get_setting("url")
        api_key = self.secure_storage.get_credential(f"{self.get_name()}_api_key") or self.get_setting("api_key")
        if not base_url or not api_key:
            raise ConfigError(f"{self.get_name()} URL or API Key is not set in settings.")
        return base_url.rstrip("/"), api_key

    # --- HTTP ---

    def _request(self, endpoint: str, **kwargs) -> Any:
        """Calls an endpoint of this service, turning request failures into FetchError."""
        base_url, api_key = self._get_arr_base_url()
        url = f"{base_url}/api/{self.api_version}/{endpoint}"
        try:
            return self.api_client.api_request(url, api_key, **kwargs)
        except requests.exceptions.HTTPError as err:
            status_code = err.response.status_code if err.response is not None else None
            body = err.response.text[:500] if err.response is not None else ""
            raise FetchError(f"{self.get_name()} returned {status_code}: {body}",
                             service=self.get_name(), status_code=status_code) from err
        except requests.exceptions.RequestException as e:
            raise FetchError(f"{self.get_name()} is unreachable: {e}", service=self.get_name()) from e

    def _to_entry(self, record: Dict[str, Any]) -> Optional[Entry]:
        entry_id = record.get(self.id_field)
        if not entry_id:
            return None
        return Entry(id=int(entry_id), title=record.get("title", "Unknown"), payload=record)

    def _to_entries(self, records: Any) -> List[Entry]:
        if not isinstance(records, list):
            raise FetchError(f"Unexpected response from {self.get_name()}: {type(records).__name__}",
                             service=self.get_name())
        entries = []
        for record in records:
            if not isinstance(record, dict):
                self.logger.warning(f"Skipping malformed {self.get_name()} record: {record!r}")
                continue
            entry = self._to_entry(record)
            if entry is None:
                self.logger.debug(f"Skipping {self.get_name()} record without {self.id_field}: {record.get('title')}")
                continue
            entries.append(entry)
        return entries

    # --- Gateway ---

    def fetch_all(self) -> List[Entry]:
        return self._to_entries(self._request(self.library_endpoint))

    def search(self, term: str) -> List[Entry]:
        return self._to_entries(self._request(self.item_search_endpoint, params={"term": term}))

    # --- Lookups ---

    def lookup(self, term: str, find_new: bool) -> ReconciliationResult:
        """Searches the backend and classifies the results against the cache."""
        try:
            results = self.search(term)
        except (FetchError, ConfigError) as e:
            self.logger.error(f"Search failed for '{term}': {e}")
            return ReconciliationResult.message(MessageKind.SEARCH_FAILED, f"Search failed for '{term}': {e.detail}")

        self._absorb_library_entries(results)
        return reconcile(results, self.cache, find_new, self.max_results, self.media_noun, term)

    def _absorb_library_entries(self, results: List[Entry]):
        """
        Lookup records carry a library id once the item is in the backend.
        Cache those now instead of waiting for the next scheduled reload.
        """
        for entry in results:
            if entry.payload.get("id") and not self.cache.contains(entry.id):
                self.logger.info(f"'{entry.title}' is in {self.get_name()} but not cached yet, caching it")
                self.cache.add(entry)

    # --- Adding ---

    def add_with_title(self, title: str) -> ReconciliationResult:
        """
        Adds the single new item matching a title. Several new matches are
        returned for the user to pick from instead.
        """
        result = self.lookup(title, find_new=True)
        if result.is_terminal:
            return result

        new_entries = [item.entry for item in result.entries if item.is_new]
        if len(new_entries) == 1 and not result.messages:
            return self._add(new_entries[0])

        self.logger.info(f"Found {len(new_entries)} new {self.media_noun}s for '{title}', asking user")
        return result

    def add_with_id(self, title: str, entry_id: int) -> ReconciliationResult:
        """Adds the search result for a title whose id matches entry_id."""
        noun = self.media_noun.capitalize()
        if self.cache.contains(entry_id):
            return ReconciliationResult.message(MessageKind.ALREADY_EXISTS, f"{noun} already exists")

        try:
            results = self.search(title)
        except (FetchError, ConfigError) as e:
            self.logger.error(f"Search failed for '{title}': {e}")
            return ReconciliationResult.message(MessageKind.SEARCH_FAILED, f"Search failed for '{title}': {e.detail}")

        for entry in results:
            if entry.id == entry_id:
                return self._add(entry)

        self.logger.warning(f"No {self.media_noun} with id {entry_id} found for '{title}'")
        return ReconciliationResult.message(
            MessageKind.NO_RESULTS, f"Could not find {self.media_noun} with search text={title} and id={entry_id}"
        )

    def _add(self, entry: Entry) -> ReconciliationResult:
        noun = self.media_noun.capitalize()
        try:
            payload = self._build_add_payload(dict(entry.payload), self._quality_profile_id(), self._root_folder_path())
            created = self._request(self.library_endpoint, method="POST", json_payload=payload)
        except FetchError as e:
            if e.status_code == 400 and ("already" in e.detail.lower() or "exist" in e.detail.lower()):
                self.logger.warning(f"'{entry.title}' already exists in {self.get_name()}")
                self.cache.add(entry)
                return ReconciliationResult.message(MessageKind.ALREADY_EXISTS, f"{noun} already exists")
            self.logger.error(f"Failed to add '{entry.title}': {e}")
            return ReconciliationResult.message(MessageKind.ADD_FAILED, f"Could not add {self.media_noun}, {e.detail}")
        except ConfigError as e:
            self.logger.error(f"Failed to add '{entry.title}': {e}")
            return ReconciliationResult.message(MessageKind.ADD_FAILED, f"Could not add {self.media_noun}, {e.detail}")

        added = (self._to_entry(created) if isinstance(created, dict) else None) or entry
        self.cache.add(added)
        self.logger.info(f"Successfully added '{added.title}' to {self.get_name()}")
        self.event_bus.publish("item_added", self.get_name(), dict(added.payload))
        return ReconciliationResult.message(MessageKind.ADDED, f"{noun} added, {added.title}")

    def _quality_profile_id(self) -> int:
        """Resolves the configured default profile name to its id."""
        wanted = str(self.get_setting("default_profile", "any")).strip().lower()
        profiles = self._request("qualityprofile")
        for profile in profiles or []:
            if str(profile.get("name", "")).lower() == wanted:
                return profile["id"]
        raise ConfigError(f"Quality profile '{wanted}' not found in {self.get_name()}")

    def _root_folder_path(self) -> str:
        configured = self.get_setting("root_folder")
        if configured:
            return configured
        folders = self._request("rootfolder")
        if not folders:
            raise ConfigError(f"No root folder configured in {self.get_name()}")
        return folders[0]["path"]

    # --- Profiles ---

    def profiles(self) -> ReconciliationResult:
        """Lists the quality profiles items can be added under."""
        try:
            profiles = self._request("qualityprofile")
        except (FetchError, ConfigError) as e:
            self.logger.error(f"Failed to fetch {self.get_name()} profiles: {e}")
            return ReconciliationResult.message(MessageKind.SEARCH_FAILED, f"Could not load profiles, {e.detail}")

        profiles = [p for p in profiles or [] if isinstance(p, dict)]
        if not profiles:
            return ReconciliationResult.message(MessageKind.NO_RESULTS, "No profiles found")
        return ReconciliationResult(tuple(
            StatusMessage(MessageKind.PROFILE, self._format_profile(profile)) for profile in profiles
        ))

    @staticmethod
    def _format_profile(profile: Dict[str, Any]) -> str:
        # Items are single qualities or named groups of them
        allowed = [
            item.get("quality", {}).get("name") or item.get("name", "Unknown")
            for item in profile.get("items", []) if item.get("allowed")
        ]
        text = profile.get("name", "Unknown")
        if allowed:
            text += f": {', '.join(allowed)}"
        return text

    # --- Downloads ---

    def fetch_queue(self) -> List[QueueItem]:
        """Active downloads, in queue order."""
        response = self._request("queue", params={"pageSize": self.max_results})
        records = response.get("records", []) if isinstance(response, dict) else response or []

        items = []
        for record in records:
            if not isinstance(record, dict):
                continue
            size = record.get("size") or 0
            size_left = record.get("sizeleft") or 0
            progress = (size - size_left) / size * 100 if size else 0.0
            items.append(QueueItem(
                id=record.get("id", 0),
                title=record.get("title", "Unknown"),
                status=record.get("status", "unknown"),
                time_left=record.get("timeleft"),
                progress=round(progress, 1),
            ))
        return items

    def downloads(self) -> ReconciliationResult:
        """Renders the download queue as status messages."""
        try:
            queue = self.fetch_queue()
        except (FetchError, ConfigError) as e:
            self.logger.error(f"Failed to fetch {self.get_name()} queue: {e}")
            return ReconciliationResult.message(MessageKind.SEARCH_FAILED, f"Could not load downloads, {e.detail}")

        if not queue:
            return ReconciliationResult.message(MessageKind.NO_DOWNLOADS, f"No {self.media_noun}s downloading")
        return ReconciliationResult(tuple(
            StatusMessage(MessageKind.DOWNLOAD, self._format_download(item)) for item in queue[:self.max_results]
        ))

    @staticmethod
    def _format_download(item: QueueItem) -> str:
        text = f"{item.title}: {item.status}, {item.progress:.0f}% done"
        if item.time_left:
            text += f", {item.time_left} left"
        return text

    def send_periodic_notifications(self, notifier):
        if not self.get_setting("notify_downloads", True):
            return
        queue = self.fetch_queue()
        self.logger.debug(f"Sending {len(queue)} download notifications for {self.get_name()}")
        for item in queue:
            notifier.notify(self.get_name(), self._format_download(item))
