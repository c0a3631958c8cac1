"""
Sonarr Plugin - TV Show management
"""
from typing import Any, Dict

from .plugin_arr_base import ArrBackend


class SonarrBackend(ArrBackend):
    """Sonarr TV show management."""

    def get_name(self) -> str:
        return "sonarr"

    def get_version(self) -> str:
        return "1.0.0"

    def get_description(self) -> str:
        return "Search and request TV shows with Sonarr"

    @property
    def media_noun(self) -> str:
        return "show"

    @property
    def library_endpoint(self) -> str:
        return "series"

    @property
    def item_search_endpoint(self) -> str:
        return "series/lookup"

    @property
    def id_field(self) -> str:
        return "tvdbId"

    def _build_add_payload(self, item_json: Dict[str, Any], quality_profile_id: int, root_folder_path: str) -> Dict[str, Any]:
        """Builds the JSON payload for adding a Sonarr series."""
        payload = {
            "tvdbId": item_json.get("tvdbId"),
            "title": item_json.get("title"),
            "qualityProfileId": quality_profile_id,
            "rootFolderPath": root_folder_path,
            "monitored": True,
            "seasonFolder": True,
            "seasons": item_json.get("seasons", []),
            "addOptions": {"searchForMissingEpisodes": True},
            **{k: item_json[k] for k in ["titleSlug", "images", "year"] if k in item_json}
        }
        language_profile_id = self.get_setting("language_profile_id", 0)
        if language_profile_id:
            payload["languageProfileId"] = language_profile_id
        return payload
