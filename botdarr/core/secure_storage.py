"""
Secure credential management using the keyring library.
Provides a central service for retrieving backend API keys.
Keys are stored with the keyring CLI, e.g. `keyring set botdarr radarr_api_key`.
"""

import logging

import keyring

logger = logging.getLogger(__name__)

# Use a single, consistent service name for the application
KEYRING_SERVICE_NAME = "botdarr"


class SecureStorage:
    """A wrapper for the keyring library."""

    def get_credential(self, key: str) -> str | None:
        """
        Retrieves a credential from the OS secure vault.

        Args:
            key: The unique identifier (e.g., "radarr_api_key")
        Returns:
            The stored secret or None if not found.
        """
        try:
            password = keyring.get_password(KEYRING_SERVICE_NAME, key)
            if password:
                logger.debug(f"Retrieved credential for: {key}")
            return password
        except Exception as e:
            # Headless hosts often have no keyring backend at all
            logger.warning(f"Failed to retrieve credential for {key}: {e}")
            return None
