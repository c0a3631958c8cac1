"""
botdarr - search and request movies and shows from chat through Radarr and Sonarr.
"""

__version__ = "1.0.0"
