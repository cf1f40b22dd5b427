"""
Metadata gateway: TMDb search/detail lookups reshaped into the internal schema.
"""

from media_tracker.metadata.gateway import MetadataGateway, MetadataSource
from media_tracker.metadata.http_client import SearchMediaClient

__all__ = [
    "MetadataGateway",
    "MetadataSource",
    "SearchMediaClient",
]
