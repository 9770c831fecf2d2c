from familyspots.client.api_client import FamilySpotsClient
from familyspots.client.page_cache import PageCache

__all__ = ["FamilySpotsClient", "PageCache"]
