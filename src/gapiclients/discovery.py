"""
Access to the Google API Discovery service, the catalog the clients are
generated from.
https://developers.google.com/discovery/v1/reference
"""
from dataclasses import dataclass
from typing import Any, List

from .access import service
from .base import request
from .resources import ApiResource, wire


@dataclass
class DirectoryItem(ApiResource):
    """
    https://developers.google.com/discovery/v1/reference/apis/list#response
    One API in the discovery directory.
    """
    kind: str|None = wire()
    id: str|None = wire()
    name: str|None = wire()
    version: str|None = wire()
    title: str|None = wire()
    description: str|None = wire()
    discoveryRestUrl: str|None = wire()
    discoveryLink: str|None = wire()
    icons: dict|None = wire()
    documentationLink: str|None = wire()
    labels: List[str]|None = wire()
    preferred: bool|None = wire()

    def __str__(self) -> str:
        return f"{self.name}:{self.version}"


@service("discovery", "v1", anonymous=True)
def list_apis(preferred: bool = True, name: str|None = None, service=None) -> List[DirectoryItem]:
    """
    https://developers.google.com/discovery/v1/reference/apis/list
    The catalog of APIs, only the preferred version of each by default.
    The decorator hands in an unauthenticated discovery service.
    """
    args = {"preferred": preferred}
    if name:
        args["name"] = name
    response = service.apis().list(**args).execute()
    return [DirectoryItem.from_wire(i) for i in (response or {}).get("items", [])]


@service("discovery", "v1", anonymous=True)
def get_rest(api: str, version: str, service=None) -> dict:
    """
    https://developers.google.com/discovery/v1/reference/apis/getRest
    The REST description of one API version.
    """
    return service.apis().getRest(api=api, version=version).execute()


async def fetch_rest(item: DirectoryItem) -> Any:
    """
    Fetch a REST description straight from the item's discoveryRestUrl.
    Goes through the shared request() so many can be in flight at once.
    """
    if not item.discoveryRestUrl:
        raise ValueError(f"{item} has no discoveryRestUrl")
    return await request(item.discoveryRestUrl, client=None, method="GET")
