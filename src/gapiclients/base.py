"""
Runtime shared by the generated clients: the one function that touches the
network and the base class holding a client's credentials and base URL.
"""
from typing import Any, List, Tuple
from urllib.parse import urlencode
import asyncio
import logging

import requests
import uritemplate
from google.auth.transport.requests import AuthorizedSession

from .access import CredentialsClient, GoogleAuth
from .resources import ApiResource

logger = logging.getLogger(__name__)


def _send(url: str, client: CredentialsClient|GoogleAuth|None,
          method: str, body: str|None) -> requests.Response:
    if isinstance(client, GoogleAuth):
        client = client.credentials()
    session = requests.Session() if client is None else AuthorizedSession(client)
    headers = {"Content-Type": "application/json"} if body is not None else {}
    with session:
        return session.request(method, url, data=body, headers=headers)


async def request(url: str,
                  client: CredentialsClient|GoogleAuth|None = None,
                  method: str = "GET",
                  body: str|None = None) -> Any:
    """
    Issue one HTTP call and hand back the decoded JSON.
    The blocking call runs in a worker thread so the calling coroutine only
    suspends here.  HTTP failures come out as requests.HTTPError, nothing
    is retried or wrapped.
    """
    logger.debug("%s %s", method, url)
    response = await asyncio.to_thread(_send, url, client, method, body)
    response.raise_for_status()
    if not response.content:
        return None
    return response.json()


def query_items(params: dict) -> List[Tuple[str, str]]:
    """
    Flatten wire-encoded query options into (key, value) pairs.
    Repeated parameters repeat the key, booleans are lower case like JSON.
    """
    items = []
    for k, v in params.items():
        for i in (v if isinstance(v, list) else [v]):
            if i is None:
                continue
            if isinstance(i, bool):
                i = "true" if i else "false"
            items.append((k, str(i)))
    return items


class ApiClient():
    """
    Base of every generated client.  Holds the optional credentials and the
    service base URL, both fixed at construction.
    """
    def __init__(self, client: CredentialsClient|GoogleAuth|None = None,
                 base_url: str = "") -> None:
        self._client = client
        self._base_url = base_url

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._base_url})"

    @property
    def client(self) -> CredentialsClient|GoogleAuth|None:
        return self._client

    @property
    def base_url(self) -> str:
        return self._base_url

    def _url(self, template: str, params: dict|None = None,
             opts: ApiResource|None = None) -> str:
        """
        Expand a discovery path template (RFC 6570, '{+name}' keeps reserved
        characters like '/', '{name}' encodes everything) against the base
        URL and append any query options that are set.
        """
        url = self._base_url + uritemplate.expand(template, params or {})
        if opts is not None:
            query = query_items(opts.to_wire())
            if query:
                url = f"{url}?{urlencode(query)}"
        return url
