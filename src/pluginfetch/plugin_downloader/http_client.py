"""
HTTP client used to download plugins.
"""

import httpx

from pluginfetch.pluginfetch_config import FetchConfig

USER_AGENT = "pluginfetch"


def create_http_client(config: FetchConfig) -> httpx.AsyncClient:
    """
    Create the client shared by all downloads of a run.

    Proxies come from HTTP_PROXY, HTTPS_PROXY, ALL_PROXY and NO_PROXY, and are
    chosen per request URL. Redirects are followed since plugin registries
    usually redirect to a storage host.
    """
    return httpx.AsyncClient(
        trust_env=True,
        follow_redirects=True,
        timeout=httpx.Timeout(config.request_timeout),
        headers={"User-Agent": USER_AGENT},
    )
