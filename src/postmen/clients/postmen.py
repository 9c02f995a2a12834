"""Postmen API client with resource helpers.

This module provides the Postmen class. Context-free calls (call_get,
call_post, ...) take an absolute API path; context-bound calls (get,
create, cancel) template the path and body from a resource name such as
"labels", "rates", "manifests" or "shipper-accounts".
"""

import logging
from typing import Any, Callable, Dict, Mapping, Optional

import requests

from ..config.config import ClientConfig
from .http import HttpClient, PostmenException

logger = logging.getLogger(__name__)

API_VERSION = "v3"


class Postmen(HttpClient):
    """Client for the Postmen shipping API.

    Args:
        api_key: The Postmen API key.
        region: The API region used to build https://<region>-api.postmen.com.
        options: Optional map with retry, safe, proxy, endpoint and timeout.
        config: A prebuilt ClientConfig, e.g. from load_config(); replaces the
            three arguments above.
        session: Optional requests.Session used for every call.
        sleep: Optional callable used to wait between retries.
    """

    def __init__(
        self,
        api_key: str = "",
        region: str = "",
        options: Optional[Mapping[str, Any]] = None,
        *,
        config: Optional[ClientConfig] = None,
        session: Optional[requests.Session] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        if config is None:
            config = ClientConfig.from_options(api_key, region, options)
        super().__init__(config, session=session, sleep=sleep)

    def get_error(self) -> Optional[PostmenException]:
        return self.last_error

    # Context-free calls
    def call_get(self, path: str, query: Optional[Mapping[str, Any]] = None, **options: Any) -> Any:
        return self.request("GET", path, query=query, **options)

    def call_post(self, path: str, body: Any = None, **options: Any) -> Any:
        return self.request("POST", path, body=body, **options)

    def call_put(self, path: str, body: Any = None, **options: Any) -> Any:
        return self.request("PUT", path, body=body, **options)

    def call_delete(self, path: str, body: Any = None, **options: Any) -> Any:
        return self.request("DELETE", path, body=body, **options)

    # Resource calls
    def get(
        self,
        resource: str,
        resource_id: Optional[str] = None,
        query: Optional[Mapping[str, Any]] = None,
        **options: Any,
    ) -> Any:
        """Fetch a resource list, or a single resource when an id is given.

        Args:
            resource: The resource name (e.g., "labels").
            resource_id: Optional id of a single resource.
            query: Optional query parameters for the list endpoint.

        Returns:
            The `data` member of the response.
        """
        path = f"/{API_VERSION}/{resource}"
        if resource_id:
            path += f"/{resource_id}"
        return self.call_get(path, query=query, **options)

    def create(self, resource: str, payload: Mapping[str, Any], **options: Any) -> Any:
        body: Dict[str, Any] = dict(payload)
        body.setdefault("async", False)
        logger.debug("Creating %s", resource)
        return self.call_post(f"/{API_VERSION}/{resource}", body=body, **options)

    def cancel(self, resource_id: str, resource: str = "labels", **options: Any) -> Any:
        """Cancel a resource, e.g. a label, by id.

        Posts to /v3/cancel-<resource> with the id nested under the singular
        resource name.
        """
        singular = resource[:-1] if resource.endswith("s") else resource
        body = {singular: {"id": resource_id}, "async": False}
        logger.debug("Cancelling %s %s", singular, resource_id)
        return self.call_post(f"/{API_VERSION}/cancel-{resource}", body=body, **options)
