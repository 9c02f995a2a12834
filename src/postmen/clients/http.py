"""HTTP transport and retry handling for the Postmen API.

This module builds the request descriptors handed to requests, classifies
each attempt's response into a typed outcome and drives retries with a
tenacity controller. Errors only cross the public boundary once an attempt
is terminal.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Union
from urllib.parse import quote, urlencode

import requests
from tenacity import RetryCallState, Retrying, retry_if_result, stop_after_attempt, wait_fixed

from ..config.config import SDK_NAME, SDK_VERSION, ClientConfig, validate_proxy

logger = logging.getLogger(__name__)

METHODS = ("GET", "POST", "PUT", "DELETE")
PARSE_ERROR_MESSAGE = "Something went wrong on Postmen's end"


class PostmenException(Exception):
    """Raised when a Postmen API call fails.

    Attributes:
        message: Human readable error message.
        code: The meta code returned by the API, or a synthesized code.
        retryable: Whether the failed call may be attempted again.
        details: Sequence of detail strings from the API.
    """

    def __init__(self, message: str, code: int, retryable: bool = False, details: Optional[List[Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.retryable = retryable
        self.details = list(details or [])

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, code={self.code}, "
            f"retryable={self.retryable}, details={self.details!r})"
        )


class TransportError(PostmenException):
    """The request never produced a response body."""

    def __init__(self, message: str, code: int = 0):
        super().__init__(message, code, retryable=True)


class ParseError(PostmenException):
    """The response body was not a valid Postmen envelope."""

    def __init__(self) -> None:
        super().__init__(PARSE_ERROR_MESSAGE, 500, retryable=False)


class ApiError(PostmenException):
    """The API answered with a meta code other than 200."""

    @classmethod
    def from_meta(cls, meta: Mapping[str, Any]) -> "ApiError":
        details = meta.get("details") or []
        if not isinstance(details, list):
            details = [details]
        return cls(
            str(meta.get("message", "")),
            meta["code"],
            retryable=meta.get("retryable") is True,
            details=details,
        )


@dataclass(frozen=True)
class Success:
    data: Any

    @property
    def retryable(self) -> bool:
        return False


@dataclass(frozen=True)
class Failure:
    error: PostmenException

    @property
    def retryable(self) -> bool:
        return self.error.retryable


Outcome = Union[Success, Failure]


def generate_url(base: str, path: str, method: str, query: Optional[Mapping[str, Any]] = None) -> str:
    """Join base and path, appending the query string for GET requests only."""
    url = base + path
    if query and method.upper() == "GET":
        url += "?" + urlencode(list(query.items()))
    return url


def proxy_url(proxy: Mapping[str, Any]) -> str:
    credentials = ""
    if proxy.get("username"):
        username = quote(str(proxy["username"]), safe="")
        password = quote(str(proxy.get("password", "")), safe="")
        credentials = f"{username}:{password}@"
    return f"http://{credentials}{proxy['host']}:{proxy['port']}"


def parse_envelope(response: requests.Response) -> Outcome:
    """Classify a response body as success or failure."""
    try:
        envelope = response.json()
    except ValueError:
        logger.warning("Response is not valid JSON (HTTP %d)", response.status_code)
        return Failure(ParseError())

    meta = envelope.get("meta") if isinstance(envelope, dict) else None
    code = meta.get("code") if isinstance(meta, dict) else None
    # bool is an int subclass but never a meta code
    if not isinstance(code, int) or isinstance(code, bool):
        logger.warning("Response has no valid meta code (HTTP %d)", response.status_code)
        return Failure(ParseError())

    if code == 200:
        return Success(envelope.get("data"))
    return Failure(ApiError.from_meta(meta))


class HttpClient:
    def __init__(
        self,
        config: ClientConfig,
        *,
        session: Optional[requests.Session] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.config = config
        self.session = session or requests.Session()
        self._sleep = sleep or time.sleep
        self._last_error: Optional[PostmenException] = None

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def last_error(self) -> Optional[PostmenException]:
        return self._last_error

    def headers(self) -> Dict[str, str]:
        headers = {"content-type": "application/json"}
        if self.config.api_key:
            headers["postmen-api-key"] = self.config.api_key
        headers["x-postmen-agent"] = f"{SDK_NAME}-{SDK_VERSION}"
        return headers

    def build_request_params(
        self,
        method: str,
        path: str,
        body: Any = None,
        query: Optional[Mapping[str, Any]] = None,
        proxy: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Build the keyword arguments for a single requests call.

        Args:
            method: One of GET, POST, PUT or DELETE.
            path: The API path (e.g., "/v3/labels").
            body: Request payload; encoded as JSON unless it is already a string.
            query: Query parameters, only used for GET requests.
            proxy: Proxy settings with host, port, username and password.

        Returns:
            A dictionary suitable for requests.Session.request(**params).

        Raises:
            ValueError: If the method is not supported.
        """
        method = method.upper()
        if method not in METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")

        params: Dict[str, Any] = {
            "method": method,
            "url": generate_url(self.config.base_url, path, method, query),
            "headers": self.headers(),
            "timeout": self.config.timeout,
        }
        if method != "GET" and body is not None:
            params["data"] = body if isinstance(body, str) else json.dumps(body)

        proxy = proxy if proxy is not None else self.config.proxy
        if proxy:
            validate_proxy(proxy)
            url = proxy_url(proxy)
            params["proxies"] = {"http": url, "https": url}
            # proxies may answer with a redirect before the JSON body
            params["allow_redirects"] = True
        return params

    def _attempt(self, params: Dict[str, Any]) -> Outcome:
        logger.debug("Making %s request to %s", params["method"], params["url"])
        try:
            response = self.session.request(**params)
        except requests.RequestException as exc:
            logger.warning("Transport failure for %s %s: %s", params["method"], params["url"], exc)
            status = exc.response.status_code if exc.response is not None else 0
            error = TransportError(f"Failed to request {params['url']}: {exc}", code=status)
            error.__cause__ = exc
            return Failure(error)
        return parse_envelope(response)

    def _retrying(self, retry: bool) -> Retrying:
        def log_wait(state: RetryCallState) -> None:
            outcome = state.outcome.result()
            logger.warning(
                "Attempt %d failed (%s), retrying in %ss",
                state.attempt_number,
                outcome.error.message,
                state.next_action.sleep,
            )

        return Retrying(
            retry=retry_if_result(lambda outcome: retry and outcome.retryable),
            stop=stop_after_attempt(self.config.max_attempts),
            wait=wait_fixed(self.config.retry_delay),
            sleep=self._sleep,
            before_sleep=log_wait,
            retry_error_callback=lambda state: state.outcome.result(),
        )

    def request(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        query: Optional[Mapping[str, Any]] = None,
        proxy: Optional[Mapping[str, Any]] = None,
        safe: Optional[bool] = None,
        retry: Optional[bool] = None,
    ) -> Any:
        """Make a request to the Postmen API, retrying transient failures.

        Returns:
            The `data` member of the response envelope, or None when the call
            failed in safe mode.

        Raises:
            PostmenException: If the call failed and safe mode is off.
        """
        safe = self.config.safe if safe is None else safe
        retry = self.config.retry if retry is None else retry
        params = self.build_request_params(method, path, body=body, query=query, proxy=proxy)

        outcome = self._retrying(retry)(self._attempt, params)
        if isinstance(outcome, Success):
            return outcome.data

        error = outcome.error
        logger.error("%s %s failed with code %d: %s", params["method"], params["url"], error.code, error.message)
        if safe:
            self._last_error = error
            return None
        raise error

    def close(self) -> None:
        self.session.close()
