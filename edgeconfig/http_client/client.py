"""
Synchronous HTTP client for the configuration API.
"""
import platform
import threading
from datetime import UTC, datetime
from typing import Any

import httpx

from edgeconfig import __version__
from edgeconfig.core.logging import get_logger
from edgeconfig.core.settings import get_settings
from edgeconfig.errors import HTTPError, NotAcknowledgedError, TransportError
from edgeconfig.http_client.options import RequestOptions
from edgeconfig.utils.error_logger import log_http_error
from edgeconfig.wire.decoder import decode
from edgeconfig.wire.encoder import (
    FORM_MEDIA_TYPE,
    JSON_MEDIA_TYPE,
    FilePart,
    encode_form,
    encode_json,
    encode_multipart,
)
from edgeconfig.wire.models import StatusEnvelope

logger = get_logger(__name__)

DEFAULT_USER_AGENT = f"EdgeConfigPy/{__version__} (python/{platform.python_version()})"
RATE_LIMIT_REMAINING_HEADER = "Fastly-RateLimit-Remaining"
RATE_LIMIT_RESET_HEADER = "Fastly-RateLimit-Reset"
# Documented default budget of non-read requests, used until a response says otherwise.
DEFAULT_RATE_LIMIT = 1000


def check_response(response: httpx.Response) -> httpx.Response:
    """Raise :class:`HTTPError` for any non-2xx response."""
    if not response.is_success:
        raise HTTPError.from_response(response)
    return response


def check_status_envelope(response: httpx.Response) -> StatusEnvelope:
    """Decode a ``{status, msg}`` body and raise unless status is ``ok``.

    Runs independently of the HTTP status: a 200 can still carry a failure.
    """
    envelope = decode(response.content, StatusEnvelope)
    if not envelope.ok:
        raise NotAcknowledgedError(envelope.status, envelope.message)
    return envelope


class ApiClient:
    """
    Client for the configuration API.

    One instance wraps one pooled ``httpx.Client`` and may be shared between
    threads. Every call is a single blocking round trip; there are no
    implicit retries.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        auth: httpx.Auth | None = None,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
        debug: bool | None = None,
    ):
        """
        Initializes the ApiClient.

        Args:
            base_url: API endpoint. Falls back to settings.api_url.
            auth: Credential collaborator applied to every request.
            timeout: Default timeout in seconds. Falls back to settings.http_timeout_seconds.
            headers: Extra default headers.
            transport: Custom httpx transport (tests use ``httpx.MockTransport``).
            debug: Log request/response summaries. Falls back to settings.debug_mode.
        """
        settings = get_settings()
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self.default_timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self.debug = settings.debug_mode if debug is None else debug

        user_agent = DEFAULT_USER_AGENT
        if settings.user_agent:
            user_agent = f"{settings.user_agent}, {DEFAULT_USER_AGENT}"
        self.default_headers = {"User-Agent": user_agent}
        if headers:
            self.default_headers.update(headers)

        self._auth = auth
        self._transport = transport
        self._client: httpx.Client | None = None
        self._client_lock = threading.Lock()

        self._rate_lock = threading.Lock()
        self._remaining = DEFAULT_RATE_LIMIT
        self._reset = 0

    def _get_client(self) -> httpx.Client:
        """Initializes and returns the httpx.Client instance."""
        with self._client_lock:
            if self._client is None or self._client.is_closed:
                self._client = httpx.Client(
                    auth=self._auth,
                    headers=self.default_headers,
                    timeout=self.default_timeout,
                    transport=self._transport,
                )
            return self._client

    @property
    def rate_limit_remaining(self) -> int:
        """Non-read requests left before the API answers 429."""
        with self._rate_lock:
            return self._remaining

    @property
    def rate_limit_reset(self) -> datetime:
        """When the rate limiter's counter resets."""
        with self._rate_lock:
            return datetime.fromtimestamp(self._reset, tz=UTC)

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        options: RequestOptions | None = None,
        *,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """
        Performs one request and classifies the outcome.

        Args:
            method: HTTP verb.
            path: Escaped path, e.g. from ``to_safe_url``.
            options: Headers, query params and raw body for this call.
            data: Multipart form fields (used together with ``files``).
            files: Multipart file parts.

        Returns:
            The 2xx response, fully read.

        Raises:
            HTTPError: For non-2xx responses.
            TransportError: For network failures.
        """
        options = options or RequestOptions.create()
        url = self.url_for(path)
        client = self._get_client()

        if self.debug:
            logger.debug(
                "%s %s",
                method,
                url,
                extra={
                    "operation": "request",
                    "http_details": {"headers": dict(options.headers), "params": dict(options.params)},
                },
            )

        try:
            response = client.request(
                method,
                url,
                params=options.params or None,
                headers=options.headers or None,
                content=options.body,
                data=data,
                files=files,
            )
        except httpx.RequestError as e:
            log_http_error("api_client", url=url, error=e, operation=method.lower())
            raise TransportError(f"{method} {url} failed: {e}") from e

        if self.debug:
            logger.debug(
                "%s %s -> %s",
                method,
                url,
                response.status_code,
                extra={"operation": "response", "http_details": {"headers": dict(response.headers)}},
            )

        try:
            check_response(response)
        except HTTPError as e:
            log_http_error(
                "api_client",
                url=url,
                response=response,
                error=e,
                operation=method.lower(),
                context={"status_code": response.status_code},
            )
            raise

        if method not in ("GET", "HEAD"):
            self._record_rate_limit(response)
        return response

    def _record_rate_limit(self, response: httpx.Response) -> None:
        remaining = response.headers.get(RATE_LIMIT_REMAINING_HEADER)
        reset = response.headers.get(RATE_LIMIT_RESET_HEADER)
        with self._rate_lock:
            if remaining and remaining.isdigit():
                self._remaining = int(remaining)
            if reset and reset.isdigit():
                self._reset = int(reset)

    def get(self, path: str, options: RequestOptions | None = None) -> httpx.Response:
        return self.request("GET", path, options)

    def get_json(self, path: str, options: RequestOptions | None = None) -> httpx.Response:
        options = options or RequestOptions.create()
        options.headers["Accept"] = JSON_MEDIA_TYPE
        return self.request("GET", path, options)

    def head(self, path: str, options: RequestOptions | None = None) -> httpx.Response:
        return self.request("HEAD", path, options)

    def post(self, path: str, options: RequestOptions | None = None) -> httpx.Response:
        return self.request("POST", path, options)

    def put(self, path: str, options: RequestOptions | None = None) -> httpx.Response:
        return self.request("PUT", path, options)

    def patch(self, path: str, options: RequestOptions | None = None) -> httpx.Response:
        return self.request("PATCH", path, options)

    def delete(self, path: str, options: RequestOptions | None = None) -> httpx.Response:
        return self.request("DELETE", path, options)

    def request_form(
        self, method: str, path: str, value: Any, options: RequestOptions | None = None
    ) -> httpx.Response:
        """Send ``value`` url-form-encoded."""
        options = options or RequestOptions.create()
        options.headers["Content-Type"] = FORM_MEDIA_TYPE
        options.body = encode_form(value)
        return self.request(method, path, options)

    def post_form(self, path: str, value: Any, options: RequestOptions | None = None) -> httpx.Response:
        return self.request_form("POST", path, value, options)

    def put_form(self, path: str, value: Any, options: RequestOptions | None = None) -> httpx.Response:
        return self.request_form("PUT", path, value, options)

    def patch_form(self, path: str, value: Any, options: RequestOptions | None = None) -> httpx.Response:
        return self.request_form("PATCH", path, value, options)

    def request_json(
        self, method: str, path: str, value: Any | None, options: RequestOptions | None = None
    ) -> httpx.Response:
        """Send ``value`` JSON-encoded; ``None`` sends no body."""
        options = options or RequestOptions.create()
        options.headers["Content-Type"] = JSON_MEDIA_TYPE
        options.headers["Accept"] = JSON_MEDIA_TYPE
        if value is not None:
            options.body = encode_json(value)
        return self.request(method, path, options)

    def post_json(self, path: str, value: Any | None, options: RequestOptions | None = None) -> httpx.Response:
        return self.request_json("POST", path, value, options)

    def put_json(self, path: str, value: Any | None, options: RequestOptions | None = None) -> httpx.Response:
        return self.request_json("PUT", path, value, options)

    def patch_json(self, path: str, value: Any | None, options: RequestOptions | None = None) -> httpx.Response:
        return self.request_json("PATCH", path, value, options)

    def request_form_file(
        self,
        method: str,
        path: str,
        part: FilePart,
        value: Any | None = None,
        options: RequestOptions | None = None,
    ) -> httpx.Response:
        """Upload one file part (plus optional encoded fields) as multipart form data."""
        options = options or RequestOptions.create()
        options.headers["Accept"] = JSON_MEDIA_TYPE
        with encode_multipart(value, part) as body:
            return self.request(method, path, options, data=body.data, files=body.files)

    def put_form_file(
        self,
        path: str,
        part: FilePart,
        value: Any | None = None,
        options: RequestOptions | None = None,
    ) -> httpx.Response:
        return self.request_form_file("PUT", path, part, value, options)

    def simple_get(self, target: str) -> httpx.Response:
        """GET an absolute URL handed out by the API, without re-encoding it."""
        parsed = httpx.URL(target)
        if not parsed.scheme or not parsed.host:
            raise ValueError(f"not an absolute URL: {target!r}")
        client = self._get_client()
        try:
            response = client.get(parsed)
        except httpx.RequestError as e:
            log_http_error("api_client", url=target, error=e, operation="simple_get")
            raise TransportError(f"GET {target} failed: {e}") from e
        return check_response(response)

    def close(self) -> None:
        """
        Closes the underlying httpx.Client.
        """
        with self._client_lock:
            if self._client and not self._client.is_closed:
                logger.debug("Closing ApiClient")
                self._client.close()
            self._client = None

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
