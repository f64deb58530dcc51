"""Error records for failed API calls.

Records are ordinary ``logging`` calls on ``edgeconfig.error.<component>``
loggers. Their ``extra`` fields line up with the JSONL payload built in
:mod:`edgeconfig.core.logging`.
"""

from typing import Any

import httpx

from edgeconfig.core.logging import get_logger

_BODY_PREVIEW_CHARS = 1000
_HEADER_PREVIEW_CHARS = 200


def extract_http_details(response: httpx.Response) -> dict[str, Any]:
    """Summarise a response: status, headers, originating request, body preview."""
    details: dict[str, Any] = {
        "status_code": response.status_code,
        "headers": {name: value[:_HEADER_PREVIEW_CHARS] for name, value in response.headers.items()},
    }

    # Responses built by hand in tests or hooks may have no request attached.
    try:
        details.update(method=response.request.method, request_url=str(response.request.url))
    except RuntimeError:
        pass

    try:
        details["response_body"] = response.text[:_BODY_PREVIEW_CHARS]
    except httpx.ResponseNotRead:
        details["response_body"] = "<streaming body not read>"
    return details


def log_error(
    component: str,
    error: Exception,
    *,
    operation: str | None = None,
    context: dict[str, Any] | None = None,
    http_response: httpx.Response | None = None,
) -> None:
    """Emit one ERROR record for ``error`` with its traceback attached.

    Args:
        component: Short name of the emitting part, e.g. ``"api_client"``.
        error: The exception being reported.
        operation: API operation in progress, if known.
        context: Identifiers useful for finding the failing resource.
        http_response: Response to summarise into ``http_details``.
    """
    where = f"{component} error during {operation}" if operation else f"{component} error"
    get_logger(f"edgeconfig.error.{component}").error(
        "%s: %s",
        where,
        error,
        exc_info=error,
        extra={
            "component": component,
            "operation": operation,
            "context_data": context,
            "http_details": None if http_response is None else extract_http_details(http_response),
            "error_type": type(error).__name__,
            "error_message": str(error),
        },
    )


def log_http_error(
    component: str,
    url: str,
    *,
    response: httpx.Response | None = None,
    error: Exception | None = None,
    operation: str | None = None,
    context: dict[str, Any] | None = None,
) -> None:
    """Report a failed request to ``url``.

    When no exception is given, one is synthesised from the response status.
    """
    if error is None:
        status = "unknown" if response is None else response.status_code
        error = Exception(f"HTTP error for {url} (status: {status})")

    log_error(
        component,
        error,
        operation=operation or "http_request",
        context={"url": url, **(context or {})},
        http_response=response,
    )
