"""GraphQL documents and the request wrapper for the Linear API."""

from dataclasses import dataclass, field
from typing import Any

import httpx

from shakenbake.core.errors import ErrorCode, ShakeNbakeError

VIEWER_QUERY = """
query Viewer {
  viewer {
    id
  }
}
"""

ISSUE_CREATE_MUTATION = """
mutation IssueCreate($input: IssueCreateInput!) {
  issueCreate(input: $input) {
    success
    issue {
      id
      identifier
      title
      url
    }
  }
}
"""

FILE_UPLOAD_MUTATION = """
mutation FileUpload($size: Int!, $contentType: String!, $filename: String!) {
  fileUpload(size: $size, contentType: $contentType, filename: $filename) {
    success
    uploadFile {
      uploadUrl
      assetUrl
      headers {
        key
        value
      }
    }
  }
}
"""

AUTH_ERROR_CODES = frozenset({"AUTHENTICATION_ERROR", "UNAUTHENTICATED", "FORBIDDEN"})
RATE_LIMIT_ERROR_CODES = frozenset({"RATELIMITED", "RATE_LIMITED"})


@dataclass(frozen=True)
class UploadTarget:
    """Signed upload destination returned by the ``fileUpload`` mutation."""

    upload_url: str
    asset_url: str
    headers: list[tuple[str, str]] = field(default_factory=list)


def classify_graphql_errors(errors: list[dict[str, Any]]) -> ErrorCode:
    """Pick a taxonomy code for a GraphQL error list returned with HTTP 200."""
    found_auth = False
    for error in errors:
        message = str(error.get("message") or "").lower()
        extensions = error.get("extensions") or {}
        code = str(extensions.get("code") or "").upper() if isinstance(extensions, dict) else ""
        if code in RATE_LIMIT_ERROR_CODES or "rate limit" in message:
            return ErrorCode.RATE_LIMITED
        if code in AUTH_ERROR_CODES or "authentication" in message:
            found_auth = True
    return ErrorCode.AUTH_FAILED if found_auth else ErrorCode.UNKNOWN


async def linear_fetch(
    http: httpx.AsyncClient,
    api_key: str,
    api_url: str,
    query: str,
    variables: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Execute a GraphQL request against the Linear API and return ``data``.

    The Authorization header carries the raw API key, without a Bearer prefix.

    Raises:
        ShakeNbakeError: NETWORK_ERROR on transport failure, AUTH_FAILED on
            401/403 or an authentication GraphQL error, RATE_LIMITED on 429
            or a rate-limit GraphQL error, UNKNOWN otherwise.
    """
    body: dict[str, Any] = {"query": query}
    if variables is not None:
        body["variables"] = variables

    try:
        response = await http.post(
            api_url,
            headers={"Content-Type": "application/json", "Authorization": api_key},
            json=body,
        )
    except httpx.HTTPError as exc:
        raise ShakeNbakeError(
            "Network request to Linear API failed",
            ErrorCode.NETWORK_ERROR,
            original_error=exc,
        ) from exc

    status = response.status_code
    if status in (401, 403):
        raise ShakeNbakeError(
            f"Linear API authentication failed (HTTP {status})",
            ErrorCode.AUTH_FAILED,
            retryable=False,
        )
    if status == 429:
        raise ShakeNbakeError(
            "Linear API rate limit exceeded", ErrorCode.RATE_LIMITED, retryable=True
        )
    if not response.is_success:
        raise ShakeNbakeError(
            f"Linear API request failed (HTTP {status})", ErrorCode.UNKNOWN, retryable=False
        )

    try:
        payload = response.json()
    except ValueError as exc:
        raise ShakeNbakeError(
            "Failed to parse Linear API response", ErrorCode.UNKNOWN, original_error=exc
        ) from exc
    if not isinstance(payload, dict):
        raise ShakeNbakeError("Linear API returned a non-object response", ErrorCode.UNKNOWN)

    errors = payload.get("errors")
    if isinstance(errors, list) and errors:
        first = errors[0] if isinstance(errors[0], dict) else {}
        message = first.get("message") or "Unknown GraphQL error"
        raise ShakeNbakeError(
            f"Linear GraphQL error: {message}",
            classify_graphql_errors([e for e in errors if isinstance(e, dict)]),
        )

    data = payload.get("data")
    if not data:
        raise ShakeNbakeError(
            "Linear API returned empty response", ErrorCode.UNKNOWN, retryable=False
        )
    return data


async def request_upload_url(
    http: httpx.AsyncClient,
    api_key: str,
    api_url: str,
    filename: str,
    content_type: str,
    size: int,
) -> UploadTarget:
    """Ask Linear for a short-lived signed upload URL.

    Raises:
        ShakeNbakeError: UPLOAD_FAILED if Linear reports failure or omits the
            upload file; transport and API errors as in ``linear_fetch``.
    """
    data = await linear_fetch(
        http,
        api_key,
        api_url,
        FILE_UPLOAD_MUTATION,
        {"size": size, "contentType": content_type, "filename": filename},
    )
    file_upload = data.get("fileUpload") or {}
    upload_file = file_upload.get("uploadFile") or {}
    if not file_upload.get("success") or not upload_file.get("uploadUrl"):
        raise ShakeNbakeError(
            "Linear fileUpload mutation did not return an upload URL",
            ErrorCode.UPLOAD_FAILED,
        )

    headers = [
        (str(header["key"]), str(header.get("value") or ""))
        for header in upload_file.get("headers") or []
        if isinstance(header, dict) and header.get("key")
    ]
    return UploadTarget(
        upload_url=str(upload_file["uploadUrl"]),
        asset_url=str(upload_file.get("assetUrl") or ""),
        headers=headers,
    )
