"""Error taxonomy for the admin client.

Fetch failures, server-side validation rejections and everything else are kept
apart so the list controller can place them: fetch errors replace the grid,
mutation errors stay on the open form.
"""

from __future__ import annotations

from typing import Any

import httpx

UNEXPECTED_MESSAGE = "An unexpected error occurred."


class AdminError(Exception):
    """Base exception for admin client errors."""

    def __init__(self, message: str, status_code: int | None = None, response: Any = None):
        self.message = message
        self.status_code = status_code
        self.response = response
        super().__init__(self.message)


class FetchError(AdminError):
    """A collection could not be loaded."""

    pass


class ValidationError(AdminError):
    """A mutation was rejected, by the server (4xx) or before sending."""

    pass


class UnexpectedError(AdminError):
    """Any other mutation failure."""

    pass


class UnsupportedOperation(AdminError):
    """The entity does not expose the requested action (e.g. creating inquiries)."""

    pass


class InvalidTransition(RuntimeError):
    """Staged-mutation state machine was driven out of order."""

    pass


def _response_json(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def extract_error_message(data: Any, status_code: int) -> str:
    """Pick the user-facing message out of a 4xx error body.

    Prefers ``message``, then the first ``errors[].msg``, then a generic string.
    """
    if isinstance(data, dict):
        message = data.get("message")
        if isinstance(message, str) and message:
            return message
        errors = data.get("errors")
        if isinstance(errors, list) and errors:
            first = errors[0]
            if isinstance(first, dict) and isinstance(first.get("msg"), str) and first["msg"]:
                return first["msg"]
    return f"Request failed with status code {status_code}"


def classify_mutation_error(exc: Exception) -> AdminError:
    """Map an exception raised by a create/update/delete call to the taxonomy."""
    if isinstance(exc, AdminError):
        return exc
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        data = _response_json(exc.response)
        if 400 <= status < 500:
            return ValidationError(extract_error_message(data, status), status, data)
        return UnexpectedError(UNEXPECTED_MESSAGE, status, data)
    return UnexpectedError(UNEXPECTED_MESSAGE)
