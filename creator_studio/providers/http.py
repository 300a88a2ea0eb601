"""Shared HTTP helpers for provider clients."""

import httpx


class ProviderError(RuntimeError):
    """A generation provider returned an error or an unusable payload."""

    def __init__(self, provider: str, message: str, status_code: int | None = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


def _error_message(response: httpx.Response) -> str | None:
    """Pull the human-readable message out of a provider error body."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None

    # Gemini / OpenAI style: {"error": {"message": ...}}
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str):
        return error

    # fal.ai / ElevenLabs style: {"detail": ...}
    detail = body.get("detail")
    if isinstance(detail, dict) and detail.get("message"):
        return str(detail["message"])
    if isinstance(detail, str):
        return detail

    if body.get("message"):
        return str(body["message"])
    return None


def raise_for_provider(response: httpx.Response, provider: str) -> None:
    """Raise ProviderError for a non-2xx response."""
    if response.is_success:
        return
    message = _error_message(response) or f"{provider} error: HTTP {response.status_code}"
    raise ProviderError(provider, message, status_code=response.status_code)
