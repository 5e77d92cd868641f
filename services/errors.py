from typing import Optional


class TwitchError(Exception):
    """Base error for a failed upstream call, carrying the HTTP status and body."""

    def __init__(self, message: str, status: int = 0, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body

    def __str__(self) -> str:
        return f"{self.args[0]} (status={self.status}, body={self.body!r})"


class AuthError(TwitchError):
    pass


class ReconcileError(TwitchError):
    pass


class ListError(ReconcileError):
    pass


class CreateError(ReconcileError):
    pass


class DeleteError(ReconcileError):
    pass


class RateLimited(ListError):
    """The subscription listing hit the upstream rate limit (HTTP 429)."""


class FetchError(TwitchError):
    pass


class SendError(Exception):
    def __init__(self, message: str, channel_id: Optional[int] = None) -> None:
        super().__init__(message)
        self.channel_id = channel_id


class ParseError(ValueError):
    pass


class ConfigError(ValueError):
    def __init__(self, missing: list[str]) -> None:
        super().__init__(
            f"missing required environment variables: {', '.join(missing)}"
        )
        self.missing = missing
