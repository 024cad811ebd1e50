class BaseExchangeError(Exception):
    """Base exception for exchange transport failures (REST and WebSocket)."""
    def __init__(self, code: int, message: str, api_code: int | None = None) -> None:
        self.api_code = api_code
        self.message = message
        self.status_code = code
        super().__init__(f"HTTP {code}: {message}")


class ExchangeRestError(BaseExchangeError):
    """Base exception for all exchange REST API errors."""
    pass


# Connection and Infrastructure Errors (Retryable)
class ExchangeConnectionRestError(ExchangeRestError):
    """Network connection errors that may be temporary."""
    pass


class ExchangeServerError(ExchangeRestError):
    """Server-side errors (5xx) that may be temporary."""
    pass


class ExchangeTimeoutError(ExchangeRestError):
    """Request timeout errors that may be retryable."""
    pass


# Rate Limiting Errors (Retryable with backoff)
class RateLimitErrorRest(ExchangeRestError):
    """Rate limit exceeded errors."""
    def __init__(self, code: int, message: str, api_code: int | None = None, retry_after: int | None = None) -> None:
        super().__init__(code, message, api_code)
        self.retry_after = retry_after

    def __str__(self):
        return f"RateLimitError: {self.status_code} - {self.message} - {self.api_code} - {self.retry_after}"


class TooManyRequestsError(RateLimitErrorRest):
    """HTTP 429 Too Many Requests."""
    pass


# Request Errors (Non-retryable)
class InvalidParameterError(ExchangeRestError):
    """Invalid request parameters - client-side error."""
    pass


class InvalidSymbolError(ExchangeRestError):
    """Market does not exist or is not trading."""
    pass


class ExchangeWebsocketError(BaseExchangeError):
    """WebSocket connect, send or read failure."""
    pass
