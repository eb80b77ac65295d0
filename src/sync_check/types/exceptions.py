"""Exception hierarchy for sync-check collection failures."""

from __future__ import annotations


class SyncCheckError(Exception):
    """
    Base exception for all collection errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class ConnectivityError(SyncCheckError):
    """
    Raised when an upstream endpoint cannot be reached.

    Covers dial failures, dropped connections and request timeouts.

    Attributes:
        endpoint: The endpoint that could not be reached.
        detail: Description of the transport failure.
    """

    def __init__(self, endpoint: str, detail: str) -> None:
        self.endpoint = endpoint
        self.detail = detail
        super().__init__(f"Failed to reach {endpoint}: {detail}")


class UpstreamError(SyncCheckError):
    """
    Raised when an upstream answers with a failure.

    Either a non-2xx HTTP status or an error-shaped JSON-RPC body.

    Attributes:
        endpoint: The endpoint that answered.
        detail: The error reported by the upstream.
        status_code: HTTP status code, if the failure was an HTTP status.
    """

    def __init__(self, endpoint: str, detail: str, *, status_code: int | None = None) -> None:
        self.endpoint = endpoint
        self.detail = detail
        self.status_code = status_code

        if status_code is not None:
            msg = f"{endpoint} returned HTTP {status_code}: {detail}"
        else:
            msg = f"{endpoint} returned an error: {detail}"

        super().__init__(msg)


class ParseError(SyncCheckError):
    """
    Raised when a response body or field is malformed.

    Attributes:
        source: Where the malformed data came from.
        detail: Description of what went wrong.
        field: The offending field (if known).
    """

    def __init__(self, source: str, detail: str, *, field: str | None = None) -> None:
        self.source = source
        self.detail = detail
        self.field = field

        if field is not None:
            msg = f"Malformed {field!r} from {source}: {detail}"
        else:
            msg = f"Malformed response from {source}: {detail}"

        super().__init__(msg)


class UnsupportedChainError(SyncCheckError):
    """
    Raised when the block explorer has no backend for a chain.

    Attributes:
        chain_id: The chain identifier that has no known backend.
    """

    def __init__(self, chain_id: int) -> None:
        self.chain_id = chain_id
        super().__init__(f"unsupported chainID: {chain_id}")
