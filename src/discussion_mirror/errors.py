"""Error taxonomy for the fetch-map-store pipeline.

Per-repository errors are logged by the pipeline and never raised to end
users. Render paths turn errors into inline plain-text messages.
"""


class MirrorError(Exception):
    """Base class for discussion-mirror errors."""

    pass


class ConfigError(MirrorError):
    """Raised when a required setting (token, organization, repository) is missing."""

    kind = "config"


class FetchError(MirrorError):
    """Raised when the remote GraphQL call fails.

    Attributes:
        kind: One of "transport", "http_status", "malformed_body"
    """

    kind = "fetch"


class TransportError(FetchError):
    """DNS, connection or timeout failure before a response was received."""

    kind = "transport"


class HttpStatusError(FetchError):
    """Remote endpoint answered with a non-200 status."""

    kind = "http_status"

    def __init__(self, status_code: int, message: str = ""):
        self.status_code = status_code
        detail = f": {message}" if message else ""
        super().__init__(f"GitHub API returned status code {status_code}{detail}")


class MalformedBodyError(FetchError):
    """Response body could not be parsed as a JSON object."""

    kind = "malformed_body"


class MapError(MirrorError):
    """Raised when a response cannot be projected into discussion records."""

    kind = "map"


class UnexpectedShapeError(MapError):
    """Expected path is absent from the response or is not a list."""

    kind = "unexpected_shape"

    def __init__(self, path: str, message: str = ""):
        self.path = path
        super().__init__(message or f"Unexpected data structure: missing {path}")


class PersistError(MirrorError):
    """Raised when a discussion record cannot be written to the content repository."""

    pass


class RunLockedError(MirrorError):
    """Raised when another pipeline run already holds the run lock."""

    pass
