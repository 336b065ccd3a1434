"""discussion-mirror - GitHub Discussions mirroring for a local content store.

Periodically queries the GitHub GraphQL API for the discussions of an
organization's repositories and stores them as local records tagged by
source repository, through:
- Configuration management with environment overrides
- GraphQL query builder, client and response mapper
- SQLite content repository with hierarchical repository tags
- Read-only list, widget, block and redirect surfaces

Python Version: 3.10+ required
"""

from .__version__ import __version__
from .config import MirrorConfig, get_config, reset_config
from .errors import (
    ConfigError,
    FetchError,
    HttpStatusError,
    MalformedBodyError,
    MapError,
    MirrorError,
    PersistError,
    RunLockedError,
    TransportError,
    UnexpectedShapeError,
)
from .logging_config import StructuredFormatter, configure_logging
from .models import (
    DiscussionRecord,
    DiscussionSummary,
    RepoFailure,
    RepoState,
    RunSummary,
    StoredDiscussion,
    Tag,
)
from .pipeline import DiscussionPipeline, run_pipeline, trigger_manual_run
from .storage import SOURCE_URL_META_KEY, ContentRepository, DiscussionStore

__all__ = [
    "SOURCE_URL_META_KEY",
    "ConfigError",
    "ContentRepository",
    "DiscussionPipeline",
    "DiscussionRecord",
    "DiscussionStore",
    "DiscussionSummary",
    "FetchError",
    "HttpStatusError",
    "MalformedBodyError",
    "MapError",
    "MirrorConfig",
    "MirrorError",
    "PersistError",
    "RepoFailure",
    "RepoState",
    "RunLockedError",
    "RunSummary",
    "StoredDiscussion",
    "StructuredFormatter",
    "Tag",
    "TransportError",
    "UnexpectedShapeError",
    "__version__",
    "configure_logging",
    "get_config",
    "reset_config",
    "run_pipeline",
    "trigger_manual_run",
]
