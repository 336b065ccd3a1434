"""Fetch-map-store pipeline for GitHub Discussions.

Drives, per configured repository and strictly in sequence:
query builder -> GraphQL client -> response mapper -> discussion store.

Failure policy:
- A Query/Fetch/Map failure marks that repository failed and the run moves
  on to the next one; nothing is raised to the caller.
- A persistence failure skips that record only.
- Blank repository names are skipped and not counted as failures.
- Missing token or organization turns the run into a logged no-op.
- A run that cannot take the run lock returns immediately with
  skipped_locked=True.
"""

import asyncio
import logging
import time

import httpx

from .config import MirrorConfig, get_config
from .errors import ConfigError, FetchError, MapError, PersistError, RunLockedError
from .github.client import GitHubGraphQLClient
from .github.mapper import map_repository_discussions
from .github.query import build_repository_discussions_query
from .models import RepoFailure, RepoState, RunSummary
from .run_lock import RunLock
from .storage import ContentRepository, DiscussionStore

logger = logging.getLogger("discussion_mirror.pipeline")

__all__ = [
    "MANUAL_RUN_BUSY_NOTICE",
    "MANUAL_RUN_NOTICE",
    "DiscussionPipeline",
    "run_pipeline",
    "trigger_manual_run",
]

MANUAL_RUN_NOTICE = "GitHub Discussions fetched and stored successfully."
MANUAL_RUN_BUSY_NOTICE = "A GitHub Discussions fetch is already running; try again later."


class DiscussionPipeline:
    """Orchestrates one mirroring run across the configured repositories.

    Attributes:
        config: Immutable configuration for this run
        store: Write path into the content repository
        lock: Run-level lock shared with every other entry point
    """

    def __init__(
        self,
        config: MirrorConfig,
        store: DiscussionStore,
        lock: RunLock | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            config: Configuration, constructed once per run by the caller
            store: DiscussionStore over an open ContentRepository
            lock: Run lock (default: RunLock(config.lock_path))
            transport: Optional httpx transport for the GraphQL client
        """
        self.config = config
        self.store = store
        self.lock = lock or RunLock(config.lock_path)
        self._transport = transport

    def _make_client(self) -> GitHubGraphQLClient:
        return GitHubGraphQLClient(
            token=self.config.get_token(),
            endpoint=self.config.github_graphql_url,
            transport=self._transport,
        )

    async def run(self) -> RunSummary:
        """Run the pipeline once.

        Returns:
            RunSummary with counts, per-repository states and failures
        """
        start = time.monotonic()
        summary = RunSummary()

        try:
            self.lock.acquire()
        except RunLockedError as e:
            logger.warning("run_skipped_locked", extra={"reason": str(e)})
            summary.skipped_locked = True
            return summary

        try:
            try:
                self.config.require_remote_settings()
            except ConfigError as e:
                logger.warning("run_skipped_config", extra={"reason": str(e)})
                return summary

            repositories = self.config.get_repositories()
            logger.info(
                "Starting discussion mirror run: organization=%s, repositories=%d",
                self.config.github_organization,
                len(repositories),
            )

            async with self._make_client() as client:
                for repository in repositories:
                    if not repository:
                        logger.debug("Skipping blank repository entry")
                        continue
                    await self._sync_repository(client, repository, summary)
        finally:
            self.lock.release()
            summary.duration_seconds = time.monotonic() - start

        self._push_metrics(summary)
        logger.info(
            "Discussion mirror run complete: %d stored of %d attempted, %d failed repositories in %.1fs",
            summary.stored,
            summary.attempted,
            len(summary.failed_repos),
            summary.duration_seconds,
        )
        return summary

    async def _sync_repository(
        self,
        client: GitHubGraphQLClient,
        repository: str,
        summary: RunSummary,
    ) -> None:
        """Fetch, map and store one repository's discussions.

        Args:
            client: Open GraphQL client
            repository: Non-blank repository name
            summary: RunSummary to update
        """
        organization = self.config.github_organization
        summary.repositories[repository] = RepoState.PENDING

        try:
            query = build_repository_discussions_query(organization, repository)
            body = await client.send(query)
            summary.repositories[repository] = RepoState.QUERIED
            records = map_repository_discussions(body)
            summary.repositories[repository] = RepoState.MAPPED
        except (ConfigError, FetchError, MapError) as e:
            logger.error(
                "repository_failed",
                extra={
                    "repository": repository,
                    "stage": summary.repositories[repository].value,
                    "error_type": type(e).__name__,
                    "error": str(e),
                },
            )
            summary.repositories[repository] = RepoState.FAILED
            summary.failed_repos.append(RepoFailure(repository=repository, error=e))
            return

        stored = 0
        for record in records:
            summary.attempted += 1
            try:
                self.store.store(record, repository, organization)
                stored += 1
            except PersistError as e:
                # Fail-open per record: log and continue
                logger.error(
                    "record_persist_failed",
                    extra={"repository": repository, "url": record.url, "error": str(e)},
                )
                summary.persist_errors += 1

        summary.stored += stored
        summary.repositories[repository] = (
            RepoState.FULLY_STORED if stored == len(records) else RepoState.PARTIALLY_STORED
        )
        logger.info(
            "repository_synced",
            extra={"repository": repository, "fetched": len(records), "stored": stored},
        )

    def _push_metrics(self, summary: RunSummary) -> None:
        """Push run metrics to the Prometheus pushgateway when enabled.

        Args:
            summary: RunSummary with counts and timing
        """
        if not self.config.metrics_push_enabled:
            return
        try:
            from prometheus_client import CollectorRegistry, Counter, Gauge
            from prometheus_client.exposition import pushadd_to_gateway

            registry = CollectorRegistry()

            records_total = Counter(
                "discussion_mirror_records_total",
                "Discussion records processed per run",
                ["status"],
                registry=registry,
            )
            repositories_total = Counter(
                "discussion_mirror_repositories_total",
                "Repositories processed per run",
                ["status"],
                registry=registry,
            )
            run_duration = Gauge(
                "discussion_mirror_run_duration_seconds",
                "Pipeline run duration",
                registry=registry,
            )

            records_total.labels(status="stored").inc(summary.stored)
            records_total.labels(status="error").inc(summary.persist_errors)
            repositories_total.labels(status="failed").inc(len(summary.failed_repos))
            repositories_total.labels(status="synced").inc(
                summary.repositories_attempted - len(summary.failed_repos)
            )
            run_duration.set(summary.duration_seconds)

            pushadd_to_gateway(
                self.config.pushgateway_url,
                job="discussion_mirror",
                registry=registry,
                grouping_key={"instance": self.config.github_organization or "unknown"},
            )
        except Exception as e:
            logger.warning("Failed to push metrics: %s", e)


def run_pipeline(
    config: MirrorConfig | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RunSummary:
    """Synchronous entry point shared by the scheduler and the manual trigger.

    Args:
        config: Configuration (default: get_config())
        transport: Optional httpx transport for the GraphQL client

    Returns:
        RunSummary of the run
    """
    config = config or get_config()
    with ContentRepository(config.database_path) as repository:
        pipeline = DiscussionPipeline(config, DiscussionStore(repository), transport=transport)
        return asyncio.run(pipeline.run())


def trigger_manual_run(config: MirrorConfig | None = None) -> str:
    """Run the pipeline on demand and return the notice shown to the operator."""
    summary = run_pipeline(config)
    if summary.skipped_locked:
        return MANUAL_RUN_BUSY_NOTICE
    return MANUAL_RUN_NOTICE
