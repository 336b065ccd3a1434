"""discussion-mirror command-line interface.

Usage:
    discussion-mirror run                 # Manual trigger: fetch and store now
    discussion-mirror serve               # Scheduled service loop
    discussion-mirror status              # Show settings and stored record counts
    discussion-mirror query [--execute]   # Show (or run) the settings preview query
    discussion-mirror list                # Inline list of mirrored discussions
    discussion-mirror widget              # Dashboard widget
    discussion-mirror block CATEGORY      # Discussions tagged with a repository slug
    discussion-mirror view ID             # Render or redirect one discussion
"""

import argparse
import asyncio
import sys

from pydantic import ValidationError

from .__version__ import __version__
from .config import MirrorConfig, get_config
from .errors import FetchError, MapError
from .github.client import GitHubGraphQLClient
from .github.mapper import map_summary_discussions
from .github.query import build_discussions_summary_query, render_query_preview
from .logging_config import configure_logging
from .pipeline import trigger_manual_run
from .render import (
    render_dashboard_widget,
    render_discussion_list,
    render_repository_block,
    resolve_view,
)
from .service import serve
from .storage import ContentRepository


def show_status(config: MirrorConfig) -> int:
    """Display settings (token redacted) and content repository counts."""
    print("GitHub Discussions Mirror Status")
    print("=" * 50)
    print(f"Organization: {config.github_organization or '(not set)'}")
    print(f"Repositories: {', '.join(r for r in config.get_repositories() if r) or '(none)'}")
    print(f"Access token: {'set' if config.get_token() else '(not set)'}")
    print(f"Fetch schedule: {config.github_fetch_schedule} ({config.get_schedule_interval()}s)")
    print(f"Fetch count: {config.get_fetch_count()}")
    print(f"Redirect to GitHub: {config.github_enable_redirect}")
    print(f"Database: {config.database_path}")
    print()

    with ContentRepository(config.database_path) as repository:
        print(f"Stored discussions: {repository.count_records()}")
        for tag in repository.list_tags():
            indent = "    " if tag.parent_id else "  "
            print(f"{indent}{tag.name} ({tag.slug})")
    return 0


async def execute_summary_query(config: MirrorConfig) -> int:
    """Send the summary query to the host CMS endpoint and print the results."""
    if not config.summary_graphql_url:
        print("SUMMARY_GRAPHQL_URL is not configured", file=sys.stderr)
        return 1

    query = build_discussions_summary_query(config.get_fetch_count(), include_content=True)
    try:
        async with GitHubGraphQLClient(
            token=config.get_token(), endpoint=config.summary_graphql_url
        ) as client:
            body = await client.send(query)
        summaries = map_summary_discussions(body)
    except (FetchError, MapError) as e:
        print(f"Error fetching GitHub discussions: {e}", file=sys.stderr)
        return 1

    for summary in summaries:
        repos = f" [{', '.join(summary.repositories)}]" if summary.repositories else ""
        print(f"- {summary.title}{repos}\n  {summary.url}")
    if not summaries:
        print("No discussions available.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="discussion-mirror",
        description="Mirror GitHub Discussions into a local content repository.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("run", help="Fetch and store discussions now")
    sub.add_parser("serve", help="Run on the configured schedule until stopped")
    sub.add_parser("status", help="Show settings and stored record counts")

    query = sub.add_parser("query", help="Show the GraphQL query based on your settings")
    query.add_argument(
        "--execute",
        action="store_true",
        help="Send the summary query to SUMMARY_GRAPHQL_URL and print the results",
    )

    sub.add_parser("list", help="Render the inline discussion list")
    sub.add_parser("widget", help="Render the dashboard widget")

    block = sub.add_parser("block", help="Render discussions for one repository tag")
    block.add_argument("category", help="Repository (or organization) tag slug")

    view = sub.add_parser("view", help="Render or redirect one discussion")
    view.add_argument("record_id", type=int)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = get_config()
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1
    configure_logging(config.log_level, config.log_format)

    if args.command == "run":
        print(trigger_manual_run(config))
        return 0
    if args.command == "serve":
        serve(config)
        return 0
    if args.command == "status":
        return show_status(config)
    if args.command == "query":
        if args.execute:
            return asyncio.run(execute_summary_query(config))
        print(render_query_preview(config))
        return 0

    with ContentRepository(config.database_path) as repository:
        if args.command == "list":
            print(render_discussion_list(repository, config))
        elif args.command == "widget":
            print(render_dashboard_widget(repository, config))
        elif args.command == "block":
            print(render_repository_block(repository, args.category))
        elif args.command == "view":
            result = resolve_view(repository, config, args.record_id)
            if result.is_redirect:
                print(f"Location: {result.redirect_url}")
            else:
                print(result.html)
            return 0 if result.status < 400 else 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
