"""CLI entrypoint for the socowatcher agent."""

from __future__ import annotations

import argparse
import dataclasses
import functools
import json
import logging
import sys
from dataclasses import dataclass
from typing import Optional
from pathlib import Path

from socowatcher.config import Settings
from socowatcher.crawler import Crawler
from socowatcher.db import Database, resolve_sqlite_path
from socowatcher.districts import DistrictCatalog, default_catalog
from socowatcher.exceptions import CrawlFailed, DistrictNotFound, SyncFailed
from socowatcher.notifications import EmailNotifier, build_email_notifier, build_notifier
from socowatcher.runner import SyncRunner
from socowatcher.session import PlaywrightDriver

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_NOT_FOUND = 2
EXIT_FAILED = 3


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Seoul youth housing monitoring agent")
    parser.add_argument("--init", action="store_true", help="initialize storage and exit")
    parser.add_argument(
        "--run",
        action="store_true",
        help="execute one sync cycle and notify on changes (cron target)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="skip persistence updates and notifications while still crawling and diffing",
    )
    parser.add_argument("--crawl", metavar="DISTRICT", help="crawl one district and print JSON")
    parser.add_argument("--crawl-all", action="store_true", help="crawl every district and print JSON")
    parser.add_argument("--districts", action="store_true", help="list known districts")
    parser.add_argument("--export", metavar="PATH", help="export stored complexes to an .xlsx file")
    parser.add_argument("--serve", action="store_true", help="start the HTTP API")
    parser.add_argument(
        "--target-url",
        default=None,
        help="URL to monitor (overrides TARGET_URL env var)",
    )
    parser.add_argument("--verbose", action="store_true", help="enable debug logging")
    return parser


@dataclass
class Components:
    catalog: DistrictCatalog
    database: Database
    crawler: Crawler
    runner: SyncRunner
    email_notifier: Optional[EmailNotifier] = None


def build_components(settings: Settings) -> Components:
    catalog = default_catalog()
    database = Database(path=resolve_sqlite_path(settings.database_url))
    crawler = Crawler(
        catalog=catalog,
        driver_factory=functools.partial(PlaywrightDriver.open, headless=settings.headless),
        target_url=settings.target_url,
    )
    email_notifier = build_email_notifier(
        settings,
        subscriber_emails=lambda: [subscriber.email for subscriber in database.list_active()],
    )
    notifier = build_notifier(settings, email=email_notifier)
    runner = SyncRunner(database=database, crawler=crawler, catalog=catalog, notifier=notifier)
    return Components(catalog=catalog, database=database, crawler=crawler, runner=runner,
                      email_notifier=email_notifier)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    settings = Settings.from_env()
    if args.target_url:
        settings = dataclasses.replace(settings, target_url=args.target_url)
    components = build_components(settings)

    if args.init:
        components.runner.init()
        return EXIT_OK

    if args.districts:
        for name in components.catalog.names():
            print(name)
        return EXIT_OK

    if args.crawl or args.crawl_all:
        try:
            if args.crawl_all:
                result = components.crawler.crawl_all_districts()
            else:
                result = components.crawler.crawl_district(args.crawl)
        except DistrictNotFound as exc:
            logger.error("%s", exc)
            return EXIT_NOT_FOUND
        except CrawlFailed:
            return EXIT_FAILED
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        return EXIT_OK

    if args.export:
        components.runner.init()
        path = components.database.export_listings_to_xlsx(Path(args.export))
        logger.info("Exported housing complexes to %s", path)
        return EXIT_OK

    if args.serve:
        import uvicorn

        from socowatcher.api import create_app

        components.runner.init()
        app = create_app(
            runner=components.runner,
            crawler=components.crawler,
            catalog=components.catalog,
            database=components.database,
            email_notifier=components.email_notifier,
        )
        uvicorn.run(app, host=settings.api_host, port=settings.api_port)
        return EXIT_OK

    if not args.run:
        parser.print_help()
        return EXIT_USAGE

    components.runner.init()
    try:
        result = components.runner.run_and_notify(dry_run=args.dry_run)
    except SyncFailed:
        logger.error("Sync failed; see log for details")
        return EXIT_FAILED

    if result.changes:
        logger.info("Status changes detected (%d):", len(result.changes))
        for record in result.changes:
            logger.info(
                "%s | %s | %s | %s",
                record.name,
                record.district,
                record.description or "N/A",
                record.detail_url or "N/A",
            )
    else:
        logger.info("No status changes detected in this run.")
    logger.info(
        "Saved %d complexes (%d created, %d updated)",
        result.saved_count,
        result.created,
        result.updated,
    )
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
