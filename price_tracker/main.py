from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from . import config, fetcher, scraper
from .db import AlertStore
from .errors import TrackerError
from .scheduler import RunCoordinator
from .tracker import PriceTracker


def setup_logging() -> None:
    level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_coordinator(store: AlertStore) -> RunCoordinator:
    tracker = PriceTracker(
        store,
        window_size=config.MAX_CONCURRENT_REQUESTS,
        max_attempts=config.RETRY_COUNT,
        request_timeout=config.REQUEST_TIMEOUT_SECONDS,
        backoff_max=config.RETRY_BACKOFF_MAX_SECONDS,
    )
    return RunCoordinator(store, tracker, cron=config.CRON_SCHEDULE, timezone=config.SCHEDULER_TIMEZONE)


def cmd_run(store: AlertStore, args: argparse.Namespace) -> int:
    logger = logging.getLogger(__name__)
    coordinator = build_coordinator(store)
    logger.info(
        "Starting price tracker (cron=%r, window=%d, attempts=%d).",
        config.CRON_SCHEDULE, config.MAX_CONCURRENT_REQUESTS, config.RETRY_COUNT,
    )
    coordinator.start(run_immediately=config.RUN_ON_START or args.now)
    return 0


def cmd_once(store: AlertStore, args: argparse.Namespace) -> int:
    summary = build_coordinator(store).tick()
    if summary is None:
        return 1
    print(summary.describe())
    return 0


def cmd_add(store: AlertStore, args: argparse.Namespace) -> int:
    """Look up the product page, then store an alert for it."""
    html = fetcher.fetch(args.url, config.RETRY_COUNT)
    product = scraper.get_extractor(args.url).extract_product(html, args.url)
    alert = store.add_alert(
        title=product.title or args.url,
        url=args.url,
        image_url=product.image_url,
        price=product.price,
        target_price=args.target,
        user_email=args.email,
    )
    print(f"{alert.id}  {alert.title}  now={alert.price:.2f} target={alert.target_price:.2f}")
    return 0


def cmd_list(store: AlertStore, args: argparse.Namespace) -> int:
    alerts = store.find_by_email(args.email) if args.email else store.find_all()
    for a in alerts:
        print(f"{a.id}  {a.user_email}  target={a.target_price:.2f}  last={a.price:.2f}  {a.url}")
    if not alerts:
        print("No alerts.")
    return 0


def cmd_delete(store: AlertStore, args: argparse.Namespace) -> int:
    if not store.delete_by_id(args.id):
        print(f"No alert {args.id}")
        return 1
    print(f"Deleted {args.id}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="price-tracker", description="Track product prices and email on drops.")
    sub = parser.add_subparsers(dest="command")

    p_run = sub.add_parser("run", help="run ticks on the cron schedule (default)")
    p_run.add_argument("--now", action="store_true", help="run one tick before the first scheduled fire")
    p_run.set_defaults(func=cmd_run)

    p_once = sub.add_parser("once", help="run a single tick and exit")
    p_once.set_defaults(func=cmd_once)

    p_add = sub.add_parser("add", help="track a product page")
    p_add.add_argument("url")
    p_add.add_argument("target", type=float)
    p_add.add_argument("email")
    p_add.set_defaults(func=cmd_add)

    p_list = sub.add_parser("list", help="list tracked alerts")
    p_list.add_argument("email", nargs="?")
    p_list.set_defaults(func=cmd_list)

    p_delete = sub.add_parser("delete", help="stop tracking an alert")
    p_delete.add_argument("id")
    p_delete.set_defaults(func=cmd_delete)

    parser.set_defaults(func=cmd_run, now=False)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Initialise the store and dispatch the requested command."""
    args = build_parser().parse_args(argv)
    config.validate()
    setup_logging()
    logger = logging.getLogger(__name__)

    logger.info("Initializing database…")
    store = AlertStore(config.SQLITE_DB_PATH)
    store.init_db()

    try:
        return args.func(store, args)
    except TrackerError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
