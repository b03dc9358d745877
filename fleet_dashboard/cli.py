import argparse
import asyncio
import logging
import sys

from fleet_dashboard.config import load_config
from fleet_dashboard.dashboard import Dashboard
from fleet_dashboard.errors import ConfigError
from fleet_dashboard.output import output_view

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Show fleet clusters and deployments from a published snapshot"
    )

    parser.add_argument("--url", help="Snapshot JSON URL")
    parser.add_argument("--config", help="Path to YAML config file")
    parser.add_argument(
        "--filter",
        default="",
        help="Filter by cluster, namespace, or version",
    )
    parser.add_argument(
        "--format",
        choices=["text", "json", "yaml"],
        default="text",
        help="Output format (text, json, yaml)",
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Keep refreshing on the interval and reprint after each refresh",
    )
    parser.add_argument("--interval", type=float, help="Refresh interval in seconds")
    parser.add_argument("--verbose", action="store_true")
    return parser


async def _watch(dashboard: Dashboard) -> None:
    async with dashboard:
        await asyncio.Event().wait()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(
            args.config,
            overrides={"url": args.url, "refresh_interval_seconds": args.interval},
        )
    except ConfigError as exc:
        logger.error("%s", exc)
        return 2

    def _print(dashboard: Dashboard) -> None:
        output_view(dashboard.view(), args.format)

    dashboard = Dashboard.from_config(
        config, on_refresh=_print if args.watch else None
    )
    dashboard.set_query(args.filter)

    if args.watch:
        try:
            asyncio.run(_watch(dashboard))
        except KeyboardInterrupt:
            logger.info("Stopped")
        return 0

    asyncio.run(dashboard.refresh())
    _print(dashboard)
    return 0 if dashboard.snapshot is not None else 1


if __name__ == "__main__":
    sys.exit(main())
