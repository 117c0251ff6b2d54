#!/usr/bin/env python3
"""
Classify a single request against the agent filters.

Useful for checking a filter directory or reproducing a report from the
collector without going through a web server.

Usage:
    # Crawl path (IP + user-agent)
    python scripts/check_request.py --ip 66.249.64.1 --user-agent "Googlebot/2.1"

    # Click path (UTM marker)
    python scripts/check_request.py --url "/blog?utm_source=chatgpt.com"

    # Behind a proxy
    python scripts/check_request.py --ip 10.0.0.1 \\
        --header "X-Forwarded-For: 1.2.3.4, 10.0.0.1" --user-agent "GPTBot/1.1"

    # Also deliver the event to the collector
    python scripts/check_request.py --ip 66.249.64.1 --user-agent Googlebot --emit
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from llm_bot_detector.config import get_settings
from llm_bot_detector.detection import RequestContext, TrafficDetector, classify
from llm_bot_detector.filters import FilterStore, load_filter_directory

logger = logging.getLogger(__name__)


def parse_header(header_str: str) -> tuple[str, str]:
    """Parse a 'Name: value' header argument."""
    name, sep, value = header_str.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(
            f"Invalid header: {header_str!r}. Use 'Name: value'"
        )
    return name.strip(), value.strip()


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Classify a request against LLM bot filters",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--ip", default="", help="Peer address of the request")
    parser.add_argument("--user-agent", "-A", default="", help="User-Agent header")
    parser.add_argument(
        "--url", "-u", default="/", help="Request path with query and fragment"
    )
    parser.add_argument("--host", help="Host header (for the destination URL)")
    parser.add_argument(
        "--header",
        "-H",
        action="append",
        type=parse_header,
        default=[],
        help="Extra header as 'Name: value' (repeatable)",
    )
    parser.add_argument(
        "--filters-dir",
        type=Path,
        help="Directory of filter JSON files (default: from settings)",
    )
    parser.add_argument("--config", type=str, help="Path to YAML config file")
    parser.add_argument(
        "--emit",
        action="store_true",
        help="Deliver the event to the collector on a match",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser.parse_args()


def main() -> int:
    """Main entry point."""
    args = parse_args()
    settings = get_settings(args.config)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    filters_dir = args.filters_dir or Path(settings.filters_dir)
    filters = load_filter_directory(filters_dir)
    if not filters:
        logger.error(f"No filters loaded from {filters_dir}")
        return 1

    headers = dict(args.header)
    if args.user_agent:
        headers["User-Agent"] = args.user_agent
    context = RequestContext(
        address=args.ip, headers=headers, url=args.url, host=args.host
    )

    if args.emit:
        errors = settings.validate()
        if errors:
            for error in errors:
                logger.error(f"Config error: {error}")
            return 1
        detector = TrafficDetector(settings=settings, store=FilterStore(filters))
        try:
            outcome = detector.inspect(context)
        finally:
            detector.close()
        result = outcome.result
    else:
        result = classify(context, filters)

    if result is None:
        print("No match")
        return 2

    print(json.dumps(result.to_payload(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
