#!/usr/bin/env python3
"""
Write filter files from downloaded IP-prefix documents.

Combines the known agent catalog (user-agent and UTM markers) with
prefix documents already saved to disk, and writes one filter file per
agent family. Downloading the documents is done separately (see the
"urls" listed per agent in config/constants.py).

Usage:
    python scripts/build_filters.py \\
        --prefixes openai=downloads/gptbot.json \\
        --prefixes openai=downloads/searchbot.json \\
        --prefixes google=downloads/googlebot.json \\
        --output data/filters

    # Print the source URLs for each agent
    python scripts/build_filters.py --list-sources
"""

import argparse
import json
import logging
import sys
from collections import defaultdict
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from llm_bot_detector.config import AGENT_CATALOG, KNOWN_AGENT_NAMES
from llm_bot_detector.filters import build_default_filters, write_filter_file

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def parse_prefix_arg(value: str) -> tuple[str, Path]:
    """Parse an 'agent=path' argument."""
    agent, sep, path = value.partition("=")
    if not sep or agent not in KNOWN_AGENT_NAMES:
        raise argparse.ArgumentTypeError(
            f"Invalid prefix source: {value!r}. Use agent=path with agent in "
            f"{', '.join(KNOWN_AGENT_NAMES)}"
        )
    return agent, Path(path)


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Build agent filter files from IP-prefix documents"
    )
    parser.add_argument(
        "--prefixes",
        action="append",
        type=parse_prefix_arg,
        default=[],
        help="Prefix document as agent=path (repeatable)",
    )
    parser.add_argument(
        "--output", "-o", type=Path, default=Path("data/filters"), help="Output dir"
    )
    parser.add_argument(
        "--list-sources", action="store_true", help="List prefix URLs and exit"
    )
    args = parser.parse_args()

    if args.list_sources:
        for name, info in AGENT_CATALOG.items():
            print(name)
            for url in info["urls"]:
                print(f"  {url}")
        return 0

    documents = defaultdict(list)
    for agent, path in args.prefixes:
        try:
            documents[agent].append(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Skipping {path}: {e}")

    filters = build_default_filters(documents)
    for agent_filter in filters:
        path = write_filter_file(args.output, agent_filter)
        logger.info(
            f"Wrote {path} ({len(agent_filter.ip_ranges)} ranges, "
            f"{len(agent_filter.user_agent_markers)} UA markers)"
        )

    return 0


if __name__ == "__main__":
    sys.exit(main())
