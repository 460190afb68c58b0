#!/usr/bin/env python3
"""OS Data Pipeline — Entry point.

Runs a data pipeline file outside a container and prints the resulting
datasets as JSON. Handy for checking markup and handler config.

Usage:
    python3 main.py requests.xml                      # XML fragment
    python3 main.py gadget.html                       # <script type="text/os-data"> blocks
    python3 main.py requests.xml --config pipeline.yaml
    python3 main.py requests.xml --log-level DEBUG    # Verbose logging
"""

__version__ = "1.0.0"

import argparse
import json
import logging
import sys
import xml.etree.ElementTree as ET

from config import load_config
from core.errors import PipelineError
from core.pipeline_context import PipelineContext


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="OS Data Pipeline — resolve OpenSocial data requests",
    )
    parser.add_argument(
        "path",
        help="XML fragment with data requests, or an HTML page (.html/.htm)",
    )
    parser.add_argument(
        "--config", default="pipeline.yaml",
        help="Path to pipeline YAML config (default: pipeline.yaml)",
    )
    parser.add_argument(
        "--log-level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set the logging verbosity (default: WARNING)",
    )
    parser.add_argument(
        "--version", action="version",
        version=f"OS Data Pipeline {__version__}",
    )
    return parser.parse_args(argv)


def setup_logging(level_name: str) -> None:
    """Configure root logger with a consistent format."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-7s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def run(path: str, config: dict) -> dict:
    """Execute the pipeline in path and return every dataset."""
    with open(path, encoding="utf-8") as f:
        source = f.read()

    session = PipelineContext(config)
    if path.lower().endswith((".html", ".htm")):
        session.process_document_markup(source)
    else:
        session.load_requests(source)
        session.execute_requests()
    return session.data.snapshot()


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.log_level)

    logger = logging.getLogger(__name__)
    logger.info("OS Data Pipeline v%s starting", __version__)

    try:
        datasets = run(args.path, load_config(args.config))
    except (ET.ParseError, PipelineError) as exc:
        logger.error("Pipeline failed: %s", exc)
        return 1
    except OSError as exc:
        logger.error("Cannot read %s: %s", args.path, exc)
        return 1

    json.dump(datasets, sys.stdout, indent=2, sort_keys=True, default=str)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
