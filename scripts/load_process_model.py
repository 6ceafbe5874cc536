#!/usr/bin/env python3
"""CLI script to load the transitions of a process model version.

The input is a JSON file:

    {
      "model_version": "orders-v1",
      "transitions": [
        {"stage_id": 1010, "activity_id": 800, "next_stage_id": 1020, "name": "Create order"},
        {"stage_id": 1020, "activity_id": 801, "next_stage_id": 1020, "name": "Update order"}
      ]
    }

All existing transitions of the model version are replaced.
"""

import argparse
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import orjson
import structlog

from order_sync_service.config import get_settings
from order_sync_service.domain import Transition
from order_sync_service.infrastructure.database.connection import get_sync_session
from order_sync_service.services.case_store import SqlProcessModel
from shared.logging import configure_logging

logger = structlog.get_logger()


def read_transitions(path: Path) -> tuple[str, list[Transition]]:
    document = orjson.loads(path.read_bytes())
    model_version = str(document["model_version"])
    transitions = [
        Transition(
            model_version=model_version,
            stage_id=int(item["stage_id"]),
            activity_id=int(item["activity_id"]),
            next_stage_id=int(item["next_stage_id"]),
            name=str(item.get("name", "")),
        )
        for item in document.get("transitions", [])
    ]
    return model_version, transitions


def main() -> None:
    parser = argparse.ArgumentParser(description="Load a process model into the order sync database")
    parser.add_argument("path", type=Path, help="JSON file with the model transitions")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(debug=settings.debug, log_level=settings.log_level)

    model_version, transitions = read_transitions(args.path)
    logger.info("Loading process model", model_version=model_version, path=str(args.path))

    with get_sync_session() as session:
        count = SqlProcessModel(session).replace_transitions(model_version, transitions)

    logger.info("Process model loaded", model_version=model_version, transitions=count)


if __name__ == "__main__":
    main()
