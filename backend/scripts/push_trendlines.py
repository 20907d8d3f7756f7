#!/usr/bin/env python3
"""Copy the locally saved trendlines to the trendline REST API."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from trendchart.config import API_BASE_URL, local_state_path  # noqa: E402
from trendchart.errors import RemoteSyncError  # noqa: E402
from trendchart.persistence import SqliteKeyValueStore, TrendlinePersistence  # noqa: E402
from trendchart.remote_client import RemoteSyncClient, trendline_to_create  # noqa: E402

logger = logging.getLogger("push_trendlines")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Push locally saved trendlines to the REST API.")
    parser.add_argument("--api", default=API_BASE_URL, help="Base URL of the trendline API")
    parser.add_argument("--db", default=None, help="Path to the local state database")
    parser.add_argument("--user-id", type=int, default=None, help="Owner recorded on each trendline")
    return parser.parse_args()


async def push(api: str, db: str | None, user_id: int | None) -> int:
    persistence = TrendlinePersistence(SqliteKeyValueStore(db or local_state_path()))
    trendlines = persistence.load()
    pushed = 0
    async with RemoteSyncClient(base_url=api) as client:
        for trendline in trendlines:
            try:
                record = await client.create_trendline(trendline_to_create(trendline, user_id=user_id))
            except RemoteSyncError as exc:
                logger.error("Skipping trendline %s: %s", trendline.id, exc)
                continue
            logger.info("Pushed trendline %s as remote id %s", trendline.id, record.id)
            pushed += 1
    return pushed


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = parse_args()
    pushed = asyncio.run(push(args.api, args.db, args.user_id))
    print(f"Pushed {pushed} trendline(s)")


if __name__ == "__main__":
    main()
