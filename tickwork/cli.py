from __future__ import annotations

import argparse
import asyncio
import json
import logging
from dataclasses import replace

from .config import settings
from .main import run_demo


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="tickwork periodic runner demo")
    parser.add_argument("--interval", type=float, default=settings.interval_seconds)
    parser.add_argument("--max-runs", type=int, default=settings.max_runs)
    parser.add_argument("--fail-every", type=int, default=0, help="fail every Nth cycle (0 disables)")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    cfg = replace(settings, interval_seconds=args.interval, max_runs=args.max_runs)
    snapshot = asyncio.run(run_demo(cfg, fail_every=args.fail_every))
    print(json.dumps(snapshot.to_dict(), indent=2))


if __name__ == "__main__":
    main()
