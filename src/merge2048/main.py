import argparse
import logging
from typing import List, Optional

from merge2048.game_core import EngineConfig
from merge2048.sim.batch import run_batch
from merge2048.sim.rollout import POLICY_NAMES


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Play seeded 2048 games with a simple policy and report statistics.")
    parser.add_argument("--games", type=int, default=100)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--policy", choices=POLICY_NAMES, default="random")
    parser.add_argument("--max-steps", type=int, default=10_000)
    parser.add_argument("--win-value", type=int, default=2048)
    parser.add_argument("--four-probability", type=float, default=0.1)
    parser.add_argument("--no-progress", action="store_true", help="关闭进度条")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    if args.games <= 0:
        print("[Error] --games 必须为正数")
        return 2

    config = EngineConfig(win_value=args.win_value, four_probability=args.four_probability)
    summary = run_batch(
        policy_name=args.policy,
        games=args.games,
        seed=args.seed,
        max_steps=args.max_steps,
        config=config,
        progress=not args.no_progress,
    )
    for line in summary.lines():
        print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
