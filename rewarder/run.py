"""
Feed one epoch of weights end to end:

    python -m rewarder.run <config_dir> <weights.json|csv> [--reward N] [--deposit] [--yes]

Opens the report for the next epoch, pushes the weights in batches, seals after confirmation,
optionally funds the epoch and writes the epoch report to `reports/epoch-<n>`.
"""

import argparse
import logging
import sys
from typing import Optional

from rewarder import env
from rewarder.app import Rewarder, build
from rewarder.config import load_conf
from rewarder.errors import RewarderError
from rewarder.models import ReportStatus, StakerWeight
from rewarder.utils import chunks, read_weights, yes_or_no
from rewarder.writer import Writer, write_epoch_report

logger = logging.getLogger(__name__)


def abort_open_report(app: Rewarder) -> None:
    feeder = app.settings.feeder
    while app.feed.abort_report(feeder) > 0:
        print(f"🧹 {app.feed.staged_count(app.feed.next_epoch())} weights left to remove")


def feed_epoch(app: Rewarder, weights: list[StakerWeight], confirm: bool = True) -> int:
    """Open, populate and seal the next report. Returns the sealed epoch."""
    feeder = app.settings.feeder
    feed = app.feed

    if feed.status(feed.next_epoch()) != ReportStatus.NONE:
        print(f"⚠️  Epoch {feed.next_epoch()} has an unfinished report, aborting it first")
        abort_open_report(app)

    total_weight = sum(w.weight for w in weights)
    epoch = feed.open_report(feeder, total_weight, len(weights))
    print(f"📖 Opened epoch {epoch}: {len(weights)} stakers, total weight {total_weight}")

    for batch in chunks(weights, feed.max_batch_size):
        pushed = feed.push_weights(feeder, batch)
        print(f"📦 Pushed {pushed}/{len(weights)}")

    if confirm and not yes_or_no(f"Seal epoch {epoch}?"):
        abort_open_report(app)
        print(f"🛑 Epoch {epoch} was not sealed, the report has been removed")
        return epoch

    feed.seal_report(feeder)
    print(f"🔒 Sealed epoch {epoch}")
    return epoch


def fund_epoch(app: Rewarder, epoch: int, reward: int, deposit: bool) -> None:
    admin = app.settings.admin
    if deposit and reward > 0:
        app.pool.deposit(reward)
    app.distributor.set_epoch_reward(admin, epoch, reward)
    print(f"💰 Epoch {epoch} funded with {reward}, pool balance {app.pool.balance()}")


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.split("\n\n")[0])
    parser.add_argument("config_dir", help="directory holding rewarder-conf.json")
    parser.add_argument("weights", help="JSON or CSV file of address/weight pairs")
    parser.add_argument("--reward", type=int, help="reward to allocate to the epoch")
    parser.add_argument(
        "--deposit", action="store_true", help="deposit the reward into the pool first"
    )
    parser.add_argument("--yes", action="store_true", help="seal without asking")
    args = parser.parse_args(argv)

    logging.basicConfig(level=env.LOG_LEVEL)
    settings = load_conf(args.config_dir)
    app = build(settings)

    try:
        weights = read_weights(args.weights)
        epoch = feed_epoch(app, weights, confirm=not args.yes)
        if not app.feed.available(epoch):
            return 1
        if args.reward is not None:
            fund_epoch(app, epoch, args.reward, args.deposit)
        report = write_epoch_report(
            Writer(settings.reports_dir, epoch), app.feed, app.distributor
        )
    except RewarderError as e:
        logger.warning(f"{type(e).__name__}: {e}")
        print(f"❌ {e}")
        return 1

    print(
        f"🚀🚀🚀 Epoch {epoch} done: {report['distributed']} distributable, {report['dust']} dust"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
