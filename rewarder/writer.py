import csv
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from rewarder.distributor import RewardDistributor
from rewarder.feeds import ContributionFeed


@dataclass
class Writer:
    """Exports sealed epochs and their settlements under `reports/epoch-<n>`"""

    reports_dir: str
    epoch: int

    @property
    def path(self) -> str:
        return f"{self.reports_dir}/epoch-{self.epoch}"

    @property
    def csv_path(self) -> str:
        return f"{self.path}/csv"

    @property
    def json_path(self) -> str:
        return f"{self.path}/json"

    @staticmethod
    def flatten_json(y: Any) -> dict[str, Any]:
        out = {}

        def flatten(x, name=""):
            # nested dicts and lists become underscore-joined keys
            if type(x) is dict:
                for a in x:
                    flatten(x[a], name + a + "_")
            elif type(x) is list:
                for i, a in enumerate(x):
                    flatten(a, name + str(i) + "_")
            else:
                out[name[:-1]] = x

        flatten(y)
        return out

    @staticmethod
    def write_csv(rows: list[dict[str, Any]], path: str, fieldnames: list[str]) -> None:
        with open(path, "w+", newline="") as f:
            writer = csv.DictWriter(
                f, delimiter=",", fieldnames=fieldnames, extrasaction="ignore"
            )
            writer.writeheader()
            writer.writerows(rows)

    # create the directory in the reports folder for csv and json if it doesn't exist
    def _create_dir(self) -> None:
        Path(self.csv_path).mkdir(parents=True, exist_ok=True)
        Path(self.json_path).mkdir(parents=True, exist_ok=True)

    def to_json(self, data: Any, name: str) -> None:
        self._create_dir()
        with open(f"{self.json_path}/{name}.json", "w") as f:
            json.dump(data, f, indent=4)

    def to_csv_and_json(self, data: Any, name: str) -> None:
        rows = data if isinstance(data, list) else [data]
        flattened = [self.flatten_json(row) for row in rows]
        keys = list(flattened[0].keys()) if flattened else []
        self.to_json(data, name)
        self._create_dir()
        self.write_csv(flattened, f"{self.csv_path}/{name}.csv", keys)


def write_epoch_report(
    writer: Writer, feed: ContributionFeed, distributor: RewardDistributor
) -> dict[str, Any]:
    """
    Write the sealed weights of `writer.epoch` and a summary including what each staker
    is entitled to. Shares are computed with the same floor division used at claim time.
    """
    epoch = writer.epoch
    summary = feed.summary(epoch)
    funded = distributor.funded_reward(epoch)
    reward = 0 if funded is None else funded.amount

    weights = [
        {
            "address": w.address,
            "weight": str(w.weight),
            "share": str(w.weight * reward // summary.total_weight),
        }
        for w in feed.weights(epoch)
    ]
    distributed = sum(int(w["share"]) for w in weights)
    report = {
        "epoch": epoch,
        "total_weight": str(summary.total_weight),
        "stakers": summary.count,
        "reward": str(reward),
        "distributed": str(distributed),
        "dust": str(reward - distributed),
        "funded": funded is not None,
    }

    writer.to_csv_and_json(weights, "weights")
    writer.to_csv_and_json(report, "summary")
    return report
