import json
from pathlib import Path

import pytest

from rewarder.app import build
from rewarder.auth import Role
from rewarder.clock import ManualEpochClock
from rewarder.config import CONF_FILE, load_conf, write_conf
from rewarder.errors import BadConfigException
from rewarder.models import ClaimConfig, ReportStatus, Settings
from rewarder.run import main
from rewarder.storage import DB
from rewarder.test.conftest import address
from rewarder.utils import read_weights, yes_or_no

ADMIN = address(0xAD)
FEEDER = address(0xFEED)
TREASURY = address(0x7EA5)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        admin=ADMIN,
        feeder=FEEDER,
        treasury=TREASURY,
        max_claim_epochs_per_call=12,
        max_stakers_per_batch=5,
        db_path=str(tmp_path / "db" / "rewarder-db.json"),
        reports_dir=str(tmp_path / "reports"),
    )


@pytest.fixture
def weights_file(tmp_path) -> str:
    path = tmp_path / "weights.json"
    path.write_text(
        json.dumps(
            [
                {"address": address(0x1000).lower(), "weight": "60"},
                {"address": address(0x1001), "weight": 40},
            ]
        )
    )
    return str(path)


def test_conf_round_trip(tmp_path, settings):
    path = write_conf(settings, str(tmp_path / "conf"))
    assert path.name == CONF_FILE
    assert load_conf(str(tmp_path / "conf")) == settings


def test_load_conf_errors(tmp_path):
    with pytest.raises(BadConfigException):
        load_conf(str(tmp_path))

    (tmp_path / CONF_FILE).write_text(json.dumps({"admin": ADMIN}))
    with pytest.raises(BadConfigException):
        load_conf(str(tmp_path))


def test_build(settings):
    db = DB()
    app = build(settings, db=db, clock=ManualEpochClock(2))

    assert app.auth.has_role(Role.ADMIN, ADMIN)
    assert app.auth.has_role(Role.FEEDER, FEEDER)
    assert app.distributor.treasury() == TREASURY
    assert app.distributor.claim_config() == ClaimConfig(
        max_claim_epochs_per_call=12, max_stakers_per_batch=5
    )

    # rebuilding over the same database does not repeat the setup
    again = build(settings, db=db, clock=ManualEpochClock(2))
    assert len(again.distributor.events("ClaimConfigUpdated")) == 1
    assert len(again.distributor.events("RoleGranted")) == 1


def test_build_follows_claim_limits(settings):
    db = DB()
    build(settings, db=db, clock=ManualEpochClock(2))

    settings.max_claim_epochs_per_call = 6
    settings.max_stakers_per_batch = 20
    app = build(settings, db=db, clock=ManualEpochClock(2))

    assert app.distributor.claim_config() == ClaimConfig(
        max_claim_epochs_per_call=6, max_stakers_per_batch=20
    )
    assert len(app.distributor.events("ClaimConfigUpdated")) == 2


def test_read_weights_csv(tmp_path):
    path = tmp_path / "weights.csv"
    path.write_text(f"address,weight\n{address(0x1000)},7\n{address(0x1001)},3\n")

    weights = read_weights(str(path))

    assert [(w.address, w.weight) for w in weights] == [
        (address(0x1000), 7),
        (address(0x1001), 3),
    ]


def test_read_weights_json(weights_file):
    weights = read_weights(weights_file)
    assert weights[0].address == address(0x1000)
    assert weights[0].weight == 60


@pytest.mark.parametrize(
    "answers, expected",
    [(["y"], True), (["No"], False), ([""], False), (["maybe", "yes"], True)],
)
def test_yes_or_no(monkeypatch, answers, expected):
    replies = iter(answers)
    monkeypatch.setattr("builtins.input", lambda _: next(replies))
    assert yes_or_no("Seal?") is expected


def test_main(tmp_path, settings, weights_file):
    conf_dir = str(tmp_path / "conf")
    write_conf(settings, conf_dir)

    code = main([conf_dir, weights_file, "--reward", "1000", "--deposit", "--yes"])
    assert code == 0

    summary = Path(settings.reports_dir) / "epoch-1" / "json" / "summary.json"
    report = json.loads(summary.read_text())
    assert report["reward"] == "1000"
    assert report["distributed"] == "1000"
    assert report["dust"] == "0"

    app = build(load_conf(conf_dir))
    assert app.feed.status(1) == ReportStatus.SEALED
    assert app.pool.balance() == 1000
    assert app.distributor.funded_reward(1).amount == 1000


def test_main_zero_reward_deposit(tmp_path, settings, weights_file):
    conf_dir = str(tmp_path / "conf")
    write_conf(settings, conf_dir)

    code = main([conf_dir, weights_file, "--reward", "0", "--deposit", "--yes"])
    assert code == 0

    app = build(load_conf(conf_dir))
    assert app.feed.status(1) == ReportStatus.SEALED
    assert app.pool.balance() == 0
    assert app.distributor.funded_reward(1).amount == 0


def test_main_declined(tmp_path, monkeypatch, settings, weights_file):
    conf_dir = str(tmp_path / "conf")
    write_conf(settings, conf_dir)
    monkeypatch.setattr("builtins.input", lambda _: "n")

    assert main([conf_dir, weights_file]) == 1

    app = build(load_conf(conf_dir))
    assert app.feed.status(1) == ReportStatus.NONE
    assert app.feed.staged_count(1) == 0
    assert not (Path(settings.reports_dir) / "epoch-1").exists()


def test_main_rejects_bad_weights(tmp_path, settings):
    conf_dir = str(tmp_path / "conf")
    write_conf(settings, conf_dir)
    weights = tmp_path / "dupes.json"
    weights.write_text(
        json.dumps(
            [
                {"address": address(0x1000), "weight": 1},
                {"address": address(0x1000), "weight": 2},
            ]
        )
    )

    assert main([conf_dir, str(weights), "--yes"]) == 1
