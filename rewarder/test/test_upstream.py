import pytest

from rewarder.errors import EmptyQueryError
from rewarder.test.conftest import MockResponse
from rewarder.upstream import HttpRewardSource, StaticRewardSource

URL = "https://rewards.example/pull"


def mock_post(monkeypatch, res, calls=None):
    def _post(url, json, timeout):
        if calls is not None:
            calls.append((url, json))
        return MockResponse(res)

    monkeypatch.setattr("rewarder.upstream.requests.post", _post)


def test_http_pull(monkeypatch, admin):
    calls = []
    mock_post(monkeypatch, {"amount": "1000000000000000000000"}, calls)

    amount = HttpRewardSource(URL).pull_upstream(admin)

    assert amount == 10**21
    assert calls == [(URL, {"identity": admin})]


def test_http_pull_nothing_accrued(monkeypatch, admin):
    mock_post(monkeypatch, {"amount": 0})
    assert HttpRewardSource(URL).pull_upstream(admin) == 0


@pytest.mark.parametrize(
    "res",
    [
        {},
        {"errors": ["rate limited"]},
        {"data": {}},
        {"amount": "-5"},
    ],
)
def test_http_pull_bad_response(monkeypatch, admin, res):
    mock_post(monkeypatch, res)
    with pytest.raises(EmptyQueryError):
        HttpRewardSource(URL).pull_upstream(admin)


def test_static_source():
    source = StaticRewardSource([5, 7])
    assert source.pull_upstream("x") == 5
    assert source.pull_upstream("x") == 7
    assert source.pull_upstream("x") == 0
    assert source.pulls == ["x", "x", "x"]


def test_static_sources_do_not_share_state():
    first, second = StaticRewardSource(), StaticRewardSource()
    first.amounts.append(5)

    assert second.pull_upstream("x") == 0
    assert first.pull_upstream("x") == 5


def test_distributor_pulls_over_http(monkeypatch, db, clock, auth, feed, pool, admin, seal_epoch, treasury):
    from rewarder.distributor import RewardDistributor, WeightedShares

    mock_post(monkeypatch, {"amount": "250"})
    distributor = RewardDistributor(
        db, clock, auth, WeightedShares(feed), pool,
        source=HttpRewardSource(URL), identity=admin,
    )
    seal_epoch([(treasury, 10)])

    assert distributor.pull_from_upstream(admin) == 250
    assert distributor.funded_reward(1).amount == 250
    assert pool.balance() == 250
