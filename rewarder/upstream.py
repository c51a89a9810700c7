from typing import Any, Optional, Protocol, TypedDict, cast

import requests

from rewarder.errors import EmptyQueryError


class RewardSource(Protocol):
    """Reports rewards accrued upstream since the last pull. Returns 0 when nothing accrued."""

    def pull_upstream(self, identity: str) -> int:
        ...


class PullRequest(TypedDict):
    """
    Typechecker for JSON data posted to the upstream endpoint
    :param `identity`: address of the distributor pulling rewards
    """

    identity: str


class HttpRewardSource:
    """
    Pulls accrued rewards from an HTTP endpoint that answers `{"amount": "<integer>"}`.
    Amounts may be sent as strings to keep large integers intact.
    """

    def __init__(self, url: str, timeout: float = 30):
        self.url = url
        self.timeout = timeout

    def pull_upstream(self, identity: str) -> int:
        params: PullRequest = {"identity": identity}
        response: dict[str, Any] = requests.post(
            self.url, json=params, timeout=self.timeout
        ).json()

        if not response:
            raise EmptyQueryError(f"No results for reward pull from {self.url}")
        if "errors" in response:
            raise EmptyQueryError(
                f"Error in reward pull from {self.url}: {cast(dict, response)['errors']}"
            )
        if "amount" not in response:
            raise EmptyQueryError(f"Reward pull from {self.url} returned no amount")

        amount = int(response["amount"])
        if amount < 0:
            raise EmptyQueryError(f"Reward pull from {self.url} returned {amount}")
        return amount


class StaticRewardSource:
    """Hands out queued amounts in order, then 0"""

    def __init__(self, amounts: Optional[list[int]] = None):
        self.amounts = list(amounts or [])
        self.pulls: list[str] = []

    def pull_upstream(self, identity: str) -> int:
        self.pulls.append(identity)
        if not self.amounts:
            return 0
        return self.amounts.pop(0)
