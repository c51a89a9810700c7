import csv
import json
from pathlib import Path
from typing import Iterator, TypeVar

from pydantic import TypeAdapter

from rewarder.models import StakerWeight

# python insantiates generics separate to function definition
T = TypeVar("T")


def chunks(ls: list[T], size: int) -> Iterator[list[T]]:
    """Split a list into consecutive batches of at most `size` items"""
    for i in range(0, len(ls), size):
        yield ls[i : i + size]


def yes_or_no(question: str) -> bool:
    """
    Require y or n (case insenstive) as answer to `question`.
    Defaults to N with no response
    """
    while "the answer is invalid":
        reply = input(f"{question} [y/N]: ")
        if not reply:
            return False
        reply = str(reply).lower().strip()
        if reply[:1] == "y":
            return True
        if reply[:1] == "n":
            return False
    return False


def read_weights(path: str) -> list[StakerWeight]:
    """
    Load weights computed off-chain. Accepts a JSON list of `{"address", "weight"}` objects
    or a CSV file with `address` and `weight` columns.
    """
    if Path(path).suffix == ".csv":
        with open(path, newline="") as f:
            rows = list(csv.DictReader(f))
    else:
        with open(path) as f:
            rows = json.load(f)
    return TypeAdapter(list[StakerWeight]).validate_python(rows)
