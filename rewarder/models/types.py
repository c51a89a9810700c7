from typing import NamedTuple

import eth_utils as eth

from rewarder.errors import ZeroAddressError

# type aliases for clarity
EthereumAddress = str
Epoch = int
Amount = int

ZERO_ADDRESS: EthereumAddress = "0x0000000000000000000000000000000000000000"


def checksum(address: str) -> EthereumAddress:
    """
    Normalize an address to its EIP-55 checksum form.
    Raises `ValueError` if the address is malformed and `ZeroAddressError` for the zero address
    """
    normalized = eth.to_checksum_address(address)
    if normalized == ZERO_ADDRESS:
        raise ZeroAddressError("the zero address cannot be used here")
    return normalized


class Claimable(NamedTuple):
    """
    :param `amount`: total that a claim would settle right now
    :param `next_epoch`: first epoch the claim would leave unprocessed
    """

    amount: Amount
    next_epoch: Epoch
