class RewarderError(Exception):
    """Base class for every error raised by the settlement core"""

    pass


# authorization


class AuthorizationError(RewarderError):
    """Raise if the sender lacks the capability required for a call"""

    pass


class NotAuthorizedError(AuthorizationError):
    """Raise if the sender does not hold the required role"""

    pass


class NotApprovedError(AuthorizationError):
    """Raise if a delegate claims for a staker that has not approved it"""

    pass


# integrity: feeder-side bugs, remedy is correct-and-retry or abort-and-restart


class IntegrityError(RewarderError):
    pass


class InvalidEpochError(IntegrityError):
    """Raise if a report targets an epoch that is not open for reporting"""

    pass


class ReportExistsError(IntegrityError):
    pass


class ReportNotOpenError(IntegrityError):
    pass


class ReportNotSealedError(IntegrityError):
    """Raise if a sealed-only read is made against a report that is not sealed"""

    pass


class InvalidBatchError(IntegrityError):
    """Raise if a batch is empty or larger than the configured maximum"""

    pass


class DuplicateStakerError(IntegrityError):
    pass


class ZeroWeightError(IntegrityError):
    pass


class WeightOverflowError(IntegrityError):
    """Raise if pushed weights would exceed the declared totals"""

    pass


class TotalsMismatchError(IntegrityError):
    """Raise if pushed totals do not match the declared totals at seal"""

    pass


class ZeroAddressError(IntegrityError):
    pass


class ZeroAmountError(IntegrityError):
    pass


# policy: surfaced to the claiming party, remedy is administrative


class PolicyError(RewarderError):
    pass


class CapExceededError(PolicyError):
    """Raise if a single epoch share breaches the per-wallet concentration cap"""

    pass


class PausedError(PolicyError):
    pass


class RewardLockedError(PolicyError):
    """Raise if an epoch reward is changed after claims have settled against it"""

    pass


class DustUntrackedError(PolicyError):
    pass


class DustAlreadySweptError(PolicyError):
    pass


class LastAdminError(PolicyError):
    pass


# payout


class InsufficientBalanceError(RewarderError):
    """Raise if the reward pool cannot cover a payout"""

    pass


# configuration and upstream


class BadConfigException(Exception):
    pass


class MissingEnvironmentVariableException(Exception):
    pass


class EmptyQueryError(Exception):
    """Raise if the upstream reward source returns no usable result"""

    pass
