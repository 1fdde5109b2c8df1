class LedgerError(Exception):
    pass


class ProfileNotFoundError(LedgerError):
    pass


class InvalidPointsError(LedgerError):
    pass


class EmptyDescriptionError(LedgerError):
    pass


class DuplicateTransactionError(LedgerError):
    pass


class InsufficientPointsError(LedgerError):
    pass


class NegativeBalanceError(LedgerError):
    pass
