class PromoError(Exception):
    pass


class PromoUserNotFoundError(PromoError):
    pass


class PromoInvalidError(PromoError):
    pass


class PromoInactiveError(PromoError):
    pass


class PromoNotStartedError(PromoError):
    pass


class PromoExpiredError(PromoError):
    pass


class PromoExhaustedError(PromoError):
    pass


class PromoAlreadyRedeemedError(PromoError):
    pass


class PromoCodeConflictError(PromoError):
    pass


class PromoCodeNotFoundError(PromoError):
    pass
