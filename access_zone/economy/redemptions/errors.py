class RedemptionError(Exception):
    pass


class RedemptionValidationError(RedemptionError):
    pass


class RedemptionNotFoundError(RedemptionError):
    pass


class RedemptionTransitionError(RedemptionError):
    pass


class ActivationCodeRequiredError(RedemptionValidationError):
    pass


class SubscriptionUnavailableError(RedemptionError):
    pass


class PointsCostMismatchError(RedemptionValidationError):
    pass
