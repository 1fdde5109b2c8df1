from access_zone.db.models.base import Base
from access_zone.db.models.points_audit_log import PointsAuditEntry
from access_zone.db.models.profiles import Profile
from access_zone.db.models.promo_code_redemptions import PromoCodeRedemption
from access_zone.db.models.promo_codes import PromoCode
from access_zone.db.models.redemption_requests import RedemptionRequest
from access_zone.db.models.subscription_availability import SubscriptionAvailability
from access_zone.db.models.tasks import Task
from access_zone.db.models.transactions import Transaction

__all__ = [
    "Base",
    "PointsAuditEntry",
    "Profile",
    "PromoCode",
    "PromoCodeRedemption",
    "RedemptionRequest",
    "SubscriptionAvailability",
    "Task",
    "Transaction",
]
