# Database models
from .base import Base
from .user import User
from .profile import Profile
from .panel_credential import PanelCredential, PanelProvider
from .plan import Plan, Server
from .client import Client, PaymentType
from .payment import Payment, PaymentStatus
from .message_template import MessageTemplate
from .reminder import Reminder
from .renewal import RenewalRetryQueueEntry, RetryStatus, ActivityLog, ActivityStatus
from .system_settings import SystemSetting
from .platform import PlatformPlan, PlatformPayment

__all__ = [
    "Base",
    "User",
    "Profile",
    "PanelCredential",
    "PanelProvider",
    "Plan",
    "Server",
    "Client",
    "PaymentType",
    "Payment",
    "PaymentStatus",
    "MessageTemplate",
    "Reminder",
    "RenewalRetryQueueEntry",
    "RetryStatus",
    "ActivityLog",
    "ActivityStatus",
    "SystemSetting",
    "PlatformPlan",
    "PlatformPayment",
]
