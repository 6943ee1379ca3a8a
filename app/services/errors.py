"""Exception taxonomy for billing, renewal and reminder operations."""


class BillingError(Exception):
    """Base class for errors raised by the billing core."""


class ConfigurationError(BillingError):
    """Something the operation depends on is not configured. Not retried automatically."""


class MissingPlanError(ConfigurationError):
    def __init__(self, client_id):
        super().__init__(f"Client {client_id} has no plan")
        self.client_id = client_id


class MissingPanelCredentialError(ConfigurationError):
    def __init__(self, plan_id):
        super().__init__(f"Plan {plan_id} has no panel credential")
        self.plan_id = plan_id


class RenewalApiNotConfiguredError(ConfigurationError):
    def __init__(self):
        super().__init__("Renewal API not configured by admin")


class UnknownProviderError(ConfigurationError):
    def __init__(self, provider):
        super().__init__(f"Unknown panel provider: {provider!r}")
        self.provider = provider


class PaymentGatewayNotConfiguredError(ConfigurationError):
    def __init__(self, owner_id):
        super().__init__("Payment not configured")
        self.owner_id = owner_id


class NotFoundError(BillingError):
    """A record the caller referenced does not exist (or is not theirs)."""


class IntegrationError(BillingError):
    """An external service could not be reached or answered unusably."""


class RenewalTransportError(IntegrationError):
    def __init__(self, message, retry_entry_id=None):
        super().__init__(message)
        self.retry_entry_id = retry_entry_id


class PaymentGatewayError(IntegrationError):
    pass


class PlatformGatewayNotConfiguredError(ConfigurationError):
    def __init__(self):
        super().__init__("Payment system not configured by admin")
