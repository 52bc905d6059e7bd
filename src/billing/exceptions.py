from src.core.errors.exceptions import (
    InstanceProcessingException,
    ServiceUnavailableException,
)


class WebhookSignatureException(InstanceProcessingException):
    code = "INVALID_SIGNATURE"
    default_message = "Invalid webhook signature"


class InvalidWebhookPayloadException(InstanceProcessingException):
    code = "INVALID_PAYLOAD"
    default_message = "Invalid webhook payload"


class BillingProviderException(ServiceUnavailableException):
    code = "BILLING_UNAVAILABLE"
    default_message = "Billing provider is temporarily unavailable"


class NoActiveSubscriptionException(InstanceProcessingException):
    default_message = "No active subscription found"
