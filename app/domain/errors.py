"""Onboarding error categories and their user-facing messages."""

from enum import Enum


class OnboardingErrorCategory(str, Enum):
    """Failure categories surfaced to the checkout wizard."""

    CONFIGURATION_MISSING = "configuration_missing"
    VALIDATION_MISSING_FIELDS = "validation_missing_fields"
    VALIDATION_REJECTED = "validation_rejected"
    DUPLICATE_INVESTOR = "duplicate_investor"
    AUTH_FAILURE = "auth_failure"
    DEAL_NOT_FOUND = "deal_not_found"
    UNKNOWN_CREATE_FAILURE = "unknown_create_failure"
    UPDATE_FAILED = "update_failed"
    NETWORK_FAILURE = "network_failure"


USER_MESSAGES = {
    OnboardingErrorCategory.CONFIGURATION_MISSING:
        "DealMaker is not configured. Add API credentials to proceed.",
    OnboardingErrorCategory.VALIDATION_MISSING_FIELDS:
        "Please fill in all required fields (first name, last name, and email).",
    OnboardingErrorCategory.VALIDATION_REJECTED:
        "The information provided could not be processed. Please check your details and try again.",
    OnboardingErrorCategory.DUPLICATE_INVESTOR:
        "An investor with this email already exists for this deal. Please use a different email address.",
    OnboardingErrorCategory.AUTH_FAILURE:
        "Authentication error. Please try again later.",
    OnboardingErrorCategory.DEAL_NOT_FOUND:
        "The investment deal could not be found. Please try again later.",
    OnboardingErrorCategory.UNKNOWN_CREATE_FAILURE:
        "Something went wrong. Please try again or contact support.",
    OnboardingErrorCategory.UPDATE_FAILED:
        "Failed to update investor record",
    OnboardingErrorCategory.NETWORK_FAILURE:
        "Network error. Please check your connection and try again.",
}


class OnboardingError(Exception):
    """Classified onboarding failure with a user-safe message."""

    def __init__(self, category: OnboardingErrorCategory, message: str) -> None:
        super().__init__(message)
        self.category = category
        self.message = message

    def __str__(self) -> str:
        return f"{self.category.value}: {self.message}"

    @classmethod
    def of(cls, category: OnboardingErrorCategory) -> "OnboardingError":
        return cls(category=category, message=USER_MESSAGES[category])
