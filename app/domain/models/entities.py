"""
Domain Models - Entities
Pure domain objects with no infrastructure dependencies
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple


class Section(str, Enum):
    """Checkout wizard section, in display order"""
    INVESTMENT = "investment"
    CONTACT = "contact"
    CONFIRMATION = "confirmation"
    PAYMENT = "payment"


SECTION_ORDER: Tuple[Section, ...] = (
    Section.INVESTMENT,
    Section.CONTACT,
    Section.CONFIRMATION,
    Section.PAYMENT,
)


class SectionState(str, Enum):
    """Observable state of a single section"""
    COLLAPSED_INCOMPLETE = "collapsed_incomplete"
    EXPANDED = "expanded"
    COLLAPSED_COMPLETE = "collapsed_complete"


class InvestorType(str, Enum):
    """Investor account type"""
    INDIVIDUAL = "individual"
    JOINT = "joint"
    CORPORATION = "corporation"
    TRUST = "trust"
    MANAGED = "managed"

    @property
    def label(self) -> str:
        if self is InvestorType.MANAGED:
            return "Managed Account"
        return self.value.capitalize()

    @property
    def is_entity(self) -> bool:
        """Corporations and trusts are represented by an entity contact"""
        return self in (InvestorType.CORPORATION, InvestorType.TRUST)


class ContactField(str, Enum):
    """Required identity fields on the contact form"""
    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"
    EMAIL = "email"


class SubmissionStatus(str, Enum):
    """Lifecycle of the final payment submission"""
    NOT_SUBMITTED = "not_submitted"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class BonusTier:
    """Bonus rule - Immutable"""
    threshold_amount: Decimal
    bonus_percent: Decimal

    def __post_init__(self):
        if self.threshold_amount < Decimal('0'):
            raise ValueError("Bonus tier threshold cannot be negative")
        if self.bonus_percent < Decimal('0'):
            raise ValueError("Bonus percent cannot be negative")


@dataclass(frozen=True)
class InvestmentConfig:
    """Offering terms - Immutable"""
    share_price: Decimal
    min_investment: Decimal
    max_investment: Optional[Decimal] = None
    security_type: str = "Common Stock"
    bonus_tiers: Tuple[BonusTier, ...] = ()


@dataclass(frozen=True)
class InvestmentCalculation:
    """Shares derived from an amount - Immutable snapshot"""
    amount: Decimal
    base_shares: int
    bonus_percent: Decimal
    bonus_shares: int

    @property
    def total_shares(self) -> int:
        return self.base_shares + self.bonus_shares

    @property
    def has_bonus(self) -> bool:
        return self.bonus_percent > Decimal('0')


@dataclass(frozen=True)
class InvestorCreateRequest:
    """Data the wizard hands to onboarding on final submission"""
    email: str
    first_name: str
    last_name: str
    investment_amount: Decimal
    investor_type: InvestorType = InvestorType.INDIVIDUAL

    @property
    def missing_fields(self) -> Tuple[str, ...]:
        """Identity fields that were blank at submission time"""
        values = {
            ContactField.EMAIL.value: self.email,
            ContactField.FIRST_NAME.value: self.first_name,
            ContactField.LAST_NAME.value: self.last_name,
        }
        return tuple(name for name, value in values.items() if not (value or "").strip())


@dataclass(frozen=True)
class InvestorCreated:
    """Successful onboarding outcome"""
    investor_id: str
    subscription_id: Optional[str]
    state: Optional[str]
    payment_url: Optional[str] = None


@dataclass(frozen=True)
class InvestorUpdated:
    """Result of an investor step update"""
    investor_id: str
    state: Optional[str]
    current_step: Optional[str]


@dataclass
class SubmissionState:
    """Mutable submission slot owned by a wizard session"""
    status: SubmissionStatus = SubmissionStatus.NOT_SUBMITTED
    category: Optional[str] = None
    error: Optional[str] = None
    result: Optional[InvestorCreated] = None

    @property
    def is_in_flight(self) -> bool:
        return self.status == SubmissionStatus.IN_FLIGHT

    @property
    def redirect_url(self) -> Optional[str]:
        if self.status == SubmissionStatus.SUCCEEDED and self.result:
            return self.result.payment_url
        return None


@dataclass
class ContactForm:
    """Contact section field values plus validation display state"""
    investor_type: InvestorType = InvestorType.INDIVIDUAL
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    touched: set = field(default_factory=set)
    errors: dict = field(default_factory=dict)

    def get_value(self, contact_field: ContactField) -> str:
        return getattr(self, contact_field.value)

    def set_value(self, contact_field: ContactField, value: str) -> None:
        setattr(self, contact_field.value, value)

    def visible_error(self, contact_field: ContactField) -> Optional[str]:
        """Errors are only shown once a field has been touched"""
        if contact_field in self.touched:
            return self.errors.get(contact_field)
        return None
