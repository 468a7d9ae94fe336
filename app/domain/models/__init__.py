"""
Domain Models Package
Export all domain entities
"""

from .entities import (
    # Enums
    ContactField,
    InvestorType,
    Section,
    SectionState,
    SubmissionStatus,
    SECTION_ORDER,

    # Entities
    BonusTier,
    ContactForm,
    InvestmentCalculation,
    InvestmentConfig,
    InvestorCreated,
    InvestorCreateRequest,
    InvestorUpdated,
    SubmissionState,
)

__all__ = [
    # Enums
    "ContactField",
    "InvestorType",
    "Section",
    "SectionState",
    "SubmissionStatus",
    "SECTION_ORDER",

    # Entities
    "BonusTier",
    "ContactForm",
    "InvestmentCalculation",
    "InvestmentConfig",
    "InvestorCreated",
    "InvestorCreateRequest",
    "InvestorUpdated",
    "SubmissionState",
]
