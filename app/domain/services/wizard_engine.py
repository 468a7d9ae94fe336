"""
CHECKOUT WIZARD ENGINE
Investment -> Contact -> Confirmation -> Payment

RESPONSIBILITIES:
- Keep amount and shares consistent through the calculator
- Gate "Continue" on each section's validation
- Drive contact field validation display (touched/errors)
- Run the final submission against the onboarding gateway

RULES:
- Exactly one section expanded at a time
- Completed sections are never un-completed
- Validation failures are resolved here and never reach the network
- At most one submission in flight per session
- Results arriving after close() are discarded
"""

import asyncio
import logging
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, List, Optional, Protocol, Tuple, Union

from app.domain.errors import OnboardingError, OnboardingErrorCategory, USER_MESSAGES
from app.domain.models import (
    ContactField,
    ContactForm,
    InvestmentCalculation,
    InvestmentConfig,
    InvestorCreated,
    InvestorCreateRequest,
    InvestorType,
    SECTION_ORDER,
    Section,
    SectionState,
    SubmissionState,
    SubmissionStatus,
)
from app.domain.services.contact_validator import (
    is_contact_complete,
    validate_contact,
    validate_field,
)
from app.domain.services.investment_calculator import InvestmentCalculator, round_shares
from app.utils.formatting import format_currency, format_number

logger = logging.getLogger(__name__)

Number = Union[Decimal, int, float, str]


class OnboardingGateway(Protocol):
    """Anything that can turn a submission into an investor record"""

    async def create_investor(self, request: InvestorCreateRequest) -> InvestorCreated:
        ...


def parse_amount_input(value: Number) -> Decimal:
    """'$1,250.50' -> Decimal('1250.50'); unparsable or negative -> 0"""
    if isinstance(value, str):
        value = value.replace("$", "").replace(",", "").strip()
    try:
        amount = Decimal(str(value)) if value != "" else Decimal('0')
    except InvalidOperation:
        return Decimal('0')
    if not amount.is_finite() or amount < 0:
        return Decimal('0')
    return amount


def parse_shares_input(value: Number) -> int:
    """'1,000' -> 1000; fractional input rounded half-up"""
    if isinstance(value, str):
        value = value.replace(",", "").strip()
    return round_shares(parse_amount_input(value))


class WizardSession:
    """
    One investor's pass through the checkout wizard.
    State lives for the lifetime of this object only.
    """

    def __init__(
        self,
        config: InvestmentConfig,
        initial_amount: Number = 0,
        on_redirect: Optional[Callable[[str], None]] = None,
    ):
        self.config = config
        self.calculator = InvestmentCalculator(config)
        self.amount = parse_amount_input(initial_amount)
        self.shares = self.calculator.calculate(self.amount).base_shares
        self.expanded_section = Section.INVESTMENT
        self.contact = ContactForm()
        self.submission = SubmissionState()
        self.on_redirect = on_redirect
        self._completed: List[Section] = []
        self._pending: Optional[asyncio.Future] = None
        self._closed = False

    # ------------------------------------------------------------------
    # DERIVED STATE
    # ------------------------------------------------------------------

    @property
    def calculation(self) -> InvestmentCalculation:
        return self.calculator.calculate(self.amount)

    @property
    def completed_sections(self) -> Tuple[Section, ...]:
        return tuple(self._completed)

    @property
    def closed(self) -> bool:
        return self._closed

    def is_section_complete(self, section: Section) -> bool:
        return Section(section) in self._completed

    def section_state(self, section: Section) -> SectionState:
        section = Section(section)
        if section == self.expanded_section:
            return SectionState.EXPANDED
        if section in self._completed:
            return SectionState.COLLAPSED_COMPLETE
        return SectionState.COLLAPSED_INCOMPLETE

    def investment_errors(self) -> List[str]:
        """Bound violations for the current amount, as display messages"""
        errors = []
        min_investment = self.config.min_investment
        max_investment = self.config.max_investment
        if self.amount > 0 and self.amount < min_investment:
            errors.append(f"Minimum investment amount is {format_currency(min_investment, 2)}")
        if max_investment is not None and self.amount > max_investment:
            errors.append(f"Maximum investment amount is {format_currency(max_investment, 0)}")
        return errors

    @property
    def is_contact_complete(self) -> bool:
        return is_contact_complete(self.contact)

    def can_continue(self, section: Section) -> bool:
        """Whether the section's Continue guard holds for the current values"""
        section = Section(section)
        if section == Section.INVESTMENT:
            return self.calculator.is_within_bounds(self.amount)
        if section == Section.CONTACT:
            return self.is_contact_complete
        if section == Section.CONFIRMATION:
            return True
        return self.submission.status == SubmissionStatus.SUCCEEDED

    @property
    def can_submit(self) -> bool:
        return (
            not self._closed
            and self.expanded_section == Section.PAYMENT
            and not self.submission.is_in_flight
        )

    @property
    def stale_sections(self) -> Tuple[Section, ...]:
        """Completed sections whose data no longer passes their guard"""
        return tuple(
            section for section in self._completed
            if section in (Section.INVESTMENT, Section.CONTACT)
            and not self.can_continue(section)
        )

    # ------------------------------------------------------------------
    # INVESTMENT
    # ------------------------------------------------------------------

    def edit_amount(self, value: Number) -> InvestmentCalculation:
        self.amount = parse_amount_input(value)
        calculation = self.calculation
        self.shares = calculation.base_shares
        return calculation

    def edit_shares(self, value: Number) -> InvestmentCalculation:
        self.shares = parse_shares_input(value)
        self.amount = self.calculator.shares_to_amount(self.shares)
        return self.calculation

    # ------------------------------------------------------------------
    # NAVIGATION
    # ------------------------------------------------------------------

    def select_expanded(self, section: Section) -> None:
        self.expanded_section = Section(section)

    def continue_section(self, section: Section) -> bool:
        """
        Complete a section and open the next one

        Returns:
            True when the guard passed and the section was recorded
        """
        section = Section(section)

        if section == Section.CONTACT:
            self._validate_all_contact_fields()

        if not self.can_continue(section):
            logger.debug("Continue blocked for section %s", section.value)
            return False

        self._mark_complete(section)
        index = SECTION_ORDER.index(section)
        if index < len(SECTION_ORDER) - 1:
            self.expanded_section = SECTION_ORDER[index + 1]
        return True

    def _mark_complete(self, section: Section) -> None:
        if section not in self._completed:
            self._completed.append(section)

    # ------------------------------------------------------------------
    # CONTACT
    # ------------------------------------------------------------------

    def set_investor_type(self, investor_type: Union[InvestorType, str]) -> None:
        self.contact.investor_type = InvestorType(investor_type)

    def edit_contact_field(self, contact_field: Union[ContactField, str], value: str) -> None:
        contact_field = ContactField(contact_field)
        self.contact.set_value(contact_field, value)
        if contact_field in self.contact.touched:
            self._revalidate(contact_field)

    def blur_contact_field(self, contact_field: Union[ContactField, str]) -> None:
        contact_field = ContactField(contact_field)
        self.contact.touched.add(contact_field)
        self._revalidate(contact_field)

    def _revalidate(self, contact_field: ContactField) -> None:
        message = validate_field(contact_field, self.contact.get_value(contact_field))
        if message:
            self.contact.errors[contact_field] = message
        else:
            self.contact.errors.pop(contact_field, None)

    def _validate_all_contact_fields(self) -> bool:
        self.contact.errors = validate_contact(self.contact)
        self.contact.touched = set(ContactField)
        return not self.contact.errors

    def field_label(self, contact_field: Union[ContactField, str]) -> str:
        contact_field = ContactField(contact_field)
        if contact_field == ContactField.EMAIL:
            return "Email"
        base = "First Name" if contact_field == ContactField.FIRST_NAME else "Last Name"
        if self.contact.investor_type.is_entity:
            return f"Entity Contact {base}"
        return base

    # ------------------------------------------------------------------
    # SUMMARIES
    # ------------------------------------------------------------------

    def investment_summary(self) -> Dict[str, str]:
        calculation = self.calculation
        summary = {
            "amount": format_currency(self.amount, 2),
            "shares": format_number(self.shares),
        }
        if calculation.has_bonus:
            summary["bonus"] = (
                f"{format_number(calculation.bonus_percent, 0)}% bonus = "
                f"+{format_number(calculation.bonus_shares)} free shares"
            )
        return summary

    def contact_summary(self) -> Dict[str, str]:
        return {
            "investor_type": f"{self.contact.investor_type.label} Investor",
            "name": f"{self.contact.first_name.strip()} {self.contact.last_name.strip()}".strip(),
            "email": self.contact.email.strip(),
        }

    def snapshot(self) -> Dict:
        """Plain-data view for the rendering layer"""
        calculation = self.calculation
        return {
            "amount": str(self.amount),
            "shares": self.shares,
            "bonus_percent": str(calculation.bonus_percent),
            "bonus_shares": calculation.bonus_shares,
            "total_shares": calculation.total_shares,
            "expanded_section": self.expanded_section.value,
            "completed_sections": [s.value for s in self._completed],
            "sections": {s.value: self.section_state(s).value for s in SECTION_ORDER},
            "investment_errors": self.investment_errors(),
            "contact_errors": {
                f.value: self.contact.visible_error(f)
                for f in ContactField
                if self.contact.visible_error(f)
            },
            "submission": {
                "status": self.submission.status.value,
                "category": self.submission.category,
                "error": self.submission.error,
                "redirect_url": self.submission.redirect_url,
            },
            "can_submit": self.can_submit,
        }

    # ------------------------------------------------------------------
    # SUBMISSION
    # ------------------------------------------------------------------

    def build_request(self) -> InvestorCreateRequest:
        return InvestorCreateRequest(
            email=self.contact.email.strip(),
            first_name=self.contact.first_name.strip(),
            last_name=self.contact.last_name.strip(),
            investment_amount=self.amount,
            investor_type=self.contact.investor_type,
        )

    async def submit_payment(self, gateway: OnboardingGateway) -> SubmissionState:
        """
        Create the investor and obtain the payment redirect

        The investment and contact guards are re-checked against the
        current values first; a failing guard fails the submission
        locally without calling the gateway.
        """
        if self._closed:
            raise RuntimeError("Wizard session is closed")

        if self.expanded_section != Section.PAYMENT:
            logger.warning("Submit ignored: payment section is not active")
            return self.submission

        if self.submission.is_in_flight:
            logger.warning("Submit ignored: a submission is already in flight")
            return self.submission

        local_error = self._local_submission_error()
        if local_error:
            self._set_failed(None, local_error)
            return self.submission

        request = self.build_request()
        self.submission = SubmissionState(status=SubmissionStatus.IN_FLIGHT)
        self._pending = asyncio.ensure_future(gateway.create_investor(request))

        try:
            result = await self._pending
        except asyncio.CancelledError:
            if self._closed:
                logger.info("Submission abandoned with session close")
                return self.submission
            self.submission = SubmissionState()
            raise
        except OnboardingError as exc:
            if self._closed:
                logger.info("Discarding late onboarding failure for closed session")
                return self.submission
            logger.warning("Investor onboarding failed: %s", exc.category.value)
            self._set_failed(exc.category.value, exc.message)
            return self.submission
        except Exception:
            if self._closed:
                return self.submission
            logger.exception("Unexpected onboarding gateway error")
            category = OnboardingErrorCategory.UNKNOWN_CREATE_FAILURE
            self._set_failed(category.value, USER_MESSAGES[category])
            return self.submission
        finally:
            self._pending = None

        if self._closed:
            logger.info("Discarding late onboarding result for closed session")
            return self.submission

        self.submission = SubmissionState(status=SubmissionStatus.SUCCEEDED, result=result)
        self._mark_complete(Section.PAYMENT)
        logger.info("Investor %s created", result.investor_id)

        if result.payment_url and self.on_redirect:
            self.on_redirect(result.payment_url)
        return self.submission

    def _local_submission_error(self) -> Optional[str]:
        if not self.can_continue(Section.INVESTMENT):
            errors = self.investment_errors()
            return errors[0] if errors else "Please enter a valid investment amount."
        if not self._validate_all_contact_fields():
            return next(iter(self.contact.errors.values()))
        return None

    def _set_failed(self, category: Optional[str], message: str) -> None:
        self.submission = SubmissionState(
            status=SubmissionStatus.FAILED,
            category=category,
            error=message,
        )

    def close(self) -> None:
        """Abandon the session; an outstanding submission is cancelled"""
        self._closed = True
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
