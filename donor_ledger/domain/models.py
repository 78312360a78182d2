"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional


@dataclass(frozen=True)
class BonusRule:
    """Commission rule for a solicitor"""

    id: int
    solicitor_id: int
    rule_name: str
    bonus_percentage: Decimal
    payment_type: str  # "donation", "tuition" or "both"
    effective_from: date
    effective_to: Optional[date] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    is_active: bool = True
    priority: int = 1


@dataclass(frozen=True)
class PaymentContext:
    """Attributes of a payment that rules are matched against"""

    solicitor_id: int
    amount_usd: Decimal
    payment_date: date
    is_donation: bool


@dataclass(frozen=True)
class BonusOutcome:
    """Result of matching and calculating a bonus for one payment"""

    bonus_percentage: Decimal
    bonus_amount: Decimal
    rule: Optional[BonusRule] = None

    @property
    def rule_id(self) -> Optional[int]:
        return self.rule.id if self.rule else None

    @property
    def has_bonus(self) -> bool:
        return self.bonus_amount > 0


@dataclass
class CustomInstallment:
    """Caller-supplied installment of a custom plan"""

    date: date
    amount: Decimal
    notes: Optional[str] = None


@dataclass
class PlanRequest:
    """Validated shape of a plan-creation request"""

    pledge_id: int
    frequency: str
    distribution_type: str
    total_planned_amount: Decimal
    currency: str
    start_date: date
    installment_amount: Optional[Decimal] = None
    number_of_installments: Optional[int] = None
    custom_installments: List[CustomInstallment] = field(default_factory=list)
    plan_name: Optional[str] = None
    end_date: Optional[date] = None
    next_payment_date: Optional[date] = None
    notes: Optional[str] = None


@dataclass
class Installment:
    """Single dated payment in a repayment plan"""

    due_date: date
    amount: Decimal
    currency: str
    notes: Optional[str] = None


@dataclass
class PlanDraft:
    """Final stored fields of a plan, derived from a validated request"""

    pledge_id: int
    plan_name: Optional[str]
    frequency: str
    distribution_type: str
    total_planned_amount: Decimal
    currency: str
    installment_amount: Decimal
    number_of_installments: int
    exchange_rate: Optional[Decimal]
    start_date: date
    end_date: Optional[date]
    next_payment_date: date
    remaining_amount: Decimal
    notes: Optional[str] = None
    installments: List[Installment] = field(default_factory=list)
