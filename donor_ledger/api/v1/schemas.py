"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from donor_ledger.domain.models import CustomInstallment, PlanRequest

PaymentType = Literal["donation", "tuition", "both"]
Frequency = Literal["weekly", "monthly", "quarterly", "biannual", "annual", "one_time", "custom"]
DistributionType = Literal["fixed", "custom"]
Currency = Literal["USD", "ILS", "EUR", "JPY", "GBP", "AUD", "CAD", "ZAR"]
PaymentStatus = Literal["pending", "completed", "failed", "cancelled", "refunded", "processing"]


# Bonus rules


class BonusRuleCreate(BaseModel):
    """Request body for POST /v1/bonus-rules"""

    solicitor_id: int = Field(..., gt=0)
    rule_name: str = Field(..., min_length=1)
    bonus_percentage: Decimal = Field(..., gt=0, le=100, decimal_places=2)
    payment_type: PaymentType = "both"
    min_amount: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    max_amount: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    effective_from: date
    effective_to: Optional[date] = None
    is_active: bool = True
    priority: int = 1
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_ranges(self):
        if self.min_amount is not None and self.max_amount is not None and self.max_amount < self.min_amount:
            raise ValueError("max_amount must not be lower than min_amount")
        if self.effective_to is not None and self.effective_to < self.effective_from:
            raise ValueError("effective_to must not be before effective_from")
        return self


class BonusRuleUpdate(BaseModel):
    """Request body for PUT /v1/bonus-rules/{rule_id}; only the fields sent are changed"""

    rule_name: Optional[str] = Field(None, min_length=1)
    bonus_percentage: Optional[Decimal] = Field(None, gt=0, le=100, decimal_places=2)
    payment_type: Optional[PaymentType] = None
    min_amount: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    max_amount: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    is_active: Optional[bool] = None
    priority: Optional[int] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_required_not_cleared(self):
        required = ("rule_name", "bonus_percentage", "payment_type", "effective_from", "is_active", "priority")
        cleared = [name for name in required if name in self.model_fields_set and getattr(self, name) is None]
        if cleared:
            raise ValueError(f"{', '.join(cleared)} cannot be null")
        return self


class BonusRuleSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    solicitor_id: int
    rule_name: str
    bonus_percentage: Decimal
    payment_type: str
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    effective_from: date
    effective_to: Optional[date] = None
    is_active: bool
    priority: int
    notes: Optional[str] = None


class BonusRuleResponse(BaseModel):
    bonus_rule: BonusRuleSchema


class BonusRuleListResponse(BaseModel):
    bonus_rules: List[BonusRuleSchema]


# Payments and bonus calculations


class PaymentSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    pledge_id: int
    payment_plan_id: Optional[int] = None
    amount: Decimal
    currency: str
    amount_usd: Optional[Decimal] = None
    exchange_rate: Optional[Decimal] = None
    payment_date: date
    payment_status: str
    solicitor_id: Optional[int] = None
    bonus_percentage: Optional[Decimal] = None
    bonus_amount: Optional[Decimal] = None
    bonus_rule_id: Optional[int] = None
    notes: Optional[str] = None
    version: int


class PaymentCreate(BaseModel):
    """Request body for POST /v1/payments"""

    pledge_id: int = Field(..., gt=0)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    currency: Currency
    payment_date: date
    payment_status: PaymentStatus = "completed"
    payment_plan_id: Optional[int] = Field(None, gt=0)
    exchange_rate: Optional[Decimal] = Field(None, gt=0, decimal_places=4)
    notes: Optional[str] = None


class PaymentResponse(BaseModel):
    payment: PaymentSchema


class AssignRequest(BaseModel):
    """Request body for POST /v1/payments/{payment_id}/assign"""

    solicitor_id: Optional[int] = None


class AssignResponse(BaseModel):
    payment: PaymentSchema
    bonus_calculated: bool


class BonusCalculationSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    payment_id: int
    solicitor_id: int
    bonus_rule_id: Optional[int] = None
    payment_amount: Decimal
    bonus_percentage: Decimal
    bonus_amount: Decimal
    calculated_at: Optional[datetime] = None
    is_paid: bool
    paid_at: Optional[datetime] = None
    notes: Optional[str] = None


class RecalculateRequest(BaseModel):
    """Request body for POST /v1/bonus-calculations/recalculate"""

    payment_id: Optional[int] = None


class RecalculateResponse(BaseModel):
    bonus_calculation: Optional[BonusCalculationSchema] = None
    recalculated: bool = True
    bonus_amount: Decimal


class BonusCalculationResponse(BaseModel):
    bonus_calculation: BonusCalculationSchema


class BulkMarkPaidRequest(BaseModel):
    calculation_ids: List[int] = Field(default_factory=list)


class BulkMarkPaidResponse(BaseModel):
    bonus_calculations: List[BonusCalculationSchema]
    count: int


# Payment plans


class CustomInstallmentSchema(BaseModel):
    date: date
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    notes: Optional[str] = None


class PaymentPlanCreate(BaseModel):
    """Request body for POST /v1/payment-plans"""

    pledge_id: int = Field(..., gt=0)
    plan_name: Optional[str] = None
    frequency: Frequency
    distribution_type: DistributionType = "fixed"
    total_planned_amount: Decimal = Field(..., gt=0, decimal_places=2)
    currency: Currency
    start_date: date
    end_date: Optional[date] = None
    next_payment_date: Optional[date] = None
    installment_amount: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    number_of_installments: Optional[int] = Field(None, gt=0)
    custom_installments: Optional[List[CustomInstallmentSchema]] = None
    notes: Optional[str] = None

    def to_domain(self) -> PlanRequest:
        return PlanRequest(
            pledge_id=self.pledge_id,
            frequency=self.frequency,
            distribution_type=self.distribution_type,
            total_planned_amount=self.total_planned_amount,
            currency=self.currency,
            start_date=self.start_date,
            installment_amount=self.installment_amount,
            number_of_installments=self.number_of_installments,
            custom_installments=[
                CustomInstallment(date=inst.date, amount=inst.amount, notes=inst.notes)
                for inst in self.custom_installments or []
            ],
            plan_name=self.plan_name,
            end_date=self.end_date,
            next_payment_date=self.next_payment_date,
            notes=self.notes,
        )


class PaymentPlanSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    pledge_id: int
    plan_name: Optional[str] = None
    frequency: str
    distribution_type: str
    total_planned_amount: Decimal
    currency: str
    installment_amount: Decimal
    number_of_installments: int
    exchange_rate: Optional[Decimal] = None
    start_date: date
    end_date: Optional[date] = None
    next_payment_date: Optional[date] = None
    installments_paid: int
    total_paid: Decimal
    total_paid_usd: Optional[Decimal] = None
    remaining_amount: Decimal
    plan_status: str
    notes: Optional[str] = None


class InstallmentSchema(BaseModel):
    """Single installment in a payment plan"""

    due_date: date
    amount: Decimal
    currency: str
    notes: Optional[str] = None
    projected: bool = False  # derived from the fixed schedule, not a stored row


class PaymentPlanResponse(BaseModel):
    payment_plan: PaymentPlanSchema


class PaymentPlanDetailResponse(BaseModel):
    """Response for GET /v1/payment-plans/{plan_id}"""

    payment_plan: PaymentPlanSchema
    installments: List[InstallmentSchema]
