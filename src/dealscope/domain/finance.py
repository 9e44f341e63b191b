import math
from dataclasses import dataclass

from dealscope.domain.assumptions import FinancingAssumptions


@dataclass
class DebtTerms:
    price: float
    loan_amount: float
    down_payment: float
    closing_costs: float
    monthly_payment: float      # principal + interest
    taxes_monthly: float
    insurance_monthly: float


def safe_div(num: float, den: float, default: float = 0.0) -> float:
    if den == 0 or math.isnan(den):
        return default
    return num / den


def annuity_payment(rate_monthly: float, n_months: int, principal: float) -> float:
    """
    Standard fixed-rate amortization formula:
    M = P * [ r(1+r)^n / ((1+r)^n - 1) ]
    """
    if principal <= 0 or n_months <= 0:
        return 0.0
    r = rate_monthly
    if r == 0:
        return principal / n_months
    return principal * (r * (1 + r) ** n_months) / ((1 + r) ** n_months - 1)


def monthly_payment(principal: float, annual_rate: float, years: int) -> float:
    return annuity_payment(annual_rate / 12.0, int(years * 12), principal)


def principal_paid(balance: float, annual_rate: float, payment: float, months: int) -> float:
    """Principal retired over `months` payments on an existing balance."""
    r = annual_rate / 12.0
    paid = 0.0
    for _ in range(max(months, 0)):
        if balance <= 0:
            break
        interest = balance * r
        principal = min(payment - interest, balance)
        if principal <= 0:
            break
        paid += principal
        balance -= principal
    return paid


def dscr(noi: float, debt_service: float) -> float:
    # No debt means coverage is unbounded.
    if debt_service <= 0:
        return float("inf")
    return noi / debt_service


def cash_on_cash(annual_cash_flow: float, cash_invested: float) -> float:
    return safe_div(annual_cash_flow, cash_invested, 0.0)


def financed_purchase(price: float, config: FinancingAssumptions) -> DebtTerms:
    """Conventional purchase financing shared by the rental engines."""
    loan_amount = price * config.ltv
    down_payment = price - loan_amount
    return DebtTerms(
        price=price,
        loan_amount=loan_amount,
        down_payment=down_payment,
        closing_costs=price * config.closing_cost_rate,
        monthly_payment=monthly_payment(loan_amount, config.interest_rate, config.amort_years),
        taxes_monthly=price * config.taxes_rate / 12.0,
        insurance_monthly=price * config.insurance_rate / 12.0,
    )
