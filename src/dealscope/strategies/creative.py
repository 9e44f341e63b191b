# src/dealscope/strategies/creative.py
"""
Creative-finance structures.

Each sub-structure is checked against its own viability gate. A hybrid is
only offered for the configured pairings, and only when both legs are
viable on their own. The engine's result carries every option; the best is
the highest-scoring viable one, ties going to the earlier structure in
CREATIVE_ORDER.
"""
from __future__ import annotations

from dataclasses import dataclass

from dealscope.analysis.scoring import clamp, lookup, motivation_points
from dealscope.domain.assumptions import Assumptions, CreativeAssumptions
from dealscope.domain.deal import Deal
from dealscope.domain.finance import annuity_payment, monthly_payment, principal_paid, safe_div
from dealscope.domain.results import (
    CreativeOption,
    DueOnSaleRisk,
    HoldingPeriod,
    MarketSignal,
    RepairAssessment,
    StrategyResult,
)
from dealscope.domain.types import CREATIVE_ORDER, DueOnSaleLevel
from dealscope.strategies.base import monthly_rent, register


@dataclass(frozen=True)
class _Inputs:
    value: float            # ARV, or asking when ARV is unknown
    price: float
    balance: float          # existing mortgage balance
    rate: float             # existing mortgage rate, annual fraction
    remaining_months: int
    existing_payment: float
    rent: float
    escrow: float           # taxes + insurance, monthly
    condition: float        # 0-10
    motivation: float       # 0-10
    lender_type: str = ""
    payment_history: str = ""


def _inputs(deal: Deal, repair: RepairAssessment, assumptions: Assumptions) -> _Inputs:
    fin = assumptions.financing
    cfg = assumptions.creative
    price = deal.asking_price
    value = deal.arv if deal.arv > 0 else price
    balance = deal.existing_mortgage
    if balance is None:
        balance = fin.existing_ltv_estimate * price
    rate = deal.existing_mortgage_rate if deal.existing_mortgage_rate is not None else fin.existing_rate
    remaining = int(fin.existing_remaining_months)

    points, _ = motivation_points(
        deal.signal_text,
        assumptions.verdict.motivation_keywords,
        assumptions.verdict.motivation_min,
        assumptions.verdict.motivation_max,
    )
    return _Inputs(
        value=value,
        price=price,
        balance=balance,
        rate=rate,
        remaining_months=remaining,
        existing_payment=annuity_payment(rate / 12.0, remaining, balance),
        rent=monthly_rent(deal, assumptions),
        escrow=price * (fin.taxes_rate + fin.insurance_rate) / 12.0,
        condition=lookup(cfg.condition_by_tier, repair.tier, default=5.0),
        motivation=clamp(cfg.motivation_baseline + safe_div(points, cfg.motivation_divisor, 0.0), 0.0, 10.0),
        lender_type=deal.lender_type,
        payment_history=deal.payment_history,
    )


# ---------------------------------------------------------------------
# Sub-To risk and hold projection
# ---------------------------------------------------------------------

_LEVELS: tuple[DueOnSaleLevel, ...] = ("low", "medium", "high")


def due_on_sale_risk(x: _Inputs, cfg: CreativeAssumptions) -> DueOnSaleRisk:
    """
    How likely the existing lender is to call the loan once title moves.

    Lender type sets the starting level; a loan above the LTV threshold or a
    late payment history each raise it one step, capped at "high".
    """
    ltv = safe_div(x.balance, x.value, 1.0)
    factors: list[str] = []

    level = 0
    lender = x.lender_type
    for key, lender_level in cfg.lender_risk.items():
        if key in lender:
            level = _LEVELS.index(lender_level) if lender_level in _LEVELS else 0
            if level == 0:
                factors.append(f"{key.title()} lender - typically less aggressive")
            else:
                factors.append(f"{key.title()} lender - moderate enforcement")
            break

    if ltv > cfg.due_on_sale_high_ltv:
        level += 1
        factors.append(f"LTV {ltv:.0%} may trigger lender attention")

    history = x.payment_history
    if history == "perfect":
        factors.append("Perfect payment history reduces risk")
    elif any(marker in history for marker in cfg.late_payment_markers):
        level += 1
        factors.append("Late payment history draws servicer review")

    return DueOnSaleRisk(level=_LEVELS[min(level, 2)], loan_to_value=round(ltv, 4), factors=factors)


def holding_period(x: _Inputs, cash_flow: float, cfg: CreativeAssumptions) -> HoldingPeriod:
    """
    Projection over `projection_years` of cash flow, appreciation and
    principal paid down on the existing loan.

    Break-even is month 0 when the hold cash-flows; otherwise the first month
    where appreciation plus principal paid covers the cumulative shortfall.
    """
    a = cfg.annual_appreciation
    months = int(cfg.projection_years * 12)

    cash_total = cash_flow * months
    appreciation = x.value * ((1 + a) ** cfg.projection_years - 1)
    buildup = principal_paid(x.balance, x.rate, x.existing_payment, months)

    if cash_flow > 0:
        break_even: int | None = 0
    else:
        break_even = None
        balance = x.balance
        paid = 0.0
        r = x.rate / 12.0
        for month in range(1, int(cfg.break_even_horizon_months) + 1):
            principal = min(x.existing_payment - balance * r, balance) if balance > 0 else 0.0
            if principal > 0:
                paid += principal
                balance -= principal
            gain = x.value * ((1 + a) ** (month / 12.0) - 1) + paid
            if gain >= -cash_flow * month:
                break_even = month
                break

    return HoldingPeriod(
        break_even_months=break_even,
        cash_flow_5yr=round(cash_total, 2),
        appreciation_5yr=round(appreciation, 2),
        equity_buildup_5yr=round(buildup, 2),
        total_return_5yr=round(cash_total + appreciation + buildup, 2),
    )


# ---------------------------------------------------------------------
# Sub-structures
# ---------------------------------------------------------------------

def subject_to(x: _Inputs, cfg: CreativeAssumptions) -> CreativeOption:
    equity = x.value - x.balance
    equity_fraction = safe_div(equity, x.value, 0.0)
    cash_flow = x.rent - x.existing_payment - x.escrow
    rate_pct = x.rate * 100.0

    w = cfg.sub2_weights
    score = (
        min(safe_div(equity, cfg.sub2_equity_full, 0.0), 1.0) * w.get("equity", 0.0)
        + min(safe_div(cash_flow, cfg.sub2_cash_flow_full, 0.0), 1.0) * w.get("cash_flow", 0.0)
        + max(0.0, safe_div(cfg.sub2_max_rate_pct - rate_pct, cfg.sub2_max_rate_pct, 0.0)) * w.get("rate", 0.0)
        + min(safe_div(x.remaining_months, cfg.full_term_months, 0.0), 1.0) * w.get("term", 0.0)
        + x.condition / 10.0 * w.get("condition", 0.0)
        + x.motivation / 10.0 * w.get("motivation", 0.0)
    )

    viable = cfg.sub2_equity_min <= equity_fraction <= cfg.sub2_equity_max and cash_flow >= cfg.sub2_min_cash_flow
    if x.value <= 0:
        reason = "No value basis"
    elif not cfg.sub2_equity_min <= equity_fraction <= cfg.sub2_equity_max:
        reason = f"Equity {equity_fraction:.0%} outside {cfg.sub2_equity_min:.0%}-{cfg.sub2_equity_max:.0%}"
    elif cash_flow < cfg.sub2_min_cash_flow:
        reason = f"Cash flow ${cash_flow:,.0f}/mo below ${cfg.sub2_min_cash_flow:,.0f}"
    else:
        reason = "Take over existing loan"

    hold = holding_period(x, cash_flow, cfg)
    return CreativeOption(
        structure="sub2",
        viable=viable and x.value > 0,
        score=round(clamp(score), 2),
        monthly_cash_flow=round(cash_flow, 2),
        terms={
            "existing_balance": round(x.balance, 2),
            "existing_rate": x.rate,
            "existing_payment": round(x.existing_payment, 2),
            "remaining_months": float(x.remaining_months),
            "equity_position": round(equity, 2),
            "equity_fraction": round(equity_fraction, 4),
            "equity_buildup_5yr": hold.equity_buildup_5yr,
        },
        reason=reason,
        due_on_sale=due_on_sale_risk(x, cfg),
        holding_period=hold,
    )


def wrap(x: _Inputs, cfg: CreativeAssumptions) -> CreativeOption:
    down = x.value * cfg.wrap_down_rate
    note = x.value - down
    wrap_rate = x.rate + cfg.wrap_rate_spread
    wrap_payment = monthly_payment(note, wrap_rate, cfg.wrap_years)
    spread = wrap_payment - x.existing_payment
    existing_ltv = safe_div(x.balance, x.value, 1.0)
    equity_fraction = max(0.0, 1.0 - existing_ltv)

    score = (
        cfg.option_base_score
        + min(max(safe_div(spread, cfg.wrap_spread_full, 0.0), 0.0), 1.0) * cfg.wrap_spread_weight
        + min(equity_fraction / 0.5, 1.0) * cfg.wrap_equity_weight
    )

    viable = x.value > 0 and spread >= cfg.wrap_min_spread and existing_ltv <= cfg.wrap_max_existing_ltv
    if x.value <= 0:
        reason = "No value basis"
    elif existing_ltv > cfg.wrap_max_existing_ltv:
        reason = f"Existing loan at {existing_ltv:.0%} of value"
    elif spread < cfg.wrap_min_spread:
        reason = f"Wrap spread ${spread:,.0f}/mo below ${cfg.wrap_min_spread:,.0f}"
    else:
        reason = "Sell on a wrap note over the existing loan"

    return CreativeOption(
        structure="wrap",
        viable=viable,
        score=round(clamp(score), 2),
        monthly_cash_flow=round(spread, 2),
        terms={
            "sale_price": round(x.value, 2),
            "down_payment": round(down, 2),
            "wrap_balance": round(note, 2),
            "wrap_rate": round(wrap_rate, 4),
            "wrap_payment": round(wrap_payment, 2),
            "existing_payment": round(x.existing_payment, 2),
            "existing_ltv": round(existing_ltv, 4),
        },
        reason=reason,
    )


def seller_carry(x: _Inputs, cfg: CreativeAssumptions) -> CreativeOption:
    down = x.price * cfg.carry_down_rate
    note = x.price - down
    payment = monthly_payment(note, cfg.carry_rate, cfg.carry_years)
    cash_flow = x.rent - payment - x.escrow
    seller_equity = safe_div(x.price - x.balance, x.price, 0.0)

    score = (
        cfg.option_base_score
        + min(max(safe_div(cash_flow, cfg.carry_cash_flow_full, 0.0), 0.0), 1.0) * cfg.carry_cash_flow_weight
        + min(max(seller_equity, 0.0), 1.0) * cfg.carry_equity_weight
    )

    viable = x.price > 0 and seller_equity >= cfg.carry_min_seller_equity and cash_flow >= cfg.carry_min_cash_flow
    if x.price <= 0:
        reason = "No asking price"
    elif seller_equity < cfg.carry_min_seller_equity:
        reason = f"Seller equity {seller_equity:.0%} too thin to carry"
    elif cash_flow < cfg.carry_min_cash_flow:
        reason = f"Cash flow ${cash_flow:,.0f}/mo below ${cfg.carry_min_cash_flow:,.0f}"
    else:
        reason = "Seller carries the note"

    return CreativeOption(
        structure="seller_carry",
        viable=viable,
        score=round(clamp(score), 2),
        monthly_cash_flow=round(cash_flow, 2),
        terms={
            "purchase_price": round(x.price, 2),
            "down_payment": round(down, 2),
            "note_amount": round(note, 2),
            "note_rate": cfg.carry_rate,
            "note_payment": round(payment, 2),
            "seller_equity_fraction": round(seller_equity, 4),
        },
        reason=reason,
    )


def lease_option(x: _Inputs, cfg: CreativeAssumptions) -> CreativeOption:
    lease = x.rent * cfg.lease_rate_of_rent
    sublease = x.rent * cfg.sublease_rate_of_rent
    spread = sublease - lease
    option_price = x.price
    option_to_value = safe_div(option_price, x.value, 1.0)
    discount = max(0.0, 1.0 - option_to_value)

    score = (
        cfg.option_base_score
        + min(max(safe_div(spread, cfg.lease_spread_full, 0.0), 0.0), 1.0) * cfg.lease_spread_weight
        + min(safe_div(discount, cfg.lease_discount_full, 0.0), 1.0) * cfg.lease_discount_weight
    )

    viable = x.value > 0 and spread >= cfg.lease_min_spread and option_to_value <= cfg.lease_max_option_to_arv
    if x.value <= 0:
        reason = "No value basis"
    elif option_to_value > cfg.lease_max_option_to_arv:
        reason = f"Option price at {option_to_value:.0%} of value"
    elif spread < cfg.lease_min_spread:
        reason = f"Sublease spread ${spread:,.0f}/mo below ${cfg.lease_min_spread:,.0f}"
    else:
        reason = "Lease with option, sublease to tenant-buyer"

    return CreativeOption(
        structure="lease_option",
        viable=viable,
        score=round(clamp(score), 2),
        monthly_cash_flow=round(spread, 2),
        terms={
            "lease_payment": round(lease, 2),
            "sublease_payment": round(sublease, 2),
            "option_price": round(option_price, 2),
            "option_to_value": round(option_to_value, 4),
        },
        reason=reason,
    )


def hybrids(options: list[CreativeOption], cfg: CreativeAssumptions) -> list[CreativeOption]:
    """Only the configured pairings combine, and only when both legs are viable."""
    by_structure = {o.structure: o for o in options}
    out: list[CreativeOption] = []
    for a, b in cfg.hybrid_pairs:
        leg_a, leg_b = by_structure.get(a), by_structure.get(b)
        if leg_a is None or leg_b is None or not (leg_a.viable and leg_b.viable):
            continue
        out.append(
            CreativeOption(
                structure="hybrid",
                viable=True,
                score=round(clamp((leg_a.score + leg_b.score) / 2.0 + cfg.hybrid_bonus), 2),
                monthly_cash_flow=round((leg_a.monthly_cash_flow + leg_b.monthly_cash_flow) / 2.0, 2),
                terms={f"{a}_score": leg_a.score, f"{b}_score": leg_b.score},
                reason=f"{a} + {b}",
            )
        )
    return out


def best_option(options: list[CreativeOption]) -> CreativeOption | None:
    viable = [o for o in options if o.viable]
    if not viable:
        return None
    # sorted() is stable; options are built in CREATIVE_ORDER
    ordered = sorted(viable, key=lambda o: CREATIVE_ORDER.index(o.structure))
    return max(ordered, key=lambda o: o.score)


def creative_verdict(score: float, viable: bool, cfg: CreativeAssumptions) -> str:
    if not viable:
        return "NOT VIABLE"
    if score >= cfg.strong_min:
        return "STRONG"
    if score >= cfg.viable_min:
        return "VIABLE"
    return "MARGINAL"


class CreativeFinanceEngine:
    strategy_id = "creative"

    def evaluate(
        self,
        deal: Deal,
        repair: RepairAssessment,
        market: MarketSignal,
        assumptions: Assumptions,
    ) -> StrategyResult:
        cfg = assumptions.creative
        x = _inputs(deal, repair, assumptions)

        options = [subject_to(x, cfg), wrap(x, cfg), seller_carry(x, cfg), lease_option(x, cfg)]
        options.extend(hybrids(options, cfg))
        best = best_option(options)

        if best is None:
            top = max((o.score for o in options), default=0.0)
            score = min(top, cfg.not_viable_cap)
        else:
            score = best.score

        notes = [f"{o.structure}: {o.reason}" for o in options if not o.viable]
        return StrategyResult(
            strategy="creative",
            score=round(clamp(score), 2),
            verdict=creative_verdict(score, best is not None, cfg),
            metrics={
                "viable_count": float(sum(1 for o in options if o.viable)),
                "best_monthly_cash_flow": best.monthly_cash_flow if best else 0.0,
                "existing_balance": round(x.balance, 2),
                "existing_payment": round(x.existing_payment, 2),
                "market_rent": round(x.rent, 2),
            },
            notes=notes,
            options=options,
            best_option=best.structure if best else None,
        )


ENGINE = register(CreativeFinanceEngine())
