from typing import Optional

from utils.config import BASE_INTEREST_RATE, DEFAULT_CREDIT_SCORE


def calculate_emi(principal: float, tenure_months: int, rate_annual: float) -> float:
    """Equated Monthly Installment, unrounded."""
    if tenure_months <= 0:
        return 0.0
    rate_monthly = (rate_annual / 12) / 100
    # Formula: P * r * (1+r)^n / ((1+r)^n - 1)
    if rate_monthly == 0:
        return principal / tenure_months
    power_term = (1 + rate_monthly) ** tenure_months
    return principal * rate_monthly * power_term / (power_term - 1)


def interest_rate_for_score(credit_score: Optional[int]) -> float:
    """Base rate adjusted by credit tier, rounded to one decimal."""
    score = credit_score or DEFAULT_CREDIT_SCORE
    rate = BASE_INTEREST_RATE
    if score >= 800:
        rate -= 1.5
    elif score >= 750:
        rate -= 1.0
    elif score >= 700:
        rate -= 0.5
    elif score < 650:
        rate += 2.0
    return round(rate, 1)
