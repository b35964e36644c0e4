"""
Monthly purchase schedule for an investment plan.
"""

from datetime import date
from typing import List, Optional

from dca_simulator.domain.models import DayOfMonthPolicy, InvestmentPlan, PlanValidationError
from dca_simulator.utils.time import days_in_month, next_month


class ScheduleGenerator:
    """
    One purchase date per month, from the start month up to as_of.

    The start date selects the first month; the purchase day is always the
    plan's investment day. Months lacking that day are clamped to their
    last day (CLAMP) or left out (SKIP).
    """

    def __init__(self, policy: DayOfMonthPolicy = DayOfMonthPolicy.CLAMP):
        self.policy = DayOfMonthPolicy(policy)

    def purchase_day(self, investment_day: int, year: int, month: int) -> Optional[int]:
        last_day = days_in_month(year, month)
        if investment_day <= last_day:
            return investment_day
        if self.policy == DayOfMonthPolicy.SKIP:
            return None
        return last_day

    def generate(self, plan: InvestmentPlan, as_of: date) -> List[date]:
        if not 1 <= plan.investment_day <= 31:
            raise PlanValidationError([f"{plan.symbol}: investment day must be between 1 and 31"])
        if plan.start_date > as_of:
            return []

        dates: List[date] = []
        year, month = plan.start_date.year, plan.start_date.month
        while (year, month) <= (as_of.year, as_of.month):
            day = self.purchase_day(plan.investment_day, year, month)
            if day is not None:
                candidate = date(year, month, day)
                if candidate > as_of:
                    break
                dates.append(candidate)
            year, month = next_month(year, month)
        return dates
