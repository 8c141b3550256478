"""
Schedule strategies: contracts with their own payment calendar.
"""

from .loan_amortization import ScheduleLoanAmortization

__all__ = ["ScheduleLoanAmortization"]
