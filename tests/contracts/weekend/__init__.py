"""
Weekend Service Contracts

Test data factory for the weekend planner services.
"""

from .data_contract import KNOWN_SATURDAY, KNOWN_SUNDAY, WeekendTestDataFactory

__all__ = ["KNOWN_SATURDAY", "KNOWN_SUNDAY", "WeekendTestDataFactory"]
