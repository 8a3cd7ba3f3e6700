"""Audit package."""

from daily_dime.audit.logger import StoreEventLogger

__all__ = ["StoreEventLogger"]
