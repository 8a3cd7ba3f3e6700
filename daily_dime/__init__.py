"""
Daily Dime - Source Package

A personal finance tracker: income/expense transactions, money lent
out ("to take back"), dashboards, and optional sync to a remote account.

DESIGN PRINCIPLES:
1. Local state first, remote mirror second
2. One state write per user action
3. Persistence, sync and logging observe the store; they never drive it
4. The remote backend is swappable
"""

__version__ = "1.0.0"
__author__ = "Daily Dime Team"
