"""
Subtracker - Source Package

A personal subscription tracker: records recurring payments, normalizes
each one to a comparable monthly cost and shows billing reminders.

DESIGN PRINCIPLES:
1. Money is Decimal from form input to the rendered string
2. Billing dates are calendar dates, never instants
3. Dates only move when the user marks a subscription as billed
4. Every user action is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Subtracker Team"
