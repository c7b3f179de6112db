"""Steward Token Calculator.

Estimates a steward's token allocation from a USD compensation and the
average token price over the term's pricing window, then projects the
monthly vesting schedule and the amount unlocked at distribution.
"""

__version__ = "0.1.0"
