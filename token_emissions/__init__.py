"""Token Emissions Engine.

Simulates token supply emission schedules from allocation and vesting
assumptions, calibrates them to the real calendar from observed
circulating supply, and serves windowed, cached results for single
tokens and batches.
"""

__version__ = "0.1.0"
