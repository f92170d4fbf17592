"""
Call Center Simulation

A deterministic, tick-based business simulation of an outbound call center:
agents working a call-handling state machine, a decaying lead pool,
interchangeable dialer technologies, purchasable upgrades and a seeded
random source that makes every run replayable.
"""

__version__ = "0.1.0"
