"""
Economy: upgrade pricing and purchasing.
"""

from .upgrades import UNAFFORDABLE, UpgradeManager

__all__ = [
    "UNAFFORDABLE",
    "UpgradeManager",
]
