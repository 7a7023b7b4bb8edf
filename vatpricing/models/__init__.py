"""Database models."""

from vatpricing.models.country import Country
from vatpricing.models.rule import Rule
from vatpricing.models.calculation import Calculation

__all__ = ["Country", "Rule", "Calculation"]
