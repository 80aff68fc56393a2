"""
Meal Catalog

Normalization and reconciliation engine for hand-curated regional meal
catalogs. The canonical output is keyed region -> diet -> mealType and is
read directly by the meal planner.
"""

__version__ = "1.0.0"
