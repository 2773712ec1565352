"""Meal budgets, scoring and the recommendation engine."""
