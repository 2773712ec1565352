"""
SmartPlate meal planning assistant.

Goal-aware recipe recommendations, LLM style suggestions, pantry scanning
and shopping list generation.
"""

__version__ = "0.1.0"
