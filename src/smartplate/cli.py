#!/usr/bin/env python3
"""
Command line entry point.

    smartplate recommend --meal-type dinner --count 5
    smartplate suggest --style Italian --ingredients tomato basil
    smartplate budget --meal-type lunch --preset WeightLoss
"""

import argparse
import asyncio
import logging
from typing import List, Optional

from smartplate.config import Settings, configure_logging
from smartplate.data.catalog import load_default_catalog
from smartplate.data.preferences import open_store
from smartplate.llm_provider import get_llm_provider
from smartplate.recommendation.engine import RecommendationEngine
from smartplate.recommendation.llm_suggestions import suggest_by_style
from smartplate.recommendation.preset_rules import goal_for, meal_budget
from smartplate.services.nutrition_enrichment import NutritionEnricher, load_food_library

logger = logging.getLogger(__name__)


def _recommend(args, settings: Settings):
    store = open_store(args.db_path or settings.db_path)
    if args.preset:
        store.set_preset(args.preset)

    provider = get_llm_provider(api_key=settings.anthropic_api_key, use_null=settings.use_null_llm)

    async def suggester(style, ingredients):
        return await suggest_by_style(style, ingredients, provider=provider, model=settings.llm_model)

    engine = RecommendationEngine(
        load_default_catalog(),
        suggester=suggester,
        enricher=NutritionEnricher(load_food_library(settings.food_library_path)),
        default_style=settings.default_style,
    )
    ranked = asyncio.run(engine.get_recommendations(
        store.preferences,
        count=args.count,
        meal_type=args.meal_type,
        include_breakfast=not args.no_breakfast,
        with_snacks=args.with_snacks,
    ))

    if not ranked:
        print("No recommendations found.")
        return
    for i, scored in enumerate(ranked, 1):
        print(f"{i}. {scored.recipe.title} [{scored.id}]  score={scored.score:.3f}")
        for reason in scored.breakdown.reasons:
            print(f"     - {reason}")


def _suggest(args, settings: Settings):
    provider = get_llm_provider(api_key=settings.anthropic_api_key, use_null=settings.use_null_llm)
    recipes = asyncio.run(suggest_by_style(
        args.style, args.ingredients, provider=provider, model=settings.llm_model
    ))
    if not recipes:
        print(f"No suggestions for style '{args.style}'.")
        return
    for recipe in recipes:
        print(f"- {recipe.title} ({recipe.time}, {recipe.category})")
        print(f"    ingredients: {', '.join(recipe.ingredient_names())}")


def _budget(args, settings: Settings):
    store = open_store(args.db_path or settings.db_path)
    prefs = store.preferences
    if args.preset:
        prefs = store.set_preset(args.preset)
    budget = meal_budget(prefs, args.meal_type, not args.no_breakfast, args.with_snacks)

    print(f"Meal budget for {args.meal_type or 'meal'} ({goal_for(prefs).value}):")
    print(f"  Calories: {budget.kcal_target} kcal")
    print(f"  Protein:  {budget.protein_target_g} g")
    print(f"  Carbs:    {budget.carb_target_g} g")
    print(f"  Fat:      {budget.fat_target_g} g")
    print(f"  Fiber:    >= {budget.fiber_min_g} g")
    print(f"  Sugar:    {budget.sugar_soft_cap_g:g} g soft / {budget.sugar_hard_cap_g:g} g hard")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SmartPlate meal recommendations")
    parser.add_argument(
        "command",
        choices=["recommend", "suggest", "budget"],
        help="Command to run",
    )
    parser.add_argument(
        "--meal-type",
        type=str,
        help="breakfast, lunch, dinner, snack or dessert",
    )
    parser.add_argument(
        "--count",
        type=int,
        default=5,
        help="Number of recommendations (default: 5)",
    )
    parser.add_argument(
        "--preset",
        type=str,
        help="Recommendation preset: Healthy, WeightLoss or MuscleGain",
    )
    parser.add_argument(
        "--style",
        type=str,
        default="Mediterranean",
        help="Cooking style for 'suggest' (default: Mediterranean)",
    )
    parser.add_argument(
        "--ingredients",
        nargs="*",
        default=[],
        help="Ingredients to build suggestions around",
    )
    parser.add_argument(
        "--no-breakfast",
        action="store_true",
        help="Split the day between lunch and dinner only",
    )
    parser.add_argument(
        "--with-snacks",
        action="store_true",
        help="Use the four-meal split with a snack",
    )
    parser.add_argument(
        "--db-path",
        type=str,
        help="Preferences database (default: from SMARTPLATE_DB_PATH)",
    )
    return parser


def main(argv: Optional[List[str]] = None):
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    configure_logging(settings)

    if args.command == "recommend":
        _recommend(args, settings)
    elif args.command == "suggest":
        _suggest(args, settings)
    elif args.command == "budget":
        _budget(args, settings)


if __name__ == "__main__":
    main()
