"""
Style-driven recipe suggestions from an LLM.

suggest_by_style() asks the model for recipes "in the style of" a cuisine or
chef using the user's ingredients. Without a live provider it synthesizes a
fixed set of five candidates so cold start still produces something to
rank. The function never raises; failures return an empty list.
"""

import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from smartplate.data.models import NutritionInfo, Recipe, RecipeIngredient, ingredient_id_for
from smartplate.llm_provider import DEFAULT_MODEL, LLMProvider, get_llm_provider
from smartplate.tag_canon import LLM_GENERATED_TAG

logger = logging.getLogger(__name__)

SUGGESTION_COUNT = 5

DEFAULT_INGREDIENTS = ["tomato", "onion", "garlic", "olive oil", "pasta"]

STYLE_ADJECTIVES: Dict[str, str] = {
    "Italian": "Rustic",
    "French": "Elegant",
    "Japanese": "Minimal",
    "Chinese": "Bold",
    "Indian": "Spicy",
    "Mediterranean": "Fresh",
    "Mexican": "Vibrant",
    "Thai": "Aromatic",
    "Gordon Ramsay": "Masterful",
    "Jamie Oliver": "Simple",
    "Julia Child": "Classic",
    "Anthony Bourdain": "Adventurous",
    "Nigella Lawson": "Indulgent",
}

SYSTEM_PROMPT = """You are a culinary expert who writes recipe suggestions as JSON.

Respond with ONLY a JSON object of this shape, no prose:
{"recipes": [
  {"title": "...", "time": "25 mins", "category": "Lunch|Dinner|Breakfast|Snack",
   "difficulty": "Easy|Medium|Hard",
   "ingredients": [{"name": "...", "amount": 100, "unit": "g"}],
   "instructions": ["..."],
   "nutrition": {"calories": 0, "protein": 0, "carbs": 0, "fat": 0,
                 "fiber": 0, "sugar": 0, "cost": 0}}
]}

Nutrition is per serving; cost is in USD per serving."""


def style_adjective(style: str) -> str:
    return STYLE_ADJECTIVES.get(style, "Creative")


def style_slug(style: str) -> str:
    """Id-safe form of a style name: "Gordon Ramsay" -> "gordon-ramsay"."""
    return re.sub(r"\s+", "-", style.strip().lower())


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


def _ingredients(names: Sequence[str], amount: float) -> List[RecipeIngredient]:
    return [
        RecipeIngredient(id=ingredient_id_for(name), amount=amount, unit="g", name=name)
        for name in names
    ]


def synthesize_recipes(style: str, ingredients: Sequence[str]) -> List[Recipe]:
    """
    Five deterministic suggestions for a style.

    Used when no live model is available and to top up short model replies.
    """
    ing = list(ingredients) or list(DEFAULT_INGREDIENTS)
    adj = style_adjective(style)
    slug = style_slug(style)
    first, second, third, last = ing[0], ing[1 % len(ing)], ing[2 % len(ing)], ing[-1]

    def recipe(n: int, title: str, time: str, category: str, extra_tag: str,
               names: Sequence[str], amount: float, instructions: List[str],
               difficulty: str, nutrition: NutritionInfo) -> Recipe:
        return Recipe(
            id=f"llm-{slug}-{n}",
            title=title,
            image="placeholder.svg",
            time=time,
            category=category,
            tags=[style, LLM_GENERATED_TAG, extra_tag],
            ingredients=_ingredients(names, amount),
            difficulty=difficulty,
            nutrition=nutrition,
            author_style=style,
            instructions=instructions,
        )

    return [
        recipe(
            1, f"{adj} {_capitalize(first)} Dish", "25 mins", "Main", first,
            ing[0:3], 100,
            [f"Prepare the {first} in {adj} way",
             f"Add {' and '.join(ing[1:3]) or first}",
             "Cook until done"],
            "Medium", NutritionInfo(350, 15, 40, 12, 5, 8, 3.50),
        ),
        recipe(
            2, f"{style} {_capitalize(second)} Special", "35 mins", "Main", second,
            ing[1:4] or [second], 150,
            [f"Prepare the {second} according to {style} tradition",
             f"Mix with {' and '.join(ing[2:4]) or second}",
             "Serve hot"],
            "Easy", NutritionInfo(400, 20, 45, 15, 6, 5, 4.20),
        ),
        recipe(
            3, f"{adj} Fusion with {_capitalize(third)}", "40 mins", "Main", "Fusion",
            ing[0:2] + ing[3:5], 80,
            [f"Combine {first} and {second}",
             f"Add a {adj} touch with spices",
             "Cook for 25 minutes"],
            "Hard", NutritionInfo(320, 18, 35, 10, 7, 4, 5.90),
        ),
        recipe(
            4, f"Quick {style} {_capitalize(first)} Bowl", "15 mins", "Lunch", "Quick",
            ing[0::2], 120,
            [f"Prepare a quick {style} sauce",
             f"Add {first} and cook briefly",
             "Serve in a bowl"],
            "Easy", NutritionInfo(280, 12, 30, 8, 4, 6, 3.10),
        ),
        recipe(
            5, f"{style} Inspired {_capitalize(last)} Delight", "30 mins", "Dinner", "Inspired",
            ing[-3:], 100,
            [f"Start with {last}",
             f"Apply {style} cooking techniques",
             "Garnish and serve"],
            "Medium", NutritionInfo(420, 22, 38, 18, 5, 7, 4.80),
        ),
    ]


def build_prompt(style: str, ingredients: Sequence[str]) -> str:
    return (
        f"Suggest {SUGGESTION_COUNT} recipes in the style of {style} "
        f"using these ingredients: {', '.join(ingredients)}"
    )


def _extract_json(text: str) -> Any:
    """Parse the JSON payload of a reply, tolerating code fences and prose."""
    text = text.strip()
    if text.startswith("```"):
        text = re.sub(r"^```(?:json)?\s*|\s*```$", "", text)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        start = min((i for i in (text.find("{"), text.find("[")) if i >= 0), default=-1)
        end = max(text.rfind("}"), text.rfind("]"))
        if start < 0 or end <= start:
            raise
        return json.loads(text[start:end + 1])


def parse_suggestions(text: str, style: str) -> List[Recipe]:
    """
    Turn a model reply into recipes stamped with the style.

    Raises:
        ValueError: If the reply is not the expected JSON
    """
    payload = _extract_json(text)
    items = payload.get("recipes") if isinstance(payload, dict) else payload
    if not isinstance(items, list):
        raise ValueError("LLM reply has no recipe list")

    slug = style_slug(style)
    recipes = []
    for n, item in enumerate(items[:SUGGESTION_COUNT], start=1):
        if not isinstance(item, dict) or not item.get("title"):
            continue
        data = dict(item)
        data["id"] = f"llm-{slug}-{n}"
        tags = [t for t in data.get("tags") or [] if t not in (style, LLM_GENERATED_TAG)]
        data["tags"] = [style, LLM_GENERATED_TAG, *tags]
        data["author_style"] = style
        data.setdefault("image", "placeholder.svg")
        recipes.append(Recipe.from_dict(data))
    return recipes


def _complete(recipes: List[Recipe], style: str, ingredients: Sequence[str]) -> List[Recipe]:
    """Top up to SUGGESTION_COUNT and make sure one title names the style."""
    taken = {r.id for r in recipes}
    for filler in synthesize_recipes(style, ingredients):
        if len(recipes) >= SUGGESTION_COUNT:
            break
        if filler.id not in taken:
            recipes.append(filler)
    if recipes and not any(style.lower() in r.title.lower() for r in recipes):
        recipes[0].title = f"{style} {recipes[0].title}"
    return recipes


async def suggest_by_style(
    style: str,
    ingredients: Optional[Sequence[str]] = None,
    provider: Optional[LLMProvider] = None,
    model: str = DEFAULT_MODEL,
) -> List[Recipe]:
    """
    Suggest five recipes in a cooking style.

    Args:
        style: Cuisine or chef to emulate, e.g. "Italian" or "Julia Child"
        ingredients: Ingredients to build around; defaults are used when empty
        provider: LLM provider (resolved from the environment if None)
        model: Model name for live calls

    Returns:
        Recipes tagged with the style and the LLM-Generated marker, or []
        on any failure
    """
    ingredients = [i for i in (ingredients or []) if i and i.strip()] or list(DEFAULT_INGREDIENTS)

    try:
        provider = provider or get_llm_provider()
        if provider.is_null:
            logger.info(f"[LLM] Synthesizing suggestions for style '{style}'")
            return synthesize_recipes(style, ingredients)

        logger.info(f"[LLM] Requesting {SUGGESTION_COUNT} '{style}' recipes ({len(ingredients)} ingredients)")
        reply = await asyncio.to_thread(
            provider.complete,
            build_prompt(style, ingredients),
            system=SYSTEM_PROMPT,
            model=model,
        )
        recipes = parse_suggestions(reply.text, style)
        logger.info(f"[LLM] Parsed {len(recipes)} suggestions")
        return _complete(recipes, style, ingredients)
    except Exception as e:
        logger.warning(f"[LLM] Style suggestion failed for '{style}': {e}")
        return []
