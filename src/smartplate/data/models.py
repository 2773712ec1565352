"""
Data models for SmartPlate.

These models define the core entities used throughout the system:
- Recipe: Catalog recipes and generated suggestions
- UserPreferences: Goals, dietary settings and interaction history
- RecommendationWeights: Factor weights used by the recipe scorer
- MealBudget: Per-meal nutrition targets (derived, never stored)
- ScoredRecipe: A recipe with its composite score and breakdown
- PantryItem / ParsedPantryItem: Pantry tracking and scan results

All persisted models round-trip through plain dicts. from_dict() accepts the
snake_case keys written by to_dict() as well as the camelCase keys used by
the browser client.
"""

import math
import zlib
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, List, Optional, Union


def _pick(data: Dict[str, Any], key: str, alt: Optional[str] = None, default: Any = None) -> Any:
    """Read a key, falling back to its camelCase alias."""
    if key in data:
        return data[key]
    if alt is not None and alt in data:
        return data[alt]
    return default


def _as_float(value: Any, default: float = 0.0) -> float:
    """Coerce a nutrition value to a non-negative float."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or number < 0:
        return default
    return number


def _as_optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    number = _as_float(value, default=-1.0)
    return None if number < 0 else number


def ingredient_id_for(name: str) -> int:
    """Deterministic ingredient id derived from its name."""
    return zlib.crc32(name.lower().strip().encode("utf-8")) % 1000


@dataclass
class NutritionInfo:
    """Nutrition per serving. Every field defaults to 0."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0
    sugar: float = 0.0
    cost: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "NutritionInfo":
        data = data or {}
        return cls(**{f.name: _as_float(data.get(f.name)) for f in fields(cls)})

    def __str__(self) -> str:
        """Human-readable nutrition summary."""
        return (
            f"{self.calories:.0f} cal, {self.protein:.0f}g protein, "
            f"{self.carbs:.0f}g carbs, {self.fat:.0f}g fat"
        )


@dataclass
class RecipeIngredient:
    """Ingredient line on a recipe."""

    id: int
    amount: float = 0.0
    unit: str = ""
    name: str = ""

    @property
    def display_name(self) -> str:
        return self.name or f"Ingredient #{self.id} ({self.amount}{self.unit})"

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "amount": self.amount, "unit": self.unit, "name": self.name}

    @classmethod
    def from_value(cls, value: Union[str, Dict[str, Any], "RecipeIngredient"]) -> "RecipeIngredient":
        """Build from a plain ingredient name or a structured dict."""
        if isinstance(value, RecipeIngredient):
            return value
        if isinstance(value, str):
            return cls(id=ingredient_id_for(value), amount=1.0, unit="", name=value)
        name = str(value.get("name") or "")
        raw_id = value.get("id")
        try:
            ingredient_id = int(raw_id)
        except (TypeError, ValueError):
            ingredient_id = ingredient_id_for(name) if name else -1
        return cls(
            id=ingredient_id,
            amount=_as_float(value.get("amount")),
            unit=str(value.get("unit") or ""),
            name=name,
        )


@dataclass
class Recipe:
    """Catalog recipe or generated suggestion.

    Nutrition may live in the nested `nutrition` object or in the legacy flat
    fields; use recommendation.nutrition.get_recipe_nutrition() to read it.
    """

    id: str
    title: str
    image: str = ""
    time: str = ""  # Prep-time label, e.g. "25 mins" or "1 hr 10 mins"
    category: str = ""  # Meal-type tag, e.g. "Breakfast"
    tags: List[str] = field(default_factory=list)
    ingredients: List[RecipeIngredient] = field(default_factory=list)
    difficulty: str = "Medium"
    servings: int = 2

    nutrition: Optional[NutritionInfo] = None

    # Legacy flat nutrition fields
    calories: Optional[float] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None
    fiber: Optional[float] = None
    sugar: Optional[float] = None
    cost: Optional[float] = None

    author_style: Optional[str] = None
    alternative_ids: List[str] = field(default_factory=list)
    nutrient_score: Optional[float] = None
    instructions: List[str] = field(default_factory=list)

    def ingredient_names(self) -> List[str]:
        """Lowercase ingredient names for matching."""
        return [ing.display_name.lower() for ing in self.ingredients]

    def has_tag(self, tag: str) -> bool:
        return tag.lower() in (t.lower() for t in self.tags)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "image": self.image,
            "time": self.time,
            "category": self.category,
            "tags": list(self.tags),
            "ingredients": [ing.to_dict() for ing in self.ingredients],
            "difficulty": self.difficulty,
            "servings": self.servings,
            "nutrition": self.nutrition.to_dict() if self.nutrition else None,
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
            "fiber": self.fiber,
            "sugar": self.sugar,
            "cost": self.cost,
            "author_style": self.author_style,
            "alternative_ids": list(self.alternative_ids),
            "nutrient_score": self.nutrient_score,
            "instructions": list(self.instructions),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Recipe":
        nutrition = data.get("nutrition")
        servings = _pick(data, "servings", default=2)
        try:
            servings = int(servings) if servings else 2
        except (TypeError, ValueError):
            servings = 2
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            image=data.get("image", ""),
            time=data.get("time", ""),
            category=data.get("category", ""),
            tags=list(data.get("tags") or []),
            ingredients=[RecipeIngredient.from_value(i) for i in data.get("ingredients") or []],
            difficulty=data.get("difficulty", "Medium"),
            servings=servings,
            nutrition=NutritionInfo.from_dict(nutrition) if isinstance(nutrition, dict) else None,
            calories=_as_optional_float(data.get("calories")),
            protein=_as_optional_float(data.get("protein")),
            carbs=_as_optional_float(data.get("carbs")),
            fat=_as_optional_float(data.get("fat")),
            fiber=_as_optional_float(data.get("fiber")),
            sugar=_as_optional_float(data.get("sugar")),
            cost=_as_optional_float(data.get("cost")),
            author_style=_pick(data, "author_style", "authorStyle"),
            alternative_ids=[str(a) for a in _pick(data, "alternative_ids", "alternativeIds", []) or []],
            nutrient_score=_as_optional_float(_pick(data, "nutrient_score", "nutrientScore")),
            instructions=list(data.get("instructions") or []),
        )


@dataclass
class RecommendationWeights:
    """Scoring factor weights. Stored values are normalized to sum to 1.0."""

    nutritional_fit: float = 0.0
    similarity_to_likes: float = 0.0
    variety_boost: float = 0.0
    pantry_match: float = 0.0
    cost_score: float = 0.0
    recency_penalty: float = 0.0
    metadata_overlap: float = 0.0
    vector_similarity: float = 0.0
    collaborative_filtering: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def total(self) -> float:
        return sum(self.to_dict().values())


@dataclass
class MealBudget:
    """Nutrition targets for a single meal. Derived from preferences."""

    kcal_target: int
    protein_target_g: int
    carb_target_g: int
    fat_target_g: int
    fiber_min_g: int
    sugar_soft_cap_g: float
    sugar_hard_cap_g: float

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class ScoreBreakdown:
    """Per-factor sub-scores behind a composite score. None means absent."""

    nutritional_fit: Optional[float] = None
    similarity_to_likes: Optional[float] = None
    variety_boost: Optional[float] = None
    pantry_match: Optional[float] = None
    cost_score: Optional[float] = None
    recency_penalty: Optional[float] = None
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class ScoredRecipe:
    """Recipe plus composite score. Transient, never persisted."""

    recipe: Recipe
    score: float
    breakdown: ScoreBreakdown = field(default_factory=ScoreBreakdown)

    @property
    def id(self) -> str:
        return self.recipe.id

    def to_dict(self) -> Dict[str, Any]:
        data = self.recipe.to_dict()
        data["score"] = round(self.score, 4)
        data["breakdown"] = self.breakdown.to_dict()
        return data


@dataclass
class UserPreferences:
    """Profile used to budget and rank recipes.

    Defaults:
        - no macro overrides (targets derived from the goal)
        - no recommendation_preset: the goal falls back to fitness_goal,
          then Healthy; weights follow that goal
        - omnivore diet, no restrictions or allergies
        - empty like/dislike history and pantry
        - no author style, no cooking time limit
    """

    calorie_target: Optional[float] = None
    protein_target: Optional[float] = None
    carb_target: Optional[float] = None
    fat_target: Optional[float] = None
    fitness_goal: Optional[str] = None
    recommendation_preset: Optional[str] = None
    recommendation_weights: Optional[RecommendationWeights] = None
    dietary_preference: Optional[str] = None
    dietary_restrictions: List[str] = field(default_factory=list)
    allergies: List[str] = field(default_factory=list)
    liked_meals: List[str] = field(default_factory=list)
    disliked_meals: List[str] = field(default_factory=list)
    liked_foods: List[str] = field(default_factory=list)
    disliked_foods: List[str] = field(default_factory=list)
    pantry: List["PantryItem"] = field(default_factory=list)
    author_style: Optional[str] = None
    cooking_time: Optional[int] = None  # Max minutes
    cooking_experience: str = "beginner"
    budget_tier: str = "medium"
    recently_viewed: List[str] = field(default_factory=list)  # Most recent first
    updated_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        self.pantry = [PantryItem.from_value(p, i) for i, p in enumerate(self.pantry)]
        # Weights always track the goal unless explicitly set
        if self.recommendation_weights is None:
            from smartplate.recommendation.weights import preset_weights
            self.recommendation_weights = preset_weights(self.goal_key)

    @property
    def goal_key(self) -> Optional[str]:
        """Raw goal in resolution order: preset, then fitness goal."""
        return self.recommendation_preset or self.fitness_goal

    def pantry_names(self) -> List[str]:
        return [item.name for item in self.pantry]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "calorie_target": self.calorie_target,
            "protein_target": self.protein_target,
            "carb_target": self.carb_target,
            "fat_target": self.fat_target,
            "fitness_goal": self.fitness_goal,
            "recommendation_preset": self.recommendation_preset,
            "recommendation_weights": self.recommendation_weights.to_dict(),
            "dietary_preference": self.dietary_preference,
            "dietary_restrictions": list(self.dietary_restrictions),
            "allergies": list(self.allergies),
            "liked_meals": list(self.liked_meals),
            "disliked_meals": list(self.disliked_meals),
            "liked_foods": list(self.liked_foods),
            "disliked_foods": list(self.disliked_foods),
            "pantry": [item.to_dict() for item in self.pantry],
            "author_style": self.author_style,
            "cooking_time": self.cooking_time,
            "cooking_experience": self.cooking_experience,
            "budget_tier": self.budget_tier,
            "recently_viewed": list(self.recently_viewed),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "UserPreferences":
        """Normalize a stored or client-supplied profile.

        Unknown keys are ignored, missing keys take their defaults, the goal
        is resolved through its aliases and weights are normalized.
        """
        from smartplate.recommendation.preset_rules import resolve_goal
        from smartplate.recommendation.weights import normalize_weights

        data = data or {}
        raw_pantry = _pick(data, "pantry", "pantryItems") or []
        if isinstance(raw_pantry, (str, dict)):
            raw_pantry = [raw_pantry]

        raw_preset = _pick(data, "recommendation_preset", "recommendationPreset")
        preset = resolve_goal(raw_preset).value if raw_preset else None
        raw_weights = _pick(data, "recommendation_weights", "recommendationWeights")
        weights = normalize_weights(raw_weights) if raw_weights else None

        updated_at = _pick(data, "updated_at", "updatedAt")
        try:
            updated_at = datetime.fromisoformat(updated_at) if updated_at else datetime.now()
        except (TypeError, ValueError):
            updated_at = datetime.now()

        cooking_time = _pick(data, "cooking_time", "cookingTime")
        try:
            cooking_time = int(cooking_time) if cooking_time else None
        except (TypeError, ValueError):
            cooking_time = None

        def _list(key: str, alt: str) -> List[str]:
            value = _pick(data, key, alt) or []
            if isinstance(value, str):
                value = [value]
            return [str(v) for v in value if v is not None and str(v).strip()]

        return cls(
            calorie_target=_as_optional_float(_pick(data, "calorie_target", "calorieTarget")) or None,
            protein_target=_as_optional_float(_pick(data, "protein_target", "proteinTarget")) or None,
            carb_target=_as_optional_float(_pick(data, "carb_target", "carbTarget")) or None,
            fat_target=_as_optional_float(_pick(data, "fat_target", "fatTarget")) or None,
            fitness_goal=_pick(data, "fitness_goal", "fitnessGoal"),
            recommendation_preset=preset,
            recommendation_weights=weights,
            dietary_preference=_pick(data, "dietary_preference", "dietaryPreference"),
            dietary_restrictions=_list("dietary_restrictions", "dietaryRestrictions"),
            allergies=_list("allergies", "allergies"),
            liked_meals=_list("liked_meals", "likedMeals"),
            disliked_meals=_list("disliked_meals", "dislikedMeals"),
            liked_foods=_list("liked_foods", "likedFoods"),
            disliked_foods=_list("disliked_foods", "dislikedFoods"),
            pantry=[p for p in raw_pantry if isinstance(p, (dict, PantryItem)) or str(p).strip()],
            author_style=_pick(data, "author_style", "authorStyle") or None,
            cooking_time=cooking_time,
            cooking_experience=_pick(data, "cooking_experience", "cookingExperience", "beginner"),
            budget_tier=_pick(data, "budget_tier", "budgetTier", "medium"),
            recently_viewed=_list("recently_viewed", "recentlyViewed")[:10],
            updated_at=updated_at,
        )


@dataclass
class PantryItem:
    """Item the user has on hand."""

    id: str
    name: str
    quantity: float = 1.0
    unit: str = "piece"
    category: str = "other"
    added_at: datetime = field(default_factory=datetime.now)
    expiry_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "category": self.category,
            "added_at": self.added_at.isoformat(),
            "expiry_date": self.expiry_date,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], index: int = 0) -> "PantryItem":
        name = str(data.get("name") or "").strip()
        added_at = _pick(data, "added_at", "addedAt")
        try:
            added_at = datetime.fromisoformat(added_at) if added_at else datetime.now()
        except (TypeError, ValueError):
            added_at = datetime.now()
        return cls(
            id=str(data.get("id") or f"pantry_{index}_{pantry_slug(name)}"),
            name=name,
            quantity=_as_float(_pick(data, "quantity", "amount"), 1.0),
            unit=data.get("unit") or "piece",
            category=data.get("category") or "other",
            added_at=added_at,
            expiry_date=_pick(data, "expiry_date", "expirationDate"),
        )

    @classmethod
    def from_value(cls, value: Union[str, Dict[str, Any], "PantryItem"], index: int = 0) -> "PantryItem":
        """Accept a stored item, a client dict, or a bare ingredient name."""
        if isinstance(value, PantryItem):
            return value
        if isinstance(value, dict):
            return cls.from_dict(value, index)
        return cls.from_dict({"name": str(value)}, index)


def pantry_slug(name: str) -> str:
    return "-".join(name.lower().split())


@dataclass
class ParsedPantryItem:
    """Pantry item read from a receipt or fridge photo."""

    name: str
    quantity: float = 1.0
    unit: str = "piece"
    confidence: float = 0.8

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "confidence": self.confidence,
        }


@dataclass
class RecipeExtraction:
    """Recipe read from a food photo by the vision service."""

    title: str
    ingredients: List[RecipeIngredient] = field(default_factory=list)
    instructions: List[str] = field(default_factory=list)
    difficulty: str = "Medium"
    category: str = ""
    tags: List[str] = field(default_factory=list)
    time: str = ""
    nutrition: Optional[NutritionInfo] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecipeExtraction":
        nutrition = data.get("nutrition")
        return cls(
            title=data.get("title") or "Untitled recipe",
            ingredients=[RecipeIngredient.from_value(i) for i in data.get("ingredients") or []],
            instructions=list(data.get("instructions") or []),
            difficulty=data.get("difficulty") or "Medium",
            category=data.get("category") or "",
            tags=list(data.get("tags") or []),
            time=data.get("time") or "",
            nutrition=NutritionInfo.from_dict(nutrition) if isinstance(nutrition, dict) else None,
        )

    def to_recipe(self, recipe_id: str) -> Recipe:
        """Turn the extraction into a catalog recipe."""
        return Recipe(
            id=recipe_id,
            title=self.title,
            time=self.time,
            category=self.category,
            tags=list(self.tags),
            ingredients=list(self.ingredients),
            difficulty=self.difficulty,
            nutrition=self.nutrition,
            instructions=list(self.instructions),
        )
