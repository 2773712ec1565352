"""
Canonical tag vocabulary for recipe filtering.

Recipe tags arrive in display form ("High Protein", "Gluten Free") while
user restrictions arrive in whatever form the profile screen produced
("gluten_free", "Gluten-Free"). Everything is compared through
normalize_tag().
"""

from typing import Dict, Iterable, List, Optional, Set

# =============================================================================
# DIETARY TAGS
# =============================================================================
# Dietary preference -> recipe tags that satisfy it
DIETARY_SATISFIED_BY: Dict[str, Set[str]] = {
    "vegan": {"vegan"},
    "vegetarian": {"vegetarian", "vegan"},
    "pescatarian": {"pescatarian", "vegetarian", "vegan", "seafood"},
    "keto": {"keto", "low-carb"},
    "paleo": {"paleo"},
    "gluten-free": {"gluten-free"},
    "dairy-free": {"dairy-free", "vegan"},
    "low-carb": {"low-carb", "keto"},
}

# Preferences that place no constraint on tags
UNRESTRICTED_DIETS: Set[str] = {"omnivore", "none", "any", "no-preference", ""}

# =============================================================================
# COURSE/MEAL-TYPE TAGS
# =============================================================================
CANON_MEAL_TYPES: Set[str] = {
    "breakfast",
    "lunch",
    "dinner",
    "snack",
    "dessert",
    "appetizer",
}

# Map variations to canonical tag names
TAG_SYNONYMS: Dict[str, str] = {
    "gluten free": "gluten-free",
    "glutenfree": "gluten-free",
    "dairy free": "dairy-free",
    "dairyfree": "dairy-free",
    "low carb": "low-carb",
    "lowcarb": "low-carb",
    "veggie": "vegetarian",
    "plant-based": "vegan",
    "plant based": "vegan",
    "pescetarian": "pescatarian",
    "ketogenic": "keto",
    "snacks": "snack",
    "desserts": "dessert",
    "appetizers": "appetizer",
    "main": "dinner",
    "main-dish": "dinner",
}

# =============================================================================
# FREE-FORM RESTRICTIONS
# =============================================================================
# Restriction term -> ingredient words it rules out. Terms not listed here
# rule out only themselves.
RESTRICTION_INGREDIENTS: Dict[str, List[str]] = {
    "nut": ["nut", "peanut", "almond", "walnut", "pecan", "cashew", "pistachio", "hazelnut", "macadamia"],
    "tree nut": ["almond", "walnut", "pecan", "cashew", "pistachio", "hazelnut", "macadamia"],
    "peanut": ["peanut"],
    "egg": ["egg", "mayonnaise"],
    "soy": ["soy", "tofu", "edamame"],
    "shellfish": ["shrimp", "prawn", "crab", "lobster", "scallop", "mussel", "clam"],
}

# Marker tag carried by every generated suggestion
LLM_GENERATED_TAG = "LLM-Generated"


def normalize_tag(tag: str) -> str:
    """
    Normalize a tag to canonical form.

    Args:
        tag: Raw tag string

    Returns:
        Lowercase, hyphenated, synonym-resolved tag
    """
    tag = (tag or "").lower().strip().replace("_", "-")
    if tag in TAG_SYNONYMS:
        return TAG_SYNONYMS[tag]
    tag = "-".join(tag.split())
    return TAG_SYNONYMS.get(tag, tag)


def normalize_tags(tags: Iterable[str]) -> Set[str]:
    """Normalize a collection of tags into a set."""
    return {normalize_tag(t) for t in tags if t}


def satisfying_tags(diet: str) -> Optional[Set[str]]:
    """
    Return the recipe tags that satisfy a dietary requirement.

    Returns None when the requirement is not a known diet tag (or places
    no constraint at all).
    """
    canon = normalize_tag(diet)
    if canon in UNRESTRICTED_DIETS:
        return None
    return DIETARY_SATISFIED_BY.get(canon)


def excluded_term(restriction: str) -> str:
    """Ingredient term implied by a free-form restriction ("nut-free" -> "nut")."""
    canon = normalize_tag(restriction)
    for prefix in ("no-", "without-"):
        if canon.startswith(prefix):
            canon = canon[len(prefix):]
    if canon.endswith("-free"):
        canon = canon[:-len("-free")]
    return canon.replace("-", " ")


def excluded_ingredients(restriction: str) -> List[str]:
    """Ingredient words a free-form restriction rules out ("nut-free" -> nuts, peanuts, walnuts, ...)."""
    term = excluded_term(restriction)
    if not term:
        return []
    singular = term[:-1] if term.endswith("s") and term[:-1] in RESTRICTION_INGREDIENTS else term
    return RESTRICTION_INGREDIENTS.get(singular, [term])


def meal_type_of(category: Optional[str]) -> Optional[str]:
    """Return the canonical meal type for a recipe category, if it is one."""
    if not category:
        return None
    canon = normalize_tag(category)
    return canon if canon in CANON_MEAL_TYPES else None
