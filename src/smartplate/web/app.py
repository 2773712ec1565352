"""
SmartPlate JSON API.

A thin Flask surface over the recommendation engine and the preferences
store. Request bodies are validated with pydantic; bad input comes back as
400 {"error": ...}.
"""

import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS
from pydantic import BaseModel, Field, ValidationError

from smartplate.config import Settings, configure_logging
from smartplate.data.catalog import RecipeCatalog, load_default_catalog
from smartplate.data.models import PantryItem
from smartplate.data.preferences import PreferencesStore, open_store
from smartplate.llm_provider import get_llm_provider
from smartplate.meal_plan import DAYS, WeeklyPlan
from smartplate.recommendation.engine import RecommendationEngine
from smartplate.recommendation.llm_suggestions import suggest_by_style
from smartplate.recommendation.preset_rules import meal_budget
from smartplate.services.nutrition_enrichment import NutritionEnricher, load_food_library
from smartplate.services.vision_client import (
    ImageUpload,
    ImageValidationError,
    VisionServiceClient,
    VisionServiceError,
    convert_to_pantry_items,
)
from smartplate.shopping import build_shopping_list

logger = logging.getLogger(__name__)


class RecommendationRequest(BaseModel):
    count: int = Field(default=5, ge=1, le=50)
    meal_type: Optional[str] = None
    include_breakfast: bool = True
    with_snacks: bool = False
    exclude_ids: List[str] = Field(default_factory=list)
    enforce_budget: bool = False


class ReplaceRequest(BaseModel):
    rejected_id: str = Field(min_length=1)
    selected: List[str] = Field(default_factory=list)
    recommended: List[str] = Field(default_factory=list)
    meal_type: Optional[str] = None
    include_breakfast: bool = True
    with_snacks: bool = False


class SuggestionRequest(BaseModel):
    style: str = Field(min_length=1)
    ingredients: List[str] = Field(default_factory=list)


class PantryEntry(BaseModel):
    name: str = Field(min_length=1)
    quantity: float = Field(default=1.0, ge=0)
    unit: str = "piece"
    category: str = "other"
    expiry_date: Optional[str] = None


class PantryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    quantity: Optional[float] = Field(default=None, ge=0)
    unit: Optional[str] = None
    category: Optional[str] = None
    expiry_date: Optional[str] = None


class MealPlanRequest(BaseModel):
    meal_type: str = "dinner"
    include_breakfast: bool = True
    with_snacks: bool = False


class ShoppingListRequest(BaseModel):
    recipe_ids: List[str] = Field(min_length=1)
    pantry: List[PantryEntry] = Field(default_factory=list)


def _validation_error(e: ValidationError):
    details = "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}" for err in e.errors()
    )
    return jsonify({"error": f"Invalid request: {details}"}), 400


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _upload(storage) -> ImageUpload:
    return ImageUpload(
        filename=storage.filename or "upload",
        content=storage.read(),
        content_type=storage.mimetype or "application/octet-stream",
    )


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[RecommendationEngine] = None,
    store: Optional[PreferencesStore] = None,
    catalog: Optional[RecipeCatalog] = None,
    vision: Optional[VisionServiceClient] = None,
) -> Flask:
    """
    Build the Flask app.

    Args:
        settings: Settings (read from the environment if None)
        engine: Recommendation engine (built from settings if None)
        store: Preferences store (SQLite at settings.db_path if None)
        catalog: Recipe catalog (bundled seed recipes if None)
        vision: Image analysis client (from settings.vision_base_url if None;
            the photo routes answer 503 when there is neither)

    Returns:
        Configured Flask app
    """
    settings = settings or Settings.from_env()
    provider = get_llm_provider(api_key=settings.anthropic_api_key, use_null=settings.use_null_llm)

    async def suggester(style, ingredients):
        return await suggest_by_style(style, ingredients, provider=provider, model=settings.llm_model)

    if engine is None:
        catalog = catalog or load_default_catalog()
        enricher = NutritionEnricher(load_food_library(settings.food_library_path))
        engine = RecommendationEngine(
            catalog,
            suggester=suggester,
            enricher=enricher,
            default_style=settings.default_style,
        )
    store = store or open_store(settings.db_path)
    if vision is None and settings.vision_base_url:
        vision = VisionServiceClient(settings.vision_base_url, timeout=settings.vision_timeout)

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    CORS(app)

    app.config["ENGINE"] = engine
    app.config["STORE"] = store
    app.config["VISION"] = vision

    @app.route("/health")
    def health():
        return jsonify({"status": "healthy", "timestamp": datetime.now().isoformat()}), 200

    @app.route("/api/preferences", methods=["GET"])
    def get_preferences():
        return jsonify({"success": True, "preferences": store.preferences.to_dict()})

    @app.route("/api/preferences", methods=["POST"])
    def update_preferences():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Request body must be a JSON object"}), 400
        prefs = store.update(data)
        logger.info(f"Preferences updated: {sorted(data)}")
        return jsonify({"success": True, "preferences": prefs.to_dict()})

    @app.route("/api/preferences/reset", methods=["POST"])
    def reset_preferences():
        prefs = store.reset()
        return jsonify({"success": True, "preferences": prefs.to_dict()})

    @app.route("/api/recommendations", methods=["POST"])
    def recommendations():
        try:
            req = RecommendationRequest(**_json_body())
        except ValidationError as e:
            return _validation_error(e)

        ranked = asyncio.run(engine.get_recommendations(
            store.preferences,
            count=req.count,
            meal_type=req.meal_type,
            include_breakfast=req.include_breakfast,
            with_snacks=req.with_snacks,
            exclude_ids=req.exclude_ids,
            enforce_budget=req.enforce_budget,
        ))
        return jsonify({"success": True, "recommendations": [s.to_dict() for s in ranked]})

    @app.route("/api/recommendations/replace", methods=["POST"])
    def replace_recommendation():
        try:
            req = ReplaceRequest(**_json_body())
        except ValidationError as e:
            return _validation_error(e)

        replacement = asyncio.run(engine.replace_rejected(
            store,
            req.rejected_id,
            selected=req.selected,
            recommended=req.recommended,
            meal_type=req.meal_type,
            include_breakfast=req.include_breakfast,
            with_snacks=req.with_snacks,
        ))
        return jsonify({
            "success": True,
            "replacement": replacement.to_dict() if replacement else None,
        })

    @app.route("/api/suggestions", methods=["POST"])
    def suggestions():
        try:
            req = SuggestionRequest(**_json_body())
        except ValidationError as e:
            return _validation_error(e)

        recipes = asyncio.run(engine.suggester(req.style, req.ingredients))
        return jsonify({"success": True, "recipes": [r.to_dict() for r in recipes]})

    @app.route("/api/meal-budget", methods=["GET"])
    def get_meal_budget():
        meal_type = request.args.get("meal_type", "dinner")
        include_breakfast = request.args.get("include_breakfast", "true").lower() != "false"
        with_snacks = request.args.get("with_snacks", "false").lower() == "true"
        budget = meal_budget(store.preferences, meal_type, include_breakfast, with_snacks)
        return jsonify({"success": True, "meal_type": meal_type, "budget": budget.to_dict()})

    @app.route("/api/shopping-list", methods=["POST"])
    def shopping_list():
        try:
            req = ShoppingListRequest(**_json_body())
        except ValidationError as e:
            return _validation_error(e)

        recipes = [engine.catalog.get(rid) for rid in req.recipe_ids]
        missing = [rid for rid, r in zip(req.recipe_ids, recipes) if r is None]
        if missing:
            return jsonify({"error": f"Unknown recipe ids: {', '.join(missing)}"}), 404

        pantry = [
            PantryItem(id=f"req_{i}", name=p.name, quantity=p.quantity, unit=p.unit)
            for i, p in enumerate(req.pantry)
        ]
        items = build_shopping_list(recipes, pantry)
        return jsonify({"success": True, "items": [i.to_dict() for i in items]})

    @app.route("/api/recipes/<recipe_id>/similar", methods=["GET"])
    def similar_recipes(recipe_id):
        if engine.catalog.get(recipe_id) is None:
            return jsonify({"error": f"Recipe {recipe_id} not found"}), 404
        try:
            count = int(request.args.get("count", 3))
        except ValueError:
            return jsonify({"error": "count must be an integer"}), 400
        similar = engine.find_similar(recipe_id, count=count)
        return jsonify({"success": True, "recipes": [r.to_dict() for r in similar]})

    @app.route("/api/meal-plan", methods=["POST"])
    def weekly_meal_plan():
        try:
            req = MealPlanRequest(**_json_body())
        except ValidationError as e:
            return _validation_error(e)

        ranked = asyncio.run(engine.get_recommendations(
            store.preferences,
            count=len(DAYS),
            meal_type=req.meal_type,
            include_breakfast=req.include_breakfast,
            with_snacks=req.with_snacks,
        ))
        plan = WeeklyPlan()
        plan.fill_from([s.recipe for s in ranked], req.meal_type)
        return jsonify({"success": True, "plan": plan.to_dict()})

    @app.route("/api/pantry", methods=["GET"])
    def get_pantry():
        return jsonify({"success": True, "items": [i.to_dict() for i in store.preferences.pantry]})

    @app.route("/api/pantry", methods=["POST"])
    def add_pantry_item():
        try:
            entry = PantryEntry(**_json_body())
        except ValidationError as e:
            return _validation_error(e)

        try:
            item = store.add_pantry_item(
                entry.name,
                quantity=entry.quantity,
                unit=entry.unit,
                category=entry.category,
                expiry_date=entry.expiry_date,
            )
        except ValueError as e:
            return jsonify({"error": str(e)}), 400
        return jsonify({"success": True, "item": item.to_dict()}), 201

    @app.route("/api/pantry/<item_id>", methods=["PUT"])
    def update_pantry_item(item_id):
        try:
            changes = PantryUpdate(**_json_body())
        except ValidationError as e:
            return _validation_error(e)

        item = store.update_pantry_item(item_id, **changes.model_dump(exclude_none=True))
        if item is None:
            return jsonify({"error": f"Pantry item {item_id} not found"}), 404
        return jsonify({"success": True, "item": item.to_dict()})

    @app.route("/api/pantry/<item_id>", methods=["DELETE"])
    def remove_pantry_item(item_id):
        if not store.remove_pantry_item(item_id):
            return jsonify({"error": f"Pantry item {item_id} not found"}), 404
        return jsonify({"success": True})

    @app.route("/api/pantry/scan", methods=["POST"])
    def scan_pantry():
        if vision is None:
            return jsonify({"error": "Image analysis service is not configured"}), 503

        images = [_upload(f) for f in request.files.getlist("images")]
        scan_type = request.form.get("scan_type", "receipt")
        try:
            parsed = vision.scan_pantry(images, scan_type)
        except ImageValidationError as e:
            return jsonify({"error": str(e)}), 400
        except VisionServiceError as e:
            logger.error(f"[VISION] Pantry scan failed: {e}")
            return jsonify({"error": str(e)}), 502

        added = store.add_pantry_items(convert_to_pantry_items(parsed))
        return jsonify({"success": True, "items": [i.to_dict() for i in added]})

    @app.route("/api/recipes/import-photo", methods=["POST"])
    def import_recipe_photo():
        if vision is None:
            return jsonify({"error": "Image analysis service is not configured"}), 503

        upload = request.files.get("image")
        if upload is None:
            return jsonify({"error": "No image provided"}), 400
        try:
            extraction = vision.analyze_recipe_photo(_upload(upload))
        except ImageValidationError as e:
            return jsonify({"error": str(e)}), 400
        except VisionServiceError as e:
            logger.error(f"[VISION] Recipe photo analysis failed: {e}")
            return jsonify({"error": str(e)}), 502

        recipe = extraction.to_recipe(f"photo_{int(datetime.now().timestamp() * 1000)}")
        engine.catalog.add(recipe)
        logger.info(f"Imported recipe from photo: {recipe.title} ({recipe.id})")
        return jsonify({"success": True, "recipe": recipe.to_dict()}), 201

    return app


def main():
    settings = Settings.from_env()
    configure_logging(settings)
    app = create_app(settings)
    logger.info("Starting SmartPlate API on http://localhost:5000")
    app.run(debug=False, host="0.0.0.0", port=5000)


if __name__ == "__main__":
    main()
