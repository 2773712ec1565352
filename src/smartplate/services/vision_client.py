"""
Client for the image analysis functions.

Two endpoints sit behind one base URL:
- analyze-recipe-photo: one food photo -> structured recipe
- parse-pantry: up to 5 receipt or fridge photos -> pantry items

Uploads are checked against the service's limits before sending so the
caller gets a clear error instead of a round trip.
"""

import logging
import mimetypes
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

import requests

from smartplate.data.models import PantryItem, ParsedPantryItem, RecipeExtraction

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 10 * 1024 * 1024  # 10MB
ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}
MAX_PANTRY_IMAGES = 5
SCAN_TYPES = ("receipt", "fridge")
MIN_ITEM_CONFIDENCE = 0.5


class VisionServiceError(Exception):
    """The vision service failed or returned an unusable response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ImageValidationError(ValueError):
    """An upload violates the service's size, type or count limits."""


@dataclass
class ImageUpload:
    filename: str
    content: bytes
    content_type: str

    @classmethod
    def from_path(cls, path: str) -> "ImageUpload":
        content_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
        with open(path, "rb") as f:
            return cls(filename=os.path.basename(path), content=f.read(), content_type=content_type)

    def validate(self):
        """
        Raises:
            ImageValidationError: If the image is too large or of the wrong type
        """
        if len(self.content) > MAX_IMAGE_BYTES:
            raise ImageValidationError(
                f"File {self.filename} is too large. Maximum 10MB allowed."
            )
        if self.content_type.lower() not in ALLOWED_CONTENT_TYPES:
            raise ImageValidationError(
                f"File {self.filename} has invalid type. Only JPEG, PNG, and WebP are allowed."
            )


def validate_parsed_items(items: Iterable[Dict[str, Any]]) -> List[ParsedPantryItem]:
    """
    Clean raw pantry items from the service.

    Items without a name or with confidence below 0.5 are dropped. Missing
    quantity defaults to 1, unit to "piece" and confidence to 0.8.
    """
    cleaned = []
    for item in items:
        if not isinstance(item, dict):
            continue
        name = str(item.get("name") or "").strip()
        if not name:
            continue
        confidence = item.get("confidence")
        if isinstance(confidence, (int, float)) and confidence < MIN_ITEM_CONFIDENCE:
            continue

        quantity = item.get("quantity")
        unit = str(item.get("unit") or "").strip()
        cleaned.append(ParsedPantryItem(
            name=name,
            quantity=float(quantity) if isinstance(quantity, (int, float)) and quantity > 0 else 1.0,
            unit=unit or "piece",
            confidence=float(confidence) if confidence else 0.8,
        ))
    return cleaned


def convert_to_pantry_items(items: Sequence[ParsedPantryItem],
                            now: Optional[datetime] = None) -> List[PantryItem]:
    """Pantry entries for scanned items, ids scanned_<ms timestamp>_<index>."""
    now = now or datetime.now()
    stamp = int(now.timestamp() * 1000)
    return [
        PantryItem(
            id=f"scanned_{stamp}_{i}",
            name=item.name,
            quantity=item.quantity or 1.0,
            unit=item.unit or "piece",
            category="scanned",
            added_at=now,
            expiry_date=None,
        )
        for i, item in enumerate(items)
    ]


class VisionServiceClient:
    """HTTP client for the recipe-photo and pantry-scan functions."""

    def __init__(self, base_url: str, api_key: Optional[str] = None,
                 timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        if api_key:
            self.session.headers["Authorization"] = f"Bearer {api_key}"

    def _post(self, function: str, files: List[tuple], data: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}/{function}"
        try:
            resp = self.session.post(url, files=files, data=data, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"[VISION] {function} request failed: {e}")
            raise VisionServiceError(f"Could not reach image analysis service: {e}") from e

        logger.info(f"[VISION] {function} HTTP {resp.status_code}")
        try:
            body = resp.json()
        except ValueError:
            body = None

        if not resp.ok:
            message = body.get("error") if isinstance(body, dict) else None
            raise VisionServiceError(
                message or f"Image analysis failed with HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        if not isinstance(body, dict):
            raise VisionServiceError("Invalid response from image analysis service",
                                     status_code=resp.status_code)
        return body

    def analyze_recipe_photo(self, image: ImageUpload) -> RecipeExtraction:
        """
        Extract a recipe from a food photo.

        Raises:
            ImageValidationError: If the image violates upload limits
            VisionServiceError: On transport errors or non-2xx responses
        """
        image.validate()
        body = self._post(
            "analyze-recipe-photo",
            files=[("image", (image.filename, image.content, image.content_type))],
        )
        if not body.get("title") or not isinstance(body.get("ingredients"), list):
            raise VisionServiceError("Invalid recipe extraction from image analysis service")
        return RecipeExtraction.from_dict(body)

    def scan_pantry(self, images: Sequence[ImageUpload], scan_type: str = "receipt") -> List[ParsedPantryItem]:
        """
        Read pantry items from receipt or fridge photos.

        Args:
            images: 1-5 images
            scan_type: "receipt" or "fridge"

        Returns:
            Validated pantry items
        """
        if scan_type not in SCAN_TYPES:
            raise ImageValidationError(f"Unknown scan type '{scan_type}'")
        if not images:
            raise ImageValidationError("No images provided")
        if len(images) > MAX_PANTRY_IMAGES:
            raise ImageValidationError(f"Maximum {MAX_PANTRY_IMAGES} images allowed per scan")
        for image in images:
            image.validate()

        files = [
            (f"image_{i}", (image.filename, image.content, image.content_type))
            for i, image in enumerate(images)
        ]
        body = self._post("parse-pantry", files=files, data={"scan_type": scan_type})
        items = body.get("items")
        if not isinstance(items, list):
            raise VisionServiceError("Invalid response from pantry parsing service")

        parsed = validate_parsed_items(items)
        logger.info(f"[VISION] {len(parsed)}/{len(items)} pantry items kept from {len(images)} image(s)")
        return parsed
