"""
Unit tests for the image analysis client.

HTTP calls go through a mocked requests session.
"""

from datetime import datetime

import pytest
import requests

from smartplate.data.models import ParsedPantryItem
from smartplate.services.vision_client import (
    MAX_IMAGE_BYTES,
    ImageUpload,
    ImageValidationError,
    VisionServiceClient,
    VisionServiceError,
    convert_to_pantry_items,
    validate_parsed_items,
)


def _image(name="photo.jpg", size=1024, content_type="image/jpeg"):
    return ImageUpload(filename=name, content=b"x" * size, content_type=content_type)


def _response(mocker, status=200, body=None):
    resp = mocker.Mock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    if body is None:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = body
    return resp


@pytest.fixture
def session(mocker):
    session = mocker.Mock()
    session.headers = {}
    return session


@pytest.fixture
def client(session):
    return VisionServiceClient("https://functions.example.com/v1/", api_key="anon-key", session=session)


class TestImageUpload:
    """Test client-side upload limits."""

    def test_valid_image(self):
        _image().validate()

    def test_too_large(self):
        with pytest.raises(ImageValidationError, match="too large"):
            _image(size=MAX_IMAGE_BYTES + 1).validate()

    def test_wrong_type(self):
        with pytest.raises(ImageValidationError, match="invalid type"):
            _image(name="scan.gif", content_type="image/gif").validate()

    def test_from_path(self, tmp_path):
        path = tmp_path / "dinner.png"
        path.write_bytes(b"\x89PNG")
        image = ImageUpload.from_path(str(path))
        assert image.filename == "dinner.png"
        assert image.content_type == "image/png"


class TestPantryItemCleanup:
    """Test validation and conversion of scanned pantry items."""

    def test_validate_parsed_items(self):
        items = validate_parsed_items([
            {"name": "Milk", "quantity": 2, "unit": "l", "confidence": 0.9},
            {"name": "  ", "quantity": 1},
            {"name": "Mystery", "confidence": 0.3},
            {"name": "Eggs"},
            "garbage",
        ])
        assert items == [
            ParsedPantryItem(name="Milk", quantity=2.0, unit="l", confidence=0.9),
            ParsedPantryItem(name="Eggs", quantity=1.0, unit="piece", confidence=0.8),
        ]

    def test_convert_to_pantry_items(self):
        now = datetime(2025, 3, 1, 12, 0, 0)
        items = convert_to_pantry_items([ParsedPantryItem(name="Milk"), ParsedPantryItem(name="Eggs")], now=now)

        stamp = int(now.timestamp() * 1000)
        assert [i.id for i in items] == [f"scanned_{stamp}_0", f"scanned_{stamp}_1"]
        assert all(i.category == "scanned" for i in items)
        assert items[0].added_at == now


class TestVisionServiceClient:
    """Test requests to the image analysis functions."""

    def test_sets_auth_header(self, client, session):
        assert session.headers["Authorization"] == "Bearer anon-key"

    def test_analyze_recipe_photo(self, client, session, mocker):
        session.post.return_value = _response(mocker, body={
            "title": "Pad Thai",
            "ingredients": [{"id": 1, "amount": 200, "unit": "g", "name": "Rice noodles"}],
            "instructions": ["Soak noodles"],
            "tags": ["Thai"],
        })

        extraction = client.analyze_recipe_photo(_image())

        assert extraction.title == "Pad Thai"
        assert extraction.ingredients[0].name == "Rice noodles"
        url = session.post.call_args.args[0]
        assert url == "https://functions.example.com/v1/analyze-recipe-photo"
        files = session.post.call_args.kwargs["files"]
        assert files[0][0] == "image"

    def test_error_body_is_surfaced(self, client, session, mocker):
        session.post.return_value = _response(mocker, status=400, body={"error": "No image provided"})

        with pytest.raises(VisionServiceError, match="No image provided") as exc_info:
            client.analyze_recipe_photo(_image())
        assert exc_info.value.status_code == 400

    def test_non_json_error(self, client, session, mocker):
        session.post.return_value = _response(mocker, status=502)
        with pytest.raises(VisionServiceError, match="HTTP 502"):
            client.analyze_recipe_photo(_image())

    def test_incomplete_extraction(self, client, session, mocker):
        session.post.return_value = _response(mocker, body={"title": "Soup"})
        with pytest.raises(VisionServiceError):
            client.analyze_recipe_photo(_image())

    def test_transport_error(self, client, session):
        session.post.side_effect = requests.ConnectionError("refused")
        with pytest.raises(VisionServiceError, match="Could not reach"):
            client.analyze_recipe_photo(_image())

    def test_invalid_image_not_sent(self, client, session):
        with pytest.raises(ImageValidationError):
            client.analyze_recipe_photo(_image(content_type="application/pdf"))
        session.post.assert_not_called()

    def test_scan_pantry(self, client, session, mocker):
        session.post.return_value = _response(mocker, body={"items": [
            {"name": "Bananas", "quantity": 6, "unit": "piece", "confidence": 0.95},
            {"name": "Blurry thing", "confidence": 0.2},
        ]})

        items = client.scan_pantry([_image("a.jpg"), _image("b.png", content_type="image/png")], scan_type="fridge")

        assert [i.name for i in items] == ["Bananas"]
        kwargs = session.post.call_args.kwargs
        assert [f[0] for f in kwargs["files"]] == ["image_0", "image_1"]
        assert kwargs["data"] == {"scan_type": "fridge"}

    def test_scan_pantry_limits(self, client, session):
        with pytest.raises(ImageValidationError, match="Maximum 5"):
            client.scan_pantry([_image(f"{i}.jpg") for i in range(6)])
        with pytest.raises(ImageValidationError):
            client.scan_pantry([])
        with pytest.raises(ImageValidationError):
            client.scan_pantry([_image()], scan_type="freezer")
        session.post.assert_not_called()

    def test_scan_pantry_bad_payload(self, client, session, mocker):
        session.post.return_value = _response(mocker, body={"result": "ok"})
        with pytest.raises(VisionServiceError):
            client.scan_pantry([_image()])
