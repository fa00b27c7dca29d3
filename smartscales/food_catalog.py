from typing import Any

import httpx
from flask import current_app

from smartscales import db
from smartscales.models import FoodProduct

SEARCH_FIELDS = "code,product_name,brands,nutriments,serving_size,serving_quantity,image_url,categories_tags"

NUTRIMENT_KEYS = {
    "calories": "energy-kcal_100g",
    "protein_g": "proteins_100g",
    "carbs_g": "carbohydrates_100g",
    "fat_g": "fat_100g",
    "fiber_g": "fiber_100g",
    "sugar_g": "sugars_100g",
}


def safe_str(value, max_len: int):
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text[:max_len]


def as_float(value) -> float | None:
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _request_headers() -> dict:
    return {"User-Agent": current_app.config["OPEN_FOOD_FACTS_USER_AGENT"]}


def normalize_product(raw: dict[str, Any]) -> dict | None:
    code = safe_str(raw.get("code"), 64)
    if not code:
        return None

    nutriments = raw.get("nutriments") if isinstance(raw.get("nutriments"), dict) else {}
    product = {
        "barcode": code,
        "name": safe_str(raw.get("product_name"), 255) or "Unnamed product",
        "brand": safe_str(raw.get("brands"), 255),
        "serving_size": safe_str(raw.get("serving_size"), 64),
        "serving_quantity_g": as_float(raw.get("serving_quantity")),
        "image_url": safe_str(raw.get("image_url"), 500),
        "categories": [tag for tag in (raw.get("categories_tags") or []) if isinstance(tag, str)],
    }
    for field, key in NUTRIMENT_KEYS.items():
        product[field] = as_float(nutriments.get(key))
    return product


def search_products(query: str, limit: int = 5) -> list[dict]:
    query = (query or "").strip()
    if len(query) < 2:
        return []

    params = {
        "search_terms": query,
        "search_simple": "1",
        "action": "process",
        "json": "1",
        "page_size": str(max(1, min(limit, 50))),
        "fields": SEARCH_FIELDS,
    }
    try:
        response = httpx.get(
            f"{current_app.config['OPEN_FOOD_FACTS_BASE_URL']}/cgi/search.pl",
            params=params,
            headers=_request_headers(),
            timeout=current_app.config["OPEN_FOOD_FACTS_TIMEOUT"],
        )
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        current_app.logger.warning("Open Food Facts search failed for %r: %s", query, exc)
        return []

    rows = data.get("products") if isinstance(data, dict) else None
    products = []
    for row in rows or []:
        if not isinstance(row, dict):
            continue
        product = normalize_product(row)
        if product is not None:
            products.append(product)
    return products


def get_product_details(code: str) -> dict | None:
    code = (code or "").strip()
    if not code.isdigit():
        return None

    try:
        response = httpx.get(
            f"{current_app.config['OPEN_FOOD_FACTS_BASE_URL']}/api/v0/product/{code}.json",
            headers=_request_headers(),
            timeout=current_app.config["OPEN_FOOD_FACTS_TIMEOUT"],
        )
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        current_app.logger.warning("Open Food Facts product lookup failed for %s: %s", code, exc)
        return None

    if not isinstance(data, dict) or data.get("status") != 1 or not isinstance(data.get("product"), dict):
        return None
    raw = dict(data["product"])
    raw.setdefault("code", code)
    return normalize_product(raw)


def cache_products(products: list[dict]) -> int:
    """Upsert products into the local catalog; returns how many rows were new."""
    inserted = 0
    for product in products:
        existing = FoodProduct.query.filter_by(barcode=product["barcode"]).first()
        if existing is None:
            existing = FoodProduct(barcode=product["barcode"])
            inserted += 1

        # Refresh values, Open Food Facts records are community-edited.
        existing.name = product["name"]
        existing.brand = product.get("brand")
        existing.serving_size = product.get("serving_size")
        existing.serving_quantity_g = product.get("serving_quantity_g")
        existing.image_url = product.get("image_url")
        for field in NUTRIMENT_KEYS:
            setattr(existing, field, product.get(field))
        db.session.add(existing)

    db.session.commit()
    return inserted


def product_from_cache(barcode: str) -> dict | None:
    item = FoodProduct.query.filter_by(barcode=barcode).first()
    if item is None:
        return None
    payload = {
        "barcode": item.barcode,
        "name": item.name,
        "brand": item.brand,
        "serving_size": item.serving_size,
        "serving_quantity_g": item.serving_quantity_g,
        "image_url": item.image_url,
    }
    for field in NUTRIMENT_KEYS:
        payload[field] = getattr(item, field)
    return payload


def scale_nutrients(product: dict, quantity_g: float) -> dict:
    if quantity_g is None or quantity_g <= 0:
        raise ValueError("Quantity must be a positive number of grams.")
    factor = quantity_g / 100.0
    scaled = {}
    for field in NUTRIMENT_KEYS:
        per_100g = product.get(field)
        scaled[field] = round(per_100g * factor, 1) if per_100g is not None else None
    return scaled
