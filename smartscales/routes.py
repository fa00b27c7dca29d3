import math
from datetime import datetime, timezone
from functools import wraps

from flask import Blueprint, current_app, g, jsonify, request, session
from sqlalchemy import or_

from smartscales import db
from smartscales.ai import build_trend_summary, trend_reflection
from smartscales.analytics import daily_macros, food_frequency, in_range, range_cutoff, weight_summary
from smartscales.food_catalog import (
    cache_products,
    get_product_details,
    product_from_cache,
    scale_nutrients,
    search_products,
)
from smartscales.models import FoodProduct, Measurement, User
from smartscales.predictions import compute_trend, project
from smartscales.store import COMPOSITION_FIELDS, NUTRIENT_FIELDS, HealthStore

bp = Blueprint("main", __name__)

FOOD_SEARCH_LIMIT = 15


def parse_float(value):
    if value in (None, ""):
        return None
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"'{value}' is not a finite number.")
    return number


def parse_int(value):
    return int(value) if value not in (None, "") else None


def parse_bool(value):
    return str(value).lower() in {"1", "true", "yes", "on"}


def normalize_text(value):
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if text.lower() in {"none", "null"}:
        return None
    return text


def parse_timestamp(value):
    text = normalize_text(value)
    if text is None:
        return None
    parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def request_body() -> dict:
    if request.is_json:
        body = request.get_json(silent=True)
        return body if isinstance(body, dict) else {}
    return request.form.to_dict()


def error_response(message: str, status: int):
    return jsonify({"ok": False, "error": message}), status


def get_store() -> HealthStore:
    if "store" not in g:
        g.store = HealthStore(db.session)
    return g.store


def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if g.user is None:
            return error_response("Authentication required.", 401)
        return view(*args, **kwargs)

    return wrapped


@bp.before_app_request
def load_logged_in_user():
    user_id = session.get("user_id")
    g.user = db.session.get(User, user_id) if user_id else None


def measurement_to_payload(record: Measurement) -> dict:
    payload = {
        "id": record.id,
        "timestamp": record.timestamp.isoformat(),
        "weight_kg": record.weight_kg,
        "note": record.note,
        "source": record.source,
    }
    for field in COMPOSITION_FIELDS:
        payload[field] = getattr(record, field)
    return payload


def trend_payload(series, window_size: int) -> dict:
    trend = compute_trend(series, window_size)
    projections = project(series, trend)
    return {
        "trend": trend.as_dict() if trend else None,
        "projections": [projection.as_dict() for projection in projections],
    }


@bp.get("/health")
def health():
    return jsonify({"ok": True})


@bp.get("/api/measurements")
@login_required
def measurement_list():
    try:
        cutoff = range_cutoff(request.args.get("range"))
    except ValueError as exc:
        return error_response(str(exc), 400)

    store = get_store()
    history = store.measurements(g.user)
    visible = [record for record in history if in_range(record.timestamp, cutoff)]
    return jsonify(
        {
            "ok": True,
            "measurements": [measurement_to_payload(record) for record in visible],
            "summary": weight_summary(history),
        }
    )


@bp.post("/api/measurements")
@login_required
def measurement_create():
    body = request_body()
    try:
        composition = {
            field: parse_float(body.get(field))
            for field in COMPOSITION_FIELDS
            if field != "body_type" and body.get(field) not in (None, "")
        }
        if normalize_text(body.get("body_type")):
            composition["body_type"] = normalize_text(body.get("body_type"))[:64]
        record = get_store().add_measurement(
            g.user,
            weight=parse_float(body.get("weight")),
            timestamp=parse_timestamp(body.get("timestamp")),
            unit=body.get("unit") or "kg",
            note=normalize_text(body.get("note")),
            source=normalize_text(body.get("source")) or "manual",
            **composition,
        )
    except (TypeError, ValueError) as exc:
        db.session.rollback()
        return error_response(str(exc), 400)

    # Serialise before commit; expiry would reload the sealed note as empty.
    payload = measurement_to_payload(record)
    db.session.commit()
    return jsonify({"ok": True, "measurement": payload}), 201


@bp.delete("/api/measurements/<int:measurement_id>")
@login_required
def measurement_delete(measurement_id: int):
    if not get_store().delete_measurement(g.user.id, measurement_id):
        return error_response("Measurement not found.", 404)
    db.session.commit()
    return jsonify({"ok": True})


@bp.get("/api/trend")
@login_required
def trend():
    metric = (request.args.get("metric") or "weight").strip().lower()
    try:
        window_size = parse_int(request.args.get("window"))
        if window_size is None:
            window_size = current_app.config["TREND_WINDOW_SIZE"]
        series = get_store().series(g.user.id, metric)
        payload = trend_payload(series, window_size)
    except ValueError as exc:
        return error_response(str(exc), 400)

    return jsonify({"ok": True, "metric": metric, "entries": len(series), **payload})


@bp.get("/api/dashboard")
@login_required
def dashboard():
    try:
        cutoff = range_cutoff(request.args.get("range"))
    except ValueError as exc:
        return error_response(str(exc), 400)

    store = get_store()
    history = store.measurements(g.user)
    nutrition = store.nutrition_entries(g.user.id, since=cutoff)

    projections = []
    if len(history) >= current_app.config["PROJECTION_MIN_ENTRIES"]:
        series = store.series(g.user.id, "weight")
        projections = trend_payload(series, current_app.config["TREND_WINDOW_SIZE"])["projections"]

    chart = [
        {"timestamp": record.timestamp.isoformat(), "weight_kg": record.weight_kg, "body_fat_pct": record.body_fat_pct}
        for record in history
        if in_range(record.timestamp, cutoff)
    ]
    return jsonify(
        {
            "ok": True,
            "summary": weight_summary(history),
            "chart": chart,
            "projections": projections,
            "nutrition": {"daily": daily_macros(nutrition), "frequency": food_frequency(nutrition)},
        }
    )


def food_product_to_payload(item: FoodProduct) -> dict:
    return {
        "barcode": item.barcode,
        "name": item.name,
        "brand": item.brand,
        "display_name": item.display_name(),
        "serving_size": item.serving_size,
        "serving_quantity_g": item.serving_quantity_g,
        "calories": item.calories,
        "protein_g": item.protein_g,
        "carbs_g": item.carbs_g,
        "fat_g": item.fat_g,
        "fiber_g": item.fiber_g,
        "sugar_g": item.sugar_g,
    }


@bp.get("/api/foods/search")
@login_required
def food_search():
    query = (request.args.get("q") or "").strip()
    include_remote = parse_bool(request.args.get("remote", "true"))
    if len(query) < 2:
        return jsonify({"ok": True, "results": [], "message": "Type at least 2 characters."})

    def run_local_search():
        return (
            FoodProduct.query.filter(
                or_(
                    FoodProduct.name.ilike(f"%{query}%"),
                    FoodProduct.brand.ilike(f"%{query}%"),
                )
            )
            .order_by(FoodProduct.name.asc())
            .limit(FOOD_SEARCH_LIMIT)
            .all()
        )

    results = run_local_search()
    imported = 0
    message = None
    if include_remote and len(results) < FOOD_SEARCH_LIMIT:
        remote = search_products(query, limit=FOOD_SEARCH_LIMIT)
        if remote:
            imported = cache_products(remote)
            results = run_local_search()
        elif not results:
            message = "No Open Food Facts matches found. Try a broader keyword."
    elif not results:
        message = "No local matches. Search Open Food Facts for a larger catalog."

    return jsonify(
        {
            "ok": True,
            "results": [food_product_to_payload(item) for item in results],
            "message": message,
            "imported": imported,
        }
    )


@bp.get("/api/foods/<code>")
@login_required
def food_detail(code: str):
    product = product_from_cache(code) or get_product_details(code)
    if product is None:
        return error_response("Product not found.", 404)
    return jsonify({"ok": True, "product": product})


@bp.post("/api/nutrition")
@login_required
def nutrition_create():
    body = request_body()
    try:
        quantity_g = parse_float(body.get("quantity_g"))
        barcode = normalize_text(body.get("barcode"))
        fields = {"quantity_g": quantity_g}
        food_name = normalize_text(body.get("food_name"))

        if barcode:
            product = product_from_cache(barcode)
            if product is None:
                product = get_product_details(barcode)
                if product is None:
                    return error_response("Product not found.", 404)
                cache_products([product])
            fields.update(scale_nutrients(product, quantity_g))
            fields["barcode"] = barcode
            fields["brand"] = product.get("brand")
            food_name = food_name or product["name"]
        else:
            for field in NUTRIENT_FIELDS:
                fields[field] = parse_float(body.get(field))
            fields["brand"] = normalize_text(body.get("brand"))

        entry = get_store().add_nutrition_entry(
            g.user.id,
            food_name=food_name,
            eaten_at=parse_timestamp(body.get("eaten_at")),
            meal_type=normalize_text(body.get("meal_type")),
            **fields,
        )
    except (TypeError, ValueError) as exc:
        db.session.rollback()
        return error_response(str(exc), 400)

    db.session.commit()
    payload = {
        "id": entry.id,
        "eaten_at": entry.eaten_at.isoformat(),
        "food_name": entry.food_name,
        "brand": entry.brand,
        "barcode": entry.barcode,
        "meal_type": entry.meal_type,
        "quantity_g": entry.quantity_g,
    }
    for field in NUTRIENT_FIELDS:
        payload[field] = getattr(entry, field)
    return jsonify({"ok": True, "entry": payload}), 201


@bp.get("/api/nutrition/summary")
@login_required
def nutrition_summary():
    try:
        cutoff = range_cutoff(request.args.get("range"))
        limit = parse_int(request.args.get("limit")) or 10
    except ValueError as exc:
        return error_response(str(exc), 400)

    entries = get_store().nutrition_entries(g.user.id, since=cutoff)
    return jsonify({"ok": True, "daily": daily_macros(entries), "frequency": food_frequency(entries, limit=limit)})


@bp.get("/api/insights/reflection")
@login_required
def insights_reflection():
    metric = (request.args.get("metric") or "weight").strip().lower()
    try:
        series = get_store().series(g.user.id, metric)
    except ValueError as exc:
        return error_response(str(exc), 400)

    trend_model = compute_trend(series, current_app.config["TREND_WINDOW_SIZE"])
    summary_text = build_trend_summary(metric, series, trend_model, project(series, trend_model))
    try:
        reflection = trend_reflection(summary_text)
    except Exception:
        current_app.logger.exception("AI reflection failed for user_id=%s", g.user.id)
        return error_response("Reflection is unavailable right now. Try again later.", 502)

    return jsonify({"ok": True, "summary": summary_text, "reflection": reflection})
