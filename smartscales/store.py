"""Data access for measurements and nutrition entries.

``HealthStore`` wraps an explicit SQLAlchemy session; callers decide when to
commit. Every query is scoped to a single user.
"""

import math
from datetime import datetime

from sqlalchemy.orm import Session

from smartscales.models import Measurement, NutritionEntry
from smartscales.predictions import Observation
from smartscales.security import MEASUREMENT_SCOPE, MEASUREMENT_SEALED_FIELDS, open_fields, seal_fields

KG_PER_LB = 0.45359237

TRACKED_METRICS = {
    "weight": "weight_kg",
    "bmi": "bmi",
    "body_fat": "body_fat_pct",
    "muscle_mass": "muscle_mass_kg",
    "visceral_fat": "visceral_fat",
    "body_water": "body_water_pct",
    "bone_mass": "bone_mass_kg",
    "bmr": "bmr_kcal",
    "lean_body_mass": "lean_body_mass_kg",
}

COMPOSITION_FIELDS = [
    "bmi",
    "body_fat_pct",
    "muscle_mass_kg",
    "visceral_fat",
    "body_water_pct",
    "bone_mass_kg",
    "bmr_kcal",
    "body_type",
    "body_score",
    "protein_rate",
    "skeletal_muscle_rate",
    "subcutaneous_fat",
    "lean_body_mass_kg",
]
MASS_FIELDS = {"muscle_mass_kg", "bone_mass_kg", "lean_body_mass_kg"}

NUTRIENT_FIELDS = ["calories", "protein_g", "carbs_g", "fat_g", "fiber_g", "sugar_g"]
MEAL_TYPES = {"breakfast", "lunch", "dinner", "snack"}


def lb_to_kg(lb):
    return lb * KG_PER_LB if lb is not None else None


def metric_column(metric: str):
    field_name = TRACKED_METRICS.get(metric)
    if field_name is None:
        raise ValueError(f"Unknown metric '{metric}'. Use one of: {', '.join(sorted(TRACKED_METRICS))}.")
    return getattr(Measurement, field_name)


class HealthStore:
    def __init__(self, session: Session):
        self.session = session

    def series(self, user_id: int, metric: str) -> list[Observation]:
        column = metric_column(metric)
        rows = (
            self.session.query(Measurement.timestamp, column)
            .filter(Measurement.user_id == user_id, column.isnot(None))
            .order_by(Measurement.timestamp.asc())
            .all()
        )
        return [Observation(timestamp=timestamp, value=float(value)) for timestamp, value in rows]

    def measurements(self, user, since: datetime | None = None) -> list[Measurement]:
        query = self.session.query(Measurement).filter(Measurement.user_id == user.id)
        if since is not None:
            query = query.filter(Measurement.timestamp >= since)
        records = query.order_by(Measurement.timestamp.asc()).all()
        for record in records:
            open_fields(user=user, record=record, fields=MEASUREMENT_SEALED_FIELDS, scope=MEASUREMENT_SCOPE)
        return records

    def get_measurement(self, user_id: int, measurement_id: int) -> Measurement | None:
        return (
            self.session.query(Measurement)
            .filter(Measurement.id == measurement_id, Measurement.user_id == user_id)
            .first()
        )

    def add_measurement(
        self,
        user,
        *,
        weight: float,
        timestamp: datetime | None = None,
        unit: str = "kg",
        note: str | None = None,
        source: str = "manual",
        **composition,
    ) -> Measurement:
        unit = (unit or "kg").strip().lower()
        if unit not in {"kg", "lb"}:
            raise ValueError("Unit must be 'kg' or 'lb'.")
        if weight is None or not math.isfinite(weight) or weight <= 0:
            raise ValueError("Weight must be a positive number.")
        unknown = set(composition) - set(COMPOSITION_FIELDS)
        if unknown:
            raise ValueError(f"Unknown measurement fields: {', '.join(sorted(unknown))}.")
        non_finite = [
            field for field, value in composition.items() if isinstance(value, float) and not math.isfinite(value)
        ]
        if non_finite:
            raise ValueError(f"Non-finite values for: {', '.join(sorted(non_finite))}.")

        timestamp = timestamp or datetime.utcnow()
        duplicate = (
            self.session.query(Measurement.id)
            .filter(Measurement.user_id == user.id, Measurement.timestamp == timestamp)
            .first()
        )
        if duplicate:
            raise ValueError("A measurement already exists for that timestamp.")

        if unit == "lb":
            weight = lb_to_kg(weight)
            for field in MASS_FIELDS & set(composition):
                composition[field] = lb_to_kg(composition[field])

        record = Measurement(
            user_id=user.id,
            timestamp=timestamp,
            weight_kg=weight,
            note=note,
            source=source,
            **composition,
        )
        seal_fields(user=user, record=record, fields=MEASUREMENT_SEALED_FIELDS, scope=MEASUREMENT_SCOPE)
        self.session.add(record)
        self.session.flush()
        open_fields(user=user, record=record, fields=MEASUREMENT_SEALED_FIELDS, scope=MEASUREMENT_SCOPE)
        return record

    def delete_measurement(self, user_id: int, measurement_id: int) -> bool:
        record = self.get_measurement(user_id, measurement_id)
        if record is None:
            return False
        self.session.delete(record)
        return True

    def nutrition_entries(self, user_id: int, since: datetime | None = None) -> list[NutritionEntry]:
        query = self.session.query(NutritionEntry).filter(NutritionEntry.user_id == user_id)
        if since is not None:
            query = query.filter(NutritionEntry.eaten_at >= since)
        return query.order_by(NutritionEntry.eaten_at.asc()).all()

    def add_nutrition_entry(
        self,
        user_id: int,
        *,
        food_name: str,
        eaten_at: datetime | None = None,
        meal_type: str | None = None,
        **fields,
    ) -> NutritionEntry:
        food_name = (food_name or "").strip()[:255]
        if not food_name:
            raise ValueError("Food name is required.")
        if meal_type is not None and meal_type not in MEAL_TYPES:
            raise ValueError(f"Meal type must be one of: {', '.join(sorted(MEAL_TYPES))}.")
        allowed = set(NUTRIENT_FIELDS) | {"brand", "barcode", "quantity_g"}
        unknown = set(fields) - allowed
        if unknown:
            raise ValueError(f"Unknown nutrition fields: {', '.join(sorted(unknown))}.")

        entry = NutritionEntry(
            user_id=user_id,
            food_name=food_name,
            eaten_at=eaten_at or datetime.utcnow(),
            meal_type=meal_type,
            **fields,
        )
        self.session.add(entry)
        self.session.flush()
        return entry
