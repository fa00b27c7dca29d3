from datetime import datetime

from smartscales import db


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    full_name = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), unique=True, nullable=True)
    encrypted_dek = db.Column(db.LargeBinary, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    measurements = db.relationship("Measurement", backref="user", lazy=True)
    nutrition_entries = db.relationship("NutritionEntry", backref="user", lazy=True)


class Measurement(db.Model):
    __tablename__ = "measurements"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    timestamp = db.Column(db.DateTime, index=True, nullable=False)

    weight_kg = db.Column(db.Float, nullable=False)
    bmi = db.Column(db.Float, nullable=True)
    body_fat_pct = db.Column(db.Float, nullable=True)
    muscle_mass_kg = db.Column(db.Float, nullable=True)
    visceral_fat = db.Column(db.Float, nullable=True)
    body_water_pct = db.Column(db.Float, nullable=True)
    bone_mass_kg = db.Column(db.Float, nullable=True)
    bmr_kcal = db.Column(db.Float, nullable=True)
    body_type = db.Column(db.String(64), nullable=True)
    body_score = db.Column(db.Float, nullable=True)
    protein_rate = db.Column(db.Float, nullable=True)
    skeletal_muscle_rate = db.Column(db.Float, nullable=True)
    subcutaneous_fat = db.Column(db.Float, nullable=True)
    lean_body_mass_kg = db.Column(db.Float, nullable=True)

    note = db.Column(db.Text, nullable=True)
    source = db.Column(db.String(32), nullable=False, default="manual")  # manual/scale/manual_ai
    encrypted_payload = db.Column(db.LargeBinary, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    __table_args__ = (db.UniqueConstraint("user_id", "timestamp", name="uq_measurements_user_timestamp"),)


class FoodProduct(db.Model):
    __tablename__ = "food_products"

    id = db.Column(db.Integer, primary_key=True)
    barcode = db.Column(db.String(64), unique=True, nullable=False)
    name = db.Column(db.String(255), index=True, nullable=False)
    brand = db.Column(db.String(255), nullable=True)
    serving_size = db.Column(db.String(64), nullable=True)
    serving_quantity_g = db.Column(db.Float, nullable=True)
    image_url = db.Column(db.String(500), nullable=True)

    # Per 100 g.
    calories = db.Column(db.Float, nullable=True)
    protein_g = db.Column(db.Float, nullable=True)
    carbs_g = db.Column(db.Float, nullable=True)
    fat_g = db.Column(db.Float, nullable=True)
    fiber_g = db.Column(db.Float, nullable=True)
    sugar_g = db.Column(db.Float, nullable=True)

    source = db.Column(db.String(50), nullable=False, default="openfoodfacts")
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def display_name(self):
        if self.brand:
            return f"{self.name} ({self.brand})"
        return self.name


class NutritionEntry(db.Model):
    __tablename__ = "nutrition_entries"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    eaten_at = db.Column(db.DateTime, index=True, nullable=False)

    food_name = db.Column(db.String(255), nullable=False)
    brand = db.Column(db.String(255), nullable=True)
    barcode = db.Column(db.String(64), nullable=True)
    meal_type = db.Column(db.String(32), nullable=True)  # breakfast/lunch/dinner/snack
    quantity_g = db.Column(db.Float, nullable=True)

    calories = db.Column(db.Float, nullable=True)
    protein_g = db.Column(db.Float, nullable=True)
    carbs_g = db.Column(db.Float, nullable=True)
    fat_g = db.Column(db.Float, nullable=True)
    fiber_g = db.Column(db.Float, nullable=True)
    sugar_g = db.Column(db.Float, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
