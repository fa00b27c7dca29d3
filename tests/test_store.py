import unittest
from datetime import datetime, timedelta

from smartscales import create_app, db
from smartscales.models import User
from smartscales.predictions import Observation
from smartscales.store import HealthStore

TEST_CONFIG = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite://",
    "ENCRYPTION_MASTER_KEY": None,
    "ENCRYPTION_REQUIRED": False,
}

T0 = datetime(2026, 2, 10, 6, 45)


class HealthStoreTestCase(unittest.TestCase):
    def setUp(self):
        self.app = create_app(TEST_CONFIG)
        self.ctx = self.app.app_context()
        self.ctx.push()
        db.create_all()

        self.user = User(full_name="Store User", email="store@example.com")
        self.other = User(full_name="Other User", email="other@example.com")
        db.session.add_all([self.user, self.other])
        db.session.commit()
        self.store = HealthStore(db.session)

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        db.engine.dispose()
        self.ctx.pop()

    def test_series_is_ascending_regardless_of_insert_order(self):
        self.store.add_measurement(self.user, weight=79.0, timestamp=T0 + timedelta(days=2))
        self.store.add_measurement(self.user, weight=81.0, timestamp=T0)
        self.store.add_measurement(self.user, weight=80.0, timestamp=T0 + timedelta(days=1))
        self.store.add_measurement(self.other, weight=60.0, timestamp=T0)

        self.assertEqual(
            self.store.series(self.user.id, "weight"),
            [
                Observation(T0, 81.0),
                Observation(T0 + timedelta(days=1), 80.0),
                Observation(T0 + timedelta(days=2), 79.0),
            ],
        )

    def test_unknown_metric(self):
        with self.assertRaises(ValueError):
            self.store.series(self.user.id, "height")

    def test_unknown_composition_field(self):
        with self.assertRaises(ValueError):
            self.store.add_measurement(self.user, weight=80.0, shoe_size=44)

    def test_measurements_since(self):
        self.store.add_measurement(self.user, weight=81.0, timestamp=T0)
        self.store.add_measurement(self.user, weight=80.0, timestamp=T0 + timedelta(days=5))
        records = self.store.measurements(self.user, since=T0 + timedelta(days=1))
        self.assertEqual([r.weight_kg for r in records], [80.0])

    def test_measurements_since_includes_the_cutoff_instant(self):
        self.store.add_measurement(self.user, weight=81.0, timestamp=T0)
        self.assertEqual(len(self.store.measurements(self.user, since=T0)), 1)

    def test_non_finite_values_are_rejected(self):
        with self.assertRaises(ValueError):
            self.store.add_measurement(self.user, weight=float("inf"))
        with self.assertRaises(ValueError):
            self.store.add_measurement(self.user, weight=float("nan"))
        with self.assertRaises(ValueError):
            self.store.add_measurement(self.user, weight=80.0, body_fat_pct=float("nan"))
        self.assertEqual(self.store.series(self.user.id, "weight"), [])

    def test_delete_is_scoped_to_owner(self):
        record = self.store.add_measurement(self.other, weight=60.0, timestamp=T0)
        self.assertFalse(self.store.delete_measurement(self.user.id, record.id))
        self.assertTrue(self.store.delete_measurement(self.other.id, record.id))
        self.assertIsNone(self.store.get_measurement(self.other.id, record.id))

    def test_nutrition_entries(self):
        self.store.add_nutrition_entry(self.user.id, food_name="  Skyr ", eaten_at=T0, protein_g=20.0)
        self.store.add_nutrition_entry(self.other.id, food_name="Cake", eaten_at=T0)
        entries = self.store.nutrition_entries(self.user.id)
        self.assertEqual([e.food_name for e in entries], ["Skyr"])
        self.assertEqual(self.store.nutrition_entries(self.user.id, since=T0 + timedelta(hours=1)), [])

    def test_nutrition_entry_rejects_unknown_fields(self):
        with self.assertRaises(ValueError):
            self.store.add_nutrition_entry(self.user.id, food_name="Skyr", vitamin_c=3)


if __name__ == "__main__":
    unittest.main()
