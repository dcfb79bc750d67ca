import json
import shutil
import tempfile
import unittest
from pathlib import Path

from venuecalc.scenarios.model import WeekContext, create_scenario, update_scenario_metadata
from venuecalc.scenarios.storage import ScenarioStore, export_scenario_json, import_scenario_json


class TestScenarioStore(unittest.TestCase):
    def setUp(self):
        self.tmp = Path(tempfile.mkdtemp())
        self.store = ScenarioStore(self.tmp / "nested" / "scenarios.json")

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def test_empty_store(self):
        self.assertEqual(self.store.list(), [])
        self.assertIsNone(self.store.get("nope"))
        self.assertFalse(self.store.delete("nope"))

    def test_save_get_list_delete(self):
        a = self.store.save(create_scenario("A"))
        b = self.store.save(create_scenario("B", {"rent": 800}))
        self.assertTrue(self.store.path.exists())
        listed = self.store.list()
        self.assertEqual([s.name for s in listed], ["B", "A"])  # newest first
        got = self.store.get(b.id)
        self.assertEqual(got.inputs.rent, 800.0)
        self.assertEqual(got.metrics, b.metrics)

        # replace keeps a single record and moves it to the front
        self.store.save(update_scenario_metadata(a, name="A2"))
        listed = self.store.list()
        self.assertEqual(len(listed), 2)
        self.assertEqual(listed[0].name, "A2")

        self.assertTrue(self.store.delete(a.id))
        self.assertEqual([s.id for s in self.store.list()], [b.id])

    def test_week_context_persisted(self):
        s = self.store.save(create_scenario("W", weeks=WeekContext.of(27, [0.0] * 10 + [1.0] * 42)))
        loaded = self.store.get(s.id)
        self.assertEqual(loaded.weeks, s.weeks)
        self.assertEqual(loaded.metrics, s.metrics)

    def test_legacy_records_are_migrated_on_load(self):
        self.store.path.parent.mkdir(parents=True, exist_ok=True)
        self.store.path.write_text(json.dumps([{
            "id": "old", "name": "Old", "createdAt": "2024-01-01T00:00:00+00:00",
            "updatedAt": "2024-01-01T00:00:00+00:00",
            "inputs": {"ticketPrice": 9}, "metrics": {},
        }]))
        s = self.store.get("old")
        self.assertEqual(s.inputs.ticket_price, 9.0)
        self.assertGreater(s.metrics.base_weekly_costs, 0)

    def test_unreadable_record_survives_other_writes(self):
        self.store.path.parent.mkdir(parents=True, exist_ok=True)
        self.store.path.write_text(json.dumps([{
            "id": "old", "name": "Old", "createdAt": "2024-01-01T00:00:00+00:00",
            "updatedAt": "2024-01-01T00:00:00+00:00",
            "inputs": {"ticketPrice": 12, "rent": None}, "metrics": {},
        }]))
        with self.assertLogs("venuecalc.scenarios.storage", level="WARNING"):
            self.assertEqual(self.store.list(), [])

        fresh = self.store.save(create_scenario("New"))
        on_disk = json.loads(self.store.path.read_text())
        self.assertEqual([r["id"] for r in on_disk], ["old", fresh.id])
        self.assertIsNone(on_disk[0]["inputs"]["rent"])

        self.assertTrue(self.store.delete(fresh.id))
        on_disk = json.loads(self.store.path.read_text())
        self.assertEqual([r["id"] for r in on_disk], ["old"])
        self.assertFalse(self.store.delete("missing"))

    def test_corrupt_file_reads_as_empty(self):
        self.store.path.parent.mkdir(parents=True, exist_ok=True)
        self.store.path.write_text("{not json")
        with self.assertLogs("venuecalc.scenarios.storage", level="WARNING"):
            self.assertEqual(self.store.list(), [])
        saved = self.store.save(create_scenario("Fresh"))
        self.assertEqual([s.id for s in self.store.list()], [saved.id])


class TestJsonExchange(unittest.TestCase):
    def test_export_import(self):
        s = create_scenario("Export me", {"ticketPrice": 22})
        text = export_scenario_json(s)
        self.assertIn('"ticketPrice": 22.0', text)
        imported = import_scenario_json(text)
        self.assertNotEqual(imported.id, s.id)
        self.assertEqual(imported.name, "Export me")
        self.assertEqual(imported.inputs, s.inputs)
        self.assertEqual(imported.metrics, s.metrics)

    def test_import_defaults_name(self):
        doc = json.dumps({"inputs": {"rent": 1}, "metrics": {"totalRevenue": 0}})
        self.assertEqual(import_scenario_json(doc).name, "Imported scenario")

    def test_import_rejects_bad_documents(self):
        for bad in ("not json", "[]", json.dumps({"inputs": {"rent": 1}}), json.dumps({"metrics": {"x": 1}})):
            with self.assertRaises(ValueError):
                import_scenario_json(bad)


if __name__ == '__main__':
    unittest.main()
