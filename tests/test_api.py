import json
import shutil
import tempfile
import unittest
from pathlib import Path

import venuecalc.api.server as server
from venuecalc.api.server import app
from venuecalc.scenarios.storage import ScenarioStore


class TestAPIBase(unittest.TestCase):
    def setUp(self):
        app.testing = True
        self.tmp = Path(tempfile.mkdtemp())
        app.config['SCENARIO_STORE'] = ScenarioStore(self.tmp / 'scenarios.json')
        # Disable auth and rate-limit for these tests
        app.config['API_KEY'] = None
        app.config['RATE_LIMIT_N'] = 0
        server._recent.clear()
        self.client = app.test_client()

    def tearDown(self):
        app.config.pop('SCENARIO_STORE', None)
        app.config.pop('RATE_LIMIT_N', None)
        app.config.pop('RATE_LIMIT_WINDOW_SEC', None)
        shutil.rmtree(self.tmp, ignore_errors=True)


class TestMetricsEndpoint(TestAPIBase):
    def test_defaults(self):
        rv = self.client.post('/metrics', json={})
        self.assertEqual(rv.status_code, 200)
        body = rv.get_json()
        self.assertEqual(body['inputs']['salaries'], 12257.05)
        self.assertAlmostEqual(body['metrics']['totalRevenueGross'],
                               body['metrics']['baseWeeklyRevenueGross'] * 52, places=6)

    def test_partial_inputs_and_weeks(self):
        rv = self.client.post('/metrics', json={
            'inputs': {'rent': 1000},
            'currentWeek': 27,
            'revenueMultipliers': [0] * 10 + [1] * 42,
        })
        self.assertEqual(rv.status_code, 200)
        m = rv.get_json()['metrics']
        self.assertAlmostEqual(m['historicalRevenue'] + m['projectedRevenue'], m['totalRevenue'], places=6)
        self.assertGreater(m['historicalRevenue'], 0)

    def test_validation_errors(self):
        rv = self.client.post('/metrics', json={'inputs': {'rent': 'lots'}})
        self.assertEqual(rv.status_code, 400)
        self.assertIn('rent', rv.get_json()['error'])
        rv = self.client.post('/metrics', json={'revenueMultipliers': [1, 2]})
        self.assertEqual(rv.status_code, 400)
        rv = self.client.post('/metrics', json={'currentWeek': 60, 'revenueMultipliers': [1] * 52})
        self.assertEqual(rv.status_code, 400)

    def test_current_week(self):
        rv = self.client.get('/weeks/current')
        self.assertTrue(1 <= rv.get_json()['currentWeek'] <= 52)


class TestScenarioEndpoints(TestAPIBase):
    def _create(self, **payload):
        rv = self.client.post('/scenarios', json=payload)
        self.assertEqual(rv.status_code, 201)
        return rv.get_json()

    def test_requires_name(self):
        rv = self.client.post('/scenarios', json={})
        self.assertEqual(rv.status_code, 400)
        self.assertEqual(rv.get_json().get('error'), 'name is required')

    def test_crud(self):
        a = self._create(name='Base', inputs={'ticketPrice': 20})
        self.assertEqual(a['inputs']['ticketPrice'], 20.0)
        empty = self._create(name='Blank', empty=True)
        self.assertEqual(empty['metrics']['totalRevenue'], 0)
        self.assertEqual(empty['inputs']['salaries'], 0)

        rv = self.client.get('/scenarios')
        names = [s['name'] for s in rv.get_json()['scenarios']]
        self.assertEqual(names, ['Blank', 'Base'])

        rv = self.client.patch(f"/scenarios/{a['id']}", json={'name': 'Renamed', 'inputs': {'rent': 500}})
        self.assertEqual(rv.status_code, 200)
        patched = rv.get_json()
        self.assertEqual(patched['name'], 'Renamed')
        self.assertEqual(patched['inputs']['rent'], 500.0)
        self.assertEqual(patched['inputs']['ticketPrice'], 20.0)
        self.assertGreater(patched['metrics']['totalCosts'], a['metrics']['totalCosts'])

        rv = self.client.get(f"/scenarios/{a['id']}")
        self.assertEqual(rv.get_json()['name'], 'Renamed')

        rv = self.client.delete(f"/scenarios/{a['id']}")
        self.assertEqual(rv.status_code, 200)
        self.assertEqual(self.client.get(f"/scenarios/{a['id']}").status_code, 404)

    def test_week_context_patch(self):
        a = self._create(name='Seasonal')
        rv = self.client.patch(f"/scenarios/{a['id']}", json={
            'currentWeek': 27, 'revenueMultipliers': [0] * 10 + [1] * 42,
        })
        body = rv.get_json()
        self.assertEqual(body['weeks']['currentWeek'], 27)
        self.assertGreater(body['metrics']['historicalRevenue'], 0)
        csv_rv = self.client.get(f"/scenarios/{a['id']}/weeks.csv")
        self.assertEqual(csv_rv.status_code, 200)
        self.assertEqual(csv_rv.mimetype, 'text/csv')
        lines = csv_rv.get_data(as_text=True).splitlines()
        self.assertTrue(lines[0].startswith('week,status'))
        self.assertEqual(len(lines), 53)

    def test_duplicate(self):
        a = self._create(name='Orig', inputs={'rent': 42})
        rv = self.client.post(f"/scenarios/{a['id']}/duplicate", json={})
        self.assertEqual(rv.status_code, 201)
        dup = rv.get_json()
        self.assertEqual(dup['name'], 'Orig (copy)')
        self.assertEqual(dup['inputs']['rent'], 42.0)
        self.assertNotEqual(dup['id'], a['id'])

    def test_reports_and_exchange(self):
        a = self._create(name='Report')
        rv = self.client.get(f"/scenarios/{a['id']}/report.txt")
        self.assertEqual(rv.status_code, 200)
        self.assertEqual(rv.mimetype, 'text/plain')
        self.assertIn('FINANCIAL ANALYSIS: Report', rv.get_data(as_text=True))
        rv = self.client.get(f"/scenarios/{a['id']}/report.txt?detailed=1")
        self.assertIn('WEEKLY DETAIL', rv.get_data(as_text=True))

        exported = self.client.get(f"/scenarios/{a['id']}/export.json")
        self.assertEqual(exported.mimetype, 'application/json')
        doc = exported.get_data(as_text=True)
        self.assertEqual(json.loads(doc)['id'], a['id'])
        rv = self.client.post('/scenarios/import', data=doc, content_type='application/json')
        self.assertEqual(rv.status_code, 201)
        self.assertNotEqual(rv.get_json()['id'], a['id'])
        self.assertEqual(len(self.client.get('/scenarios').get_json()['scenarios']), 2)

        bad = self.client.post('/scenarios/import', data='{"name": "x"}', content_type='application/json')
        self.assertEqual(bad.status_code, 400)

    def test_non_object_bodies_rejected(self):
        a = self._create(name='Shape')
        for method, path in (('post', '/metrics'), ('post', '/scenarios'),
                             ('patch', f"/scenarios/{a['id']}"),
                             ('post', f"/scenarios/{a['id']}/duplicate")):
            rv = getattr(self.client, method)(path, json=[1])
            self.assertEqual(rv.status_code, 400, path)
            self.assertEqual(rv.get_json()['error'], 'request body must be a JSON object')

    def test_name_rules_match_on_create_and_patch(self):
        a = self._create(name='Named')
        for bad in ('', '   ', 5):
            rv = self.client.post('/scenarios', json={'name': bad})
            self.assertEqual(rv.status_code, 400)
            rv = self.client.patch(f"/scenarios/{a['id']}", json={'name': bad})
            self.assertEqual(rv.status_code, 400)
            self.assertEqual(rv.get_json()['error'], 'name is required')
        self.assertEqual(self.client.get(f"/scenarios/{a['id']}").get_json()['name'], 'Named')
        rv = self.client.patch(f"/scenarios/{a['id']}", json={'name': '  Trimmed '})
        self.assertEqual(rv.get_json()['name'], 'Trimmed')

    def test_404s(self):
        for path in ('/scenarios/missing', '/scenarios/missing/report.txt',
                     '/scenarios/missing/weeks.csv', '/scenarios/missing/export.json'):
            self.assertEqual(self.client.get(path).status_code, 404)
        self.assertEqual(self.client.delete('/scenarios/missing').status_code, 404)
        self.assertEqual(self.client.patch('/scenarios/missing', json={}).status_code, 404)


class TestAPIGuards(TestAPIBase):
    def test_rate_limit_writes(self):
        app.config['RATE_LIMIT_N'] = 1
        app.config['RATE_LIMIT_WINDOW_SEC'] = 1.0
        rv1 = self.client.post('/metrics', json={})
        self.assertEqual(rv1.status_code, 200)
        rv2 = self.client.post('/metrics', json={})
        self.assertEqual(rv2.status_code, 429)
        self.assertEqual(rv2.get_json().get('error'), 'rate_limited')
        # reads are not limited
        self.assertEqual(self.client.get('/scenarios').status_code, 200)

    def test_auth_api_key(self):
        app.config['API_KEY'] = 'secret'
        rv = self.client.get('/scenarios/not-exist')
        self.assertEqual(rv.status_code, 401)
        rv2 = self.client.get('/scenarios/not-exist', headers={'X-API-Key': 'secret'})
        self.assertEqual(rv2.status_code, 404)
        # calendar endpoint stays open
        self.assertEqual(self.client.get('/weeks/current').status_code, 200)


if __name__ == '__main__':
    unittest.main()
