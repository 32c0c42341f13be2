import unittest
from dataclasses import replace
from unittest import mock

from fastapi.testclient import TestClient

from career_api import main
from career_core.views import VIEWS

COMPANY_CSV = (
    b"S.No,Company Name,Package,Organized,CSE,ECE,Total\n"
    b"1,Acme,6,Dept,3,2,5\n"
    b"2,Beta,4,Placement Cell,1,0,1\n"
)


class ApiTests(unittest.TestCase):
    def setUp(self):
        for name in VIEWS:
            main.store.clear(name)
        self.client = TestClient(main.app)

    def _upload(self, body=COMPANY_CSV, filename="companies.csv", view="company"):
        return self.client.post(f"/upload/{view}", files={"file": (filename, body, "text/csv")})

    def test_meta_views(self):
        resp = self.client.get("/meta/views")
        self.assertEqual(resp.status_code, 200)
        views = {v["name"]: v for v in resp.json()["views"]}
        self.assertEqual(set(views), set(VIEWS))
        self.assertEqual(views["company"]["required"], ["Company Name", "Package", "Organized"])
        self.assertFalse(views["company"]["loaded"])

    def test_templates(self):
        resp = self.client.get("/templates/company")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["filename"], "company_analysis_template.csv")
        self.assertIn("Company Name", resp.json()["headers"])

        resp = self.client.get("/templates/company.csv")
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.headers["content-type"].startswith("text/csv"))
        self.assertIn("company_analysis_template.csv", resp.headers["content-disposition"])
        self.assertTrue(resp.text.startswith("S.No,Company Name,Package,Organized"))

    def test_unknown_view_is_404(self):
        self.assertEqual(self.client.get("/templates/nope").status_code, 404)
        resp = self.client.post("/analysis/nope", json={})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["type"], "UnknownViewError")

    def test_analysis_without_upload_is_404(self):
        resp = self.client.post("/analysis/company", json={})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["type"], "NoDatasetError")

    def test_upload_then_analyse(self):
        resp = self._upload()
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["rows"], 2)
        self.assertTrue(resp.json()["adopted"])

        resp = self.client.post("/analysis/company", json={"equals": {"Organized": "dept"}})
        self.assertEqual(resp.status_code, 200)
        payload = resp.json()
        self.assertEqual(payload["row_count"], 1)
        self.assertEqual(payload["kpis"]["total_hires"], 5.0)
        self.assertEqual(payload["metrics"]["company_department"], [{"company": "Acme", "CSE": 3.0, "ECE": 2.0}])
        self.assertIn("top_companies", payload["charts"])

        views = {v["name"]: v for v in self.client.get("/meta/views").json()["views"]}
        self.assertTrue(views["company"]["loaded"])

    def test_upload_missing_columns_is_422(self):
        resp = self._upload(b"Company Name,CSE\nAcme,3\n")
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["missing"], ["Package", "Organized"])

    def test_upload_bad_file_is_400(self):
        self.assertEqual(self._upload(filename="companies.txt").status_code, 400)
        self.assertEqual(self._upload(body=b"").status_code, 400)

    def test_upload_too_large_is_400(self):
        with mock.patch.object(main, "settings", replace(main.settings, max_upload_bytes=10)):
            resp = self._upload()
        self.assertEqual(resp.status_code, 400)
        self.assertIn("larger", resp.json()["error"])

    def test_rows_and_options(self):
        self._upload()
        resp = self.client.post("/rows/company", json={"page": 1})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["total_rows"], 2)
        self.assertEqual(body["rows"][0]["Company Name"], "Acme")

        resp = self.client.get("/meta/options/company")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["options"], {"Organized": ["Dept", "Placement Cell"]})

    def test_export_filtered_rows(self):
        self._upload()
        resp = self.client.post("/export/company", json={"search": "beta"})
        self.assertEqual(resp.status_code, 200)
        self.assertIn("company_filtered.csv", resp.headers["content-disposition"])
        lines = resp.text.strip().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[1].startswith("2,Beta"))

    def test_clear_dataset(self):
        self._upload()
        resp = self.client.delete("/datasets/company")
        self.assertEqual(resp.json(), {"view": "company", "cleared": True})
        self.assertEqual(self.client.post("/analysis/company", json={}).status_code, 404)
        self.assertFalse(self.client.delete("/datasets/company").json()["cleared"])


if __name__ == "__main__":
    unittest.main()
