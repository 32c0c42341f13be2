import unittest

from career_core.headers import normalize_header, normalize_headers

NBSP = chr(0xA0)
NARROW_NBSP = chr(0x202F)
ZWSP = chr(0x200B)
BOM = chr(0xFEFF)


class NormalizeHeaderTests(unittest.TestCase):
    def test_collapses_space_like_characters(self):
        self.assertEqual(normalize_header(f"  Company{NBSP} 1 "), "Company 1")
        self.assertEqual(normalize_header(f"Salary{NARROW_NBSP}(Company  1)"), "Salary (Company 1)")

    def test_removes_invisible_characters(self):
        self.assertEqual(normalize_header(f"{BOM}Name"), "Name")
        self.assertEqual(normalize_header(f"Dep{ZWSP}t"), "Dept")

    def test_none_and_non_strings(self):
        self.assertEqual(normalize_header(None), "")
        self.assertEqual(normalize_header(10), "10")

    def test_idempotent(self):
        samples = [f"{BOM} Placed  or{NBSP}Non Placed ", "Total\tHostl", "", "S.No", f"Job Vertical{ZWSP} (IT, CORE, BDE)"]
        for s in samples:
            once = normalize_header(s)
            self.assertEqual(normalize_header(once), once)

    def test_normalize_headers_keeps_order(self):
        self.assertEqual(normalize_headers([" A ", None, f"B{NBSP}C"]), ["A", "", "B C"])


if __name__ == "__main__":
    unittest.main()
