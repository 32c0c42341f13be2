import io
import unittest

import pandas as pd

from career_core.decode import (
    DELIMITED_TEXT,
    EMPTY_UPLOAD,
    SPREADSHEET_BINARY,
    decode,
    decode_upload,
    format_from_filename,
    rows_as_records,
)
from career_core.errors import DecodeError

NBSP = chr(0xA0)


def _xlsx_bytes(df: pd.DataFrame) -> bytes:
    buf = io.BytesIO()
    df.to_excel(buf, index=False, engine="openpyxl")
    return buf.getvalue()


class FormatTests(unittest.TestCase):
    def test_extension_mapping(self):
        self.assertEqual(format_from_filename("students.CSV"), DELIMITED_TEXT)
        self.assertEqual(format_from_filename("students.xlsx"), SPREADSHEET_BINARY)

    def test_unsupported_extension(self):
        for name in ["students.xls", "students.txt", "students", ""]:
            with self.assertRaises(DecodeError):
                format_from_filename(name)


class DelimitedTextTests(unittest.TestCase):
    def test_rows_aligned_by_position(self):
        data = b"Name,Dept,CGPA\nAsha,CSE,8.5\nRavi,ECE,7\n"
        frame = decode(data, DELIMITED_TEXT)
        self.assertEqual(list(frame.columns), ["Name", "Dept", "CGPA"])
        self.assertEqual(rows_as_records(frame), [
            {"Name": "Asha", "Dept": "CSE", "CGPA": "8.5"},
            {"Name": "Ravi", "Dept": "ECE", "CGPA": "7"},
        ])

    def test_bom_blank_lines_and_header_spacing(self):
        data = (chr(0xFEFF) + "\n Company" + NBSP + "1 ,Salary (Company  1)\n\nAcme,5\n\n").encode("utf-8")
        frame = decode(data, DELIMITED_TEXT)
        self.assertEqual(list(frame.columns), ["Company 1", "Salary (Company 1)"])
        self.assertEqual(len(frame), 1)

    def test_surplus_fields_dropped_and_short_rows_padded(self):
        data = b"Name,Dept\nAsha,CSE,extra,more\nRavi\n"
        frame = decode(data, DELIMITED_TEXT)
        self.assertEqual(list(frame.columns), ["Name", "Dept"])
        self.assertEqual(frame.iloc[0].tolist(), ["Asha", "CSE"])
        self.assertEqual(frame.iloc[1].tolist(), ["Ravi", ""])

    def test_trailing_comma_padding_dropped(self):
        frame = decode(b"A,B,\n1,2,\n3,4,\n", DELIMITED_TEXT)
        self.assertEqual(list(frame.columns), ["A", "B"])

    def test_blank_header_with_data_is_named(self):
        frame = decode(b"A,,C\n1,2,3\n", DELIMITED_TEXT)
        self.assertEqual(list(frame.columns), ["A", "Unnamed 2", "C"])

    def test_duplicate_headers_last_wins(self):
        frame = decode(b"A,A\n1,2\n", DELIMITED_TEXT)
        self.assertEqual(list(frame.columns), ["A"])
        self.assertEqual(frame.iloc[0]["A"], "2")

    def test_header_only_is_empty(self):
        with self.assertRaises(DecodeError) as ctx:
            decode(b"Name,Dept\n", DELIMITED_TEXT)
        self.assertEqual(str(ctx.exception), EMPTY_UPLOAD)

    def test_no_content_is_empty(self):
        for data in [b"", b"\n\n", b",,\n,,\n"]:
            with self.assertRaises(DecodeError):
                decode(data, DELIMITED_TEXT)

    def test_leading_separator_only_row_keeps_header_width(self):
        frame = decode(b",,\nName,Dept,CGPA,Gender\nAsha,CSE,8,F\n", DELIMITED_TEXT)
        self.assertEqual(list(frame.columns), ["Name", "Dept", "CGPA", "Gender"])
        self.assertEqual(rows_as_records(frame), [{"Name": "Asha", "Dept": "CSE", "CGPA": "8", "Gender": "F"}])

    def test_unknown_format(self):
        with self.assertRaises(DecodeError):
            decode(b"A\n1\n", "pdf")


class SpreadsheetTests(unittest.TestCase):
    def test_first_sheet_numbers_stay_numeric(self):
        src = pd.DataFrame({"Name": ["Asha", "Ravi"], "CGPA": [8.5, None], " Dept ": ["CSE", "ECE"]})
        frame = decode_upload(_xlsx_bytes(src), "upload.xlsx")
        self.assertEqual(list(frame.columns), ["Name", "CGPA", "Dept"])
        self.assertEqual(frame.iloc[0]["CGPA"], 8.5)
        self.assertEqual(frame.iloc[1]["CGPA"], "")
        self.assertEqual(frame.iloc[1]["Dept"], "ECE")

    def test_corrupt_workbook(self):
        with self.assertRaises(DecodeError):
            decode(b"definitely not a zip archive", SPREADSHEET_BINARY)

    def test_header_only_workbook_is_empty(self):
        src = pd.DataFrame(columns=["Name", "Dept"])
        with self.assertRaises(DecodeError):
            decode(_xlsx_bytes(src), SPREADSHEET_BINARY)


if __name__ == "__main__":
    unittest.main()
