import unittest

import pandas as pd

from career_core import aggregate as agg


class GroupedTests(unittest.TestCase):
    def setUp(self):
        self.df = pd.DataFrame(
            {
                "Dept": ["CSE", "ECE", " cse ", "ECE", "", "ECE"],
                "Salary": ["5", "10", "x", "0", "4", "2"],
                "Status": ["Placed", "Placed", "Not Placed", "Non Placed", "Placed", "Not Placed"],
            }
        )

    def test_count_first_seen_and_case_folded(self):
        self.assertEqual(agg.grouped_count(self.df, "Dept"), [
            {"category": "CSE", "value": 2},
            {"category": "ECE", "value": 3},
            {"category": "NA", "value": 1},
        ])

    def test_count_skip_blank_and_natural_order(self):
        df = pd.DataFrame({"Batch": ["10", "2", "", "1", "Alpha"]})
        out = agg.grouped_count(df, "Batch", order="natural", skip_blank=True)
        self.assertEqual([r["category"] for r in out], ["1", "2", "10", "Alpha"])

    def test_missing_column_groups_as_na(self):
        self.assertEqual(agg.grouped_count(self.df, "Gender"), [{"category": "NA", "value": 6}])

    def test_sum_and_max(self):
        sums = {r["category"]: r["value"] for r in agg.grouped_sum(self.df, "Dept", "Salary")}
        self.assertEqual(sums, {"CSE": 5.0, "ECE": 12.0, "NA": 4.0})
        maxes = {r["category"]: r["value"] for r in agg.grouped_max(self.df, "Dept", "Salary")}
        self.assertEqual(maxes["ECE"], 10.0)

    def test_mean_positive_only(self):
        plain = {r["category"]: r["value"] for r in agg.grouped_mean(self.df, "Dept", "Salary")}
        self.assertEqual(plain["ECE"], 4.0)
        positive = {r["category"]: r["value"] for r in agg.grouped_mean(self.df, "Dept", "Salary", positive_only=True)}
        self.assertEqual(positive["ECE"], 6.0)
        self.assertEqual(positive["CSE"], 5.0)

    def test_mean_with_no_usable_values_is_zero(self):
        df = pd.DataFrame({"Dept": ["CSE"], "Salary": ["0"]})
        out = agg.grouped_mean(df, "Dept", "Salary", positive_only=True)
        self.assertEqual(out, [{"category": "CSE", "value": 0.0}])

    def test_percentage_uses_group_denominator(self):
        flags = agg.placement_flags(self.df, "Status")
        out = {r["category"]: r for r in agg.grouped_percentage(self.df, "Dept", flags)}
        self.assertEqual((out["CSE"]["count"], out["CSE"]["total"], out["CSE"]["value"]), (1, 2, 50.0))
        self.assertEqual((out["ECE"]["count"], out["ECE"]["total"], out["ECE"]["value"]), (1, 3, 33.0))
        self.assertEqual(out["NA"]["value"], 100.0)

    def test_ratio_of_column_sums(self):
        df = pd.DataFrame({"Dept": ["CSE", "CSE", "ECE"], "Placed": ["3", "1", "0"], "Total": ["5", "5", "0"]})
        out = {r["category"]: r["value"] for r in agg.grouped_ratio(df, "Dept", "Placed", "Total")}
        self.assertEqual(out, {"CSE": 40.0, "ECE": 0.0})

    def test_stack(self):
        df = pd.DataFrame({"Dept": ["CSE", "CSE"], "Placed": ["3", "1"], "Balance": ["2", "4"]})
        out = agg.grouped_stack(df, "Dept", {"placed": "Placed", "balance": "Balance"})
        self.assertEqual(out, [{"category": "CSE", "placed": 4.0, "balance": 6.0}])

    def test_count_placement_mode(self):
        df = pd.DataFrame({"Placed": ["0", "3", "x"]})
        self.assertEqual(agg.placement_flags(df, "Placed", mode="count").tolist(), [False, True, False])

    def test_empty_inputs(self):
        empty = pd.DataFrame(columns=["Dept", "Salary"])
        self.assertEqual(agg.grouped_count(empty, "Dept"), [])
        self.assertEqual(agg.grouped_mean(empty, "Dept", "Salary"), [])
        self.assertEqual(agg.top_n(empty, "Salary", 5), [])
        self.assertEqual(agg.paired(empty, "Salary", "Salary"), [])
        self.assertEqual(agg.cross_tab(empty, "Dept", "Salary"), ([], []))


class HistogramTests(unittest.TestCase):
    def test_buckets_include_negatives_and_skip_non_numbers(self):
        values = pd.Series(["3", "7", "9", "x", "", "-2", float("inf")], dtype=object)
        out = agg.histogram(values, 5)
        self.assertEqual([(r["range"], r["value"]) for r in out], [("-5-0", 1), ("0-5", 1), ("5-10", 2)])

    def test_positive_only(self):
        out = agg.histogram(pd.Series([0, 0, 3.5]), 2, positive_only=True)
        self.assertEqual([(r["range"], r["value"]) for r in out], [("2-4", 1)])

    def test_fractional_width_labels(self):
        out = agg.histogram(pd.Series([0.3, 0.7]), 0.5)
        self.assertEqual([r["range"] for r in out], ["0-0.5", "0.5-1"])

    def test_non_positive_width(self):
        self.assertEqual(agg.histogram(pd.Series([1, 2]), 0), [])
        self.assertEqual(agg.histogram(pd.Series([1, 2]), -1), [])


class RankingTests(unittest.TestCase):
    def test_top_n_ties_keep_upload_order(self):
        df = pd.DataFrame({"Name": ["A", "B", "C", "D"], "Salary": ["5", "7", "7", "bad"]})
        out = agg.top_n(df, "Salary", 3, columns=("Name",), value_name="salary")
        self.assertEqual(out, [
            {"rank": 1, "Name": "B", "salary": 7.0},
            {"rank": 2, "Name": "C", "salary": 7.0},
            {"rank": 3, "Name": "A", "salary": 5.0},
        ])

    def test_top_n_larger_than_frame(self):
        df = pd.DataFrame({"Salary": ["1"]})
        self.assertEqual(len(agg.top_n(df, "Salary", 10)), 1)

    def test_rank_records_is_stable(self):
        recs = [{"category": "A", "value": 1}, {"category": "B", "value": 3}, {"category": "C", "value": 3}]
        self.assertEqual([r["category"] for r in agg.rank_records(recs, "value", 2)], ["B", "C"])

    def test_cumulative_share(self):
        out = agg.cumulative([{"category": "A", "value": 1}, {"category": "B", "value": 3}])
        self.assertEqual([(r["category"], r["cumulative"], r["share"]) for r in out], [("B", 3.0, 75.0), ("A", 4.0, 100.0)])


class CrossTabTests(unittest.TestCase):
    def test_zero_filled_counts(self):
        df = pd.DataFrame({"company": ["Acme", "Beta", "acme"], "Dept": ["CSE", "ECE", "ECE"]})
        records, categories = agg.cross_tab(df, "company", "Dept", entity_name="company")
        self.assertEqual(categories, ["CSE", "ECE"])
        self.assertEqual(records, [
            {"company": "Acme", "CSE": 1, "ECE": 1},
            {"company": "Beta", "CSE": 0, "ECE": 1},
        ])

    def test_wide_entity_table(self):
        df = pd.DataFrame({"Company Name": ["Acme"], "CSE": ["3"], "ECE": [""]})
        out = agg.wide_entity_table(df, "Company Name", ["CSE", "ECE"], entity_name="company")
        self.assertEqual(out, [{"company": "Acme", "CSE": 3.0, "ECE": 0.0}])


class PointTests(unittest.TestCase):
    def test_paired_drops_non_numeric_rows(self):
        df = pd.DataFrame({"CGPA": ["8.5", "a", "7"], "Salary": ["6", "4", ""], "Dept": ["CSE", "ECE", "IT"]})
        self.assertEqual(agg.paired(df, "CGPA", "Salary", label="Dept"), [{"x": 8.5, "y": 6.0, "label": "CSE"}])

    def test_first_present(self):
        df = pd.DataFrame({"A": ["", "y"], "B": ["x", "z"]})
        self.assertEqual(agg.first_present(df, ["A", "B"]).tolist(), ["x", "y"])
        self.assertEqual(agg.first_present(df, ["Missing", "B"]).tolist(), ["x", "z"])

    def test_entity_average(self):
        long_df = pd.DataFrame({"company": ["Acme", "acme", "Beta"], "salary": [5.0, 0.0, 0.0]})
        out = agg.entity_average(long_df, "company", "salary")
        self.assertEqual(out, [
            {"category": "Acme", "count": 2, "value": 5.0, "max": 5.0},
            {"category": "Beta", "count": 1, "value": 0.0, "max": 0.0},
        ])


if __name__ == "__main__":
    unittest.main()
