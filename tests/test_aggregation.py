from __future__ import annotations

import unittest

import pandas as pd

from checklists.aggregation import (
    build_cumulative_series,
    build_time_series,
    group_counts,
    group_counts_stacked,
    has_actual,
    to_cumulative,
    top_n,
)
from checklists.headers import normalize_rows
from checklists.merge import build_merged_rows
from tests.factories import primary_record, primary_rows, systems_rows


def merged_rows():
    return build_merged_rows(normalize_rows(primary_rows()), normalize_rows(systems_rows()))


class TestGroupCounts(unittest.TestCase):
    def test_counts_sorted_by_count_then_value(self) -> None:
        out = group_counts(merged_rows(), "Status")

        self.assertEqual(out.to_dict(orient="records"), [{"value": "Closed", "count": 2}, {"value": "Open", "count": 1}])

    def test_ties_break_alphabetically(self) -> None:
        rows = normalize_rows([primary_record(Status=s) for s in ["b", "a", "c", "a", "b"]])

        out = group_counts(rows, "Status")

        self.assertEqual(out["value"].tolist(), ["a", "b", "c"])

    def test_empty_value_is_counted(self) -> None:
        rows = normalize_rows([primary_record(Area=""), primary_record(Area="A1"), primary_record(Area="")])

        out = group_counts(rows, "Area")

        self.assertEqual(out.to_dict(orient="records"), [{"value": "", "count": 2}, {"value": "A1", "count": 1}])

    def test_no_rows(self) -> None:
        self.assertTrue(group_counts([], "Status").empty)


class TestStackedCounts(unittest.TestCase):
    def test_complete_and_incomplete(self) -> None:
        out = group_counts_stacked(merged_rows(), "Cert Disc")

        self.assertEqual(
            out.to_dict(orient="records"),
            [
                {"value": "Mech", "complete": 2, "incomplete": 0, "total": 2},
                {"value": "Elec", "complete": 0, "incomplete": 1, "total": 1},
            ],
        )

    def test_blank_keys_are_excluded(self) -> None:
        rows = normalize_rows([primary_record(**{"Resp ID": "", "Actual (UTC +8)": "2024-01-01"})])

        self.assertTrue(group_counts_stacked(rows, "RespID").empty)

    def test_unparseable_date_counts_as_incomplete(self) -> None:
        rows = normalize_rows([primary_record(**{"Resp ID": "R1", "Actual (UTC +8)": "pending"})])

        out = group_counts_stacked(rows, "RespID")

        self.assertEqual(out.iloc[0].to_dict(), {"value": "R1", "complete": 0, "incomplete": 1, "total": 1})

    def test_top_n(self) -> None:
        rows = normalize_rows([primary_record(**{"Resp ID": f"R{i}"}) for i in range(8)])

        out = top_n(group_counts_stacked(rows, "RespID"), 5)

        self.assertEqual(out["value"].tolist(), ["R0", "R1", "R2", "R3", "R4"])

    def test_has_actual_without_column(self) -> None:
        self.assertEqual(has_actual(pd.DataFrame({"x": [1, 2]})).tolist(), [False, False])


class TestTimeSeries(unittest.TestCase):
    def _rows(self):
        dates = ["2024-01-31", "31/01/2024", "2024-02-01", "", "garbage", "45322"]
        return normalize_rows([primary_record(**{"Actual (UTC +8)": d}) for d in dates])

    def test_daily(self) -> None:
        out = build_time_series(self._rows(), grain="daily")

        self.assertEqual(out["bucket"].tolist(), ["2024-01-31", "2024-02-01"])
        self.assertEqual(out["count"].tolist(), [3, 1])
        self.assertEqual(out["label"].tolist(), out["bucket"].tolist())

    def test_weekly_monthly_yearly(self) -> None:
        self.assertEqual(build_time_series(self._rows(), grain="weekly")["bucket"].tolist(), ["2024-01-29"])
        monthly = build_time_series(self._rows(), grain="monthly")
        self.assertEqual(monthly["bucket"].tolist(), ["2024-01", "2024-02"])
        self.assertEqual(monthly["count"].tolist(), [3, 1])
        self.assertEqual(build_time_series(self._rows(), grain="yearly")["count"].tolist(), [4])

    def test_unknown_grain(self) -> None:
        with self.assertRaises(ValueError):
            build_time_series(self._rows(), grain="hourly")

    def test_no_dates(self) -> None:
        rows = normalize_rows([primary_record()])

        self.assertTrue(build_time_series(rows).empty)

    def test_cumulative(self) -> None:
        self.assertEqual(to_cumulative([1, 2, 3]).tolist(), [1, 3, 6])
        self.assertEqual(to_cumulative([]).tolist(), [])

        out = build_cumulative_series(merged_rows())
        self.assertEqual(out["bucket"].tolist(), ["2024-01-02", "2024-01-03"])
        self.assertEqual(out["cumulative"].tolist(), [1, 2])


if __name__ == "__main__":
    unittest.main()
