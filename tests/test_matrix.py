from __future__ import annotations

import unittest

import pandas as pd

from checklists.headers import normalize_rows
from checklists.matrix import build_completion_matrix, infer_total_sheets, ordered_event_descriptions
from checklists.merge import build_merged_rows
from tests.factories import primary_record, primary_rows, systems_rows


def merged_rows():
    return build_merged_rows(normalize_rows(primary_rows()), normalize_rows(systems_rows()))


class TestCompletionMatrix(unittest.TestCase):
    def test_records_per_system(self) -> None:
        matrix = build_completion_matrix(merged_rows())

        self.assertEqual(matrix.events, ["CONSTRUCTION (CC)", "COMMISSIONING (MC)"])
        s1, s2 = matrix.records
        self.assertEqual((s1.System, s1.Description), ("S1", "Pump"))
        self.assertEqual(s1.counts, {"CONSTRUCTION (CC)": 1, "COMMISSIONING (MC)": 1})
        self.assertEqual((s1.ActualCount, s1.TotalSheets, s1.PercentComplete), (1, 2, 50.0))
        self.assertEqual((s2.ActualCount, s2.TotalSheets, s2.PercentComplete), (1, 1, 100.0))
        self.assertEqual(s2.counts, {"CONSTRUCTION (CC)": 1, "COMMISSIONING (MC)": 0})

    def test_headers_and_frame(self) -> None:
        matrix = build_completion_matrix(merged_rows())

        self.assertEqual(
            matrix.headers,
            ["System", "Description", "CONSTRUCTION (CC)", "COMMISSIONING (MC)", "Actual Count", "Total Sheets", "% Complete"],
        )
        frame = matrix.to_frame()
        self.assertEqual(list(frame.columns), matrix.headers)
        self.assertEqual(frame["System"].tolist(), ["S1", "S2"])

    def test_event_priority_then_alphabetical(self) -> None:
        events = ["Zeta", "COMMISSIONING (MC)", "Alpha", "CONSTRUCTION (CC)", "PRE-COMMISSIONING (MC)", ""]
        rows = normalize_rows([primary_record(**{"Event Description": e}) for e in events])

        self.assertEqual(
            ordered_event_descriptions(rows),
            ["CONSTRUCTION (CC)", "PRE-COMMISSIONING (MC)", "COMMISSIONING (MC)", "Alpha", "Zeta"],
        )

    def test_systems_sort_naturally_and_blank_systems_are_skipped(self) -> None:
        rows = normalize_rows([primary_record(System=s) for s in ["S10", "S2", "", "S1"]])

        matrix = build_completion_matrix(rows)

        self.assertEqual([r.System for r in matrix.records], ["S1", "S2", "S10"])

    def test_total_sheets_column_overrides_row_count(self) -> None:
        rows = normalize_rows(
            [
                {**primary_record(System="S1", **{"Actual (UTC +8)": "2024-01-01"}), "Total_Sheets": "1,200"},
                {**primary_record(System="S1"), "Total_Sheets": ""},
            ]
        )

        rec = build_completion_matrix(rows).records[0]

        self.assertEqual(rec.TotalSheets, 1200)
        self.assertAlmostEqual(rec.PercentComplete, 100 / 1200)

    def test_infer_total_sheets(self) -> None:
        self.assertEqual(infer_total_sheets(pd.DataFrame({"Sheets": ["3", "5", "x"]})), 5)
        self.assertEqual(infer_total_sheets(pd.DataFrame({"Sheets Total": ["2.5"]})), 2.5)
        self.assertEqual(infer_total_sheets(pd.DataFrame({"Sheets": ["0", "-4"]})), 2)
        self.assertEqual(infer_total_sheets(pd.DataFrame({"Other": ["9"]})), 1)

    def test_description_comes_from_first_non_empty_row(self) -> None:
        rows = pd.DataFrame(
            [
                {**primary_record(System="S1"), "System Description": ""},
                {**primary_record(System="S1"), "System Description": "Pump"},
            ]
        )

        self.assertEqual(build_completion_matrix(rows).records[0].Description, "Pump")

    def test_no_rows(self) -> None:
        matrix = build_completion_matrix([])

        self.assertEqual(matrix.records, [])
        self.assertTrue(matrix.to_frame().empty)


if __name__ == "__main__":
    unittest.main()
