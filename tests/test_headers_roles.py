from __future__ import annotations

import unittest

import pandas as pd

from checklists.errors import MissingColumnsError
from checklists.headers import (
    PRIMARY_REQUIRED,
    canonical_header,
    missing_required_headers,
    missing_systems_headers,
    normalize_key,
    normalize_rows,
)
from checklists.roles import RoleDecision, classify_rows, looks_like_primary, looks_like_systems, resolve_role
from tests.factories import primary_rows, systems_rows


class TestHeaderNormalizer(unittest.TestCase):
    def test_normalize_key_collapses_whitespace(self) -> None:
        self.assertEqual(normalize_key("  Resp   ID "), "resp id")

    def test_aliases_are_case_and_space_insensitive(self) -> None:
        self.assertEqual(canonical_header("RESP ID"), "RespID")
        self.assertEqual(canonical_header("respid"), "RespID")
        self.assertEqual(canonical_header("Sub  System"), "SubSystem")
        self.assertEqual(canonical_header("CertDisc"), "Cert Disc")
        self.assertEqual(canonical_header(" actual (UTC  +8) "), "Actual (UTC +8)")

    def test_unknown_headers_pass_through_verbatim(self) -> None:
        self.assertEqual(canonical_header("Remarks "), "Remarks ")
        self.assertEqual(canonical_header("Description"), "Description")

    def test_normalize_rows_renames_and_stringifies(self) -> None:
        df = normalize_rows([{"status": " Open ", "Tag No": 12, "Remarks": None}])

        self.assertEqual(list(df.columns), ["Status", "TagNo", "Remarks"])
        self.assertEqual(df.iloc[0].to_dict(), {"Status": "Open", "TagNo": "12", "Remarks": ""})

    def test_normalize_rows_accepts_dataframes(self) -> None:
        df = normalize_rows(pd.DataFrame({"cert id": ["C1", None]}))

        self.assertEqual(df["CertID"].tolist(), ["C1", ""])

    def test_missing_headers(self) -> None:
        rows = normalize_rows(primary_rows())
        self.assertEqual(missing_required_headers(rows), [])

        partial = normalize_rows([{"Status": "Open", "System": "S1"}])
        self.assertEqual(
            missing_required_headers(partial),
            [h for h in PRIMARY_REQUIRED if h not in ("Status", "System")],
        )

    def test_missing_systems_headers_accepts_either_description(self) -> None:
        self.assertEqual(missing_systems_headers([{"System": "S1", "Description": "Pump"}]), [])
        self.assertEqual(missing_systems_headers([{"System": "S1", "System Description": "Pump"}]), [])
        self.assertEqual(missing_systems_headers([{"Code": "S1"}]), ["System", "Description/System Description"])


class TestRoleClassifier(unittest.TestCase):
    def test_heuristics(self) -> None:
        primary = normalize_rows(primary_rows())
        systems = normalize_rows(systems_rows())

        self.assertTrue(looks_like_primary(primary))
        self.assertFalse(looks_like_systems(primary))
        self.assertTrue(looks_like_systems(systems))
        self.assertFalse(looks_like_primary(systems))
        self.assertFalse(looks_like_primary([]))

    def test_blank_flag_columns_do_not_look_primary(self) -> None:
        rows = normalize_rows([{"Status": "", "System": "S1", "Description": "Pump"}])

        self.assertFalse(looks_like_primary(rows))
        self.assertTrue(looks_like_systems(rows))

    def test_primary_and_systems_resolve(self) -> None:
        self.assertEqual(resolve_role(classify_rows(normalize_rows(primary_rows()))), "primary")
        self.assertEqual(resolve_role(classify_rows(normalize_rows(systems_rows()))), "systems")

    def test_primary_with_missing_columns_names_them(self) -> None:
        rows = normalize_rows([{"Status": "Open", "System": "S1", "Area": "A1"}])
        decision = classify_rows(rows)

        self.assertEqual(decision.kind, "primary")
        with self.assertRaises(MissingColumnsError) as ctx:
            resolve_role(decision)
        self.assertEqual(ctx.exception.role, "primary")
        self.assertEqual(ctx.exception.missing, [h for h in PRIMARY_REQUIRED if h not in ("Status", "System", "Area")])
        self.assertTrue(str(ctx.exception).startswith("Checklists File: Missing Columns: RespID, CertID"))

    def test_registry_with_system_description_column_falls_back_to_systems(self) -> None:
        rows = normalize_rows([{"System": "S1", "System Description": "Pump"}])
        decision = classify_rows(rows)

        self.assertEqual(decision.kind, "ambiguous")
        self.assertEqual(resolve_role(decision), "systems")

    def test_empty_primary_sheet_falls_back_to_primary(self) -> None:
        rows = pd.DataFrame(columns=PRIMARY_REQUIRED)

        self.assertEqual(resolve_role(classify_rows(rows)), "primary")

    def test_ambiguous_reports_shorter_missing_list(self) -> None:
        rows = normalize_rows([{"Foo": "x"}])

        with self.assertRaises(MissingColumnsError) as ctx:
            resolve_role(classify_rows(rows))
        self.assertIsNone(ctx.exception.role)
        self.assertEqual(ctx.exception.missing, ["System", "Description/System Description"])
        self.assertEqual(str(ctx.exception), "Missing columns: System, Description/System Description")

    def test_ambiguous_tie_prefers_primary_list(self) -> None:
        decision = RoleDecision(kind="ambiguous", missing_primary=["Area"], missing_systems=["System"])

        with self.assertRaises(MissingColumnsError) as ctx:
            resolve_role(decision)
        self.assertEqual(ctx.exception.missing, ["Area"])


if __name__ == "__main__":
    unittest.main()
