"""Tests for CLI input reading and result output."""

import json
import sys
from pathlib import Path

import pandas as pd

from enrichmatch.cli import build_parser, main, read_records, results_frame
from enrichmatch.types import CompanyRecord, MatchResult, ScoredHit

CORPUS = [
    {"domain": "acmeco.com", "companyCommercialName": "Acme Company", "phone": "2125550100"},
    {"domain": "globex.io", "companyCommercialName": "Globex", "companyLegalName": "Globex Corp"},
]


class TestReadRecords:
    def test_read_csv_blank_cells_are_none(self, tmp_path: Path):
        csv_file = tmp_path / "input.csv"
        csv_file.write_text("name,domain,phone\nAcme,acmeco.com,\nGlobex,,3125550199\n")

        df = read_records(csv_file)

        rows = df.to_dict(orient="records")
        assert rows[0] == {"name": "Acme", "domain": "acmeco.com", "phone": None}
        assert rows[1]["domain"] is None
        # dtype=str keeps leading digits intact
        assert rows[1]["phone"] == "3125550199"

    def test_read_json_array(self, tmp_path: Path):
        json_file = tmp_path / "input.json"
        json_file.write_text(json.dumps([
            {"name": "Acme", "website": "https://acmeco.com"},
            {"name": "Globex", "website": None},
        ]))

        df = read_records(json_file)

        assert list(df["name"]) == ["Acme", "Globex"]
        assert df.loc[1, "website"] is None


class TestResultsFrame:
    def test_best_match_columns_appended(self):
        inputs = pd.DataFrame([{"name": "Acme"}, {"name": "Nobody"}, {"name": "Broken"}])
        hit = ScoredHit(
            "acmeco.com",
            CompanyRecord(domain="acmeco.com", commercial_name="Acme Company"),
            8.123456,
        )
        results = [MatchResult(hits=[hit]), MatchResult(), MatchResult(error="boom")]

        df = results_frame(inputs, results)

        assert list(df["name"]) == ["Acme", "Nobody", "Broken"]
        assert df.loc[0, "matched_domain"] == "acmeco.com"
        assert df.loc[0, "matched_commercial_name"] == "Acme Company"
        assert df.loc[0, "score"] == 8.1235
        assert df.loc[0, "candidate_count"] == 1
        assert df.loc[1, "matched_domain"] is None
        assert df.loc[1, "candidate_count"] == 0
        assert df.loc[2, "error"] == "boom"


class TestParser:
    def test_corpus_before_subcommand_is_kept(self):
        args = build_parser().parse_args(["--corpus", "c.json", "serve"])
        assert args.corpus == "c.json"

    def test_corpus_after_subcommand(self):
        args = build_parser().parse_args(["search", "--corpus", "c.json", "--name", "Acme"])
        assert args.corpus == "c.json"

    def test_corpus_absent_by_default(self):
        args = build_parser().parse_args(["serve"])
        assert getattr(args, "corpus", None) is None


class TestMatchCommand:
    def test_match_file_against_corpus(self, tmp_path: Path, monkeypatch, capsys):
        corpus = tmp_path / "companies.json"
        corpus.write_text(json.dumps(CORPUS))
        input_file = tmp_path / "input.csv"
        input_file.write_text("name,domain\nAcme Company,\nGlobex,globex.io\nZzz,\n")
        output = tmp_path / "out.csv"

        monkeypatch.setattr(sys, "argv", [
            "enrichmatch", "match",
            "--corpus", str(corpus),
            "--input", str(input_file),
            "--output", str(output),
            "--batch-size", "2",
            "--log-level", "WARNING",
        ])
        main()

        out = pd.read_csv(output)
        assert list(out["matched_domain"][:2]) == ["acmeco.com", "globex.io"]
        assert pd.isna(out["matched_domain"][2])
        assert "MATCHED=2" in capsys.readouterr().out
