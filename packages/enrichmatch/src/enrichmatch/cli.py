"""CLI for serving the match API and matching company files offline."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

import pandas as pd
import structlog

from enrichmatch.backend import SearchBackend
from enrichmatch.config import MatchConfig
from enrichmatch.logging import configure_logging
from enrichmatch.matcher import Matcher
from enrichmatch.types import InputRecord, MatchResult


def _build_backend(args: argparse.Namespace, config: MatchConfig) -> SearchBackend:
    """MemoryBackend over --corpus if given, Elasticsearch otherwise."""
    log = structlog.get_logger()
    if getattr(args, "corpus", None):
        from enrichmatch.memory import MemoryBackend

        return MemoryBackend.load(args.corpus)

    from enrichmatch.elastic import ElasticsearchBackend

    log.info(
        "elasticsearch_backend",
        node=config.elasticsearch.node,
        index=config.elasticsearch.index_name,
    )
    return ElasticsearchBackend(config.elasticsearch)


def read_records(path: str | Path) -> pd.DataFrame:
    """Read input records from CSV, XLSX or a JSON array."""
    path = Path(path)
    if path.suffix in (".xlsx", ".xls"):
        df = pd.read_excel(path, dtype=str)
    elif path.suffix == ".json":
        df = pd.read_json(path, orient="records", dtype=False)
    else:
        df = pd.read_csv(path, dtype=str)
    return df.astype(object).where(df.notna(), None)


def results_frame(inputs: pd.DataFrame, results: list[MatchResult]) -> pd.DataFrame:
    """One output row per input row: the input columns plus the best match."""
    rows = []
    for r in results:
        best = r.best_match
        rows.append({
            "matched_domain": best.record.domain if best else None,
            "matched_commercial_name": best.record.commercial_name if best else None,
            "matched_legal_name": best.record.legal_name if best else None,
            "score": round(best.score, 4) if best else None,
            "candidate_count": len(r),
            "error": r.error,
        })
    return pd.concat(
        [inputs.reset_index(drop=True), pd.DataFrame(rows)],
        axis=1,
    )


def _write_results(df: pd.DataFrame, output: str) -> None:
    if output.endswith((".xlsx", ".xls")):
        df.to_excel(output, index=False)
    elif output.endswith(".json"):
        df.to_json(output, orient="records", indent=2)
    else:
        df.to_csv(output, index=False)


def _print_summary(df: pd.DataFrame) -> None:
    matched = df["matched_domain"].notna().sum()
    errors = df["error"].notna().sum()
    print(f"\nResults: MATCHED={matched}, UNMATCHED={len(df) - matched - errors}, ERRORS={errors}")


def cmd_match(args: argparse.Namespace) -> None:
    log = structlog.get_logger()
    config = MatchConfig.from_env()

    log.info("load_input_start", path=args.input)
    inputs = read_records(args.input)
    records = [InputRecord.from_mapping(row) for row in inputs.to_dict(orient="records")]
    log.info("input_loaded", count=len(records))

    async def run() -> list[MatchResult]:
        backend = _build_backend(args, config)
        try:
            return await Matcher(backend, config).match_batch(records, args.batch_size)
        finally:
            await backend.close()

    results = asyncio.run(run())
    df_out = results_frame(inputs, results)

    if args.show:
        shown = df_out[df_out["matched_domain"].notna()]
        print(shown.to_string(index=False) if not shown.empty else "\n=== No matches found ===")

    _print_summary(df_out)
    _write_results(df_out, args.output)
    print(f"\nSaved to: {args.output}")


def cmd_search(args: argparse.Namespace) -> None:
    config = MatchConfig.from_env()
    record = InputRecord(
        name=args.name,
        domain=args.domain,
        phone=args.phone,
        social_media=tuple(args.social or ()),
    )

    async def run():
        backend = _build_backend(args, config)
        try:
            return await Matcher(backend, config).search(record)
        finally:
            await backend.close()

    response = asyncio.run(run())
    print(f"Total: {response.total}")
    if not response.hits:
        print("  No companies found.")
        return
    df = pd.DataFrame([
        {
            "score": round(h.score, 4),
            "domain": h.record.domain,
            "commercial_name": h.record.commercial_name,
            "phone": h.record.phone,
        }
        for h in response.hits
    ])
    print(df.to_string(index=False))


def cmd_serve(args: argparse.Namespace) -> None:
    """Run the match API under uvicorn."""
    import uvicorn

    from enrichmatch.server import create_app

    log = structlog.get_logger()
    config = MatchConfig.from_env()
    log.info("serve_start", host=args.host, port=args.port, corpus=getattr(args, "corpus", None))
    app = create_app(_build_backend(args, config), config)
    uvicorn.run(app, host=args.host, port=args.port, log_level="warning")


def build_parser() -> argparse.ArgumentParser:
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Set logging level (default: INFO)",
    )
    parent_parser.add_argument(
        "--corpus",
        default=argparse.SUPPRESS,
        help="JSON array of company documents to search in memory instead of Elasticsearch",
    )

    parser = argparse.ArgumentParser(
        description="Company record matching CLI",
        parents=[parent_parser],
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", parents=[parent_parser], help="Run the match API")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=3000, help="Server port (default: 3000)")
    serve_parser.set_defaults(func=cmd_serve)

    match_parser = subparsers.add_parser("match", parents=[parent_parser], help="Match a file of companies")
    match_parser.add_argument("--input", required=True, help="CSV, XLSX or JSON file of input records")
    match_parser.add_argument("--output", default="matching_results.xlsx", help="Output file path")
    match_parser.add_argument("--batch-size", type=int, default=None, help="Records matched concurrently")
    match_parser.add_argument("--show", action="store_true", help="Display matches on screen")
    match_parser.set_defaults(func=cmd_match)

    search_parser = subparsers.add_parser("search", parents=[parent_parser], help="Ad-hoc combined search")
    search_parser.add_argument("--name", help="Company name")
    search_parser.add_argument("--domain", help="Domain or website URL")
    search_parser.add_argument("--phone", help="Phone number")
    search_parser.add_argument("--social", action="append", help="Social media URL (repeatable)")
    search_parser.set_defaults(func=cmd_search)

    return parser


def main() -> None:
    args = build_parser().parse_args()
    configure_logging(args.log_level)
    args.func(args)


if __name__ == "__main__":
    main()
