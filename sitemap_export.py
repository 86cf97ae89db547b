import io
import os
import csv
import json
import asyncio
from typing import Any, Callable, Dict, List, Sequence

from openpyxl import Workbook

from sitemap_config import log
from sitemap_errors import SitemapError
from sitemap_models import FilterSpec, PageRecord

HEADER = ["URL", "Last Modified", "Change Frequency", "Priority"]
SHEET_TITLE = "Sitemap URLs"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def record_rows(records: Sequence[PageRecord]) -> List[List[str]]:
    return [
        [r.location, r.last_modified or "", r.change_frequency or "", r.priority or ""]
        for r in records
    ]


def build_workbook(records: Sequence[PageRecord]) -> Workbook:
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE
    ws.append(HEADER)
    for row in record_rows(records):
        ws.append(row)
    ws.column_dimensions["A"].width = 80
    for col in ("B", "C", "D"):
        ws.column_dimensions[col].width = 18
    return wb


def xlsx_bytes(records: Sequence[PageRecord]) -> bytes:
    buf = io.BytesIO()
    build_workbook(records).save(buf)
    return buf.getvalue()


def csv_text(records: Sequence[PageRecord]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(HEADER)
    writer.writerows(record_rows(records))
    return buf.getvalue()


def json_payload(records: Sequence[PageRecord]) -> dict:
    entries = [r.model_dump() for r in records]
    return {"success": True, "total": len(entries), "entries": entries}


def export_xlsx(records: Sequence[PageRecord], path: str) -> str:
    build_workbook(records).save(path)
    return path


def export_csv(records: Sequence[PageRecord], path: str) -> str:
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(csv_text(records))
    return path


def export_json(records: Sequence[PageRecord], path: str) -> str:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(json_payload(records), f, ensure_ascii=False, indent=2)
    return path


def export_records(records: Sequence[PageRecord], path: str) -> str:
    """Write records to ``path``; the format follows the extension (.xlsx, .csv, .json)."""
    ext = os.path.splitext(path)[1].lower()
    writers: Dict[str, Callable[..., Any]] = {".xlsx": export_xlsx, ".csv": export_csv, ".json": export_json}
    if ext not in writers:
        raise ValueError(f"Unsupported export format '{ext or path}' (use .xlsx, .csv or .json)")
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)
    writers[ext](records, path)
    log("export", f"Wrote {len(records)} URL(s) to {path}")
    return path


def _cli():
    import argparse
    from sitemap_discovery import fetch_sitemap_records
    from sitemap_filters import apply_filters, pattern_errors

    parser = argparse.ArgumentParser(description="Find a site's sitemap, filter its URLs and export them")
    parser.add_argument("url", help="Website, page or sitemap URL")
    parser.add_argument("--output", dest="output", default="sitemap_urls.xlsx", help="Output path (.xlsx, .csv or .json)")
    parser.add_argument("--include", dest="include_keywords", default="", help="Keywords that must all appear (space-separated)")
    parser.add_argument("--include-pattern", dest="include_pattern", default="", help="Regex that must match (case-insensitive)")
    parser.add_argument("--exclude", dest="exclude_keywords", default="", help="Keywords that must not appear (space-separated)")
    parser.add_argument("--exclude-pattern", dest="exclude_pattern", default="", help="Regex that must not match (case-insensitive)")
    args = parser.parse_args()

    spec = FilterSpec(
        include_keywords=args.include_keywords,
        include_pattern=args.include_pattern,
        exclude_keywords=args.exclude_keywords,
        exclude_pattern=args.exclude_pattern,
    )
    for field, err in pattern_errors(spec).items():
        print(f"[export] Warning: {field} is invalid and will be ignored ({err})")

    def on_progress(status: str, percent: int) -> None:
        print(f"[export] {percent:3d}% {status}")

    try:
        records = asyncio.run(fetch_sitemap_records(args.url, on_progress=on_progress))
    except SitemapError as e:
        raise SystemExit(f"Failed to fetch sitemap: {e}")

    filtered = apply_filters(records, spec)
    if not filtered:
        raise SystemExit("No URLs to export")
    out_path = export_records(filtered, args.output)
    print(json.dumps({"success": True, "output": out_path, "total": len(filtered), "fetched": len(records)}, ensure_ascii=False))


if __name__ == "__main__":
    _cli()
