from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from nicegui import ui

ALL_STATUSES = "ALL"


@dataclass(frozen=True)
class RunEntry:
    run_id: str
    directory: str
    root: str
    generated_at: str
    summary: Dict[str, int]

    @property
    def label(self) -> str:
        return f"{self.run_id} ({self.root})"


class RunIndex:
    def __init__(self, reports_dir: Path) -> None:
        self.reports_dir = reports_dir
        self.runs: List[RunEntry] = []
        self._index_runs()

    def _index_runs(self) -> None:
        if not self.reports_dir.exists():
            return
        for run_dir in sorted(self.reports_dir.iterdir()):
            manifest = run_dir / "run_manifest.json"
            if not manifest.exists():
                continue
            data = json.loads(manifest.read_text(encoding="utf-8"))
            self.runs.append(
                RunEntry(
                    run_id=data.get("run_id", run_dir.name),
                    directory=run_dir.name,
                    root=data.get("root", ""),
                    generated_at=data.get("generated_at", ""),
                    summary=data.get("summary", {}),
                )
            )
        self.runs.sort(key=lambda run: run.generated_at, reverse=True)

    def find(self, label: Optional[str]) -> Optional[RunEntry]:
        return next((run for run in self.runs if run.label == label), None)

    def read_report(self, run_id: str) -> Optional[Dict[str, Any]]:
        run = next((item for item in self.runs if item.run_id == run_id), None)
        directory = run.directory if run else run_id
        path = self.reports_dir / directory / "report.json"
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))


def build_file_rows(report: Dict[str, Any], status: Optional[str] = None) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for item in report.get("files", []):
        if status and status != ALL_STATUSES and item.get("status") != status:
            continue
        rows.append(
            {
                "path": item.get("path"),
                "extension": item.get("extension"),
                "status": item.get("status"),
                "message": item.get("message") or "",
                "backup": item.get("backup") or "",
            }
        )
    return rows


def build_summary_rows(report: Dict[str, Any]) -> List[Dict[str, Any]]:
    counts: Dict[str, Counter] = {}
    for item in report.get("files", []):
        counts.setdefault(item.get("extension", ""), Counter())[item.get("status", "")] += 1
    return [
        {
            "extension": extension,
            "changed": counter["CHANGED"],
            "unchanged": counter["UNCHANGED"],
            "skipped": counter["SKIPPED"],
            "error": counter["ERROR"],
            "total": sum(counter.values()),
        }
        for extension, counter in sorted(counts.items())
    ]


def main() -> None:
    import argparse

    parser = argparse.ArgumentParser(prog="srcfmt-viewer")
    parser.add_argument("--reports", required=True, help="Reports directory")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    index = RunIndex(Path(args.reports).expanduser().resolve())
    state: Dict[str, Optional[str]] = {"run": None, "status": ALL_STATUSES}

    ui.add_head_html(
        """
        <style>
        body { background: #f7f8fa; }
        .summary-card { background: white; border-radius: 12px; padding: 16px; box-shadow: 0 6px 16px rgba(0,0,0,0.08); }
        </style>
        """
    )

    with ui.row().classes("w-full items-center justify-between").style("padding: 16px 24px;"):
        ui.label("srcfmt runs").classes("text-2xl font-bold")
        ui.label("Files touched by each formatting run").classes("text-sm text-gray-500")

    with ui.row().classes("w-full gap-6").style("padding: 0 24px 24px 24px;"):
        with ui.column().classes("w-1/2"):
            ui.label("Run").classes("text-sm font-medium text-gray-600")
            select_run = ui.select(options=[run.label for run in index.runs], value=None).classes("w-full")
        with ui.column().classes("w-1/4"):
            ui.label("Status").classes("text-sm font-medium text-gray-600")
            select_status = ui.select(
                options=[ALL_STATUSES, "CHANGED", "UNCHANGED", "SKIPPED", "ERROR"],
                value=ALL_STATUSES,
            ).classes("w-full")

    with ui.row().classes("w-full gap-6").style("padding: 0 24px;"):
        with ui.card().classes("summary-card w-full"):
            ui.label("Summary").classes("text-lg font-semibold mb-2")
            summary_table = ui.table(
                columns=[
                    {"name": "extension", "label": "Extension", "field": "extension"},
                    {"name": "changed", "label": "Changed", "field": "changed"},
                    {"name": "unchanged", "label": "Unchanged", "field": "unchanged"},
                    {"name": "skipped", "label": "Skipped", "field": "skipped"},
                    {"name": "error", "label": "Errors", "field": "error"},
                    {"name": "total", "label": "Total", "field": "total"},
                ],
                rows=[],
                row_key="extension",
            ).classes("w-full")
        with ui.card().classes("summary-card w-full"):
            ui.label("Files").classes("text-lg font-semibold mb-2")
            ui.label("Files whose backup was kept changed during the run.").classes("text-sm text-gray-500")
            files_table = ui.table(
                columns=[
                    {"name": "path", "label": "File", "field": "path"},
                    {"name": "status", "label": "Status", "field": "status"},
                    {"name": "backup", "label": "Backup", "field": "backup"},
                    {"name": "message", "label": "Message", "field": "message"},
                ],
                rows=[],
                row_key="path",
            ).classes("w-full")

    def refresh() -> None:
        summary_table.rows = []
        files_table.rows = []
        run = index.find(state["run"])
        if run:
            report = index.read_report(run.run_id) or {}
            summary_table.rows = build_summary_rows(report)
            files_table.rows = build_file_rows(report, state["status"])
        summary_table.update()
        files_table.update()

    select_run.on_value_change(lambda e: (state.update(run=e.value), refresh()))
    select_status.on_value_change(lambda e: (state.update(status=e.value), refresh()))

    ui.run(port=args.port, reload=False)


if __name__ in {"__main__", "__mp_main__"}:
    main()
