from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional, Sequence

from runlens.api.client import DebugInfo
from runlens.diagrams.timeline_view import render_text_timeline, render_timeline_viewer, view_to_dict
from runlens.redaction import Redactor, RedactionConfig
from runlens.run.build_run import RunView
from runlens.run.details import classify_details, render_detail_lines
from runlens.timeline.duration import format_clock, format_duration
from runlens.timeline.selection import SelectionCoordinator

OUTPUT_FORMATS = ["all", "html", "json", "text"]

# Module-level redactor, can be configured
_redactor: Optional[Redactor] = None


def get_redactor() -> Redactor:
    global _redactor
    if _redactor is None:
        _redactor = Redactor()
    return _redactor


def set_redactor(redactor: Redactor) -> None:
    global _redactor
    _redactor = redactor


def disable_redaction() -> None:
    set_redactor(Redactor(RedactionConfig(enabled=False)))


def _write_json(path: Path, data: Any) -> None:
    path.write_text(json.dumps(data, indent=2, default=str) + "\n", encoding="utf-8")


def render_report_md(view: RunView, selection: SelectionCoordinator) -> str:
    """Human-readable Markdown report of the run."""
    run = view.run
    lines = [
        f"# Run {run.run_id}",
        "",
        f"- Thread: `{run.thread_id}`",
        f"- Assistant: `{run.assistant_id or 'N/A'}`",
        f"- Status: {run.status}",
        f"- Started: {format_clock(run.started_at)}",
        f"- Completed: {format_clock(run.completed_at)}",
        f"- Duration: {format_duration(view.total_duration)}",
        "",
        "## Timeline",
        "",
        "| # | Segment | Start | End | Duration |",
        "|---|---------|-------|-----|----------|",
    ]
    for n, seg in enumerate(selection.apply(view.segments), start=1):
        label = seg.label.replace("<", "&lt;").replace(">", "&gt;")
        if seg.is_selected:
            label = f"**{label}**"
        lines.append(
            f"| {n} | {label} | {format_duration(seg.start_offset)} | "
            f"{format_duration(seg.end_offset)} | {format_duration(seg.duration)} |"
        )

    lines += ["", "## Steps", ""]
    if not view.steps:
        lines.append("This run has no steps.")
    for i, step in enumerate(view.steps):
        lines.append(f"### {i + 1}. {step.type or 'Unknown'} ({step.status or 'unknown'})")
        lines.append("")
        lines.append("```")
        lines.extend(render_detail_lines(classify_details(step.details)))
        lines.append("```")
        lines.append("")
    return "\n".join(lines) + "\n"


def write_view_artifacts(
    *,
    out_dir: Path,
    view: RunView,
    selection: Optional[SelectionCoordinator] = None,
    formats: Sequence[str] = ("all",),
    debug: Optional[DebugInfo] = None,
) -> list[Path]:
    """Write the artifacts for one fetched run.

    Creates (depending on ``formats``):
    - run.json / steps.jsonl / segments.json: raw records and the timeline
    - timeline.html: interactive waterfall viewer
    - timeline.txt: text waterfall
    - report.md: Markdown report
    - debug.json: request/response record, when ``debug`` is given

    Credentials are redacted from everything written.

    Returns:
        Paths of the files written.
    """
    selection = selection or SelectionCoordinator(step_count=len(view.steps))
    wanted = set(formats)
    everything = "all" in wanted
    redactor = get_redactor()

    out_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []

    if everything or "json" in wanted:
        run_path = out_dir / "run.json"
        _write_json(run_path, redactor.redact_dict({
            "id": view.run.run_id,
            "thread_id": view.run.thread_id,
            "assistant_id": view.run.assistant_id,
            "status": view.run.status,
            "started_at": view.run.started_at,
            "completed_at": view.run.completed_at,
        }))
        steps_path = out_dir / "steps.jsonl"
        with steps_path.open("w", encoding="utf-8") as f:
            for step in view.steps:
                f.write(json.dumps(redactor.redact_dict(step.raw), default=str) + "\n")
        segments_path = out_dir / "segments.json"
        _write_json(segments_path, view_to_dict(view, selection))
        written += [run_path, steps_path, segments_path]

    if everything or "html" in wanted:
        html_path = out_dir / "timeline.html"
        html_path.write_text(render_timeline_viewer(view, selection, debug=debug), encoding="utf-8")
        written.append(html_path)

    if everything or "text" in wanted:
        text_path = out_dir / "timeline.txt"
        text_path.write_text(render_text_timeline(view, selection), encoding="utf-8")
        written.append(text_path)

    if everything:
        report_path = out_dir / "report.md"
        report_path.write_text(render_report_md(view, selection), encoding="utf-8")
        written.append(report_path)

    if debug is not None:
        debug_path = out_dir / "debug.json"
        _write_json(debug_path, redactor.redact_dict(debug.to_dict()))
        written.append(debug_path)

    return written
