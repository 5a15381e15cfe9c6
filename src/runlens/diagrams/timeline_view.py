"""Waterfall timeline rendering.

Two renderers share one layout:
- ``render_timeline_viewer``: a standalone HTML page with an SVG waterfall
  (bars proportional to elapsed time, gaps drawn dashed, duration axis,
  hover tooltips) above the step list with each step's details. Clicking a
  step bar highlights it and scrolls its card into view.
- ``render_text_timeline``: the same waterfall drawn with block characters
  for the terminal.
"""
from __future__ import annotations

import html
import json
from dataclasses import dataclass
from typing import Any, Optional

from runlens.api.client import DebugInfo
from runlens.run.build_run import RunView
from runlens.run.details import (
    CodeInterpreterCall,
    FunctionCall,
    ImageOutput,
    MessageCreationDetail,
    StepDetail,
    TextOutput,
    ToolCallsDetail,
    classify_details,
    render_detail_lines,
)
from runlens.run.models import Step
from runlens.timeline.duration import format_clock, format_duration
from runlens.timeline.segments import Segment
from runlens.timeline.selection import (
    HIGHLIGHT_COLOR,
    PALETTE,
    SegmentStyle,
    SelectionCoordinator,
)

# Layout constants
ROW_HEIGHT = 40
BAR_PADDING = 0.3  # fraction of the row left empty around a bar
LABEL_WIDTH = 160
PADDING = 20
CHART_WIDTH = 800
AXIS_TICKS = 5
MIN_BAR_WIDTH = 1
MIN_LABEL_WIDTH = 35  # narrower bars get no duration label


@dataclass
class TimelineRow:
    """A segment with its computed position."""

    segment: Segment
    style: SegmentStyle
    row: int
    x: float
    width: float

    @property
    def duration_label(self) -> str:
        if self.width <= MIN_LABEL_WIDTH:
            return ""
        return format_duration(self.segment.duration)


def _scale(offset: float, total: int, chart_width: int) -> float:
    if total <= 0:
        return 0.0
    return offset / total * chart_width


def layout_rows(
    segments: list[Segment],
    selection: SelectionCoordinator,
    total: int,
    chart_width: int = CHART_WIDTH,
) -> list[TimelineRow]:
    return [
        TimelineRow(
            segment=seg,
            style=selection.style_for(seg),
            row=row,
            x=_scale(seg.start_offset, total, chart_width),
            width=max(_scale(seg.duration, total, chart_width), MIN_BAR_WIDTH),
        )
        for row, seg in enumerate(segments)
    ]


def _tooltip(seg: Segment) -> str:
    return "\n".join([
        "Gap" if seg.is_gap else seg.label,
        f"Start: {format_duration(seg.start_offset)}",
        f"End: {format_duration(seg.end_offset)}",
        f"Duration: {format_duration(seg.duration)}",
    ])


def _render_bar(tr: TimelineRow) -> str:
    seg = tr.segment
    y = PADDING + tr.row * ROW_HEIGHT
    bar_y = y + ROW_HEIGHT * BAR_PADDING / 2
    bar_height = ROW_HEIGHT * (1 - BAR_PADDING)
    x = LABEL_WIDTH + tr.x

    classes = ["segment", "gap" if seg.is_gap else "step"]
    if seg.is_selected:
        classes.append("selected")
    index_attr = "" if seg.is_gap else f' data-index="{seg.source_index}"'

    stroke = f' stroke="{tr.style.stroke}"' if tr.style.stroke else ""
    dash = f' stroke-dasharray="{tr.style.dasharray}"' if tr.style.dasharray else ""
    label_fill = "#999" if seg.is_gap else "#333"

    return f'''
    <g class="{' '.join(classes)}"{index_attr}>
        <title>{html.escape(_tooltip(seg))}</title>
        <text x="{LABEL_WIDTH - 8}" y="{y + ROW_HEIGHT / 2}" class="row-label"
              text-anchor="end" dominant-baseline="middle" fill="{label_fill}">{html.escape(seg.label)}</text>
        <rect x="{x:.2f}" y="{bar_y:.2f}" width="{tr.width:.2f}" height="{bar_height:.2f}"
              rx="4" ry="4" fill="{tr.style.fill}"{stroke}{dash} class="bar" />
        <text x="{x + tr.width / 2:.2f}" y="{y + ROW_HEIGHT / 2}" class="duration-label"
              text-anchor="middle" dominant-baseline="middle" fill="{tr.style.label_color}">{tr.duration_label}</text>
    </g>'''


def _render_time_axis(total: int, chart_width: int, num_rows: int) -> str:
    axis_y = PADDING + num_rows * ROW_HEIGHT
    ticks = []
    for i in range(AXIS_TICKS + 1):
        t = total * i / AXIS_TICKS
        x = LABEL_WIDTH + _scale(t, total, chart_width)
        ticks.append(
            f'<line x1="{x:.2f}" y1="{axis_y}" x2="{x:.2f}" y2="{axis_y + 6}" stroke="#999" />'
            f'<text x="{x:.2f}" y="{axis_y + 20}" class="axis-label" text-anchor="middle">'
            f'{format_duration(t)}</text>'
        )
    return f'''
    <g class="time-axis">
        <line x1="{LABEL_WIDTH}" y1="{axis_y}" x2="{LABEL_WIDTH + chart_width}" y2="{axis_y}" stroke="#999" />
        {"".join(ticks)}
    </g>'''


def _pre(text: str) -> str:
    return f'<pre class="code">{html.escape(text)}</pre>'


def render_detail_html(detail: StepDetail) -> str:
    """HTML for one classified step detail."""
    if isinstance(detail, ToolCallsDetail):
        parts = [f'<p><span class="k">Tool Calls:</span> {len(detail.tool_calls)}</p>']
        for n, call in enumerate(detail.tool_calls, start=1):
            if isinstance(call, FunctionCall):
                body = (
                    f'<p><span class="k">Function:</span> {html.escape(call.name)}</p>'
                    f'<p><span class="k">Arguments:</span></p>{_pre(call.pretty_arguments)}'
                )
                kind = "function"
            elif isinstance(call, CodeInterpreterCall):
                outputs = []
                for output in call.outputs:
                    if isinstance(output, TextOutput):
                        outputs.append(_pre(output.text))
                    elif isinstance(output, ImageOutput):
                        outputs.append(f'<img src="{html.escape(output.data_uri)}" alt="Code output" />')
                body = f'<p><span class="k">Input:</span></p>{_pre(call.input)}'
                if outputs:
                    body += '<p><span class="k">Outputs:</span></p>' + "".join(outputs)
                kind = "code_interpreter"
            else:
                body = ""
                kind = call.kind
            parts.append(
                f'<div class="tool-call"><p class="k">Tool Call {n}: {html.escape(kind)}</p>{body}</div>'
            )
        return "".join(parts)

    if isinstance(detail, MessageCreationDetail):
        return f'<p><span class="k">Message ID:</span> {html.escape(detail.message_id)}</p>'

    if detail.raw is None:
        return "<p>No step details available</p>"
    return _pre(json.dumps(detail.raw, indent=2, default=str))


def _step_duration(step: Step, run_end: int) -> int:
    end = step.completed_at if step.completed_at is not None else run_end
    return max(0, end - step.started_at)


def _render_step_card(step: Step, position: int, view: RunView, selected: bool) -> str:
    color = HIGHLIGHT_COLOR if selected else PALETTE[position % len(PALETTE)]
    completed = format_clock(step.completed_at) if step.completed_at else "running"
    return f'''
    <section class="step-card{' selected' if selected else ''}" id="step-{position}" data-index="{position}">
        <header>
            <span class="swatch" style="background: {color}"></span>
            <span class="step-title">{position + 1}. {html.escape(step.type or 'Unknown')}</span>
            <span class="step-status">{html.escape(step.status or '')}</span>
        </header>
        <div class="step-meta">
            <span>ID: {html.escape(step.step_id)}</span>
            <span>Started: {format_clock(step.started_at)}</span>
            <span>Completed: {completed}</span>
            <span>Duration: {format_duration(_step_duration(step, view.run.completed_at))}</span>
        </div>
        <div class="step-details">{render_detail_html(classify_details(step.details))}</div>
    </section>'''


def _render_debug(debug: DebugInfo) -> str:
    blocks = []
    for title, record in (("Run Request", debug.run), ("Steps Request", debug.steps)):
        if record is None:
            continue
        body = (
            f'<p><span class="k">URL:</span> {html.escape(record.url)}</p>'
            f'<p><span class="k">Headers:</span></p>{_pre(json.dumps(record.headers, indent=2))}'
        )
        if record.status is not None:
            response = record.response
            text = json.dumps(response, indent=2) if isinstance(response, (dict, list)) else str(response)
            body += (
                f'<p><span class="k">Status:</span> {record.status} {html.escape(record.status_text or "")}</p>'
                f'<p><span class="k">Response:</span></p>{_pre(text)}'
            )
        blocks.append(f"<h3>{title}</h3>{body}")
    return f'<section class="debug"><h2>Debug Information</h2>{"".join(blocks)}</section>'


def render_timeline_viewer(
    view: RunView,
    selection: Optional[SelectionCoordinator] = None,
    title: Optional[str] = None,
    debug: Optional[DebugInfo] = None,
) -> str:
    """Render the run as an interactive HTML page.

    Args:
        view: The fetched run.
        selection: Current selection; highlighted on load.
        title: Page title (defaults to the run id).
        debug: Request/response record shown below the step list.

    Returns:
        Complete HTML document string.
    """
    selection = selection or SelectionCoordinator(step_count=len(view.steps))
    run = view.run
    title = title or f"Run {run.run_id}"
    segments = selection.apply(view.segments)
    total = view.total_duration

    rows = layout_rows(segments, selection, total)
    num_rows = len(rows) or 1
    svg_width = LABEL_WIDTH + CHART_WIDTH + PADDING * 2
    svg_height = PADDING * 2 + num_rows * ROW_HEIGHT + 30

    bars_svg = "\n".join(_render_bar(r) for r in rows)
    axis_svg = _render_time_axis(total, CHART_WIDTH, num_rows) if rows else ""
    cards = "\n".join(
        _render_step_card(step, i, view, selection.selected_index == i)
        for i, step in enumerate(view.steps)
    )
    if not view.steps:
        cards = '<p class="empty">This run has no steps.</p>'

    debug_html = _render_debug(debug) if debug else ""
    selected_js = json.dumps(selection.selected_index)

    return f'''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{html.escape(title)}</title>
    <style>
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            background: #f9fafb;
            color: #1f2937;
            margin: 0;
            padding: 1rem;
        }}
        .summary {{
            display: flex;
            gap: 2rem;
            margin-bottom: 1rem;
            font-size: 0.875rem;
        }}
        .summary .k, .k {{
            font-weight: 600;
        }}
        .timeline-panel {{
            position: sticky;
            top: 0;
            z-index: 10;
            background: #fff;
            border-radius: 0.5rem;
            box-shadow: 0 1px 3px rgba(0, 0, 0, 0.1);
            padding: 1rem;
            margin-bottom: 1rem;
            max-height: 18rem;
            overflow-y: auto;
        }}
        .row-label {{
            font-size: 12px;
        }}
        .duration-label {{
            font-size: 12px;
            font-weight: bold;
            pointer-events: none;
        }}
        .axis-label {{
            font-size: 10px;
            fill: #6b7280;
        }}
        .segment.step {{
            cursor: pointer;
        }}
        .segment.gap {{
            cursor: default;
        }}
        .step-card {{
            background: #fff;
            border-radius: 0.5rem;
            border: 2px solid transparent;
            padding: 0.75rem 1rem;
            margin-bottom: 0.75rem;
        }}
        .step-card.selected {{
            border-color: {HIGHLIGHT_COLOR};
        }}
        .step-card header {{
            display: flex;
            gap: 0.5rem;
            align-items: center;
            font-weight: 600;
        }}
        .swatch {{
            width: 12px;
            height: 12px;
            border-radius: 3px;
            display: inline-block;
        }}
        .step-status {{
            margin-left: auto;
            color: #6b7280;
            font-weight: normal;
        }}
        .step-meta {{
            display: flex;
            flex-wrap: wrap;
            gap: 1rem;
            font-size: 0.75rem;
            color: #6b7280;
            margin: 0.5rem 0;
        }}
        .tool-call {{
            border: 1px solid #e5e7eb;
            border-radius: 0.375rem;
            padding: 0.5rem 0.75rem;
            margin-bottom: 0.5rem;
        }}
        pre.code {{
            background: #f3f4f6;
            padding: 0.5rem;
            border-radius: 0.25rem;
            overflow: auto;
            font-size: 0.75rem;
        }}
        .debug {{
            margin-top: 1rem;
            font-size: 0.875rem;
        }}
    </style>
</head>
<body>
    <div class="summary">
        <span><span class="k">Run:</span> {html.escape(run.run_id)}</span>
        <span><span class="k">Thread:</span> {html.escape(run.thread_id)}</span>
        <span><span class="k">Assistant:</span> {html.escape(run.assistant_id or 'N/A')}</span>
        <span><span class="k">Status:</span> {html.escape(run.status)}</span>
        <span><span class="k">Started:</span> {format_clock(run.started_at)}</span>
        <span><span class="k">Duration:</span> {format_duration(total)}</span>
    </div>

    <div class="timeline-panel">
        <svg id="timeline" width="{svg_width}" height="{svg_height}" viewBox="0 0 {svg_width} {svg_height}">
            {bars_svg}
            {axis_svg}
        </svg>
    </div>

    <div class="step-list">
        {cards}
    </div>

    {debug_html}

    <script>
    const PALETTE = {json.dumps(list(PALETTE))};
    const HIGHLIGHT = {json.dumps(HIGHLIGHT_COLOR)};
    let selectedIndex = {selected_js};

    function selectStep(index) {{
        selectedIndex = index;
        document.querySelectorAll('.segment.step').forEach(el => {{
            const i = Number(el.dataset.index);
            const bar = el.querySelector('.bar');
            bar.setAttribute('fill', i === index ? HIGHLIGHT : PALETTE[i % PALETTE.length]);
            el.classList.toggle('selected', i === index);
        }});
        document.querySelectorAll('.step-card').forEach(card => {{
            const i = Number(card.dataset.index);
            card.classList.toggle('selected', i === index);
            card.querySelector('.swatch').style.background =
                i === index ? HIGHLIGHT : PALETTE[i % PALETTE.length];
        }});
        const card = document.getElementById('step-' + index);
        if (card) {{
            card.scrollIntoView({{ behavior: 'smooth', block: 'start' }});
        }}
    }}

    document.querySelectorAll('.segment.step').forEach(el => {{
        el.addEventListener('click', () => selectStep(Number(el.dataset.index)));
    }});
    </script>
</body>
</html>'''


def render_text_timeline(
    view: RunView,
    selection: Optional[SelectionCoordinator] = None,
    width: int = 50,
) -> str:
    """Render the run as a plain-text waterfall.

    Steps are drawn with ``█``, gaps with ``░``; the selected step is marked
    with ``>`` and its details are printed below the chart.
    """
    selection = selection or SelectionCoordinator(step_count=len(view.steps))
    run = view.run
    total = view.total_duration
    lines = [
        f"Run {run.run_id} ({run.status})  thread={run.thread_id}  "
        f"assistant={run.assistant_id or 'N/A'}",
        f"Started {format_clock(run.started_at)}, total {format_duration(total)}, "
        f"{len(view.steps)} step(s)",
    ]

    segments = selection.apply(view.segments)
    if not segments:
        lines.append("(no steps)")
        return "\n".join(lines) + "\n"

    label_width = max(len(s.label) for s in segments)
    lines.append("")
    for seg in segments:
        start_col = int(_scale(seg.start_offset, total, width))
        end_col = int(round(_scale(seg.end_offset, total, width)))
        end_col = min(max(end_col, start_col + 1), width)
        start_col = min(start_col, width - 1)
        char = "░" if seg.is_gap else "█"
        bar = " " * start_col + char * (end_col - start_col)
        marker = ">" if seg.is_selected else " "
        lines.append(
            f"{marker} {seg.label.ljust(label_width)} |{bar.ljust(width)}| "
            f"{format_duration(seg.duration)}"
        )
    lines.append(f"  {' ' * label_width} 0{format_duration(total).rjust(width + 1)}")

    index = selection.selected_index
    if index is not None and 0 <= index < len(view.steps):
        step = view.steps[index]
        lines.append("")
        lines.append(f"Step {index + 1}: {step.type or 'Unknown'} [{step.status or 'unknown'}] {step.step_id}")
        lines.extend(f"  {line}" for line in render_detail_lines(classify_details(step.details)))

    return "\n".join(lines) + "\n"


def view_to_dict(view: RunView, selection: Optional[SelectionCoordinator] = None) -> dict[str, Any]:
    """JSON-ready summary of the timeline (run bounds + segments)."""
    selection = selection or SelectionCoordinator(step_count=len(view.steps))
    return {
        "run_id": view.run.run_id,
        "thread_id": view.run.thread_id,
        "assistant_id": view.run.assistant_id,
        "status": view.run.status,
        "started_at": view.run.started_at,
        "completed_at": view.run.completed_at,
        "total_duration": view.total_duration,
        "selected_index": selection.selected_index,
        "segments": [
            {
                "label": s.label,
                "start_offset": s.start_offset,
                "duration": s.duration,
                "end_offset": s.end_offset,
                "source_index": s.source_index,
                "is_gap": s.is_gap,
                "is_selected": s.is_selected,
                "duration_label": format_duration(s.duration),
            }
            for s in selection.apply(view.segments)
        ],
    }
