"""Standalone HTML complexity report.

One table row per function, tagged with ``data-status`` so the inline
script can filter by threshold status without a server.
"""

from __future__ import annotations

import html
import logging
from pathlib import Path

from onion_tears.index.complexity import FileComplexityResult, ThresholdStatus

log = logging.getLogger(__name__)

REPORT_FILE_NAME = "complexity-report.html"

STATUS_BADGES = {
    ThresholdStatus.ERROR: "\U0001F534",
    ThresholdStatus.WARNING: "\U0001F7E1",
    ThresholdStatus.NONE: "\U0001F7E2",
}

# data-status values used by the filter buttons
_ROW_STATUS = {
    ThresholdStatus.ERROR: "error",
    ThresholdStatus.WARNING: "warning",
    ThresholdStatus.NONE: "ok",
}

_PAGE = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Onion Tears Complexity Report</title>
    <style>
      body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; margin: 24px; }}
      h1 {{ font-size: 20px; margin-bottom: 12px; }}
      .controls {{ margin: 12px 0 16px; display: flex; gap: 8px; align-items: center; }}
      .controls button {{ padding: 6px 10px; border: 1px solid #ccc; background: #fff; border-radius: 6px; cursor: pointer; }}
      .controls button.active {{ background: #f0f7ff; border-color: #70a5ff; }}
      table {{ width: 100%; border-collapse: collapse; }}
      thead th {{ text-align: left; font-weight: 600; border-bottom: 2px solid #ccc; padding: 8px; }}
      tbody td {{ border-bottom: 1px solid #eee; padding: 8px; }}
    </style>
  </head>
  <body>
    <h1>Onion Tears Complexity Report</h1>
    <p>{summary}</p>
    <div class="controls">
      <span>Filter:</span>
      <button data-filter="all" class="active">All</button>
      <button data-filter="error">Errors</button>
      <button data-filter="warning">Warnings</button>
      <button data-filter="ok">OK</button>
    </div>
    <table>
      <thead>
        <tr>
          <th>File</th>
          <th>Line</th>
          <th>Function</th>
          <th>Threshold</th>
          <th>Cyclomatic</th>
          <th>Cognitive</th>
        </tr>
      </thead>
      <tbody>
{rows}
      </tbody>
    </table>
    <script>
      (function () {{
        const buttons = document.querySelectorAll('.controls button');
        const rows = Array.from(document.querySelectorAll('tbody tr'));
        buttons.forEach(function (btn) {{
          btn.addEventListener('click', function () {{
            const filter = btn.getAttribute('data-filter');
            buttons.forEach(function (b) {{ b.classList.toggle('active', b === btn); }});
            rows.forEach(function (row) {{
              const show = filter === 'all' || row.getAttribute('data-status') === filter;
              row.style.display = show ? '' : 'none';
            }});
          }});
        }});
      }})();
    </script>
  </body>
</html>
"""


def _row(file_name: str, result) -> str:
    status = result.threshold_status
    cells = [
        html.escape(file_name),
        str(result.declaration_line),
        html.escape(f"{result.function_name}()"),
        STATUS_BADGES[status],
        str(result.cyclomatic.score),
        str(result.cognitive.score),
    ]
    tds = "".join(f"<td>{c}</td>" for c in cells)
    return f'        <tr data-status="{_ROW_STATUS[status]}">{tds}</tr>'


def create_report(file_results: list[FileComplexityResult]) -> str:
    """Render the HTML report for a batch of analyzed files."""
    rows = [_row(fr.file_name, r) for fr in file_results for r in fr.results]
    errors = sum(1 for fr in file_results for r in fr.results if r.threshold_status == ThresholdStatus.ERROR)
    warnings = sum(1 for fr in file_results for r in fr.results if r.threshold_status == ThresholdStatus.WARNING)
    summary = f"{len(file_results)} files, {len(rows)} functions, {errors} errors, {warnings} warnings"
    return _PAGE.format(summary=html.escape(summary), rows="\n".join(rows))


def write_report(file_results: list[FileComplexityResult], output_dir: str | Path) -> Path:
    """Write ``complexity-report.html`` into *output_dir* (created if needed)."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / REPORT_FILE_NAME
    path.write_text(create_report(file_results), encoding="utf-8")
    log.debug("Wrote HTML report to %s", path)
    return path
