"""
Simple HTML Reporter for edna_compare
Collects narrative, tables and figures for one run and writes a self-contained HTML file
"""
import base64
import datetime
import io
import logging
import webbrowser
from pathlib import Path

import matplotlib.pyplot as plt


# Click a header of any table.sortable to sort by that column; blank cells sort last
SORT_SCRIPT = """
<script>
document.querySelectorAll('table.sortable').forEach(function (table) {
  table.querySelectorAll('thead th').forEach(function (th, col) {
    th.style.cursor = 'pointer';
    th.addEventListener('click', function () {
      var body = table.tBodies[0];
      var rows = Array.from(body.rows);
      var asc = th.dataset.order !== 'asc';
      th.dataset.order = asc ? 'asc' : 'desc';
      rows.sort(function (a, b) {
        var x = a.cells[col].innerText.trim(), y = b.cells[col].innerText.trim();
        if (x === '' || y === '') { return (x === '') - (y === ''); }
        var nx = parseFloat(x.replace(/,/g, '')), ny = parseFloat(y.replace(/,/g, ''));
        var cmp = (!isNaN(nx) && !isNaN(ny)) ? nx - ny : x.localeCompare(y);
        return asc ? cmp : -cmp;
      });
      rows.forEach(function (r) { body.appendChild(r); });
    });
  });
});
</script>
"""


class HTMLReporter:
    def __init__(self, filename="w8_comparison_report.html", title="edna_compare W8 Comparison Report"):
        self.filename = filename
        self.title = title
        self.sections = []
        self.status = "RUNNING"
        self.start_time = datetime.datetime.now()
        self.error_message = None
        self.warnings = []  # To track warning messages

    def _get_status_color(self):
        if self.status == "SUCCESS":
            return "#28a745"  # Green
        elif self.status == "FAILED":
            return "#dc3545"  # Red
        elif self.status == "WARNING":
            return "#ffc107"  # Yellow for warning
        else:
            return "#6c757d"  # Grey for running or other states

    def add_section(self, title, level=2):
        """Add a section header"""
        self.sections.append({
            'type': 'section',
            'content': f"<h{level}>{title}</h{level}>"
        })

    def add_text(self, text):
        """Add plain text"""
        self.sections.append({
            'type': 'text',
            'content': f"<p>{text}</p>"
        })

    def add_list(self, items, title=None):
        """Add a list of items"""
        content = ""
        if title:
            content += f"<h4>{title}</h4>"
        content += "<ul>"
        for item in items:
            content += f"<li>{item}</li>"
        content += "</ul>"

        self.sections.append({
            'type': 'list',
            'content': content
        })

    def add_dataframe(self, df, title=None, max_rows=10, index=False):
        """Add a pandas DataFrame as HTML table"""
        content = ""
        if title:
            content += f"<h4>{title}</h4>"

        content += f"<p><strong>Shape:</strong> {df.shape[0]:,} rows × {df.shape[1]} columns</p>"

        df_display = df.head(max_rows) if len(df) > max_rows else df
        table_html = df_display.to_html(classes="table table-striped", index=index, na_rep="")

        if len(df) > max_rows:
            content += f"<p><em>Showing first {max_rows} rows of {len(df):,} total rows</em></p>"

        content += f'<div class="table-container">{table_html}</div>'

        self.sections.append({
            'type': 'dataframe',
            'content': content
        })

    def add_figure(self, fig, title=None, close=True):
        """Embed a matplotlib figure as an inline PNG"""
        buffer = io.BytesIO()
        fig.savefig(buffer, format='png', dpi=110, bbox_inches='tight')
        if close:
            plt.close(fig)
        encoded = base64.b64encode(buffer.getvalue()).decode('ascii')

        content = ""
        if title:
            content += f"<h4>{title}</h4>"
        content += f'<div class="figure"><img src="data:image/png;base64,{encoded}" alt="{title or "figure"}"></div>'

        self.sections.append({
            'type': 'figure',
            'content': content
        })

    def add_html_table(self, table_html, title=None, note=None):
        """Add a pre-rendered HTML table (e.g. a pandas Styler); tables with class 'sortable' get click-to-sort headers"""
        content = ""
        if title:
            content += f"<h4>{title}</h4>"
        if note:
            content += f"<p><small><em>{note}</em></small></p>"
        content += f'<div class="table-container">{table_html}</div>'

        self.sections.append({
            'type': 'html_table',
            'content': content
        })

    def add_success(self, message):
        """Add a success message"""
        self.sections.append({
            'type': 'success',
            'content': f'<div class="alert alert-success">{message}</div>'
        })

    def add_warning(self, message):
        """Add a warning message and track it"""
        self.warnings.append(message)
        self.sections.append({
            'type': 'warning',
            'content': f'<div class="alert alert-warning"><strong>WARNING:</strong> {message}</div>'
        })

    def add_error(self, message):
        """Add an error message and automatically set report status to FAILED"""
        self.error_message = message
        self.status = "FAILED"
        self.sections.append({
            'type': 'error',
            'content': f'<div class="alert alert-danger"><strong>ERROR:</strong> {message}</div>'
        })

    def set_success(self):
        """Mark the report as successful (only if not already failed)"""
        if self.status != "FAILED":
            self.status = "SUCCESS"

    def set_warning(self):
        """Mark the report with a warning status (only if not already failed)"""
        if self.status != "FAILED":
            self.status = "WARNING"

    def set_status(self, status, error_message=None):
        """Set the status (SUCCESS, WARNING or FAILED) with optional error message"""
        # Don't allow overriding FAILED status with SUCCESS or WARNING
        if self.status == "FAILED" and status in ["SUCCESS", "WARNING"]:
            return

        self.status = status
        if error_message:
            self.error_message = error_message
            self.add_error(error_message)

    def save(self):
        """Just save the HTML file without opening"""
        self._write_html()

    def save_and_open(self):
        """Save the HTML file and open it in browser"""
        self._write_html()
        self._open_in_browser()

    def render(self):
        """Return the complete HTML document"""
        end_time = datetime.datetime.now()
        duration = end_time - self.start_time

        html_content = f"""
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{self.title}</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 20px; background-color: #f8f9fa; }}
        .container {{ max-width: 1200px; margin: 0 auto; background-color: white; padding: 40px; border-radius: 12px; box-shadow: 0 8px 16px rgba(0,0,0,0.1); border: 1px solid #e9ecef; }}
        .status {{ padding: 20px; margin-bottom: 20px; border-radius: 5px; text-align: center; font-size: 24px; font-weight: bold; color: white; background-color: {self._get_status_color()}; }}
        .alert {{ padding: 15px; margin: 10px 0; border-radius: 4px; }}
        .alert-success {{ background-color: #d4edda; border-color: #c3e6cb; color: #155724; }}
        .alert-warning {{ background-color: #fff3cd; border-color: #ffeaa7; color: #856404; }}
        .alert-danger {{ background-color: #f8d7da; border-color: #f5c6cb; color: #721c24; }}
        .table-container {{ overflow-x: auto; margin: 10px 0; max-width: 100%; border: 1px solid #ddd; border-radius: 4px; max-height: 700px; }}
        .table {{ width: 100%; border-collapse: collapse; margin: 0; }}
        .table th, .table td {{ padding: 6px 10px; text-align: left; border: 1px solid #ddd; white-space: nowrap; }}
        .table-striped tr:nth-child(even) {{ background-color: #f2f2f2; }}
        .table th {{ background-color: #e9ecef; font-weight: bold; position: sticky; top: 0; }}
        .figure img {{ max-width: 100%; height: auto; }}
        .metadata {{ background-color: #f8f9fa; padding: 15px; border-radius: 5px; margin-bottom: 20px; }}
        h1 {{ color: #212529; font-size: 2.2rem; font-weight: 700; text-align: center; margin: 30px 0 20px 0; }}
        h2, h3, h4 {{ color: #343a40; }}
        pre {{ background-color: #f8f9fa; padding: 10px; border-radius: 4px; overflow-x: auto; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="status">{self.status}</div>

        <div class="metadata">
            <h3>Run Information</h3>
            <p><strong>Start Time:</strong> {self.start_time.strftime('%Y-%m-%d %H:%M:%S')}</p>
            <p><strong>End Time:</strong> {end_time.strftime('%Y-%m-%d %H:%M:%S')}</p>
            <p><strong>Duration:</strong> {str(duration).split('.')[0]}</p>
            <p><strong>Report File:</strong> {self.filename}</p>
        </div>

        <h1>{self.title}</h1>
"""

        for section in self.sections:
            html_content += section['content'] + "\n"

        html_content += SORT_SCRIPT
        html_content += """
    </div>
</body>
</html>
"""
        return html_content

    def _write_html(self):
        """Write the complete HTML file"""
        Path(self.filename).parent.mkdir(parents=True, exist_ok=True)
        with open(self.filename, 'w', encoding='utf-8') as f:
            f.write(self.render())

    def _open_in_browser(self):
        """Open the HTML file in the default browser"""
        try:
            file_path = Path(self.filename).resolve()
            webbrowser.open(f"file://{file_path}")
        except webbrowser.Error as e:
            logging.warning(f"Could not open browser automatically: {e}")
            logging.warning(f"Please open {self.filename} manually in your browser")
