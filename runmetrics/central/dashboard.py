"""HTML dashboard for the current metric values."""

from jinja2 import BaseLoader, Environment, select_autoescape

from ..metrics import format_counter, format_gauge

DASHBOARD_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <title>Metrics Dashboard</title>
    <style>
        body { font-family: Arial, sans-serif; margin: 20px; }
        .metric-section { margin-bottom: 30px; }
        .metric-item {
            padding: 8px;
            margin: 4px 0;
            background-color: #f5f5f5;
            border-radius: 4px;
            display: flex;
            justify-content: space-between;
        }
        .metric-name { font-weight: bold; }
        .metric-value { color: #666; }
        h2 { color: #333; border-bottom: 2px solid #ddd; padding-bottom: 10px; }
        .header { text-align: center; margin-bottom: 30px; }
    </style>
</head>
<body>
    <div class="header">
        <h1>Metrics Dashboard</h1>
        <p>Current metrics values</p>
    </div>

    <div class="metric-section">
        <h2>Gauge Metrics ({{ gauges|length }})</h2>
        {% for name, value in gauges %}
        <div class="metric-item">
            <span class="metric-name">{{ name }}</span>
            <span class="metric-value">{{ value }}</span>
        </div>
        {% else %}
        <p><em>No gauge metrics available</em></p>
        {% endfor %}
    </div>

    <div class="metric-section">
        <h2>Counter Metrics ({{ counters|length }})</h2>
        {% for name, value in counters %}
        <div class="metric-item">
            <span class="metric-name">{{ name }}</span>
            <span class="metric-value">{{ value }}</span>
        </div>
        {% else %}
        <p><em>No counter metrics available</em></p>
        {% endfor %}
    </div>
</body>
</html>
"""

_env = Environment(loader=BaseLoader(), autoescape=select_autoescape(default=True, default_for_string=True))
_template = _env.from_string(DASHBOARD_TEMPLATE)


def render_dashboard(gauges: dict[str, float], counters: dict[str, int]) -> str:
    """Render the dashboard from store snapshots, sorted by name."""
    return _template.render(
        gauges=[(name, format_gauge(value)) for name, value in sorted(gauges.items())],
        counters=[(name, format_counter(value)) for name, value in sorted(counters.items())],
    )
