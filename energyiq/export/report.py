"""
Single-page PDF report for a calculation result.

Rendered with matplotlib's PdfPages so no extra PDF library is needed.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
from matplotlib.backends.backend_pdf import PdfPages

from energyiq.core.formatting import format_currency, format_duration, format_kwh
from energyiq.core.tips import REPORT_TIPS
from energyiq.storage.models import CalculationResult

logger = logging.getLogger(__name__)

A4_INCHES = (8.27, 11.69)
TABLE_COLUMNS = ["Device", "Qty", "Watts", "Usage/Day", "Monthly kWh", "Cost", "Share"]
HEADER_COLOR = "#27ae60"


def _table_rows(result: CalculationResult):
    return [
        [
            item.device.type.value,
            str(item.device.quantity),
            f"{item.device.wattage}W",
            format_duration(item.device.hours_per_day),
            f"{item.monthly_kwh:,.2f}",
            format_currency(item.monthly_cost, result.currency),
            f"{item.percentage:.1f}%",
        ]
        for item in result.devices
    ]


def write_pdf_report(
    result: CalculationResult,
    path: str,
    generated_at: Optional[datetime] = None
) -> Path:
    """Write the report: title, summary, device table, tips and footer.

    Args:
        result: Calculation to report on
        path: Destination PDF; parent directories are created
        generated_at: Timestamp printed in the header (defaults to now)

    Returns:
        Path of the written file
    """
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    generated_at = generated_at or datetime.now()

    plt.close('all')
    fig = plt.figure(figsize=A4_INCHES)

    fig.text(0.5, 0.95, "EnergyIQ Energy Report", ha='center', fontsize=22,
             fontweight='bold', color=HEADER_COLOR)
    fig.text(0.5, 0.925, f"Generated {generated_at:%Y-%m-%d %H:%M}  |  {result.country}",
             ha='center', fontsize=10, color='#555555')

    summary = [
        ("Daily Usage", format_kwh(result.total_daily_kwh)),
        ("Monthly Usage", format_kwh(result.total_monthly_kwh)),
        ("Monthly Cost", format_currency(result.total_monthly_cost, result.currency)),
        ("Rate", f"{format_currency(result.rate_per_kwh, result.currency)}/kWh"),
    ]
    for i, (label, value) in enumerate(summary):
        x = 0.14 + i * 0.24
        fig.text(x, 0.87, label, ha='center', fontsize=9, color='#555555')
        fig.text(x, 0.845, value, ha='center', fontsize=12, fontweight='bold')

    fig.text(0.07, 0.79, "Device Breakdown", fontsize=14, fontweight='bold')
    rows = _table_rows(result)
    table_height = min(0.045 * (len(rows) + 1), 0.42)
    table_ax = fig.add_axes([0.07, 0.775 - table_height, 0.86, table_height])
    table_ax.axis('off')
    if rows:
        table = table_ax.table(cellText=rows, colLabels=TABLE_COLUMNS, loc='upper center',
                               cellLoc='center')
        table.auto_set_font_size(False)
        table.set_fontsize(9)
        table.scale(1, 1.4)
        for col in range(len(TABLE_COLUMNS)):
            header = table[0, col]
            header.set_facecolor(HEADER_COLOR)
            header.set_text_props(color='white', fontweight='bold')
    else:
        table_ax.text(0.5, 0.5, "No devices recorded", ha='center', va='center')

    tips_top = 0.775 - table_height - 0.06
    fig.text(0.07, tips_top, "Energy-Saving Tips", fontsize=14, fontweight='bold')
    for i, tip in enumerate(REPORT_TIPS, start=1):
        fig.text(0.09, tips_top - 0.03 * i, f"{i}. {tip}", fontsize=10)

    fig.text(0.5, 0.03, "Estimates assume a 30-day month and constant daily usage. "
             "Actual bills may differ.", ha='center', fontsize=8, color='#777777')

    with PdfPages(output_path) as pdf:
        pdf.savefig(fig)
        info = pdf.infodict()
        info['Title'] = f"EnergyIQ Report {result.id}"
    plt.close(fig)

    logger.info("Saved PDF report to %s", output_path)
    return output_path
