"""
CSV export of a calculation result.
"""

import csv
import logging
from pathlib import Path

from energyiq.core.formatting import format_duration
from energyiq.storage.models import CalculationResult

logger = logging.getLogger(__name__)

CSV_HEADER = [
    "Device",
    "Quantity",
    "Wattage (W)",
    "Usage/Day",
    "Daily kWh",
    "Monthly kWh",
    "Monthly Cost",
    "Share (%)",
]


def write_csv(result: CalculationResult, path: str) -> Path:
    """Write one row per device plus a TOTAL row.

    Args:
        result: Calculation to export
        path: Destination file; parent directories are created

    Returns:
        Path of the written file
    """
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)
        for item in result.devices:
            device = item.device
            writer.writerow([
                device.type.value,
                device.quantity,
                device.wattage,
                format_duration(device.hours_per_day),
                f"{item.daily_kwh:.2f}",
                f"{item.monthly_kwh:.2f}",
                f"{result.currency}{item.monthly_cost:.2f}",
                f"{item.percentage:.2f}",
            ])
        writer.writerow([
            "TOTAL",
            sum(item.device.quantity for item in result.devices),
            "",
            "",
            f"{result.total_daily_kwh:.2f}",
            f"{result.total_monthly_kwh:.2f}",
            f"{result.currency}{result.total_monthly_cost:.2f}",
            "100.00" if result.devices and result.total_monthly_kwh > 0 else "0.00",
        ])

    logger.info("Saved CSV export to %s", output_path)
    return output_path
