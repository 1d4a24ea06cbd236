"""
Energy and cost calculations.

Turns a list of devices and a tariff into per-device and total figures.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence, Tuple

from energyiq.storage.models import CalculationResult, Device, DeviceResult, generate_id

DAYS_IN_MONTH = 30


def round2(value: float) -> float:
    """Round to 2 decimal places, ties away from zero.

    The shortest repr of the float is rounded rather than its binary
    expansion, so 1.005 becomes 1.01.
    """
    rounded = Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return float(rounded)


def estimate_device_energy(device: Device) -> Tuple[float, float]:
    """Unrounded daily and monthly kWh for one device.

    Energy (kWh) = watts * quantity * hours / 1000, monthly = daily * 30.
    """
    daily_kwh = device.wattage * device.quantity * device.hours_per_day / 1000
    return daily_kwh, daily_kwh * DAYS_IN_MONTH


def calculate_all_devices(
    devices: Sequence[Device],
    rate_per_kwh: float,
    currency: str,
    country: str
) -> CalculationResult:
    """Calculate the full result for a list of devices.

    Per-device values are rounded for display only. Totals, costs and
    percentage shares are derived from the raw values and rounded once at
    the end, so rounding error does not compound across devices.

    Inputs are trusted: the dialogue is responsible for validating every
    device before it reaches this function.

    Args:
        devices: Devices in declaration order
        rate_per_kwh: Tariff in currency units per kWh
        currency: Currency symbol of the tariff
        country: Country the tariff belongs to

    Returns:
        CalculationResult with a fresh id and timestamp
    """
    raw: List[Tuple[Device, float, float]] = []
    for device in devices:
        daily_kwh, monthly_kwh = estimate_device_energy(device)
        raw.append((device, daily_kwh, monthly_kwh))

    total_daily = sum(daily for _, daily, _ in raw)
    total_monthly = sum(monthly for _, _, monthly in raw)

    results = []
    for device, daily_kwh, monthly_kwh in raw:
        percentage = round2(monthly_kwh / total_monthly * 100) if total_monthly > 0 else 0.0
        results.append(DeviceResult(
            device=device,
            daily_kwh=round2(daily_kwh),
            monthly_kwh=round2(monthly_kwh),
            monthly_cost=round2(monthly_kwh * rate_per_kwh),
            percentage=percentage
        ))

    return CalculationResult(
        id=generate_id(),
        timestamp=datetime.now(),
        devices=tuple(results),
        total_daily_kwh=round2(total_daily),
        total_monthly_kwh=round2(total_monthly),
        total_monthly_cost=round2(total_monthly * rate_per_kwh),
        rate_per_kwh=rate_per_kwh,
        currency=currency,
        country=country
    )


@dataclass(frozen=True)
class HistorySummary:
    """Aggregate figures across saved calculations."""
    total_calculations: int
    total_devices: int
    average_monthly_cost: float
    latest: Optional[CalculationResult] = None


def summarize_history(results: Sequence[CalculationResult]) -> HistorySummary:
    """Summarize saved calculations given newest first.

    The average is the plain mean of each total_monthly_cost.
    """
    if not results:
        return HistorySummary(total_calculations=0, total_devices=0, average_monthly_cost=0.0)

    return HistorySummary(
        total_calculations=len(results),
        total_devices=sum(len(result.devices) for result in results),
        average_monthly_cost=round2(sum(r.total_monthly_cost for r in results) / len(results)),
        latest=results[0]
    )
