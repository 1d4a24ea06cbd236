"""
Data models for storage layer.

Defines devices and the immutable calculation snapshots kept in history.
"""

import random
import string
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Tuple

from energyiq.core.devices import DeviceType

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_id() -> str:
    """Generate an opaque unique id: epoch milliseconds plus a random suffix."""
    suffix = "".join(random.choice(_ID_ALPHABET) for _ in range(7))
    return f"{int(time.time() * 1000)}-{suffix}"


@dataclass(frozen=True)
class Device:
    """One appliance entry declared by the user.

    Created once all four fields have been validated by the dialogue;
    never mutated afterwards.
    """
    id: str
    type: DeviceType
    quantity: int
    wattage: int
    hours_per_day: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "quantity": self.quantity,
            "wattage": self.wattage,
            "hoursPerDay": self.hours_per_day,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Device":
        return cls(
            id=data["id"],
            type=DeviceType(data["type"]),
            quantity=int(data["quantity"]),
            wattage=int(data["wattage"]),
            hours_per_day=float(data["hoursPerDay"]),
        )


@dataclass(frozen=True)
class DeviceResult:
    """Derived figures for a single device."""
    device: Device
    daily_kwh: float
    monthly_kwh: float
    monthly_cost: float
    percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device": self.device.to_dict(),
            "dailyKwh": self.daily_kwh,
            "monthlyKwh": self.monthly_kwh,
            "monthlyCost": self.monthly_cost,
            "percentage": self.percentage,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeviceResult":
        return cls(
            device=Device.from_dict(data["device"]),
            daily_kwh=float(data["dailyKwh"]),
            monthly_kwh=float(data["monthlyKwh"]),
            monthly_cost=float(data["monthlyCost"]),
            percentage=float(data["percentage"]),
        )


@dataclass(frozen=True)
class CalculationResult:
    """Immutable snapshot of one completed device-collection session.

    Devices keep the order in which the user declared them.
    """
    id: str
    timestamp: datetime
    devices: Tuple[DeviceResult, ...]
    total_daily_kwh: float
    total_monthly_kwh: float
    total_monthly_cost: float
    rate_per_kwh: float
    currency: str
    country: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "devices": [d.to_dict() for d in self.devices],
            "totalDailyKwh": self.total_daily_kwh,
            "totalMonthlyKwh": self.total_monthly_kwh,
            "totalMonthlyCost": self.total_monthly_cost,
            "ratePerKwh": self.rate_per_kwh,
            "currency": self.currency,
            "country": self.country,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CalculationResult":
        return cls(
            id=data["id"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            devices=tuple(DeviceResult.from_dict(d) for d in data["devices"]),
            total_daily_kwh=float(data["totalDailyKwh"]),
            total_monthly_kwh=float(data["totalMonthlyKwh"]),
            total_monthly_cost=float(data["totalMonthlyCost"]),
            rate_per_kwh=float(data["ratePerKwh"]),
            currency=data["currency"],
            country=data["country"],
        )
