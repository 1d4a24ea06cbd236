"""
Energy-saving tips.

Static tip pools, rule-based fallback tips and the prompt used to ask
an LLM for personalised tips.
"""

import random
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence, TypeVar

from energyiq.core.devices import DeviceType
from energyiq.core.formatting import format_number
from energyiq.storage.models import CalculationResult

T = TypeVar("T")

MAX_TIPS = 6
ESTIMATED_SAVINGS_SHARE = 0.18


@dataclass(frozen=True)
class EnergyTip:
    """A single energy-saving tip."""
    icon: str
    title: str
    description: str
    savings: Optional[str] = None


@dataclass(frozen=True)
class TipsReport:
    """Tips for one calculation plus where they came from."""
    tips: List[EnergyTip]
    estimated_savings: str
    generated_at: datetime
    source: str  # "ai" or "fallback"


@dataclass(frozen=True)
class Suggestion:
    """Device-specific suggestion ranked by priority."""
    icon: str
    title: str
    description: str
    savings_estimate: str
    priority: str  # "high", "medium" or "low"


ENERGY_TIPS: List[EnergyTip] = [
    EnergyTip("💡", "Switch to LED Bulbs",
              "LED bulbs use up to 75% less energy than incandescent bulbs and last 25x longer."),
    EnergyTip("❄️", "Optimize AC Temperature",
              "Set your AC to 24°C instead of 18°C. Each degree saves about 6% energy."),
    EnergyTip("🔌", "Unplug Idle Devices",
              "Phantom loads from idle devices can account for 5-10% of your electricity bill."),
    EnergyTip("🌀", "Use Ceiling Fans",
              "Ceiling fans use only 75W compared to AC's 1500W. Use fans when possible."),
    EnergyTip("⭐", "Buy Star-Rated Appliances",
              "5-star rated appliances consume up to 45% less energy than non-rated ones."),
    EnergyTip("☀️", "Use Natural Light",
              "Open curtains during the day to reduce the need for artificial lighting."),
    EnergyTip("🧺", "Full Load Washing",
              "Run your washing machine only with full loads to maximize efficiency."),
    EnergyTip("🔥", "Reduce Water Heating",
              "Water heaters are energy hogs. Reduce temperature to 50°C and limit usage."),
]

# Shown by the "tips" keyword in the chat
CHAT_TIPS: List[str] = [
    "💡 Switch to LED bulbs — save up to 75% on lighting.",
    "❄️ Set AC to 24°C — each degree saves ~6% energy.",
    "🔌 Unplug idle devices — phantom loads = 5-10% of bill.",
    "🌀 Use ceiling fans instead of AC when possible.",
    "⭐ Buy 5-star rated appliances — up to 45% less energy.",
    "☀️ Use natural light during daytime.",
    "🧺 Run washing machines on full loads only.",
]

# Printed at the end of the PDF report
REPORT_TIPS: List[str] = [
    "Switch to LED bulbs to save up to 75% on lighting.",
    "Set AC to 24°C, each degree saves ~6% energy.",
    "Unplug idle devices to avoid phantom loads (5-10% of bill).",
    "Use ceiling fans instead of AC when possible.",
    "Run washing machines only with full loads.",
]

QUESTION_SYSTEM_PROMPT = """You are EnergyIQ, a smart AI assistant built into a Smart Energy Calculator app. You can answer any question the user asks.

About this app:
- Users add their electrical devices (type, quantity, wattage, hours of usage per day).
- The app calculates energy consumption using these formulas:
  * Daily kWh = (Wattage x Quantity x Hours per day) / 1000
  * Monthly kWh = Daily kWh x 30
  * Monthly Cost = Monthly kWh x Electricity Rate per kWh
  * Percentage share = (Device Monthly kWh / Total Monthly kWh) x 100
- The electricity rate is looked up from the user's country (default: India at approx ₹8/kWh).

Rules:
- For electricity and energy questions, provide extra detail and practical tips.
- Keep answers concise (max 3-4 short paragraphs).
- Use simple language anyone can understand.
- If you mention numbers, include units where applicable.
- Do NOT use markdown formatting like ** or ## — use plain text only."""


def choose_random_subset(count: int, pool: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Pick up to count distinct items from pool in random order."""
    rng = rng or random.Random()
    return rng.sample(list(pool), min(count, len(pool)))


def random_energy_tips(count: int = 4, rng: Optional[random.Random] = None) -> List[EnergyTip]:
    return choose_random_subset(count, ENERGY_TIPS, rng)


def _whole(amount: float) -> int:
    """Round to a whole currency unit, ties away from zero."""
    return int(Decimal(repr(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _money(currency: str, amount: float) -> str:
    return f"{currency}{_whole(amount)}/mo"


def estimated_savings_label(result: CalculationResult) -> str:
    """Default total monthly savings claim for a result."""
    return _money(result.currency, result.total_monthly_cost * ESTIMATED_SAVINGS_SHARE)


def fallback_tips(result: CalculationResult) -> TipsReport:
    """Rule-based tips used when the AI backend is unavailable.

    Targets the most expensive device first, adds an AC tip when an AC
    is present, then fills up with general tips.
    """
    currency = result.currency
    monthly_cost = result.total_monthly_cost
    tips: List[EnergyTip] = []

    by_cost = sorted(result.devices, key=lambda d: d.monthly_cost, reverse=True)
    if by_cost:
        top = by_cost[0]
        name = top.device.type.value
        savings = _money(currency, top.monthly_cost * 0.2)
        tips.append(EnergyTip(
            icon="⚡",
            title=f"Optimize {name} Usage",
            description=(
                f"Your {name} is your biggest energy consumer at {format_number(top.monthly_kwh)} kWh/mo. "
                f"Reduce usage by 1-2 hours daily to save ~{savings}."
            ),
            savings=savings
        ))

    ac = next((d for d in result.devices if d.device.type is DeviceType.AC), None)
    if ac is not None:
        savings = _money(currency, ac.monthly_cost * 0.25)
        tips.append(EnergyTip(
            icon="❄️",
            title="Set AC to 24°C",
            description=f"Each degree above 18°C saves ~6% energy. Setting to 24°C could save {savings}.",
            savings=savings
        ))

    tips.extend([
        EnergyTip(
            icon="💡",
            title="Switch to LED Bulbs",
            description="LED bulbs use 75% less energy than incandescent and last 25x longer. "
                        "Switch all bulbs for immediate savings.",
            savings=_money(currency, monthly_cost * 0.05)
        ),
        EnergyTip(
            icon="🔌",
            title="Eliminate Phantom Loads",
            description="Unplug chargers and devices when not in use. "
                        "Phantom loads account for 5-10% of your electricity bill.",
            savings=_money(currency, monthly_cost * 0.07)
        ),
        EnergyTip(
            icon="⭐",
            title="Upgrade to 5-Star Appliances",
            description="5-star rated appliances consume up to 45% less energy. "
                        "Prioritize replacing your highest-consuming devices.",
            savings=_money(currency, monthly_cost * 0.15)
        ),
        EnergyTip(
            icon="📊",
            title="Monitor & Schedule Usage",
            description="Track consumption patterns and shift heavy usage to off-peak hours. "
                        "Smart plugs can automate this.",
            savings=_money(currency, monthly_cost * 0.08)
        ),
    ])

    return TipsReport(
        tips=tips[:MAX_TIPS],
        estimated_savings=estimated_savings_label(result),
        generated_at=datetime.now(),
        source="fallback"
    )


_PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}
_PRIORITY_SAVINGS = {
    "high": ("15-30%", 0.2),
    "medium": ("8-15%", 0.1),
    "low": ("3-8%", 0.05),
}


def rule_suggestions(result: CalculationResult, rng: Optional[random.Random] = None) -> List[Suggestion]:
    """Device-specific suggestions ranked by each device's share of the bill.

    Devices above 30% of the cost are high priority, above 10% medium,
    the rest low. Devices above 20% get two rules instead of one.
    """
    rng = rng or random.Random()
    total_cost = result.total_monthly_cost
    currency = result.currency
    suggestions: List[Suggestion] = []

    for item in sorted(result.devices, key=lambda d: d.monthly_cost, reverse=True):
        device_type = item.device.type
        rules = device_type.profile.suggestion_rules
        if not rules:
            continue

        rule_count = 2 if item.monthly_cost > total_cost * 0.2 else 1
        if item.monthly_cost > total_cost * 0.3:
            priority = "high"
        elif item.monthly_cost > total_cost * 0.1:
            priority = "medium"
        else:
            priority = "low"
        percent, share = _PRIORITY_SAVINGS[priority]

        for rule in choose_random_subset(rule_count, rules, rng):
            suggestions.append(Suggestion(
                icon=device_type.icon,
                title=f"{device_type.value} Optimization",
                description=rule,
                savings_estimate=f"Save ~{currency}{_whole(item.monthly_cost * share)}/mo ({percent})",
                priority=priority
            ))

    if total_cost > 500:
        suggestions.append(Suggestion(
            icon="☀️",
            title="Consider Solar Panels",
            description="With your monthly bill, a rooftop solar system could pay for itself "
                        "in 3-4 years and save significantly.",
            savings_estimate=f"Save ~{currency}{_whole(total_cost * 0.6)}/mo",
            priority="high"
        ))

    if len(result.devices) >= 5:
        suggestions.append(Suggestion(
            icon="🏠",
            title="Smart Home Automation",
            description="With multiple devices, a smart power management system can automatically "
                        "optimize energy usage across all appliances.",
            savings_estimate=f"Save ~{currency}{_whole(total_cost * 0.12)}/mo",
            priority="medium"
        ))

    suggestions.sort(key=lambda s: _PRIORITY_ORDER[s.priority])
    return suggestions[:MAX_TIPS]


def build_tips_prompt(result: CalculationResult) -> str:
    """Build the LLM prompt asking for personalised tips as strict JSON."""
    currency = result.currency
    device_lines = "\n".join(
        f"{i}. {d.device.type.value} — {d.device.wattage}W × {d.device.hours_per_day}h/day "
        f"→ {format_number(d.monthly_kwh)} kWh/mo ({currency}{format_number(d.monthly_cost)}/mo)"
        for i, d in enumerate(result.devices, start=1)
    )

    return f"""You are an energy efficiency expert and sustainability advisor.

Based on the following household electricity usage data, provide personalized, practical, and cost-saving tips.

HOUSEHOLD DATA:
- Country: {result.country}
- Total monthly consumption: {format_number(result.total_monthly_kwh)} kWh
- Total monthly cost: {currency}{format_number(result.total_monthly_cost)}
- Currency: {currency}

DEVICE BREAKDOWN:
{device_lines}

INSTRUCTIONS:
1. Analyze the usage pattern and identify the biggest energy wasters.
2. Provide exactly 6 actionable energy-saving tips.
3. Each tip should directly relate to the user's actual devices and usage.
4. Include specific numbers (e.g., "save 15-20%", "reduce by 2 kWh/day").
5. At the end, provide an estimated total monthly savings amount in {currency}.

RESPONSE FORMAT (strict JSON — no markdown, no code fences):
{{
  "tips": [
    {{
      "icon": "<single emoji>",
      "title": "<short title, 3-6 words>",
      "description": "<actionable tip, 1-2 sentences with specific numbers>",
      "savings": "<estimated savings for this tip, e.g. '{currency}150/mo'>"
    }}
  ],
  "estimated_savings": "<total estimated monthly savings, e.g. '{currency}800/mo'>"
}}

Respond with ONLY the JSON object. No additional text."""
