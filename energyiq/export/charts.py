"""
Matplotlib charts for a calculation result.
"""

import logging
from pathlib import Path

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt

from energyiq.storage.models import CalculationResult

logger = logging.getLogger(__name__)


def draw_share_pie(ax, result: CalculationResult) -> None:
    """Pie of each device's share of monthly consumption."""
    slices = [item for item in result.devices if item.monthly_kwh > 0]
    if not slices:
        ax.text(0.5, 0.5, "No consumption", ha='center', va='center', fontsize=12)
        ax.axis('off')
        return

    colors = plt.cm.viridis([i / max(len(slices) - 1, 1) for i in range(len(slices))])
    ax.pie(
        [item.monthly_kwh for item in slices],
        labels=[item.device.type.value for item in slices],
        autopct='%1.1f%%',
        startangle=90,
        colors=colors,
        wedgeprops={'edgecolor': 'white', 'linewidth': 1.5}
    )
    ax.set_title('Share of Monthly Consumption', fontsize=13, fontweight='bold', pad=15)
    ax.axis('equal')


def draw_cost_bars(ax, result: CalculationResult) -> None:
    """Bar chart of monthly cost per device, labelled with values."""
    names = [item.device.type.value for item in result.devices]
    costs = [item.monthly_cost for item in result.devices]

    bars = ax.bar(range(len(names)), costs, color='#2ecc71', alpha=0.85,
                  edgecolor='black', linewidth=1)
    ax.set_xticks(range(len(names)))
    ax.set_xticklabels(names, rotation=20, ha='right')
    ax.set_ylabel(f'Monthly Cost ({result.currency})', fontsize=11, fontweight='bold')
    ax.set_title('Monthly Cost by Device', fontsize=13, fontweight='bold', pad=15)
    ax.grid(True, alpha=0.3, axis='y')

    for bar, cost in zip(bars, costs):
        ax.text(bar.get_x() + bar.get_width() / 2., bar.get_height(),
                f'{cost:,.2f}', ha='center', va='bottom', fontweight='bold', fontsize=9)


def write_chart_png(result: CalculationResult, path: str) -> Path:
    """Save a pie of consumption share next to a bar chart of monthly cost.

    Args:
        result: Calculation to plot
        path: Destination PNG; parent directories are created

    Returns:
        Path of the written file
    """
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    plt.close('all')
    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(14, 6))
    draw_share_pie(ax1, result)
    draw_cost_bars(ax2, result)
    fig.suptitle(
        f"Energy Report: {result.total_monthly_kwh:,.2f} kWh/month, "
        f"{result.currency}{result.total_monthly_cost:,.2f}/month",
        fontsize=14, fontweight='bold'
    )

    fig.tight_layout(pad=2.0)
    fig.savefig(output_path, dpi=150, facecolor='white', edgecolor='white')
    plt.close(fig)

    logger.info("Saved chart to %s", output_path)
    return output_path
