"""
Appliance catalogue.

Closed set of device types with their default wattage, icon and
educational tooltip data.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class DeviceType(Enum):
    """Supported appliance categories."""
    AC = "AC"
    FAN = "Fan"
    TV = "TV"
    REFRIGERATOR = "Refrigerator"
    WASHING_MACHINE = "Washing Machine"
    MICROWAVE = "Microwave"
    WATER_HEATER = "Water Heater"
    LIGHT_BULB = "Light Bulb"
    COMPUTER = "Computer"
    IRON = "Iron"
    HAIR_DRYER = "Hair Dryer"
    DISHWASHER = "Dishwasher"
    ELECTRIC_STOVE = "Electric Stove"
    ROUTER = "Router"
    PHONE_CHARGER = "Phone Charger"

    @property
    def profile(self) -> "DeviceProfile":
        return DEVICE_PROFILES[self]

    @property
    def default_wattage(self) -> int:
        return DEVICE_PROFILES[self].default_wattage

    @property
    def icon(self) -> str:
        return DEVICE_PROFILES[self].icon

    @property
    def label(self) -> str:
        """Icon and name, as shown in prompts and reports."""
        return f"{self.icon} {self.value}"


@dataclass(frozen=True)
class DeviceProfile:
    """Static data associated with a device type."""
    default_wattage: int
    icon: str
    avg_wattage: str
    tip: str
    fun_fact: str
    suggestion_rules: Tuple[str, ...] = ()

    @property
    def tooltip(self) -> str:
        """Typical wattage, a usage tip and a fun fact, one per line."""
        return (
            f"⚡ Typical: {self.avg_wattage}\n"
            f"💡 Tip: {self.tip}\n"
            f"🤓 Fun fact: {self.fun_fact}"
        )


DEVICE_PROFILES: Dict[DeviceType, DeviceProfile] = {
    DeviceType.AC: DeviceProfile(
        default_wattage=1500,
        icon="❄️",
        avg_wattage="1000-2500W",
        tip="Set it to 24°C and clean the filters monthly.",
        fun_fact="An AC is often the single largest load in a warm-climate home.",
        suggestion_rules=(
            "Set the thermostat to 24°C; every degree lower adds about 6% to its consumption.",
            "Clean or replace the filters monthly to keep the compressor efficient.",
            "Use the timer or sleep mode so it does not run all night at full power.",
            "Pair the AC with a ceiling fan so a higher set point still feels cool.",
        ),
    ),
    DeviceType.FAN: DeviceProfile(
        default_wattage=75,
        icon="🌀",
        avg_wattage="50-100W",
        tip="BLDC fans use up to 65% less power than regular ones.",
        fun_fact="A ceiling fan costs about a twentieth of an AC to run.",
        suggestion_rules=(
            "Switch to a BLDC fan; it draws around 30W instead of 75W.",
            "Turn fans off in empty rooms, they cool people not spaces.",
        ),
    ),
    DeviceType.TV: DeviceProfile(
        default_wattage=120,
        icon="📺",
        avg_wattage="60-200W",
        tip="Turn it off at the wall; standby still draws power.",
        fun_fact="Lowering screen brightness can cut TV consumption by a third.",
        suggestion_rules=(
            "Lower the backlight or enable the eco picture mode.",
            "Switch the TV off at the socket instead of leaving it on standby.",
        ),
    ),
    DeviceType.REFRIGERATOR: DeviceProfile(
        default_wattage=200,
        icon="🧊",
        avg_wattage="100-400W",
        tip="Keep it 3-4°C and leave space behind for ventilation.",
        fun_fact="A fridge runs 24 hours a day but its compressor cycles on and off.",
        suggestion_rules=(
            "Keep the fridge at 3-4°C and the freezer at -18°C.",
            "Leave at least 10 cm behind the fridge so the coils can shed heat.",
            "Check the door seals; a leaky gasket keeps the compressor running.",
        ),
    ),
    DeviceType.WASHING_MACHINE: DeviceProfile(
        default_wattage=500,
        icon="🧺",
        avg_wattage="400-1000W",
        tip="Wash full loads in cold water.",
        fun_fact="Most of a washer's energy goes into heating water.",
        suggestion_rules=(
            "Run only full loads and use the cold wash cycle when possible.",
            "Use a high spin speed so clothes need less drying time.",
        ),
    ),
    DeviceType.MICROWAVE: DeviceProfile(
        default_wattage=1200,
        icon="📡",
        avg_wattage="800-1500W",
        tip="Reheating in a microwave beats using the stove.",
        fun_fact="A microwave uses roughly half the energy of an oven for small meals.",
        suggestion_rules=(
            "Use the microwave instead of the stove for reheating small portions.",
            "Unplug it when idle; the clock display draws power all day.",
        ),
    ),
    DeviceType.WATER_HEATER: DeviceProfile(
        default_wattage=3000,
        icon="🔥",
        avg_wattage="2000-4000W",
        tip="Set it to 50°C and use a timer.",
        fun_fact="Water heating can be a quarter of a household's electricity bill.",
        suggestion_rules=(
            "Lower the thermostat to 50°C; higher settings mostly waste heat.",
            "Put the heater on a timer so it only runs before you need hot water.",
            "Insulate the tank and pipes to reduce standby heat loss.",
        ),
    ),
    DeviceType.LIGHT_BULB: DeviceProfile(
        default_wattage=60,
        icon="💡",
        avg_wattage="5-100W",
        tip="LEDs use up to 75% less energy than incandescent bulbs.",
        fun_fact="A 9W LED gives the same light as a 60W incandescent bulb.",
        suggestion_rules=(
            "Replace incandescent bulbs with LEDs for up to 75% savings on lighting.",
            "Use daylight and motion sensors in corridors and bathrooms.",
        ),
    ),
    DeviceType.COMPUTER: DeviceProfile(
        default_wattage=300,
        icon="💻",
        avg_wattage="50-500W",
        tip="Enable sleep mode after 10 minutes of inactivity.",
        fun_fact="A laptop uses about a fifth of the power of a desktop.",
        suggestion_rules=(
            "Enable sleep after 10 minutes of inactivity.",
            "Shut down at night and switch off peripherals at the power strip.",
        ),
    ),
    DeviceType.IRON: DeviceProfile(
        default_wattage=1000,
        icon="👔",
        avg_wattage="800-1200W",
        tip="Iron clothes in batches to avoid reheating.",
        fun_fact="Irons draw most power while heating up.",
        suggestion_rules=(
            "Iron in one batch per week so the iron heats up only once.",
            "Switch off a few minutes early and finish with the residual heat.",
        ),
    ),
    DeviceType.HAIR_DRYER: DeviceProfile(
        default_wattage=1800,
        icon="💇",
        avg_wattage="1200-2000W",
        tip="Towel-dry first to cut drying time.",
        fun_fact="A hair dryer pulls as much power as a small room heater.",
        suggestion_rules=(
            "Towel-dry first to halve the drying time.",
            "Use the lower heat setting; it is gentler and cheaper.",
        ),
    ),
    DeviceType.DISHWASHER: DeviceProfile(
        default_wattage=1800,
        icon="🍽️",
        avg_wattage="1200-2400W",
        tip="Run it only when full and skip heated drying.",
        fun_fact="A full dishwasher uses less water than washing by hand.",
        suggestion_rules=(
            "Run the dishwasher only when full and use the eco programme.",
            "Turn off heated drying and let the dishes air dry.",
        ),
    ),
    DeviceType.ELECTRIC_STOVE: DeviceProfile(
        default_wattage=2000,
        icon="🍳",
        avg_wattage="1000-3000W",
        tip="Match pan size to the burner and use lids.",
        fun_fact="Induction cooktops are about 85% efficient versus 70% for coil stoves.",
        suggestion_rules=(
            "Cover pans with lids; food cooks faster on lower heat.",
            "Match the pan to the burner size so less heat escapes.",
            "Consider an induction cooktop for faster, more efficient cooking.",
        ),
    ),
    DeviceType.ROUTER: DeviceProfile(
        default_wattage=12,
        icon="📶",
        avg_wattage="5-20W",
        tip="Schedule it off overnight if nobody uses it.",
        fun_fact="A router running all year uses about 100 kWh.",
        suggestion_rules=(
            "Schedule the router to switch off overnight.",
        ),
    ),
    DeviceType.PHONE_CHARGER: DeviceProfile(
        default_wattage=5,
        icon="🔌",
        avg_wattage="2-20W",
        tip="Unplug chargers once the phone is full.",
        fun_fact="A charger left plugged in still draws a small phantom load.",
        suggestion_rules=(
            "Unplug chargers when not in use to avoid phantom loads.",
        ),
    ),
}


def match_device_type(text: str) -> Optional[DeviceType]:
    """Case-insensitively match user text to a device type.

    Returns None when nothing matches.
    """
    needle = text.strip().lower()
    for device_type in DeviceType:
        if device_type.value.lower() == needle:
            return device_type
    return None
