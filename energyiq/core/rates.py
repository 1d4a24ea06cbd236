"""
Electricity tariffs by country.

Fixed table of residential rates in local currency per kWh (2024 averages).
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_COUNTRY = "india"


@dataclass(frozen=True)
class CountryTariff:
    """Residential tariff for one country."""
    country: str
    rate_per_kwh: float
    currency: str
    region: str
    flag: str
    aliases: Tuple[str, ...] = ()

    @property
    def usd_per_kwh(self) -> float:
        """Approximate USD equivalent, rounded to 4 decimals."""
        return round(self.rate_per_kwh * TO_USD.get(self.currency, 1.0), 4)


@dataclass(frozen=True)
class TariffRate:
    """Tariff context handed to the dialogue and the calculator."""
    country: str
    rate_per_kwh: float
    currency: str
    source: str = "database"


# Approximate exchange rates to USD (2024)
TO_USD: Dict[str, float] = {
    "₹": 1 / 83, "¥": 1 / 150, "₩": 1 / 1350, "S$": 0.74, "Rp": 1 / 15700,
    "RM": 0.21, "฿": 0.028, "₫": 1 / 25000, "₱": 0.018, "₨": 0.0036,
    "৳": 0.0083, "Rs": 0.003, "AED": 0.27, "SAR": 0.27, "QAR": 0.27,
    "KWD": 3.25, "IRR": 1 / 42000, "IQD": 1 / 1310, "₪": 0.27, "£": 1.27,
    "€": 1.08, "kr": 0.095, "CHF": 1.13, "zł": 0.25, "Kč": 0.043,
    "Ft": 0.0028, "lei": 0.22, "₽": 0.011, "₺": 0.031, "₴": 0.024,
    "$": 1.0, "C$": 0.74, "MX$": 0.058, "R$": 0.2, "AR$": 0.001,
    "COP": 0.00025, "CLP": 0.001, "S/": 0.27, "R": 0.053, "₦": 0.00063,
    "E£": 0.021, "KSh": 0.0065, "GH₵": 0.064, "ETB": 0.017, "A$": 0.65,
    "NZ$": 0.6,
}


@dataclass(frozen=True)
class RateTable:
    """Fixed tariff table keyed by lower-case country name and aliases."""
    entries: Tuple[CountryTariff, ...]

    def _index(self) -> Dict[str, CountryTariff]:
        index = {}
        for entry in self.entries:
            index[entry.country.lower()] = entry
            for alias in entry.aliases:
                index[alias] = entry
        return index

    def get_tariff(self, country: str) -> CountryTariff:
        """Get the tariff for a country name or alias.

        Raises:
            ValueError: If the country is not in the table
        """
        key = country.strip().lower()
        index = self._index()
        if key not in index:
            raise ValueError(f"Unsupported country: {country}")
        return index[key]


RATE_TABLE = RateTable((
    # Asia
    CountryTariff("India", 8.00, "₹", "Asia", "🇮🇳"),
    CountryTariff("Japan", 31.00, "¥", "Asia", "🇯🇵"),
    CountryTariff("China", 0.54, "¥", "Asia", "🇨🇳"),
    CountryTariff("South Korea", 120.00, "₩", "Asia", "🇰🇷"),
    CountryTariff("Singapore", 0.33, "S$", "Asia", "🇸🇬"),
    CountryTariff("Indonesia", 1444.00, "Rp", "Asia", "🇮🇩"),
    CountryTariff("Malaysia", 0.57, "RM", "Asia", "🇲🇾"),
    CountryTariff("Thailand", 4.18, "฿", "Asia", "🇹🇭"),
    CountryTariff("Vietnam", 2870.00, "₫", "Asia", "🇻🇳"),
    CountryTariff("Philippines", 11.50, "₱", "Asia", "🇵🇭"),
    CountryTariff("Pakistan", 55.00, "₨", "Asia", "🇵🇰"),
    CountryTariff("Bangladesh", 9.00, "৳", "Asia", "🇧🇩"),
    CountryTariff("Sri Lanka", 50.00, "Rs", "Asia", "🇱🇰"),
    CountryTariff("Nepal", 12.00, "Rs", "Asia", "🇳🇵"),
    # Middle East
    CountryTariff("UAE", 0.38, "AED", "Middle East", "🇦🇪", ("united arab emirates",)),
    CountryTariff("Saudi Arabia", 0.18, "SAR", "Middle East", "🇸🇦"),
    CountryTariff("Qatar", 0.08, "QAR", "Middle East", "🇶🇦"),
    CountryTariff("Kuwait", 0.007, "KWD", "Middle East", "🇰🇼"),
    CountryTariff("Iran", 3200.00, "IRR", "Middle East", "🇮🇷"),
    CountryTariff("Iraq", 40.00, "IQD", "Middle East", "🇮🇶"),
    CountryTariff("Israel", 0.58, "₪", "Middle East", "🇮🇱"),
    # Europe
    CountryTariff("United Kingdom", 0.34, "£", "Europe", "🇬🇧", ("uk",)),
    CountryTariff("Germany", 0.39, "€", "Europe", "🇩🇪"),
    CountryTariff("France", 0.26, "€", "Europe", "🇫🇷"),
    CountryTariff("Italy", 0.32, "€", "Europe", "🇮🇹"),
    CountryTariff("Spain", 0.28, "€", "Europe", "🇪🇸"),
    CountryTariff("Netherlands", 0.40, "€", "Europe", "🇳🇱"),
    CountryTariff("Belgium", 0.36, "€", "Europe", "🇧🇪"),
    CountryTariff("Sweden", 1.80, "kr", "Europe", "🇸🇪"),
    CountryTariff("Norway", 1.50, "kr", "Europe", "🇳🇴"),
    CountryTariff("Denmark", 2.90, "kr", "Europe", "🇩🇰"),
    CountryTariff("Finland", 0.18, "€", "Europe", "🇫🇮"),
    CountryTariff("Switzerland", 0.27, "CHF", "Europe", "🇨🇭"),
    CountryTariff("Austria", 0.30, "€", "Europe", "🇦🇹"),
    CountryTariff("Portugal", 0.24, "€", "Europe", "🇵🇹"),
    CountryTariff("Ireland", 0.35, "€", "Europe", "🇮🇪"),
    CountryTariff("Poland", 1.10, "zł", "Europe", "🇵🇱"),
    CountryTariff("Greece", 0.25, "€", "Europe", "🇬🇷"),
    CountryTariff("Czech Republic", 6.50, "Kč", "Europe", "🇨🇿", ("czech",)),
    CountryTariff("Hungary", 46.00, "Ft", "Europe", "🇭🇺"),
    CountryTariff("Romania", 1.30, "lei", "Europe", "🇷🇴"),
    CountryTariff("Russia", 5.40, "₽", "Europe", "🇷🇺"),
    CountryTariff("Turkey", 4.70, "₺", "Europe", "🇹🇷"),
    CountryTariff("Ukraine", 2.64, "₴", "Europe", "🇺🇦"),
    # Americas
    CountryTariff("United States", 0.16, "$", "Americas", "🇺🇸", ("usa",)),
    CountryTariff("Canada", 0.17, "C$", "Americas", "🇨🇦"),
    CountryTariff("Mexico", 1.50, "MX$", "Americas", "🇲🇽"),
    CountryTariff("Brazil", 0.78, "R$", "Americas", "🇧🇷"),
    CountryTariff("Argentina", 75.00, "AR$", "Americas", "🇦🇷"),
    CountryTariff("Colombia", 800.00, "COP", "Americas", "🇨🇴"),
    CountryTariff("Chile", 150.00, "CLP", "Americas", "🇨🇱"),
    CountryTariff("Peru", 0.72, "S/", "Americas", "🇵🇪"),
    # Africa
    CountryTariff("South Africa", 3.60, "R", "Africa", "🇿🇦"),
    CountryTariff("Nigeria", 68.00, "₦", "Africa", "🇳🇬"),
    CountryTariff("Egypt", 2.50, "E£", "Africa", "🇪🇬"),
    CountryTariff("Kenya", 25.00, "KSh", "Africa", "🇰🇪"),
    CountryTariff("Ghana", 1.80, "GH₵", "Africa", "🇬🇭"),
    CountryTariff("Ethiopia", 0.90, "ETB", "Africa", "🇪🇹"),
    # Oceania
    CountryTariff("Australia", 0.35, "A$", "Oceania", "🇦🇺"),
    CountryTariff("New Zealand", 0.37, "NZ$", "Oceania", "🇳🇿"),
))


def lookup_rate(country: Optional[str] = None) -> TariffRate:
    """Look up the tariff for a country, falling back to India.

    Unknown or empty country names never fail; the default tariff is
    returned with source "default".
    """
    source = "database"
    try:
        tariff = RATE_TABLE.get_tariff(country or "")
    except ValueError:
        if country:
            logger.warning("No tariff for %r, using %s default", country, DEFAULT_COUNTRY)
        tariff = RATE_TABLE.get_tariff(DEFAULT_COUNTRY)
        source = "default"

    return TariffRate(
        country=tariff.country,
        rate_per_kwh=tariff.rate_per_kwh,
        currency=tariff.currency,
        source=source
    )


def all_rates(region: Optional[str] = None) -> List[CountryTariff]:
    """All tariffs in table order, optionally filtered by region."""
    if region is None:
        return list(RATE_TABLE.entries)
    wanted = region.strip().lower()
    return [entry for entry in RATE_TABLE.entries if entry.region.lower() == wanted]
