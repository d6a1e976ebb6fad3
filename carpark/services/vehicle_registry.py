"""
Vehicle registry lookup (rogg.is XML service).

The registry reports make, model, colour, fuel and unladen mass; we map the
mass (and EU vehicle class) onto our four size categories, which drive
pricing. When the registry is unreachable the route falls back to
``lookup_vehicle_mock`` so customers can still finish checkout.
"""
import logging
import re
from dataclasses import dataclass, asdict
from datetime import date
from typing import Optional, Tuple

import requests

from carpark.core.config import settings
from carpark.core.exceptions import UpstreamFailure
from carpark.utils.references import normalize_license_plate

logger = logging.getLogger(__name__)

PROVIDER = "vehicle_registry"

# Unladen mass upper bounds in kg
SMALL_MAX_KG = 1300
MEDIUM_MAX_KG = 1600
LARGE_MAX_KG = 2000
DEFAULT_MASS_KG = 1500
LIGHT_COMMERCIAL_CLASS = "N1"

_ELECTRIC_MARKERS = ("rafmagn", "rafbíll", "tengiltvinn")
_ELECTRIC_CODES = {"el", "hy"}


@dataclass
class VehicleRecord:
    license_plate: str
    make: Optional[str]
    model: Optional[str]
    year: Optional[int]
    color: Optional[str]
    fuel_type: Optional[str]
    mass_kg: Optional[int]
    is_electric: bool
    vehicle_type_code: str

    def to_dict(self) -> dict:
        return asdict(self)


def size_category(vehicle_class: str, mass_kg: int) -> str:
    # Vans are always extra large, whatever they weigh
    if vehicle_class == LIGHT_COMMERCIAL_CLASS:
        return "xlarge"
    if mass_kg < SMALL_MAX_KG:
        return "small"
    if mass_kg < MEDIUM_MAX_KG:
        return "medium"
    if mass_kg < LARGE_MAX_KG:
        return "large"
    return "xlarge"


def is_electric_fuel(fuel_type: Optional[str]) -> bool:
    if not fuel_type:
        return False
    fuel = fuel_type.lower()
    if any(marker in fuel for marker in _ELECTRIC_MARKERS):
        return True
    return bool(_ELECTRIC_CODES & set(re.findall(r"\w+", fuel)))


def _tag_value(xml: str, *tags: str) -> str:
    for tag in tags:
        match = re.search(rf"<{tag}>([^<]*)</{tag}>", xml, re.IGNORECASE)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return ""


def _to_int(value: str) -> Optional[int]:
    digits = re.sub(r"[^\d]", "", value)
    return int(digits) if digits else None


def parse_registry_xml(xml: str, plate: str) -> Optional[VehicleRecord]:
    make = _tag_value(xml, "Framleidandi", "Make")
    model = _tag_value(xml, "Tegund", "Model")
    if not make and not model:
        return None

    fuel_type = _tag_value(xml, "Eldsneyti", "Fuel")
    mass = _to_int(_tag_value(xml, "Eiginþungi", "Eiginthungi", "Mass")) or DEFAULT_MASS_KG
    vehicle_class = _tag_value(xml, "Flokkur", "VehicleType") or "M1"
    return VehicleRecord(
        license_plate=plate,
        make=make or None,
        model=model or None,
        year=_to_int(_tag_value(xml, "Arsgerð", "Arsgerd", "ModelYear")) or date.today().year,
        color=_tag_value(xml, "Litur", "Color") or None,
        fuel_type=fuel_type or None,
        mass_kg=mass,
        is_electric=is_electric_fuel(fuel_type),
        vehicle_type_code=size_category(vehicle_class.upper(), mass),
    )


def lookup_vehicle(plate: str, session: Optional[requests.Session] = None) -> Optional[VehicleRecord]:
    """Query the registry. Returns None for unknown plates, raises UpstreamFailure otherwise."""
    normalized = normalize_license_plate(plate)
    http = session or requests.Session()
    try:
        response = http.get(
            settings.VEHICLE_REGISTRY_URL,
            params={
                "user": settings.VEHICLE_REGISTRY_USER,
                "password": settings.VEHICLE_REGISTRY_PASSWORD,
                "number": normalized,
            },
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        raise UpstreamFailure(PROVIDER, f"Vehicle registry unreachable: {e}") from e

    if response.status_code == 404:
        return None
    if not response.ok:
        raise UpstreamFailure(PROVIDER, f"Vehicle registry error: {response.status_code}")

    # Icelandic registry answers in Latin-1
    return parse_registry_xml(response.content.decode("iso-8859-1"), normalized)


_MOCK_VEHICLES = {
    "A": ("Toyota", "Yaris", 2020, "Hvítur", "Bensín", 1100),
    "B": ("Tesla", "Model Y", 2023, "Svartur", "Rafmagn", 1980),
    "C": ("Ford", "Transit", 2021, "Grár", "Dísel", 2200),
    "D": ("Volkswagen", "Golf", 2022, "Blár", "Bensín", 1350),
}


def lookup_vehicle_mock(plate: str) -> Optional[VehicleRecord]:
    """Deterministic stand-in keyed on the first letter of the plate."""
    normalized = normalize_license_plate(plate)
    data = _MOCK_VEHICLES.get(normalized[:1])
    if data is None:
        return None
    make, model, year, color, fuel, mass = data
    vehicle_class = LIGHT_COMMERCIAL_CLASS if model == "Transit" else "M1"
    return VehicleRecord(
        license_plate=normalized,
        make=make,
        model=model,
        year=year,
        color=color,
        fuel_type=fuel,
        mass_kg=mass,
        is_electric=is_electric_fuel(fuel),
        vehicle_type_code=size_category(vehicle_class, mass),
    )


def lookup_with_fallback(
    plate: str, session: Optional[requests.Session] = None
) -> Tuple[Optional[VehicleRecord], str]:
    """Returns the record and where it came from: "registry" or "mock"."""
    try:
        return lookup_vehicle(plate, session=session), "registry"
    except UpstreamFailure as e:
        logger.warning("Vehicle registry failed, using mock data: %s", e.message)
        return lookup_vehicle_mock(plate), "mock"
