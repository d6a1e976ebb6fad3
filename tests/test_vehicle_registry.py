import pytest
import requests

from carpark.core.exceptions import UpstreamFailure
from carpark.services import vehicle_registry
from carpark.services.vehicle_registry import (
    is_electric_fuel,
    lookup_vehicle,
    lookup_vehicle_mock,
    lookup_with_fallback,
    parse_registry_xml,
    size_category,
)

REGISTRY_XML = """<?xml version="1.0" encoding="iso-8859-1"?>
<CarData>
  <Framleidandi>KIA</Framleidandi>
  <Tegund>Niro</Tegund>
  <Arsgerd>2021</Arsgerd>
  <Litur>Grár</Litur>
  <Eldsneyti>Rafmagn</Eldsneyti>
  <Eiginthungi>1 710</Eiginthungi>
  <Flokkur>M1</Flokkur>
</CarData>
"""


class FakeResponse:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.content = text.encode("iso-8859-1")
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 400


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error:
            raise self.error
        return self.response


@pytest.mark.parametrize(
    "vehicle_class, mass, expected",
    [
        ("M1", 1100, "small"),
        ("M1", 1299, "small"),
        ("M1", 1300, "medium"),
        ("M1", 1599, "medium"),
        ("M1", 1600, "large"),
        ("M1", 1999, "large"),
        ("M1", 2000, "xlarge"),
        ("N1", 900, "xlarge"),
    ],
)
def test_size_category(vehicle_class, mass, expected):
    assert size_category(vehicle_class, mass) == expected


@pytest.mark.parametrize(
    "fuel, expected",
    [
        ("Rafmagn", True),
        ("Bensín/Tengiltvinn", True),
        ("EL", True),
        ("Dísel", False),
        ("Bensín", False),
        (None, False),
    ],
)
def test_is_electric_fuel(fuel, expected):
    assert is_electric_fuel(fuel) is expected


def test_parse_registry_xml():
    record = parse_registry_xml(REGISTRY_XML, "AB123")
    assert record.make == "KIA"
    assert record.model == "Niro"
    assert record.year == 2021
    assert record.color == "Grár"
    assert record.mass_kg == 1710
    assert record.is_electric is True
    assert record.vehicle_type_code == "large"


def test_parse_registry_xml_without_vehicle():
    assert parse_registry_xml("<CarData></CarData>", "AB123") is None


def test_lookup_sends_normalized_plate():
    session = FakeSession(FakeResponse(text=REGISTRY_XML))
    record = lookup_vehicle("ab-123", session=session)
    assert record.license_plate == "AB123"
    _, kwargs = session.calls[0]
    assert kwargs["params"]["number"] == "AB123"
    assert kwargs["timeout"] > 0


def test_lookup_unknown_plate():
    assert lookup_vehicle("AB123", session=FakeSession(FakeResponse(status_code=404))) is None


def test_lookup_upstream_error():
    with pytest.raises(UpstreamFailure):
        lookup_vehicle("AB123", session=FakeSession(FakeResponse(status_code=500)))


def test_lookup_timeout():
    with pytest.raises(UpstreamFailure) as excinfo:
        lookup_vehicle("AB123", session=FakeSession(error=requests.Timeout("slow")))
    assert excinfo.value.provider == "vehicle_registry"


def test_fallback_uses_mock_when_registry_is_down():
    record, source = lookup_with_fallback("BX123", session=FakeSession(error=requests.ConnectionError()))
    assert source == "mock"
    assert record.make == "Tesla"
    assert record.is_electric is True
    assert record.vehicle_type_code == "large"


def test_fallback_prefers_registry():
    record, source = lookup_with_fallback("AB123", session=FakeSession(FakeResponse(text=REGISTRY_XML)))
    assert source == "registry"
    assert record.make == "KIA"


def test_mock_van_is_extra_large():
    assert lookup_vehicle_mock("CD123").vehicle_type_code == "xlarge"


def test_mock_unknown_prefix():
    assert lookup_vehicle_mock("ZZ123") is None


def test_lookup_endpoint_falls_back(client, vehicle_types, monkeypatch):
    def unreachable(plate, session=None):
        raise UpstreamFailure(vehicle_registry.PROVIDER, "down")

    monkeypatch.setattr(vehicle_registry, "lookup_vehicle", unreachable)
    response = client.get("/api/v1/vehicles/lookup", params={"plate": "AB 123"})
    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "mock"
    assert body["vehicle_type_code"] == "small"
    assert body["vehicle_type"]["code"] == "small"


def test_lookup_endpoint_rejects_bad_plate(client):
    assert client.get("/api/v1/vehicles/lookup", params={"plate": "12345"}).status_code == 422
