import pytest

from app.services.normalizer import (
    DEFAULT_CENTER,
    extract_records,
    has_valid_coordinates,
    normalize_properties,
    normalize_property,
    parse_coordinate,
    parse_number,
)


@pytest.mark.parametrize(
    "lat, lng, expected",
    [
        (0, 0, False),
        (-24.63, 25.92, True),
        (91, 0, False),
        ("-24.63", "25.92", True),
        (-24.63, 0, False),
        (-24.63, 181, False),
        ("north", 25.92, False),
        (None, 25.92, False),
        (float("nan"), 25.92, False),
    ],
)
def test_coordinate_validity(lat, lng, expected):
    assert has_valid_coordinates(lat, lng) is expected


def test_parse_coordinate_treats_zero_as_missing():
    assert parse_coordinate("0") is None
    assert parse_coordinate(0.0) is None
    assert parse_coordinate("-19.98") == pytest.approx(-19.98)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (1250000, 1250000.0),
        ("1250000.50", 1250000.5),
        ("P1,250,000", 1250000.0),
        ("BWP 900 000", 900000.0),
        ("call for price", 0.0),
        (None, 0.0),
        (True, 0.0),
    ],
)
def test_parse_number(raw, expected):
    assert parse_number(raw) == expected


def test_normalizes_wire_aliases(sample_records):
    props = normalize_properties(sample_records)
    riverside, apartment, family, farm = props

    assert riverside.price == 1250000.0
    assert riverside.property_type == "house"
    assert riverside.square_feet == 1800.0
    assert riverside.latitude == pytest.approx(-19.9837)
    assert apartment.listing_type == "owner"
    assert apartment.longitude == pytest.approx(25.9231)

    # 0,0 means "not geocoded"; the listing still shows in grid/list
    assert family.latitude is None and family.longitude is None
    assert family.title == "Family home in Phakalane"

    assert farm.title == "Cattle farm"
    assert farm.price == 4900000.0
    assert farm.location == "Ghanzi"
    assert farm.bedrooms == 0
    assert farm.bathrooms == 0
    assert farm.latitude is None and farm.longitude is None


def test_missing_fields_get_defaults():
    prop = normalize_property({}, index=2)
    assert prop.id == "property-3"
    assert prop.title == "Property 3"
    assert prop.price == 0.0
    assert prop.bedrooms == 0
    assert prop.square_feet is None
    assert prop.features == []


def test_never_raises_on_garbage():
    prop = normalize_property("not a record", index=0)
    assert prop.title == "Property 1"
    prop = normalize_property({"id": 9, "price": {"amount": 5}, "bedrooms": "two", "features": 7})
    assert prop.price == 0.0
    assert prop.bedrooms == 0
    assert prop.features == ["7"]


def test_images_and_features_accept_json_strings():
    prop = normalize_property({
        "id": 5,
        "images": '["https://cdn.example.com/a.jpg", "https://cdn.example.com/b.jpg"]',
        "features": '["borehole", "garden"]',
    })
    assert prop.image_url == "https://cdn.example.com/a.jpg"
    assert prop.features == ["borehole", "garden"]

    prop = normalize_property({"id": 6, "image": "https://cdn.example.com/c.jpg"})
    assert prop.image_url == "https://cdn.example.com/c.jpg"


def test_demo_coordinates_fill_gaps_around_gaborone():
    prop = normalize_property({"id": 7, "latitude": 0, "longitude": 0}, index=3, demo_coordinates=True)
    assert prop.latitude == pytest.approx(DEFAULT_CENTER[0] + 0.03)
    assert prop.longitude == pytest.approx(DEFAULT_CENTER[1] + 0.03)

    real = normalize_property({"id": 8, "latitude": -21.17, "longitude": 27.51}, demo_coordinates=True)
    assert real.latitude == pytest.approx(-21.17)


@pytest.mark.parametrize(
    "payload, count",
    [
        ([{"id": 1}], 1),
        ({"success": True, "data": [{"id": 1}, {"id": 2}]}, 2),
        ({"results": [{"id": 1}]}, 1),
        ({"properties": []}, 0),
        ({"message": "nope"}, 0),
        ("<html>", 0),
    ],
)
def test_extract_records(payload, count):
    assert len(extract_records(payload)) == count
