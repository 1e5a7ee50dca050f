"""Tests for normalisation rules."""

import pytest

from extraction.rules import (
    classify_treasure_hunt,
    generate_photo_key,
    infer_category_code,
    parse_base_codes,
    parse_index,
    parse_year_range,
    slug_to_code,
    split_base,
)

SLUGS = [
    "HW_Dream_Garage_(2026)",
    "Mazda_MX-5_Miata_(2025)",
    "Fast_&_Furious:_Twin_Mill",
    "__leading__and__trailing__",
    "'67 Camaro",
    "Ünïcode_Car",
    "",
]


@pytest.mark.parametrize("slug,expected", [
    ("HW_Dream_Garage_(2026)", "HW_Dream_Garage_2026"),
    ("Mazda_MX-5_Miata_(2025)", "Mazda_MX_5_Miata_2025"),
    ("Fast_&_Furious:_Twin_Mill", "Fast_Furious_Twin_Mill"),
    ("HW_Wagons_(2025)", "HW_Wagons_2025"),
    ("2025_Treasure_Hunts_Series#Treasure_Hunts", "2025_Treasure_Hunts_Series_Treasure_Hunts"),
])
def test_slug_to_code(slug, expected):
    assert slug_to_code(slug) == expected


@pytest.mark.parametrize("slug", SLUGS)
def test_slug_to_code_is_idempotent(slug):
    once = slug_to_code(slug)
    assert slug_to_code(once) == once
    assert slug_to_code(slug) == once


def test_infer_category_first_rule_wins():
    assert infer_category_code("HW_Wagons_(2025)", "HW Wagons") == "mainline"
    assert infer_category_code("Car_Culture:_Team_Transport", "Team Transport") == "modern_special"
    # 'rlc' (exclusive) is listed before 'premium' (modern special)
    assert infer_category_code("RLC_Premium_Series", "RLC Premium") == "exclusive"
    assert infer_category_code("Monster_Trucks_(2024)", "Monster Trucks") == "modern_series"
    assert infer_category_code("5-Pack_(2024)", "5-Pack") == "misc"


def test_treasure_hunt_classification():
    sth = ["HW_Roadsters_(2017)", "2017_Treasure_Hunts_Series#Super_Treasure_Hunts"]
    th = ["HW_Roadsters_(2017)", "2017_Treasure_Hunts_Series#Treasure_Hunts"]
    assert classify_treasure_hunt(sth) == (False, True)
    assert classify_treasure_hunt(th) == (True, False)
    assert classify_treasure_hunt(["HW_Roadsters_(2017)"]) == (False, False)
    assert classify_treasure_hunt([]) == (False, False)


def test_year_range():
    assert parse_year_range("2016 - Present") == (2016, None)
    assert parse_year_range("2016 - PRESENT") == (2016, None)
    assert parse_year_range("1998 – 2003") == (1998, 2003)
    assert parse_year_range("2019") == (2019, 2019)
    assert parse_year_range("") == (None, None)


def test_base_codes():
    assert parse_base_codes("Base code(s): F12, G07") == ["F12", "G07"]
    assert parse_base_codes("Has base codes: K23 and L14.") == ["K23", "L14"]
    assert parse_base_codes("code: M05") == ["M05"]
    assert parse_base_codes("Tinted windows") == []
    assert parse_base_codes("") == []


def test_split_base():
    assert split_base("Black / Plastic") == ("Black", "Plastic")
    assert split_base("Chrome") == ("Chrome", None)
    assert split_base("") == (None, None)


def test_parse_index():
    assert parse_index("005") == 5
    assert parse_index("TH") is None
    assert parse_index("") is None


def test_photo_key():
    url = "https://static.wikia.nocookie.net/hotwheels/images/a/aa/Car.png/revision/latest?cb=1"
    assert generate_photo_key("cars", "HYW18", "2025", 0, url) == "cars/2025/HYW18/0.png"
    assert generate_photo_key("cars", "HYW 18/b", "2025", 2, "https://x/y") == "cars/2025/HYW_18_b/2.jpg"
    assert generate_photo_key("cars", "A-1", "2025", 1, "https://x/y.JPEG?x=1") == "cars/2025/A-1/1.jpeg"
