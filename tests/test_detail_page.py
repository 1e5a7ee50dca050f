"""Tests for the model page parser."""

import pytest

from errors import MissingLandmarkError
from parsers import DetailPageParser
from parsers.tree import parse_html
from tests.conftest import FakeSession
from tests.pages import DETAIL_PAGE

SLUG = "Mazda_MX-5_Miata"


@pytest.fixture
def detail():
    parser = DetailPageParser(session=FakeSession(), request_delay=0)
    return parser.parse_detail(parse_html(DETAIL_PAGE), SLUG)


def test_infobox_fields(detail):
    assert detail.model.name == "Mazda MX-5 Miata"
    assert detail.model.slug == SLUG
    assert detail.model.code == "Mazda_MX_5_Miata"
    assert detail.designer.name == "Ryu Asada"
    assert detail.designer.slug == "Ryu_Asada"
    assert detail.release_code == "DHX91"
    assert detail.debut_series.slug == "HW_Roadsters_(2016)"


def test_open_ended_production_years(detail):
    assert detail.production_start == 2016
    assert detail.production_end is None


def test_description_is_paragraphs_between_first_two_headings(detail):
    assert detail.description == "The Mazda MX-5 Miata is a roadster casting.It debuted in 2016."


def test_variations(detail):
    assert len(detail.variations) == 2
    first, second = detail.variations

    assert first.mainline_index == "65"
    assert first.year == "2016"
    assert first.color == "Red"
    assert first.tampo == "White stripes"
    assert (first.base_color, first.base_type) == ("Black", "Plastic")
    assert first.window_color == "Clear"
    assert first.interior_color == "Black"
    assert first.wheel_type == "MC5"
    assert first.release_code == "DHX91"
    assert first.country == "Malaysia"
    assert first.base_codes == ["F12", "G07"]
    assert first.photo_url.endswith("Mazda_red.png/revision/latest")
    assert (first.is_treasure_hunt, first.is_super_treasure_hunt) == (False, False)

    assert (second.is_treasure_hunt, second.is_super_treasure_hunt) == (False, True)
    assert [s.slug for s in second.series] == [
        "HW_Roadsters_(2017)", "2017_Treasure_Hunts_Series#Super_Treasure_Hunts",
    ]
    assert second.notes is None
    assert second.photo_url is None


def test_missing_infobox_raises():
    parser = DetailPageParser(session=FakeSession(), request_delay=0)
    with pytest.raises(MissingLandmarkError) as exc:
        parser.parse_detail(parse_html("<html><body><p>Stub</p></body></html>"), "Stub")
    assert exc.value.slug == "Stub"


def test_scrape_model_uses_slug_url_and_cache(cache):
    url = f"https://hotwheels.fandom.com/wiki/{SLUG}"
    parser = DetailPageParser(cache=cache, session=FakeSession({url: DETAIL_PAGE}), request_delay=0)
    first = parser.scrape_model(SLUG)
    second = parser.scrape_model(SLUG)
    assert first == second
    assert parser.session.calls == [url]
    assert cache.get(f"html:{SLUG}") == DETAIL_PAGE
