import pytest

from decay_source.nuclides import (
    NuclideId,
    RadiationType,
    SortKey,
    parse_nuclide,
    parse_radiation,
    parse_sort,
)


def test_parse_fispact_and_hyphenated_names():
    assert parse_nuclide("Co60") == NuclideId(27, 60, 0)
    assert parse_nuclide("Co-60") == NuclideId(27, 60, 0)
    assert parse_nuclide("tc99m") == NuclideId(43, 99, 1)
    assert parse_nuclide("Tc-99m1") == NuclideId(43, 99, 1)
    assert parse_nuclide("Ag110n") == NuclideId(47, 110, 2)


def test_names_round_trip_through_formatting():
    for name in ["Co60", "Tc99m", "Ag110n", "H3"]:
        assert parse_nuclide(name).name == name
    assert NuclideId(27, 60).iaea_name == "60co"


def test_unknown_names_raise():
    with pytest.raises(ValueError):
        parse_nuclide("Xx60")
    with pytest.raises(ValueError):
        parse_nuclide("60Co")


def test_nuclides_order_by_z_then_a_then_state():
    ids = [NuclideId(55, 137), NuclideId(27, 60), NuclideId(43, 99, 1), NuclideId(43, 99)]
    assert sorted(ids) == [NuclideId(27, 60), NuclideId(43, 99), NuclideId(43, 99, 1), NuclideId(55, 137)]
    assert len({NuclideId(27, 60), NuclideId(27, 60, 0)}) == 1


def test_gamma_codes_include_xray():
    assert set(RadiationType.XRAY.codes) < set(RadiationType.GAMMA.codes)


def test_parse_radiation_and_sort_aliases():
    assert parse_radiation(None) == RadiationType.GAMMA
    assert parse_radiation("xray") == RadiationType.XRAY
    assert parse_radiation("Beta_Minus") == RadiationType.BETA_MINUS
    assert parse_radiation("bp") == RadiationType.BETA_PLUS
    assert parse_sort("i") == SortKey.INTENSITY
    assert parse_sort(None) == SortKey.ENERGY
    with pytest.raises(ValueError):
        parse_radiation("neutron")
    with pytest.raises(ValueError):
        parse_sort("name")
