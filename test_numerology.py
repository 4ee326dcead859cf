import dataclasses
import datetime

import pytest

from numerology import (
    build_numerology_profile,
    calculate_attitude_number,
    calculate_compatibility,
    calculate_day_of_birth_number,
    calculate_energy_signature,
    calculate_expression_number,
    calculate_life_path_number,
    calculate_maturity_number,
    calculate_personal_day_number,
    calculate_personality_number,
    calculate_single_digit,
    calculate_soul_urge_number,
    calculate_universal_day_number,
    clean_name,
    compatibility_level,
    get_chinese_zodiac,
    get_western_zodiac,
    parse_birth_date,
)

TODAY = datetime.date(2026, 10, 18)


@pytest.mark.parametrize("number,expected", [
    (7, 7),
    (10, 1),
    (11, 11),
    (22, 22),
    (33, 33),
    (29, 11),
    (38, 11),
    (99, 9),
    (1990, 1),
])
def test_reduction_preserves_master_numbers(number, expected):
    assert calculate_single_digit(number, True) == expected


@pytest.mark.parametrize("number,expected", [
    (11, 2),
    (22, 4),
    (33, 6),
    (29, 2),
    (38, 2),
])
def test_reduction_without_master_numbers(number, expected):
    assert calculate_single_digit(number, False) == expected


def test_reduction_range():
    allowed = set(range(1, 10)) | {11, 22, 33}
    for n in range(1, 500):
        assert calculate_single_digit(n, True) in allowed
        assert 1 <= calculate_single_digit(n, False) <= 9


def test_clean_name_strips_non_letters():
    assert clean_name("John  O'Smith-2") == "JOHNOSMITH"


def test_life_path_keeps_master_components():
    # 11 + 22 + reduce(1+9+9+0) = 11 + 22 + 1 = 34 -> 7
    assert calculate_life_path_number(datetime.date(1990, 11, 22)) == 7
    assert calculate_life_path_number("1991-05-04") == 11


def test_name_numbers():
    assert calculate_expression_number("John Smith") == 8
    assert calculate_expression_number("john smith") == 8
    assert calculate_soul_urge_number("John Smith") == 6
    # J1 H8 N5 S1 M4 T2 H8 = 29 -> 11
    assert calculate_personality_number("John Smith") == 11
    assert calculate_expression_number("Jane Doe") == 9


def test_date_numbers():
    birth = datetime.date(1990, 11, 22)
    assert calculate_maturity_number(7, 8) == 6
    assert calculate_attitude_number(birth) == 33
    assert calculate_day_of_birth_number(birth) == 22
    assert calculate_day_of_birth_number("1991-05-04") == 4


def test_universal_day_uses_current_date():
    # 10 + 18 + (2+0+2+6) = 38 -> 11
    assert calculate_universal_day_number(TODAY) == 11


def test_personal_day_reduces_date_term_without_masters():
    # life path 11 + reduce(38, no masters) = 11 + 2 = 13 -> 4, not 11 + 11 = 22
    assert calculate_personal_day_number("1991-05-04", TODAY) == 4
    assert calculate_personal_day_number("1990-11-22", TODAY) == 9


@pytest.mark.parametrize("birth,expected", [
    ("2000-12-25", ("Capricorn", "Earth")),
    ("2000-01-19", ("Capricorn", "Earth")),
    ("2000-01-20", ("Aquarius", "Air")),
    ("2000-03-20", ("Pisces", "Water")),
    ("2000-03-21", ("Aries", "Fire")),
    ("1990-11-22", ("Sagittarius", "Fire")),
    ("1991-05-04", ("Taurus", "Earth")),
])
def test_western_zodiac(birth, expected):
    assert get_western_zodiac(birth) == expected


def test_western_zodiac_covers_every_day():
    day = datetime.date(2024, 1, 1)
    while day.year == 2024:
        assert get_western_zodiac(day)[0] != 'Unknown'
        day += datetime.timedelta(days=1)


def test_chinese_zodiac():
    # (2000 - 4) % 12 = 4
    assert get_chinese_zodiac("2000-06-01") == ("Dragon", "Metal")
    assert get_chinese_zodiac("2004-06-01") == ("Monkey", "Wood")
    assert get_chinese_zodiac("1990-11-22") == ("Horse", "Metal")
    assert get_chinese_zodiac("1996-02-10") == ("Rat", "Fire")


def test_energy_signature():
    assert calculate_energy_signature("1990-11-22") == "Metal Mind Seeker"
    assert calculate_energy_signature("1991-05-04") == "Metal Light Bearer"


def test_parse_birth_date():
    assert parse_birth_date("1990-11-22T08:30:00") == datetime.date(1990, 11, 22)
    assert parse_birth_date(datetime.datetime(1990, 11, 22, 8, 30)) == datetime.date(1990, 11, 22)
    with pytest.raises(ValueError, match="YYYY-MM-DD"):
        parse_birth_date("22/11/1990")


def test_build_profile():
    profile = build_numerology_profile("John Smith", "1990-11-22", TODAY)
    assert profile.to_dict() == {
        'name': 'John Smith',
        'birth_date': '1990-11-22',
        'life_path': 7,
        'expression': 8,
        'soul_urge': 6,
        'personality': 11,
        'maturity': 6,
        'attitude': 33,
        'day_of_birth': 22,
        'personal_day': 9,
        'universal_day': 11,
        'western_zodiac': 'Sagittarius',
        'western_element': 'Fire',
        'chinese_zodiac': 'Horse',
        'chinese_element': 'Metal',
        'energy_signature': 'Metal Mind Seeker',
    }
    assert profile.first_name == "John"


def test_profile_is_immutable():
    profile = build_numerology_profile("John Smith", "1990-11-22", TODAY)
    with pytest.raises(dataclasses.FrozenInstanceError):
        profile.life_path = 1


def test_compatibility_score():
    john = build_numerology_profile("John Smith", "1990-11-22", TODAY)
    jane = build_numerology_profile("Jane Doe", "1991-05-04", TODAY)
    assert calculate_compatibility(john, jane) == (80, "Strong")
    assert calculate_compatibility(john, jane) == calculate_compatibility(jane, john)


@pytest.mark.parametrize("score,level", [(95, "Exceptional"), (85, "Exceptional"), (70, "Strong"), (60, "Moderate"), (40, "Challenging")])
def test_compatibility_level(score, level):
    assert compatibility_level(score) == level
