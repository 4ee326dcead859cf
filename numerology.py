import datetime
import logging
import re
from dataclasses import asdict, dataclass
from typing import Dict, Optional, Tuple, Union

logger = logging.getLogger(__name__)

# --- Numerology Constants ---
PYTHAGOREAN_MAP = {
    'A': 1, 'J': 1, 'S': 1,
    'B': 2, 'K': 2, 'T': 2,
    'C': 3, 'L': 3, 'U': 3,
    'D': 4, 'M': 4, 'V': 4,
    'E': 5, 'N': 5, 'W': 5,
    'F': 6, 'O': 6, 'X': 6,
    'G': 7, 'P': 7, 'Y': 7,
    'H': 8, 'Q': 8, 'Z': 8,
    'I': 9, 'R': 9,
}

VOWELS = set('AEIOU')
MASTER_NUMBERS = {11, 22, 33}

# (sign, element, start_month, start_day, end_month, end_day)
WESTERN_ZODIAC = [
    ('Capricorn', 'Earth', 12, 22, 1, 19),
    ('Aquarius', 'Air', 1, 20, 2, 18),
    ('Pisces', 'Water', 2, 19, 3, 20),
    ('Aries', 'Fire', 3, 21, 4, 19),
    ('Taurus', 'Earth', 4, 20, 5, 20),
    ('Gemini', 'Air', 5, 21, 6, 20),
    ('Cancer', 'Water', 6, 21, 7, 22),
    ('Leo', 'Fire', 7, 23, 8, 22),
    ('Virgo', 'Earth', 8, 23, 9, 22),
    ('Libra', 'Air', 9, 23, 10, 22),
    ('Scorpio', 'Water', 10, 23, 11, 21),
    ('Sagittarius', 'Fire', 11, 22, 12, 21),
]

CHINESE_ANIMALS = ['Rat', 'Ox', 'Tiger', 'Rabbit', 'Dragon', 'Snake', 'Horse', 'Goat', 'Monkey', 'Rooster', 'Dog', 'Pig']
CHINESE_ELEMENTS = ['Metal', 'Metal', 'Water', 'Water', 'Wood', 'Wood', 'Fire', 'Fire', 'Earth', 'Earth']

ENERGY_LABELS = {
    1: 'Fire Initiator',
    2: 'Water Harmonizer',
    3: 'Air Creator',
    4: 'Earth Stabilizer',
    5: 'Wind Changer',
    6: 'Heart Healer',
    7: 'Mind Seeker',
    8: 'Power Manifester',
    9: 'Soul Completer',
    11: 'Light Bearer',
    22: 'Reality Architect',
    33: 'Love Teacher',
}

DateLike = Union[datetime.date, str]


@dataclass(frozen=True)
class NumerologyProfile:
    """Every number and sign derived from a name and birth date."""
    name: str
    birth_date: datetime.date
    life_path: int
    expression: int
    soul_urge: int
    personality: int
    maturity: int
    attitude: int
    day_of_birth: int
    personal_day: int
    universal_day: int
    western_zodiac: str
    western_element: str
    chinese_zodiac: str
    chinese_element: str
    energy_signature: str

    @property
    def first_name(self) -> str:
        parts = self.name.split()
        return parts[0] if parts else self.name

    def to_dict(self) -> Dict:
        data = asdict(self)
        data['birth_date'] = self.birth_date.isoformat()
        return data


# --- Helper Functions ---
def parse_birth_date(value: DateLike) -> datetime.date:
    """Accepts a date, a datetime or a YYYY-MM-DD string."""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    try:
        return datetime.date.fromisoformat(str(value).strip().split('T')[0])
    except ValueError:
        raise ValueError("Invalid birth date format. Please use YYYY-MM-DD.")


def clean_name(name: str) -> str:
    """Removes non-alphabetic characters and converts to uppercase."""
    return re.sub(r'[^A-Z]', '', (name or '').upper())


def get_letter_value(char: str) -> int:
    return PYTHAGOREAN_MAP.get(char.upper(), 0)


def digit_sum(number: int) -> int:
    return sum(int(digit) for digit in str(abs(number)))


def calculate_single_digit(number: int, allow_master_numbers: bool = True) -> int:
    """
    Reduces a number to a single digit by repeated digit sums.
    With allow_master_numbers, 11, 22 and 33 stop the reduction at whatever
    step they appear, so 29 -> 11 stays 11 while 29 -> 11 -> 2 without it.
    """
    while number > 9:
        if allow_master_numbers and number in MASTER_NUMBERS:
            return number
        number = digit_sum(number)
    return number


# --- Core Numbers ---
def calculate_life_path_number(birth_date: DateLike) -> int:
    """Month, day and year digit sum are reduced separately before the final reduction."""
    d = parse_birth_date(birth_date)
    month_reduced = calculate_single_digit(d.month, True)
    day_reduced = calculate_single_digit(d.day, True)
    year_reduced = calculate_single_digit(digit_sum(d.year), True)
    return calculate_single_digit(month_reduced + day_reduced + year_reduced, True)


def calculate_expression_number(full_name: str) -> int:
    total = sum(get_letter_value(letter) for letter in clean_name(full_name))
    return calculate_single_digit(total, True)


def calculate_soul_urge_number(full_name: str) -> int:
    """Vowels only."""
    total = sum(get_letter_value(letter) for letter in clean_name(full_name) if letter in VOWELS)
    return calculate_single_digit(total, True)


def calculate_personality_number(full_name: str) -> int:
    """Consonants only."""
    total = sum(get_letter_value(letter) for letter in clean_name(full_name) if letter not in VOWELS)
    return calculate_single_digit(total, True)


def calculate_maturity_number(life_path: int, expression: int) -> int:
    return calculate_single_digit(life_path + expression, True)


def calculate_attitude_number(birth_date: DateLike) -> int:
    d = parse_birth_date(birth_date)
    return calculate_single_digit(d.month + d.day, True)


def calculate_day_of_birth_number(birth_date: DateLike) -> int:
    return calculate_single_digit(parse_birth_date(birth_date).day, True)


# --- Cycle Numbers ---
def calculate_universal_day_number(today: Optional[datetime.date] = None) -> int:
    today = today or datetime.date.today()
    return calculate_single_digit(today.month + today.day + digit_sum(today.year), True)


def calculate_personal_day_number(birth_date: DateLike, today: Optional[datetime.date] = None) -> int:
    """
    Life path plus today's date sum. The date term is reduced without master
    numbers before being added; only the outer sum keeps them.
    """
    today = today or datetime.date.today()
    life_path = calculate_life_path_number(birth_date)
    day_term = calculate_single_digit(today.month + today.day + digit_sum(today.year), False)
    return calculate_single_digit(life_path + day_term, True)


# --- Astrology ---
def get_western_zodiac(birth_date: DateLike) -> Tuple[str, str]:
    """Returns (sign, element)."""
    d = parse_birth_date(birth_date)
    month, day = d.month, d.day
    for sign, element, start_month, start_day, end_month, end_day in WESTERN_ZODIAC:
        if (month == start_month and day >= start_day) or (month == end_month and day <= end_day):
            return sign, element
    return 'Unknown', 'Unknown'


def get_chinese_zodiac(birth_date: DateLike) -> Tuple[str, str]:
    """Returns (animal, element)."""
    year = parse_birth_date(birth_date).year
    return CHINESE_ANIMALS[(year - 4) % 12], CHINESE_ELEMENTS[year % 10]


def calculate_energy_signature(birth_date: DateLike) -> str:
    life_path = calculate_life_path_number(birth_date)
    _, element = get_chinese_zodiac(birth_date)
    return f"{element} {ENERGY_LABELS.get(life_path, 'Energy')}"


def build_numerology_profile(full_name: str, birth_date: DateLike, today: Optional[datetime.date] = None) -> NumerologyProfile:
    """Computes the complete profile for one person."""
    d = parse_birth_date(birth_date)
    today = today or datetime.date.today()

    life_path = calculate_life_path_number(d)
    expression = calculate_expression_number(full_name)
    western_sign, western_element = get_western_zodiac(d)
    chinese_animal, chinese_element = get_chinese_zodiac(d)

    return NumerologyProfile(
        name=full_name.strip(),
        birth_date=d,
        life_path=life_path,
        expression=expression,
        soul_urge=calculate_soul_urge_number(full_name),
        personality=calculate_personality_number(full_name),
        maturity=calculate_maturity_number(life_path, expression),
        attitude=calculate_attitude_number(d),
        day_of_birth=calculate_day_of_birth_number(d),
        personal_day=calculate_personal_day_number(d, today),
        universal_day=calculate_universal_day_number(today),
        western_zodiac=western_sign,
        western_element=western_element,
        chinese_zodiac=chinese_animal,
        chinese_element=chinese_element,
        energy_signature=calculate_energy_signature(d),
    )


# --- Compatibility Scoring ---
PAIR_AFFINITY = {
    (1, 1): 0.9, (1, 2): 0.6, (1, 3): 0.9, (1, 4): 0.5, (1, 5): 0.8,
    (1, 6): 0.7, (1, 7): 0.4, (1, 8): 0.9, (1, 9): 0.7, (1, 11): 0.85, (1, 22): 0.8, (1, 33): 0.75,

    (2, 2): 0.9, (2, 3): 0.7, (2, 4): 0.8, (2, 5): 0.5, (2, 6): 0.9,
    (2, 7): 0.8, (2, 8): 0.6, (2, 9): 0.8, (2, 11): 0.95, (2, 22): 0.85, (2, 33): 0.9,

    (3, 3): 0.9, (3, 4): 0.6, (3, 5): 0.9, (3, 6): 0.8, (3, 7): 0.7,
    (3, 8): 0.7, (3, 9): 0.9, (3, 11): 0.75, (3, 22): 0.65, (3, 33): 0.85,

    (4, 4): 0.9, (4, 5): 0.6, (4, 6): 0.8, (4, 7): 0.9, (4, 8): 0.7,
    (4, 9): 0.6, (4, 11): 0.7, (4, 22): 0.95, (4, 33): 0.75,

    (5, 5): 0.9, (5, 6): 0.6, (5, 7): 0.8, (5, 8): 0.7, (5, 9): 0.7,
    (5, 11): 0.8, (5, 22): 0.7, (5, 33): 0.6,

    (6, 6): 0.9, (6, 7): 0.7, (6, 8): 0.8, (6, 9): 0.9, (6, 11): 0.9,
    (6, 22): 0.8, (6, 33): 0.95,

    (7, 7): 0.9, (7, 8): 0.6, (7, 9): 0.8, (7, 11): 0.95, (7, 22): 0.85,
    (7, 33): 0.9,

    (8, 8): 0.9, (8, 9): 0.7, (8, 11): 0.7, (8, 22): 0.95, (8, 33): 0.8,

    (9, 9): 0.9, (9, 11): 0.8, (9, 22): 0.7, (9, 33): 0.95,

    (11, 11): 0.95, (11, 22): 0.85, (11, 33): 0.9,
    (22, 22): 0.95, (22, 33): 0.9,
    (33, 33): 0.95
}

ELEMENT_HARMONY = {
    frozenset(['Fire']): 0.9, frozenset(['Earth']): 0.9, frozenset(['Air']): 0.9, frozenset(['Water']): 0.9,
    frozenset(['Fire', 'Air']): 0.85, frozenset(['Earth', 'Water']): 0.85,
    frozenset(['Fire', 'Earth']): 0.55, frozenset(['Air', 'Water']): 0.55,
    frozenset(['Fire', 'Water']): 0.45, frozenset(['Earth', 'Air']): 0.5,
}

COMPATIBILITY_WEIGHTS = {
    'life_path': 0.4,
    'expression': 0.2,
    'soul_urge': 0.25,
    'element': 0.15,
}


def pair_affinity(a: int, b: int) -> float:
    """Default to moderate if the pair is not explicitly defined."""
    return PAIR_AFFINITY.get(tuple(sorted((a, b))), 0.6)


def compatibility_level(score: int) -> str:
    if score >= 85:
        return 'Exceptional'
    if score >= 70:
        return 'Strong'
    if score >= 55:
        return 'Moderate'
    return 'Challenging'


def calculate_compatibility(person1: NumerologyProfile, person2: NumerologyProfile) -> Tuple[int, str]:
    """Returns (score percentage, level label) for a pair of profiles."""
    element_score = ELEMENT_HARMONY.get(frozenset([person1.western_element, person2.western_element]), 0.6)
    weighted = (
        COMPATIBILITY_WEIGHTS['life_path'] * pair_affinity(person1.life_path, person2.life_path)
        + COMPATIBILITY_WEIGHTS['expression'] * pair_affinity(person1.expression, person2.expression)
        + COMPATIBILITY_WEIGHTS['soul_urge'] * pair_affinity(person1.soul_urge, person2.soul_urge)
        + COMPATIBILITY_WEIGHTS['element'] * element_score
    )
    score = int(round(weighted * 100))
    level = compatibility_level(score)
    logger.info(f"Compatibility for {person1.name} and {person2.name}: {score}% ({level})")
    return score, level
