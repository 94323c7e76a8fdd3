"""Unit pluralization for reminder labels."""
from typing import Dict, Mapping, Optional, Union

UnitTable = Mapping[str, Mapping[str, str]]

DEFAULT_LANGUAGE = "en"

# unit key -> (singular, plural)
_EN_FORMS = {
    "tablet": ("tablet", "tablets"),
    "capsule": ("capsule", "capsules"),
    "drops": ("drop", "drops"),
    "ampoule": ("ampoule", "ampoules"),
    "bottle": ("bottle", "bottles"),
    "syringe": ("syringe", "syringes"),
    "dragee": ("dragee", "dragees"),
    "lozenge": ("lozenge", "lozenges"),
    "suppository": ("suppository", "suppositories"),
    "patch": ("patch", "patches"),
    "inhaler": ("inhaler", "inhalers"),
    "piece": ("piece", "pieces"),
}

# unit key -> (one, two to four, five and more, nominative plural)
_RU_FORMS = {
    "tablet": ("таблетка", "таблетки", "таблеток", "таблетки"),
    "capsule": ("капсула", "капсулы", "капсул", "капсулы"),
    "drops": ("капля", "капли", "капель", "капли"),
    "ampoule": ("ампула", "ампулы", "ампул", "ампулы"),
    "bottle": ("флакон", "флакона", "флаконов", "флаконы"),
    "syringe": ("шприц", "шприца", "шприцев", "шприцы"),
    "dragee": ("драже", "драже", "драже", "драже"),
    "lozenge": ("пастилка", "пастилки", "пастилок", "пастилки"),
    "suppository": ("суппозиторий", "суппозитория", "суппозиториев", "суппозитории"),
    "patch": ("пластырь", "пластыря", "пластырей", "пластыри"),
    "inhaler": ("ингалятор", "ингалятора", "ингаляторов", "ингаляторы"),
    "piece": ("штука", "штуки", "штук", "штуки"),
}

UNIT_TABLES: Dict[str, UnitTable] = {
    "en": {
        "nominative_sing": {key: forms[0] for key, forms in _EN_FORMS.items()},
        "nominative_plur": {key: forms[1] for key, forms in _EN_FORMS.items()},
    },
    "ru": {
        form: {key: forms[index] for key, forms in _RU_FORMS.items()}
        for index, form in enumerate(("nominative_sing", "genitive_sing", "genitive_plur", "nominative_plur"))
    },
}


def units_for(language: str) -> UnitTable:
    """Built-in unit table of a language, English when the language has none."""
    return UNIT_TABLES.get(language, UNIT_TABLES[DEFAULT_LANGUAGE])


def word_form(quantity: Union[str, float, int], language: str) -> str:
    """
    Pick the grammatical form for a quantity.

    Russian distinguishes 1 / 2-4 / 5+ (with 11-14 as plural) and fractional
    quantities; every other language uses singular for exactly one.
    """
    text = str(quantity).strip().replace(",", ".")
    if text == "":
        return "nominative_plur"
    try:
        number = float(text)
    except ValueError:
        return "nominative_plur"

    if language == "ru":
        if not number.is_integer():
            return "genitive_sing" if int(number) == 1 else "genitive_plur"
        whole = int(number)
        if 11 <= whole % 100 <= 14:
            return "genitive_plur"
        last_digit = whole % 10
        if last_digit == 1:
            return "nominative_sing"
        if 2 <= last_digit <= 4:
            return "genitive_sing"
        return "genitive_plur"

    return "nominative_sing" if number == 1 else "nominative_plur"


def format_unit(
    table: Optional[UnitTable],
    quantity: Union[str, float, int],
    language: str,
    key: str,
) -> str:
    """
    Look up the label of `key` for a quantity, falling back to the plural form and then to the key.

    Args:
        table: Mapping of word form -> {unit key -> label}
        quantity: Amount the label accompanies
        language: Language code
        key: Unit key, e.g. "tablet"
    """
    if not table:
        return key
    form = word_form(quantity, language)
    for candidate in (form, "nominative_plur", "nominative_sing"):
        forms: Dict[str, str] = dict(table.get(candidate) or {})
        if key in forms:
            return forms[key]
    return key


def format_quantity(value: float) -> str:
    """Render 2.0 as "2" and 0.5 as "0.5"."""
    return str(int(value)) if float(value).is_integer() else str(value)
