"""
Inflector — English singularization for collection names.

Collections are usually named in the plural ("users", "blog-posts") while
identity managers are registered per model, in the singular ("user").
"""

import re


UNCOUNTABLE = frozenset({
    "data",
    "equipment",
    "fish",
    "information",
    "jeans",
    "media",
    "money",
    "news",
    "police",
    "rice",
    "series",
    "sheep",
    "species",
})

IRREGULAR = {
    "people": "person",
    "men": "man",
    "women": "woman",
    "children": "child",
    "teeth": "tooth",
    "feet": "foot",
    "geese": "goose",
    "mice": "mouse",
    "oxen": "ox",
    "leaves": "leaf",
    "lives": "life",
    "wives": "wife",
    "knives": "knife",
    "moves": "move",
    "zombies": "zombie",
    "movies": "movie",
    "cookies": "cookie",
}

# Ordered: first match wins
SINGULAR_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"(quiz)zes$", re.IGNORECASE), r"\1"),
    (re.compile(r"(matr)ices$", re.IGNORECASE), r"\1ix"),
    (re.compile(r"(vert|ind)ices$", re.IGNORECASE), r"\1ex"),
    (re.compile(r"^(ox)en$", re.IGNORECASE), r"\1"),
    (re.compile(r"(alias|status|bus)es$", re.IGNORECASE), r"\1"),
    (re.compile(r"(octop|vir)i$", re.IGNORECASE), r"\1us"),
    (re.compile(r"(cris|ax|test)es$", re.IGNORECASE), r"\1is"),
    (re.compile(r"(shoe)s$", re.IGNORECASE), r"\1"),
    (re.compile(r"(o)es$", re.IGNORECASE), r"\1"),
    (re.compile(r"(x|ch|ss|sh|zz)es$", re.IGNORECASE), r"\1"),
    (re.compile(r"([^aeiouy]|qu)ies$", re.IGNORECASE), r"\1y"),
    (re.compile(r"([lr])ves$", re.IGNORECASE), r"\1f"),
    (re.compile(r"([^f])ves$", re.IGNORECASE), r"\1fe"),
    (re.compile(r"(analy|ba|diagno|parenthe|progno|synop|the)ses$", re.IGNORECASE), r"\1sis"),
    (re.compile(r"(addend|bacteri|curricul|errat|memorand|millenni|quant|spectr|strat|symposi)a$", re.IGNORECASE), r"\1um"),
    (re.compile(r"(ss)$", re.IGNORECASE), r"\1"),
    (re.compile(r"(us)$", re.IGNORECASE), r"\1"),
    (re.compile(r"s$", re.IGNORECASE), ""),
]

_SEPARATOR = re.compile(r"([-_ ])")


def _match_case(source: str, target: str) -> str:
    if source[:1].isupper():
        return target[:1].upper() + target[1:]
    return target


def _singularize_word(word: str) -> str:
    lowered = word.lower()
    if not lowered or lowered in UNCOUNTABLE:
        return word
    if lowered in IRREGULAR:
        return _match_case(word, IRREGULAR[lowered])
    for pattern, replacement in SINGULAR_RULES:
        if pattern.search(word):
            return pattern.sub(replacement, word)
    return word


def singularize(word: str) -> str:
    """
    Return the singular form of a (usually plural) name.

    Compound names only inflect their last segment:
    "blog-posts" -> "blog-post", "line_items" -> "line_item".
    """
    parts = _SEPARATOR.split(word)
    parts[-1] = _singularize_word(parts[-1])
    return "".join(parts)
