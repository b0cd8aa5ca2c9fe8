from typing import NamedTuple
from core.tokens import PRIMARY_DELIMITER, split_tokens
from models.risk import CIAComponent

DISPLAY_ORDER = (
    CIAComponent.CONFIDENTIALITY,
    CIAComponent.INTEGRITY,
    CIAComponent.AVAILABILITY,
)

STYLE_HINTS = {
    CIAComponent.CONFIDENTIALITY: "red",
    CIAComponent.INTEGRITY: "orange",
    CIAComponent.AVAILABILITY: "blue",
}

_BY_NAME = {c.value.lower(): c for c in CIAComponent}


class CIAParseResult(NamedTuple):
    components: frozenset
    unrecognized: list


class CIABadge(NamedTuple):
    label: str
    short: str
    style_hint: str


def parse_tolerant(raw) -> CIAParseResult:
    """Parse impact tags, keeping the tokens that matched nothing.

    Accepts a delimited string, a list of tags or ``None``. Never raises.
    """
    found = set()
    unrecognized = []
    for token in split_tokens(raw):
        component = _BY_NAME.get(token.lower())
        if component is None:
            unrecognized.append(token)
        else:
            found.add(component)
    return CIAParseResult(frozenset(found), unrecognized)


def parse(raw) -> frozenset:
    return parse_tolerant(raw).components


def ordered(tags) -> list:
    tags = set(tags)
    return [c for c in DISPLAY_ORDER if c in tags]


def render(tags) -> list[CIABadge]:
    return [CIABadge(c.value, c.value[0], STYLE_HINTS[c]) for c in ordered(tags)]


def to_impact_string(tags) -> str:
    return PRIMARY_DELIMITER.join(c.value for c in ordered(tags))
