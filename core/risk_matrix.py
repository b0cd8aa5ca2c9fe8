"""
Likelihood x consequence risk matrix.

Every rating the register stores or displays comes from ``evaluate``. The
numeric score is kept for heat-map shading and sorting only; it disagrees with
the matrix in several cells (Likely x Insignificant scores 0 but rates
Moderate) and must never be shown as the rating.
"""

from loguru import logger
from core.exceptions import InvalidInput
from models.risk import LikelihoodLevel, ConsequenceLevel, RiskRating

L, M, H, E = RiskRating.LOW, RiskRating.MODERATE, RiskRating.HIGH, RiskRating.EXTREME

# rows: Rare -> Almost Certain, columns: Insignificant -> Critical
DEFAULT_RATINGS = (
    (L, L, M, H, H),
    (L, L, M, H, E),
    (L, M, H, E, E),
    (M, M, H, E, E),
    (M, H, E, E, E),
)

STYLE_HINTS = {
    RiskRating.LOW: "green",
    RiskRating.MODERATE: "yellow",
    RiskRating.HIGH: "orange",
    RiskRating.EXTREME: "red",
}

# Retired three-point scale still found on older register documents
LEGACY_LIKELIHOOD = {
    "low": LikelihoodLevel.RARE,
    "medium": LikelihoodLevel.POSSIBLE,
    "high": LikelihoodLevel.LIKELY,
}
LEGACY_CONSEQUENCE = {
    "low": ConsequenceLevel.MINOR,
    "medium": ConsequenceLevel.MODERATE,
    "high": ConsequenceLevel.MAJOR,
}
LEGACY_RATING = {
    "medium": RiskRating.MODERATE,
}

_LABELS = {
    LikelihoodLevel: "likelihood",
    ConsequenceLevel: "consequence",
    RiskRating: "risk rating",
}


def _member(enum_type, value, fold=False):
    # exact labels unless fold is set
    if isinstance(value, enum_type):
        return value
    if isinstance(value, str):
        key = value.strip().lower() if fold else value
        for member in enum_type:
            if (member.value.lower() if fold else member.value) == key:
                return member
    raise InvalidInput(f"Unrecognized {_LABELS[enum_type]}: {value!r}")


def parse_likelihood(value) -> LikelihoodLevel:
    return _member(LikelihoodLevel, value)


def parse_consequence(value) -> ConsequenceLevel:
    return _member(ConsequenceLevel, value)


def parse_rating(value) -> RiskRating:
    return _member(RiskRating, value)


def normalize_or_default(value, level_type):
    """Map a stored level onto ``level_type``, falling back to its lowest band.

    Form and table code historically treated a missing or unknown value as the
    least severe option. That fallback lives here so ``evaluate`` can stay
    strict.
    """
    if level_type not in (LikelihoodLevel, ConsequenceLevel):
        raise TypeError(f"normalize_or_default expects a level enum, got {level_type!r}")
    try:
        return _member(level_type, value, fold=True)
    except InvalidInput:
        lowest = list(level_type)[0]
        if value not in (None, ""):
            logger.warning(f"Unknown {_LABELS[level_type]} {value!r}, defaulting to {lowest.value}")
        return lowest


def migrate_legacy_level(value, level_type):
    """Translate a retired Low/Medium/High value onto the current scale.

    Values already on the current scale are returned as members; anything else
    raises ``InvalidInput``.
    """
    try:
        return _member(level_type, value, fold=True)
    except InvalidInput:
        legacy = {
            LikelihoodLevel: LEGACY_LIKELIHOOD,
            ConsequenceLevel: LEGACY_CONSEQUENCE,
            RiskRating: LEGACY_RATING,
        }[level_type]
        key = value.strip().lower() if isinstance(value, str) else value
        if key in legacy:
            return legacy[key]
        raise


def is_legacy_value(value, level_type) -> bool:
    legacy = {
        LikelihoodLevel: LEGACY_LIKELIHOOD,
        ConsequenceLevel: LEGACY_CONSEQUENCE,
        RiskRating: LEGACY_RATING,
    }[level_type]
    return isinstance(value, str) and value.strip().lower() in legacy


class RiskMatrix:
    """A 5x5 rating grid indexed by likelihood row and consequence column."""

    SIZE = 5

    def __init__(self, ratings=DEFAULT_RATINGS):
        grid = tuple(tuple(parse_rating(cell) for cell in row) for row in ratings)
        if len(grid) != self.SIZE or any(len(row) != self.SIZE for row in grid):
            raise InvalidInput(f"Risk matrix must be {self.SIZE}x{self.SIZE}")
        for li in range(self.SIZE):
            for ci in range(self.SIZE):
                rank = grid[li][ci].rank
                if li and rank < grid[li - 1][ci].rank:
                    raise InvalidInput(f"Rating decreases with likelihood at row {li}, column {ci}")
                if ci and rank < grid[li][ci - 1].rank:
                    raise InvalidInput(f"Rating decreases with consequence at row {li}, column {ci}")
        self.ratings = grid

    def coordinates(self, likelihood, consequence) -> tuple[int, int]:
        return parse_likelihood(likelihood).index, parse_consequence(consequence).index

    def evaluate(self, likelihood, consequence) -> RiskRating:
        row, col = self.coordinates(likelihood, consequence)
        return self.ratings[row][col]

    def cells(self):
        for likelihood in LikelihoodLevel:
            for consequence in ConsequenceLevel:
                yield likelihood, consequence, self.ratings[likelihood.index][consequence.index]


DEFAULT_MATRIX = RiskMatrix()


def evaluate(likelihood, consequence, matrix: RiskMatrix = DEFAULT_MATRIX) -> RiskRating:
    return matrix.evaluate(likelihood, consequence)


def numeric_score(likelihood, consequence) -> int:
    """Relative heat-map weight. Not a rating; see module docstring."""
    return parse_likelihood(likelihood).index * parse_consequence(consequence).index


def rating_to_style_hint(rating) -> str:
    return STYLE_HINTS[parse_rating(rating)]
