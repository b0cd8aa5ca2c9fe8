from loguru import logger
from config.settings import settings
from analyzers.register_analyzer import RegisterAnalyzer
from core.asset_resolver import build_asset_table, normalize_asset_ids
from core.cia_classifier import ordered, parse_tolerant
from core.exceptions import InvalidInput
from core.risk_matrix import (
    DEFAULT_MATRIX, migrate_legacy_level, normalize_or_default,
    numeric_score, parse_consequence, parse_likelihood,
)
from models.risk import (
    CIAComponent, ConsequenceLevel, HeatMapCell, LikelihoodLevel,
    RegisterSummary, RiskAction, RiskPhase, RiskRating, RiskRecord,
)

_RESIDUAL_KEYS = ("residualLikelihood", "residualConsequence")


def _levels(document, l_key, c_key, lenient):
    if lenient:
        return (normalize_or_default(document.get(l_key), LikelihoodLevel),
                normalize_or_default(document.get(c_key), ConsequenceLevel))
    return parse_likelihood(document.get(l_key)), parse_consequence(document.get(c_key))


def _member_or_none(enum_type, value, document):
    if value in (None, ""):
        return None
    for member in enum_type:
        if member.value.lower() == str(value).strip().lower():
            return member
    logger.warning(f"{document.get('riskId')}: unknown {enum_type.__name__} {value!r}")
    return None


def _has_residual(document) -> bool:
    return any(document.get(k) not in (None, "") for k in _RESIDUAL_KEYS)


def build_record(document: dict, lenient: bool = False, matrix=DEFAULT_MATRIX) -> RiskRecord:
    """Normalize a stored risk document into a ``RiskRecord``.

    Ratings are always recomputed; stored ``riskRating`` values are ignored.
    Unknown scale values raise ``InvalidInput`` unless ``lenient`` is set, in
    which case they fall back to the lowest band.
    """
    likelihood, consequence = _levels(document, "likelihoodRating", "consequenceRating", lenient)
    residual = {}
    if _has_residual(document):
        rl, rc = _levels(document, *_RESIDUAL_KEYS, lenient)
        residual = {
            "residual_likelihood": rl,
            "residual_consequence": rc,
            "residual_rating": matrix.evaluate(rl, rc),
        }

    cia = parse_tolerant(document.get("impact", document.get("impactCIA")))
    if cia.unrecognized:
        logger.warning(f"{document.get('riskId')}: ignoring CIA tags {cia.unrecognized}")
    asset_ids, invalid_assets = normalize_asset_ids(document.get("informationAsset"))
    if invalid_assets:
        logger.warning(f"{document.get('riskId')}: ignoring asset entries {invalid_assets}")

    return RiskRecord(
        risk_id=str(document.get("riskId") or ""),
        likelihood=likelihood,
        consequence=consequence,
        risk_rating=matrix.evaluate(likelihood, consequence),
        impact=ordered(cia.components),
        information_asset=asset_ids,
        phase=_member_or_none(RiskPhase, document.get("currentPhase"), document),
        action=_member_or_none(RiskAction, document.get("riskAction"), document),
        functional_unit=document.get("functionalUnit"),
        risk_owner=document.get("riskOwner"),
        threat=document.get("threat"),
        vulnerability=document.get("vulnerability"),
        statement=document.get("riskStatement"),
        **residual,
    )


def prepare_for_write(document: dict, matrix=DEFAULT_MATRIX) -> dict:
    """Return a copy of ``document`` whose ratings agree with the matrix."""
    out = dict(document)
    out["riskRating"] = matrix.evaluate(
        document.get("likelihoodRating"), document.get("consequenceRating")).value
    if _has_residual(document):
        out["residualRiskRating"] = matrix.evaluate(
            document.get("residualLikelihood"), document.get("residualConsequence")).value
    else:
        out.pop("residualRiskRating", None)
    return out


def migrate_legacy_document(document: dict, matrix=DEFAULT_MATRIX) -> dict:
    """Move a document off the retired three-point scale and re-rate it."""
    out = dict(document)
    for key, level_type in (("likelihoodRating", LikelihoodLevel),
                            ("consequenceRating", ConsequenceLevel),
                            ("residualLikelihood", LikelihoodLevel),
                            ("residualConsequence", ConsequenceLevel)):
        if out.get(key) in (None, "") and key in _RESIDUAL_KEYS:
            continue
        out[key] = migrate_legacy_level(out.get(key), level_type).value
    migrated = prepare_for_write(out, matrix)
    if migrated.get("riskRating") != document.get("riskRating"):
        logger.info(
            f"{document.get('riskId')}: riskRating {document.get('riskRating')} → {migrated['riskRating']}"
        )
    return migrated


def build_heat_map(records, matrix=DEFAULT_MATRIX) -> list[HeatMapCell]:
    cells = {
        (l, c): HeatMapCell(likelihood=l, consequence=c, rating=rating,
                            numeric_score=numeric_score(l, c))
        for l, c, rating in matrix.cells()
    }
    for record in records:
        cell = cells[(record.likelihood, record.consequence)]
        cell.count += 1
        cell.risk_ids.append(record.risk_id)
    return list(cells.values())


class RegisterService:
    def __init__(self, client=None, lenient: bool = False):
        if client is None:
            from integrations.grc_client import GRCClient
            client = GRCClient()
        self.client = client
        self.lenient = lenient
        self.asset_table = {}

    def run(self) -> RegisterSummary:
        logger.info(f"Register review started for: {settings.ORGANIZATION_NAME}")

        risks = self.client.get_risks()
        self.asset_table = build_asset_table(self.client.get_information_assets())

        findings = RegisterAnalyzer(risks, self.asset_table).run_all_checks()

        records = []
        for doc in risks:
            try:
                records.append(build_record(doc, lenient=self.lenient))
            except InvalidInput as e:
                logger.warning(f"Skipping {doc.get('riskId') or 'unnamed risk'} from summary: {e}")

        summary = RegisterSummary(
            organization_name=settings.ORGANIZATION_NAME,
            total_risks=len(risks),
            rated_risks=len(records),
            rating_counts={r: sum(1 for x in records if x.risk_rating == r) for r in RiskRating},
            residual_counts={
                r: sum(1 for x in records if x.residual_rating == r) for r in RiskRating
            },
            cia_counts={c: sum(1 for x in records if c in x.impact) for c in CIAComponent},
            heat_map=build_heat_map(records),
            records=records,
            findings=findings,
        )
        logger.info(f"Register review complete: {len(records)}/{len(risks)} risks rated.")
        return summary
