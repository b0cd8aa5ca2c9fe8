from loguru import logger
from core.asset_resolver import normalize_asset_ids
from core.cia_classifier import parse_tolerant
from core.exceptions import InvalidInput
from core.risk_matrix import (
    evaluate, is_legacy_value, parse_consequence, parse_likelihood, parse_rating,
)
from models.risk import ConsequenceLevel, Finding, FindingCategory, LikelihoodLevel, Severity


def _truncate_evidence(items: list, max_items: int = 5) -> str:
    readable = [str(i) for i in items if str(i).strip()]
    total = len(items)
    if not readable:
        return f"{total} items (ids not available)"
    sample = readable[:max_items]
    remaining = total - len(sample)
    if remaining > 0:
        return f"{', '.join(sample)} (+ {remaining} more)"
    return ', '.join(sample)


def _rid(doc) -> str:
    return str(doc.get("riskId") or "").strip()


class RegisterAnalyzer:
    """Consistency checks over stored risk documents."""

    def __init__(self, risks, asset_table=None):
        self.risks       = risks
        self.asset_table = asset_table or {}
        self.findings    = []
        self._counter    = 0

    def run_all_checks(self):
        logger.info(f"Running register checks over {len(self.risks)} risks...")
        self._check_risk_ids()
        self._check_scale_values()
        self._check_rating_consistency()
        self._check_residual_consistency()
        self._check_residual_above_inherent()
        self._check_cia_impact()
        self._check_asset_references()
        logger.info(f"Register checks complete: {len(self.findings)} findings.")
        return self.findings

    def _check_risk_ids(self):
        missing = [i for i, r in enumerate(self.risks, 1) if not _rid(r)]
        seen, dupes = set(), []
        for r in self.risks:
            rid = _rid(r)
            if rid and rid in seen and rid not in dupes:
                dupes.append(rid)
            seen.add(rid)
        if missing:
            self._add(
                title=f"{len(missing)} Risk(s) Without a Risk ID",
                category=FindingCategory.RECORD_INTEGRITY,
                severity=Severity.HIGH,
                description="Risks without an id cannot be referenced by treatments or approvals.",
                evidence=f"Positions: {_truncate_evidence(missing)}",
                recommendation="Assign RISK-NNN identifiers from the register's next-id sequence.",
            )
        if dupes:
            self._add(
                title=f"{len(dupes)} Duplicate Risk ID(s)",
                category=FindingCategory.RECORD_INTEGRITY,
                severity=Severity.MEDIUM,
                description="Several register entries share the same risk id.",
                evidence=_truncate_evidence(dupes),
                recommendation="Renumber the duplicates and re-link their treatments.",
                risk_ids=dupes,
            )

    def _check_scale_values(self):
        legacy, invalid = [], []
        for r in self.risks:
            fields = [
                (r.get("likelihoodRating"), LikelihoodLevel),
                (r.get("consequenceRating"), ConsequenceLevel),
                (r.get("residualLikelihood"), LikelihoodLevel),
                (r.get("residualConsequence"), ConsequenceLevel),
            ]
            bad = [(v, t) for v, t in fields[:2] if not self._valid(v, t)]
            bad += [(v, t) for v, t in fields[2:] if v not in (None, "") and not self._valid(v, t)]
            if not bad:
                continue
            if all(is_legacy_value(v, t) for v, t in bad):
                legacy.append(_rid(r))
            else:
                invalid.append(_rid(r))

        if legacy:
            self._add(
                title=f"{len(legacy)} Risk(s) on the Retired Low/Medium/High Scale",
                category=FindingCategory.SCALE_VALUES,
                severity=Severity.MEDIUM,
                description=(
                    "These risks still carry three-point likelihood or consequence values. "
                    "Their ratings cannot be evaluated against the 5x5 matrix."
                ),
                evidence=_truncate_evidence(legacy),
                recommendation="Run the legacy migration to re-express and re-rate them.",
                risk_ids=legacy,
            )
        if invalid:
            self._add(
                title=f"{len(invalid)} Risk(s) With Missing or Unknown Scale Values",
                category=FindingCategory.SCALE_VALUES,
                severity=Severity.HIGH,
                description="Likelihood or consequence is missing or outside the defined scales.",
                evidence=_truncate_evidence(invalid),
                recommendation="Re-assess likelihood and consequence with the risk owner.",
                risk_ids=invalid,
            )

    def _check_rating_consistency(self):
        wrong = self._mismatches("likelihoodRating", "consequenceRating", "riskRating")
        if wrong:
            self._add(
                title=f"{len(wrong)} Risk Rating(s) Inconsistent With the Matrix",
                category=FindingCategory.RATING_CONSISTENCY,
                severity=Severity.HIGH,
                description="The stored risk rating differs from the likelihood x consequence matrix.",
                evidence=_truncate_evidence([f"{rid} ({stored}, expected {expected})" for rid, stored, expected in wrong]),
                recommendation="Recompute the rating from the matrix before the next committee review.",
                risk_ids=[rid for rid, _, _ in wrong],
            )

    def _check_residual_consistency(self):
        wrong = self._mismatches("residualLikelihood", "residualConsequence", "residualRiskRating",
                                 optional=True)
        if wrong:
            self._add(
                title=f"{len(wrong)} Residual Rating(s) Inconsistent With the Matrix",
                category=FindingCategory.RESIDUAL_RISK,
                severity=Severity.HIGH,
                description="The stored residual rating differs from the matrix result for the residual values.",
                evidence=_truncate_evidence([f"{rid} ({stored}, expected {expected})" for rid, stored, expected in wrong]),
                recommendation="Recompute residual ratings from the post-treatment likelihood and consequence.",
                risk_ids=[rid for rid, _, _ in wrong],
            )

    def _check_residual_above_inherent(self):
        worse = []
        for r in self.risks:
            try:
                inherent = evaluate(r.get("likelihoodRating"), r.get("consequenceRating"))
                residual = evaluate(r.get("residualLikelihood"), r.get("residualConsequence"))
            except InvalidInput:
                continue
            if residual.rank > inherent.rank:
                worse.append((_rid(r), inherent, residual))
        if worse:
            self._add(
                title=f"{len(worse)} Risk(s) With Residual Above Inherent Rating",
                category=FindingCategory.RESIDUAL_RISK,
                severity=Severity.MEDIUM,
                description="Treatment should not leave a risk rated higher than before treatment.",
                evidence=_truncate_evidence([f"{rid} ({i.value} before, {r.value} after)" for rid, i, r in worse]),
                recommendation="Review the treatment plan and the residual assessment.",
                risk_ids=[rid for rid, _, _ in worse],
            )

    def _check_cia_impact(self):
        empty, unknown_tokens, affected = [], [], []
        for r in self.risks:
            raw = r.get("impact", r.get("impactCIA"))
            result = parse_tolerant(raw)
            if result.unrecognized:
                logger.warning(f"{_rid(r)}: dropped CIA tokens {result.unrecognized}")
                affected.append(_rid(r))
                unknown_tokens.extend(result.unrecognized)
            if not result.components:
                empty.append(_rid(r))

        if empty:
            self._add(
                title=f"{len(empty)} Risk(s) Without CIA Impact",
                category=FindingCategory.CIA_IMPACT,
                severity=Severity.LOW,
                description="No confidentiality, integrity or availability impact is recorded.",
                evidence=_truncate_evidence(empty),
                recommendation="Record which CIA components each risk affects.",
                risk_ids=empty,
            )
        if affected:
            self._add(
                title=f"{len(affected)} Risk(s) With Unrecognized CIA Tags",
                category=FindingCategory.CIA_IMPACT,
                severity=Severity.LOW,
                description="Some impact tags match no CIA component and are ignored.",
                evidence=f"Tags: {_truncate_evidence(sorted(set(unknown_tokens)))}",
                recommendation="Correct the impact tags to Confidentiality, Integrity or Availability.",
                risk_ids=affected,
            )

    def _check_asset_references(self):
        if not self.asset_table:
            return
        unresolved, affected = [], []
        for r in self.risks:
            ids, _ = normalize_asset_ids(r.get("informationAsset"))
            missing = [i for i in ids if i not in self.asset_table]
            if missing:
                affected.append(_rid(r))
                unresolved.extend(m for m in missing if m not in unresolved)
        if unresolved:
            self._add(
                title=f"{len(unresolved)} Unknown Information Asset Reference(s)",
                category=FindingCategory.ASSET_REFERENCES,
                severity=Severity.LOW,
                description="Risks reference asset ids missing from the information asset inventory.",
                evidence=_truncate_evidence(unresolved),
                recommendation="Add the assets to the inventory or correct the references.",
                risk_ids=affected,
            )

    def _mismatches(self, l_key, c_key, r_key, optional=False):
        wrong = []
        for r in self.risks:
            stored = r.get(r_key)
            if optional and stored in (None, ""):
                continue
            try:
                expected = evaluate(r.get(l_key), r.get(c_key))
            except InvalidInput:
                continue
            try:
                matches = parse_rating(stored) == expected
            except InvalidInput:
                matches = False
            if not matches:
                wrong.append((_rid(r), stored or "missing", expected.value))
        return wrong

    @staticmethod
    def _valid(value, level_type) -> bool:
        parser = parse_likelihood if level_type is LikelihoodLevel else parse_consequence
        try:
            parser(value)
        except InvalidInput:
            return False
        return True

    def _add(self, title, category, severity, description,
             recommendation, evidence=None, risk_ids=None):
        self._counter += 1
        self.findings.append(Finding(
            id=f"F-{self._counter:03d}",
            title=title,
            category=category,
            severity=severity,
            description=description,
            evidence=evidence,
            recommendation=recommendation,
            risk_ids=risk_ids or [],
        ))
