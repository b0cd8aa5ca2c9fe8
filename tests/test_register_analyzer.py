"""Tests for register consistency checks."""

from analyzers.register_analyzer import RegisterAnalyzer, _truncate_evidence
from core.asset_resolver import build_asset_table
from models.risk import FindingCategory, Severity


def _by_category(findings, category):
    return [f for f in findings if f.category == category]


def test_consistent_register_has_no_findings(clean_risk: dict, asset_table: dict) -> None:
    assert RegisterAnalyzer([clean_risk], asset_table).run_all_checks() == []


def test_stale_rating_is_reported(clean_risk: dict) -> None:
    stale = {**clean_risk, "riskId": "RISK-002", "likelihoodRating": "Likely",
             "consequenceRating": "Insignificant", "riskRating": "Low"}

    findings = RegisterAnalyzer([clean_risk, stale]).run_all_checks()
    (finding,) = _by_category(findings, FindingCategory.RATING_CONSISTENCY)

    assert finding.severity == Severity.HIGH
    assert finding.risk_ids == ["RISK-002"]
    assert "expected Moderate" in finding.evidence


def test_missing_stored_rating_is_a_mismatch(clean_risk: dict) -> None:
    doc = {**clean_risk}
    del doc["riskRating"]

    (finding,) = RegisterAnalyzer([doc]).run_all_checks()

    assert finding.category == FindingCategory.RATING_CONSISTENCY
    assert "missing" in finding.evidence


def test_residual_rating_mismatch(clean_risk: dict) -> None:
    doc = {**clean_risk, "residualRiskRating": "High"}

    (finding,) = RegisterAnalyzer([doc]).run_all_checks()

    assert finding.category == FindingCategory.RESIDUAL_RISK
    assert finding.severity == Severity.HIGH


def test_residual_above_inherent(clean_risk: dict) -> None:
    doc = {**clean_risk, "likelihoodRating": "Rare", "consequenceRating": "Insignificant",
           "riskRating": "Low", "residualLikelihood": "Likely", "residualConsequence": "Major",
           "residualRiskRating": "Extreme"}

    (finding,) = RegisterAnalyzer([doc]).run_all_checks()

    assert finding.category == FindingCategory.RESIDUAL_RISK
    assert finding.severity == Severity.MEDIUM
    assert "Low before, Extreme after" in finding.evidence


def test_legacy_and_unknown_scale_values_are_separated(clean_risk: dict) -> None:
    legacy = {**clean_risk, "riskId": "RISK-010", "likelihoodRating": "Medium",
              "consequenceRating": "High", "riskRating": "Medium"}
    garbage = {**clean_risk, "riskId": "RISK-011", "likelihoodRating": "Sometimes"}

    findings = _by_category(
        RegisterAnalyzer([legacy, garbage]).run_all_checks(), FindingCategory.SCALE_VALUES
    )

    assert [(f.severity, f.risk_ids) for f in findings] == [
        (Severity.MEDIUM, ["RISK-010"]),
        (Severity.HIGH, ["RISK-011"]),
    ]


def test_unevaluable_risks_are_not_reported_as_rating_mismatches(clean_risk: dict) -> None:
    legacy = {**clean_risk, "likelihoodRating": "Medium", "riskRating": "Medium"}

    findings = RegisterAnalyzer([legacy]).run_all_checks()

    assert _by_category(findings, FindingCategory.RATING_CONSISTENCY) == []


def test_cia_findings(clean_risk: dict) -> None:
    no_impact = {**clean_risk, "riskId": "RISK-020", "impact": []}
    typo = {**clean_risk, "riskId": "RISK-021", "impact": "Confidentiality; Integrety"}

    findings = _by_category(
        RegisterAnalyzer([no_impact, typo]).run_all_checks(), FindingCategory.CIA_IMPACT
    )

    assert [f.risk_ids for f in findings] == [["RISK-020"], ["RISK-021"]]
    assert "Integrety" in findings[1].evidence
    assert all(f.severity == Severity.LOW for f in findings)


def test_impact_cia_string_field_is_read(clean_risk: dict) -> None:
    doc = {**clean_risk}
    del doc["impact"]
    doc["impactCIA"] = "Availability"

    assert RegisterAnalyzer([doc]).run_all_checks() == []


def test_unknown_asset_references(clean_risk: dict, asset_table: dict) -> None:
    doc = {**clean_risk, "informationAsset": "1, A-404"}

    (finding,) = RegisterAnalyzer([doc], asset_table).run_all_checks()

    assert finding.category == FindingCategory.ASSET_REFERENCES
    assert finding.evidence == "A-404"


def test_delimited_asset_list_entries_resolve(clean_risk: dict, asset_table: dict) -> None:
    doc = {**clean_risk, "informationAsset": ["1, 2"]}

    assert RegisterAnalyzer([doc], asset_table).run_all_checks() == []


def test_asset_check_skipped_without_inventory(clean_risk: dict) -> None:
    doc = {**clean_risk, "informationAsset": ["does-not-exist"]}

    assert RegisterAnalyzer([doc]).run_all_checks() == []


def test_missing_and_duplicate_ids(clean_risk: dict) -> None:
    anonymous = {**clean_risk, "riskId": ""}

    findings = RegisterAnalyzer([clean_risk, clean_risk, anonymous]).run_all_checks()
    integrity = _by_category(findings, FindingCategory.RECORD_INTEGRITY)

    assert [f.severity for f in integrity] == [Severity.HIGH, Severity.MEDIUM]
    assert integrity[0].evidence == "Positions: 3"
    assert integrity[1].risk_ids == ["RISK-001"]


def test_finding_ids_are_sequential(mock_client) -> None:
    risks = mock_client.get_risks()
    table = build_asset_table(mock_client.get_information_assets())

    findings = RegisterAnalyzer(risks, table).run_all_checks()

    assert [f.id for f in findings] == [f"F-{i:03d}" for i in range(1, len(findings) + 1)]


def test_mock_register_problems_are_detected(mock_client) -> None:
    risks = mock_client.get_risks()
    table = build_asset_table(mock_client.get_information_assets())

    findings = RegisterAnalyzer(risks, table).run_all_checks()
    flagged = {(f.category, rid) for f in findings for rid in f.risk_ids}

    assert (FindingCategory.SCALE_VALUES, "RISK-013") in flagged
    assert (FindingCategory.RATING_CONSISTENCY, "RISK-014") in flagged
    assert (FindingCategory.RESIDUAL_RISK, "RISK-015") in flagged
    assert (FindingCategory.CIA_IMPACT, "RISK-015") in flagged
    assert (FindingCategory.ASSET_REFERENCES, "RISK-014") in flagged
    # seeded records are consistent, only the hand-made ones trip checks
    assert {rid for _, rid in flagged} == {"RISK-013", "RISK-014", "RISK-015"}


def test_truncate_evidence() -> None:
    assert _truncate_evidence(["a", "b"]) == "a, b"
    assert _truncate_evidence(list("abcdefg"), max_items=3) == "a, b, c (+ 4 more)"
    assert _truncate_evidence(["", " "]) == "2 items (ids not available)"
