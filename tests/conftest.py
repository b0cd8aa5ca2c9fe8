"""Shared pytest fixtures."""

import pytest

from config.settings import Settings
from integrations.grc_client import GRCClient


@pytest.fixture(autouse=True)
def mock_mode(monkeypatch, tmp_path):
    """Keep every test away from a real register API and the working tree."""
    monkeypatch.setattr(Settings, "MOCK_MODE", True)
    monkeypatch.setattr(Settings, "REPORT_OUTPUT_DIR", tmp_path / "reports")
    monkeypatch.setattr(Settings, "ORGANIZATION_NAME", "Example Corp")


@pytest.fixture
def mock_client() -> GRCClient:
    return GRCClient(mock=True)


@pytest.fixture
def asset_table() -> dict:
    return {"1": "Source Code Repository", "2": "Customer PII Database", "3": "Billing Platform"}


@pytest.fixture
def clean_risk() -> dict:
    return {
        "riskId": "RISK-001",
        "likelihoodRating": "Possible",
        "consequenceRating": "Moderate",
        "riskRating": "High",
        "residualLikelihood": "Rare",
        "residualConsequence": "Minor",
        "residualRiskRating": "Low",
        "impact": ["Confidentiality", "Integrity"],
        "informationAsset": ["1", "2"],
        "currentPhase": "Treatment",
        "riskAction": "Mitigate",
    }
