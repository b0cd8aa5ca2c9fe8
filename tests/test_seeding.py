import random

from analyzers.register_analyzer import RegisterAnalyzer
from core.asset_resolver import build_asset_table
from core.risk_matrix import evaluate
from services.risk_service import build_record
from services.seeding import INFORMATION_ASSETS, generate_risks, sample_assets, seed


class FakeStore:
    def __init__(self):
        self.batches = []

    def insert_many(self, records):
        self.batches.append(records)
        return len(records)


def test_seeded_ratings_follow_matrix():
    for risk in generate_risks(40, random.Random(7)):
        assert risk["riskRating"] == evaluate(risk["likelihoodRating"], risk["consequenceRating"]).value
        assert risk["residualRiskRating"] == evaluate(
            risk["residualLikelihood"], risk["residualConsequence"]).value


def test_same_seed_gives_same_register():
    assert generate_risks(5, random.Random(42)) == generate_risks(5, random.Random(42))


def test_ids_are_sequential():
    ids = [r["riskId"] for r in generate_risks(12, random.Random(1))]
    assert ids == [f"RISK-{i:03d}" for i in range(1, 13)]


def test_seeded_assets_exist_in_sample_inventory():
    known = {a["id"] for a in sample_assets()}
    assert len(known) == len(INFORMATION_ASSETS)
    for risk in generate_risks(20, random.Random(3)):
        assert set(risk["informationAsset"]) <= known


def test_seed_hands_records_to_store():
    store = FakeStore()

    risks = seed(store, 4, random.Random(9))

    assert store.batches == [risks]
    assert len(risks) == 4


def test_seeded_documents_build_strictly():
    for risk in generate_risks(25, random.Random(11)):
        record = build_record(risk)
        assert record.has_residual
        assert record.impact


def test_seeded_residual_never_above_inherent():
    for risk in generate_risks(200, random.Random(7)):
        inherent = evaluate(risk["likelihoodRating"], risk["consequenceRating"])
        residual = evaluate(risk["residualLikelihood"], risk["residualConsequence"])
        assert residual.rank <= inherent.rank, risk["riskId"]


def test_seeded_register_passes_review():
    risks = generate_risks(50, random.Random(7))
    table = build_asset_table(sample_assets())

    assert RegisterAnalyzer(risks, table).run_all_checks() == []
