"""
Sample risk register data.

Every generated rating goes through the matrix, so seeded documents always
satisfy ``riskRating == evaluate(likelihoodRating, consequenceRating)``.
"""

import random
from datetime import date, timedelta
from loguru import logger
from core.cia_classifier import ordered
from core.risk_matrix import evaluate
from models.risk import (
    CIAComponent, ConsequenceLevel, LikelihoodLevel, RiskAction, RiskPhase,
)

FUNCTIONAL_UNITS = [
    "IT Operations", "Network Management Systems", "Software Development",
    "Systems Engineering", "Corporate IT", "Data & Analytics", "Privacy Compliance",
    "Applications Support", "Security (GRC)", "Business Support",
    "Customer Success", "Commercial (Sales)",
]

INFORMATION_ASSETS = [
    "Source Code Repository", "Customer PII Database", "Billing Platform",
    "Network Edge Routers", "Identity Provider (IdP)", "SIEM Platform",
    "Endpoint Fleet", "Corporate Email", "Data Warehouse (EDP)",
    "Cloud Storage Buckets", "CI/CD Pipeline", "HRIS", "Finance GL",
    "Contracts Repository", "API Gateway", "DNS Management",
    "Certificate Authority", "Backups & Snapshots", "VPN Concentrators",
    "Payment Processor",
]

OWNERS = [
    "Chief Technology Officer", "Information Security GRC Manager",
    "VP of Engineering", "Head of Corporate IT", "Data & Analytics Lead",
    "Privacy Officer", "Network Operations Manager",
    "Applications Support Manager", "Product Engineering Director",
]

CURRENT_CONTROLS = [
    "MFA enforced", "Quarterly access reviews", "Network segmentation",
    "EDR with behavioural detection", "WAF in front of APIs",
    "Automated patching windows", "Immutable backups (air-gapped)",
    "SSO via IdP with conditional access", "Vulnerability scanning (weekly)",
    "DLP policies for email and cloud", "SIEM correlation with 12-month retention",
    "Change management with approvals", "Secure baseline images (CIS)",
]

# ISO/IEC 27001:2022 Annex A
ISO_CONTROLS = (
    [f"A.5.{i}" for i in range(1, 38)]
    + [f"A.6.{i}" for i in range(1, 9)]
    + [f"A.7.{i}" for i in range(1, 15)]
    + [f"A.8.{i}" for i in range(1, 35)]
)

RISK_TEMPLATES = [
    ("Credential stuffing and brute force against public login endpoints",
     "Weak password hygiene; missing MFA for some accounts; insufficient rate limiting",
     "Risk of account takeover leading to unauthorised access to sensitive systems and data."),
    ("Phishing and business email compromise targeting executives and finance staff",
     "Inadequate user awareness; weak mail authentication (SPF/DKIM/DMARC) enforcement",
     "Risk of fraudulent payments, data leakage, and regulatory non-compliance."),
    ("Ransomware delivered via endpoint exploits or email",
     "Unpatched endpoints; permissive macro settings; insufficient EDR coverage",
     "Risk of data encryption, service disruption, and costly recovery efforts."),
    ("Cloud misconfiguration exposing storage buckets or databases",
     "Public read ACLs; missing network restrictions; weak IAM policies",
     "Risk of unauthorised data access and breach notification obligations."),
    ("Insider misuse of privileged access",
     "Inadequate segregation of duties; stale privileged accounts; insufficient monitoring",
     "Risk of data tampering, exfiltration, and reputational damage."),
    ("Third-party/SaaS breach impacting integrated systems",
     "Weak supplier due diligence; inadequate contract clauses; token over-privilege",
     "Risk of downstream compromise and data leakage through supplier systems."),
    ("DDoS against customer-facing services",
     "Limited autoscaling; missing upstream protection; inadequate runbooks",
     "Risk of service unavailability and SLA penalties."),
    ("API key or token leakage via public repos or logs",
     "Secrets in code; insufficient scanning; permissive token scopes",
     "Risk of unauthorised API access and data exfiltration."),
    ("Compromise of CI/CD pipeline",
     "Weak runner isolation; unsigned artifacts; permissive repo permissions",
     "Risk of supply chain compromise and malicious code deployment."),
    ("Loss of backups or inability to restore",
     "Incomplete backup coverage; untested restores; single-region storage",
     "Risk of prolonged data loss and recovery failure."),
]

ACTIVE_PHASES = [
    RiskPhase.IDENTIFICATION, RiskPhase.ANALYSIS, RiskPhase.EVALUATION,
    RiskPhase.TREATMENT, RiskPhase.MONITORING,
]

# post-treatment values are drawn from the lower bands
RESIDUAL_LIKELIHOODS = [LikelihoodLevel.RARE, LikelihoodLevel.UNLIKELY, LikelihoodLevel.POSSIBLE]
RESIDUAL_CONSEQUENCES = [ConsequenceLevel.INSIGNIFICANT, ConsequenceLevel.MINOR, ConsequenceLevel.MODERATE]


def sample_assets() -> list[dict]:
    return [
        {"id": str(i), "informationAsset": name}
        for i, name in enumerate(INFORMATION_ASSETS, 1)
    ]


def make_risk(i: int, rng: random.Random, raised_from: date = date(2025, 6, 1)) -> dict:
    threat, vulnerability, statement = rng.choice(RISK_TEMPLATES)
    likelihood = rng.choice(list(LikelihoodLevel))
    consequence = rng.choice(list(ConsequenceLevel))
    # residual levels stay at or below the inherent ones
    residual_likelihood = rng.choice([l for l in RESIDUAL_LIKELIHOODS if l.index <= likelihood.index])
    residual_consequence = rng.choice([c for c in RESIDUAL_CONSEQUENCES if c.index <= consequence.index])
    action = rng.choice(list(RiskAction))
    impact = ordered(rng.sample(list(CIAComponent), rng.randint(1, 3)))
    asset_ids = rng.sample([str(n) for n in range(1, len(INFORMATION_ASSETS) + 1)], rng.randint(1, 3))
    raised = raised_from + timedelta(days=rng.randint(0, 60))
    rating = evaluate(likelihood, consequence)

    return {
        "riskId": f"RISK-{i:03d}",
        "functionalUnit": rng.choice(FUNCTIONAL_UNITS),
        "informationAsset": asset_ids,
        "riskStatement": statement,
        "threat": threat,
        "vulnerability": vulnerability,
        "likelihoodRating": likelihood.value,
        "consequenceRating": consequence.value,
        "riskRating": rating.value,
        "residualLikelihood": residual_likelihood.value,
        "residualConsequence": residual_consequence.value,
        "residualRiskRating": evaluate(residual_likelihood, residual_consequence).value,
        "impact": [c.value for c in impact],
        "riskOwner": rng.choice(OWNERS),
        "raisedBy": rng.choice(OWNERS),
        "currentControls": rng.sample(CURRENT_CONTROLS, rng.randint(2, 4)),
        "currentControlsReference": rng.sample(ISO_CONTROLS, rng.randint(3, 7)),
        "currentPhase": rng.choice(ACTIVE_PHASES).value,
        "riskAction": action.value,
        "reasonForAcceptance": (
            "Residual risk within appetite for time-bound business needs."
            if action == RiskAction.ACCEPT else "N/A"
        ),
        "dateRiskRaised": raised.isoformat(),
        "jiraTicket": f"RISK-{i:03d}",
    }


def generate_risks(count: int, rng: random.Random = None) -> list[dict]:
    rng = rng or random.Random()
    return [make_risk(i, rng) for i in range(1, count + 1)]


def seed(store, count: int, rng: random.Random = None) -> list[dict]:
    """Generate ``count`` risks and hand them to ``store.insert_many``."""
    risks = generate_risks(count, rng)
    logger.info(f"Seeding {len(risks)} risk records...")
    store.insert_many(risks)
    logger.info(f"Seeded {len(risks)} risk records.")
    return risks
