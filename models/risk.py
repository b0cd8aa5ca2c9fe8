from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class LikelihoodLevel(str, Enum):
    RARE = "Rare"
    UNLIKELY = "Unlikely"
    POSSIBLE = "Possible"
    LIKELY = "Likely"
    ALMOST_CERTAIN = "Almost Certain"

    @property
    def index(self) -> int:
        return list(LikelihoodLevel).index(self)


class ConsequenceLevel(str, Enum):
    INSIGNIFICANT = "Insignificant"
    MINOR = "Minor"
    MODERATE = "Moderate"
    MAJOR = "Major"
    CRITICAL = "Critical"

    @property
    def index(self) -> int:
        return list(ConsequenceLevel).index(self)


class RiskRating(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    EXTREME = "Extreme"

    @property
    def rank(self) -> int:
        return list(RiskRating).index(self)


class CIAComponent(str, Enum):
    CONFIDENTIALITY = "Confidentiality"
    INTEGRITY = "Integrity"
    AVAILABILITY = "Availability"


class RiskPhase(str, Enum):
    DRAFT = "Draft"
    IDENTIFICATION = "Identification"
    ANALYSIS = "Analysis"
    EVALUATION = "Evaluation"
    TREATMENT = "Treatment"
    MONITORING = "Monitoring"
    CLOSED = "Closed"


class RiskAction(str, Enum):
    AVOID = "Avoid"
    TRANSFER = "Transfer"
    ACCEPT = "Accept"
    MITIGATE = "Mitigate"


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


class FindingCategory(str, Enum):
    RATING_CONSISTENCY = "Rating Consistency"
    RESIDUAL_RISK = "Residual Risk"
    SCALE_VALUES = "Scale Values"
    CIA_IMPACT = "CIA Impact"
    ASSET_REFERENCES = "Asset References"
    RECORD_INTEGRITY = "Record Integrity"


class RiskRecord(BaseModel):
    """A risk register entry with its ratings derived from the matrix.

    Field aliases follow the document layout of the register's data store so
    ``model_dump(by_alias=True)`` produces a writable document.
    """

    model_config = ConfigDict(populate_by_name=True)

    risk_id: str = Field(alias="riskId")
    likelihood: LikelihoodLevel = Field(alias="likelihoodRating")
    consequence: ConsequenceLevel = Field(alias="consequenceRating")
    risk_rating: RiskRating = Field(alias="riskRating")
    residual_likelihood: Optional[LikelihoodLevel] = Field(default=None, alias="residualLikelihood")
    residual_consequence: Optional[ConsequenceLevel] = Field(default=None, alias="residualConsequence")
    residual_rating: Optional[RiskRating] = Field(default=None, alias="residualRiskRating")
    impact: list[CIAComponent] = Field(default_factory=list)
    information_asset: list[str] = Field(default_factory=list, alias="informationAsset")
    phase: Optional[RiskPhase] = Field(default=None, alias="currentPhase")
    action: Optional[RiskAction] = Field(default=None, alias="riskAction")
    functional_unit: Optional[str] = Field(default=None, alias="functionalUnit")
    risk_owner: Optional[str] = Field(default=None, alias="riskOwner")
    threat: Optional[str] = None
    vulnerability: Optional[str] = None
    statement: Optional[str] = Field(default=None, alias="riskStatement")

    @property
    def has_residual(self) -> bool:
        return self.residual_rating is not None


class Finding(BaseModel):
    id: str
    title: str
    category: FindingCategory
    severity: Severity
    description: str
    evidence: Optional[str] = None
    recommendation: str
    risk_ids: list[str] = Field(default_factory=list)


class HeatMapCell(BaseModel):
    likelihood: LikelihoodLevel
    consequence: ConsequenceLevel
    rating: RiskRating
    # likelihood index * consequence index, for sorting and shading only
    numeric_score: int
    count: int = 0
    risk_ids: list[str] = Field(default_factory=list)


class RegisterSummary(BaseModel):
    organization_name: str
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    total_risks: int = 0
    rated_risks: int = 0
    rating_counts: dict[RiskRating, int] = Field(default_factory=dict)
    residual_counts: dict[RiskRating, int] = Field(default_factory=dict)
    cia_counts: dict[CIAComponent, int] = Field(default_factory=dict)
    heat_map: list[HeatMapCell] = Field(default_factory=list)
    records: list[RiskRecord] = Field(default_factory=list)
    findings: list[Finding] = Field(default_factory=list)

    @property
    def extreme_risks(self):
        return [r for r in self.records if r.risk_rating == RiskRating.EXTREME]

    @property
    def high_findings(self):
        return [f for f in self.findings if f.severity in (Severity.CRITICAL, Severity.HIGH)]
