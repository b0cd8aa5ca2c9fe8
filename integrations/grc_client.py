import random
import httpx
from loguru import logger
from tenacity import retry, stop_after_attempt, wait_exponential
from config.settings import settings
from services.seeding import generate_risks, sample_assets


class GRCClient:
    def __init__(self, base_url: str = None, token: str = None, mock: bool = None,
                 transport: httpx.BaseTransport = None):
        self.mock = settings.MOCK_MODE if mock is None else mock
        self.base_url = (base_url or settings.GRC_API_URL).rstrip("/")
        self.headers = {
            "Authorization": f"Bearer {token if token is not None else settings.GRC_API_TOKEN}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        self.transport = transport
        self.inserted: list[dict] = []
        self.updated: dict[str, dict] = {}
        if self.mock:
            logger.warning("GRCClient: MOCK MODE active.")
        else:
            logger.info(f"GRCClient: connecting to {self.base_url}")

    def _client(self, timeout: float) -> httpx.Client:
        return httpx.Client(headers=self.headers, timeout=timeout, transport=self.transport)

    def verify_connection(self):
        if self.mock:
            return
        try:
            with self._client(timeout=15) as client:
                resp = client.get(f"{self.base_url}/api/system-settings")
        except httpx.HTTPError as e:
            logger.error(f"Cannot reach register API: {e}")
            raise ConnectionError(
                "Cannot connect to the risk register. Check GRC_API_URL and network access."
            ) from e
        if resp.status_code in (401, 403):
            logger.error(f"Auth failed: HTTP {resp.status_code}")
            raise ConnectionError("Register API rejected the token. Check GRC_API_TOKEN.")
        logger.info(f"Register API reachable (HTTP {resp.status_code})")

    # ------------------------------------------------------------------
    # Information assets
    # ------------------------------------------------------------------
    def get_information_assets(self) -> list[dict]:
        if self.mock:
            return self._mock_assets()
        return self._get("/api/information-assets/list")

    # ------------------------------------------------------------------
    # Risks
    # ------------------------------------------------------------------
    def get_risks(self) -> list[dict]:
        if self.mock:
            return self._mock_risks()
        return self._get("/api/risks")

    def insert_many(self, records: list[dict]) -> int:
        if self.mock:
            self.inserted.extend(records)
            logger.info(f"MOCK insert_many → {len(records)} records kept in memory")
            return len(records)

        created = 0
        with self._client(timeout=30) as client:
            for record in records:
                resp = client.post(f"{self.base_url}/api/risks", json=record)
                if resp.is_error:
                    logger.error(f"Insert failed for {record.get('riskId')}: HTTP {resp.status_code}")
                    resp.raise_for_status()
                created += 1
        logger.info(f"POST /api/risks → {created} records created")
        return created

    def update_risk(self, risk_id: str, record: dict) -> dict:
        if self.mock:
            self.updated[risk_id] = record
            logger.info(f"MOCK update_risk → {risk_id}")
            return record
        with self._client(timeout=30) as client:
            resp = client.put(f"{self.base_url}/api/risks/{risk_id}", json=record)
            resp.raise_for_status()
        logger.info(f"PUT /api/risks/{risk_id} → HTTP {resp.status_code}")
        return resp.json().get("data", record)

    # ------------------------------------------------------------------
    # Generic GET with retry
    # ------------------------------------------------------------------
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _get(self, endpoint: str) -> list[dict]:
        try:
            with self._client(timeout=30) as client:
                resp = client.get(f"{self.base_url}{endpoint}")
                resp.raise_for_status()
                payload = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error on {endpoint}: {e.response.status_code}")
            raise
        except httpx.HTTPError as e:
            logger.error(f"Error on {endpoint}: {e}")
            raise

        if isinstance(payload, dict):
            if payload.get("success") is False:
                raise httpx.HTTPStatusError(
                    f"{endpoint} returned error: {payload.get('error', 'unknown')}",
                    request=resp.request, response=resp,
                )
            result = payload.get("data", [])
        else:
            result = payload
        logger.info(f"GET {endpoint} → {len(result)} records")
        return result

    # ==================================================================
    # MOCK DATA
    # ==================================================================
    def _mock_assets(self):
        return sample_assets()

    def _mock_risks(self):
        risks = generate_risks(12, random.Random(2025))
        return risks + [
            # stored before the five-point scales were introduced
            {"riskId": "RISK-013", "likelihoodRating": "Medium", "consequenceRating": "High",
             "riskRating": "Medium", "impact": "Confidentiality, Integrity",
             "informationAsset": "3, 7"},
            # rating edited by hand
            {"riskId": "RISK-014", "likelihoodRating": "Likely", "consequenceRating": "Insignificant",
             "riskRating": "Low", "impact": ["Availability"], "informationAsset": ["2", "A-404"]},
            # residual worse than inherent, CIA typo
            {"riskId": "RISK-015", "likelihoodRating": "Unlikely", "consequenceRating": "Minor",
             "riskRating": "Low", "residualLikelihood": "Likely", "residualConsequence": "Major",
             "residualRiskRating": "Extreme", "impact": "Confidentiality; Integrety",
             "informationAsset": ["5"]},
        ]
