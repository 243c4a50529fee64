"""
Community reporting

Anonymous submission and retrieval of community experiment data.
No API keys are ever transmitted.
"""

from __future__ import annotations

import logging

import httpx

from oneword_core.domain.entities import Experiment, ExperimentResults
from oneword_core.domain.value_objects import SubmissionResult

logger = logging.getLogger(__name__)

TOP_WORDS_LIMIT = 50
MODEL_WORDS_LIMIT = 20


def build_submission(experiment: Experiment, results: ExperimentResults) -> dict:
    """
    Build the anonymized submission payload.

    The sweep is summarized as min/max/distinct-count per axis rather than
    the full config list.
    """
    temperatures = [c.temperature for c in experiment.configs]
    top_ks = [c.top_k for c in experiment.configs]

    return {
        "stimulus": experiment.stimulus,
        "models": list(experiment.selected_models),
        "config": {
            "temperatureMin": min(temperatures),
            "temperatureMax": max(temperatures),
            "temperatureSteps": len(set(temperatures)),
            "topKMin": min(top_ks),
            "topKMax": max(top_ks),
            "topKSteps": len(set(top_ks)),
            "samplesPerConfig": experiment.samples_per_config,
        },
        "results": {
            "totalSamples": results.total_samples,
            "uniqueWords": results.unique_words,
            "entropy": results.entropy,
            "topWords": [w.to_dict() for w in results.top_words[:TOP_WORDS_LIMIT]],
            "byModel": [
                {
                    "modelId": m.model_id,
                    "words": [w.to_dict() for w in m.words[:MODEL_WORDS_LIMIT]],
                }
                for m in results.by_model
            ],
            "byTemperature": {
                str(temperature): [w.to_dict() for w in words]
                for temperature, words in results.by_temperature.items()
            },
        },
    }


class CommunityReporter:
    """Client for the community data service"""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: Community API base URL (e.g. https://example.org/api/community)
            timeout_seconds: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_seconds,
            transport=self._transport,
        )

    async def submit(self, experiment: Experiment, results: ExperimentResults) -> SubmissionResult:
        """
        Submit an experiment's results.

        Failures are logged and reported in the returned SubmissionResult;
        this method never raises for HTTP or network errors.
        """
        payload = build_submission(experiment, results)
        try:
            async with self._client() as client:
                resp = await client.post("/submit", json=payload)
        except httpx.HTTPError as e:
            logger.warning("Community submission failed for %s: %s", experiment.id, e)
            return SubmissionResult(success=False, error="Network error")

        if resp.is_error:
            error = _json_field(resp, "error") or "Submission failed"
            logger.warning(
                "Community submission rejected for %s: %s %s",
                experiment.id, resp.status_code, error,
            )
            return SubmissionResult(success=False, error=error)

        submission_id = _json_field(resp, "id")
        logger.info("Experiment %s submitted to community: %s", experiment.id, submission_id)
        return SubmissionResult(success=True, submission_id=submission_id)

    async def fetch_stats(self) -> dict | None:
        """Aggregate community statistics, or None if unavailable"""
        return await self._get_json("/stats")

    async def fetch_recent(self) -> list[dict]:
        """Recently submitted experiments"""
        data = await self._get_json("/recent")
        return data.get("experiments", []) if data else []

    async def lookup_word(self, word: str) -> dict | None:
        """Where a word has appeared across community experiments"""
        return await self._get_json("/word", params={"q": word})

    async def _get_json(self, path: str, params: dict | None = None) -> dict | None:
        try:
            async with self._client() as client:
                resp = await client.get(path, params=params)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Community request %s failed: %s", path, e)
            return None
        if not isinstance(data, dict):
            logger.warning("Community request %s returned a non-object body", path)
            return None
        return data


def _json_field(resp: httpx.Response, name: str):
    """Field of a JSON object body, or None if the body is not a JSON object"""
    try:
        data = resp.json()
    except ValueError:
        return None
    return data.get(name) if isinstance(data, dict) else None
