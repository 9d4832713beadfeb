"""
Shared fixtures for the session and recommender tests.
"""

import os
import sys
import random
from typing import Any, Dict, List, Optional, Sequence

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from recommender.models import PredictionResponse
from session.chain_store import ChainStore
from session.models import Activity, FormAnswers
from session.orchestrator import SessionOrchestrator
from session.presentation import Presentation
from utils.kv_store import MemoryStore


CATALOG = [
    {"id": "ACT021", "name": "ACT021", "weeklyPlan": "Mon–Fri: 5 trials"},
    {"id": "ACT102", "name": "ACT102", "weeklyPlan": "Mon: intro"},
    {"id": "ACT153", "name": "ACT153", "weeklyPlan": "Daily: 3–5 trials"},
]


class RecordingPresentation(Presentation):
    """Presentation double: scripted form answers, records everything shown."""

    def __init__(self, answers: Optional[List[Optional[FormAnswers]]] = None):
        self.answers = list(answers or [])
        self.rendered: List[Sequence[Activity]] = []
        self.form_requests: List[str] = []
        self.results: List[PredictionResponse] = []
        self.errors: List[str] = []
        self.gate = None  # optional asyncio.Event the form waits on

    def render_chain(self, chain):
        self.rendered.append(chain)

    async def collect_finish_form(self, activity_id):
        self.form_requests.append(activity_id)
        if self.gate is not None:
            await self.gate.wait()
        if self.answers:
            return self.answers.pop(0)
        return FormAnswers()

    def show_result(self, response):
        self.results.append(response)

    def show_error(self, message):
        self.errors.append(message)


class StubClient:
    """Recommendation client double returning queued responses or raising queued errors."""

    def __init__(self, outcomes: Optional[List[Any]] = None):
        self.outcomes = list(outcomes or [])
        self.calls: List[Dict[str, Any]] = []

    async def predict(self, context, top_k=5, followup_n=3, exclude_ids=None):
        self.calls.append({
            "context": context,
            "top_k": top_k,
            "followup_n": followup_n,
            "exclude_ids": list(exclude_ids or []),
        })
        outcome = self.outcomes.pop(0) if self.outcomes else PredictionResponse()
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, dict):
            return PredictionResponse.model_validate(outcome)
        return outcome


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def chain_store(memory_store) -> ChainStore:
    return ChainStore(memory_store)


@pytest.fixture
def presentation() -> RecordingPresentation:
    return RecordingPresentation()


@pytest.fixture
def make_orchestrator(chain_store, presentation, tmp_path):
    """Factory building an orchestrator over the shared store and presentation."""

    def _make(client=None, seed: int = 7, **kwargs) -> SessionOrchestrator:
        options = {
            "chain_store": chain_store,
            "rng": random.Random(seed),
            "default_catalog": CATALOG,
            "top_k": 5,
            "followup_n": 3,
            "activity_log_dir": str(tmp_path / "activity_logs"),
        }
        options.update(kwargs)
        return SessionOrchestrator(
            client=client or StubClient(),
            presentation=presentation,
            **options
        )

    return _make


def activity(activity_id: str, name: Optional[str] = None, weekly_plan: str = "") -> Activity:
    return Activity(id=activity_id, name=name or activity_id, weekly_plan=weekly_plan)
