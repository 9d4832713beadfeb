"""
Session Orchestrator

State machine over one user session:
1. boot: load the persisted chain, or seed it with one random default activity
2. finish: always acts on the last activity of the chain (the frontier)
3. collect form answers through the presentation (None = cancelled, no change)
4. build context and exclusion list (frontier + every finished id)
5. call the recommendation service
6. on success: mark the frontier finished, append the top1 activity if any
7. on failure: leave chain and finished ids untouched, show the error
8. reset: clear persisted state and boot again

Only one finish workflow may be in flight; a second request is rejected.
"""

import asyncio
import logging
import random
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from recommender import config_loader as recommender_config
from recommender.client import RecommendationClient
from recommender.exceptions import RecommendationError
from recommender.models import PredictionResponse
from session.chain_store import ChainStore
from session.config_loader import load_config
from session.context_builder import build_context, compute_exclude_ids
from session.models import Activity, FinishOutcome, SessionState
from session.presentation import Presentation
from utils import activity_logger
from utils.log_utils import log_json

logger = logging.getLogger(__name__)

BUSY_MESSAGE = "A finish is already in progress"


class SessionOrchestrator:
    """Drives the recommendation chain for a single user session."""

    def __init__(
        self,
        chain_store: ChainStore,
        client: RecommendationClient,
        presentation: Presentation,
        rng: Optional[random.Random] = None,
        default_catalog: Optional[Sequence[Dict[str, Any]]] = None,
        top_k: Optional[int] = None,
        followup_n: Optional[int] = None,
        activity_log_dir: Optional[str] = None
    ):
        """
        Initialize orchestrator.

        Args:
            chain_store: Store for the chain and finished ids (lives as long as the process)
            client: Recommendation service client
            presentation: Where chain snapshots, forms, results and errors go
            rng: Random source for seeding (inject a seeded Random for determinism)
            default_catalog: Seed activities as {id, name, weeklyPlan} dicts (defaults to config)
            top_k: Candidates requested per prediction (defaults to config)
            followup_n: Follow-up questions requested per prediction (defaults to config)
            activity_log_dir: Root directory for activity JSONL logs (defaults to config)
        """
        config = load_config()
        client_config = recommender_config.load_config()

        catalog = default_catalog if default_catalog is not None else config["default_catalog"]
        self.default_catalog: List[Activity] = [Activity.model_validate(item) for item in catalog]
        if not self.default_catalog:
            raise ValueError("Default activity catalog must not be empty")

        self.chain_store = chain_store
        self.client = client
        self.presentation = presentation
        self.rng = rng or random.Random()
        self.top_k = top_k or client_config["top_k"]
        self.followup_n = followup_n if followup_n is not None else client_config["followup_n"]
        self.activity_log_dir = activity_log_dir or config["activity_log_dir"]

        self._chain: Tuple[Activity, ...] = ()
        self._state = SessionState.UNINITIALIZED
        # Bumped on every reset so an in-flight finish can tell its chain is gone
        self._generation = 0
        # Held while a finish commits its result and for the whole of a reset
        self._commit_lock = asyncio.Lock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def chain(self) -> Tuple[Activity, ...]:
        """Immutable snapshot of the current chain."""
        return self._chain

    @property
    def frontier(self) -> Optional[Activity]:
        return self._chain[-1] if self._chain else None

    async def boot(self) -> Tuple[Activity, ...]:
        """Load the persisted chain, seeding it with one default activity when empty."""
        return await self._bootstrap("boot")

    async def reset(self) -> Tuple[Activity, ...]:
        """
        Clear persisted chain and finished ids, then boot again.

        Waits for a finish that is already writing its result; a finish that
        has not reached that point yet is dropped.
        """
        logger.info("Resetting session")
        async with self._commit_lock:
            self._generation += 1
            self._state = SessionState.UNINITIALIZED
            self._chain = ()
            await asyncio.to_thread(self.chain_store.reset_all)
            return await self._bootstrap("reset")

    async def _bootstrap(self, event: str) -> Tuple[Activity, ...]:
        saved = await asyncio.to_thread(self.chain_store.load_chain)
        seeded_id = None

        if saved:
            self._chain = tuple(saved)
            logger.info(f"Loaded chain with {len(saved)} activities; frontier is {saved[-1].id}")
        else:
            seed = self.rng.choice(self.default_catalog)
            await asyncio.to_thread(self.chain_store.save_chain, [seed])
            self._chain = (seed,)
            seeded_id = seed.id
            logger.info(f"No saved chain; seeded with default activity {seed.id}")

        self._state = SessionState.BOOTSTRAPPED
        activity_logger.log_session_activity(
            event=event,
            timestamp=datetime.now(),
            chain_length=len(self._chain),
            seeded_id=seeded_id,
            base_dir=self.activity_log_dir
        )
        self.presentation.render_chain(self._chain)
        return self._chain

    async def finish(self, tapped: Optional[Activity] = None) -> FinishOutcome:
        """
        Run the finish workflow.

        The workflow always acts on the frontier activity; tapped only records
        which card the user pressed and is used when the chain is empty.

        Args:
            tapped: Card the user pressed, if known

        Returns:
            FinishOutcome describing what happened

        Raises:
            RuntimeError: If called before boot()
        """
        if self._state == SessionState.UNINITIALIZED:
            raise RuntimeError("Session is not booted; call boot() first")
        if self._state != SessionState.BOOTSTRAPPED:
            logger.warning(f"Finish requested while session is {self._state.value}; ignoring")
            self.presentation.show_error(BUSY_MESSAGE)
            return FinishOutcome(status="busy")

        current = self.frontier or tapped
        if current is None:
            raise ValueError("There is no activity to finish")
        if tapped is not None and tapped.id != current.id:
            logger.info(f"Finish tapped on {tapped.id}; using frontier activity {current.id}")
        else:
            logger.info(f"Finish requested for frontier activity {current.id}")

        generation = self._generation
        started = datetime.now()
        self._state = SessionState.AWAITING_FINISH_INPUT
        try:
            answers = await self.presentation.collect_finish_form(current.id)
            if answers is None:
                logger.info(f"Finish of {current.id} cancelled")
                return FinishOutcome(status="cancelled", activity_id=current.id)
            if generation != self._generation:
                logger.info(f"Session was reset while the form for {current.id} was open; dropping it")
                return FinishOutcome(status="cancelled", activity_id=current.id)

            context = build_context(current.id, answers)
            log_json(logger, "Context payload", context)

            finished_ids = await asyncio.to_thread(self.chain_store.load_finished)
            exclude_ids = compute_exclude_ids(current.id, finished_ids)
            log_json(logger, "exclude_ids", exclude_ids)

            self._state = SessionState.SUBMITTING
            try:
                response = await self.client.predict(
                    context,
                    top_k=self.top_k,
                    followup_n=self.followup_n,
                    exclude_ids=exclude_ids
                )
            except RecommendationError as e:
                return self._fail(current, exclude_ids, started, str(e))

            return await self._extend(current, response, exclude_ids, started, generation)

        except Exception as e:
            logger.error(f"Unexpected error finishing activity {current.id}: {e}", exc_info=True)
            raise
        finally:
            if generation == self._generation:
                self._state = SessionState.BOOTSTRAPPED

    async def _extend(
        self,
        current: Activity,
        response: PredictionResponse,
        exclude_ids: List[str],
        started: datetime,
        generation: int
    ) -> FinishOutcome:
        top1 = response.top1
        appended = None

        async with self._commit_lock:
            if generation != self._generation:
                return self._fail(current, exclude_ids, started, "Session was reset while the request was in flight")

            await asyncio.to_thread(self.chain_store.mark_finished, current.id)
            if top1 is not None:
                appended = Activity.from_recommendation(top1)
                new_chain = self._chain + (appended,)
                await asyncio.to_thread(self.chain_store.save_chain, list(new_chain))
                self._chain = new_chain
                logger.info(f"Appended {appended.id} (P={top1.prob:.3f}); chain length {len(new_chain)}")
            else:
                logger.warning(f"Service returned no recommendation after {current.id}; chain not extended")

        if appended is not None:
            self.presentation.render_chain(self._chain)

        status = "extended" if appended is not None else "dead_end"
        activity_logger.log_finish_activity(
            activity_id=current.id,
            timestamp=started,
            status=status,
            exclude_ids=exclude_ids,
            recommended_id=top1.activity_id if top1 else None,
            probability=top1.prob if top1 else None,
            follow_up_count=len(response.follow_up_questions),
            chain_length=len(self._chain),
            duration_seconds=(datetime.now() - started).total_seconds(),
            base_dir=self.activity_log_dir
        )
        self.presentation.show_result(response)
        return FinishOutcome(status=status, activity_id=current.id, appended=appended, response=response)

    def _fail(self, current: Activity, exclude_ids: List[str], started: datetime, error: str) -> FinishOutcome:
        logger.error(f"Finish of {current.id} failed: {error}")
        activity_logger.log_finish_activity(
            activity_id=current.id,
            timestamp=started,
            status="failed",
            exclude_ids=exclude_ids,
            chain_length=len(self._chain),
            error=error,
            duration_seconds=(datetime.now() - started).total_seconds(),
            base_dir=self.activity_log_dir
        )
        self.presentation.show_error(f"Error: {error}")
        return FinishOutcome(status="failed", activity_id=current.id, error=error)
