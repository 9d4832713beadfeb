"""
Chain Store

Owns the persisted chain of activities and the set of finished activity ids.
Holds no state of its own: every call reads or writes the key-value store,
so an instance can be rebuilt at any time.

Persisted layout:
    "chain"    -> JSON array string of {id, name, weeklyPlan}
    "finished" -> list of activity ids, insertion order, no duplicates
"""

import json
import logging
from typing import List, Sequence

from pydantic import ValidationError

from session.models import Activity
from utils.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

CHAIN_KEY = "chain"
FINISHED_KEY = "finished"


class StorageDecodeError(Exception):
    """Raised when persisted session data cannot be decoded."""
    pass


def decode_chain(raw: str) -> List[Activity]:
    """
    Decode the persisted chain document.

    Raises:
        StorageDecodeError: If raw is not a JSON array of activity objects
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise StorageDecodeError(f"Chain is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise StorageDecodeError(f"Chain must be a JSON array, got {type(data).__name__}")

    chain = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise StorageDecodeError(f"Chain entry {index} is not an object")
        try:
            chain.append(Activity.model_validate(item))
        except ValidationError as e:
            raise StorageDecodeError(f"Chain entry {index} is invalid: {e}") from e
    return chain


def encode_chain(chain: Sequence[Activity]) -> str:
    return json.dumps([activity.to_json() for activity in chain], ensure_ascii=False)


class ChainStore:
    """Reads and writes the chain and finished ids through a KeyValueStore."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def load_chain(self) -> List[Activity]:
        """Return the persisted chain; empty if none or if the stored data is corrupt."""
        try:
            raw = self.store.get_string(CHAIN_KEY)
            if raw is None:
                return []
            chain = decode_chain(raw)
        except (StorageDecodeError, TypeError) as e:
            logger.warning(f"Ignoring unreadable persisted chain: {e}")
            return []

        logger.debug(f"Loaded chain with {len(chain)} activities")
        return chain

    def save_chain(self, chain: Sequence[Activity]) -> None:
        """Replace the persisted chain in one write."""
        self.store.set_string(CHAIN_KEY, encode_chain(chain))
        logger.debug(f"Saved chain with {len(chain)} activities")

    def load_finished(self) -> List[str]:
        """Return finished activity ids in the order they were marked; empty if unreadable."""
        try:
            finished = self.store.get_string_list(FINISHED_KEY)
        except TypeError as e:
            logger.warning(f"Ignoring unreadable finished ids: {e}")
            return []
        # dict.fromkeys drops duplicates a foreign writer may have left
        return list(dict.fromkeys(finished or []))

    def mark_finished(self, activity_id: str) -> None:
        """Add activity_id to the finished set. No-op if already present."""
        finished = self.load_finished()
        if activity_id in finished:
            logger.debug(f"Activity {activity_id} already marked finished")
            return
        finished.append(activity_id)
        self.store.set_string_list(FINISHED_KEY, finished)
        logger.info(f"Marked activity {activity_id} finished ({len(finished)} total)")

    def reset_all(self) -> None:
        """Remove the persisted chain and finished ids."""
        self.store.remove(CHAIN_KEY)
        self.store.remove(FINISHED_KEY)
        logger.info("Cleared persisted chain and finished ids")
