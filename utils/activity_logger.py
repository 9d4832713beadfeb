"""
Activity Logger Utility

Records finish workflows and session lifecycle events (boot, reset) as JSONL
files, one file per day, so a session's history can be inspected after the
fact with the `log` command.
"""

import json
import os
import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional, Any
from pathlib import Path

logger = logging.getLogger(__name__)

# Default base directory for activity logs
BASE_LOG_DIR = "data/activity_logs"

FINISH_SUBDIR = "finish"
SESSION_SUBDIR = "session"

# Locks for thread-safe file writing
_finish_lock = threading.Lock()
_session_lock = threading.Lock()


def _get_log_file(log_dir: str, prefix: str) -> str:
    """
    Get log file path for today's date, creating the directory if needed.

    Args:
        log_dir: Log directory path
        prefix: File prefix (e.g., "finish", "session")

    Returns:
        Path to log file
    """
    os.makedirs(log_dir, exist_ok=True)
    today = datetime.now().strftime("%Y%m%d")
    return os.path.join(log_dir, f"{prefix}_activity_{today}.jsonl")


def _append_entry(log_dir: str, prefix: str, lock: threading.Lock, log_entry: Dict[str, Any]) -> None:
    try:
        log_file = _get_log_file(log_dir, prefix)
        with lock:
            with open(log_file, 'a', encoding='utf-8') as f:
                f.write(json.dumps(log_entry, ensure_ascii=False) + '\n')
        logger.debug(f"Logged {prefix} activity to {log_file}")
    except Exception as e:
        logger.warning(f"Failed to log {prefix} activity: {e}", exc_info=True)


def log_finish_activity(
    activity_id: str,
    timestamp: datetime,
    status: str,  # "extended", "dead_end", "failed"
    exclude_ids: Optional[List[str]] = None,
    recommended_id: Optional[str] = None,
    probability: Optional[float] = None,
    follow_up_count: int = 0,
    chain_length: Optional[int] = None,
    error: Optional[str] = None,
    duration_seconds: Optional[float] = None,
    base_dir: str = BASE_LOG_DIR
):
    """
    Log one finish workflow.

    Args:
        activity_id: Frontier activity that was finished
        timestamp: When the workflow started
        status: Outcome ("extended", "dead_end", "failed")
        exclude_ids: Ids sent to the service for exclusion
        recommended_id: Top1 activity id returned (if any)
        probability: Top1 probability (if any)
        follow_up_count: Number of follow-up questions returned
        chain_length: Chain length after the workflow
        error: Error message (if failed)
        duration_seconds: Workflow duration in seconds
        base_dir: Activity log root directory
    """
    log_entry = {
        "timestamp": timestamp.isoformat(),
        "logged_at": datetime.now().isoformat(),
        "activity_id": activity_id,
        "status": status,
        "exclude_ids": exclude_ids or [],
        "recommendation": {
            "activity_id": recommended_id,
            "prob": probability,
            "follow_up_count": follow_up_count
        },
        "chain_length": chain_length,
        "error": error,
        "duration_seconds": duration_seconds
    }
    _append_entry(os.path.join(base_dir, FINISH_SUBDIR), "finish", _finish_lock, log_entry)


def log_session_activity(
    event: str,  # "boot", "reset"
    timestamp: datetime,
    chain_length: int,
    seeded_id: Optional[str] = None,
    base_dir: str = BASE_LOG_DIR
):
    """
    Log a session lifecycle event.

    Args:
        event: "boot" or "reset"
        timestamp: Event time
        chain_length: Chain length once the event completed
        seeded_id: Default activity chosen when the chain had to be seeded
        base_dir: Activity log root directory
    """
    log_entry = {
        "timestamp": timestamp.isoformat(),
        "logged_at": datetime.now().isoformat(),
        "event": event,
        "chain_length": chain_length,
        "seeded_id": seeded_id
    }
    _append_entry(os.path.join(base_dir, SESSION_SUBDIR), "session", _session_lock, log_entry)


def read_activity_logs(
    log_dir: str,
    limit: int = 100,
    activity_id: Optional[str] = None
) -> list[Dict[str, Any]]:
    """
    Read activity logs from directory.

    Args:
        log_dir: Log directory path (e.g. "<base>/finish")
        limit: Maximum number of entries to return
        activity_id: Optional filter by finished activity id

    Returns:
        List of log entries (newest first)
    """
    if not os.path.exists(log_dir):
        return []

    all_entries = []
    for log_file in Path(log_dir).glob("*.jsonl"):
        try:
            with open(log_file, 'r', encoding='utf-8') as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entry = json.loads(line)
                    except json.JSONDecodeError:
                        continue
                    if activity_id and entry.get("activity_id") != activity_id:
                        continue
                    all_entries.append(entry)
        except OSError as e:
            logger.warning(f"Error reading log file {log_file}: {e}")
            continue

    def get_sort_key(entry):
        ts = entry.get("timestamp", "")
        try:
            return datetime.fromisoformat(ts.replace('Z', '+00:00')).timestamp()
        except (AttributeError, ValueError):
            return 0

    all_entries.sort(key=get_sort_key, reverse=True)
    return all_entries[:limit]
