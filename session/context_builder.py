"""
Context Builder

Pure helpers that turn a finished activity and its form answers into the
pieces of a prediction request.
"""

from typing import Any, Dict, Iterable, List

from session.models import FormAnswers


def yes_no(flag: bool) -> str:
    return "yes" if flag else "no"


def build_context(activity_id: str, answers: FormAnswers) -> Dict[str, Any]:
    """
    Build the request context for a finished activity.

    Boolean answers are sent as "yes"/"no"; the rating stays numeric.

    Args:
        activity_id: Frontier activity that was finished
        answers: Form answers collected for it

    Returns:
        Context dictionary with exactly the keys the service expects
    """
    return {
        "activity_id": activity_id,
        "session_completed": yes_no(answers.session_completed),
        "engagement_rating": answers.engagement_rating,
        "independence_level": answers.independence_level,
        "difficulty_feel": answers.difficulty_feel,
        "behavior_issue": yes_no(answers.behavior_issue),
        "child_preference": answers.child_preference,
        "time_fit": answers.time_fit,
        "prompts_used_max": answers.prompts_used_max,
        "generalization_seen": yes_no(answers.generalization_seen),
    }


def compute_exclude_ids(current_id: str, finished_ids: Iterable[str]) -> List[str]:
    """
    Union of the current activity and every finished activity, without duplicates.

    The current id comes first, then finished ids in the order they were marked.
    """
    return list(dict.fromkeys([current_id, *finished_ids]))
