"""
Model fallback chain and retry policy for Codex requests
"""
from enum import Enum
from typing import Iterable, List, Optional

# Statuses modelling transient upstream overload
TRANSIENT_STATUSES = frozenset({429, 500, 503})
# Malformed request or unsupported model: not worth retrying on this candidate
SKIP_CANDIDATE_STATUSES = frozenset({400})


class RetryDecision(str, Enum):
    """What to do after a failed attempt"""
    RETRY_SAME = "retry_same"
    NEXT_CANDIDATE = "next_candidate"
    FAIL = "fail"


def build_fallback_chain(requested_model: str, fallback_models: Iterable[str]) -> List[str]:
    """
    Build the ordered candidate list for one request.

    The requested model comes first, then the fixed priority list, with
    duplicates removed while keeping the first occurrence.

    Args:
        requested_model: Model the caller asked for
        fallback_models: Fixed priority list

    Returns:
        List of candidate model identifiers
    """
    chain: List[str] = []
    for model in [requested_model, *fallback_models]:
        if model and model not in chain:
            chain.append(model)
    return chain


def decide(status: Optional[int], attempt_index: int, is_last_attempt: bool) -> RetryDecision:
    """
    Map a failed attempt to the next step.

    Args:
        status: HTTP status of the failure, or None for transport errors
        attempt_index: Zero-based attempt number on the current candidate
        is_last_attempt: Whether the candidate's attempt budget is used up

    Returns:
        RetryDecision
    """
    if status in SKIP_CANDIDATE_STATUSES:
        return RetryDecision.NEXT_CANDIDATE

    if status is None or status in TRANSIENT_STATUSES:
        if is_last_attempt:
            return RetryDecision.NEXT_CANDIDATE
        return RetryDecision.RETRY_SAME

    return RetryDecision.FAIL


def is_retryable(status: Optional[int]) -> bool:
    """Whether a failure with this status belongs to the transient class"""
    return status is None or status in TRANSIENT_STATUSES
