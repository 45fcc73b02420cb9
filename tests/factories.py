"""
Test data factories shared by the test modules.
"""

from typing import List, Optional

from helpdesk_troubleshooting.retrieval.interface import (
    RetrievalResult,
    RetrievedSource,
    SourceMetadata,
)
from helpdesk_troubleshooting.state.models import ConversationContext, ConversationRequest


MONITOR_NO_POWER_STEPS = [
    "Check that the monitor power cable is firmly connected.",
    "Press the monitor power button and watch the power light.",
    "Try a different outlet or a known working power cable.",
]

TEST_USER_ID = "user-1"


def make_source(
    title: Optional[str],
    steps: List[str],
    score: float = 0.9,
    category: Optional[str] = "Hardware",
) -> RetrievedSource:
    """A retrieved passage in the indexed document format."""
    lines = [f"TITLE: {title}"] if title else []
    lines += [f"Step {number}: {step}" for number, step in enumerate(steps, start=1)]
    return RetrievedSource(
        document="\n".join(lines),
        metadata=SourceMetadata(title=title, category=category),
        score=score,
    )


def result_of(*sources: RetrievedSource) -> RetrievalResult:
    return RetrievalResult(sources=list(sources))


def message(text: str, user_id: str = TEST_USER_ID, session_id: Optional[str] = None):
    return ConversationRequest(message=text, user_id=user_id, session_id=session_id)


async def converse(flow, texts: List[str], context: Optional[ConversationContext] = None):
    """Sends messages in order, threading the returned context. Returns all results."""
    results = []
    for text in texts:
        result = await flow.process_message(message(text), context)
        context = result.context
        results.append(result)
    return results
