from __future__ import annotations

from typing import Iterable

from app.core.errors import DuplicateSubmissionError


class ResponseCollector:
    """
    Who has answered the current cycle.

    Derived from the cycle's expected responders (membership snapshot taken at open, in
    membership order) and the responders with a stored response. Responders outside the
    snapshot, e.g. members who joined mid-cycle, are recorded but never counted.
    """

    def __init__(self, expected: Iterable[str], received: Iterable[str] = ()):
        self._expected: list[str] = list(dict.fromkeys(expected))
        self._received: set[str] = set(received)

    @property
    def expected(self) -> list[str]:
        return list(self._expected)

    @property
    def received(self) -> set[str]:
        return set(self._received)

    def has_responded(self, responder_id: str) -> bool:
        return responder_id in self._received

    def record_response(self, responder_id: str) -> None:
        if responder_id in self._received:
            raise DuplicateSubmissionError()
        self._received.add(responder_id)

    def received_expected_count(self) -> int:
        return sum(1 for r in self._expected if r in self._received)

    def completion_ratio(self) -> float:
        # nothing expected counts as complete
        if not self._expected:
            return 1.0
        return self.received_expected_count() / len(self._expected)

    def outstanding_responders(self) -> list[str]:
        return [r for r in self._expected if r not in self._received]

    @property
    def is_complete(self) -> bool:
        return not self.outstanding_responders()
