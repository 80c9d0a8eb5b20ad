from abc import ABC, abstractmethod
from typing import Iterable, Optional, Tuple

from loguru import logger

from schedule_export.clients.base_client import ServiceError
from schedule_export.clients.correction_client import CorrectionClient
from schedule_export.models.state import ServiceState
from .rules import DEFAULT_REPLACEMENT, MARKER, REPAIR_RULES, Rule


def has_marker(text: str) -> bool:
    return MARKER in text


def matches_damaged(text: str, expected: str) -> bool:
    """True if ``text`` equals ``expected`` with each marker standing for one letter."""
    if text == expected:
        return True
    if not has_marker(text) or len(text) != len(expected):
        return False
    return all(a == b or a == MARKER for a, b in zip(text, expected))


class TextCorrector(ABC):
    """Turns text containing the replacement character into readable text."""

    @abstractmethod
    def repair(self, text: str) -> str:
        """Returns ``text`` with every replacement character resolved.

        Implementations never raise and return the input unchanged when it
        holds no replacement character.
        """
        pass


class RuleBasedTextCorrector(TextCorrector):
    """Local repair through an ordered table of literal substitutions."""

    def __init__(
        self,
        rules: Iterable[Rule] = REPAIR_RULES,
        extra_rules: Iterable[Rule] = (),
        default_replacement: str = DEFAULT_REPLACEMENT,
    ):
        # Extra rules are more specific to the user's league, so they go first
        self.rules: Tuple[Rule, ...] = tuple(extra_rules) + tuple(rules)
        self.default_replacement = default_replacement

    def repair(self, text: str) -> str:
        if not has_marker(text):
            return text

        repaired = text
        for pattern, replacement in self.rules:
            if pattern in repaired:
                repaired = repaired.replace(pattern, replacement)
            if not has_marker(repaired):
                break

        if has_marker(repaired):
            logger.debug(
                f"No rule matched all of '{text}', using '{self.default_replacement}'"
            )
            repaired = repaired.replace(MARKER, self.default_replacement)
        return repaired


class RemoteTextCorrector(TextCorrector):
    """Asks a remote service first, then hands over to the wrapped corrector.

    Each distinct damaged string is sent at most once per run; the outcome,
    including failures, is remembered in ``state.correction_cache``.
    """

    def __init__(
        self,
        inner: TextCorrector,
        client: CorrectionClient,
        state: ServiceState,
    ):
        self.inner = inner
        self.client = client
        self.state = state

    def _lookup(self, text: str) -> Optional[str]:
        if text in self.state.correction_cache:
            return self.state.correction_cache[text]

        self.state.correction_calls += 1
        corrected: Optional[str] = None
        try:
            corrected = self.client.correct(text)
            logger.debug(f"Remote correction: '{text}' -> '{corrected}'")
        except ServiceError as e:
            self.state.correction_failures += 1
            logger.warning(f"Remote text correction failed for '{text}': {e}")

        self.state.correction_cache[text] = corrected
        return corrected

    def repair(self, text: str) -> str:
        if not has_marker(text):
            return text

        corrected = self._lookup(text)
        if corrected is not None and not has_marker(corrected):
            return corrected
        return self.inner.repair(corrected if corrected is not None else text)
