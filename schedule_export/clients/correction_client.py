import time
from typing import Callable, Optional

import httpx
from loguru import logger
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from schedule_export.models.state import ServiceState
from .base_client import BaseClient, ServiceError, RateLimitError

DOMAIN_HINT = (
    "Deutscher Volleyball-Spielplan aus Thüringen: Vereinsnamen, Hallen, "
    "Ortsnamen, Ligen und Personennamen."
)

SYSTEM_PROMPT = (
    "Der folgende Text enthält das Zeichen � anstelle eines falsch "
    "kodierten deutschen Buchstabens (ä, ö, ü, Ä, Ö, Ü oder ß). "
    "Antworte ausschließlich mit dem korrigierten Text."
)

BUDGET_WINDOW_SECONDS = 60.0


class CallBudget:
    """Sliding one-minute window limiting how many calls may start."""

    def __init__(
        self,
        state: ServiceState,
        calls_per_minute: int,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.state = state
        self.calls_per_minute = calls_per_minute
        self.clock = clock
        self.sleep = sleep

    def acquire(self) -> None:
        """Blocks until a call fits into the budget, then records it."""
        call_times = self.state.correction_call_times
        now = self.clock()
        while call_times and now - call_times[0] >= BUDGET_WINDOW_SECONDS:
            call_times.popleft()

        if len(call_times) >= self.calls_per_minute:
            wait = BUDGET_WINDOW_SECONDS - (now - call_times[0])
            logger.info(f"Correction call budget exhausted, sleeping {wait:.1f}s")
            self.sleep(wait)
            call_times.popleft()
            now = self.clock()

        call_times.append(now)


class CorrectionClient(BaseClient):
    """Client for an OpenAI-compatible chat completions endpoint."""

    service_name = "text-correction"

    def __init__(
        self,
        api_key: str,
        api_url: str,
        model: str,
        budget: CallBudget,
        client: Optional[httpx.Client] = None,
    ):
        super().__init__(client)
        if not api_key:
            raise ServiceError("Missing text correction API key configuration.")
        self.api_url = api_url
        self.model = model
        self.budget = budget
        self.client.headers.update({"Authorization": f"Bearer {api_key}"})

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(RateLimitError),
        reraise=True,
    )
    def correct(self, text: str, domain_hint: str = DOMAIN_HINT) -> str:
        """Returns the service's correction of ``text``.

        Raises:
            ServiceError: On any transport, status or payload problem.
        """
        self.budget.acquire()
        payload = {
            "model": self.model,
            "temperature": 0,
            "messages": [
                {"role": "system", "content": f"{SYSTEM_PROMPT} Kontext: {domain_hint}"},
                {"role": "user", "content": text},
            ],
        }
        response = self._make_request("POST", self.api_url, json_data=payload)
        body = self._json(response)
        try:
            corrected = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ServiceError("Correction response without message content") from e
        if not isinstance(corrected, str) or not corrected.strip():
            raise ServiceError("Correction response was empty")
        return corrected.strip()
