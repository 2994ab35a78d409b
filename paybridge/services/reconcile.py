"""
Payment status reconciliation for checkout clients.

The tokenization SDK's synchronous answer cannot be trusted after a 3-D Secure challenge:
it may arrive before the challenge resolves, or raise although the gateway later marks the
trade SUCCESS. The SDK result is therefore advisory. Whenever it asks for verification or
fails, the client waits a settling delay and polls the query endpoint until the trade
reaches a terminal status or the attempt budget runs out.

States: SUBMITTING -> SETTLING -> POLLING(attempt) -> TERMINAL(status).
Time only passes through the injected `sleep`, so tests drive everything with fakes.
"""
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Literal
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from paybridge.core.errors import PaymentError
from paybridge.schemas.transaction import TERMINAL_FAILURE_STATUSES, TradeStatus

logger = logging.getLogger(__name__)

SDK_TIMEOUT_SECONDS = 60.0
SETTLE_DELAY_SECONDS = 5.0
MAX_POLL_ATTEMPTS = 15
POLL_INTERVAL_SECONDS = 2.0
RETURN_URL_PARAMS = ("trade_no", "status")


class ReconcileStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    # Local sentinels, never sent by the gateway
    PENDING = "PENDING"
    TIMEOUT = "TIMEOUT"


class Phase(str, Enum):
    SUBMITTING = "SUBMITTING"
    SETTLING = "SETTLING"
    POLLING = "POLLING"
    TERMINAL = "TERMINAL"


@dataclass(frozen=True)
class ReconcileState:
    phase: Phase
    attempt: int = 0
    status: ReconcileStatus | None = None


@dataclass(frozen=True)
class SdkResult:
    status: Literal["success", "error"]
    query: bool = False
    message: str | None = None

    @classmethod
    def from_raw(cls, raw: Any) -> "SdkResult":
        if isinstance(raw, SdkResult):
            return raw
        if isinstance(raw, dict):
            status = "success" if raw.get("status") == "success" else "error"
            return cls(status=status, query=bool(raw.get("query")), message=raw.get("message"))
        return cls(status="error", query=True, message=f"Unexpected SDK result: {raw!r}")


@dataclass(frozen=True)
class Outcome:
    """What the checkout shows: success, error (re-attempt checkout) or processing (non-fatal, wait)."""

    kind: Literal["success", "error", "processing"]
    status: ReconcileStatus | None
    message: str


def submit_with_timeout(submit: Callable[[], Any], timeout: float = SDK_TIMEOUT_SECONDS) -> SdkResult:
    """
    Races the SDK submission against `timeout`. A raise or a timeout becomes an error
    result with query=True: the 3DS challenge may still have approved the trade.
    """
    done = threading.Event()
    box: dict[str, Any] = {}

    def run() -> None:
        try:
            box["raw"] = submit()
        except Exception as e:
            box["error"] = e
        finally:
            done.set()

    # Daemon: a hung SDK call must not block interpreter exit
    threading.Thread(target=run, name="sdk-submit", daemon=True).start()
    if not done.wait(timeout):
        logger.warning("SDK submission timed out after %.0fs", timeout)
        return SdkResult(status="error", query=True, message=f"Timeout processing payment ({timeout:.0f}s)")
    if "error" in box:
        e = box["error"]
        logger.error("SDK submission failed: %s", e, exc_info=e)
        return SdkResult(status="error", query=True, message=str(e) or type(e).__name__)
    result = SdkResult.from_raw(box["raw"])
    logger.info("SDK result: status=%s query=%s message=%s", result.status, result.query, result.message)
    return result


def needs_verification(result: SdkResult, trade_no: str | None) -> bool:
    # "gateway asked to verify" and "SDK call failed" share one path on purpose
    return bool((result.query or result.status == "error") and trade_no)


def outcome_for(status: ReconcileStatus, message: str | None = None) -> Outcome:
    if status == ReconcileStatus.SUCCESS:
        return Outcome("success", status, "Payment completed successfully!")
    if status == ReconcileStatus.TIMEOUT:
        return Outcome("processing", status, "Payment is being processed. Check your e-mail for confirmation.")
    if status == ReconcileStatus.PENDING:
        return Outcome("processing", status, "Payment still processing. Please wait...")
    detail = f" {message}" if message else ""
    return Outcome("error", status, f"Payment {status.value.lower()}.{detail}")


class StatusPoller:
    """
    Bounded, strictly sequential status polling. fetch_status(trade_no) returns the
    gateway trade_status string; transport errors are logged and retried after the interval.
    """

    def __init__(
        self,
        fetch_status: Callable[[str], str],
        max_attempts: int = MAX_POLL_ATTEMPTS,
        interval: float = POLL_INTERVAL_SECONDS,
        sleep: Callable[[float], Any] | None = None,
        cancel_event: threading.Event | None = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.fetch_status = fetch_status
        self.max_attempts = max_attempts
        self.interval = interval
        self.cancel_event = cancel_event or threading.Event()
        self.sleep = sleep or self._wait

    def _wait(self, seconds: float) -> None:
        # Returns early once cancelled
        self.cancel_event.wait(seconds)

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def poll(self, trade_no: str, on_attempt: Callable[[int], Any] | None = None) -> ReconcileStatus:
        logger.info("Polling started: trade_no=%s max_attempts=%s", trade_no, self.max_attempts)
        for attempt in range(1, self.max_attempts + 1):
            if self.cancelled:
                logger.info("Polling cancelled before attempt %s: trade_no=%s", attempt, trade_no)
                return ReconcileStatus.PENDING
            if on_attempt:
                on_attempt(attempt)
            try:
                status = self.fetch_status(trade_no)
            except (PaymentError, OSError) as e:
                logger.warning("Attempt %s/%s failed: %s", attempt, self.max_attempts, e)
            else:
                if status == TradeStatus.SUCCESS.value:
                    logger.info("Payment approved: trade_no=%s attempt=%s", trade_no, attempt)
                    return ReconcileStatus.SUCCESS
                if status in TERMINAL_FAILURE_STATUSES:
                    logger.info("Payment %s: trade_no=%s attempt=%s", status, trade_no, attempt)
                    return ReconcileStatus(status)
                logger.info("Attempt %s/%s: status=%s, waiting", attempt, self.max_attempts, status)
            if attempt < self.max_attempts:
                self.sleep(self.interval)
        logger.info("Polling gave up after %s attempts: trade_no=%s", self.max_attempts, trade_no)
        return ReconcileStatus.TIMEOUT


class Reconciler:
    def __init__(
        self,
        poller: StatusPoller,
        settle_delay: float = SETTLE_DELAY_SECONDS,
        sdk_timeout: float = SDK_TIMEOUT_SECONDS,
        on_phase: Callable[[ReconcileState], Any] | None = None,
    ):
        self.poller = poller
        self.settle_delay = settle_delay
        self.sdk_timeout = sdk_timeout
        self.on_phase = on_phase
        self.state = ReconcileState(Phase.SUBMITTING)

    def _enter(self, state: ReconcileState) -> None:
        self.state = state
        if self.on_phase:
            self.on_phase(state)

    def _finish(self, status: ReconcileStatus, message: str | None = None) -> Outcome:
        self._enter(ReconcileState(Phase.TERMINAL, self.state.attempt, status))
        return outcome_for(status, message)

    def _poll(self, trade_no: str) -> ReconcileStatus:
        return self.poller.poll(
            trade_no,
            on_attempt=lambda n: self._enter(ReconcileState(Phase.POLLING, n)),
        )

    def reconcile(self, submit: Callable[[], Any], trade_no: str | None) -> Outcome:
        """Runs the SDK submission and settles the payment status."""
        self._enter(ReconcileState(Phase.SUBMITTING))
        result = submit_with_timeout(submit, self.sdk_timeout)

        if needs_verification(result, trade_no):
            self._enter(ReconcileState(Phase.SETTLING))
            logger.info("Waiting %.0fs for 3DS to settle before polling trade_no=%s", self.settle_delay, trade_no)
            self.poller.sleep(self.settle_delay)
            return self._finish(self._poll(trade_no), result.message)

        if result.status == "success":
            return self._finish(ReconcileStatus.SUCCESS)

        self._enter(ReconcileState(Phase.TERMINAL))
        return Outcome("error", None, result.message or "Payment failed")

    def resume(self, trade_no: str) -> Outcome:
        """Re-enters polling for a trade returned by an external 3DS redirect."""
        return self._finish(self._poll(trade_no))

    def cancel(self) -> None:
        self.poller.cancel()


def strip_return_params(url: str) -> str:
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k not in RETURN_URL_PARAMS]
    return urlunsplit(parts._replace(query=urlencode(query)))


def resume_from_return_url(url: str, reconciler: Reconciler) -> tuple[Outcome | None, str]:
    """
    Handles a page load after the 3DS redirect: a trade_no in the query string re-enters
    polling. Returns (outcome or None, url without trade_no/status).
    """
    params = dict(parse_qsl(urlsplit(url).query))
    trade_no = (params.get("trade_no") or "").strip()
    status = params.get("status")
    if not trade_no and not status:
        return None, url
    logger.info("3DS return detected: trade_no=%s status=%s", trade_no or "-", status or "-")
    outcome = reconciler.resume(trade_no) if trade_no else None
    return outcome, strip_return_params(url)
