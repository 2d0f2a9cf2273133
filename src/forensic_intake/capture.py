"""Driver-agnostic capture session: scope enforcement, settle wait, journaling.

Every observation made through a session is appended to the run's evidentiary
journal. Sessions are opened one unit at a time from a ``CaptureBinding``, so
appends from sessions and from the scheduler never interleave.
"""

import logging
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol

from pydantic import BaseModel, Field

from forensic_intake.config import CaptureScope
from forensic_intake.kernel.constraint_signals import (
    ConstraintSignals,
    classify_response,
    pick_header_subset,
)
from forensic_intake.kernel.errors import OutOfScopeSelector, SettleTimeout
from forensic_intake.kernel.hash_utils import sha256_hex
from forensic_intake.kernel.journal import JournalEntry
from forensic_intake.kernel.redaction import redact_ax_tree
from forensic_intake._internal.io.journal_log import JournalWriter

logger = logging.getLogger(__name__)

Clock = Callable[[], str]

SETTLE_TIMEOUT_SECONDS = 10.0
SETTLE_WINDOW_SECONDS = 0.75
MIRROR_FILENAME = "verification_mirror.html"

_HEAD_RE = re.compile(r"<head(\s[^>]*)?>", re.IGNORECASE)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class NavigationResponse(BaseModel):
    status: Optional[int] = None  # None when no response was received
    headers: Dict[str, str] = Field(default_factory=dict)
    final_url: str = ""


class PageDriver(Protocol):
    def navigate(self, url: str) -> NavigationResponse:
        ...

    def mutation_count(self) -> int:
        ...

    def accessibility_snapshot(self, selector: str) -> Optional[Dict[str, Any]]:
        ...

    def content(self) -> str:
        ...

    def screenshot(self) -> bytes:
        ...


class CaptureSession:
    def __init__(
        self,
        driver: PageDriver,
        journal: JournalWriter,
        scope: Optional[CaptureScope] = None,
        output_dir: Optional[Path] = None,
        clock: Clock = utc_now,
        sleep: Callable[[float], None] = time.sleep,
        monotonic: Callable[[], float] = time.monotonic,
        unit_key: Optional[str] = None,
    ):
        self.driver = driver
        self.unit_key = unit_key  # tags every event and prefixes artifact names
        self.journal = journal
        self.scope = scope or CaptureScope()
        self.output_dir = Path(output_dir) if output_dir is not None else journal.path.parent
        self.clock = clock
        self._sleep = sleep
        self._monotonic = monotonic
        self.exceptions: List[Dict[str, Any]] = []

    def _event(self, event_type: str, **fields: Any) -> JournalEntry:
        return self.journal.append(self._record(event_type, **fields))

    def _record(self, event_type: str, **fields: Any) -> Dict[str, Any]:
        record = {"type": event_type, "timestamp": self.clock()}
        if self.unit_key is not None:
            record["unit"] = self.unit_key
        record.update(fields)
        return record

    def _artifact_name(self, name: str) -> str:
        return f"{self.unit_key}_{name}" if self.unit_key is not None else name

    def stamp_environment(self, env: Dict[str, Any]) -> JournalEntry:
        """Journal the capture environment (viewport, locale, browser version, ...)."""
        return self._event("ENV", env=env)

    def navigate(self, url: str) -> ConstraintSignals:
        """Navigate and classify the response; the outcome is journaled either way."""
        response = self.driver.navigate(url)
        signals = classify_response(
            response.status,
            response.headers,
            self.driver.content() if response.status is not None else "",
            response.final_url,
        )
        self._event(
            "NAVIGATION",
            url=url,
            final_url=response.final_url,
            status=response.status,
            headers=pick_header_subset(response.headers),
            constraint_class=signals.constraint_class.value if signals.constraint_class else None,
            signals=signals.signals,
        )
        if signals.is_constrained:
            logger.info("Navigation to %s constrained: %s %s", url, signals.constraint_class.value, signals.signals)
        return signals

    def wait_for_settled(
        self,
        timeout: float = SETTLE_TIMEOUT_SECONDS,
        window: float = SETTLE_WINDOW_SECONDS,
    ) -> None:
        """Block until the DOM mutation counter is unchanged across one window.

        Raises:
            SettleTimeout: if the page keeps mutating for ``timeout`` seconds
        """
        start = self._monotonic()
        last = self.driver.mutation_count()
        while self._monotonic() - start < timeout:
            self._sleep(window)
            current = self.driver.mutation_count()
            if current == last:
                return
            last = current
        self._event("SETTLE_TIMEOUT", timeout_seconds=str(timeout))
        raise SettleTimeout(timeout)

    def capture_step(self, selector: str) -> Optional[JournalEntry]:
        """Capture a redacted accessibility snapshot rooted at ``selector``.

        Out-of-scope selectors are journaled as exceptions (and raise in strict
        mode). Returns None when the selector matches no element.
        """
        if not self.scope.is_allowed(selector):
            exception = self._record(
                "EXCEPTION: OUT_OF_SCOPE",
                selector=str(selector),
                reason="Selector not present in capture scope allow-list",
            )
            self.exceptions.append(exception)
            entry = self.journal.append(exception)
            logger.warning("Out-of-scope selector %r", selector)
            if self.scope.strict_mode:
                raise OutOfScopeSelector(str(selector))
            return entry

        self.wait_for_settled()
        snapshot = self.driver.accessibility_snapshot(selector)
        if snapshot is None:
            logger.debug("Selector %r matched no element", selector)
            return None
        return self._event("CAPTURE_STEP", selector=selector, ax_tree=redact_ax_tree(snapshot))

    def capture_mirror(self, base_url: Optional[str] = None) -> Path:
        """Write the settled page HTML (with a base href for replay) and journal its hash."""
        self.wait_for_settled()
        content = self.driver.content()
        if base_url:
            content = _HEAD_RE.sub(lambda m: f'<head{m.group(1) or ""}><base href="{base_url}">', content, count=1)
        name = self._artifact_name(MIRROR_FILENAME)
        path = self.output_dir / name
        data = content.encode("utf-8")
        path.write_bytes(data)
        self._event("MIRROR", path=name, sha256=sha256_hex(data))
        return path

    def capture_screenshot(self, name: str) -> Path:
        data = self.driver.screenshot()
        name = self._artifact_name(name)
        path = self.output_dir / name
        path.write_bytes(data)
        self._event("SCREENSHOT", path=name, sha256=sha256_hex(data))
        return path


class CaptureBinding:
    """Journal, scope and output directory shared by the capture sessions of one run."""

    def __init__(
        self,
        journal: JournalWriter,
        scope: Optional[CaptureScope] = None,
        output_dir: Optional[Path] = None,
        clock: Clock = utc_now,
    ):
        self.journal = journal
        self.scope = scope or CaptureScope()
        self.output_dir = Path(output_dir) if output_dir is not None else journal.path.parent
        self.clock = clock

    def open(self, driver: PageDriver, unit_key: Optional[str] = None) -> CaptureSession:
        return CaptureSession(
            driver,
            self.journal,
            scope=self.scope,
            output_dir=self.output_dir,
            clock=self.clock,
            unit_key=unit_key,
        )
