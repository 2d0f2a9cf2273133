"""Playwright-backed page driver and run unit executor.

Requires the ``capture`` extra (``pip install forensic-intake[capture]``) and
installed browsers (``playwright install chromium webkit``).
"""

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from forensic_intake.capture import CaptureBinding, CaptureSession, NavigationResponse
from forensic_intake.codes import IntakeCode
from forensic_intake.kernel.errors import ExecutionFailure, ExecutionTimeout, IntakeConfigError
from forensic_intake.kernel.run_unit import RunUnit
from forensic_intake.kernel.taxonomy import (
    DEVICE_SCALE_FACTOR,
    LOCALE,
    TIMEZONE_ID,
    VIEWPORTS,
    Context,
    Outcome,
)

logger = logging.getLogger(__name__)

NAVIGATION_TIMEOUT_MS = 30000
NOTE_NO_CHECK = "No bounded check is registered for this assertion."

MUTATION_COUNTER_SCRIPT = """
window.__fi_mutations = 0;
new MutationObserver(() => window.__fi_mutations++)
  .observe(document, { attributes: true, childList: true, subtree: true });
"""

# A check inspects the settled page through the session and returns an outcome label.
UnitCheck = Callable[[CaptureSession, RunUnit], Any]


def context_options(context: Context) -> Dict[str, Any]:
    """Browser context options for an execution context.

    The device scale factor is applied last so no profile can override it.
    """
    is_mobile = context is Context.MOBILE
    return {
        "viewport": VIEWPORTS[context].as_dict(),
        "is_mobile": is_mobile,
        "has_touch": is_mobile,
        "locale": LOCALE,
        "timezone_id": TIMEZONE_ID,
        "ignore_https_errors": True,
        "device_scale_factor": DEVICE_SCALE_FACTOR,
    }


def environment(context: Context, browser_name: str, browser_version: str) -> Dict[str, Any]:
    """ENV event payload for one unit's browser context."""
    return {
        "context": context.value,
        "browser": browser_name,
        "browser_version": browser_version,
        **context_options(context),
    }


class PlaywrightPageDriver:
    """PageDriver over a Playwright ``Page`` with a mutation counter installed."""

    def __init__(self, page: Page, navigation_timeout_ms: int = NAVIGATION_TIMEOUT_MS):
        self.page = page
        self.navigation_timeout_ms = navigation_timeout_ms
        page.add_init_script(MUTATION_COUNTER_SCRIPT)

    def navigate(self, url: str) -> NavigationResponse:
        try:
            response = self.page.goto(url, wait_until="domcontentloaded", timeout=self.navigation_timeout_ms)
        except PlaywrightTimeoutError:
            raise
        except PlaywrightError as e:
            logger.info("Navigation to %s failed without a response: %s", url, e.message)
            return NavigationResponse(status=None, final_url=self.page.url)
        if response is None:
            return NavigationResponse(status=None, final_url=self.page.url)
        return NavigationResponse(
            status=response.status,
            headers=dict(response.headers),
            final_url=self.page.url,
        )

    def mutation_count(self) -> int:
        return int(self.page.evaluate("() => window.__fi_mutations || 0"))

    def accessibility_snapshot(self, selector: str) -> Optional[Dict[str, Any]]:
        handle = self.page.query_selector(selector)
        if handle is None:
            return None
        return self.page.accessibility.snapshot(root=handle)

    def content(self) -> str:
        return self.page.content()

    def screenshot(self) -> bytes:
        return self.page.screenshot(full_page=True)


class PlaywrightExecutor:
    """Executor running each unit in a fresh browser and context.

    Desktop units run in Chromium and mobile units in WebKit. Every unit opens
    a capture session on the run's journal, stamps its environment and
    navigates through it. A constrained response short-circuits to
    ``Constrained``; otherwise the check registered for the unit's condition
    decides the outcome. Units without a check fail closed as Insufficient.
    """

    def __init__(
        self,
        checks: Optional[Mapping[str, UnitCheck]] = None,
        default_check: Optional[UnitCheck] = None,
        headless: bool = True,
        navigation_timeout_ms: int = NAVIGATION_TIMEOUT_MS,
    ):
        self.checks = dict(checks or {})
        self.default_check = default_check
        self.headless = headless
        self.navigation_timeout_ms = navigation_timeout_ms

    def _check_for(self, unit: RunUnit) -> Optional[UnitCheck]:
        return self.checks.get(unit.asserted_condition, self.default_check)

    def execute(
        self,
        unit: RunUnit,
        target_url: str,
        capture: Optional[CaptureBinding] = None,
    ) -> Outcome:
        if capture is None:
            raise IntakeConfigError("PlaywrightExecutor needs a capture binding to journal observations.")
        context = unit.context or Context.DESKTOP
        with sync_playwright() as p:
            browser_type = p.webkit if context is Context.MOBILE else p.chromium
            browser = browser_type.launch(headless=self.headless)
            try:
                browser_context = browser.new_context(**context_options(context))
                try:
                    driver = PlaywrightPageDriver(browser_context.new_page(), self.navigation_timeout_ms)
                    session = capture.open(driver, unit.unit_key)
                    session.stamp_environment(environment(context, browser_type.name, browser.version))
                    return self._run(session, unit, target_url)
                finally:
                    browser_context.close()
            except PlaywrightTimeoutError as e:
                raise ExecutionTimeout(f"{unit.unit_key}: {e.message}") from e
            except PlaywrightError as e:
                raise ExecutionFailure(IntakeCode.EXECUTION_FAILED, f"{unit.unit_key}: {e.message}") from e
            finally:
                browser.close()

    def _run(self, session: CaptureSession, unit: RunUnit, target_url: str) -> Outcome:
        signals = session.navigate(target_url)
        if signals.is_constrained:
            logger.info("%s constrained at navigation: %s", unit.unit_key, signals.signals)
            unit.constraint_class = signals.constraint_class
            return Outcome.CONSTRAINED

        check = self._check_for(unit)
        if check is None:
            unit.note = NOTE_NO_CHECK
            return Outcome.INSUFFICIENT
        return check(session, unit)
