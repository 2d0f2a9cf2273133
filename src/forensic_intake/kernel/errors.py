"""Named exception hierarchy for intake, execution and integrity failures."""

from typing import Optional

from forensic_intake.codes import IntakeCode


class IntakeError(Exception):
    """Base exception carrying a closed error code."""

    def __init__(self, code: IntakeCode, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code.value}] {message}")


# Validation errors


class IntakeValidationError(IntakeError):
    """Malformed input or a value outside the locked taxonomy."""


class InvalidOutcome(IntakeValidationError):
    def __init__(self, value: object):
        self.value = value
        super().__init__(IntakeCode.INVALID_OUTCOME, f"Invalid outcome label: {value!r}")


class InvalidConstraintClass(IntakeValidationError):
    def __init__(self, value: object):
        self.value = value
        super().__init__(
            IntakeCode.INVALID_CONSTRAINT_CLASS,
            f"Invalid constraint class: {value!r}",
        )


class InvalidAssertionGroup(IntakeValidationError):
    def __init__(self, message: str):
        super().__init__(IntakeCode.INVALID_COMPLAINT_GROUP, message)


class InvalidAssertion(IntakeValidationError):
    def __init__(self, message: str):
        super().__init__(IntakeCode.INVALID_ASSERTION, message)


class AtomicityViolation(IntakeValidationError):
    def __init__(self, message: str):
        super().__init__(IntakeCode.ATOMICITY_VIOLATION, message)


class NoteGateViolation(IntakeValidationError):
    """A note failed the outcome-dependent note policy."""


class NotePermittedViolation(NoteGateViolation):
    """A note was attached to an outcome that may not carry one."""

    def __init__(self, message: str):
        super().__init__(IntakeCode.NOTE_PROHIBITED, message)


class IntakeConfigError(IntakeValidationError):
    def __init__(self, message: str):
        super().__init__(IntakeCode.INTAKE_CONFIG, message)


class BannedVocabulary(IntakeValidationError):
    def __init__(self, words: list):
        self.words = list(words)
        super().__init__(
            IntakeCode.BANNED_VOCABULARY,
            f"External record contains prohibited vocabulary: {', '.join(self.words)}",
        )


class OutOfScopeSelector(IntakeValidationError):
    def __init__(self, selector: str):
        self.selector = selector
        super().__init__(
            IntakeCode.OUT_OF_SCOPE_SELECTOR,
            f"Selector rejected in strict mode: {selector}",
        )


# Execution failures


class ExecutionFailure(IntakeError):
    """A failure contained to a single run unit."""


class ExecutionTimeout(ExecutionFailure):
    def __init__(self, message: str = "Run unit execution timed out"):
        super().__init__(IntakeCode.EXECUTION_TIMEOUT, message)


class SettleTimeout(ExecutionFailure):
    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(
            IntakeCode.SETTLE_TIMEOUT,
            f"Page did not settle within {timeout}s",
        )


# Integrity failures


class IntegrityError(IntakeError):
    """Evidence no longer matches its recorded hashes."""


class JournalIntegrityError(IntegrityError):
    def __init__(
        self,
        code: IntakeCode,
        message: str,
        index: Optional[int] = None,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
    ):
        self.index = index
        self.expected = expected
        self.actual = actual
        super().__init__(code, message)


class PacketAlreadySealed(IntegrityError):
    def __init__(self, directory: str):
        self.directory = directory
        super().__init__(
            IntakeCode.ALREADY_SEALED,
            f"packet_hash.txt already exists (write-once): {directory}",
        )


class PacketIntegrityError(IntegrityError):
    def __init__(
        self,
        code: IntakeCode,
        message: str,
        path: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
    ):
        self.path = path
        self.expected = expected
        self.actual = actual
        super().__init__(code, message)
