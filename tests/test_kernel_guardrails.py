"""Guardrails to keep kernel free of side effects and OS-specific dependencies."""

import re
from pathlib import Path


FORBIDDEN_PATTERNS = {
    "argparse": re.compile(r"\bargparse\b"),
    "pathlib.Path": re.compile(r"\bpathlib\.Path\b"),
    "open(": re.compile(r"(?<![A-Za-z0-9_])open\s*\("),
    "print(": re.compile(r"(?<![A-Za-z0-9_])print\s*\("),
    "warnings.": re.compile(r"\bwarnings\."),
    "datetime.now": re.compile(r"\bdatetime\.now\b"),
    "time.time": re.compile(r"\btime\.time\b"),
    "os.path": re.compile(r"\bos\.path\b"),
    "playwright": re.compile(r"\bplaywright\b"),
}

PACKAGE_DIR = Path(__file__).resolve().parents[1] / "src" / "forensic_intake"


def test_kernel_has_no_forbidden_tokens():
    kernel_dir = PACKAGE_DIR / "kernel"
    offenders = []

    for path in kernel_dir.glob("*.py"):
        contents = path.read_text(encoding="utf-8")
        for token, pattern in FORBIDDEN_PATTERNS.items():
            if pattern.search(contents):
                offenders.append(f"{path.name}: {token}")

    assert not offenders, "Forbidden kernel tokens found: " + ", ".join(offenders)


def test_browser_imports_confined_to_adapters():
    import_re = re.compile(r"^\s*(from|import)\s+playwright\b", re.MULTILINE)
    offenders = []

    for path in PACKAGE_DIR.rglob("*.py"):
        if "adapters" in path.relative_to(PACKAGE_DIR).parts:
            continue
        if import_re.search(path.read_text(encoding="utf-8")):
            offenders.append(str(path.relative_to(PACKAGE_DIR)))

    assert not offenders, "playwright imported outside adapters: " + ", ".join(offenders)
