"""Credential-shaped string detection.

Every non-binary file from the inventory is scanned line by line against a
fixed pattern table. Matches are redacted before a SecretMatch is built, so
raw values never leave ``scan_line``; log messages carry only file, line
and type.

Confidence is ``min(shannon_entropy(match) / 4, 1)``.
"""

import logging
import math
import re
from collections import Counter
from collections.abc import Iterable
from pathlib import Path

from reposcore.models import FileRecord, SecretMatch
from reposcore.utils.process import CancellationToken

logger = logging.getLogger(__name__)

# Files larger than this are skipped (minified bundles, data dumps)
MAX_SCAN_BYTES = 1_000_000

# (type, pattern), checked in order; each pattern reports at most one match per line
SECRET_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("aws_key", re.compile(r"AKIA[0-9A-Z]{16}")),
    ("aws_key", re.compile(r"aws_access_key_id\s*=\s*['\"]?[A-Za-z0-9+/]{20,}['\"]?", re.IGNORECASE)),
    ("aws_key", re.compile(r"aws_secret_access_key\s*=\s*['\"]?[A-Za-z0-9+/]{40,}['\"]?", re.IGNORECASE)),
    ("github_token", re.compile(r"gh[pousr]_[A-Za-z0-9]{36}")),
    ("api_key", re.compile(r"api[_-]?key\s*[=:]\s*['\"]?[A-Za-z0-9_-]{20,}['\"]?", re.IGNORECASE)),
    ("api_key", re.compile(r"secret[_-]?key\s*[=:]\s*['\"]?[A-Za-z0-9_-]{20,}['\"]?", re.IGNORECASE)),
    (
        "database_url",
        re.compile(r"(?:mongodb(?:\+srv)?|postgres(?:ql)?|mysql)://[^:\s]+:[^@\s]+@[^/\s]+/\S+", re.IGNORECASE),
    ),
    ("bearer_token", re.compile(r"[Bb]earer\s+[A-Za-z0-9._~+/-]{20,}=*")),
    ("jwt_token", re.compile(r"eyJ[A-Za-z0-9_-]*\.[A-Za-z0-9_-]*\.[A-Za-z0-9_-]*")),
    ("slack_webhook", re.compile(r"https://hooks\.slack\.com/services/[A-Z0-9]+/[A-Z0-9]+/[A-Za-z0-9]+")),
    ("generic_secret", re.compile(r"[A-Za-z0-9+/]{32,}={0,2}")),
)


def shannon_entropy(value: str) -> float:
    """Shannon entropy of a string in bits per character."""
    if not value:
        return 0.0
    length = len(value)
    return -sum((count / length) * math.log2(count / length) for count in Counter(value).values())


def confidence(value: str) -> float:
    return min(shannon_entropy(value) / 4, 1.0)


def redact(value: str) -> str:
    """Redact a secret: first 4 + "***" + last 4, or "***" if 8 chars or fewer."""
    if len(value) <= 8:
        return "***"
    return f"{value[:4]}***{value[-4:]}"


def scan_line(line: str, file_path: str, line_number: int) -> list[SecretMatch]:
    """Scan one line against every pattern."""
    matches = []
    for secret_type, pattern in SECRET_PATTERNS:
        found = pattern.search(line)
        if found is None:
            continue
        raw = found.group(0)
        matches.append(
            SecretMatch(
                file=file_path,
                line=line_number,
                type=secret_type,
                confidence=round(confidence(raw), 4),
                value=redact(raw),
            )
        )
    return matches


def scan_text(content: str, file_path: str) -> list[SecretMatch]:
    """Scan file content line by line."""
    matches: list[SecretMatch] = []
    for number, line in enumerate(content.splitlines(), start=1):
        matches.extend(scan_line(line, file_path, number))
    return matches


class SecretScanner:
    """Scans inventoried text files for secrets."""

    def __init__(self, repo_path: Path, max_bytes: int = MAX_SCAN_BYTES) -> None:
        self.repo_path = repo_path
        self.max_bytes = max_bytes
        self.warnings: list[str] = []

    def scan(
        self,
        files: Iterable[FileRecord],
        cancel_token: CancellationToken | None = None,
    ) -> list[SecretMatch]:
        """Scan every non-binary file; unreadable files are skipped with a warning.

        Args:
            files: Inventory file records
            cancel_token: Optional job cancellation token

        Returns:
            Redacted secret matches
        """
        secrets: list[SecretMatch] = []
        for record in files:
            if record.is_binary or record.size > self.max_bytes:
                continue
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            try:
                content = (self.repo_path / record.path).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                self.warnings.append(f"Secret scan skipped {record.path}: {type(e).__name__}")
                logger.debug("Secret scan skipped %s: %s", record.path, e)
                continue

            found = scan_text(content, record.path)
            for match in found:
                logger.debug("Possible %s in %s:%d", match.type, match.file, match.line)
            secrets.extend(found)

        logger.info("Secret scan found %d possible secret(s)", len(secrets))
        return secrets
