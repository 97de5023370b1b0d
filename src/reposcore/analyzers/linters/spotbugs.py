"""SpotBugs adapter for Java, run through the Maven plugin.

The plugin reports bugs as text lines such as::

    [ERROR] Medium: Found reliance on default encoding in com.acme.Io.read() [com.acme.Io] At Io.java:[line 12] DM_DEFAULT_ENCODING
"""

import re
from pathlib import Path

from reposcore.analyzers.base import ToolAdapter, ToolNotAvailableError
from reposcore.models import LintIssue
from reposcore.utils.process import CancellationToken

BUG_LINE = re.compile(
    r"^\[(?:ERROR|WARNING|INFO)\]\s+(?P<rank>High|Medium|Low):\s+(?P<message>.*?)\s+"
    r"\[(?P<cls>[\w.$]+)\]\s+At\s+(?P<file>[\w$]+\.java):\[lines?\s+(?P<line>\d+)(?:-\d+)?\]"
    r"\s+(?P<rule>\w+)"
)

SPOTBUGS_SEVERITY = {"High": "error", "Medium": "warning", "Low": "info"}


class SpotBugsAdapter(ToolAdapter[list[LintIssue]]):
    """Lint adapter using ``mvn spotbugs:check``."""

    executable = "mvn"
    languages = ("java",)

    def __init__(self, name: str = "spotbugs", timeout: float = 120.0) -> None:
        super().__init__(name=name, capability="lint", timeout=timeout)

    def execute(
        self,
        input_path: Path,
        cancel_token: CancellationToken | None = None,
    ) -> list[LintIssue]:
        """Run SpotBugs through Maven and parse its text report."""
        if not (input_path / "pom.xml").exists():
            raise ToolNotAvailableError(self.name, "SpotBugs requires a Maven project (pom.xml)")

        result = self.run(
            ["mvn", "-B", "-q", "spotbugs:check", "-Dspotbugs.failOnError=false"],
            cwd=input_path,
            cancel_token=cancel_token,
        )
        return self.parse(result.stdout)

    def parse(self, output: str) -> list[LintIssue]:
        """Extract bug lines from Maven output."""
        issues = []
        for line in output.splitlines():
            match = BUG_LINE.match(line.strip())
            if not match:
                continue
            package = match["cls"].rsplit(".", 1)[0] if "." in match["cls"] else ""
            file_path = "/".join([*package.split("."), match["file"]]) if package else match["file"]
            issues.append(
                LintIssue(
                    file=file_path,
                    line=int(match["line"]),
                    column=0,
                    severity=SPOTBUGS_SEVERITY[match["rank"]],
                    message=match["message"],
                    rule=match["rule"],
                    source=self.name,
                )
            )
        return issues
