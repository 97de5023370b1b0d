"""Severity vocabulary shared by the audit adapters."""


def map_severity(native: str | None, table: dict[str, str]) -> str:
    """Map a native severity through a table, defaulting to low."""
    return table.get(str(native or "").lower(), "low")
