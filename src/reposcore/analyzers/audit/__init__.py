"""Dependency audit adapters, one per ecosystem.

Each adapter maps its tool's native severity vocabulary onto
critical/high/medium/low; unknown values map to low.
"""

from reposcore.analyzers.audit.cargo import CargoAuditAdapter
from reposcore.analyzers.audit.npm import NpmAuditAdapter
from reposcore.analyzers.audit.pip import PipAuditAdapter
from reposcore.analyzers.audit.severity import map_severity

__all__ = ["CargoAuditAdapter", "NpmAuditAdapter", "PipAuditAdapter", "map_severity"]
