"""Import outcome and structured error values."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class ServiceError(BaseModel):
    """Structured error for one failed input."""

    code: str = Field(..., description="Machine-readable error kind, e.g. 'unrecognizedFileType'")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, str | int | float | bool | None] | None = None


class ImportReport(BaseModel):
    """What an import run added to the live document.

    Counts describe what the decoders produced, before merge dedup.
    ``errors`` holds one entry per file that could not be imported;
    ``warnings`` carries non-fatal notices (checksum mismatches ...).
    """

    files: int = Field(default=0, ge=0)
    routes: int = Field(default=0, ge=0)
    route_points: int = Field(default=0, ge=0)
    airports: int = Field(default=0, ge=0)
    navaids: int = Field(default=0, ge=0)
    waypoints: int = Field(default=0, ge=0)
    errors: list[ServiceError] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))

    @property
    def total_items(self) -> int:
        return self.routes + self.route_points + self.airports + self.navaids + self.waypoints

    def summary(self) -> str:
        """One-line summary, e.g. ``Imported: 2 routes, 3 waypoints``."""
        parts = []
        if self.routes:
            parts.append(f"{self.routes} routes")
        if self.airports:
            parts.append(f"{self.airports} airports")
        if self.navaids:
            parts.append(f"{self.navaids} navaids")
        if self.waypoints:
            parts.append(f"{self.waypoints} waypoints")
        if not parts:
            return "Import finished but no data found."
        return "Imported: " + ", ".join(parts)
