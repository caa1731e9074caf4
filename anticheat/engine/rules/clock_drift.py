"""Clock drift: client clock far from the server's write time.

Only evaluated when the event carries ``metadata.clientTimestamp`` (ISO-8601
string or epoch milliseconds). An unparsable timestamp is inconclusive.
The tolerance key doubles as the rule's toggle.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from anticheat.models.detections import ClockDriftEvidence, Detection, DetectionContext
from anticheat.models.enums import DetectionKind, Severity
from anticheat.models.logs import ensure_utc

DEFAULT_TOLERANCE_SECONDS = 30


def parse_client_timestamp(raw: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string or epoch-millisecond value into UTC."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        if isinstance(raw, (int, float)):
            return datetime.fromtimestamp(raw / 1000.0, tz=timezone.utc)
        if isinstance(raw, str):
            text = raw.strip()
            if not text:
                return None
            try:
                return datetime.fromtimestamp(float(text) / 1000.0, tz=timezone.utc)
            except ValueError:
                pass
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            return ensure_utc(datetime.fromisoformat(text))
    except (ValueError, OverflowError, OSError):
        return None
    return None


class ClockDriftRule:
    name = DetectionKind.CLOCK_DRIFT
    toggle = "clock_drift_tolerance_seconds"

    def evaluate(self, context: DetectionContext) -> Optional[Detection]:
        client_time = parse_client_timestamp(context.log_entry.flag("clientTimestamp"))
        if client_time is None:
            return None

        server_time = context.log_entry.created_at
        drift = abs((server_time - client_time).total_seconds())
        tolerance = context.config.number(self.toggle, DEFAULT_TOLERANCE_SECONDS)

        if drift <= tolerance:
            return None

        return Detection(
            rule_name=self.name,
            severity=Severity.HIGH,
            confidence=0.90,
            description=f"Clock drift of {drift:.1f}s detected (tolerance: {tolerance:g}s)",
            evidence=ClockDriftEvidence(
                drift_seconds=drift,
                tolerance=tolerance,
                client_time=client_time,
                server_time=server_time,
            ),
        )
