"""Inventory duplication: the same item added repeatedly in a short span.

Only runs for ``inventory_change`` actions. Looks at the player's 10 most
recent "add" rows in the inventory ledger and fires when any item id occurs
more than once (the classic duplication glitch).
"""

from collections import Counter
from typing import Optional

from anticheat.models.detections import (
    Detection,
    DetectionContext,
    InventoryDuplicationEvidence,
)
from anticheat.models.enums import DetectionKind, InventoryChangeType, Severity
from anticheat.storage.base import InventoryLedger

INVENTORY_ACTION = "inventory_change"
SAMPLE_SIZE = 10


class InventoryDuplicationRule:
    name = DetectionKind.INVENTORY_DUPLICATION
    toggle = None

    def __init__(self, inventory: InventoryLedger):
        self.inventory = inventory

    def evaluate(self, context: DetectionContext) -> Optional[Detection]:
        if context.action_type != INVENTORY_ACTION:
            return None

        adds = self.inventory.list_recent_inventory_changes(
            context.player_id, InventoryChangeType.ADD, SAMPLE_SIZE
        )
        counts = Counter(change.item_id for change in adds)
        duplicated = [item_id for item_id, count in counts.items() if count > 1]

        if not duplicated:
            return None

        return Detection(
            rule_name=self.name,
            severity=Severity.CRITICAL,
            confidence=0.95,
            description="Possible inventory duplication detected",
            evidence=InventoryDuplicationEvidence(
                duplicated_items=len(duplicated),
                item_ids=duplicated,
                sample_size=len(adds),
            ),
        )
