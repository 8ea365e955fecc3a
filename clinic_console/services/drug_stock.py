# clinic_console/services/drug_stock.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from clinic_console.clients.drugs import DrugsApi
from clinic_console.core.errors import ClinicConsoleError
from clinic_console.schemas.drug import DrugOut
from clinic_console.services.notifications import Notifier, error_message

logger = logging.getLogger(__name__)

BOX_ONLY = "box-only"


def stock_update_payload(
    drug: DrugOut,
    *,
    quantity_in_boxes: int,
    strips_per_box: Optional[int] = None,
    tablets_per_strip: Optional[int] = None,
) -> Dict[str, Any]:
    """Box-only drugs never send strip or tablet counts."""
    if quantity_in_boxes < 0:
        raise ValueError("quantity_in_boxes must be >= 0")
    payload: Dict[str, Any] = {"quantity_in_boxes": quantity_in_boxes}
    if drug.type_drug != BOX_ONLY:
        if strips_per_box is not None:
            payload["strips_per_box"] = strips_per_box
        if tablets_per_strip is not None:
            payload["tablets_per_strip"] = tablets_per_strip
    return payload


def add_stock(
    api: DrugsApi,
    drug_id: Any,
    *,
    quantity_in_boxes: int,
    strips_per_box: Optional[int] = None,
    tablets_per_strip: Optional[int] = None,
    notifier: Optional[Notifier] = None,
) -> Optional[DrugOut]:
    notifier = notifier or Notifier()
    try:
        drug = api.get(drug_id)
        payload = stock_update_payload(drug,
                                       quantity_in_boxes=quantity_in_boxes,
                                       strips_per_box=strips_per_box,
                                       tablets_per_strip=tablets_per_strip)
        updated = api.update(drug_id, payload)
    except ClinicConsoleError as e:
        logger.warning("Stock update for drug %s failed: %s", drug_id, e)
        notifier.error(error_message(e, "Failed to update stock."))
        return None
    notifier.success(f"Stock for {updated.name} updated successfully!")
    return updated
