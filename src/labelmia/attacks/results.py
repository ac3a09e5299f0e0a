"""Per-sample result record produced by every labelmia attack.

One ``AttackResult`` is created per attack invocation and handed to the
caller (typically the reporter).  It is frozen: the membership verdict
is added afterwards by building a new record with
``dataclasses.replace``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np

# Fields written by the reporter, in column order.
REPORT_FIELDS = (
    "sample_id",
    "original_label",
    "final_label",
    "is_success",
    "queries",
    "distance",
    "is_member",
    "error",
)


@dataclass(frozen=True)
class AttackResult:
    """Outcome of attacking one sample.

    Attributes
    ----------
    sample_id:
        Identifier of the attacked ``Sample``.
    original_label:
        The sample's ground-truth label (the label the attack tries to flip).
    final_label:
        Oracle label of the final adversarial point.
    is_success:
        ``final_label != original_label``.
    queries:
        Oracle queries consumed, never more than the configured budget.
    distance:
        L2 distance between the original and the adversarial vector,
        computed in float64. ``0.0`` when no adversarial seed was found.
    is_member:
        Membership verdict; always ``False`` out of the engine and set
        by a threshold policy afterwards.
    error:
        Oracle error message when the attack was aborted, else ``None``.
    adversarial:
        The final adversarial vector, or ``None`` if none was found.
        Not part of the report.
    """

    sample_id: int
    original_label: int
    final_label: int
    is_success: bool
    queries: int
    distance: float
    is_member: bool = False
    error: Optional[str] = None
    adversarial: Optional[np.ndarray] = field(default=None, repr=False, compare=False)

    @property
    def aborted(self) -> bool:
        return self.error is not None

    def to_record(self) -> dict[str, Any]:
        """Plain dict of the report fields."""
        return {name: getattr(self, name) for name in REPORT_FIELDS}
