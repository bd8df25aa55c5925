from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(slots=True)
class VisualProperties:
    """Mutable bag of drawable properties (x, y, visible, content, color...)."""

    values: Dict[str, Any] = field(default_factory=dict)
