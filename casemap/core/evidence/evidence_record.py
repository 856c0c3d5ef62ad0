"""Evidence marker records as edited on the map."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from casemap.core.map_module.map_logic import Point


@dataclass(slots=True)
class EvidenceRecord:
    """
    One marker. ``pixel`` is authoritative after import; ``world_x``/``world_y``
    only record what the table said. ``original_pixel`` is the reset target
    and is written once.
    """

    id: str
    pixel: Point
    world_x: Optional[float] = None
    world_y: Optional[float] = None
    original_pixel: Optional[Point] = None
    time: str = ""
    label: str = ""
    category: str = ""
    notes: str = ""
    image_key: str = ""
    image_url: Optional[str] = None
    attached_images: List[str] = field(default_factory=list)
    locked: bool = False
    extra: Dict[str, str] = field(default_factory=dict)

    def capture_original(self) -> None:
        """Record the reset target if it has not been recorded yet."""
        if self.original_pixel is None:
            self.original_pixel = self.pixel

    def to_json(self) -> dict:
        return {
            "id": self.id,
            "x": "" if self.world_x is None else repr(self.world_x),
            "y": "" if self.world_y is None else repr(self.world_y),
            "time": self.time,
            "pixel": self.pixel.to_json(),
            "originalPixel": self.original_pixel.to_json() if self.original_pixel else None,
            "label": self.label,
            "category": self.category,
            "notes": self.notes,
            "imageKey": self.image_key or None,
            "imageUrl": self.image_url,
            "images": list(self.attached_images),
            "locked": self.locked,
            "extra": dict(self.extra),
        }
