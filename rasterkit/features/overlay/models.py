from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class TextOverlayConfig:
    """
    Caption drawn over the image. position is the baseline anchor;
    None centres the text.
    """

    text: str = ""
    color: str = "#ffffff"
    size: int = 24
    position: Optional[Tuple[float, float]] = None
