from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict


class Element(str, Enum):
    WOOD = "Wood"
    FIRE = "Fire"
    EARTH = "Earth"
    METAL = "Metal"
    WATER = "Water"


# iteration order for histograms, tie-breaks and cycle scans
ELEMENT_ORDER = (Element.WOOD, Element.FIRE, Element.EARTH, Element.METAL, Element.WATER)

DIRECTIONS = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")


@dataclass
class AnalysisResult:
    score: int                          # 0..100
    elements: Dict[str, int]            # element name -> percent, e.g. {"Fire": 100, ...}
    recommendations: List[str]
    analysis: str
    dominant: Element
    direction_element: Element
    counts: Dict[str, int] = field(default_factory=dict)   # raw histogram, not part of the response body

    def to_response(self):
        return {
            "score": self.score,
            "elements": dict(self.elements),
            "recommendations": list(self.recommendations),
            "analysis": self.analysis,
        }
