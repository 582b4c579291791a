# chi_scan/elements.py
"""
Five-Element tables and the color classifier.

- Direction -> element lookup
- Productive / destructive cycles
- Per-element "addition" suggestions used in recommendations
- Hex parsing (malformed -> black) and the ordered color rule cascade
"""

import logging
import re

from .models import Element

logger = logging.getLogger(__name__)

HEX_RE = re.compile(r"#?([0-9a-fA-F]{6})")

# ---------- Constant tables ----------
DIRECTION_ELEMENTS = {
    "N": Element.WATER,
    "S": Element.FIRE,
    "E": Element.WOOD,
    "W": Element.METAL,
    "NE": Element.EARTH,
    "NW": Element.METAL,
    "SE": Element.WOOD,
    "SW": Element.EARTH,
}

# generative order: Wood -> Fire -> Earth -> Metal -> Water -> Wood
PRODUCTIVE = {
    Element.WOOD: Element.FIRE,
    Element.FIRE: Element.EARTH,
    Element.EARTH: Element.METAL,
    Element.METAL: Element.WATER,
    Element.WATER: Element.WOOD,
}

# conflict order: Water -> Fire -> Metal -> Wood -> Earth -> Water
DESTRUCTIVE = {
    Element.WATER: Element.FIRE,
    Element.FIRE: Element.METAL,
    Element.METAL: Element.WOOD,
    Element.WOOD: Element.EARTH,
    Element.EARTH: Element.WATER,
}

ELEMENT_ADDITIONS = {
    Element.WOOD: "Add green plants, wooden furniture, or vertical shapes",
    Element.FIRE: "Add candles, warm lighting, red or orange accents, or triangular shapes",
    Element.EARTH: "Add ceramics, stone, earthy tones, or low flat surfaces",
    Element.METAL: "Add metallic frames, white or gray decor, or round shapes",
    Element.WATER: "Add a small fountain, mirrors, dark blue or black accents, or wavy shapes",
}


# ---------- Hex parsing ----------
def hex_to_rgb(hex_color):
    """
    Parse '#rrggbb' / 'rrggbb' into an (r, g, b) tuple.
    Anything else (wrong length, non-hex digits, non-string) becomes black.
    """
    m = HEX_RE.fullmatch(hex_color) if isinstance(hex_color, str) else None
    if m is None:
        logger.debug("malformed color %r coerced to black", hex_color)
        return (0, 0, 0)
    clean = m.group(1)
    return (int(clean[0:2], 16), int(clean[2:4], 16), int(clean[4:6], 16))


# ---------- Rule cascade ----------
# (name, predicate(r, g, b, brightness), element); first match wins, order matters
COLOR_RULES = (
    ("very dark", lambda r, g, b, br: br < 40, Element.WATER),
    ("light gray / white",
     lambda r, g, b, br: br > 200 and abs(r - g) < 20 and abs(g - b) < 20, Element.METAL),
    ("mid gray",
     lambda r, g, b, br: abs(r - g) < 25 and abs(g - b) < 25 and 100 <= br <= 200, Element.METAL),
    ("strong red", lambda r, g, b, br: r > 150 and r > g * 1.4 and r > b * 1.3, Element.FIRE),
    ("orange", lambda r, g, b, br: r > 180 and 80 < g < 160 and b < 80, Element.FIRE),
    ("pink", lambda r, g, b, br: r > 180 and b > 100 and g < 100, Element.FIRE),
    ("purple", lambda r, g, b, br: b > 120 and 60 < r < 140 and g < 80, Element.WATER),
    ("blue dominant", lambda r, g, b, br: b > r and b > g and b > 80, Element.WATER),
    ("green dominant", lambda r, g, b, br: g > r and g > b and g > 80, Element.WOOD),
    ("yellow / tan", lambda r, g, b, br: r > 130 and g > 100 and b < g * 0.8, Element.EARTH),
    ("brown", lambda r, g, b, br: r > 80 and g > 50 and g < r and b < g, Element.EARTH),
)


def classify_rgb(r, g, b):
    brightness = (r + g + b) / 3
    for _name, predicate, element in COLOR_RULES:
        if predicate(r, g, b, brightness):
            return element

    # fallback by largest channel, r before g before b on ties
    top = max(r, g, b)
    if top == r:
        return Element.FIRE
    if top == g:
        return Element.WOOD
    if top == b:
        return Element.WATER
    return Element.EARTH


def color_to_element(hex_color) -> Element:
    """Classify one hex color. Never raises."""
    return classify_rgb(*hex_to_rgb(hex_color))
