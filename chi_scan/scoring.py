# chi_scan/scoring.py
"""
Element histogram, chi score, recommendations and analysis text.

Everything here is a pure function of (colors, direction); the only
failure mode is a malformed request, raised as InvalidRequest.
"""

import logging
import math

from .elements import (
    DESTRUCTIVE,
    DIRECTION_ELEMENTS,
    ELEMENT_ADDITIONS,
    PRODUCTIVE,
    color_to_element,
)
from .models import DIRECTIONS, ELEMENT_ORDER, AnalysisResult

logger = logging.getLogger(__name__)

BASE_SCORE = 50
ALIGNMENT_BONUS = 10
DIVERSITY_BONUS = 5       # per distinct element present
PRODUCTIVE_BONUS = 10
DESTRUCTIVE_PENALTY = 10

MISSING_FIELDS_MSG = "Missing colors array or direction"
INVALID_DIRECTION_MSG = "Invalid direction"


class InvalidRequest(ValueError):
    """Malformed analyze request; message is safe to return to the client."""


def validate_direction(direction):
    if not direction:
        raise InvalidRequest(MISSING_FIELDS_MSG)
    if direction not in DIRECTIONS:
        raise InvalidRequest(INVALID_DIRECTION_MSG)


def validate_request(colors, direction):
    if not isinstance(colors, (list, tuple)) or not colors:
        raise InvalidRequest(MISSING_FIELDS_MSG)
    validate_direction(direction)


# ---------- Histogram ----------
def round_half_up(x):
    return int(math.floor(x + 0.5))


def count_elements(elements):
    counts = {el: 0 for el in ELEMENT_ORDER}
    for el in elements:
        counts[el] += 1
    return counts


def element_percentages(counts):
    """Per-element rounded percent; the sum may drift from 100 and is left as is."""
    total = sum(counts.values())
    if total == 0:
        raise InvalidRequest(MISSING_FIELDS_MSG)
    return {el.value: round_half_up(counts[el] / total * 100) for el in ELEMENT_ORDER}


def dominant_element(counts):
    # strictly greater replaces, so the earliest element in ELEMENT_ORDER wins ties
    best = ELEMENT_ORDER[0]
    for el in ELEMENT_ORDER[1:]:
        if counts[el] > counts[best]:
            best = el
    return best


# ---------- Cycles ----------
def find_cycle_pair(present, cycle):
    """First (element, target) in ELEMENT_ORDER whose cycle target is also present."""
    for el in ELEMENT_ORDER:
        if el in present and cycle[el] in present:
            return (el, cycle[el])
    return None


def chi_score(dominant, direction_element, present):
    score = BASE_SCORE
    if dominant == direction_element:
        score += ALIGNMENT_BONUS
    score += DIVERSITY_BONUS * len(present)
    if find_cycle_pair(present, PRODUCTIVE):
        score += PRODUCTIVE_BONUS
    if find_cycle_pair(present, DESTRUCTIVE):
        score -= DESTRUCTIVE_PENALTY
    return max(0, min(100, score))


# ---------- Text ----------
def build_recommendations(direction, dominant, direction_element, counts):
    recs = []
    present = [el for el in ELEMENT_ORDER if counts[el] > 0]

    if dominant != direction_element:
        recs.append(
            f"Your room faces {direction} ({direction_element.value} energy). "
            f"The dominant element is {dominant.value}. "
            f"{ELEMENT_ADDITIONS[direction_element]} to align with directional energy."
        )

    for el in ELEMENT_ORDER:
        if counts[el] == 0:
            recs.append(f"{el.value} element is absent. {ELEMENT_ADDITIONS[el]}.")

    pair = find_cycle_pair(set(present), DESTRUCTIVE)
    if pair:
        recs.append(
            f"{pair[0].value} and {pair[1].value} create a destructive cycle. "
            "Consider reducing the stronger element or adding a bridging element."
        )

    if len(present) >= 4:
        recs.append("Good elemental diversity. Maintain the current balance of materials and colors.")

    if not recs:
        recs.append("This room has excellent Feng Shui balance. No major changes needed.")
    return recs


def build_analysis(direction, dominant, direction_element, percentages):
    text = f"The room is dominated by {dominant.value} energy ({percentages[dominant.value]}%). "
    text += f"Facing {direction}, this space channels {direction_element.value} energy. "
    if dominant == direction_element:
        text += "The dominant element aligns with the directional energy, creating natural harmony."
    else:
        text += (f"Consider introducing more {direction_element.value} elements "
                 "to harmonize with the room's orientation.")
    return text


# ---------- Full pipeline ----------
def analyze_colors(colors, direction) -> AnalysisResult:
    validate_request(colors, direction)

    counts = count_elements(color_to_element(c) for c in colors)
    percentages = element_percentages(counts)
    dominant = dominant_element(counts)
    direction_element = DIRECTION_ELEMENTS[direction]
    present = {el for el in ELEMENT_ORDER if counts[el] > 0}

    score = chi_score(dominant, direction_element, present)
    recommendations = build_recommendations(direction, dominant, direction_element, counts)
    analysis = build_analysis(direction, dominant, direction_element, percentages)

    logger.info("analyzed %d colors facing %s: dominant=%s score=%d",
                len(colors), direction, dominant.value, score)

    return AnalysisResult(
        score=score,
        elements=percentages,
        recommendations=recommendations,
        analysis=analysis,
        dominant=dominant,
        direction_element=direction_element,
        counts={el.value: counts[el] for el in ELEMENT_ORDER},
    )
