"""Tests for histogram, dominant element, chi score and recommendation text."""

from itertools import combinations

import pytest

from chi_scan.models import ELEMENT_ORDER, AnalysisResult, Element
from chi_scan.scoring import (
    INVALID_DIRECTION_MSG,
    MISSING_FIELDS_MSG,
    InvalidRequest,
    analyze_colors,
    build_recommendations,
    chi_score,
    count_elements,
    dominant_element,
    element_percentages,
    find_cycle_pair,
    round_half_up,
    validate_direction,
    validate_request,
)
from chi_scan.elements import DESTRUCTIVE, PRODUCTIVE

RED = "#FF0000"
BLACK = "#000000"
WHITE = "#FFFFFF"
GREEN = "#00C000"
BLUE = "#1E3CC8"
TAN = "#D2B464"


class TestValidateRequest:
    @pytest.mark.parametrize("colors, direction", [
        (None, "N"),
        ("#FF0000", "N"),
        ([], "N"),
        ([RED], None),
        ([RED], ""),
    ])
    def test_missing_fields(self, colors, direction):
        with pytest.raises(InvalidRequest, match=MISSING_FIELDS_MSG):
            validate_request(colors, direction)

    @pytest.mark.parametrize("direction", ["north", "n", "NNE", "X"])
    def test_invalid_direction(self, direction):
        with pytest.raises(InvalidRequest, match=INVALID_DIRECTION_MSG):
            validate_request([RED], direction)

    def test_valid(self):
        validate_request([RED, "junk"], "SW")

    def test_direction_alone(self):
        validate_direction("NW")
        with pytest.raises(InvalidRequest, match=INVALID_DIRECTION_MSG):
            validate_direction("UP")
        with pytest.raises(InvalidRequest, match=MISSING_FIELDS_MSG):
            validate_direction(None)

    def test_missing_colors_reported_before_bad_direction(self):
        with pytest.raises(InvalidRequest, match=MISSING_FIELDS_MSG):
            validate_request([], "UP")


class TestHistogram:
    def test_counts_sum_to_input_length(self):
        elements = [Element.FIRE, Element.FIRE, Element.WATER, Element.WOOD]
        counts = count_elements(elements)
        assert sum(counts.values()) == len(elements)
        assert set(counts) == set(ELEMENT_ORDER)
        assert counts[Element.EARTH] == 0

    def test_round_half_up(self):
        assert round_half_up(12.5) == 13
        assert round_half_up(87.5) == 88
        assert round_half_up(33.333) == 33

    def test_percentages_drift_is_kept(self):
        counts = count_elements([Element.WOOD, Element.FIRE, Element.WATER])
        pct = element_percentages(counts)
        assert pct == {"Wood": 33, "Fire": 33, "Earth": 0, "Metal": 0, "Water": 33}
        assert sum(pct.values()) == 99

    def test_percentages_round_up_on_half(self):
        counts = count_elements([Element.WOOD] + [Element.FIRE] * 7)
        pct = element_percentages(counts)
        assert pct["Wood"] == 13
        assert pct["Fire"] == 88
        assert sum(pct.values()) == 101

    def test_empty_histogram_is_rejected(self):
        with pytest.raises(InvalidRequest):
            element_percentages(count_elements([]))

    def test_dominant_highest_count(self):
        counts = count_elements([Element.WATER, Element.WATER, Element.WOOD])
        assert dominant_element(counts) == Element.WATER

    def test_dominant_tie_goes_to_first_in_order(self):
        counts = count_elements([Element.WATER, Element.METAL])
        assert dominant_element(counts) == Element.METAL
        counts = count_elements([Element.WATER, Element.FIRE, Element.EARTH])
        assert dominant_element(counts) == Element.FIRE


class TestChiScore:
    def test_cycle_pair_first_in_order(self):
        present = {Element.WOOD, Element.EARTH, Element.WATER, Element.FIRE}
        assert find_cycle_pair(present, DESTRUCTIVE) == (Element.WOOD, Element.EARTH)
        assert find_cycle_pair(present, PRODUCTIVE) == (Element.WOOD, Element.FIRE)

    def test_no_cycle_pair(self):
        assert find_cycle_pair({Element.FIRE}, PRODUCTIVE) is None

    def test_score_always_in_range(self):
        for k in range(1, 6):
            for present in combinations(ELEMENT_ORDER, k):
                for dominant in present:
                    for direction_element in ELEMENT_ORDER:
                        score = chi_score(dominant, direction_element, set(present))
                        assert 0 <= score <= 100

    def test_all_bonuses_and_penalty(self):
        # aligned +10, five present +25, productive +10, destructive -10
        assert chi_score(Element.WOOD, Element.WOOD, set(ELEMENT_ORDER)) == 85


class TestAnalyzeColors:
    def test_single_red_facing_south(self):
        result = analyze_colors([RED], "S")
        assert result.score == 65
        assert result.elements == {"Wood": 0, "Fire": 100, "Earth": 0, "Metal": 0, "Water": 0}
        assert result.dominant == Element.FIRE
        assert result.direction_element == Element.FIRE
        assert result.analysis == (
            "The room is dominated by Fire energy (100%). "
            "Facing S, this space channels Fire energy. "
            "The dominant element aligns with the directional energy, creating natural harmony."
        )
        assert result.recommendations == [
            "Wood element is absent. Add green plants, wooden furniture, or vertical shapes.",
            "Earth element is absent. Add ceramics, stone, earthy tones, or low flat surfaces.",
            "Metal element is absent. Add metallic frames, white or gray decor, or round shapes.",
            "Water element is absent. Add a small fountain, mirrors, dark blue or black accents, or wavy shapes.",
        ]

    def test_black_and_white_facing_north(self):
        result = analyze_colors([BLACK, WHITE], "N")
        assert result.elements["Water"] == 50
        assert result.elements["Metal"] == 50
        # Metal precedes Water in the tie-break order; Metal feeds Water so the productive bonus applies
        assert result.dominant == Element.METAL
        assert result.score == 70
        assert result.recommendations[0] == (
            "Your room faces N (Water energy). The dominant element is Metal. "
            "Add a small fountain, mirrors, dark blue or black accents, or wavy shapes "
            "to align with directional energy."
        )
        assert "Consider introducing more Water elements" in result.analysis

    def test_destructive_pair_recommendation(self):
        result = analyze_colors([RED, BLUE], "E")
        assert result.score == 50
        assert result.recommendations[-1] == (
            "Water and Fire create a destructive cycle. "
            "Consider reducing the stronger element or adding a bridging element."
        )
        assert len(result.recommendations) == 5

    def test_all_five_elements(self):
        result = analyze_colors([GREEN, RED, TAN, WHITE, BLUE], "E")
        assert result.score == 85
        assert set(result.elements.values()) == {20}
        assert result.recommendations == [
            "Wood and Earth create a destructive cycle. "
            "Consider reducing the stronger element or adding a bridging element.",
            "Good elemental diversity. Maintain the current balance of materials and colors.",
        ]

    def test_malformed_colors_counted_as_water(self):
        result = analyze_colors(["nope", "#12"], "N")
        assert result.counts["Water"] == 2
        assert result.score == 65

    def test_histogram_matches_input_length(self):
        colors = [RED, RED, GREEN, "bad", TAN, WHITE, BLUE]
        result = analyze_colors(colors, "SE")
        assert sum(result.counts.values()) == len(colors)

    def test_empty_colors_rejected(self):
        with pytest.raises(InvalidRequest):
            analyze_colors([], "N")

    def test_result_requires_dominant_and_direction_element(self):
        with pytest.raises(TypeError):
            AnalysisResult(score=50, elements={}, recommendations=[], analysis="")

    def test_response_shape(self):
        body = analyze_colors([RED], "S").to_response()
        assert set(body) == {"score", "elements", "recommendations", "analysis"}


class TestRecommendations:
    def test_never_empty(self):
        for direction in ("N", "NE", "E", "SE", "S", "SW", "W", "NW"):
            for k in range(1, 6):
                for combo in combinations([GREEN, RED, TAN, WHITE, BLUE], k):
                    assert analyze_colors(list(combo), direction).recommendations

    def test_balanced_aligned_room_gets_diversity_note_only(self):
        counts = {el: 1 for el in ELEMENT_ORDER}
        counts[Element.WOOD] = 2
        recs = build_recommendations("E", Element.WOOD, Element.WOOD, counts)
        assert recs[-1] == "Good elemental diversity. Maintain the current balance of materials and colors."
