"""Scoring Rules: pure mapping from raw arrow observations to points.

Invariants:
    - Arrows are decoded into a tagged variant (ABAArrow | IFAAArrow) chosen by ScoringSystem
    - Invalid input raises RoundValidationError; nothing defaults to zero
    - Client-supplied "points" are ignored; points are always recomputed here
    - ABA target max is 20 regardless of arrow count; IFAA target max is 5 per arrow

Design Decisions:
    - Two ABA tables exposed as ABAScoringStrategy; FLAT is the default
    - POSITION_WEIGHTED enforces first-hit-ends-target, so a target never exceeds 20
"""

from dataclasses import dataclass

from quiver.core.domain_types import (
    ABAScoringStrategy, ScoringSystem, ZoneHit, MAX_ARROWS_PER_TARGET,
)
from quiver.core.errors import RoundValidationError


ABA_FLAT_POINTS: dict[ZoneHit, int] = {
    ZoneHit.A: 20,
    ZoneHit.B: 16,
    ZoneHit.C: 10,
    ZoneHit.MISS: 0,
}

ABA_POSITION_POINTS: dict[int, dict[ZoneHit, int]] = {
    1: {ZoneHit.A: 20, ZoneHit.B: 18, ZoneHit.C: 16, ZoneHit.MISS: 0},
    2: {ZoneHit.A: 14, ZoneHit.B: 12, ZoneHit.C: 10, ZoneHit.MISS: 0},
    3: {ZoneHit.A: 8, ZoneHit.B: 6, ZoneHit.C: 4, ZoneHit.MISS: 0},
}

ABA_TARGET_MAX: int = 20
IFAA_MAX_ARROW_SCORE: int = 5
IFAA_MIN_ARROW_SCORE: int = 0


@dataclass(frozen=True)
class ABAArrow:
    """One ABA arrow. points is derived from the zone (and position, if weighted)."""
    zone_hit: ZoneHit
    points: int
    arrow_position: int | None = None


@dataclass(frozen=True)
class IFAAArrow:
    """One IFAA arrow. points equals score_value."""
    score_value: int

    @property
    def points(self) -> int:
        return self.score_value


Arrow = ABAArrow | IFAAArrow


def score_arrow(
    system: ScoringSystem,
    arrow_data: dict,
    position: int,
    strategy: ABAScoringStrategy = ABAScoringStrategy.FLAT,
) -> Arrow:
    """Decode and score one raw arrow. position is 1-based within the target."""
    if not isinstance(arrow_data, dict):
        raise RoundValidationError(
            f"Arrow #{position} must be an object", "arrows",
        )
    if system == ScoringSystem.ABA:
        return _score_aba_arrow(arrow_data, position, strategy)
    return _score_ifaa_arrow(arrow_data, position)


def score_target(
    system: ScoringSystem,
    arrows_data: list[dict],
    arrows_per_target: int = MAX_ARROWS_PER_TARGET,
    strategy: ABAScoringStrategy = ABAScoringStrategy.FLAT,
) -> tuple[list[Arrow], int]:
    """Score every arrow shot at one target. Returns (typed arrows, total points)."""
    if not arrows_data:
        raise RoundValidationError(
            "At least one arrow is required per target", "arrows",
        )
    if len(arrows_data) > arrows_per_target:
        raise RoundValidationError(
            f"A target accepts at most {arrows_per_target} arrow(s), "
            f"got {len(arrows_data)}",
            "arrows",
        )

    arrows = [
        score_arrow(system, data, index + 1, strategy)
        for index, data in enumerate(arrows_data)
    ]
    if system == ScoringSystem.ABA and strategy == ABAScoringStrategy.POSITION_WEIGHTED:
        _check_first_hit_ends_target(arrows)
    return arrows, sum(a.points for a in arrows)


def target_max_score(system: ScoringSystem, arrows_per_target: int) -> int:
    """Maximum points one target can contribute."""
    if system == ScoringSystem.ABA:
        return ABA_TARGET_MAX
    return IFAA_MAX_ARROW_SCORE * arrows_per_target


def round_max_score(
    system: ScoringSystem, target_count: int, arrows_per_target: int,
) -> int:
    """Maximum points for a whole round on a course."""
    return target_count * target_max_score(system, arrows_per_target)


# ─── Internals ───────────────────────────────────────────────────

def _score_aba_arrow(
    arrow_data: dict, position: int, strategy: ABAScoringStrategy,
) -> ABAArrow:
    raw_zone = arrow_data.get("zoneHit")
    if raw_zone is None:
        raise RoundValidationError(
            f"Arrow #{position} is missing zoneHit", "zoneHit",
        )
    try:
        zone = ZoneHit(raw_zone)
    except ValueError:
        raise RoundValidationError(
            f"Arrow #{position} has unknown zone '{raw_zone}' "
            f"(expected one of A, B, C, miss)",
            "zoneHit",
        )

    if strategy == ABAScoringStrategy.FLAT:
        return ABAArrow(zone_hit=zone, points=ABA_FLAT_POINTS[zone])

    arrow_position = arrow_data.get("arrowPosition", position)
    if (
        not isinstance(arrow_position, int)
        or isinstance(arrow_position, bool)
        or arrow_position not in ABA_POSITION_POINTS
    ):
        raise RoundValidationError(
            f"Arrow #{position} has invalid arrowPosition '{arrow_position}' "
            f"(expected 1, 2 or 3)",
            "arrowPosition",
        )
    if arrow_position != position:
        raise RoundValidationError(
            f"Arrow #{position} declares arrowPosition {arrow_position}; "
            f"arrows must be listed in the order they were shot",
            "arrowPosition",
        )
    return ABAArrow(
        zone_hit=zone,
        points=ABA_POSITION_POINTS[arrow_position][zone],
        arrow_position=arrow_position,
    )


def _score_ifaa_arrow(arrow_data: dict, position: int) -> IFAAArrow:
    value = arrow_data.get("scoreValue")
    if value is None:
        raise RoundValidationError(
            f"Arrow #{position} is missing scoreValue", "scoreValue",
        )
    # bool is an int subclass; True must not score 1
    if not isinstance(value, int) or isinstance(value, bool):
        raise RoundValidationError(
            f"Arrow #{position} scoreValue must be an integer", "scoreValue",
        )
    if not IFAA_MIN_ARROW_SCORE <= value <= IFAA_MAX_ARROW_SCORE:
        raise RoundValidationError(
            f"Arrow #{position} scoreValue {value} is outside "
            f"[{IFAA_MIN_ARROW_SCORE}, {IFAA_MAX_ARROW_SCORE}]",
            "scoreValue",
        )
    return IFAAArrow(score_value=value)


def _check_first_hit_ends_target(arrows: list[Arrow]) -> None:
    """Position-weighted ABA: nothing may be shot after a scoring arrow."""
    for index, arrow in enumerate(arrows[:-1]):
        if arrow.zone_hit != ZoneHit.MISS:
            raise RoundValidationError(
                f"Arrow #{index + 2} recorded after a hit on arrow #{index + 1}; "
                f"a target ends at the first scoring arrow",
                "arrows",
            )
