"""k schedules for the incremental coverage walk."""

from collections.abc import Iterable

# Rankings up to this length are evaluated at every k
DENSE_SCHEDULE_LIMIT = 100

# Adaptive schedule for long rankings: fine resolution at small k, coarser at large k
ADAPTIVE_SEGMENTS = (
    range(1, 51),
    range(52, 101, 2),
    range(110, 301, 10),
    range(325, 626, 25),
    range(700, 1201, 100),
)


def default_schedule(n_regulators: int, max_k: int | None = None) -> tuple[int, ...]:
    """
    k values to evaluate when no schedule is supplied.

    Every k from 1 to n_regulators when the ranking has at most 100
    regulators. Otherwise: 1-50, even k 52-100, multiples of 10 from 110 to
    300, multiples of 25 from 325 to 625, multiples of 100 from 700 to 1200,
    then max_k.

    Args:
        n_regulators: Ranking length
        max_k: Final k for long rankings (default: n_regulators)

    Returns:
        Strictly increasing tuple of k values

    Raises:
        ValueError: If n_regulators or max_k is below 1
    """
    if n_regulators < 1:
        raise ValueError(f"n_regulators must be >= 1, got {n_regulators}")

    if n_regulators <= DENSE_SCHEDULE_LIMIT:
        return tuple(range(1, n_regulators + 1))

    max_k = n_regulators if max_k is None else max_k
    if max_k < 1:
        raise ValueError(f"max_k must be >= 1, got {max_k}")

    points = [k for segment in ADAPTIVE_SEGMENTS for k in segment if k < max_k]
    points.append(max_k)
    return tuple(points)


def validate_schedule(schedule: Iterable[int]) -> tuple[int, ...]:
    """
    Check a user-supplied schedule.

    Returns:
        The schedule as a tuple

    Raises:
        ValueError: If empty, not integers, below 1 or not strictly increasing
    """
    points = tuple(schedule)
    if not points:
        raise ValueError("schedule must not be empty")
    if any(not isinstance(k, int) or isinstance(k, bool) for k in points):
        raise ValueError(f"schedule values must be integers: {points[:10]}")
    if points[0] < 1:
        raise ValueError(f"schedule values must be >= 1, got {points[0]}")
    for previous, current in zip(points, points[1:]):
        if current <= previous:
            raise ValueError(
                f"schedule must be strictly increasing ({previous} followed by {current})"
            )
    return points


def resolve_schedule(n_regulators: int, schedule: Iterable[int] | None = None) -> tuple[int, ...]:
    """Validated explicit schedule, or the default schedule for the ranking length."""
    if schedule is None:
        return default_schedule(n_regulators)
    return validate_schedule(schedule)
