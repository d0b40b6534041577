"""
Derived academic metrics.

Everything here is a pure function of enrollment data: no state is kept and
nothing is mutated, so the same helpers serve the ledger, the REST layer and
the report export.

Weighting policy
----------------
The overall grade of an enrollment is a fixed weighted sum of its three
component scores. The weights are part of institutional policy and are not
configurable at runtime:

    assignments 40%, quizzes 30%, final exam 30%

Grade point scale
-----------------
Overall grades map to a 0.0-4.0 point value through descending thresholds.
Each band includes its lower bound, so a score sitting exactly on a
threshold lands in the higher band.
"""

from typing import Dict, Iterable, List, Tuple


ASSIGNMENT_WEIGHT = 0.4
QUIZ_WEIGHT = 0.3
FINAL_WEIGHT = 0.3

GRADE_WEIGHTS: Dict[str, float] = {
    "assignment": ASSIGNMENT_WEIGHT,
    "quiz": QUIZ_WEIGHT,
    "final": FINAL_WEIGHT,
}

GRADE_POINT_SCALE: List[Tuple[float, float]] = [
    (93.0, 4.0),
    (90.0, 3.7),
    (87.0, 3.3),
    (83.0, 3.0),
    (80.0, 2.7),
    (77.0, 2.3),
    (73.0, 2.0),
    (70.0, 1.7),
    (67.0, 1.3),
    (60.0, 1.0),
]

FAILING_POINT = 0.0


def weighted_overall(assignment: float, quiz: float, final: float) -> float:
    """Combine the three component scores using the weighting policy."""
    return (assignment * ASSIGNMENT_WEIGHT
            + quiz * QUIZ_WEIGHT
            + final * FINAL_WEIGHT)


def compute_overall(enrollment: 'Enrollment') -> float:
    """Overall grade of a single enrollment."""
    return weighted_overall(enrollment.assignment_score,
                            enrollment.quiz_score,
                            enrollment.final_score)


def attendance_percentage(enrollment: 'Enrollment') -> float:
    """Share of sessions attended, in percent. Zero when no session was held."""
    if enrollment.total_sessions <= 0:
        return 0.0
    return 100.0 * enrollment.attendance_count / enrollment.total_sessions


def grade_to_point(overall: float) -> float:
    """Map a 0-100 overall grade to the 0.0-4.0 point scale."""
    for threshold, point in GRADE_POINT_SCALE:
        if overall >= threshold:
            return point
    return FAILING_POINT


def gpa(enrollments: Iterable['Enrollment']) -> float:
    """Mean grade point over ``enrollments``; 0.0 for an empty sequence."""
    points = [grade_to_point(compute_overall(e)) for e in enrollments]
    if not points:
        return 0.0
    return sum(points) / len(points)
