"""
Closed-form inverse of a 3x3 matrix via the adjugate.

The SAF model has exactly three regressors, so the normal-equations matrix is
always 3x3. Keeping the inversion explicit pins the singularity rule to one
determinant threshold.
"""
import math
from typing import List, Optional, Sequence

# |det| below this is treated as singular
SINGULAR_DET_TOLERANCE = 1e-12

Matrix3 = List[List[float]]


def determinant_3x3(matrix: Sequence[Sequence[float]]) -> float:
    """Cofactor expansion along the first row."""
    (a, b, c), (d, e, f), (g, h, i) = matrix
    return a * (e * i - f * h) - b * (d * i - f * g) + c * (d * h - e * g)


def invert_3x3(matrix: Sequence[Sequence[float]]) -> Optional[Matrix3]:
    """
    Invert a 3x3 matrix.

    Args:
        matrix: 3 rows of 3 numbers.

    Returns:
        The inverse as a list of rows, or None if the determinant is not
        finite or its magnitude is below SINGULAR_DET_TOLERANCE.

    Raises:
        ValueError: if matrix is not 3x3.
    """
    if len(matrix) != 3 or any(len(row) != 3 for row in matrix):
        raise ValueError("invert_3x3 expects a 3x3 matrix")

    det = determinant_3x3(matrix)
    if not math.isfinite(det) or abs(det) < SINGULAR_DET_TOLERANCE:
        return None

    (a, b, c), (d, e, f), (g, h, i) = matrix
    adjugate = [
        [e * i - f * h, c * h - b * i, b * f - c * e],
        [f * g - d * i, a * i - c * g, c * d - a * f],
        [d * h - e * g, b * g - a * h, a * e - b * d],
    ]
    inv_det = 1.0 / det
    return [[v * inv_det for v in row] for row in adjugate]
