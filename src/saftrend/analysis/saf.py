"""
Speed-Adjusted-for-heart-rate Factor (SAF).

Model, fit by ordinary least squares over every observation in the batch:

    speed = beta0 + beta1 * t_days + beta2 * avg_hr

beta1 is the speed gained per day at a fixed heart rate; beta2 is the speed
gained per extra bpm on a given day. Their ratio expresses the fitness trend
in heart-rate units:

    SAF = beta1 * horizon_days / beta2

i.e. the heart-rate increase that would have been needed to produce the
speed gained over the horizon.

The fit is solved from the normal equations (X'X) beta = X'y with the
closed-form 3x3 inverse. Data that cannot support the estimate yields a
SafInsufficientData result with a reason; only caller errors raise.
"""
import logging
import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Sequence, Union

from saftrend.analysis.linalg import invert_3x3
from saftrend.analysis.observations import Observation

logger = logging.getLogger(__name__)

MIN_OBSERVATIONS = 3
MIN_ABS_BETA2 = 1e-9


class InsufficientReason(str, Enum):
    TOO_FEW_OBSERVATIONS = "at least 3 observations are required for the regression model"
    SINGULAR_MATRIX = "regression matrix was singular or coefficients were not finite"
    BETA2_NEAR_ZERO = "heart-rate coefficient beta2 is too close to zero for a stable SAF"
    SAF_NOT_FINITE = "computed SAF value was not finite"


@dataclass(frozen=True)
class RegressionCoefficients:
    beta0: float  # m/s
    beta1: float  # m/s per day
    beta2: float  # m/s per bpm


@dataclass(frozen=True)
class SafSuccess:
    kind: ClassVar[str] = "success"

    beta0: float
    beta1: float
    beta2: float
    saf_bpm: float
    horizon_days: int
    observation_count: int


@dataclass(frozen=True)
class SafInsufficientData:
    kind: ClassVar[str] = "insufficient_data"

    reason: InsufficientReason
    horizon_days: int
    observation_count: int


SafResult = Union[SafSuccess, SafInsufficientData]


def solve_ols_coefficients(
    observations: Sequence[Observation],
) -> Optional[RegressionCoefficients]:
    """
    Least-squares coefficients for speed ~ 1 + t_days + avg_hr.

    Returns:
        RegressionCoefficients, or None if fewer than 3 observations, the
        normal-equations matrix is singular, or any coefficient is not finite.
    """
    if len(observations) < MIN_OBSERVATIONS:
        return None

    xtx = [[0.0, 0.0, 0.0] for _ in range(3)]
    xty = [0.0, 0.0, 0.0]
    for obs in observations:
        x = (1.0, obs.t_days, obs.avg_hr)
        y = obs.speed_m_per_s
        for i in range(3):
            xty[i] += x[i] * y
            for j in range(3):
                xtx[i][j] += x[i] * x[j]

    inv_xtx = invert_3x3(xtx)
    if inv_xtx is None:
        return None

    beta = [sum(inv_xtx[i][j] * xty[j] for j in range(3)) for i in range(3)]
    if not all(math.isfinite(b) for b in beta):
        return None

    return RegressionCoefficients(beta0=beta[0], beta1=beta[1], beta2=beta[2])


def compute_saf(observations: Sequence[Observation], horizon_days: int) -> SafResult:
    """
    Fit the SAF model and classify the outcome.

    Args:
        observations: output of build_observations (any order is accepted;
                      the fit does not depend on row order).
        horizon_days: days over which the trend is expressed. Must be a
                      positive int.

    Returns:
        SafSuccess, or SafInsufficientData carrying the first failed check.

    Raises:
        TypeError: horizon_days is not an int.
        ValueError: horizon_days is not positive.
    """
    if isinstance(horizon_days, bool) or not isinstance(horizon_days, int):
        raise TypeError(
            f"horizon_days must be an int, got {type(horizon_days).__name__}"
        )
    if horizon_days <= 0:
        raise ValueError(f"horizon_days must be positive, got {horizon_days}")

    observation_count = len(observations)

    def insufficient(reason: InsufficientReason) -> SafInsufficientData:
        logger.info(
            "SAF insufficient data (%d observations, %d-day horizon): %s",
            observation_count, horizon_days, reason.value,
        )
        return SafInsufficientData(
            reason=reason,
            horizon_days=horizon_days,
            observation_count=observation_count,
        )

    if observation_count < MIN_OBSERVATIONS:
        return insufficient(InsufficientReason.TOO_FEW_OBSERVATIONS)

    coeffs = solve_ols_coefficients(observations)
    if coeffs is None:
        return insufficient(InsufficientReason.SINGULAR_MATRIX)

    if not math.isfinite(coeffs.beta2) or abs(coeffs.beta2) < MIN_ABS_BETA2:
        return insufficient(InsufficientReason.BETA2_NEAR_ZERO)

    saf_bpm = (coeffs.beta1 * horizon_days) / coeffs.beta2
    if not math.isfinite(saf_bpm):
        return insufficient(InsufficientReason.SAF_NOT_FINITE)

    logger.info(
        "SAF %.2f bpm over %d days from %d observations",
        saf_bpm, horizon_days, observation_count,
    )
    return SafSuccess(
        beta0=coeffs.beta0,
        beta1=coeffs.beta1,
        beta2=coeffs.beta2,
        saf_bpm=saf_bpm,
        horizon_days=horizon_days,
        observation_count=observation_count,
    )


def result_to_dict(result: SafResult) -> Dict[str, Any]:
    """Plain dict of a SafResult, tagged with its kind."""
    data = asdict(result)
    if isinstance(result, SafInsufficientData):
        data["reason"] = result.reason.value
    return {"kind": result.kind, **data}
