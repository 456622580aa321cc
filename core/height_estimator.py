# =============================================================================
# EVMOS UPGRADE HELPER - BLOCK HEIGHT ESTIMATOR
# =============================================================================
#
# Predicts the block height that will be reached at a target time.
#
# ALGORITHM (explicit policy):
# The basis block time is the plain average seconds-per-block between the
# FIRST and LAST point of the sample:
#
#     basis = (t_last - t_first) / (h_last - h_first)
#
# This is not a regression and does not weight or filter outliers. Points
# between the endpoints do not affect the result.
#
# ROUNDING:
# All rounding is half-up (ties away from zero for the positive values
# used here). Python's round() rounds half to even, so Decimal is used.
# Blocks ahead are computed as an exact Fraction of whole microseconds:
#
#     blocks_ahead = seconds_ahead * (h_last - h_first) / (t_last - t_first)
#
# The float basis is only reported, never used for the prediction.
#
# Pure function, no I/O.
#
# =============================================================================

import math
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from fractions import Fraction

from models.data_models import BlockSample, HeightEstimate
from shared.exceptions import (
    InsufficientDataError,
    NonPositiveBlockTimeError,
    TargetInPastError,
)


def round_half_up(value) -> int:
    """Round a number to the nearest integer, ties rounding up."""
    if isinstance(value, Fraction):
        return math.floor(value + Fraction(1, 2))
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def round_to_unit(value: int, unit: int) -> int:
    """Round value to the nearest multiple of unit, ties rounding up."""
    quotient = (Decimal(value) / Decimal(unit)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(quotient) * unit


def _microseconds(delta: timedelta) -> int:
    return delta // timedelta(microseconds=1)


def basis_block_time(sample: BlockSample) -> float:
    """
    Average seconds per block across the sample.

    Raises:
        InsufficientDataError: If the sample has fewer than 2 points
        NonPositiveBlockTimeError: If the average is <= 0
    """
    if len(sample) < 2:
        raise InsufficientDataError(len(sample))

    elapsed = (sample.last.timestamp - sample.first.timestamp).total_seconds()
    blocks = sample.last.height - sample.first.height
    block_time = elapsed / blocks

    if block_time <= 0:
        raise NonPositiveBlockTimeError(block_time)

    return block_time


def estimate(sample: BlockSample, target_time: datetime, rounding_unit: int) -> HeightEstimate:
    """
    Estimate the block height at target_time.

    Args:
        sample: Recent blocks, ascending by height
        target_time: Time the height should be predicted for
        rounding_unit: Granularity of rounded_height (e.g. 500)

    Returns:
        HeightEstimate with the raw and rounded prediction

    Raises:
        ValueError: If rounding_unit is not a positive integer
        InsufficientDataError: If the sample has fewer than 2 points
        NonPositiveBlockTimeError: If the sample implies a block time <= 0
        TargetInPastError: If target_time is before the latest sampled block
    """
    if isinstance(rounding_unit, bool) or not isinstance(rounding_unit, int) or rounding_unit <= 0:
        raise ValueError(f"rounding_unit must be a positive integer, got {rounding_unit!r}")

    block_time = basis_block_time(sample)

    latest = sample.last
    seconds_ahead = (target_time - latest.timestamp).total_seconds()
    if seconds_ahead < 0:
        raise TargetInPastError(target_time, latest.timestamp)

    elapsed_us = _microseconds(latest.timestamp - sample.first.timestamp)
    ahead_us = _microseconds(target_time - latest.timestamp)
    blocks = latest.height - sample.first.height
    blocks_ahead = round_half_up(Fraction(ahead_us * blocks, elapsed_us))
    predicted = latest.height + blocks_ahead

    return HeightEstimate(
        predicted_height=predicted,
        rounded_height=round_to_unit(predicted, rounding_unit),
        basis_block_time_seconds=block_time,
    )
