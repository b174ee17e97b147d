"""
Face descriptor value type

A descriptor is a 1-D float64 numpy array of fixed length D produced by
the upstream embedding model. Every descriptor entering the store or a
comparison goes through as_descriptor() first.
"""
from typing import Optional, Sequence, Union

import numpy as np

from faceauth.exceptions import DimensionMismatch, InvalidInput

DescriptorLike = Union[np.ndarray, Sequence[float]]


def as_descriptor(values: Optional[DescriptorLike], dim: Optional[int] = None) -> np.ndarray:
    """
    Validate and convert raw values into a descriptor.

    Args:
        values: Sequence of real numbers (list, tuple or numpy array)
        dim: Expected length, if known

    Returns:
        Read-only float64 numpy array

    Raises:
        InvalidInput: If values are missing, not numeric, not 1-D, empty
            or contain non-finite components
        DimensionMismatch: If dim is given and the length differs
    """
    if values is None:
        raise InvalidInput("Descriptor is missing")

    try:
        descriptor = np.array(values, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"Descriptor must contain only numbers: {e}")

    if descriptor.ndim != 1:
        raise InvalidInput(f"Descriptor must be one-dimensional, got shape {descriptor.shape}")

    if descriptor.size == 0:
        raise InvalidInput("Descriptor is empty")

    if not np.all(np.isfinite(descriptor)):
        raise InvalidInput("Descriptor contains non-finite values")

    if dim is not None and descriptor.size != dim:
        raise DimensionMismatch(
            f"Descriptor has length {descriptor.size}, expected {dim}",
            details={"expected": dim, "actual": int(descriptor.size)}
        )

    descriptor.setflags(write=False)
    return descriptor


def distance(a: np.ndarray, b: np.ndarray) -> float:
    """Euclidean (L2) distance between two descriptors of equal length."""
    if a.shape != b.shape:
        raise DimensionMismatch(
            f"Cannot compare descriptors of length {a.size} and {b.size}",
            details={"left": int(a.size), "right": int(b.size)}
        )
    return float(np.linalg.norm(a - b))
