"""
Matrix helpers for the Banker's Algorithm & Deadlock Detection Simulator.

Provides deep copying of two-dimensional matrices, shape validation of the
engine inputs and conversion to numpy integer arrays.
"""

import numpy as np
from typing import Any, List, Sequence


class MatrixShapeError(ValueError):
    """Exception raised when a matrix or vector has an inconsistent shape or invalid entries."""
    pass


def deep_copy_matrix(matrix: Sequence[Sequence[Any]]) -> List[list]:
    """
    Create a deep copy of a two-dimensional matrix.

    The copy shares no storage with the input at either dimension, so
    mutating a row (or an element) of the copy never affects the original.

    Args:
        matrix: Any two-dimensional sequence (list of lists, numpy array, ...)

    Returns:
        New list of lists with the same values

    Example:
        >>> original = [[1, 2], [3, 4]]
        >>> copy = deep_copy_matrix(original)
        >>> copy[0][0] = 5
        >>> original[0][0]
        1
    """
    return [list(row) for row in matrix]


# Largest count the engines can store in their numpy int arrays
MAX_COUNT = int(np.iinfo(int).max)


def is_count(value: Any, bounded: bool = True) -> bool:
    """
    Check that value is a non-negative integer (bools are rejected).

    With bounded=True the value must also fit in a numpy int entry.
    """
    if isinstance(value, (bool, np.bool_)):
        return False
    if not isinstance(value, (int, np.integer)) or value < 0:
        return False
    return not bounded or value <= MAX_COUNT


def validate_vector(
    values: Sequence[Any],
    name: str,
    length: int = None,
    bounded: bool = True
) -> None:
    """
    Validate a resource vector.

    Args:
        values: Vector to validate
        name: Name used in error messages (e.g. "available")
        length: Expected length, or None to accept any length
        bounded: Also reject entries too large for a numpy int array

    Raises:
        MatrixShapeError: If the length is wrong or an entry is not a non-negative integer
    """
    if length is not None and len(values) != length:
        raise MatrixShapeError(
            f"{name}: expected {length} entries, got {len(values)}"
        )

    limit = f" up to {MAX_COUNT}" if bounded else ""
    for j, value in enumerate(values):
        if not is_count(value, bounded):
            raise MatrixShapeError(
                f"{name}[{j}]: expected a non-negative integer{limit}, got {value!r}"
            )


def validate_matrix(
    rows: Sequence[Sequence[Any]],
    num_rows: int,
    num_cols: int,
    name: str
) -> None:
    """
    Validate an N×M matrix.

    Args:
        rows: Matrix to validate
        num_rows: Expected number of rows (processes)
        num_cols: Expected number of columns (resource types)
        name: Name used in error messages (e.g. "allocation")

    Raises:
        MatrixShapeError: If the row count or any row length is wrong, or an
            entry is not a non-negative integer
    """
    if len(rows) != num_rows:
        raise MatrixShapeError(
            f"{name}: expected {num_rows} rows, got {len(rows)}"
        )

    for i, row in enumerate(rows):
        if len(row) != num_cols:
            raise MatrixShapeError(
                f"{name}[{i}]: expected {num_cols} columns, got {len(row)}"
            )
        for j, value in enumerate(row):
            if not is_count(value):
                raise MatrixShapeError(
                    f"{name}[{i}][{j}]: expected a non-negative integer up to {MAX_COUNT}, got {value!r}"
                )


def to_vector(values: Sequence[int]) -> np.ndarray:
    """Convert a validated vector to a numpy integer array."""
    return np.array(list(values), dtype=int)


def to_matrix(rows: Sequence[Sequence[int]], num_cols: int) -> np.ndarray:
    """
    Convert a validated matrix to a numpy integer array of shape (N, M).

    The explicit reshape keeps the column count when there are no rows.
    """
    return np.array(deep_copy_matrix(rows), dtype=int).reshape(len(rows), num_cols)
