"""
Exception hierarchy for PyReplicate.

All exceptions inherit from PyReplicateError to allow catching any
library-specific error. Domain-specific exceptions should inherit from
the appropriate base class here.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""


class PyReplicateError(Exception):
    """Base exception for all PyReplicate errors."""
    pass


class ValidationError(PyReplicateError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when array shapes don't match expected dimensions or
    when multiple arrays have inconsistent shapes.
    """
    pass


class EmptyInputError(ValidationError):
    """
    Data source has no observations.

    Raised before any iteration runs, so no result slot is ever written
    for an empty data source.
    """
    pass


class StatisticError(ValidationError):
    """
    Statistic output failed the call-boundary check.

    Raised when a statistic returns something that is not a numeric
    scalar or 1D array, or whose shape differs from earlier calls.

    Attributes:
        statistic_name: Name of the offending statistic
        expected_shape: Shape established by the first evaluation, if any
        actual_shape: Shape of the offending output, if it had one
    """

    def __init__(
        self,
        message: str,
        statistic_name: str | None = None,
        expected_shape: tuple[int, ...] | None = None,
        actual_shape: tuple[int, ...] | None = None,
    ):
        super().__init__(message)
        self.statistic_name = statistic_name
        self.expected_shape = expected_shape
        self.actual_shape = actual_shape


class SlotWriteError(PyReplicateError):
    """
    Result collection invariant violated.

    Raised on a second write to the same slot, a write outside the
    collection, or a read of a collection with unwritten slots.

    Attributes:
        index: Offending slot index, if a single slot is involved
        length: Length of the collection
    """

    def __init__(
        self,
        message: str,
        index: int | None = None,
        length: int | None = None,
    ):
        super().__init__(message)
        self.index = index
        self.length = length


class NumericalError(PyReplicateError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class SingularMatrixError(NumericalError):
    """
    Matrix is singular or nearly singular.

    Raised when a computation requires invertibility but the matrix
    is singular or numerically rank-deficient, e.g. a regression on a
    resample whose regressor is constant.

    Attributes:
        matrix_name: Name/description of the problematic matrix
        condition_number: Estimated condition number, if available
        rank: Numerical rank, if computed
        expected_rank: Expected rank (typically min(n, p))
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        condition_number: float | None = None,
        rank: int | None = None,
        expected_rank: int | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.condition_number = condition_number
        self.rank = rank
        self.expected_rank = expected_rank
