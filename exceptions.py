"""Exception types raised by the car-sales pipeline.

Domain-invalid values (negative mileage, out-of-range rating, future
year) are not errors: the cleaner turns them into missing values and the
auditor counts them.
"""


class PipelineError(Exception):
    """Base class for fatal pipeline conditions."""


class ConfigError(PipelineError, ValueError):
    """Pipeline configuration is inconsistent."""


class MalformedInputError(PipelineError, ValueError):
    """A required column is absent or a value cannot be parsed."""

    def __init__(self, message: str, column: str | None = None):
        super().__init__(message)
        self.column = column


class EmptyInputError(PipelineError, ValueError):
    """The input table has no records."""


class ImputationUnresolvedError(PipelineError, ValueError):
    """No group or global mean exists for a field (100% missing)."""

    def __init__(self, field: str):
        super().__init__(
            f"Cannot impute '{field}': no valid values to compute a global mean"
        )
        self.field = field


class RowCountMismatchError(PipelineError):
    """A stage added or dropped records."""
