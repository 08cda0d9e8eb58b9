from .validator import compare, validate, values_equal
from .errors import check_error_response, describe_error, error_field

__all__ = [
    "compare", "validate", "values_equal",
    "check_error_response", "describe_error", "error_field",
]
