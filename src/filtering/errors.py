"""Errors raised while compiling a filter expression.

All of them are recoverable: the caller keeps whatever filter it had before
and shows ``message`` to the operator.
"""


class FilterError(ValueError):
    """Base class for filter compilation failures."""

    message = "invalid filter"

    def __str__(self) -> str:
        return self.message


class FilterSyntaxError(FilterError):
    """Structurally malformed expression (parentheses, trailing text, empty)."""

    def __init__(self, message: str = "invalid filter", position: int = 0):
        super().__init__(message, position)
        self.message = message
        self.position = position


class InvalidLiteral(FilterError):
    def __init__(self, text: str):
        super().__init__(text)
        self.text = text
        self.message = f'cannot filter with value "{text}" here'


class InvalidField(FilterError):
    def __init__(self, text: str):
        super().__init__(text)
        self.text = text
        self.message = f'no field named "{text}"'


class InvalidOperator(FilterError):
    def __init__(self, text: str):
        super().__init__(text)
        self.text = text
        self.message = f'"{text}" is not a valid operator'


class UnsupportedOperator(FilterError):
    def __init__(self, field: str, operator: str):
        super().__init__(field, operator)
        self.field = field
        self.operator = operator
        self.message = f'operator "{operator}" cannot be used on field "{field}"'
