"""
Record filter language.
"""

from .errors import (
    FilterError,
    FilterSyntaxError,
    InvalidField,
    InvalidLiteral,
    InvalidOperator,
    UnsupportedOperator,
)
from .evaluator import RecordFilter, compile_filter, evaluate
from .fields import FIELD_ALIASES, FIELD_SPECS, lookup_field
from .nodes import And, Comparison, Field, Not, Operator, Or
from .parser import parse_filter

__all__ = [
    'FilterError',
    'FilterSyntaxError',
    'InvalidField',
    'InvalidLiteral',
    'InvalidOperator',
    'UnsupportedOperator',
    'RecordFilter',
    'compile_filter',
    'evaluate',
    'parse_filter',
    'FIELD_ALIASES',
    'FIELD_SPECS',
    'lookup_field',
    'And',
    'Comparison',
    'Field',
    'Not',
    'Operator',
    'Or',
]
