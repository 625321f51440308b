from enum import Enum


class SpecificationOperator(str, Enum):
    """Supported operators for predicate trees."""

    # Standard comparison
    EQ = "="
    NE = "!="
    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="

    # Set membership / ranges
    IN = "in"
    NOT_IN = "not_in"
    BETWEEN = "between"

    # String operations
    LIKE = "like"
    ILIKE = "ilike"
    CONTAINS = "contains"
    ICONTAINS = "icontains"
    STARTSWITH = "startswith"
    ENDSWITH = "endswith"
    REGEX = "regex"

    # Null checks
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"

    # Logical operators
    AND = "and"
    OR = "or"
    NOT = "not"


LOGICAL_OPERATORS: frozenset[SpecificationOperator] = frozenset(
    {SpecificationOperator.AND, SpecificationOperator.OR, SpecificationOperator.NOT}
)

# Operators whose condition value is a collection rather than a scalar.
SEQUENCE_OPERATORS: frozenset[SpecificationOperator] = frozenset(
    {
        SpecificationOperator.IN,
        SpecificationOperator.NOT_IN,
        SpecificationOperator.BETWEEN,
    }
)
