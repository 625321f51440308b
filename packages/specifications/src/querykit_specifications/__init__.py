from .base import Specification
from .builder import SpecificationBuilder
from .compiler import compile_predicate
from .cursor import DEFAULT_MAX_CURSOR_LENGTH, CursorCodec, keyset_cursor_type
from .evaluator import SpecificationEvaluator
from .exceptions import (
    ConflictingPaginationError,
    CursorError,
    CursorPayloadMismatchError,
    FieldNotFoundError,
    InvalidPageSizeError,
    KeysetCursorError,
    KeysetOrderMismatchError,
    MalformedCursorError,
    MissingPrimaryOrderError,
    NonDeterministicOrderError,
    OperatorNotFoundError,
    RelationshipTraversalError,
    SpecificationContractError,
    SpecificationError,
    ValidationError,
)
from .fields import resolve_field
from .keyset import keyset_boundary
from .memory import InMemoryQueryable
from .operators import SpecificationOperator
from .operators_memory import (
    FunctionOperator,
    MemoryOperator,
    MemoryOperatorRegistry,
    build_default_registry,
)
from .pagination import (
    CursorItem,
    CursorPage,
    KeysetPaginator,
    PagedResult,
    PageInfo,
)
from .predicates import (
    AndPredicate,
    FieldPredicate,
    NotPredicate,
    OrPredicate,
    PredicateNode,
    and_all,
    field,
    iter_leaves,
    predicate_from_dict,
    predicate_from_json,
    validate_predicate_dict,
)
from .query import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    KeysetPaging,
    NoPaging,
    OffsetPaging,
    QuerySpecification,
    QuerySpecificationBuilder,
)

__all__ = [
    # Predicate trees
    "SpecificationOperator",
    "PredicateNode",
    "FieldPredicate",
    "AndPredicate",
    "OrPredicate",
    "NotPredicate",
    "field",
    "and_all",
    "iter_leaves",
    "predicate_from_dict",
    "predicate_from_json",
    "validate_predicate_dict",
    # Specifications
    "Specification",
    "SpecificationBuilder",
    "QuerySpecification",
    "QuerySpecificationBuilder",
    "NoPaging",
    "OffsetPaging",
    "KeysetPaging",
    # Evaluation
    "SpecificationEvaluator",
    "InMemoryQueryable",
    "compile_predicate",
    "resolve_field",
    "MemoryOperator",
    "MemoryOperatorRegistry",
    "FunctionOperator",
    "build_default_registry",
    # Pagination
    "CursorCodec",
    "keyset_cursor_type",
    "KeysetPaginator",
    "keyset_boundary",
    "CursorItem",
    "CursorPage",
    "PageInfo",
    "PagedResult",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "DEFAULT_MAX_CURSOR_LENGTH",
    # Exceptions
    "SpecificationError",
    "ValidationError",
    "OperatorNotFoundError",
    "FieldNotFoundError",
    "RelationshipTraversalError",
    "SpecificationContractError",
    "ConflictingPaginationError",
    "MissingPrimaryOrderError",
    "InvalidPageSizeError",
    "KeysetOrderMismatchError",
    "KeysetCursorError",
    "NonDeterministicOrderError",
    "CursorError",
    "MalformedCursorError",
    "CursorPayloadMismatchError",
]
