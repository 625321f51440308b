"""
Translate a predicate tree into a SQLAlchemy filter expression.

Uses the strategy pattern: each operator is an isolated class in
``operators/``, registered in a ``SQLAlchemyOperatorRegistry``.
``build_sqla_filter`` walks the tree and delegates leaves to the registry.

Dotted paths traverse relationships: ``customer.name = 'x'`` becomes
``Order.customer.has(Customer.name == 'x')`` and a collection such as
``lines.sku = 'x'`` becomes ``Order.lines.any(Line.sku == 'x')``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import ColumnElement, and_, false, not_, or_, true
from sqlalchemy import inspect as sa_inspect

from querykit_specifications.base import Specification
from querykit_specifications.exceptions import (
    FieldNotFoundError,
    RelationshipTraversalError,
)
from querykit_specifications.predicates import (
    AndPredicate,
    FieldPredicate,
    NotPredicate,
    OrPredicate,
    PredicateNode,
    predicate_from_dict,
)

from .operators import DEFAULT_SQLA_REGISTRY

if TYPE_CHECKING:
    from sqlalchemy.orm import Mapper, RelationshipProperty

    from .strategy import SQLAlchemyOperatorRegistry


def build_sqla_filter(
    model: type[Any],
    predicate: PredicateNode | Specification[Any] | dict[str, Any],
    *,
    registry: SQLAlchemyOperatorRegistry | None = None,
) -> ColumnElement[bool]:
    """
    Build a SQLAlchemy boolean expression from a predicate tree.

    Args:
        model: The mapped model class the predicate is evaluated against.
        predicate: A predicate tree, a specification, or its JSON AST.
        registry: Optional custom operator registry.  Falls back to
            ``DEFAULT_SQLA_REGISTRY``.

    Raises:
        FieldNotFoundError: A path names an attribute the model lacks.
        RelationshipTraversalError: A path traverses a non-relationship.
    """
    if isinstance(predicate, Specification):
        predicate = predicate.predicate
    elif isinstance(predicate, dict):
        predicate = predicate_from_dict(predicate)
    return _compile_node(model, predicate, registry or DEFAULT_SQLA_REGISTRY)


def resolve_column(model: type[Any], attr: str, *, full_path: str | None = None) -> Any:
    """Return the mapped attribute *attr* of *model*, or raise ``FieldNotFoundError``."""
    mapper = _mapper(model)
    if attr not in mapper.all_orm_descriptors:
        raise FieldNotFoundError(
            attr,
            model.__name__,
            sorted(str(k) for k in mapper.all_orm_descriptors.keys()),
            full_path=full_path or attr,
        )
    return getattr(model, attr)


def resolve_relationship(
    model: type[Any],
    name: str,
    *,
    full_path: str,
) -> RelationshipProperty[Any]:
    """Return the relationship *name* of *model*, with a typed error otherwise."""
    mapper = _mapper(model)
    relationship = mapper.relationships.get(name)
    if relationship is not None:
        return relationship
    if name in mapper.all_orm_descriptors:
        raise RelationshipTraversalError(name, model.__name__, full_path)
    raise FieldNotFoundError(
        name,
        model.__name__,
        sorted(str(k) for k in mapper.all_orm_descriptors.keys()),
        full_path=full_path,
    )


def _mapper(model: type[Any]) -> Mapper[Any]:
    return cast("Mapper[Any]", sa_inspect(model))


# ---------------------------------------------------------------------------
# Internal compilation
# ---------------------------------------------------------------------------


def _compile_node(
    model: type[Any],
    node: PredicateNode,
    registry: SQLAlchemyOperatorRegistry,
) -> ColumnElement[bool]:
    if isinstance(node, FieldPredicate):
        return _compile_leaf(model, node.attr, node, registry, full_path=node.attr)

    if isinstance(node, AndPredicate):
        if not node.operands:
            return true()
        return and_(*(_compile_node(model, c, registry) for c in node.operands))

    if isinstance(node, OrPredicate):
        if not node.operands:
            return false()
        return or_(*(_compile_node(model, c, registry) for c in node.operands))

    if isinstance(node, NotPredicate):
        return not_(_compile_node(model, node.operand, registry))

    raise TypeError(f"Unsupported predicate node: {type(node).__name__}")


def _compile_leaf(
    model: type[Any],
    path: str,
    node: FieldPredicate,
    registry: SQLAlchemyOperatorRegistry,
    *,
    full_path: str,
) -> ColumnElement[bool]:
    if "." not in path:
        column = resolve_column(model, path, full_path=full_path)
        return registry.apply(node.operator, column, node.value)

    rel_name, nested = path.split(".", 1)
    relationship = resolve_relationship(model, rel_name, full_path=full_path)
    target = relationship.mapper.class_
    inner = _compile_leaf(target, nested, node, registry, full_path=full_path)

    rel_attr = getattr(model, rel_name)
    if relationship.uselist:
        return cast("ColumnElement[bool]", rel_attr.any(inner))
    return cast("ColumnElement[bool]", rel_attr.has(inner))
