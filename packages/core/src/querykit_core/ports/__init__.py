from .queryable import IQueryable, OrderKey

__all__ = ["IQueryable", "OrderKey"]
