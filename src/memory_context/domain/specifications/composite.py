"""Composite specification implementations.

Concrete specifications only implement ``is_satisfied_by``; composition
comes from the base class.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict


class BaseSpecification(BaseModel):
    """Base class for concrete specifications."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    def is_satisfied_by(self, entity: Any) -> bool:
        """Check if the entity satisfies this specification."""
        raise NotImplementedError("Subclasses must implement is_satisfied_by")

    def and_(self, other: "BaseSpecification") -> "BaseSpecification":
        """Combine with another specification using AND logic."""
        return AndSpecification(left=self, right=other)

    def or_(self, other: "BaseSpecification") -> "BaseSpecification":
        """Combine with another specification using OR logic."""
        return OrSpecification(left=self, right=other)

    def not_(self) -> "BaseSpecification":
        """Negate this specification."""
        return NotSpecification(spec=self)


class AndSpecification(BaseSpecification):
    """AND specification implementation."""

    type: Literal["and"] = "and"
    left: BaseSpecification
    right: BaseSpecification

    def is_satisfied_by(self, entity: Any) -> bool:
        return self.left.is_satisfied_by(entity) and self.right.is_satisfied_by(entity)


class OrSpecification(BaseSpecification):
    """OR specification implementation."""

    type: Literal["or"] = "or"
    left: BaseSpecification
    right: BaseSpecification

    def is_satisfied_by(self, entity: Any) -> bool:
        return self.left.is_satisfied_by(entity) or self.right.is_satisfied_by(entity)


class NotSpecification(BaseSpecification):
    """NOT specification implementation."""

    type: Literal["not"] = "not"
    spec: BaseSpecification

    def is_satisfied_by(self, entity: Any) -> bool:
        return not self.spec.is_satisfied_by(entity)
