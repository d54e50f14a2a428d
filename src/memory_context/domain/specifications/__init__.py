"""Specifications used to filter retrieval candidates."""

from .candidate import (
    BlankTextSpecification,
    EchoSpecification,
    LowSimilaritySpecification,
    SessionWindowSpecification,
)
from .composite import AndSpecification, BaseSpecification, NotSpecification, OrSpecification

__all__ = [
    "AndSpecification",
    "BaseSpecification",
    "BlankTextSpecification",
    "EchoSpecification",
    "LowSimilaritySpecification",
    "NotSpecification",
    "OrSpecification",
    "SessionWindowSpecification",
]
