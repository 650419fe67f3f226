"""Call-site classification and declaration metadata extraction."""

from .metadata import (
    DeclaredQuery,
    DeclaredTemplate,
    DeclaredValidator,
    LocalDeclarations,
    NameRef,
    StringRef,
    extract_declarations,
)
from .shapes import (
    CallShape,
    EntityCreation,
    QueryDeclaration,
    SequentialAttach,
    TemplateRegistration,
    ValidatorRegistration,
    classify_call,
)

__all__ = [
    "DeclaredQuery",
    "DeclaredTemplate",
    "DeclaredValidator",
    "LocalDeclarations",
    "NameRef",
    "StringRef",
    "extract_declarations",
    "CallShape",
    "EntityCreation",
    "QueryDeclaration",
    "SequentialAttach",
    "TemplateRegistration",
    "ValidatorRegistration",
    "classify_call",
]
