"""
Error types for fixtura registration, resolution, and evaluation.
"""

from dataclasses import dataclass


class FixturaError(Exception):
    """
    Base exception for all fixtura errors.

    ``str(exc)`` is the bare message. Where the error occurred is kept on
    ``exc.context`` and added as a note, so it shows in tracebacks.
    """

    def __init__(self, message: str, context: "ErrorContext | None" = None):
        self.message = message
        self.context = context
        super().__init__(message)
        if context and context.format():
            self.add_note(f"in {context.format()}")


class NotFoundError(FixturaError, KeyError):
    """
    Raised when a name cannot be resolved in the registry.

    Subclasses ``KeyError`` so callers treating the registry as a mapping
    can catch it the usual way.
    """

    # KeyError renders its argument with repr(); keep the plain message.
    __str__ = Exception.__str__

    def __init__(self, name: str, message: str, context: "ErrorContext | None" = None):
        self.name = name
        super().__init__(message, context)


class TraitNotFoundError(NotFoundError):
    """
    Raised when a trait reference cannot be resolved.

    Examples:
    - Static trait applied by a factory that is not registered anywhere
    - Trait passed at call time that the factory cannot see
    - Trait applied by another trait that is out of scope
    - A reference that is neither a string nor a string-valued enum member
    """

    def __init__(self, name: str, context: "ErrorContext | None" = None):
        super().__init__(name, f'Trait not registered: "{name}"', context)


class FactoryNotFoundError(NotFoundError):
    """Raised when a factory name is not registered."""

    def __init__(self, name: str, context: "ErrorContext | None" = None):
        super().__init__(name, f'Factory not registered: "{name}"', context)


class DuplicateDefinitionError(FixturaError):
    """Raised when a factory or trait name is registered twice in the same table."""

    pass


class TraitCycleError(FixturaError):
    """
    Raised when trait inclusion loops back on itself.

    Example: trait ``a`` applies ``b`` and ``b`` applies ``a``.
    """

    def __init__(self, path: list[str], context: "ErrorContext | None" = None):
        self.path = path
        super().__init__(f"Circular trait inclusion: {' -> '.join(path)}", context)


class CycleDetectedError(FixturaError):
    """
    Raised when lazy attribute evaluation revisits an attribute that is
    still being computed in the same evaluation.
    """

    def __init__(self, attribute: str, chain: list[str], context: "ErrorContext | None" = None):
        self.attribute = attribute
        self.chain = chain
        super().__init__(
            f"Cycle detected while evaluating attribute '{attribute}': {' -> '.join(chain)}",
            context,
        )


class UndefinedAttributeError(FixturaError, AttributeError):
    """Raised when an attribute reads a sibling that no layer declares."""

    def __init__(self, attribute: str, context: "ErrorContext | None" = None):
        self.attribute = attribute
        super().__init__(f"Attribute '{attribute}' is not defined", context)


class PersistenceError(FixturaError):
    """Raised when an instance cannot be persisted by the default persistor."""

    pass


class StubbedPersistenceError(FixturaError):
    """Raised when a stubbed instance is asked to touch persistence."""

    pass


class ConfigError(FixturaError):
    """Raised when configuration cannot be loaded or has invalid values."""

    pass


@dataclass
class ErrorContext:
    """
    Where in the definition graph an error occurred.

    Attributes:
        factory: Factory being compiled or evaluated
        trait: Trait being expanded, if any
        attribute: Attribute being evaluated, if any
    """

    factory: str | None = None
    trait: str | None = None
    attribute: str | None = None

    def format(self) -> str:
        """
        Format error context as a short path.

        Returns:
            String like: "factory 'post' > trait 'admin'"
        """
        parts = []
        if self.factory:
            parts.append(f"factory '{self.factory}'")
        if self.trait:
            parts.append(f"trait '{self.trait}'")
        if self.attribute:
            parts.append(f"attribute '{self.attribute}'")
        return " > ".join(parts)


def make_trait_not_found(
    name: str,
    factory: str | None = None,
    referenced_by: str | None = None,
) -> TraitNotFoundError:
    """
    Helper to create a TraitNotFoundError with optional context.

    Args:
        name: The unresolved trait name
        factory: Factory whose scope was searched
        referenced_by: Trait that applied the missing trait, if nested

    Returns:
        TraitNotFoundError with context if any location was provided
    """
    if factory or referenced_by:
        return TraitNotFoundError(name, ErrorContext(factory=factory, trait=referenced_by))
    return TraitNotFoundError(name)
