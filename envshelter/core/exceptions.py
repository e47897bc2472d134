"""envshelter exception hierarchy.

Configuration and lookup errors propagate to the caller that configured
the system. Soft fallbacks (an unknown mode at apply time, a value too
short for partial masking) are never raised; they are logged instead.
"""

from typing import Any, Dict, List, Optional, Sequence


class ShelterError(Exception):
    """Base exception for all envshelter errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error identifier
        context: Additional error context and metadata
        recovery_suggestions: List of suggested recovery actions
        component: Component where the error originated
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        recovery_suggestions: Optional[List[str]] = None,
        component: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self._default_error_code()
        self.context = context or {}
        self.recovery_suggestions = recovery_suggestions or []
        self.component = component or self._infer_component()

    def _default_error_code(self) -> str:
        """Generate default error code based on exception class name."""
        return self.__class__.__name__.upper().replace("ERROR", "_ERROR")

    def _infer_component(self) -> str:
        """Infer component name from exception class."""
        name = self.__class__.__name__.lower()
        if "parse" in name:
            return "parser"
        elif "strategy" in name or "option" in name:
            return "strategies"
        elif "configuration" in name:
            return "config"
        else:
            return "core"

    def add_context(self, key: str, value: Any) -> None:
        """Add additional context to the error."""
        self.context[key] = value

    def add_recovery_suggestion(self, suggestion: str) -> None:
        """Add a recovery suggestion to help users resolve the error."""
        if suggestion not in self.recovery_suggestions:
            self.recovery_suggestions.append(suggestion)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to structured dictionary for logging/reporting."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "component": self.component,
            "context": self.context,
            "recovery_suggestions": self.recovery_suggestions,
        }


class ConfigurationError(ShelterError):
    """Raised when configuration is invalid or incomplete."""

    def __init__(
        self,
        message: str,
        config_file: Optional[str] = None,
        config_section: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        if config_file:
            self.add_context("config_file", config_file)
        if config_section:
            self.add_context("config_section", config_section)


class OptionValidationError(ConfigurationError):
    """Raised when a strategy option violates its schema.

    The message always names the offending option and the constraint it
    violated, e.g. ``Option 'show_start' must be >= 0``.
    """

    def __init__(
        self,
        message: str,
        mode: Optional[str] = None,
        option: Optional[str] = None,
        constraint: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(message, config_section="modes", **kwargs)
        self.mode = mode
        self.option = option
        self.constraint = constraint
        if mode:
            self.add_context("mode", mode)
        if option:
            self.add_context("option", option)
        if constraint:
            self.add_context("constraint", constraint)


class StrategyDefinitionError(ShelterError):
    """Raised when a custom strategy definition is malformed."""

    def __init__(self, message: str, mode: Optional[str] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.mode = mode
        if mode:
            self.add_context("mode", mode)


class StrategyNotFoundError(ShelterError):
    """Raised when a strategy name is not registered."""

    def __init__(
        self,
        message: str,
        mode: Optional[str] = None,
        available: Optional[Sequence[str]] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.mode = mode
        self.available = list(available or [])
        if mode:
            self.add_context("mode", mode)
        self.add_context("available", self.available)
        if self.available:
            self.add_recovery_suggestion(
                f"Use one of the registered modes: {', '.join(self.available)}"
            )


class ParseError(ShelterError):
    """Raised by a parser when EDF content cannot be parsed."""

    def __init__(
        self,
        message: str,
        line_number: Optional[int] = None,
        source: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.line_number = line_number
        if line_number is not None:
            self.add_context("line_number", line_number)
        if source:
            self.add_context("source", source)


def create_option_error(
    mode: str, option: str, constraint: str
) -> OptionValidationError:
    """Create an option validation error with standard wording."""
    error = OptionValidationError(
        f"Invalid options for mode '{mode}': Option '{option}' {constraint}",
        mode=mode,
        option=option,
        constraint=constraint,
    )
    error.add_recovery_suggestion(f"Check the '{option}' entry of the '{mode}' mode")
    return error
