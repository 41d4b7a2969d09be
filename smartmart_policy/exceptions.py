"""
Custom exceptions for SMARTMART_POLICY.

The evaluator itself never raises: these exceptions are used by the
supporting layers (path parsing, configuration) and converted to a Deny
decision at the evaluation boundary.
"""

from typing import Any, Dict, Optional


class PolicyError(RuntimeError):
    """
    Base exception for policy errors.

    Attributes:
        message: Error message
        context: Optional dictionary with additional context (path,
                 collection, action, etc.)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            context: Optional dictionary with additional context information
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class ResourcePathError(PolicyError):
    """
    Raised when a resource path cannot be parsed.

    Attributes:
        message: Error message
        path: The offending path (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if path is not None:
            context["path"] = path
        super().__init__(message, context=context)
        self.path = path


class UnknownActionError(PolicyError):
    """
    Raised when an action name is not one of the known actions.

    Attributes:
        message: Error message
        action: The unrecognised action value
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        action: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if action is not None:
            context["action"] = action
        super().__init__(message, context=context)
        self.action = action


class ConfigurationError(PolicyError):
    """
    Raised when configuration is invalid or missing.

    Attributes:
        message: Error message
        config_key: Configuration key that caused the error (if available)
        config_value: Configuration value that caused the error (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize the configuration error.

        Args:
            message: Error message
            config_key: Configuration key that caused the error (if available)
            config_value: Configuration value that caused the error (if available)
            context: Additional context information
        """
        context = context or {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = config_value
        super().__init__(message, context=context)
        self.config_key = config_key
        self.config_value = config_value
