"""
Exceptions raised by the policy package.

The evaluator itself never raises for well-formed input. These are raised at
the boundaries (token validation, preset expansion, action lookup) where a
malformed value means a caller or configuration bug.
"""


class PolicyError(Exception):
    """Base class for policy errors."""


class CapabilityValidationError(PolicyError, ValueError):
    """Raised when wire tokens do not map onto the closed capability set."""

    def __init__(self, invalid_tokens: list):
        self.invalid_tokens = invalid_tokens
        rendered = ", ".join(repr(token) for token in invalid_tokens)
        super().__init__(f"Unknown permission token(s): {rendered}")


class UnknownPresetError(PolicyError, LookupError):
    """Raised when a preset name is not in the catalog."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown permission preset: {name!r}")


class UnknownActionError(PolicyError, LookupError):
    """Raised when an action name is not in the action registry."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown action: {name!r}")
