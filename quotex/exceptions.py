"""
quotex exceptions

Expected bad input never raises; it is encoded in ExtractionResult or
MatchDecision. These exceptions cover configuration problems, invalid
decision transitions and failures of the external model collaborators.
"""


class QuotexError(Exception):
    """Base exception for quotex"""
    pass


class ConfigurationError(QuotexError):
    """Raised when configuration cannot be loaded or is invalid"""
    pass


class DecisionTransitionError(QuotexError):
    """Raised when a match decision is moved out of a terminal state"""

    def __init__(self, record_index: int, state: str, message: str = None):
        self.record_index = record_index
        self.state = state
        super().__init__(
            message or f"Decision for record {record_index} is already final ({state})"
        )


class VisionModelError(QuotexError):
    """Raised by vision model clients when the model call fails"""
    pass


class SemanticMatchError(QuotexError):
    """Raised by semantic matchers when equivalence cannot be evaluated"""
    pass
