"""
Error taxonomy shared by the AI clients, the workflow controller and the API.

    TutorError
    ├── ValidationError            bad input, raised before any network call
    ├── GradingError               AI path failure
    │   ├── TransportError         network / provider / timeout
    │   │   └── AuthError          credential missing or rejected
    │   └── SchemaError            reply does not fit the expected shape
    ├── SubmissionInProgressError  second submit while one is in flight
    └── NavigationError            view not reachable yet
"""


class TutorError(Exception):
    """Base class for every error this service raises on purpose."""


class ValidationError(TutorError):
    pass


class GradingError(TutorError):
    pass


class TransportError(GradingError):
    pass


class AuthError(TransportError):
    pass


class SchemaError(GradingError):
    pass


class SubmissionInProgressError(TutorError):
    pass


class NavigationError(TutorError):
    pass
