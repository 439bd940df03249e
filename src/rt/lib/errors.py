"""Custom exception hierarchy for RT configuration, state and records."""


class RTError(Exception):
    """Base exception for all RT errors.

    All RT-specific exceptions inherit from this class, enabling
    centralized exception handling in the CLI.
    """

    pass


class ConfigError(RTError):
    """Exception raised for configuration errors.

    Attributes:
        field: The configuration field or block that caused the error
        message: Human-readable error message describing the issue
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize ConfigError with field and message.

        Args:
            field: Configuration field name where error occurred
            message: Descriptive error message
        """
        self.field = field
        self.message = message
        super().__init__(message)


class ConfigFileError(ConfigError):
    """Exception raised when a configuration file cannot be opened.

    The underlying OS error is surfaced verbatim.

    Attributes:
        path: Path of the file RT tried to open
    """

    def __init__(self, path: str, message: str) -> None:
        """Create a file error for the given path."""
        self.path = path
        super().__init__("path", message)


class ConfigLoadError(ConfigError):
    """Exception raised when a configuration document fails to load.

    The message is always decorated with the file path. ``stage`` tells
    apart failures raised while rendering the template (``template``),
    while decoding HCL (``decode``) and while interpreting the decoded
    blocks (``structure``).

    Attributes:
        path: Path of the configuration document
        stage: Pipeline stage that failed
        reason: Undecorated failure description
    """

    def __init__(self, path: str, stage: str, reason: str) -> None:
        """Create a load error for the given path and stage."""
        self.path = path
        self.stage = stage
        self.reason = reason
        super().__init__(stage, f'Failed to load config from "{path}": {reason}')


class BlockError(RTError):
    """Exception raised for a malformed or unsupported configuration block.

    Raised while parsing the decoded document; the loader re-raises it as
    ConfigLoadError with the file path attached.
    """

    def __init__(self, block: str, message: str) -> None:
        """Create a block error."""
        self.block = block
        self.message = message
        super().__init__(message)


class BackendError(RTError):
    """Exception raised for deployment-state backend failures."""

    def __init__(self, message: str) -> None:
        """Create a backend error."""
        self.message = message
        super().__init__(message)


class AppNotFound(BackendError):
    """Raised when a backend holds no data for an application."""

    def __init__(self, app_name: str) -> None:
        """Create a not-found error for an application."""
        self.app_name = app_name
        super().__init__(f'Application "{app_name}" was not found.')


class SlotNotFound(BackendError):
    """Raised when a backend holds no data for a slot."""

    def __init__(self, slot_name: str) -> None:
        """Create a not-found error for a slot."""
        self.slot_name = slot_name
        super().__init__(f'Slot "{slot_name}" was not found.')


class DeploymentNotFound(BackendError):
    """Raised when a backend holds no data for a deployment."""

    def __init__(self, deployment_id: str) -> None:
        """Create a not-found error for a deployment."""
        self.deployment_id = deployment_id
        super().__init__(f'Deployment "{deployment_id}" was not found.')


class RecordError(RTError):
    """Exception raised when a metadata record cannot be (de)serialized.

    Attributes:
        kind: Record kind ("application", "slot" or "deployment")
        message: Human-readable error message
    """

    def __init__(self, kind: str, message: str) -> None:
        """Create a record error for a record kind."""
        self.kind = kind
        self.message = message
        super().__init__(message)


class RecordDecodeError(RecordError):
    """Raised when record bytes are not a valid document."""

    pass


class SchemaVersionError(RecordError):
    """Raised when a record was written by a newer RT release."""

    def __init__(self, kind: str, version: int) -> None:
        """Create an error for an unsupported (newer) schema version."""
        self.version = version
        super().__init__(
            kind,
            f"Failed to process {kind} data (schema v{version}). "
            "Please upgrade RT.",
        )


class MissingMigrationError(RecordError):
    """Raised when no migration exists for an older schema version."""

    def __init__(self, kind: str, version: int) -> None:
        """Create an error for a missing migration step."""
        self.version = version
        super().__init__(kind, f"No migrations available for {kind} schema v{version}")


class MigrationError(RecordError):
    """Raised when a migration step fails."""

    def __init__(self, kind: str, version: int, reason: str) -> None:
        """Create an error for a failed migration step."""
        self.version = version
        super().__init__(
            kind,
            f"{kind.capitalize()} schema migration from v{version} "
            f"to v{version + 1} failed: {reason}",
        )


class InvalidParameterError(RTError, ValueError):
    """Exception raised when an identifier fails validation.

    Also a ValueError so validators can back pydantic and click callbacks.

    Attributes:
        name: Parameter name being validated
        message: Rule-specific description of the failure
    """

    def __init__(self, name: str, message: str) -> None:
        """Create a validation error for a parameter."""
        self.name = name
        self.message = message
        super().__init__(message)


class StateError(RTError):
    """Exception raised for invalid deployment-state operations."""

    def __init__(self, message: str) -> None:
        """Create a state error."""
        self.message = message
        super().__init__(message)
