"""
Exception classes for deployment orchestration.

Every error raised by deployctl derives from DeployctlError and carries a
``tag`` naming its category, so callers can branch on the failure without
parsing messages:

- Validation: MissingAPIError, InvalidDeploymentIdError, EmptyRefIdError,
  UnsupportedKindError, InvalidTransientError, MixedStrategiesError,
  TopologyUnsatisfiableError, TemplateKindMissingError, ParameterError
- Remote: RemoteError (server error body preserved verbatim)
- Discovery: TemplateUnavailableError, VersionDiscoveryError,
  NoLatestAttemptError
- Precondition: NotStoppedError
- Tracking: UnsupportedTrackingError, TrackTimeoutError, TrackCancelledError,
  PlanFailedError, TrackingError

Per project patterns:
- Store context data in attributes for error handling
- Include descriptive message with relevant details
- Aggregate parameter faults with MultiError instead of failing on the first
"""

from typing import Any, Iterable


class DeployctlError(Exception):
    """Base class for all deployctl errors."""

    tag: str = "Error"


# =============================================================================
# Composite
# =============================================================================


class MultiError(DeployctlError):
    """
    Aggregate of several errors.

    Nested MultiErrors are flattened on construction, so ``errors`` is always
    a flat list of leaf errors.

    Attributes:
        errors: The aggregated errors, in the order they were appended.
        prefix: Optional context prepended to the rendered message.

    Example:
        merr = MultiError()
        merr.append(EmptyRefIdError())
        merr.append(InvalidDeploymentIdError("abc"))
        merr.raise_if_any()
    """

    tag = "MultiError"

    def __init__(self, errors: Iterable[Exception] = (), prefix: str = "") -> None:
        self.prefix = prefix
        self.errors: list[Exception] = []
        for err in errors:
            self.append(err)
        super().__init__(str(self))

    def append(self, err: Exception | None) -> "MultiError":
        """Append an error, flattening composites and ignoring None."""
        if err is None:
            return self
        if isinstance(err, MultiError):
            self.errors.extend(err.errors)
        else:
            self.errors.append(err)
        self.args = (str(self),)
        return self

    def __len__(self) -> int:
        return len(self.errors)

    def __str__(self) -> str:
        if not self.errors:
            return f"{self.prefix}: no errors" if self.prefix else "no errors"
        head = f"{self.prefix}: " if self.prefix else ""
        noun = "error" if len(self.errors) == 1 else "errors"
        lines = "\n".join(f"\t* {err}" for err in self.errors)
        return f"{head}{len(self.errors)} {noun} occurred:\n{lines}"

    def error_or_none(self) -> "MultiError | None":
        """Return self when any error was appended, None otherwise."""
        return self if self.errors else None

    def raise_if_any(self) -> None:
        """Raise self when any error was appended."""
        if self.errors:
            raise self


# =============================================================================
# Validation
# =============================================================================


class ParameterError(DeployctlError):
    """Raised for a parameter fault without a more specific tag."""

    tag = "Validation"


class MissingAPIError(DeployctlError):
    """Raised when an operation is invoked without an API client."""

    tag = "MissingAPI"

    def __init__(self) -> None:
        super().__init__("api reference is required for command")


class InvalidDeploymentIdError(DeployctlError):
    """
    Raised when a deployment or resource id is not 32 characters long.

    Attributes:
        deployment_id: The rejected identifier.
    """

    tag = "InvalidDeploymentId"

    def __init__(self, deployment_id: str) -> None:
        self.deployment_id = deployment_id
        super().__init__(f'id "{deployment_id}" is invalid')


class EmptyRefIdError(DeployctlError):
    """Raised when a resource ref id is required but empty."""

    tag = "EmptyRefId"

    def __init__(self) -> None:
        super().__init__("deployment resource ref id cannot be empty")


class UnsupportedKindError(DeployctlError):
    """
    Raised when a resource kind is unknown or not valid for an operation.

    Attributes:
        kind: The rejected kind.
        operation: The operation which rejected it (empty for unknown kinds).
    """

    tag = "UnsupportedKind"

    def __init__(self, kind: str, operation: str = "") -> None:
        self.kind = kind
        self.operation = operation
        if operation:
            message = f'deployment resource type "{kind}" is not supported for {operation}'
        else:
            message = (
                f'"{kind}" is not a valid resource type. Accepted resource types are: '
                "[elasticsearch kibana apm appsearch]"
            )
        super().__init__(message)


class InvalidTransientError(DeployctlError):
    """Raised when transient overrides could lead to data loss."""

    tag = "InvalidTransient"

    def __init__(self) -> None:
        super().__init__("current transient settings could lead to data loss")


class MixedStrategiesError(DeployctlError):
    """Raised when more than one plan change strategy is selected."""

    tag = "MixedStrategies"

    def __init__(self) -> None:
        super().__init__("cannot specify multi strategies")


class TopologyUnsatisfiableError(DeployctlError):
    """
    Raised when no template topology element matches the requested names.

    Attributes:
        requested: The requested topology elements.
        template_id: Deployment template the topology was taken from.
    """

    tag = "TopologyUnsatisfiable"

    def __init__(self, requested: list[Any], template_id: str) -> None:
        self.requested = requested
        self.template_id = template_id
        super().__init__(
            f"deployment topology: failed to obtain desired topology names "
            f"({requested}) in deployment template id \"{template_id}\""
        )


class TemplateKindMissingError(DeployctlError):
    """
    Raised when a deployment template has no block for a resource kind.

    Attributes:
        kind: The resource kind.
        template_id: Deployment template which lacks the kind.
    """

    tag = "TemplateKindMissing"

    def __init__(self, kind: str, template_id: str) -> None:
        self.kind = kind
        self.template_id = template_id
        super().__init__(
            f"deployment: the {template_id} template is not configured for {kind}. "
            f"Please use another template if you wish to start {kind} instances"
        )


# =============================================================================
# Remote
# =============================================================================


class RemoteError(DeployctlError):
    """
    Raised when the control-plane API answers with a non-2xx status.

    Attributes:
        status: HTTP status code.
        body: Server error body, decoded JSON when possible, raw text otherwise.
    """

    tag = "RemoteError"

    def __init__(self, status: int, body: Any) -> None:
        self.status = status
        self.body = body
        super().__init__(f"remote error ({status}): {body}")


# =============================================================================
# Discovery
# =============================================================================


class TemplateUnavailableError(DeployctlError):
    """Raised when no template id can be discovered from a deployment."""

    tag = "TemplateUnavailable"

    def __init__(self, deployment_id: str) -> None:
        self.deployment_id = deployment_id
        super().__init__(
            "unable to obtain deployment template ID from existing deployment ID "
            f"{deployment_id}, please specify one"
        )


class VersionDiscoveryError(DeployctlError):
    """Raised when the latest stack version cannot be obtained."""

    tag = "VersionDiscoveryFailed"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"version discovery: {reason}")


class NoLatestAttemptError(DeployctlError):
    """Raised when a resource has no plan attempt to reapply."""

    tag = "NoLatestAttempt"

    def __init__(self, resource_id: str) -> None:
        self.resource_id = resource_id
        super().__init__(f"unable to obtain latest plan attempt for {resource_id}")


# =============================================================================
# Precondition
# =============================================================================


class NotStoppedError(DeployctlError):
    """
    Raised when deleting a resource which is not stopped.

    Attributes:
        kind: Kind of the resource.
        status: Status reported by the server.
    """

    tag = "NotStopped"

    def __init__(self, kind: str, status: str = "") -> None:
        self.kind = kind
        self.status = status
        super().__init__(f"{kind} delete: deployment must be stopped")


# =============================================================================
# Tracking
# =============================================================================


class UnsupportedTrackingError(DeployctlError):
    """Raised (or collected) when a resource kind cannot be tracked."""

    tag = "UnsupportedTracking"

    def __init__(self, resource_id: str, kind: str = "appsearch") -> None:
        self.resource_id = resource_id
        self.kind = kind
        super().__init__(f"cannot track {kind} resource id {resource_id}")


class TrackTimeoutError(DeployctlError):
    """
    Collected when the tracking retry budget for a resource is exhausted.

    Attributes:
        resource_id: The tracked resource.
        kind: Kind of the tracked resource.
        attempts: Number of failed polls.
        last_error: The error observed on the last failed poll.
    """

    tag = "TrackTimeout"

    def __init__(
        self,
        resource_id: str,
        kind: str,
        attempts: int,
        last_error: Exception | None = None,
    ) -> None:
        self.resource_id = resource_id
        self.kind = kind
        self.attempts = attempts
        self.last_error = last_error
        detail = f": {last_error}" if last_error else ""
        super().__init__(
            f"track [{kind}][{resource_id}]: gave up after {attempts} failed polls{detail}"
        )


class TrackCancelledError(DeployctlError):
    """Collected once when tracking is cancelled by the caller."""

    tag = "Cancelled"

    def __init__(self) -> None:
        super().__init__("track: cancelled")


class PlanFailedError(DeployctlError):
    """
    Collected when a tracked plan finishes on an error step.

    Attributes:
        resource_id: The tracked resource.
        kind: Kind of the tracked resource.
        step_id: The failing step.
        details: Server-provided failure details, if any.
    """

    tag = "PlanFailed"

    def __init__(self, resource_id: str, kind: str, step_id: str, details: str = "") -> None:
        self.resource_id = resource_id
        self.kind = kind
        self.step_id = step_id
        self.details = details
        suffix = f": {details}" if details else ""
        super().__init__(
            f"Deployment resource [{kind}][{resource_id}] failed on step \"{step_id}\"{suffix}"
        )


class TrackingError(MultiError):
    """
    Aggregated tracking failures.

    Tracking is best-effort: a TrackingError never implies the underlying
    change was rolled back. When raised after a successful submission the
    server response is attached so callers can still report it.

    Attributes:
        response: The submit response, when tracking followed a submission.
    """

    tag = "Tracking"

    def __init__(self, errors: Iterable[Exception] = (), response: Any = None) -> None:
        self.response = response
        super().__init__(errors, prefix="track")
