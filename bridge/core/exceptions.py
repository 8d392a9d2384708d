"""
Custom exceptions for the bridge.

Provides a hierarchy of typed exceptions so that transport, codec and
orchestration failures can be told apart by callers and by the HTTP layer.
"""

from typing import Any, Optional


class BridgeError(Exception):
    """Base exception for all bridge errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            code: Optional error code for programmatic handling.
            details: Optional additional error details.
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# =============================================================================
# Device Errors
# =============================================================================


class DeviceError(BridgeError):
    """Base exception for device-related errors."""

    def __init__(
        self,
        message: str,
        device_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.device_name = device_name
        if device_name:
            self.details["device"] = device_name


class DeviceNotFoundError(DeviceError):
    """Device label is not configured."""

    pass


class DeviceNotConnectedError(DeviceError):
    """Port cannot be opened, was lost, or the device does not answer ENQ."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("code", "NOT_CONNECTED")
        super().__init__(message, **kwargs)


class DeviceTimeoutError(DeviceError):
    """Device operation exceeded its timeout."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("code", "TIMEOUT")
        super().__init__(message, **kwargs)


# =============================================================================
# Fiscal Register Errors
# =============================================================================


class NoFrameError(DeviceError):
    """
    No structurally complete response after all retries.

    Attributes:
        command: Command code that went unanswered.
        partial_response: Bytes received on the last attempt (diagnostics only).
    """

    def __init__(
        self,
        device_name: str,
        command: int,
        partial_response: bytes = b"",
    ) -> None:
        super().__init__(
            f"NO_FRAME (timeout) dev={device_name} cmd={command:04x}",
            device_name=device_name,
            code="NO_FRAME",
        )
        self.command = command
        self.partial_response = partial_response
        self.details["command"] = f"{command:04x}"
        if partial_response:
            self.details["partial_response"] = partial_response.hex(" ")


class FiscalCommandError(DeviceError):
    """
    The fiscal register answered with an error code.

    Attributes:
        error_code: Device error code such as ``-111008``.
    """

    def __init__(
        self,
        error_code: Optional[str],
        message: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("code", "DEVICE_ERROR")
        super().__init__(message or error_code or "DEVICE_ERROR", **kwargs)
        self.error_code = error_code
        if error_code:
            self.details["error_code"] = error_code


class NoPaperError(FiscalCommandError):
    """
    Paper out or printer cover open.

    Attributes:
        cause: Human readable description of the fault.
    """

    def __init__(self, error_code: str, cause: str, **kwargs: Any) -> None:
        kwargs.setdefault("code", "NO_PAPER")
        super().__init__(error_code, message=cause, **kwargs)
        self.cause = cause


# =============================================================================
# POS Terminal Errors
# =============================================================================


class PosHandshakeError(DeviceError):
    """Terminal kept answering NAK to ENQ."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("code", "POS_NAK_ENQ")
        super().__init__(message, **kwargs)


class PosDeclinedError(DeviceError):
    """
    Transaction reached the terminal but was not approved.

    Attributes:
        response: Decoded terminal response.
    """

    def __init__(self, response: Any, **kwargs: Any) -> None:
        kwargs.setdefault("code", "POS_DECLINED")
        super().__init__(response.decline_message, **kwargs)
        self.response = response
        self.details["errorCode"] = response.terminal_code
        self.details["hostResp"] = response.host_response


# =============================================================================
# Job Errors
# =============================================================================


class JobError(BridgeError):
    """Base exception for job queue errors."""

    pass


class InvalidJobError(JobError):
    """Job could not be parsed from the queue message."""

    pass


class ReportDeliveryError(JobError):
    """Report could not be delivered to the booking backend."""

    pass


class JobQueueError(JobError):
    """Job queue backend unreachable."""

    pass


# =============================================================================
# Request Errors
# =============================================================================


class InvalidAmountError(BridgeError):
    """Amount is missing, not a number, or not positive."""

    def __init__(self, message: str = "AMOUNT_REQUIRED_OR_INVALID", **kwargs: Any) -> None:
        kwargs.setdefault("code", "AMOUNT_REQUIRED_OR_INVALID")
        super().__init__(message, **kwargs)
