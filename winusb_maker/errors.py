"""Error taxonomy for winusb_maker.

Every fatal condition of a run is a MediaError carrying a human-readable
message and a stable error code. The CLI prints the message as the single
diagnostic line and exits non-zero; nothing in the pipeline retries.

Categories:
- input resolution (InputResolutionError)
- device safety (media.device.DeviceValidationError)
- external tools (ToolError)
- image content (PayloadNotFoundError)
"""

# Error code constants
INPUT_ERROR = "input_error"
DEVICE_ERROR = "device_error"
TOOL_ERROR = "tool_error"
CANCELLED = "cancelled"


class MediaError(Exception):
    """Base exception for every fatal run condition."""

    def __init__(self, message: str, error_code: str) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class InputResolutionError(MediaError):
    """The image path or target disk could not be determined."""

    def __init__(self, message: str, error_code: str = INPUT_ERROR) -> None:
        super().__init__(message, error_code=error_code)


class ImageNotReadableError(InputResolutionError):
    """The chosen ISO path does not exist or cannot be read."""

    def __init__(self, image_path: str) -> None:
        super().__init__(
            f"ISO not readable: {image_path}", error_code="IMAGE_NOT_READABLE"
        )
        self.image_path = image_path


class NoEligibleDeviceError(InputResolutionError):
    """No external physical disk is attached."""

    def __init__(self) -> None:
        super().__init__(
            "No eligible device found: no external physical disks detected. "
            "Plug the USB stick in directly (not through a hub or dock).",
            error_code="NO_ELIGIBLE_DEVICE",
        )


class InvalidSelectionError(InputResolutionError):
    """A menu answer was not a number."""

    def __init__(self, answer: str) -> None:
        super().__init__(
            f"Invalid selection: {answer!r} is not a number",
            error_code="INVALID_SELECTION",
        )
        self.answer = answer


class SelectionOutOfRangeError(InputResolutionError):
    """A numeric menu answer does not match any entry."""

    def __init__(self, selection: int, upper: int) -> None:
        super().__init__(
            f"Selection out of range: {selection} (expected 0-{upper})",
            error_code="SELECTION_OUT_OF_RANGE",
        )
        self.selection = selection
        self.upper = upper


class TerminalError(InputResolutionError):
    """The controlling terminal could not be used for a prompt."""

    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="TERMINAL_UNAVAILABLE")


class ConfirmationDeclinedError(MediaError):
    """The operator did not confirm the erase."""

    def __init__(self, device_id: str) -> None:
        super().__init__(
            f"Cancelled: erase of {device_id} was not confirmed",
            error_code=CANCELLED,
        )
        self.device_id = device_id


class ToolError(MediaError):
    """An external tool failed or is unavailable."""

    def __init__(self, message: str, error_code: str = TOOL_ERROR) -> None:
        super().__init__(message, error_code=error_code)


class PayloadNotFoundError(MediaError):
    """The mounted image holds neither install.wim nor install.esd."""

    def __init__(self, mount_point: str) -> None:
        super().__init__(
            f"Neither sources/install.wim nor sources/install.esd found in "
            f"{mount_point}; the image does not contain a recognized installer",
            error_code="PAYLOAD_NOT_FOUND",
        )
        self.mount_point = mount_point


__all__ = [
    "CANCELLED",
    "DEVICE_ERROR",
    "INPUT_ERROR",
    "TOOL_ERROR",
    "ConfirmationDeclinedError",
    "ImageNotReadableError",
    "InputResolutionError",
    "InvalidSelectionError",
    "MediaError",
    "NoEligibleDeviceError",
    "PayloadNotFoundError",
    "SelectionOutOfRangeError",
    "TerminalError",
    "ToolError",
]
