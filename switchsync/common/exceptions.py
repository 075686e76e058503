"""
Custom Exception Classes for SwitchSync

Hierarchical exception structure for error handling across services.
"""


class SwitchSyncError(Exception):
    """Base exception for all SwitchSync errors"""

    def __init__(self, message: str, recoverable: bool = True):
        self.message = message
        self.recoverable = recoverable
        super().__init__(message)


class ConfigError(SwitchSyncError):
    """Configuration-related errors"""

    def __init__(self, message: str, recoverable: bool = False):
        super().__init__(f"Config Error: {message}", recoverable)


class DeviceError(SwitchSyncError):
    """Device-related errors"""

    def __init__(
        self,
        message: str,
        device_id: str | None = None,
        recoverable: bool = True,
    ):
        self.device_id = device_id
        super().__init__(f"Device Error: {message}", recoverable)


class RemoteRejectedError(DeviceError):
    """Remote API answered with a non-zero error code"""

    def __init__(
        self,
        code: int,
        message: str,
        device_id: str | None = None,
    ):
        self.code = code
        self.remote_message = message
        super().__init__(
            f"Remote rejected request (code {code}): {message}",
            device_id,
            recoverable=False,
        )


class TransportError(DeviceError):
    """Network/HTTP failure talking to the remote API"""

    def __init__(
        self,
        message: str,
        device_id: str | None = None,
        endpoint: str | None = None,
    ):
        self.endpoint = endpoint
        super().__init__(f"Transport: {message}", device_id, recoverable=True)


class VerificationError(DeviceError):
    """Device accepted a write but did not converge"""

    def __init__(
        self,
        device_id: str | None = None,
        param: str | None = None,
        expected_value: object = None,
        actual_value: object = None,
    ):
        self.param = param
        self.expected_value = expected_value
        self.actual_value = actual_value
        message = f"{param} not converged: expected {expected_value}, got {actual_value}"
        super().__init__(message, device_id, recoverable=True)
