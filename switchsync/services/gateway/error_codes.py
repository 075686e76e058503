"""
Remote API error codes and their meaning.
"""

ERROR_CODES: dict[int, str] = {
    400: "Parameter error, usually a required parameter is missing or has the wrong type or value.",
    401: "Access token authentication error. The account may have logged in elsewhere, invalidating the token.",
    402: "Access token expired.",
    403: "The interface cannot be found, usually the interface URL is wrong.",
    405: "The resource cannot be found in the back-end database.",
    406: "Operation rejected. The current user has no permission on the specified resource.",
    407: "Appid has no operation permission.",
    412: "APPID call limit exceeded.",
    500: "Server internal error.",
    4002: "Device control failure (check control parameters or device online status).",
    30022: "The device is offline and the operation failed.",
}


def describe_error(code: int, message: str = "") -> str:
    """Combine the remote message with the known description for a code"""
    description = ERROR_CODES.get(code)
    if message and description:
        return f"{message} ({description})"
    return message or description or f"Unknown error code {code}"
