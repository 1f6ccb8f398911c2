class SkywardError(Exception):
    """Base error for everything raised by skytools."""


class SessionExpired(SkywardError):
    """The portal rendered its logged-out page instead of the requested one."""


class MalformedDocument(SkywardError, ValueError):
    """The page is not a gradebook page, or its payload format changed."""
