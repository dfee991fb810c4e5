class WebhookError(Exception):
    pass


class MissingSignatureError(WebhookError):
    """Signature policy requires a signature header and none was sent."""


class InvalidSignatureError(WebhookError):
    """A signature was sent but does not match the body."""
