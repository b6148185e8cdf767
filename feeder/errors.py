"""Exception hierarchy for feeder."""


class FeederError(Exception):
    """Base class for every error raised by feeder."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class ConfigError(FeederError):
    """A required setting is missing or malformed."""


# ---------------------------------------------------------------------------
# Validation (add / import path)
# ---------------------------------------------------------------------------

class FeedValidationError(FeederError):
    """The URL does not lead to a usable feed."""


class InvalidUrlError(FeedValidationError):
    pass


class UnsupportedSourceError(FeedValidationError):
    pass


class FeedAlreadyExistsError(FeedValidationError):
    def __init__(self, url: str):
        super().__init__(f"Feed already exists: {url}")
        self.url = url


# ---------------------------------------------------------------------------
# Fetch (run path)
# ---------------------------------------------------------------------------

class FetchError(FeederError):
    """Network or HTTP failure while retrieving a document."""


class FeedParseError(FetchError):
    """The document was retrieved but is not a feed."""


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------

class DeliveryError(FeederError):
    """A notification could not be delivered."""


class ChannelError(DeliveryError):
    """The channel service rejected a request or could not be reached."""


class PayloadTooLargeError(ChannelError):
    """The channel service refused the message because of its size (HTTP 413)."""


# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------

class FeedNotFoundError(FeederError):
    pass


class InvalidInputError(FeederError):
    pass


class OpmlError(FeederError):
    pass
