"""Exception taxonomy shared by the analysis engine, comparison and CLI."""


class SiteInsightsError(Exception):
    """Base class for every error raised on purpose by site_insights."""

    public_message = "Site insights error"

    def __init__(self, message: str = "", **details) -> None:
        super().__init__(message or self.public_message)
        self.details = details


class ValidationError(SiteInsightsError):
    """A required parameter is missing or malformed.  Never retried."""

    public_message = "Invalid request"


class NotFoundError(SiteInsightsError):
    """A referenced project, scan or page does not exist for the caller."""

    public_message = "Not found"


class UpstreamDependencyError(SiteInsightsError):
    """An optional collaborator (e.g. the snapshot store) failed.

    Callers recover by falling back to coarser data.
    """

    public_message = "Upstream dependency unavailable"


class InternalError(SiteInsightsError):
    """Unexpected failure.  Only :attr:`public_message` leaves the process."""

    public_message = "Internal error"


class MalformedInputError(InternalError):
    """Crawl payload does not match the ingestion schema."""

    public_message = "Malformed crawl data"


class AnalysisTimeoutError(SiteInsightsError):
    """The whole analysis exceeded the caller's deadline; nothing is kept."""

    public_message = "Analysis timed out"


class EngineBusyError(SiteInsightsError):
    """Too many analyses in flight; the request was rejected, not queued."""

    public_message = "Analysis engine is busy"
