"""Exception hierarchy for the harvester."""


class HarvestError(Exception):
    """Base exception for all harvester errors."""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ConfigurationError(HarvestError):
    """Unknown target or malformed target table."""


class DiscoveryError(HarvestError):
    """The navigation region could not be rendered or located."""


class CatalogError(HarvestError):
    """The links catalog file is missing or unreadable."""


class FetchError(HarvestError):
    """A single page could not be rendered or was implausibly small."""


class ExtractionError(HarvestError):
    """No readable content region could be found in a raw page."""


class PipelineError(HarvestError):
    """A phase failed fatally and the remaining phases were not run."""

    def __init__(self, phase, message):
        super().__init__(f"{phase} phase failed: {message}")
        self.phase = phase
