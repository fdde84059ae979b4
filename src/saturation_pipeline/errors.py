"""Exception taxonomy for saturation analysis runs."""


class SaturationError(Exception):
    """Base class for errors raised by the saturation pipeline."""


class ConfigurationError(SaturationError, ValueError):
    """Inputs cannot support a run (empty regulator set, missing hypotheses, ...).

    Raised before any per-sample computation starts.
    """


class DataMappingError(SaturationError, ValueError):
    """Gene-to-cytoband translation produced no events at all for a type.

    A single regulator failing to map is only a warning; this error signals
    that the location table does not match the interaction catalog.
    """

    def __init__(self, event_type: str, message: str | None = None):
        self.event_type = event_type
        super().__init__(
            message
            or f"No {event_type} interactions could be mapped to cytobands"
        )
