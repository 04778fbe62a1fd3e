"""Exceptions raised by pylisa."""


class LisaError(Exception):
    """Base class for all pylisa errors."""


class _UnitError(LisaError):
    """Error tied to specific units of the analysis.

    Parameters
    ----------
    message : str
    units : iterable of int
        Offending unit indices (0-based).
    """

    def __init__(self, message, units=()):
        self.units = tuple(int(u) for u in units)
        if self.units:
            message = f"{message} (units: {_format_units(self.units)})"
        super().__init__(message)


def _format_units(units, limit=10):
    shown = ", ".join(str(u) for u in units[:limit])
    if len(units) > limit:
        shown += f", ... [{len(units)} total]"
    return shown


class ShapeMismatchError(_UnitError, ValueError):
    """Graph, weights and values disagree in length."""


class NoNeighborsError(_UnitError):
    """A unit without neighbors was met and ``allow_zero`` is not enabled."""


class MissingValueError(_UnitError, ValueError):
    """A missing value reached a step that does not accept it."""


class InvalidConfigurationError(_UnitError, ValueError):
    """Bad parameter: simulation count, reducer name, option string, ..."""
