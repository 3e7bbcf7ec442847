from __future__ import annotations

from .const import ERRORS


class ParameterError(ValueError):
    """Fatal problem in the parameter section.

    Renders as a single line naming the offending group/parameter and the
    kind of mismatch.
    """

    code = ""

    def __init__(self, detail: str = "", group: str | None = None, parameter: str | None = None):
        self.detail = detail
        self.group = group
        self.parameter = parameter
        super().__init__(self._render())

    def _render(self) -> str:
        where = ""
        if self.group and self.parameter:
            where = f" [{self.group}:{self.parameter}]"
        elif self.group or self.parameter:
            where = f" [{self.group or self.parameter}]"
        msg = f"{self.code}{where}: {ERRORS[self.code]}"
        if self.detail:
            msg += f" ({self.detail})"
        return msg

    def located(self, group: str, parameter: str | None = None) -> "ParameterError":
        """Return a copy of this error naming the group/parameter it occurred in."""
        return type(self)(self.detail, group=group, parameter=parameter)


class MalformedRecord(ParameterError):
    code = "E_MALFORMED_RECORD"


class UnexpectedType(ParameterError):
    code = "E_UNEXPECTED_TYPE"


class DimensionMismatch(ParameterError):
    code = "E_DIMENSION_MISMATCH"


class UnknownGroupReference(ParameterError):
    code = "E_UNKNOWN_GROUP"
