"""Custom exceptions for the news module."""


class ValidationError(Exception):
    """A form field failed validation.

    Validators collect these instead of raising them, so every problem in a
    submission is reported at once and the edit session carries on.

    Attributes:
        field: Dotted path of the offending field (e.g. ``content.0.text``)
        reason: Human-readable message shown next to the field
    """

    def __init__(self, field, reason):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")

    def to_dict(self):
        return {'field': self.field, 'reason': self.reason}
