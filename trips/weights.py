"""
Weight helpers shared by the entry, edit and receive forms.

Net weight follows gross minus empty until the user types a net weight
directly. From then on the entry is "manual" and gross/empty edits leave it
alone. End-of-trip weights have no manual path.
"""
from decimal import Decimal, InvalidOperation

ZERO = Decimal('0.00')


def to_decimal(value):
    """Coerces form and wire values to Decimal; blanks and junk become zero."""
    if value is None or value == '':
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return ZERO


def non_negative(value):
    value = to_decimal(value)
    return value if value > 0 else ZERO


def derive_net_weight(gross, empty):
    return max(ZERO, to_decimal(gross) - to_decimal(empty))


class NetWeightTracker:
    """Replays a sequence of weight edits the way the entry form applies them."""

    def __init__(self, gross=ZERO, empty=ZERO, net=None, manual=False):
        self.gross = to_decimal(gross)
        self.empty = to_decimal(empty)
        self.manual = manual
        if net is None or not manual:
            self.net = derive_net_weight(self.gross, self.empty)
        else:
            self.net = to_decimal(net)

    def set_gross(self, value):
        self.gross = to_decimal(value)
        self._recompute()

    def set_empty(self, value):
        self.empty = to_decimal(value)
        self._recompute()

    def set_net(self, value):
        self.net = to_decimal(value)
        self.manual = True

    def _recompute(self):
        if not self.manual:
            self.net = derive_net_weight(self.gross, self.empty)
