"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

DEFAULT_HALF_DAY_HOURS = 4
DEFAULT_FULL_DAY_HOURS = 8
DEFAULT_MIN_CHARGEABLE_MINUTES = 60
DEFAULT_GRACE_PERIOD_MINUTES = 15

DEFAULT_EXPIRY_LOOKAHEAD_DAYS = 1
DEFAULT_SWEEP_ITEM_TIMEOUT_SECONDS = 30
DEFAULT_HISTORY_LIMIT = 100

# Actor id used for writes the system makes on its own (sweeps, force checkouts).
SYSTEM_ACTOR_ID = 0

MONEY_QUANT = Decimal("0.01")

CHILD_CODE_PREFIX = "DC"
ENROLLMENT_NUMBER_PREFIX = "ENR"
PAYMENT_NUMBER_PREFIX = "PAY"
RECEIPT_NUMBER_PREFIX = "RCP"
CODE_SEQUENCE_WIDTH = 4
