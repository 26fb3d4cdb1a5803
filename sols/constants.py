from decimal import Decimal
import string


CURRENCY_LIMITS = {
    'HTG': (Decimal('500'), Decimal('100000')),
    'USD': (Decimal('5'), Decimal('1000')),
}

FREQUENCY_DAYS = {
    'weekly': 7,
    'biweekly': 14,
    'monthly': 30,
    'quarterly': 90,
}

MIN_PARTICIPANTS = 3
MAX_PARTICIPANTS = 20

ACCESS_CODE_LENGTH = 6
ACCESS_CODE_CHARS = string.ascii_uppercase + string.digits
ACCESS_CODE_MAX_ATTEMPTS = 10

MAX_INTEREST_RATE = Decimal('100')
MAX_SERVICE_FEE = Decimal('10')
MAX_LATE_FEE = Decimal('20')

# Sol status -> statuses it may move to
SOL_TRANSITIONS = {
    'recruiting': ('active', 'cancelled'),
    'active': ('completed', 'paused', 'cancelled'),
    'paused': ('active', 'cancelled'),
    'completed': (),
    'cancelled': (),
}

RUNNING_STATUSES = ('active', 'paused')
TERMINAL_STATUSES = ('completed', 'cancelled')
OPEN_ROUND_STATUSES = ('scheduled', 'pending', 'active')
