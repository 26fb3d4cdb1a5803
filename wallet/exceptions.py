class LedgerError(Exception):
    """Base class for account ledger failures"""

    kind = 'ledger_error'
    status_code = 400

    def __init__(self, message=None):
        super().__init__(message or self.__doc__)
        self.message = message or self.__doc__


class AccountNotFound(LedgerError):
    """Account not found"""

    kind = 'account_not_found'
    status_code = 404


class InsufficientFunds(LedgerError):
    """Insufficient balance for this transaction"""

    kind = 'insufficient_funds'


class InsufficientSetup(LedgerError):
    """Account cannot process this transaction"""

    kind = 'account_unusable'
