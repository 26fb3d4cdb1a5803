class SolError(Exception):
    """Sol operation failed"""

    kind = 'sol_error'
    status_code = 400

    def __init__(self, message=None, kind=None):
        super().__init__(message or self.__doc__)
        self.message = message or self.__doc__
        if kind:
            self.kind = kind


class SolValidationError(SolError):
    """Invalid input"""

    kind = 'validation_error'


class NotFound(SolError):
    """Sol not found"""

    kind = 'not_found'
    status_code = 404


class Conflict(SolError):
    """This sol conflicts with the current state of the request"""

    kind = 'conflict'
    status_code = 409


class SolFull(Conflict):
    """This sol is no longer accepting participants"""

    kind = 'sol_full'


class AlreadyParticipant(Conflict):
    """You are already a participant of this sol"""

    kind = 'already_participant'


class Forbidden(SolError):
    """You are not allowed to perform this action"""

    kind = 'forbidden'
    status_code = 403


class NotParticipant(Forbidden):
    """You are not a participant of this sol"""

    kind = 'not_participant'


class StateError(SolError):
    """Operation not allowed in the sol's current state"""

    kind = 'invalid_state'
    status_code = 409


class NoActiveRound(StateError):
    """This sol has no active round"""

    kind = 'no_active_round'
