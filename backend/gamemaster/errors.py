"""Game master error kinds shared by the HTTP and Socket.IO surfaces."""


class GameMasterError(Exception):
    """Base exception for all game master errors."""
    status_code = 500
    kind = 'error'

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'error': self.message, 'kind': self.kind}


class NotFoundError(GameMasterError):
    """Raised when a room id is unknown."""
    status_code = 404
    kind = 'not_found'


class ValidationError(GameMasterError):
    """Raised for empty names/messages and malformed payloads."""
    status_code = 400
    kind = 'validation'


class PersistenceError(GameMasterError):
    """Raised when the room store fails to read or write."""
    status_code = 500
    kind = 'persistence'


class PresenceConflict(GameMasterError):
    """Raised when a connection sends cast status without being a display."""
    status_code = 409
    kind = 'presence_conflict'
