"""
Exception classes for the tournament advancement engine
Configuration-time errors are raised before any write; completion-time errors
are logged by the orchestrator and leave the game eligible for reprocessing.
"""


class ServiceError(Exception):
    """
    Base exception for all service-related errors
    """
    def __init__(self, message: str, code: str = None):
        super().__init__(message)
        self.message = message
        self.code = code or "SERVICE_ERROR"

    def to_dict(self):
        """Convert exception to dictionary for JSON responses"""
        return {
            'error': self.code,
            'message': self.message
        }


class ValidationError(ServiceError):
    """
    Raised when input validation fails
    """
    def __init__(self, message: str, field: str = None, code: str = None):
        super().__init__(message, code or "VALIDATION_ERROR")
        self.field = field

    def to_dict(self):
        result = super().to_dict()
        if self.field:
            result['field'] = self.field
        return result


class InvalidConfiguration(ValidationError):
    """
    Raised when a pool or bracket shape is invalid; rejected before any writes
    """
    def __init__(self, message: str, field: str = None):
        super().__init__(message, field, "INVALID_CONFIGURATION")


class NotFoundError(ServiceError):
    """
    Raised when requested resource is not found
    """
    def __init__(self, resource: str, id=None):
        message = f"{resource} not found"
        if id:
            message = f"{resource} with ID {id} not found"
        super().__init__(message, "NOT_FOUND")
        self.resource = resource
        self.id = id


class BusinessRuleError(ServiceError):
    """
    Raised when business rule validation fails
    """
    def __init__(self, message: str, rule: str = None, code: str = None):
        super().__init__(message, code or "BUSINESS_RULE_VIOLATION")
        self.rule = rule

    def to_dict(self):
        result = super().to_dict()
        if self.rule:
            result['rule'] = self.rule
        return result


class NoValidWinner(BusinessRuleError):
    """
    Raised when a completed game is tied, unscored or has unresolved participants.
    Retryable once the scores are corrected.
    """
    def __init__(self, game_id: str, reason: str = None):
        message = f"Game {game_id} has no valid winner"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, "winner_required", "NO_VALID_WINNER")
        self.game_id = game_id


class TargetGameFull(BusinessRuleError):
    """
    Raised when both team slots of a target game already hold concrete teams
    """
    def __init__(self, target_game_id: str, team_name: str = None):
        message = f"Game {target_game_id} already has both teams assigned"
        if team_name:
            message = f"{message}; cannot place {team_name}"
        super().__init__(message, "two_team_slots", "TARGET_GAME_FULL")
        self.target_game_id = target_game_id
        self.team_name = team_name


class CapacityExceeded(BusinessRuleError):
    """
    Raised when a game would get more than two upstream feeds
    """
    def __init__(self, target_game_id: str, feeding_games=None):
        feeding_games = list(feeding_games or [])
        message = (f"Game {target_game_id} already has {len(feeding_games)} games feeding into it; "
                   f"a game can only have a maximum of 2 source games")
        super().__init__(message, "max_two_feeds", "CAPACITY_EXCEEDED")
        self.target_game_id = target_game_id
        self.feeding_games = feeding_games

    def to_dict(self):
        result = super().to_dict()
        result['feeding_games'] = self.feeding_games
        return result


class CycleDetected(BusinessRuleError):
    """
    Raised when an advancement edit would create a circular dependency
    """
    def __init__(self, source_game_id: str, target_game_id: str):
        super().__init__(
            f"Advancing from game {source_game_id} to game {target_game_id} would create a circular dependency",
            "acyclic_advancement", "CYCLE_DETECTED")
        self.source_game_id = source_game_id
        self.target_game_id = target_game_id


class ConflictingAdvancement(BusinessRuleError):
    """
    Raised when re-resolution disagrees with a value previously written into a target game
    """
    def __init__(self, target_game_id: str, previous_team: str, new_team: str):
        super().__init__(
            f"Game {target_game_id} already received {previous_team} from this advancement; "
            f"new result would place {new_team}",
            "consistent_advancement", "CONFLICTING_ADVANCEMENT")
        self.target_game_id = target_game_id
        self.previous_team = previous_team
        self.new_team = new_team


class DatabaseError(ServiceError):
    """
    Raised when database operations fail
    """
    def __init__(self, message: str, operation: str = None, code: str = None):
        super().__init__(message, code or "DATABASE_ERROR")
        self.operation = operation

    def to_dict(self):
        result = super().to_dict()
        if self.operation:
            result['operation'] = self.operation
        return result


class StoreUnavailable(DatabaseError):
    """
    Raised when the persistent store is transiently unreachable; safe to retry
    """
    def __init__(self, message: str, operation: str = None):
        super().__init__(message, operation, "STORE_UNAVAILABLE")
