"""
Custom exceptions for GoalKeeper.
Only day-transition validation raises; scoring and persistence failures are absorbed.
"""


class GoalKeeperError(Exception):
    """Base exception for GoalKeeper"""
    pass


class NoGoalsError(GoalKeeperError):
    """Raised when ending a day that has no goals"""
    def __init__(self):
        super().__init__("Add some goals before ending the day!")


class DayPendingError(GoalKeeperError):
    """Raised when a day is already being scored or awaits acknowledgment"""
    def __init__(self):
        super().__init__("A day result is already pending. Accept or discard it first.")


class NoPendingDayError(GoalKeeperError):
    """Raised when committing without a pending day result"""
    def __init__(self):
        super().__init__("No pending day result to commit.")
