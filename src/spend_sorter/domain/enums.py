from enum import Enum

class ResolutionState(Enum):
    """Where the interactive resolver is while it waits on the user"""
    IDLE = "Idle"
    AWAITING_CATEGORY_NAME = "Awaiting category name"
    AWAITING_PATTERN = "Awaiting pattern"
