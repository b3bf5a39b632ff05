"""Orchestration layer - practice session lifecycle and background maintenance."""

from deepread.orchestration.maintenance import MaintenanceRunner
from deepread.orchestration.state_machine import PracticeSessionStateMachine
from deepread.kernel.models.practice_session import PracticeSessionStatus

__all__ = [
    "MaintenanceRunner",
    "PracticeSessionStateMachine",
    "PracticeSessionStatus",
]
