"""
Profile Engine - the learner's profile.
"""

from deepread.engines.profile.profile_service import ProfileService

__all__ = ["ProfileService"]
