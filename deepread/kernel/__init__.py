"""
Kernel layer: persisted entities, the event log, identity, and the mastery scoring rule.

Services in `deepread.engines` and `deepread.orchestration` build on this
layer; nothing here depends on them.
"""
