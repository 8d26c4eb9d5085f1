"""
Test suite for the assist pipeline run tracker.

Focus areas:
- Reducer purity and stage transitions
- Orchestrator subscription lifecycle
- Transport message routing
- Replay determinism
"""
