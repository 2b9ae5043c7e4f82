"""
RelayTV runtime: the playback orchestration core.

Leaves first: playlist model, channel state, fallback scheduler, live
arbitrator, viewer notification, and the orchestrator that owns them.
"""
