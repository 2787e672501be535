"""
Event Topics for autosplit

All pub/sub topics are defined here for easy discovery and documentation.
Topic naming convention: <category>.<action>

The core publishes on these topics and never writes logs itself; the daemon
subscribes reporters to them. Each topic is always sent with the same
keyword arguments, listed below.
"""

# Compositor events
EVENT_RECEIVED = "event.received"
"""Published for every event pulled off the stream. Params: event"""

EVENT_IGNORED = "event.ignored"
"""Published for event kinds that need no action. Params: event"""

# Decisions
DECISION_APPLIED = "decision.applied"
"""Published after a confirmed layout change. Params: container_id, orientation"""

DECISION_SKIPPED = "decision.skipped"
"""Published when no command is needed. Params: decision"""

# Commands
COMMAND_SENT = "command.sent"
"""Published before a layout command goes out. Params: command, dry_run"""

COMMAND_FAILED = "command.failed"
"""Published when the compositor rejects a command. Params: command, error"""

# Orientation state
STATE_FORGOTTEN = "state.forgotten"
"""Published when a close event drops a tracked container. Params: container_id"""

STATE_PRUNED = "state.pruned"
"""Published when a snapshot no longer holds tracked containers. Params: container_ids"""

# Controller lifecycle
CONTROLLER_STATE_CHANGED = "controller.state_changed"
"""Published on every state machine transition. Params: old, new"""

CONTROLLER_DISCONNECTED = "controller.disconnected"
"""Published when the loop reaches DISCONNECTED. Params: reason, error"""
