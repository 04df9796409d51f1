"""Request playground domain: request intents, mock scenarios and lifecycle states.

Nothing in this package schedules work; timing lives in `src/runtime`.
"""
