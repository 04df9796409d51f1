"""Runtime orchestration (timers, mock transport, request lifecycle).

This layer is responsible for:
- simulating the remote call with artificial latency and a deadline
- counting down the remaining budget while a request is outstanding
- driving the idle/sending/success/error state machine

It should remain independent from the HTTP layer (`src/api`), so both CLI and API
can reuse the same execution logic.
"""
