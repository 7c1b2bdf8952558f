"""Round domain services: phase engine, cues, restarts and the round store.

Everything here is shared by the HTTP routes, the socket handlers and the
display/operator clients, keeping transport concerns out of the timer logic.
"""
