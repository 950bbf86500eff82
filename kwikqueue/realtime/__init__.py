"""Realtime change propagation to staff boards and tracking screens"""

from kwikqueue.realtime.reconciler import Echo, Reconciler
from kwikqueue.realtime.session import RealtimeSession

__all__ = ["Echo", "Reconciler", "RealtimeSession"]
