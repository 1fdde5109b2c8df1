from access_zone.workers.tasks.notifications import send_operator_message
from access_zone.workers.tasks.points_audit import run_points_integrity_sweep

__all__ = [
    "run_points_integrity_sweep",
    "send_operator_message",
]
