"""
Click recording: a bounded queue plus background workers.
"""

from .models import ClickMessage
from .recorder import ClickRecorder

__all__ = ["ClickMessage", "ClickRecorder"]
