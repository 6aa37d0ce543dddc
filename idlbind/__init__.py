"""idlbind — typed call bindings generated from program IDL documents."""

__version__ = "0.1.0"
