"""Kernel time – clock port and implementations."""
from mp_eventsource.kernel.time.clock import Clock, FrozenClock, SystemClock, utc_now

__all__ = ["Clock", "FrozenClock", "SystemClock", "utc_now"]
