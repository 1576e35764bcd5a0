from loginus_id.core.busy import BusyFlag

__all__ = ["BusyFlag"]
