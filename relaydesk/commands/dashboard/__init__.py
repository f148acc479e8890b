from relaydesk.commands.dashboard.dispatcher import DashboardDispatcher

__all__ = ["DashboardDispatcher"]
