# Import every table so metadata is complete for Alembic and tests.
from wecollab.models.profiles_table import profiles
from wecollab.models.dashboards_table import dashboards, dashboard_members, widgets
from wecollab.models.invites_table import dashboard_invites
from wecollab.models.timers_table import timer_states, timer_sessions
from wecollab.models.chat_table import chat_messages

__all__ = [
    "profiles",
    "dashboards",
    "dashboard_members",
    "widgets",
    "dashboard_invites",
    "timer_states",
    "timer_sessions",
    "chat_messages",
]
