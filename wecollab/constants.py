# wecollab/constants.py
# Domain constants shared by services, schemas and migrations

MAX_DASHBOARD_MEMBERS: int = 4

DEFAULT_WIDGETS: list[tuple[str, int]] = [
    ("System Design", 0),
    ("Leetcode", 1),
    ("Behavioral", 2),
    ("Job Applications", 3),
]

ROLE_OWNER = "owner"
ROLE_MEMBER = "member"

INVITE_PENDING = "pending"
INVITE_ACCEPTED = "accepted"
INVITE_DECLINED = "declined"
INVITE_EXPIRED = "expired"

TIMER_IDLE = "idle"
TIMER_RUNNING = "running"
TIMER_PAUSED = "paused"

# Leaderboard windows in days back from today (0 = today only)
LEADERBOARD_PERIODS: dict[str, int] = {
    "day": 0,
    "week": 7,
    "month": 30,
}

THEME_MODES: frozenset[str] = frozenset({"light", "dark", "system"})

THEME_COLORS: frozenset[str] = frozenset({
    "theme-zinc", "theme-slate", "theme-stone", "theme-gray",
    "theme-neutral", "theme-red", "theme-rose", "theme-orange",
    "theme-green", "theme-blue", "theme-yellow", "theme-violet",
})

INVITE_CODE_LENGTH = 8
OTP_LENGTH = 6

DASHBOARD_NAME_MAX = 100
CHAT_MESSAGE_MAX = 2000
CHAT_PAGE_DEFAULT = 50
RECENT_ACTIVITY_DEFAULT = 10
