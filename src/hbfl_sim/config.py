"""Static league and simulation configuration constants."""

TEAMS_PER_LEAGUE = 8
SEASON_WEEKS = 8

POSSESSIONS_PER_SIDE = 12
MAX_OVERTIME_ROUNDS = 3
GAME_LOG_LINE_CAP = 40

# Flat strength model until rosters exist.
DEFAULT_OFFENSE = 55.0
DEFAULT_DEFENSE = 55.0
DEFAULT_STYLE = "neutral"
STYLES: tuple[str, ...] = ("aggressive", "passive", "neutral")

DEFAULT_SIM_HOUR = 19
DEFAULT_SIM_MINUTE = 0
DEFAULT_SIM_TIMEZONE = "America/Chicago"

ACTIVE_STATUSES: tuple[str, ...] = ("regular", "playoffs")
COMPLETE_STATUS = "complete"

LEAGUE_NAME = "HBFL - Has Beens Football League"

# (name, abbrev) pool for seeding; 8 are drawn per league.
TEAM_POOL: tuple[tuple[str, str], ...] = (
    ("Tulsa Rust", "TRS"),
    ("OKC Outlaws", "OKO"),
    ("Broken Arrow Blitz", "BAB"),
    ("Norman Nightshift", "NNF"),
    ("Wichita Wranglers", "WWR"),
    ("KC Thunder", "KCT"),
    ("Dallas Last Call", "DLC"),
    ("Fort Worth Fugitives", "FWF"),
    ("Little Rock Rewinds", "LRR"),
    ("Memphis Misfits", "MMF"),
    ("Austin Afterhours", "AAH"),
    ("Houston Hangovers", "HHG"),
    ("St. Louis Slowpokes", "SLP"),
    ("Springfield Specials", "SPS"),
    ("Omaha Old Heads", "OOH"),
    ("Des Moines Dust", "DMD"),
)
