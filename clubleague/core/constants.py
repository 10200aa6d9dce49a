"""Global constants for the clubleague application."""

# Firestore limits
FIRESTORE_BATCH_LIMIT = 400
FIRESTORE_WRITE_LIMIT = 500

# Collection names
LEAGUES_COLLECTION = "leagues"
MEMBERS_COLLECTION = "members"
INVITES_COLLECTION = "invites"
MATCHES_COLLECTION = "matches"
USERS_COLLECTION = "users"

# Member roles and statuses
ROLE_OWNER = "owner"
ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"
MEMBER_ROLES = (ROLE_OWNER, ROLE_ADMIN, ROLE_MEMBER)

MEMBER_STATUS_ACTIVE = "active"
MEMBER_STATUS_INVITED = "invited"
MEMBER_STATUS_PENDING = "pending"

INVITE_STATUS_PENDING = "pending"

# Tournament formats
FORMAT_NORMAL_LEAGUE = "normal_league"
FORMAT_SINGLE_ELIMINATION = "single_elimination"
FORMAT_DOUBLE_ELIMINATION = "double_elimination"
FORMAT_ROUND_ROBIN = "round_robin"
TOURNAMENT_FORMATS = (
    FORMAT_NORMAL_LEAGUE,
    FORMAT_SINGLE_ELIMINATION,
    FORMAT_DOUBLE_ELIMINATION,
    FORMAT_ROUND_ROBIN,
)
BRACKET_FORMATS = (FORMAT_SINGLE_ELIMINATION, FORMAT_DOUBLE_ELIMINATION)

# Bracket generation
MIN_PARTICIPANTS = 2
BYE_WINNER_SCORE = 1
BYE_LOSER_SCORE = 0

# Invite codes
INVITE_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
INVITE_CODE_LENGTH = 8

DEFAULT_DISPLAY_NAME = "Player"
