"""Game constants"""

# Card types
CARD_WHITE = 'WHITE'
CARD_BLACK = 'BLACK'
CARD_TYPES = [CARD_WHITE, CARD_BLACK]

# Game status (forward-only)
GAME_LOBBY = 'LOBBY'
GAME_IN_PROGRESS = 'IN_PROGRESS'
GAME_COMPLETED = 'COMPLETED'
GAME_CANCELLED = 'CANCELLED'

GAME_STATUS_ORDER = {
    GAME_LOBBY: 0,
    GAME_IN_PROGRESS: 1,
    GAME_COMPLETED: 2,
    GAME_CANCELLED: 2,
}

# Game card states
CARD_IN_DRAW_PILE = 'IN_DRAW_PILE'
CARD_IN_HAND = 'IN_HAND'
CARD_SUBMITTED = 'SUBMITTED'
CARD_USED = 'USED'
CARD_DISCARDED = 'DISCARDED'

# Round status
ROUND_COLLECTING = 'COLLECTING_SUBMISSIONS'
ROUND_JUDGING = 'JUDGING'
ROUND_COMPLETED = 'COMPLETED'

# Projected phases
PHASE_LOBBY = 'lobby'
PHASE_PLAYING = 'playing'
PHASE_JUDGING = 'judging'
PHASE_ROUND_END = 'round_end'
PHASE_GAME_END = 'game_end'

# Standard CAH hand size
HAND_SIZE = 7
MIN_PLAYERS = 3
DEFAULT_WINNING_SCORE = 5

# Seeded shuffle LCG (Numerical Recipes constants)
LCG_MULTIPLIER = 1664525
LCG_INCREMENT = 1013904223
LCG_MODULUS = 2 ** 32

SEED_ALPHABET = '0123456789abcdefghijklmnopqrstuvwxyz'
SEED_LENGTH = 13

# Notification events
EVENT_GAME_CREATED = 'game_created'
EVENT_PLAYER_JOINED = 'player_joined'
EVENT_GAME_STARTED = 'game_started'
EVENT_HANDS_DEALT = 'hands_dealt'
EVENT_ROUND_STARTED = 'round_started'
EVENT_SUBMISSION_RECEIVED = 'submission_received'
EVENT_ALL_SUBMISSIONS_RECEIVED = 'all_submissions_received'
EVENT_ROUND_ENDED = 'round_ended'
EVENT_GAME_ENDED = 'game_ended'
EVENT_GAME_CANCELLED = 'game_cancelled'
