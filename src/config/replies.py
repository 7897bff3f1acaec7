REMINDER_CREATED = "Will do. I will remind you of this note at {remind_at}."

RATE_LIMIT_HIT = "I'm sorry, but you've been rate-limited. Maybe wait a bit and try again later."

REMINDER_DUE = "Hey {mention}! You asked me to remind you about this."
