import os


def _csv(name, default):
    return [item.strip() for item in os.environ.get(name, default).split(',') if item.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///gamemaster.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = _csv('CORS_ORIGINS', 'http://localhost:5173,http://127.0.0.1:5173')
    # Rooms seeded on first start (ids 0..ROOM_COUNT-1)
    ROOM_COUNT = int(os.environ.get('ROOM_COUNT', '5'))
    DEFAULT_ROOM_DURATION_SEC = int(os.environ.get('DEFAULT_ROOM_DURATION_SEC', '3600'))
    DEFAULT_FREE_HINTS = int(os.environ.get('DEFAULT_FREE_HINTS', '3'))
    # Time deducted for a catalogued hint once the free budget is spent
    HINT_PENALTY_SEC = int(os.environ.get('HINT_PENALTY_SEC', '120'))
    TICK_INTERVAL_SEC = float(os.environ.get('TICK_INTERVAL_SEC', '1.0'))
    OBLIGATORY_LANGUAGES = _csv('OBLIGATORY_LANGUAGES', 'es,en')
    DEFAULT_LANGUAGE = os.environ.get('DEFAULT_LANGUAGE', 'es')
