import os

basedir = os.path.abspath(os.path.dirname(__file__))

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Static client bundle served by the HTTP blueprint
    CLIENT_DIR = os.environ.get('CLIENT_DIR') or os.path.join(basedir, '..', 'client')
    # Room lifecycle timers (seconds)
    ROOM_TIMEOUT_SEC = int(os.environ.get('ROOM_TIMEOUT_SEC', '900'))
    INACTIVE_TIMEOUT_SEC = int(os.environ.get('INACTIVE_TIMEOUT_SEC', '3600'))
    DISCONNECT_GRACE_SEC = int(os.environ.get('DISCONNECT_GRACE_SEC', '30'))
    # Final screen hold time before the room is deleted (seconds)
    GAME_OVER_GRACE_SEC = int(os.environ.get('GAME_OVER_GRACE_SEC', '30'))
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '3'))
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '8'))
    # Currency
    STARTING_BALANCE = int(os.environ.get('STARTING_BALANCE', '1000000'))
    SKIP_BONUS = int(os.environ.get('SKIP_BONUS', '50000'))
    BID_UNIT = int(os.environ.get('BID_UNIT', '10000'))
    NAME_MAX_LEN = int(os.environ.get('NAME_MAX_LEN', '10'))
    ROUND_LOG_LIMIT = int(os.environ.get('ROUND_LOG_LIMIT', '20'))
    ROOM_LIST_LIMIT = int(os.environ.get('ROOM_LIST_LIMIT', '20'))
