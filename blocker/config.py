import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Shared secret every control request must carry as ?key=
    API_KEY = os.environ.get('API_KEY') or 'change-me'
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '8080'))
    # Registry bounds
    MAX_USERS = int(os.environ.get('MAX_USERS', '10'))
    MAX_LENGTH = int(os.environ.get('MAX_LENGTH', '3600'))
    # Steam login
    STEAM_USERNAME = os.environ.get('STEAM_USERNAME')
    STEAM_PASSWORD = os.environ.get('STEAM_PASSWORD')
    STEAM_TWO_FACTOR_CODE = os.environ.get('STEAM_TWO_FACTOR_CODE')
    RECONNECT_MAX_DELAY_SEC = int(os.environ.get('RECONNECT_MAX_DELAY_SEC', '30'))
    # Coordinator protocol
    APP_ID = int(os.environ.get('APP_ID', '730'))
    GAME_TYPE = int(os.environ.get('GAME_TYPE', '519'))
    # Timer periods (seconds)
    HELLO_INTERVAL_SEC = float(os.environ.get('HELLO_INTERVAL_SEC', '1.0'))
    BLOCK_INTERVAL_SEC = float(os.environ.get('BLOCK_INTERVAL_SEC', '2.5'))
    # 0 keeps only errors in the log
    LOGGING = os.environ.get('LOGGING', '1') not in ('0', 'false', 'False', '')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
