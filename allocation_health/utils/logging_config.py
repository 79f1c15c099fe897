import logging
import os
from logging.config import dictConfig

# Global flag to prevent repeated configuration in the same process
_is_main_logging_configured = False
LOG_DIR = "logs"
APP_LOG_FILE = os.path.join(LOG_DIR, "app.log")
ENGINE_LOG_FILE = os.path.join(LOG_DIR, "allocation_health.log")


# --- 静的ロギング設定辞書 ---
# Streamlit環境では、setup_logging関数がこの辞書を適用する。
# エンジン側のモジュールは logging.getLogger(__name__) を使うため、
# 'allocation_health' ロガーに伝播してエンジン用ログファイルに出力される。
LOGGING_CONFIG = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'standard'
        },
        'app_file': {
            'class': 'logging.FileHandler',
            'mode': 'w',
            'filename': os.path.abspath(APP_LOG_FILE),
            'encoding': 'utf-8',
            'formatter': 'standard',
            'level': 'INFO',
        },
        'engine_file': {
            'class': 'logging.FileHandler',
            'mode': 'w',
            'filename': os.path.abspath(ENGINE_LOG_FILE),
            'encoding': 'utf-8',
            'formatter': 'standard',
            'level': 'INFO',
        },
    },
    'loggers': {
        'app': {
            'handlers': ['app_file'],
            'level': 'INFO',
            'propagate': True,
        },
        'allocation_health': {
            'handlers': ['engine_file'],
            'level': 'INFO',
            'propagate': True,
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'INFO',
    },
}

def setup_logging():
    """
    アプリケーション全体のロギングを設定する。
    Streamlitの再実行モデルでも重複設定されないよう、プロセス内で一度だけ適用します。
    """
    global _is_main_logging_configured

    if _is_main_logging_configured:
        return

    # Ensure log directory exists
    os.makedirs(LOG_DIR, exist_ok=True)

    # 既存のハンドラーをクリアして、クリーンな状態を保証します。
    all_logger_names = list(LOGGING_CONFIG['loggers'].keys())
    all_logger_names.append('') # ルートロガー('')を追加

    for logger_name in all_logger_names:
        logger_obj = logging.getLogger(logger_name)
        for handler in logger_obj.handlers[:]:
            logger_obj.removeHandler(handler)

    dictConfig(LOGGING_CONFIG)
    _is_main_logging_configured = True
