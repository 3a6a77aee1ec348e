# START OF FILE: botzin/shared/config.py

import os
import json
from typing import Any, Dict

from dotenv import load_dotenv

load_dotenv()

# --- API Keys ---
OPENROUTER_API_KEY = os.getenv('OPENROUTER_API_KEY')
WITAI_API_TOKEN = os.getenv('WITAI_API_TOKEN')
HUGGINGFACE_API_KEY = os.getenv('HUGGINGFACE_API_KEY')
TOGETHERAI_API_KEY = os.getenv('TOGETHERAI_API_KEY')
OPENWEATHERMAP_API_KEY = os.getenv('OPENWEATHERMAP_API_KEY')

# --- AI Models & APIs ---
OPENROUTER_API_URL = "https://openrouter.ai/api/v1"
OPENROUTER_MODEL_NAME = os.getenv('OPENROUTER_MODEL_NAME', "mistralai/mixtral-8x7b-instruct")
TOGETHERAI_API_URL = "https://api.together.xyz/v1"
TOGETHERAI_MODEL_NAME = os.getenv('TOGETHERAI_MODEL_NAME', "meta-llama/Llama-3.3-70B-Instruct-Turbo")
WITAI_API_URL = "https://api.wit.ai"
WITAI_API_VERSION = "20250305"
HF_TEXT_API_URL = os.getenv('HF_TEXT_API_URL', "https://api-inference.huggingface.co/models/facebook/bart-large")
STT_API_URL = os.getenv('STT_API_URL', "https://api-inference.huggingface.co/models/openai/whisper-large-v3")
VISION_API_URL = os.getenv('VISION_API_URL', "https://api-inference.huggingface.co/models/google/vit-base-patch16-224")
OPENWEATHERMAP_API_URL = "https://api.openweathermap.org/data/2.5/weather"

# --- WhatsApp gateway (Evolution API) ---
EVOLUTION_API_URL = os.getenv('EVOLUTION_API_URL', "http://localhost:8080")
EVOLUTION_API_KEY = os.getenv('EVOLUTION_API_KEY')
EVOLUTION_INSTANCE = os.getenv('EVOLUTION_INSTANCE', "botzin")

# --- People & groups ---
ADMIN_PHONE_NUMBER = os.getenv('ADMIN_PHONE_NUMBER')
REPORT_PHONE_NUMBER = os.getenv('REPORT_PHONE_NUMBER')
GROUP_ID = os.getenv('GROUP_ID')
MAINTENANCE_TIME = os.getenv('MAINTENANCE_TIME')

# --- Deployment & Runtime ---
PORT = int(os.environ.get('PORT', 3000))
TIMEZONE_OFFSET = int(os.getenv('TIMEZONE_OFFSET', -3))
DATABASE_PATH = os.getenv('DATABASE_PATH', "./botzin.db")
BACKUP_DIR = os.getenv('BACKUP_DIR', "./backup")
BOT_CONFIG_PATH = os.getenv('BOT_CONFIG_PATH', "./config.json")
LOG_DIR = os.getenv('LOG_DIR', "logs")
LOG_LEVEL = os.getenv('LOG_LEVEL', "INFO")

# --- Runtime bot settings (editable with !config) ---
# Times are in seconds, cron expressions in crontab syntax.
DEFAULT_BOT_CONFIG: Dict[str, Any] = {
    'auto_reply': True,
    'report_time': '0 0 * * *',
    'weekly_report_time': '0 0 * * sun',
    'api_timeout': 15,
    'reconnect_interval': 10,
    'max_reconnect_attempts': None,
    'cache_ttl': 24 * 60 * 60,
    'cpu_threshold': 80,
    'memory_threshold': 80,
    'commands_per_minute': 10,
    'follow_up_delay': 30,
    'urgency_threshold': 10,
    'admin_number': ADMIN_PHONE_NUMBER,
    'maintenance_message': '⚠️ Manutenção programada em breve. Pode haver interrupções.',
    'maintenance_time': MAINTENANCE_TIME,
    'monitored_groups': [GROUP_ID] if GROUP_ID else [],
    'max_witai_training_per_hour': 10,
    'max_witai_calls_per_minute': 5,
    'max_openrouter_calls_per_minute': 5,
    'max_huggingface_calls_per_minute': 5,
    'max_togetherai_calls_per_minute': 5,
}

# Settings whose default may be empty; "null" clears them.
OPTIONAL_BOT_CONFIG_TYPES: Dict[str, type] = {
    'max_reconnect_attempts': int,
    'admin_number': str,
    'maintenance_time': str,
}


def bot_config_type(key: str) -> type:
    if key in OPTIONAL_BOT_CONFIG_TYPES:
        return OPTIONAL_BOT_CONFIG_TYPES[key]
    return type(DEFAULT_BOT_CONFIG[key])


def load_bot_config(path: str = BOT_CONFIG_PATH) -> Dict[str, Any]:
    """Defaults overlaid with the JSON file, if there is one."""
    config = dict(DEFAULT_BOT_CONFIG)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            overrides = json.load(f) or {}
        config.update({k: v for k, v in overrides.items() if k in DEFAULT_BOT_CONFIG})
    except FileNotFoundError:
        pass
    except (json.JSONDecodeError, AttributeError):
        # Import here to keep config importable before logging is set up
        from botzin.shared.logger import logger
        logger.warning(f"Bot config file {path} is not valid JSON. Using defaults.")
    return config


def save_bot_config(config: Dict[str, Any], path: str = BOT_CONFIG_PATH) -> None:
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2, ensure_ascii=False)

# END OF FILE: botzin/shared/config.py
