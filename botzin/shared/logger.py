# START OF FILE: botzin/shared/logger.py

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from botzin.shared.config import LOG_DIR, LOG_LEVEL

logger = logging.getLogger("app")
logger.setLevel(LOG_LEVEL)

formatter = logging.Formatter(
    '%(asctime)s - [%(levelname)s] - %(name)s - (%(filename)s).%(funcName)s(%(lineno)d) - %(message)s'
)

handler = logging.StreamHandler(sys.stdout)
handler.setLevel(LOG_LEVEL)
handler.setFormatter(formatter)

if not logger.handlers:
    logger.addHandler(handler)
    try:
        os.makedirs(LOG_DIR, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(LOG_DIR, 'bot.log'), maxBytes=5 * 1024 * 1024, backupCount=5, encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    except OSError as e:
        logger.warning(f"File logging disabled, could not open {LOG_DIR}: {e}")

# END OF FILE: botzin/shared/logger.py
