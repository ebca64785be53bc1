from utils.logger import logger
from utils.screenshot import take_screenshot
from utils.wait_helper import poll_until
from utils.health import check_app_accessibility

__all__ = [
    "logger",
    "take_screenshot",
    "poll_until",
    "check_app_accessibility",
]
