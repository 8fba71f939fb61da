from dataclasses import dataclass

from utils import config


@dataclass
class GlobalState:
    """
    Application state shared by screens.

    Fields:
      - user_id: the shopper whose cart and orders are shown
    """

    user_id: str = config.USER_ID
