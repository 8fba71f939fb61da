from textual.message import Message


class CartChangedMessage(Message):
    """
    Posted when a cart row was added, changed or removed.
    Cart screen reloads its table on it.
    """

    bubble = True


class NewOrderMessage(Message):
    """
    Posted at app level after checkout, the app shows the new order id.
    Orders screen picks the order up on its next ScreenResume.
    """

    bubble = True

    def __init__(self, order_id: str) -> None:
        super().__init__()
        self.order_id = order_id
